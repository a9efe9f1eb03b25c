from .terminators import (
    Terminator,
    TerminatorCombo,
    TerminatorEvals,
    TerminatorNone,
    TerminatorPerfReached,
    TerminatorRunTime,
    TerminatorStagnation,
)
from .instance import Archive, TuningInstance
from .tuners import Tuner, TunerDesignPoints, TunerGridSearch, TunerRandomSearch, tune
from .auto_tuner import AutoTuner
from .extract import extract_inner_tuning_archives, extract_inner_tuning_results

__all__ = [
    "Terminator",
    "TerminatorCombo",
    "TerminatorEvals",
    "TerminatorNone",
    "TerminatorPerfReached",
    "TerminatorRunTime",
    "TerminatorStagnation",
    "Archive",
    "TuningInstance",
    "Tuner",
    "TunerDesignPoints",
    "TunerGridSearch",
    "TunerRandomSearch",
    "tune",
    "AutoTuner",
    "extract_inner_tuning_archives",
    "extract_inner_tuning_results",
]
