# @author: José Arbelaez
"""
mlbench: machine learning benchmarking

Modules:
    - tasks: Tasks (classification, regression, survival), datasets and generators
    - learners: Learners wrapping scikit-learn estimators and survival models
    - resampling: Resampling strategies (holdout, cv, bootstrap, ...)
    - measures: Performance measures
    - analysis: resample(), benchmark() and their result containers
    - tuning: Tuners, terminators and the AutoTuner for nested resampling
    - configs: Runtime settings and default search spaces
    - utils: Paths, logging and helper tools
"""

__version__ = "0.3.0"

from .exceptions import (
    MlbenchError,
    TaskError,
    LearnerError,
    LearnerTrainError,
    LearnerPredictError,
    ResamplingError,
    NotInstantiatedError,
    MeasureError,
    ParamError,
    TuningError,
    TerminatedError,
    RegistryError,
)
from .registry import (
    Dictionary,
    mlr_tasks,
    mlr_task_generators,
    mlr_learners,
    mlr_resamplings,
    mlr_measures,
    mlr_terminators,
    mlr_tuners,
)
from .params import ParamSet, to_tune, ps, p_dbl, p_int, p_fct, p_lgl, p_uty
from .tasks import Task, TaskClassif, TaskRegr, TaskSurv, Surv
from .learners import Learner
from .predictions import Prediction, PredictionClassif, PredictionRegr, PredictionSurv
from .resampling import Resampling
from .measures import Measure
from .analysis import (
    BenchmarkResult,
    ResampleResult,
    resample,
    benchmark,
    benchmark_grid,
    save_benchmark_result,
)
from .tuning import (
    AutoTuner,
    TuningInstance,
    tune,
    extract_inner_tuning_results,
    extract_inner_tuning_archives,
)
from .sugar import tsk, tsks, tgen, lrn, lrns, rsmp, rsmps, msr, msrs, trm, tnr

__all__ = [
    "__version__",
    "MlbenchError",
    "TaskError",
    "LearnerError",
    "LearnerTrainError",
    "LearnerPredictError",
    "ResamplingError",
    "NotInstantiatedError",
    "MeasureError",
    "ParamError",
    "TuningError",
    "TerminatedError",
    "RegistryError",
    "Dictionary",
    "mlr_tasks",
    "mlr_task_generators",
    "mlr_learners",
    "mlr_resamplings",
    "mlr_measures",
    "mlr_terminators",
    "mlr_tuners",
    "ParamSet",
    "to_tune",
    "ps",
    "p_dbl",
    "p_int",
    "p_fct",
    "p_lgl",
    "p_uty",
    "Task",
    "TaskClassif",
    "TaskRegr",
    "TaskSurv",
    "Surv",
    "Learner",
    "Prediction",
    "PredictionClassif",
    "PredictionRegr",
    "PredictionSurv",
    "Resampling",
    "Measure",
    "BenchmarkResult",
    "ResampleResult",
    "resample",
    "benchmark",
    "benchmark_grid",
    "save_benchmark_result",
    "AutoTuner",
    "TuningInstance",
    "tune",
    "extract_inner_tuning_results",
    "extract_inner_tuning_archives",
    "tsk",
    "tsks",
    "tgen",
    "lrn",
    "lrns",
    "rsmp",
    "rsmps",
    "msr",
    "msrs",
    "trm",
    "tnr",
]
