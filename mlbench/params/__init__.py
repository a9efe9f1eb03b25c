"""
Hyperparameter definitions and search spaces.
"""

from .param_set import (
    NO_DEFAULT,
    Param,
    ParamDbl,
    ParamInt,
    ParamFct,
    ParamLgl,
    ParamUty,
    ParamSet,
    TuneToken,
    to_tune,
    ps,
    p_dbl,
    p_int,
    p_fct,
    p_lgl,
    p_uty,
)

__all__ = [
    "NO_DEFAULT",
    "Param",
    "ParamDbl",
    "ParamInt",
    "ParamFct",
    "ParamLgl",
    "ParamUty",
    "ParamSet",
    "TuneToken",
    "to_tune",
    "ps",
    "p_dbl",
    "p_int",
    "p_fct",
    "p_lgl",
    "p_uty",
]
