"""
Performance measures.

Importing this package registers all measures in ``mlr_measures``.
"""

from .base import Measure, MeasureSimple
from .classif import make_fbeta
from . import regr  # noqa: F401  (registers regr.* measures)
from .surv import MeasureSurvGraf, harrell_cindex
from .misc import MeasureElapsedTime

__all__ = [
    "Measure",
    "MeasureSimple",
    "MeasureSurvGraf",
    "MeasureElapsedTime",
    "harrell_cindex",
    "make_fbeta",
]
