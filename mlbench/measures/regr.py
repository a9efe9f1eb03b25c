"""
Regression measures, computed with sklearn.metrics.
"""

from functools import partial

import numpy as np
from sklearn.metrics import (
    max_error,
    mean_absolute_error,
    mean_absolute_percentage_error,
    mean_squared_error,
    median_absolute_error,
    r2_score,
)

from ..registry import mlr_measures
from .base import MeasureSimple


def _regr(fun, prediction) -> float:
    return fun(prediction.truth, prediction.response)


def _rmse(y_true, y_pred) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def _rsq(y_true, y_pred) -> float:
    if len(y_true) < 2:
        return float("nan")
    return r2_score(y_true, y_pred)


_REGR_MEASURES = {
    # id: (function, minimize, range, label)
    "regr.mse": (mean_squared_error, True, (0.0, np.inf), "Mean Squared Error"),
    "regr.rmse": (_rmse, True, (0.0, np.inf), "Root Mean Squared Error"),
    "regr.mae": (mean_absolute_error, True, (0.0, np.inf), "Mean Absolute Error"),
    "regr.rsq": (_rsq, False, (-np.inf, 1.0), "R Squared"),
    "regr.maxae": (max_error, True, (0.0, np.inf), "Max Absolute Error"),
    "regr.medae": (median_absolute_error, True, (0.0, np.inf), "Median Absolute Error"),
    "regr.mape": (mean_absolute_percentage_error, True, (0.0, np.inf), "Mean Absolute Percent Error"),
}

for _id, (_fun, _minimize, _range, _label) in _REGR_MEASURES.items():
    mlr_measures.add(_id, partial(
        MeasureSimple, _id, "regr", partial(_regr, _fun),
        minimize=_minimize, range=_range, label=_label,
    ))
