"""
Classification measures, computed with sklearn.metrics.
"""

from functools import partial

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    fbeta_score,
    log_loss,
    matthews_corrcoef,
    precision_score,
    recall_score,
    roc_auc_score,
)

from ..exceptions import MeasureError
from ..registry import mlr_measures
from .base import MeasureSimple


def _require_binary(prediction, measure_id: str):
    if len(prediction.class_names) != 2:
        raise MeasureError(f"Measure '{measure_id}' requires a binary classification problem")
    return prediction.positive


def _ce(prediction) -> float:
    return 1.0 - accuracy_score(prediction.truth, prediction.response)


def _acc(prediction) -> float:
    return accuracy_score(prediction.truth, prediction.response)


def _bacc(prediction) -> float:
    return balanced_accuracy_score(prediction.truth, prediction.response)


def _auc(prediction) -> float:
    truth = prediction.truth
    if len(np.unique(truth)) < 2:
        return float("nan")
    prob = prediction.prob
    if len(prediction.class_names) == 2:
        pos = prediction.positive
        return roc_auc_score(truth == pos, prob[pos].to_numpy())
    # one-vs-rest macro average for multiclass problems
    present = [c for c in prediction.class_names if np.any(truth == c)]
    aucs = [roc_auc_score(truth == c, prob[c].to_numpy()) for c in present]
    return float(np.mean(aucs))


def _logloss(prediction) -> float:
    prob = prediction.prob.to_numpy()
    prob = np.clip(prob, 1e-15, 1 - 1e-15)
    prob = prob / prob.sum(axis=1, keepdims=True)
    return log_loss(prediction.truth, prob, labels=prediction.class_names)


def _brier(prediction) -> float:
    prob = prediction.prob.to_numpy()
    onehot = (prediction.truth[:, None] == np.asarray(prediction.class_names, dtype=object)[None, :])
    if len(prediction.class_names) == 2:
        # binary Brier score on the positive class
        return float(np.mean((prob[:, 0] - onehot[:, 0]) ** 2))
    return float(np.mean(np.sum((prob - onehot) ** 2, axis=1)))


def _binary_metric(prediction, fun, measure_id: str, **kwargs) -> float:
    pos = _require_binary(prediction, measure_id)
    return fun(prediction.truth, prediction.response, pos_label=pos, labels=prediction.class_names,
               zero_division=np.nan, **kwargs)


def _mcc(prediction) -> float:
    _require_binary(prediction, "classif.mcc")
    return matthews_corrcoef(prediction.truth, prediction.response)


mlr_measures.add("classif.ce", partial(
    MeasureSimple, "classif.ce", "classif", _ce, minimize=True, range=(0.0, 1.0),
    label="Classification Error"))
mlr_measures.add("classif.acc", partial(
    MeasureSimple, "classif.acc", "classif", _acc, minimize=False, range=(0.0, 1.0),
    label="Classification Accuracy"))
mlr_measures.add("classif.bacc", partial(
    MeasureSimple, "classif.bacc", "classif", _bacc, minimize=False, range=(0.0, 1.0),
    label="Balanced Accuracy"))
mlr_measures.add("classif.auc", partial(
    MeasureSimple, "classif.auc", "classif", _auc, predict_type="prob", minimize=False,
    range=(0.0, 1.0), label="Area Under the ROC Curve"))
mlr_measures.add("classif.logloss", partial(
    MeasureSimple, "classif.logloss", "classif", _logloss, predict_type="prob", minimize=True,
    range=(0.0, np.inf), label="Log Loss"))
mlr_measures.add("classif.brier", partial(
    MeasureSimple, "classif.brier", "classif", _brier, predict_type="prob", minimize=True,
    range=(0.0, 2.0), label="Brier Score"))
mlr_measures.add("classif.precision", partial(
    MeasureSimple, "classif.precision", "classif",
    partial(_binary_metric, fun=precision_score, measure_id="classif.precision"),
    minimize=False, range=(0.0, 1.0), label="Precision"))
mlr_measures.add("classif.recall", partial(
    MeasureSimple, "classif.recall", "classif",
    partial(_binary_metric, fun=recall_score, measure_id="classif.recall"),
    minimize=False, range=(0.0, 1.0), label="Recall"))
mlr_measures.add("classif.mcc", partial(
    MeasureSimple, "classif.mcc", "classif", _mcc, minimize=False, range=(-1.0, 1.0),
    label="Matthews Correlation Coefficient"))


def make_fbeta(beta: float = 1.0) -> MeasureSimple:
    """F-beta score of the positive class."""
    return MeasureSimple(
        "classif.fbeta", "classif",
        partial(_binary_metric, fun=fbeta_score, measure_id="classif.fbeta", beta=beta),
        minimize=False, range=(0.0, 1.0), label=f"F-beta Score (beta={beta})",
    )


mlr_measures.add("classif.fbeta", make_fbeta)
