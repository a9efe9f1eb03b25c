# @author: José Arbelaez
"""
Prediction containers returned by Learner.predict.

Each prediction keeps the row ids it was made for and the ground truth of
those rows, so it can be scored on its own and combined with predictions of
other resampling iterations.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..exceptions import MeasureError
from ..tasks.task import Surv

DEFAULT_MEASURES = {
    "classif": "classif.ce",
    "regr": "regr.mse",
    "surv": "surv.cindex",
}


class Prediction:
    """
    Base class for predictions.

    Subclasses implement ``predict_types``, ``_subset``, ``_columns`` and
    ``_concat``.
    """
    task_type: str = None

    def __init__(self, row_ids, truth):
        self.row_ids = np.asarray(row_ids)
        self.truth = truth

    def __len__(self) -> int:
        return len(self.row_ids)

    @property
    def predict_types(self) -> List[str]:
        raise NotImplementedError

    def score(self, measures=None, task=None, learner=None, train_set=None) -> Dict[str, float]:
        """
        Score this prediction.

        Args:
            measures: Measure or list of measures (default: the task type's default)
            task, learner, train_set: Passed to measures that require them

        Returns:
            Dict measure_id -> score
        """
        from ..registry import mlr_measures

        if measures is None:
            measures = [mlr_measures.get(DEFAULT_MEASURES[self.task_type])]
        elif not isinstance(measures, (list, tuple)):
            measures = [measures]

        out = {}
        for m in measures:
            if m.task_type not in (None, self.task_type):
                raise MeasureError(
                    f"Measure '{m.id}' is for '{m.task_type}' tasks, prediction is '{self.task_type}'"
                )
            out[m.id] = m.score(self, task=task, learner=learner, train_set=train_set)
        return out

    def filter(self, row_ids) -> "Prediction":
        """Subset to the given row ids (keeps this prediction's order)."""
        keep = np.isin(self.row_ids, np.asarray(row_ids))
        return self._subset(keep)

    def _subset(self, mask: np.ndarray) -> "Prediction":
        raise NotImplementedError

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame({"row_ids": self.row_ids})
        for name, values in self._columns().items():
            if isinstance(values, pd.DataFrame):
                values = values.reset_index(drop=True)
                values.columns = [f"{name}.{c}" for c in values.columns]
                df = pd.concat([df, values], axis=1)
            else:
                df[name] = values
        return df

    def _columns(self) -> Dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def combine(cls, predictions: Sequence["Prediction"]) -> "Prediction":
        """Concatenate predictions of the same type (e.g. over resampling iterations)."""
        predictions = [p for p in predictions if p is not None]
        if not predictions:
            raise ValueError("No predictions to combine")
        kinds = {type(p) for p in predictions}
        if len(kinds) > 1:
            raise ValueError(f"Cannot combine predictions of different types: {kinds}")
        return type(predictions[0])._concat(predictions)

    def __add__(self, other: "Prediction") -> "Prediction":
        return Prediction.combine([self, other])

    def __repr__(self) -> str:
        return f"<{type(self).__name__}> for {len(self)} observations: {', '.join(self.predict_types)}"


def _concat_optional(values: List[Optional[np.ndarray]]) -> Optional[np.ndarray]:
    if any(v is None for v in values):
        return None
    return np.concatenate(values)


# =============================================================================
# CLASSIFICATION
# =============================================================================

class PredictionClassif(Prediction):
    """
    Classification prediction.

    Args:
        row_ids: Row ids of the predicted observations
        truth: True labels
        response: Predicted labels (derived from ``prob`` if omitted)
        prob: Class probabilities, array (n, k) or DataFrame with class columns
        class_names: Class labels; for binary problems the first is the positive class
    """
    task_type = "classif"

    def __init__(self, row_ids, truth, response=None, prob=None, class_names: Optional[Sequence[Any]] = None):
        super().__init__(row_ids, np.asarray(truth, dtype=object))
        if class_names is None:
            if isinstance(prob, pd.DataFrame):
                class_names = list(prob.columns)
            else:
                class_names = sorted(set(self.truth.tolist()) | set(
                    [] if response is None else np.asarray(response, dtype=object).tolist()), key=str)
        self.class_names = list(class_names)

        if isinstance(prob, pd.DataFrame):
            prob = prob.reindex(columns=self.class_names).astype(float).reset_index(drop=True)
        elif prob is not None:
            prob = pd.DataFrame(np.asarray(prob, dtype=float), columns=self.class_names)
        self.prob: Optional[pd.DataFrame] = prob

        if response is None and prob is not None:
            response = self._response_from_prob(prob.to_numpy())
        self.response = None if response is None else np.asarray(response, dtype=object)

    def _response_from_prob(self, prob: np.ndarray) -> np.ndarray:
        idx = np.argmax(prob, axis=1)
        return np.asarray(self.class_names, dtype=object)[idx]

    @property
    def predict_types(self) -> List[str]:
        types = []
        if self.response is not None:
            types.append("response")
        if self.prob is not None:
            types.append("prob")
        return types

    @property
    def positive(self):
        return self.class_names[0] if len(self.class_names) == 2 else None

    @property
    def confusion(self) -> pd.DataFrame:
        """Confusion matrix, predicted labels in rows, true labels in columns."""
        if self.response is None:
            raise MeasureError("Confusion matrix needs predict type 'response'")
        response = pd.Categorical(self.response, categories=self.class_names)
        truth = pd.Categorical(self.truth, categories=self.class_names)
        return pd.crosstab(pd.Series(response, name="response"), pd.Series(truth, name="truth"),
                           dropna=False)

    def set_threshold(self, threshold: Union[float, Dict[Any, float]]) -> "PredictionClassif":
        """
        Recompute the response from the probabilities.

        A float applies to the positive class of a binary problem. A dict
        maps class -> threshold; the class with the highest prob/threshold wins.
        """
        if self.prob is None:
            raise MeasureError("Thresholding needs predict type 'prob'")
        prob = self.prob.to_numpy()
        if isinstance(threshold, dict):
            th = np.array([threshold.get(c, 1.0) for c in self.class_names], dtype=float)
            self.response = self._response_from_prob(prob / th)
        else:
            if len(self.class_names) != 2:
                raise MeasureError("A scalar threshold needs a binary problem")
            pos, neg = self.class_names
            self.response = np.where(prob[:, 0] >= threshold, pos, neg).astype(object)
        return self

    def _subset(self, mask):
        return PredictionClassif(
            self.row_ids[mask], self.truth[mask],
            response=None if self.response is None else self.response[mask],
            prob=None if self.prob is None else self.prob.loc[mask].reset_index(drop=True),
            class_names=self.class_names,
        )

    def _columns(self):
        cols = {"truth": self.truth}
        if self.response is not None:
            cols["response"] = self.response
        if self.prob is not None:
            cols["prob"] = self.prob
        return cols

    @classmethod
    def _concat(cls, preds):
        probs = [p.prob for p in preds]
        prob = None if any(p is None for p in probs) else pd.concat(probs, ignore_index=True)
        return cls(
            np.concatenate([p.row_ids for p in preds]),
            np.concatenate([p.truth for p in preds]),
            response=_concat_optional([p.response for p in preds]),
            prob=prob,
            class_names=preds[0].class_names,
        )


# =============================================================================
# REGRESSION
# =============================================================================

class PredictionRegr(Prediction):
    """Regression prediction with optional standard errors."""
    task_type = "regr"

    def __init__(self, row_ids, truth, response=None, se=None):
        super().__init__(row_ids, np.asarray(truth, dtype=float))
        self.response = None if response is None else np.asarray(response, dtype=float).ravel()
        self.se = None if se is None else np.asarray(se, dtype=float).ravel()

    @property
    def predict_types(self) -> List[str]:
        types = []
        if self.response is not None:
            types.append("response")
        if self.se is not None:
            types.append("se")
        return types

    def _subset(self, mask):
        return PredictionRegr(
            self.row_ids[mask], self.truth[mask],
            response=None if self.response is None else self.response[mask],
            se=None if self.se is None else self.se[mask],
        )

    def _columns(self):
        cols = {"truth": self.truth}
        if self.response is not None:
            cols["response"] = self.response
        if self.se is not None:
            cols["se"] = self.se
        return cols

    @classmethod
    def _concat(cls, preds):
        return cls(
            np.concatenate([p.row_ids for p in preds]),
            np.concatenate([p.truth for p in preds]),
            response=_concat_optional([p.response for p in preds]),
            se=_concat_optional([p.se for p in preds]),
        )


# =============================================================================
# SURVIVAL
# =============================================================================

def survival_at(distr: pd.DataFrame, times: np.ndarray) -> np.ndarray:
    """
    Evaluate step survival curves at arbitrary times.

    Args:
        distr: Survival probabilities, one row per observation, columns are times
        times: Times to evaluate at

    Returns:
        Array (n_obs, len(times)); S(t) = 1 before the first time point
    """
    grid = np.asarray(distr.columns, dtype=float)
    values = distr.to_numpy(dtype=float)
    idx = np.searchsorted(grid, np.asarray(times, dtype=float), side="right") - 1
    out = np.ones((values.shape[0], len(idx)))
    valid = idx >= 0
    out[:, valid] = values[:, idx[valid]]
    return out


class PredictionSurv(Prediction):
    """
    Survival prediction.

    Args:
        truth: Surv(time, event) of the predicted rows
        crank: Continuous risk ranking, higher means higher risk
        lp: Linear predictor (for proportional hazards models)
        distr: Survival probabilities, one row per observation, columns are times
        response: Predicted survival time
    """
    task_type = "surv"

    def __init__(self, row_ids, truth: Surv, crank=None, lp=None,
                 distr: Optional[pd.DataFrame] = None, response=None):
        truth = Surv(np.asarray(truth.time, dtype=float), np.asarray(truth.event, dtype=int))
        super().__init__(row_ids, truth)
        self.crank = None if crank is None else np.asarray(crank, dtype=float)
        self.lp = None if lp is None else np.asarray(lp, dtype=float)
        self.response = None if response is None else np.asarray(response, dtype=float)
        if distr is not None:
            distr = distr.reset_index(drop=True)
            distr.columns = np.asarray(distr.columns, dtype=float)
        self.distr = distr

    @property
    def predict_types(self) -> List[str]:
        types = []
        for name in ("crank", "lp", "distr", "response"):
            if getattr(self, name) is not None:
                types.append(name)
        return types

    def survival_at(self, times) -> np.ndarray:
        if self.distr is None:
            raise MeasureError("Survival probabilities need predict type 'distr'")
        return survival_at(self.distr, times)

    def _subset(self, mask):
        return PredictionSurv(
            self.row_ids[mask],
            Surv(self.truth.time[mask], self.truth.event[mask]),
            crank=None if self.crank is None else self.crank[mask],
            lp=None if self.lp is None else self.lp[mask],
            distr=None if self.distr is None else self.distr.loc[mask],
            response=None if self.response is None else self.response[mask],
        )

    def _columns(self):
        cols = {"time": self.truth.time, "event": self.truth.event}
        for name in ("crank", "lp", "response"):
            if getattr(self, name) is not None:
                cols[name] = getattr(self, name)
        return cols

    @classmethod
    def _concat(cls, preds):
        distrs = [p.distr for p in preds]
        distr = None
        if all(d is not None for d in distrs):
            grid = np.unique(np.concatenate([np.asarray(d.columns, dtype=float) for d in distrs]))
            distr = pd.DataFrame(
                np.vstack([survival_at(d, grid) for d in distrs]), columns=grid
            )
        return cls(
            np.concatenate([p.row_ids for p in preds]),
            Surv(np.concatenate([p.truth.time for p in preds]),
                 np.concatenate([p.truth.event for p in preds])),
            crank=_concat_optional([p.crank for p in preds]),
            lp=_concat_optional([p.lp for p in preds]),
            distr=distr,
            response=_concat_optional([p.response for p in preds]),
        )
