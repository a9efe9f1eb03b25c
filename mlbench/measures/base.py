# @author: José Arbelaez
"""
Base class for performance measures.

A Measure scores a single Prediction and knows how to aggregate the
per-iteration scores of a resample result:

    - average="macro": score every iteration, combine with ``aggregator``
      (arithmetic mean by default)
    - average="micro": score the prediction obtained by combining all
      iterations
"""

from __future__ import annotations
from typing import Callable, Iterable, Optional, Tuple

import numpy as np

from ..exceptions import MeasureError

AVERAGES = ("macro", "micro")


class Measure:
    """
    Abstract performance measure.

    Args:
        id: Measure identifier, e.g. "classif.ce"
        task_type: Task type the measure applies to (None for any)
        predict_type: Predict type needed in the prediction (None for none)
        minimize: Whether lower values are better
        range: Theoretical (lower, upper) bounds
        average: "macro" or "micro"
        aggregator: Combination rule for macro averaging (default np.mean)
        properties: Any of "requires_task", "requires_learner", "requires_train_set"
    """

    def __init__(self, id: str, task_type: Optional[str], predict_type: Optional[str] = "response",
                 minimize: bool = True, range: Tuple[float, float] = (0.0, np.inf),
                 average: str = "macro", aggregator: Optional[Callable] = None,
                 properties: Iterable[str] = (), label: Optional[str] = None):
        if average not in AVERAGES:
            raise MeasureError(f"Unknown average '{average}'. Available: {', '.join(AVERAGES)}")
        self.id = id
        self.task_type = task_type
        self.predict_type = predict_type
        self.minimize = minimize
        self.range = range
        self.average = average
        self.aggregator = aggregator
        self.properties = set(properties)
        self.label = label or id

    def _score(self, prediction, task=None, learner=None, train_set=None) -> float:
        raise NotImplementedError

    def score(self, prediction, task=None, learner=None, train_set=None) -> float:
        """
        Score a single prediction.

        Returns NaN when the prediction lacks the required predict type or
        is empty.
        """
        for prop, value in (("requires_task", task), ("requires_learner", learner),
                            ("requires_train_set", train_set)):
            if prop in self.properties and value is None:
                raise MeasureError(f"Measure '{self.id}' {prop.replace('_', ' ')}")

        if prediction is None:
            return float("nan")
        if self.predict_type is not None:
            if self.predict_type not in prediction.predict_types or len(prediction) == 0:
                return float("nan")
        return float(self._score(prediction, task=task, learner=learner, train_set=train_set))

    def aggregate(self, resample_result) -> float:
        """Aggregate the iterations of a ResampleResult into a single value."""
        if self.average == "micro":
            prediction = resample_result.prediction()
            if prediction is None:
                return float("nan")
            return self.score(prediction, task=resample_result.task,
                              learner=resample_result.learner)

        scores = resample_result.score([self])[self.id].to_numpy(dtype=float)
        scores = scores[~np.isnan(scores)]
        if scores.size == 0:
            return float("nan")
        aggregator = self.aggregator or np.mean
        return float(aggregator(scores))

    def __repr__(self) -> str:
        direction = "minimize" if self.minimize else "maximize"
        return f"<{type(self).__name__}:{self.id}> ({direction}, {self.average})"


class MeasureSimple(Measure):
    """
    Measure defined by a plain function of the prediction.

    Args:
        fun: Callable(prediction) -> float
    """

    def __init__(self, id: str, task_type: str, fun: Callable, **kwargs):
        super().__init__(id, task_type, **kwargs)
        self.fun = fun

    def _score(self, prediction, task=None, learner=None, train_set=None) -> float:
        return self.fun(prediction)
