"""
Task-type independent measures read from the learner state.
"""

from functools import partial

import numpy as np

from ..registry import mlr_measures
from .base import Measure


class MeasureElapsedTime(Measure):
    """
    Elapsed seconds spent in the given learner stages ("train", "predict").
    """

    def __init__(self, id: str, stages):
        super().__init__(id, None, predict_type=None, minimize=True, range=(0.0, np.inf),
                         properties=["requires_learner"], label="Elapsed Time")
        self.stages = list(stages)

    def _score(self, prediction, task=None, learner=None, train_set=None) -> float:
        timings = learner.timings
        return float(sum(timings.get(stage) or 0.0 for stage in self.stages))


mlr_measures.add("time_train", partial(MeasureElapsedTime, "time_train", ["train"]))
mlr_measures.add("time_predict", partial(MeasureElapsedTime, "time_predict", ["predict"]))
mlr_measures.add("time_both", partial(MeasureElapsedTime, "time_both", ["train", "predict"]))
