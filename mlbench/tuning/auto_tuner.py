# @author: José Arbelaez
"""
AutoTuner: a learner that tunes itself on its training data.

Training runs a tuner with an inner resampling on the training rows,
then refits the wrapped learner with the best configuration on all of
them. Resampling an AutoTuner gives nested resampling; the inner
evaluation is always sequential so that it can run inside outer workers.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

import pandas as pd

from ..exceptions import TuningError
from ..learners.base import Learner
from ..measures.base import Measure
from ..params.param_set import ParamSet
from ..resampling.base import Resampling
from ..tasks.task import Task
from ..utils.tools import compute_hash
from .instance import Archive, TuningInstance
from .terminators import Terminator
from .tuners import Tuner

_PREDICTION_FIELDS = ("response", "prob", "se", "crank", "lp", "distr")


class AutoTuner(Learner):
    """
    Args:
        learner: Learner to tune (parameters set to ``to_tune()`` define the
            search space unless ``search_space`` is given)
        resampling: Inner resampling, instantiated afresh on every training task
        measure: Measure to optimize
        terminator: Stopping rule
        tuner: Search strategy
        search_space: Explicit search space
        store_tuning_instance: Keep the TuningInstance in the state
        store_benchmark_result: Keep the inner ResampleResults in the archive
        seed: Seed for the inner resampling
    """

    def __init__(self, learner: Learner, resampling: Resampling, measure: Measure,
                 terminator: Terminator, tuner: Tuner, search_space: Optional[ParamSet] = None,
                 store_tuning_instance: bool = True, store_benchmark_result: bool = True,
                 seed: Optional[int] = None, id: Optional[str] = None):
        if resampling.is_instantiated:
            raise TuningError("Pass the inner resampling of an AutoTuner uninstantiated; "
                              "it is instantiated on every training task")
        self.learner = learner.clone().reset()
        super().__init__(
            id=id or f"{learner.id}.tuned",
            task_type=learner.task_type,
            predict_types=learner.predict_types,
            predict_type=learner.predict_type,
            properties=learner.properties,
            packages=learner.packages,
        )
        self.resampling = resampling
        self.measure = measure
        self.terminator = terminator
        self.tuner = tuner
        self.search_space = search_space
        self.store_tuning_instance = store_tuning_instance
        self.store_benchmark_result = store_benchmark_result
        self.seed = seed

    @Learner.predict_type.setter
    def predict_type(self, value: str):
        Learner.predict_type.fset(self, value)
        self.learner.predict_type = value

    def _train(self, task: Task) -> Learner:
        instance = TuningInstance(
            task, self.learner, self.resampling.clone(), self.measure, self.terminator,
            search_space=self.search_space,
            store_benchmark_result=self.store_benchmark_result,
            n_jobs=1,
            seed=self.seed,
        )
        self.tuner.optimize(instance)

        final = instance.learner.clone().reset()
        final.param_set.set_values(**instance.result_learner_param_vals)
        final.train(task)

        if self.store_tuning_instance:
            self.state["tuning_instance"] = instance
        self.state["tuning_result"] = instance.result
        return final

    def _predict(self, task: Task) -> Dict[str, Any]:
        prediction = self.model.predict(task)
        return {k: getattr(prediction, k, None) for k in _PREDICTION_FIELDS}

    # ------------------------------------------------------------------
    # Tuning accessors (survive discard_model)
    # ------------------------------------------------------------------

    @property
    def tuning_instance(self) -> Optional[TuningInstance]:
        return None if self.state is None else self.state.get("tuning_instance")

    @property
    def tuning_result(self) -> Optional[pd.DataFrame]:
        return None if self.state is None else self.state.get("tuning_result")

    @property
    def archive(self) -> Optional[Archive]:
        instance = self.tuning_instance
        return None if instance is None else instance.archive

    @property
    def hash(self) -> str:
        return compute_hash(type(self).__name__, self.id, self.predict_type, self.learner.hash,
                            self.resampling.hash, self.measure.id, repr(self.terminator),
                            repr(self.tuner))
