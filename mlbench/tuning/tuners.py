# @author: José Arbelaez
"""
Tuners propose configurations to a TuningInstance.

    grid_search     full factorial grid (evaluated in shuffled order)
    random_search   uniform random points until the terminator fires
    design_points   a user-supplied design
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import numpy as np
import pandas as pd

from ..exceptions import TerminatedError, TuningError
from ..registry import mlr_tuners
from .instance import TuningInstance
from .terminators import TerminatorCombo, TerminatorNone

logger = logging.getLogger(__name__)


class Tuner(ABC):
    id: str = None

    def optimize(self, instance: TuningInstance) -> pd.DataFrame:
        """
        Run the search and assign the best archived configuration as result.

        Returns:
            ``instance.result``
        """
        logger.info(f"Tuning '{instance.learner.id}' on '{instance.task.id}' with {self.id} "
                    f"({len(instance.search_space)} params, terminator {instance.terminator!r})")
        try:
            self._optimize(instance)
        except TerminatedError:
            pass
        instance.assign_result(instance.archive.best())
        return instance.result

    @abstractmethod
    def _optimize(self, instance: TuningInstance) -> None:
        pass

    def _eval_in_batches(self, instance: TuningInstance, design: pd.DataFrame, batch_size: int):
        for start in range(0, len(design), batch_size):
            if instance.is_terminated:
                break
            instance.eval_batch(design.iloc[start:start + batch_size].reset_index(drop=True))

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in vars(self).items() if k != "design")
        return f"<{type(self).__name__}> [{values}]"


class TunerGridSearch(Tuner):
    id = "grid_search"

    def __init__(self, resolution: Optional[int] = None, param_resolutions: Optional[Dict[str, int]] = None,
                 batch_size: int = 1, seed: Optional[int] = None):
        if resolution is None and not param_resolutions:
            resolution = 10
        self.resolution = resolution
        self.param_resolutions = param_resolutions or {}
        self.batch_size = batch_size
        self.seed = seed

    def _optimize(self, instance: TuningInstance) -> None:
        design = instance.search_space.generate_design_grid(self.resolution, self.param_resolutions)
        order = np.random.default_rng(self.seed).permutation(len(design))
        self._eval_in_batches(instance, design.iloc[order].reset_index(drop=True), self.batch_size)


class TunerRandomSearch(Tuner):
    id = "random_search"

    def __init__(self, batch_size: int = 10, seed: Optional[int] = None):
        self.batch_size = batch_size
        self.seed = seed

    def _optimize(self, instance: TuningInstance) -> None:
        terminator = instance.terminator
        if isinstance(terminator, TerminatorNone) or (
                isinstance(terminator, TerminatorCombo)
                and all(isinstance(t, TerminatorNone) for t in terminator.terminators)):
            raise TuningError("Random search needs a terminator that can stop it")
        rng = np.random.default_rng(self.seed)
        while not instance.is_terminated:
            instance.eval_batch(instance.search_space.generate_design_random(self.batch_size, rng=rng))


class TunerDesignPoints(Tuner):
    id = "design_points"

    def __init__(self, design: Optional[pd.DataFrame] = None, batch_size: int = 1):
        self.design = design
        self.batch_size = batch_size

    def _optimize(self, instance: TuningInstance) -> None:
        if self.design is None or len(self.design) == 0:
            raise TuningError("design_points needs a non-empty design")
        unknown = [c for c in self.design.columns if c not in instance.search_space]
        if unknown:
            raise TuningError(f"Design columns not in the search space: {unknown}")
        self._eval_in_batches(instance, self.design, self.batch_size)


mlr_tuners.add("grid_search", TunerGridSearch)
mlr_tuners.add("random_search", TunerRandomSearch)
mlr_tuners.add("design_points", TunerDesignPoints)


def tune(tuner: Tuner, task, learner, resampling, measure, terminator=None, search_space=None,
         store_models: bool = False, n_jobs: int = 1, seed: Optional[int] = None) -> TuningInstance:
    """
    Tune ``learner`` on ``task`` and return the optimized instance.

    Example:
        >>> learner = lrn("classif.rpart", max_depth=to_tune(1, 10))
        >>> instance = tune(tnr("grid_search", resolution=5), tsk("iris"), learner,
        ...                 rsmp("cv", folds=3), msr("classif.ce"), seed=1)
        >>> instance.result_learner_param_vals
    """
    instance = TuningInstance(task, learner, resampling, measure,
                              terminator if terminator is not None else TerminatorNone(),
                              search_space=search_space, store_models=store_models,
                              n_jobs=n_jobs, seed=seed)
    tuner.optimize(instance)
    return instance
