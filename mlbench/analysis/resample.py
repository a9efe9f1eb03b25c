# @author: José Arbelaez
"""
Resampling a learner on a task.

Every iteration trains a fresh clone of the learner on the train set and
predicts the test set. Iterations are independent: with n_jobs != 1 they
run through joblib, and the results come back in iteration order.
"""

from __future__ import annotations
import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from ..configs.settings import ENCAPSULATION_MODES, get_settings
from ..learners.base import Learner
from ..resampling.base import Resampling
from ..tasks.task import Task
from .results import IterationRecord, ResampleResult

logger = logging.getLogger(__name__)


def _run_iteration(task: Task, learner: Learner, train_set: np.ndarray, test_set: np.ndarray,
                   iteration: int, n_iters: int, store_models: bool,
                   encapsulate: str) -> IterationRecord:
    """
    Worker function for a single resampling iteration.
    Must be at module level for multiprocessing pickling.
    """
    logger.info(f"[{task.id}/{learner.id}] iteration {iteration + 1}/{n_iters}")

    m = learner.clone().reset()
    m.encapsulate = encapsulate
    m.train(task, row_ids=train_set)
    prediction = m.predict(task, row_ids=test_set)

    record = IterationRecord(
        iteration=iteration,
        learner=m,
        prediction=prediction,
        train_set=np.asarray(train_set),
        test_set=np.asarray(test_set),
        train_time=m.timings["train"],
        predict_time=m.timings["predict"],
        warnings=m.warnings,
        errors=m.errors,
    )
    if not store_models:
        m.discard_model()
    return record


def _resolve(n_jobs: Optional[int], encapsulate: Optional[str],
             store_models: Optional[bool]) -> Tuple[int, str, bool]:
    settings = get_settings()
    n_jobs = settings.n_jobs if n_jobs is None else n_jobs
    encapsulate = settings.encapsulate if encapsulate is None else encapsulate
    store_models = settings.store_models if store_models is None else store_models
    if encapsulate not in ENCAPSULATION_MODES:
        raise ValueError(
            f"Unknown encapsulation '{encapsulate}'. Available: {', '.join(ENCAPSULATION_MODES)}"
        )
    return n_jobs, encapsulate, store_models


def run_jobs(jobs: Sequence[Tuple[Any, ...]], n_jobs: int) -> List[IterationRecord]:
    """Run ``_run_iteration`` argument tuples sequentially or with joblib; keeps job order."""
    if n_jobs == 1 or len(jobs) <= 1:
        return [_run_iteration(*args) for args in jobs]
    return Parallel(n_jobs=n_jobs, prefer="processes")(  # loky backend
        delayed(_run_iteration)(*args) for args in jobs
    )


def resample(task: Task, learner: Learner, resampling: Resampling,
             store_models: Optional[bool] = None, n_jobs: Optional[int] = None,
             encapsulate: Optional[str] = None, seed: Optional[int] = None) -> ResampleResult:
    """
    Resample ``learner`` on ``task``.

    Args:
        task: Task to resample
        learner: Learner (cloned for every iteration, never trained in place)
        resampling: Resampling; instantiated on a copy with ``seed`` if needed
        store_models: Keep the fitted models of every iteration
        n_jobs: Parallel jobs (default from settings)
        encapsulate: "try" captures errors per iteration, "none" raises them
        seed: Seed used when the resampling has to be instantiated

    Returns:
        ResampleResult

    Example:
        >>> rr = resample(tsk("iris"), lrn("classif.rpart"), rsmp("cv", folds=3), seed=1)
        >>> rr.aggregate(msr("classif.ce"))
    """
    n_jobs, encapsulate, store_models = _resolve(n_jobs, encapsulate, store_models)

    if resampling.is_instantiated:
        resampling.check_task(task)
    else:
        resampling = resampling.clone().instantiate(task, seed=seed)

    # cached hash travels with the task to the workers
    task.backend_hash

    n = resampling.iters
    jobs = [(task, learner, resampling.train_set(i), resampling.test_set(i), i, n,
             store_models, encapsulate) for i in range(n)]
    records = run_jobs(jobs, n_jobs)

    rr = ResampleResult(task, learner.clone().reset(), resampling, records)
    n_err = sum(len(r.errors) for r in records)
    if n_err:
        logger.warning(f"[{task.id}/{learner.id}] {n_err} errors in {n} iterations")
    return rr
