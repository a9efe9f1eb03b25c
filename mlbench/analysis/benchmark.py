# @author: José Arbelaez
"""
Benchmark designs and their execution.

A design is a DataFrame with columns ``task``, ``learner`` and
``resampling``. ``benchmark`` flattens all (design row, iteration) pairs
into one job list so that parallelism is not limited to a single
resample experiment.
"""

from __future__ import annotations
import logging
import time
from typing import Iterable, Optional, Union

import pandas as pd

from ..exceptions import ResamplingError
from ..learners.base import Learner
from ..resampling.base import Resampling
from ..tasks.task import Task
from .resample import _resolve, run_jobs
from .results import BenchmarkResult, ResampleResult

logger = logging.getLogger(__name__)

DESIGN_COLUMNS = ["task", "learner", "resampling"]


def _as_list(x) -> list:
    if isinstance(x, (Task, Learner, Resampling)):
        return [x]
    return list(x)


def benchmark_grid(tasks: Union[Task, Iterable[Task]], learners: Union[Learner, Iterable[Learner]],
                   resamplings: Union[Resampling, Iterable[Resampling]], paired: bool = False,
                   seed: Optional[int] = None) -> pd.DataFrame:
    """
    Build a full factorial benchmark design.

    Unpaired (default): every resampling is cloned and instantiated once per
    task, and that instance is shared by all learners on the task.
    Paired: ``tasks`` and ``resamplings`` are zipped; the resamplings must
    already be instantiated on their task.

    Returns:
        DataFrame with columns task, learner, resampling

    Example:
        >>> design = benchmark_grid(tsks(["iris", "wine"]), lrns(["classif.featureless",
        ...                         "classif.rpart"]), rsmp("cv", folds=3), seed=42)
    """
    tasks, learners, resamplings = _as_list(tasks), _as_list(learners), _as_list(resamplings)
    types = {t.task_type for t in tasks} | {lrn.task_type for lrn in learners}
    if len(types) > 1:
        raise ValueError(f"Tasks and learners must share one task type, got {sorted(types)}")

    rows = []
    if paired:
        if len(tasks) != len(resamplings):
            raise ValueError("Paired designs need as many resamplings as tasks")
        for task, resampling in zip(tasks, resamplings):
            if not resampling.is_instantiated:
                raise ResamplingError(f"Paired design needs resampling '{resampling.id}' instantiated")
            resampling.check_task(task)
            rows.extend({"task": task, "learner": lrn, "resampling": resampling} for lrn in learners)
    else:
        for task in tasks:
            for resampling in resamplings:
                if resampling.is_instantiated:
                    resampling.check_task(task)
                    instance = resampling
                else:
                    instance = resampling.clone().instantiate(task, seed=seed)
                rows.extend({"task": task, "learner": lrn, "resampling": instance} for lrn in learners)

    return pd.DataFrame(rows, columns=DESIGN_COLUMNS)


def benchmark(design: pd.DataFrame, store_models: Optional[bool] = None,
              n_jobs: Optional[int] = None, encapsulate: Optional[str] = None) -> BenchmarkResult:
    """
    Run every row of a benchmark design.

    Args:
        design: DataFrame from ``benchmark_grid`` (or any frame with task,
            learner and instantiated resampling columns)
        store_models: Keep fitted models
        n_jobs: Parallel jobs over all iterations of all rows
        encapsulate: "try" (capture per-iteration errors) or "none"

    Returns:
        BenchmarkResult with one ResampleResult per design row, in design order
    """
    missing = [c for c in DESIGN_COLUMNS if c not in design.columns]
    if missing:
        raise ValueError(f"Design is missing columns {missing}")
    n_jobs, encapsulate, store_models = _resolve(n_jobs, encapsulate, store_models)

    jobs, owners = [], []
    for nr, row in enumerate(design.itertuples(index=False)):
        task, learner, resampling = row.task, row.learner, row.resampling
        if not resampling.is_instantiated:
            raise ResamplingError(
                f"Resampling '{resampling.id}' of design row {nr} is not instantiated; use benchmark_grid()"
            )
        resampling.check_task(task)
        task.backend_hash  # cached before the task is pickled
        n = resampling.iters
        for i in range(n):
            jobs.append((task, learner, resampling.train_set(i), resampling.test_set(i), i, n,
                         store_models, encapsulate))
            owners.append(nr)

    logger.info(f"Benchmark: {len(design)} resample experiments, {len(jobs)} iterations, n_jobs={n_jobs}")
    t0 = time.perf_counter()
    records = run_jobs(jobs, n_jobs)

    per_row = {nr: [] for nr in range(len(design))}
    for nr, record in zip(owners, records):
        per_row[nr].append(record)

    results = []
    for nr, row in enumerate(design.itertuples(index=False)):
        results.append(ResampleResult(row.task, row.learner.clone().reset(), row.resampling, per_row[nr]))

    logger.info(f"Benchmark finished in {time.perf_counter() - t0:.2f}s")
    return BenchmarkResult(results)
