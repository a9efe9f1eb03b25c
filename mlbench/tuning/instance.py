# @author: José Arbelaez
"""
Tuning instances: the objective of a hyperparameter search.

A TuningInstance couples a task, a learner, a resampling (instantiated
once, so every configuration sees the same splits), a measure and a
terminator. Tuners propose batches of configurations through
``eval_batch``; every evaluation is stored in the ``Archive``.
"""

from __future__ import annotations
import logging
import time
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..analysis.benchmark import benchmark
from ..analysis.results import BenchmarkResult
from ..exceptions import TerminatedError, TuningError
from ..learners.base import Learner
from ..measures.base import Measure
from ..params.param_set import ParamSet
from ..resampling.base import Resampling
from ..tasks.task import Task
from ..utils.tools import format_params
from .terminators import Terminator

logger = logging.getLogger(__name__)


# =============================================================================
# Archive
# =============================================================================

class Archive:
    """
    Record of every evaluated configuration.

    Each entry holds the point in the search space (``x``), the learner
    parameter values it maps to (``x_domain``), the aggregated score,
    the batch number and the number of captured warnings and errors.
    """

    def __init__(self, search_space: ParamSet, measure: Measure, store_benchmark_result: bool = True):
        self.search_space = search_space
        self.measure = measure
        self.store_benchmark_result = store_benchmark_result
        self.records: List[Dict[str, Any]] = []
        self.benchmark_result = BenchmarkResult()
        self.start_time = time.perf_counter()

    @property
    def minimize(self) -> bool:
        return self.measure.minimize

    @property
    def n_evals(self) -> int:
        return len(self.records)

    @property
    def n_batch(self) -> int:
        return self.records[-1]["batch_nr"] if self.records else 0

    def add_evals(self, xss: List[Dict[str, Any]], xs_domain: List[Dict[str, Any]],
                  bmr: BenchmarkResult) -> None:
        batch_nr = self.n_batch + 1
        aggregate = bmr.aggregate([self.measure])
        for x, x_domain, rr, (_, agg) in zip(xss, xs_domain, bmr.resample_results, aggregate.iterrows()):
            self.records.append({
                "x": x,
                "x_domain": x_domain,
                "score": float(agg[self.measure.id]),
                "batch_nr": batch_nr,
                "warnings": int(agg["warnings"]),
                "errors": int(agg["errors"]),
                "runtime_learners": float(sum(r.train_time + r.predict_time for r in rr.iterations)),
                "uhash": rr.uhash,
            })
        if self.store_benchmark_result:
            self.benchmark_result.combine(bmr)

    def scores(self) -> np.ndarray:
        return np.array([r["score"] for r in self.records], dtype=float)

    def best(self, batch: Optional[int] = None) -> Dict[str, Any]:
        """Best evaluated entry, optionally within one batch. Failed (NaN) scores never win."""
        records = [r for r in self.records if batch is None or r["batch_nr"] == batch]
        records = [r for r in records if not np.isnan(r["score"])]
        if not records:
            raise TuningError("No configuration with a finite score in the archive")
        key = (lambda r: r["score"]) if self.minimize else (lambda r: -r["score"])
        return min(records, key=key)

    @property
    def data(self) -> pd.DataFrame:
        """One row per evaluation: search-space columns, score, then bookkeeping."""
        rows = []
        for r in self.records:
            row = dict(r["x"])
            row[self.measure.id] = r["score"]
            row.update({k: r[k] for k in ("x_domain", "batch_nr", "warnings", "errors",
                                          "runtime_learners", "uhash")})
            rows.append(row)
        columns = self.search_space.ids() + [self.measure.id, "x_domain", "batch_nr", "warnings",
                                             "errors", "runtime_learners", "uhash"]
        return pd.DataFrame(rows, columns=columns)

    def __len__(self) -> int:
        return self.n_evals

    def __repr__(self) -> str:
        return f"<Archive> ({self.n_evals} evaluations, {self.n_batch} batches)"


# =============================================================================
# Tuning instance
# =============================================================================

class TuningInstance:
    """
    Single-criterion tuning problem.

    Args:
        task: Task to tune on
        learner: Learner; values set to ``to_tune()`` tokens define the
            search space unless ``search_space`` is given
        resampling: Inner resampling, instantiated once on ``task``
        measure: Measure to optimize
        terminator: Stopping rule checked before every batch
        search_space: Explicit search space over learner parameter ids
        store_models: Keep models of the inner resample results
        store_benchmark_result: Keep every inner ResampleResult in the archive
        n_jobs: Parallel jobs per batch
        seed: Seed for instantiating the resampling
    """

    def __init__(self, task: Task, learner: Learner, resampling: Resampling, measure: Measure,
                 terminator: Terminator, search_space: Optional[ParamSet] = None,
                 store_models: bool = False, store_benchmark_result: bool = True,
                 n_jobs: int = 1, seed: Optional[int] = None):
        learner = learner.clone()
        tokens = learner.param_set.tune_tokens()
        if search_space is None:
            if not tokens:
                raise TuningError(f"Learner '{learner.id}' has no parameters set to to_tune() "
                                  "and no search space was given")
            search_space = learner.param_set.search_space()
        elif tokens:
            raise TuningError("Pass either a search space or to_tune() tokens, not both")
        if len(search_space) == 0:
            raise TuningError("Empty search space")

        unknown = [pid for pid in search_space.ids() if pid not in learner.param_set]
        if unknown and not search_space.has_trafo:
            raise TuningError(f"Search space parameters not in learner '{learner.id}': {unknown}")

        if measure.task_type is not None and measure.task_type != task.task_type:
            raise TuningError(f"Measure '{measure.id}' does not apply to {task.task_type} tasks")

        # tokens are replaced by concrete values for every evaluation
        learner.param_set.set_values(**{pid: None for pid in tokens})

        if resampling.is_instantiated:
            resampling.check_task(task)
        else:
            resampling = resampling.clone().instantiate(task, seed=seed)

        self.task = task
        self.learner = learner
        self.resampling = resampling
        self.measure = measure
        self.terminator = terminator
        self.search_space = search_space
        self.store_models = store_models
        self.n_jobs = n_jobs
        self.archive = Archive(search_space, measure, store_benchmark_result=store_benchmark_result)
        self._result: Optional[Dict[str, Any]] = None

    @property
    def is_terminated(self) -> bool:
        return self.terminator.is_terminated(self.archive)

    def _configured_learner(self, x_domain: Dict[str, Any]) -> Learner:
        m = self.learner.clone()
        m.param_set.set_values(**x_domain)
        return m

    def eval_batch(self, xdt: pd.DataFrame) -> np.ndarray:
        """
        Evaluate a batch of configurations.

        Args:
            xdt: DataFrame with one row per configuration, columns are
                search-space parameter ids

        Returns:
            Aggregated scores in row order

        Raises:
            TerminatedError: the terminator fired before this batch
        """
        if self.is_terminated:
            raise TerminatedError(f"Terminator {self.terminator!r} is terminated")
        if len(xdt) == 0:
            return np.array([], dtype=float)

        xss = [{k: v for k, v in x.items() if not _is_missing(v)} for x in xdt.to_dict(orient="records")]
        # integer columns holding NaN come back as floats
        int_ids = set(self.search_space.ids(kind="int"))
        xss = [{k: int(v) if k in int_ids else v for k, v in x.items()} for x in xss]
        for x in xss:
            self.search_space.check(x)
        xs_domain = [self.search_space.trafo(x) for x in xss]

        design = pd.DataFrame([
            {"task": self.task, "learner": self._configured_learner(x_domain), "resampling": self.resampling}
            for x_domain in xs_domain
        ])
        bmr = benchmark(design, store_models=self.store_models, n_jobs=self.n_jobs, encapsulate="try")
        self.archive.add_evals(xss, xs_domain, bmr)

        scores = self.archive.scores()[-len(xss):]
        logger.info(
            f"[tune {self.task.id}/{self.learner.id}] batch {self.archive.n_batch}: "
            f"{len(xss)} configurations, best {self.measure.id} = {_best(scores, self.measure.minimize):.4f}"
        )
        return scores

    def assign_result(self, record: Dict[str, Any]) -> None:
        self._result = record
        logger.info(f"[tune {self.task.id}/{self.learner.id}] result: {format_params(record['x_domain'])}, "
                    f"{self.measure.id} = {record['score']:.4f}")

    @property
    def is_optimized(self) -> bool:
        return self._result is not None

    def _require_result(self) -> Dict[str, Any]:
        if self._result is None:
            raise TuningError("Tuning instance has no result; run a tuner first")
        return self._result

    @property
    def result(self) -> pd.DataFrame:
        """One-row frame: search-space values, ``learner_param_vals`` and the score."""
        record = self._require_result()
        row = dict(record["x"])
        row["learner_param_vals"] = self.result_learner_param_vals
        row[self.measure.id] = record["score"]
        return pd.DataFrame([row])

    @property
    def result_x_domain(self) -> Dict[str, Any]:
        return dict(self._require_result()["x_domain"])

    @property
    def result_y(self) -> float:
        return self._require_result()["score"]

    @property
    def result_learner_param_vals(self) -> Dict[str, Any]:
        """Fixed learner values combined with the best configuration."""
        values = self.learner.param_set.values
        values.update(self.result_x_domain)
        return values

    def __repr__(self) -> str:
        return (f"<TuningInstance> {self.task.id}/{self.learner.id} on {self.resampling.id}, "
                f"{self.measure.id}, {len(self.search_space)} params, {self.archive.n_evals} evals")


def _is_missing(v) -> bool:
    return isinstance(v, float) and np.isnan(v)


def _best(scores: np.ndarray, minimize: bool) -> float:
    if scores.size == 0 or np.all(np.isnan(scores)):
        return float("nan")
    return float(np.nanmin(scores) if minimize else np.nanmax(scores))
