# @author: José Arbelaez
"""
Result containers.

    IterationRecord   one resampling iteration: trained learner, prediction,
                      timings, warnings and errors
    ResampleResult    the iterations of one (task, learner, resampling) triple
    BenchmarkResult   an ordered collection of ResampleResults, closed under
                      merge (multiset union)
"""

from __future__ import annotations
import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..learners.base import Learner
from ..predictions import DEFAULT_MEASURES, Prediction
from ..resampling.base import Resampling
from ..tasks.task import Task
from ..utils.tools import _to_jsonable


def _as_measures(measures, task_type: str) -> list:
    from ..registry import mlr_measures

    if measures is None:
        return [mlr_measures.get(DEFAULT_MEASURES[task_type])]
    if not isinstance(measures, (list, tuple)):
        return [measures]
    return list(measures)


@dataclass
class IterationRecord:
    """Outcome of a single resampling iteration."""
    iteration: int
    learner: Learner
    prediction: Optional[Prediction]
    train_set: np.ndarray
    test_set: np.ndarray
    train_time: Optional[float] = None
    predict_time: Optional[float] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "n_train": len(self.train_set),
            "n_test": len(self.test_set),
            "train_time_s": self.train_time,
            "predict_time_s": self.predict_time,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


# =============================================================================
# RESAMPLE RESULT
# =============================================================================

class ResampleResult:
    """
    Iterations of one learner resampled on one task.

    Args:
        task: Task the learner was resampled on
        learner: Untrained learner (the template every iteration cloned)
        resampling: Instantiated resampling
        iterations: Records in iteration order
        uhash: Unique id of this result (generated when omitted)
    """

    def __init__(self, task: Task, learner: Learner, resampling: Resampling,
                 iterations: Sequence[IterationRecord], uhash: Optional[str] = None):
        self.task = task
        self.learner = learner
        self.resampling = resampling
        self.iterations = list(iterations)
        self.uhash = uhash or str(uuid.uuid4())

    @property
    def task_type(self) -> str:
        return self.task.task_type

    @property
    def iters(self) -> int:
        return len(self.iterations)

    def __len__(self) -> int:
        return self.iters

    # ------------------------------------------------------------------
    # Predictions and scores
    # ------------------------------------------------------------------

    def predictions(self) -> List[Optional[Prediction]]:
        """Per-iteration predictions (None where training failed without fallback)."""
        return [rec.prediction for rec in self.iterations]

    def prediction(self) -> Optional[Prediction]:
        """All iteration predictions combined into one."""
        preds = [p for p in self.predictions() if p is not None]
        if not preds:
            return None
        return Prediction.combine(preds)

    def score(self, measures=None) -> pd.DataFrame:
        """
        Score every iteration.

        Returns:
            DataFrame with one row per iteration and one column per measure
        """
        measures = _as_measures(measures, self.task_type)
        rows = []
        for rec in self.iterations:
            row = {
                "task_id": self.task.id,
                "learner_id": self.learner.id,
                "resampling_id": self.resampling.id,
                "iteration": rec.iteration,
            }
            for m in measures:
                row[m.id] = m.score(rec.prediction, task=self.task, learner=rec.learner,
                                    train_set=rec.train_set)
            rows.append(row)
        columns = ["task_id", "learner_id", "resampling_id", "iteration"] + [m.id for m in measures]
        return pd.DataFrame(rows, columns=columns)

    def aggregate(self, measures=None) -> Dict[str, float]:
        """One value per measure, combined with each measure's own rule."""
        return {m.id: m.aggregate(self) for m in _as_measures(measures, self.task_type)}

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _messages(self, kind: str) -> pd.DataFrame:
        rows = [{"iteration": rec.iteration, "msg": msg}
                for rec in self.iterations for msg in getattr(rec, kind)]
        return pd.DataFrame(rows, columns=["iteration", "msg"])

    @property
    def warnings(self) -> pd.DataFrame:
        return self._messages("warnings")

    @property
    def errors(self) -> pd.DataFrame:
        return self._messages("errors")

    @property
    def learners(self) -> List[Learner]:
        return [rec.learner for rec in self.iterations]

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def filter(self, iters: Iterable[int]) -> "ResampleResult":
        """Keep only the given iterations."""
        keep = set(iters)
        records = [rec for rec in self.iterations if rec.iteration in keep]
        return ResampleResult(self.task, self.learner, self.resampling, records, uhash=self.uhash)

    def as_benchmark_result(self) -> "BenchmarkResult":
        return BenchmarkResult([self])

    def discard(self, models: bool = True) -> "ResampleResult":
        """Drop fitted models from the stored learners."""
        if models:
            for rec in self.iterations:
                rec.learner.discard_model()
        return self

    def to_dict(self, measures=None) -> Dict[str, Any]:
        measures = _as_measures(measures, self.task_type)
        scores = self.score(measures)
        iterations = []
        for rec, (_, row) in zip(self.iterations, scores.iterrows()):
            item = rec.to_dict()
            item["scores"] = {m.id: row[m.id] for m in measures}
            iterations.append(item)
        return _to_jsonable({
            "uhash": self.uhash,
            "task_id": self.task.id,
            "task_type": self.task_type,
            "learner_id": self.learner.id,
            "learner_params": self.learner.param_set.values,
            "resampling_id": self.resampling.id,
            "resampling_params": self.resampling.param_set.values,
            "iters": self.iters,
            "aggregate": self.aggregate(measures),
            "iterations": iterations,
        })

    def __repr__(self) -> str:
        n_err = sum(len(rec.errors) for rec in self.iterations)
        n_warn = sum(len(rec.warnings) for rec in self.iterations)
        return (f"<ResampleResult> {self.task.id} / {self.learner.id} / {self.resampling.id} "
                f"with {self.iters} iterations ({n_warn} warnings, {n_err} errors)")


# =============================================================================
# BENCHMARK RESULT
# =============================================================================

class BenchmarkResult:
    """
    Ordered collection of ResampleResults.

    Merging (``combine`` or ``+``) is a multiset union: the result holds all
    ResampleResults of both operands, duplicates included, each keeping its
    own task, learner and resampling.

    Example:
        >>> bmr = benchmark(benchmark_grid(tasks, learners, rsmp("cv", folds=3)))
        >>> bmr.aggregate(msrs(["classif.ce", "classif.acc"]))
        >>> bmr.rank_learners(msr("classif.ce"))
    """

    def __init__(self, resample_results: Optional[Iterable[ResampleResult]] = None):
        self._results: List[ResampleResult] = list(resample_results or [])

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self):
        return iter(self._results)

    @property
    def n_resample_results(self) -> int:
        return len(self._results)

    @property
    def resample_results(self) -> List[ResampleResult]:
        return list(self._results)

    def resample_result(self, i: int) -> ResampleResult:
        return self._results[i]

    @property
    def uhashes(self) -> List[str]:
        return [rr.uhash for rr in self._results]

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def combine(self, other: Union["BenchmarkResult", ResampleResult]) -> "BenchmarkResult":
        """Append the ResampleResults of ``other`` (in place) and return self."""
        if isinstance(other, ResampleResult):
            other = other.as_benchmark_result()
        self._results.extend(other.resample_results)
        return self

    def __add__(self, other: Union["BenchmarkResult", ResampleResult]) -> "BenchmarkResult":
        return BenchmarkResult(self._results).combine(other)

    # ------------------------------------------------------------------
    # Provenance
    # ------------------------------------------------------------------

    @staticmethod
    def _unique(objects) -> list:
        seen, out = set(), []
        for obj in objects:
            if id(obj) not in seen:
                seen.add(id(obj))
                out.append(obj)
        return out

    @property
    def tasks(self) -> pd.DataFrame:
        tasks = self._unique(rr.task for rr in self._results)
        return pd.DataFrame({"task_id": [t.id for t in tasks], "task": tasks})

    @property
    def learners(self) -> pd.DataFrame:
        learners = self._unique(rr.learner for rr in self._results)
        return pd.DataFrame({"learner_id": [lrn.id for lrn in learners], "learner": learners})

    @property
    def resamplings(self) -> pd.DataFrame:
        resamplings = self._unique(rr.resampling for rr in self._results)
        return pd.DataFrame({"resampling_id": [r.id for r in resamplings], "resampling": resamplings})

    @property
    def task_type(self) -> Optional[str]:
        return self._results[0].task_type if self._results else None

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def score(self, measures=None) -> pd.DataFrame:
        """Per-iteration scores of all ResampleResults, with ``nr`` and ``uhash`` columns."""
        frames = []
        for nr, rr in enumerate(self._results):
            df = rr.score(measures)
            df.insert(0, "uhash", rr.uhash)
            df.insert(0, "nr", nr)
            frames.append(df)
        if not frames:
            return pd.DataFrame(columns=["nr", "uhash", "task_id", "learner_id", "resampling_id", "iteration"])
        return pd.concat(frames, ignore_index=True)

    def aggregate(self, measures=None) -> pd.DataFrame:
        """One row per ResampleResult with its aggregated measures."""
        rows = []
        for nr, rr in enumerate(self._results):
            row = {
                "nr": nr,
                "uhash": rr.uhash,
                "task_id": rr.task.id,
                "learner_id": rr.learner.id,
                "resampling_id": rr.resampling.id,
                "iters": rr.iters,
                "warnings": len(rr.warnings),
                "errors": len(rr.errors),
            }
            row.update(rr.aggregate(measures))
            rows.append(row)
        return pd.DataFrame(rows)

    def rank_learners(self, measure=None) -> pd.DataFrame:
        """
        Rank learners by a measure across tasks.

        Ranks are computed per (task, resampling) and averaged per learner.

        Returns:
            DataFrame indexed by learner_id with avg_rank, {measure}_mean, {measure}_std
        """
        measures = _as_measures(measure, self.task_type)
        m = measures[0]
        df = self.aggregate([m])

        # Compute rank per task/resampling
        df["rank"] = df.groupby(["task_id", "resampling_id"])[m.id].rank(ascending=m.minimize)

        # Average rank per learner
        ranking = df.groupby("learner_id").agg({
            "rank": "mean",
            m.id: ["mean", "std"],
        }).round(4)

        ranking.columns = ["avg_rank", f"{m.id}_mean", f"{m.id}_std"]
        return ranking.sort_values("avg_rank")

    # ------------------------------------------------------------------
    # Diagnostics and conversion
    # ------------------------------------------------------------------

    def _messages(self, kind: str) -> pd.DataFrame:
        frames = []
        for nr, rr in enumerate(self._results):
            df = getattr(rr, kind)
            df.insert(0, "learner_id", rr.learner.id)
            df.insert(0, "task_id", rr.task.id)
            df.insert(0, "nr", nr)
            frames.append(df)
        if not frames:
            return pd.DataFrame(columns=["nr", "task_id", "learner_id", "iteration", "msg"])
        return pd.concat(frames, ignore_index=True)

    @property
    def warnings(self) -> pd.DataFrame:
        return self._messages("warnings")

    @property
    def errors(self) -> pd.DataFrame:
        return self._messages("errors")

    def filter(self, task_ids=None, learner_ids=None, resampling_ids=None) -> "BenchmarkResult":
        """Keep the ResampleResults matching all given id lists."""
        def keep(rr: ResampleResult) -> bool:
            return ((task_ids is None or rr.task.id in task_ids)
                    and (learner_ids is None or rr.learner.id in learner_ids)
                    and (resampling_ids is None or rr.resampling.id in resampling_ids))
        return BenchmarkResult([rr for rr in self._results if keep(rr)])

    def as_resample_result(self, i: Optional[int] = None) -> ResampleResult:
        """
        Return the i-th ResampleResult. Without an index the benchmark must
        hold exactly one.
        """
        if i is None:
            i = 0
            if len(self._results) != 1:
                raise ValueError(
                    f"BenchmarkResult holds {len(self._results)} resample results; pass an index"
                )
        return self._results[i]

    def to_dict(self, measures=None) -> Dict[str, Any]:
        return {
            "n_resample_results": len(self._results),
            "resample_results": [rr.to_dict(measures) for rr in self._results],
        }

    def to_json(self, path: Union[str, Path], measures=None):
        """Save results to JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(_to_jsonable(self.to_dict(measures)), f, indent=2)

    def __repr__(self) -> str:
        n_tasks = len(self._unique(rr.task for rr in self._results))
        n_learners = len(self._unique(rr.learner for rr in self._results))
        return (f"<BenchmarkResult> {len(self._results)} resample results "
                f"({n_tasks} tasks, {n_learners} learners)")
