# @author: José Arbelaez
"""
Inner tuning results of nested resampling.

Both functions accept a ResampleResult or a BenchmarkResult whose learners
are AutoTuners. Models may have been discarded: the tuning instance lives
in the learner state, not in the model.
"""

from __future__ import annotations
from typing import Iterator, Tuple, Union

import pandas as pd

from ..analysis.results import BenchmarkResult, ResampleResult
from .auto_tuner import AutoTuner


def _iter_auto_tuners(result: Union[ResampleResult, BenchmarkResult]) -> Iterator[Tuple[int, ResampleResult, int, AutoTuner]]:
    if isinstance(result, ResampleResult):
        result = result.as_benchmark_result()
    for nr, rr in enumerate(result.resample_results):
        for record in rr.iterations:
            if isinstance(record.learner, AutoTuner) and record.learner.tuning_result is not None:
                yield nr, rr, record.iteration, record.learner


def extract_inner_tuning_results(result: Union[ResampleResult, BenchmarkResult]) -> pd.DataFrame:
    """
    Best configuration of every outer iteration.

    Returns:
        DataFrame with nr, iteration, task_id, learner_id, resampling_id,
        the search-space values, learner_param_vals and the inner score
    """
    frames = []
    for nr, rr, iteration, at in _iter_auto_tuners(result):
        row = at.tuning_result.copy()
        row.insert(0, "resampling_id", rr.resampling.id)
        row.insert(0, "learner_id", rr.learner.id)
        row.insert(0, "task_id", rr.task.id)
        row.insert(0, "iteration", iteration)
        row.insert(0, "nr", nr)
        frames.append(row)
    if not frames:
        return pd.DataFrame(columns=["nr", "iteration", "task_id", "learner_id", "resampling_id"])
    return pd.concat(frames, ignore_index=True)


def extract_inner_tuning_archives(result: Union[ResampleResult, BenchmarkResult]) -> pd.DataFrame:
    """
    Full inner archives, one row per evaluated configuration per outer iteration.

    Iterations whose AutoTuner did not keep its tuning instance are skipped.
    """
    frames = []
    for nr, rr, iteration, at in _iter_auto_tuners(result):
        if at.archive is None:
            continue
        data = at.archive.data
        data.insert(0, "resampling_id", rr.resampling.id)
        data.insert(0, "learner_id", rr.learner.id)
        data.insert(0, "task_id", rr.task.id)
        data.insert(0, "iteration", iteration)
        data.insert(0, "nr", nr)
        frames.append(data)
    if not frames:
        return pd.DataFrame(columns=["nr", "iteration", "task_id", "learner_id", "resampling_id"])
    return pd.concat(frames, ignore_index=True)
