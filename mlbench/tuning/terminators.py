# @author: José Arbelaez
"""
Terminators decide when a tuning run stops, based on its archive.

    evals         after n_evals (+ k * dimension) evaluations
    run_time      after ``secs`` seconds
    perf_reached  once the best score reaches ``level``
    stagnation    when the last ``iters`` evaluations did not improve by ``threshold``
    none          never (the tuner stops when its design is exhausted)
    combo         any / all of several terminators
"""

from __future__ import annotations
import time
from abc import ABC, abstractmethod
from typing import Iterable

import numpy as np

from ..registry import mlr_terminators


class Terminator(ABC):
    id: str = None

    @abstractmethod
    def is_terminated(self, archive) -> bool:
        pass

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"<{type(self).__name__}> [{values}]"


class TerminatorEvals(Terminator):
    id = "evals"

    def __init__(self, n_evals: int = 100, k: int = 0):
        if n_evals < 0 or k < 0:
            raise ValueError("n_evals and k must be non-negative")
        self.n_evals = n_evals
        self.k = k

    def budget(self, archive) -> int:
        return self.n_evals + self.k * len(archive.search_space)

    def is_terminated(self, archive) -> bool:
        return archive.n_evals >= self.budget(archive)


class TerminatorRunTime(Terminator):
    id = "run_time"

    def __init__(self, secs: float = 30.0):
        self.secs = secs

    def is_terminated(self, archive) -> bool:
        return time.perf_counter() - archive.start_time >= self.secs


class TerminatorPerfReached(Terminator):
    id = "perf_reached"

    def __init__(self, level: float = 0.1):
        self.level = level

    def is_terminated(self, archive) -> bool:
        scores = archive.scores()
        if scores.size == 0 or np.all(np.isnan(scores)):
            return False
        if archive.minimize:
            return bool(np.nanmin(scores) <= self.level)
        return bool(np.nanmax(scores) >= self.level)


class TerminatorStagnation(Terminator):
    id = "stagnation"

    def __init__(self, iters: int = 10, threshold: float = 0.0):
        self.iters = iters
        self.threshold = threshold

    def is_terminated(self, archive) -> bool:
        scores = archive.scores()
        if scores.size <= self.iters:
            return False
        # orient so that larger is better
        scores = -scores if archive.minimize else scores
        before, recent = scores[:-self.iters], scores[-self.iters:]
        if np.all(np.isnan(before)):
            return False
        if np.all(np.isnan(recent)):
            return True
        return bool(np.nanmax(recent) - np.nanmax(before) <= self.threshold)


class TerminatorNone(Terminator):
    id = "none"

    def is_terminated(self, archive) -> bool:
        return False


class TerminatorCombo(Terminator):
    id = "combo"

    def __init__(self, terminators: Iterable[Terminator] = (), any: bool = True):
        self.terminators = list(terminators) or [TerminatorNone()]
        self.any = any

    def is_terminated(self, archive) -> bool:
        states = [t.is_terminated(archive) for t in self.terminators]
        return any(states) if self.any else all(states)


mlr_terminators.add("evals", TerminatorEvals)
mlr_terminators.add("run_time", TerminatorRunTime)
mlr_terminators.add("perf_reached", TerminatorPerfReached)
mlr_terminators.add("stagnation", TerminatorStagnation)
mlr_terminators.add("none", TerminatorNone)
mlr_terminators.add("combo", TerminatorCombo)
