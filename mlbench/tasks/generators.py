# @author: José Arbelaez
"""
Task generators: reproducible synthetic tasks of arbitrary size.

Every generator is a small dataclass holding its parameters and a seed;
``generate(n)`` returns a new Task with ``n`` rows.

    >>> task = tgen("friedman1", seed=1).generate(200)
    >>> task = tgen("branin", sampler="lhs", noise_sd=0.1, seed=3).generate(50)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd
from sklearn import datasets

from ..registry import mlr_task_generators
from .functions import get_function
from .sampling import get_sampler
from .task import Task, TaskClassif, TaskRegr, TaskSurv


@dataclass
class TaskGenerator(ABC):
    """
    Abstract base class for task generators.
    """
    seed: Optional[int] = None

    id: str = field(init=False, default="")
    task_type: str = field(init=False, default="")

    @abstractmethod
    def _generate(self, n: int, rng: np.random.Generator) -> pd.DataFrame:
        pass

    @abstractmethod
    def _make_task(self, df: pd.DataFrame) -> Task:
        pass

    def generate(self, n: int) -> Task:
        if n < 1:
            raise ValueError("n must be positive")
        rng = np.random.default_rng(self.seed)
        return self._make_task(self._generate(n, rng))

    def _sklearn_state(self, rng: np.random.Generator) -> int:
        return int(rng.integers(0, 2 ** 31 - 1))


def _label(codes: np.ndarray, labels: List[str]) -> pd.Categorical:
    return pd.Categorical.from_codes(np.asarray(codes, dtype=int), categories=labels)


# =============================================================================
# CLASSIFICATION
# =============================================================================

@dataclass
class TaskGeneratorMoons(TaskGenerator):
    """Two interleaving half circles."""
    noise: float = 0.3

    def __post_init__(self):
        self.id, self.task_type = "moons", "classif"

    def _generate(self, n, rng):
        X, y = datasets.make_moons(n_samples=n, noise=self.noise, random_state=self._sklearn_state(rng))
        df = pd.DataFrame(X, columns=["x1", "x2"])
        df["y"] = _label(y, ["A", "B"])
        return df

    def _make_task(self, df):
        return TaskClassif("moons", df, target="y")


@dataclass
class TaskGeneratorCircle(TaskGenerator):
    """A small circle inside a larger one."""
    noise: float = 0.1
    factor: float = 0.5

    def __post_init__(self):
        self.id, self.task_type = "circle", "classif"

    def _generate(self, n, rng):
        X, y = datasets.make_circles(n_samples=n, noise=self.noise, factor=self.factor,
                                     random_state=self._sklearn_state(rng))
        df = pd.DataFrame(X, columns=["x1", "x2"])
        df["y"] = _label(y, ["A", "B"])
        return df

    def _make_task(self, df):
        return TaskClassif("circle", df, target="y")


@dataclass
class TaskGenerator2DNormals(TaskGenerator):
    """Gaussian clusters in two dimensions, one per class."""
    n_classes: int = 2
    sd: float = 1.0

    def __post_init__(self):
        self.id, self.task_type = "2dnormals", "classif"

    def _generate(self, n, rng):
        X, y = datasets.make_blobs(n_samples=n, n_features=2, centers=self.n_classes,
                                   cluster_std=self.sd, random_state=self._sklearn_state(rng))
        df = pd.DataFrame(X, columns=["x1", "x2"])
        df["y"] = _label(y, [chr(ord("A") + i) for i in range(self.n_classes)])
        return df

    def _make_task(self, df):
        return TaskClassif("2dnormals", df, target="y")


@dataclass
class TaskGeneratorXor(TaskGenerator):
    """Uniform points on [-1, 1]^2 labeled by the sign of x1 * x2."""
    n_features: int = 2

    def __post_init__(self):
        self.id, self.task_type = "xor", "classif"

    def _generate(self, n, rng):
        X = rng.uniform(-1, 1, size=(n, max(2, self.n_features)))
        y = (X[:, 0] * X[:, 1] > 0).astype(int)
        df = pd.DataFrame(X, columns=[f"x{i + 1}" for i in range(X.shape[1])])
        df["y"] = _label(y, ["neg", "pos"])
        return df

    def _make_task(self, df):
        return TaskClassif("xor", df, target="y", positive="pos")


# =============================================================================
# REGRESSION
# =============================================================================

@dataclass
class TaskGeneratorFriedman1(TaskGenerator):
    """Friedman #1 regression problem (sklearn.datasets.make_friedman1)."""
    n_features: int = 10
    noise: float = 1.0

    def __post_init__(self):
        self.id, self.task_type = "friedman1", "regr"
        if self.n_features < 5:
            raise ValueError("friedman1 needs at least 5 features")

    def _generate(self, n, rng):
        X, y = datasets.make_friedman1(n_samples=n, n_features=self.n_features, noise=self.noise,
                                       random_state=self._sklearn_state(rng))
        df = pd.DataFrame(X, columns=[f"important{i + 1}" if i < 5 else f"unimportant{i - 4}"
                                      for i in range(self.n_features)])
        df["y"] = y
        return df

    def _make_task(self, df):
        return TaskRegr("friedman1", df, target="y")


@dataclass
class TaskGeneratorFunction(TaskGenerator):
    """
    Regression task from a deterministic objective function.

    Inputs are a space-filling design ("sobol", "lhs" or "random") scaled
    to the function's bounds; Gaussian noise with sd ``noise_sd`` is added
    to the evaluations.
    """
    function: str = "branin"
    sampler: str = "sobol"
    noise_sd: float = 0.0

    def __post_init__(self):
        self._fn = get_function(self.function)
        self.id, self.task_type = self.function, "regr"

    def _generate(self, n, rng):
        sampler = get_sampler(self.sampler, seed=self._sklearn_state(rng))
        X = self._fn.scale_to_bounds(sampler.sample(n, self._fn.dim))
        y = self._fn(X)
        if self.noise_sd > 0:
            y = y + rng.normal(0.0, self.noise_sd, size=n)
        df = pd.DataFrame(X, columns=[f"x{i + 1}" for i in range(self._fn.dim)])
        df["y"] = y
        return df

    def _make_task(self, df):
        return TaskRegr(self.function, df, target="y")


# =============================================================================
# SURVIVAL
# =============================================================================

@dataclass
class TaskGeneratorSimsurv(TaskGenerator):
    """
    Weibull proportional hazards data with exponential censoring.

    Event times follow S(t | x) = exp(-scale * t^shape * exp(x'beta)), the
    censoring times are exponential with rate ``censoring_rate``.
    """
    n_features: int = 3
    shape: float = 1.5
    scale: float = 0.1
    censoring_rate: float = 0.05
    beta: Optional[List[float]] = None

    def __post_init__(self):
        self.id, self.task_type = "simsurv", "surv"
        if self.beta is None:
            base = [0.8, -0.5, 0.3, -0.2, 0.1]
            self.beta = [base[i % len(base)] for i in range(self.n_features)]
        if len(self.beta) != self.n_features:
            raise ValueError("beta must have one coefficient per feature")

    def _generate(self, n, rng):
        X = rng.normal(size=(n, self.n_features))
        lp = X @ np.asarray(self.beta, dtype=float)
        u = rng.uniform(size=n)
        event_time = (-np.log(u) / (self.scale * np.exp(lp))) ** (1.0 / self.shape)
        if self.censoring_rate > 0:
            censor_time = rng.exponential(1.0 / self.censoring_rate, size=n)
        else:
            censor_time = np.full(n, np.inf)
        df = pd.DataFrame(X, columns=[f"x{i + 1}" for i in range(self.n_features)])
        df["time"] = np.minimum(event_time, censor_time)
        df["status"] = (event_time <= censor_time).astype(int)
        return df

    def _make_task(self, df):
        return TaskSurv("simsurv", df, time="time", event="status")


mlr_task_generators.add("moons", TaskGeneratorMoons)
mlr_task_generators.add("circle", TaskGeneratorCircle)
mlr_task_generators.add("2dnormals", TaskGenerator2DNormals)
mlr_task_generators.add("xor", TaskGeneratorXor)
mlr_task_generators.add("friedman1", TaskGeneratorFriedman1)
mlr_task_generators.add("simsurv", TaskGeneratorSimsurv)
for _name in ("forrester", "branin", "sixhump", "hartmann3"):
    mlr_task_generators.add(_name, lambda _fn=_name, **kw: TaskGeneratorFunction(function=_fn, **kw))
