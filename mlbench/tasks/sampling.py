# @author: José Arbelaez
"""
Input designs for the function-based task generators.

Every design draws ``n`` points in the unit cube [0, 1]^dim; the generator
scales them to the bounds of its objective function.

    sobol    scrambled Sobol sequence
    lhs      Latin hypercube
    random   independent uniform draws
"""

from __future__ import annotations
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.stats import qmc


@dataclass
class SamplingStrategy(ABC):
    seed: Optional[int] = None

    @abstractmethod
    def sample(self, n_samples: int, dim: int) -> np.ndarray:
        """Array of shape (n_samples, dim) in the unit cube."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(seed={self.seed})"


@dataclass
class SobolSampler(SamplingStrategy):
    scramble: bool = True

    def sample(self, n_samples: int, dim: int) -> np.ndarray:
        sampler = qmc.Sobol(d=dim, scramble=self.scramble, seed=self.seed)
        # n that is not a power of two only loses the balance property
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            return sampler.random(n=n_samples)


@dataclass
class LatinHypercubeSampler(SamplingStrategy):
    optimization: Optional[str] = None

    def sample(self, n_samples: int, dim: int) -> np.ndarray:
        return qmc.LatinHypercube(d=dim, seed=self.seed, optimization=self.optimization).random(n=n_samples)


@dataclass
class RandomSampler(SamplingStrategy):

    def sample(self, n_samples: int, dim: int) -> np.ndarray:
        return np.random.default_rng(self.seed).random((n_samples, dim))


SAMPLERS = {
    "sobol": SobolSampler,
    "lhs": LatinHypercubeSampler,
    "random": RandomSampler,
}


def get_sampler(name: str, seed: Optional[int] = None, **kwargs) -> SamplingStrategy:
    """
    Design by name, e.g. ``get_sampler("lhs", seed=1).sample(50, dim=2)``.
    """
    key = name.lower()
    if key not in SAMPLERS:
        raise ValueError(f"Unknown sampler '{name}'. Available: {', '.join(SAMPLERS)}")
    return SAMPLERS[key](seed=seed, **kwargs)
