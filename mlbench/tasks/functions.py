# @author: José Arbelaez
"""
Deterministic objective functions used by the function-based task generators.

Each function defines its bounds and evaluation method; the generators in
mlbench.tasks.generators sample inputs inside the bounds and turn the
evaluations into regression tasks.

References:
    - Forrester et al. (2008) "Engineering Design via Surrogate Modelling"
    - Surjanovic & Bingham: https://www.sfu.ca/~ssurjano/optimization.html
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Type

import numpy as np


@dataclass
class ObjectiveFunction(ABC):
    """
    Abstract base class for objective functions.

    Subclasses set name, dim and bounds in __post_init__ and implement
    __call__ on arrays of shape (n_samples, dim).
    """
    name: str = field(init=False)
    dim: int = field(init=False)
    bounds: List[Tuple[float, float]] = field(init=False)

    @abstractmethod
    def __call__(self, X: np.ndarray) -> np.ndarray:
        pass

    def scale_to_bounds(self, X_unit: np.ndarray) -> np.ndarray:
        """Scale points from [0,1]^d to the function's bounds."""
        bounds = np.array(self.bounds)
        lb, ub = bounds[:, 0], bounds[:, 1]
        return X_unit * (ub - lb) + lb

    def __repr__(self) -> str:
        return f"{self.name}(dim={self.dim})"


@dataclass
class Forrester1D(ObjectiveFunction):
    """
    f(x) = (6x - 2)² sin(12x - 4) on [0, 1].
    """

    def __post_init__(self):
        self.name = "Forrester1D"
        self.dim = 1
        self.bounds = [(0.0, 1.0)]

    def __call__(self, X: np.ndarray) -> np.ndarray:
        x = np.atleast_2d(X)[:, 0]
        return ((6 * x - 2) ** 2) * np.sin(12 * x - 4)


@dataclass
class Branin2D(ObjectiveFunction):
    """
    Branin-Hoo function on x₁ ∈ [-5, 10], x₂ ∈ [0, 15].
    """

    def __post_init__(self):
        self.name = "Branin2D"
        self.dim = 2
        self.bounds = [(-5.0, 10.0), (0.0, 15.0)]

    def __call__(self, X: np.ndarray) -> np.ndarray:
        X = np.atleast_2d(X)
        x1, x2 = X[:, 0], X[:, 1]

        b = 5.1 / (4 * np.pi ** 2)
        c = 5.0 / np.pi
        t = 1.0 / (8 * np.pi)

        return (x2 - b * x1 ** 2 + c * x1 - 6.0) ** 2 + 10.0 * (1 - t) * np.cos(x1) + 10.0


@dataclass
class SixHumpCamel2D(ObjectiveFunction):
    """
    Six-Hump Camel function on x₁ ∈ [-3, 3], x₂ ∈ [-2, 2].
    """

    def __post_init__(self):
        self.name = "SixHumpCamel2D"
        self.dim = 2
        self.bounds = [(-3.0, 3.0), (-2.0, 2.0)]

    def __call__(self, X: np.ndarray) -> np.ndarray:
        X = np.atleast_2d(X)
        x1, x2 = X[:, 0], X[:, 1]
        term1 = (4 - 2.1 * x1 ** 2 + (x1 ** 4) / 3) * x1 ** 2
        term3 = (-4 + 4 * x2 ** 2) * x2 ** 2
        return term1 + x1 * x2 + term3


@dataclass
class Hartmann3D(ObjectiveFunction):
    """
    Hartmann 3D function on [0, 1]^3, four local minima.
    """

    def __post_init__(self):
        self.name = "Hartmann3D"
        self.dim = 3
        self.bounds = [(0.0, 1.0)] * 3

        self._alpha = np.array([1.0, 1.2, 3.0, 3.2])
        self._A = np.array([
            [3.0, 10, 30],
            [0.1, 10, 35],
            [3.0, 10, 30],
            [0.1, 10, 35]
        ])
        self._P = np.array([
            [0.3689, 0.1170, 0.2673],
            [0.4699, 0.4387, 0.7470],
            [0.1091, 0.8732, 0.5547],
            [0.0381, 0.5743, 0.8828]
        ])

    def __call__(self, X: np.ndarray) -> np.ndarray:
        X = np.atleast_2d(X)
        # (n, 4) matrix of inner sums
        inner = np.sum(self._A[None, :, :] * (X[:, None, :] - self._P[None, :, :]) ** 2, axis=2)
        return -np.sum(self._alpha[None, :] * np.exp(-inner), axis=1)


FUNCTION_REGISTRY: Dict[str, Type[ObjectiveFunction]] = {
    "forrester": Forrester1D,
    "branin": Branin2D,
    "sixhump": SixHumpCamel2D,
    "hartmann3": Hartmann3D,
}


def get_function(name: str) -> ObjectiveFunction:
    name_lower = name.lower()
    if name_lower not in FUNCTION_REGISTRY:
        available = ", ".join(FUNCTION_REGISTRY.keys())
        raise ValueError(f"Unknown function '{name}'. Available: {available}")
    return FUNCTION_REGISTRY[name_lower]()
