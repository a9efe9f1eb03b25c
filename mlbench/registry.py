# @author: José Arbelaez
"""
Dictionaries of constructors keyed by id.

Each subpackage registers its objects here at import time, e.g.::

    mlr_learners.add("classif.rpart", LearnerClassifRpart)

and the sugar functions in mlbench.sugar retrieve them by key.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List

from .exceptions import RegistryError


class Dictionary:
    """
    Mapping of keys to constructors.

    Objects are created fresh on every ``get`` so callers never share state.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._items: Dict[str, Callable[..., Any]] = {}

    def add(self, key: str, constructor: Callable[..., Any]) -> None:
        self._items[key] = constructor

    def remove(self, key: str) -> None:
        if key not in self._items:
            raise RegistryError(self.kind, key, self._items.keys())
        del self._items[key]

    def get(self, key: str, **kwargs) -> Any:
        """
        Construct the object registered under ``key``.

        Args:
            key: Registered identifier
            **kwargs: Passed to the constructor

        Returns:
            A new object
        """
        if key not in self._items:
            raise RegistryError(self.kind, key, self._items.keys())
        return self._items[key](**kwargs)

    def mget(self, keys: List[str], **kwargs) -> List[Any]:
        return [self.get(k, **kwargs) for k in keys]

    def keys(self) -> List[str]:
        return sorted(self._items.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Dictionary<{self.kind}>({len(self)} items)"


mlr_tasks = Dictionary("task")
mlr_task_generators = Dictionary("task generator")
mlr_learners = Dictionary("learner")
mlr_resamplings = Dictionary("resampling")
mlr_measures = Dictionary("measure")
mlr_terminators = Dictionary("terminator")
mlr_tuners = Dictionary("tuner")
