# @author: José Arbelaez
"""
Base class for resampling strategies.

A Resampling is a description (strategy + parameters) until it is
instantiated on a Task. Instantiation draws the train/test row ids of every
iteration once; they are then fixed so that every learner evaluated with the
same instance sees the same splits.

Splits are drawn with the sklearn.model_selection splitters. The task's
roles pick the splitter variant:

    - groups:  group-aware splitters (GroupKFold, GroupShuffleSplit,
               LeaveOneGroupOut), every group stays on one side
    - strata:  stratified splitters (StratifiedKFold, StratifiedShuffleSplit);
               several stratum columns are combined into one label
"""

from __future__ import annotations
import copy
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..exceptions import NotInstantiatedError, ResamplingError
from ..params import ParamSet
from ..tasks.task import Task
from ..utils.tools import compute_hash

logger = logging.getLogger(__name__)

Splits = Tuple[List[np.ndarray], List[np.ndarray]]


def sorted_splits(splits: Iterable[Tuple[np.ndarray, np.ndarray]]) -> Splits:
    """Collect (train, test) position arrays from a splitter, each in task order."""
    train, test = [], []
    for tr, te in splits:
        train.append(np.sort(tr))
        test.append(np.sort(te))
    return train, test


def _strata_labels(strata: pd.DataFrame) -> np.ndarray:
    if strata.shape[1] > 1:
        return strata.astype(str).agg("|".join, axis=1).to_numpy()
    return strata.iloc[:, 0].to_numpy()


class Resampling(ABC):
    """
    Abstract base class for resampling strategies.

    Subclasses implement ``_split(n, random_state, stratify, groups)``
    returning the train and test sets as positions into the task's row ids
    (lists of arrays, one entry per iteration).

    Example:
        >>> cv = rsmp("cv", folds=5)
        >>> cv.instantiate(task, seed=1)
        >>> cv.train_set(0), cv.test_set(0)
    """
    duplicated_ids: bool = False
    supports_strata: bool = True

    def __init__(self, id: str, param_set: Optional[ParamSet] = None, label: Optional[str] = None):
        self.id = id
        self.param_set = param_set if param_set is not None else ParamSet()
        self.label = label or id
        self.instance: Optional[Dict[str, List[np.ndarray]]] = None
        self.task_hash: Optional[str] = None
        self.task_row_hash: Optional[str] = None
        self.task_nrow: Optional[int] = None
        self.seed: Optional[int] = None

    @property
    def values(self) -> dict:
        return self.param_set.values

    @abstractmethod
    def _split(self, n: int, random_state: np.random.RandomState,
               stratify: Optional[np.ndarray] = None, groups: Optional[np.ndarray] = None) -> Splits:
        pass

    @property
    def iters(self) -> Optional[int]:
        if self.instance is not None:
            return len(self.instance["train"])
        return self._iters_from_params()

    def _iters_from_params(self) -> Optional[int]:
        return None

    @property
    def is_instantiated(self) -> bool:
        return self.instance is not None

    # ------------------------------------------------------------------
    # Instantiation
    # ------------------------------------------------------------------

    def instantiate(self, task: Task, seed: Optional[int] = None) -> "Resampling":
        """
        Draw the train/test sets for ``task``. Calling it again replaces the
        previous instance; the same seed on the same task gives the same sets.
        """
        # one RandomState shared by every splitter of this instantiation
        random_state = np.random.RandomState(seed)
        row_ids = task.row_ids
        groups = task.groups
        strata = task.strata

        if groups is not None and strata is not None:
            raise ResamplingError("Cannot combine grouping and stratification")

        stratify = None
        if strata is not None and self.supports_strata:
            stratify = _strata_labels(strata)

        try:
            train, test = self._split(len(row_ids), random_state, stratify=stratify,
                                      groups=None if groups is None else groups.to_numpy())
        except ValueError as e:
            raise ResamplingError(f"[{self.id}] cannot split task '{task.id}': {e}") from e

        train = [row_ids[s] for s in train]
        test = [row_ids[s] for s in test]
        self._validate_sets(train, test)
        self._set_instance(task, train, test)
        self.seed = seed
        logger.debug(f"[{self.id}] instantiated on '{task.id}' with {self.iters} iterations")
        return self

    def _validate_sets(self, train: List[np.ndarray], test: List[np.ndarray]):
        pass

    def _set_instance(self, task: Task, train: List[np.ndarray], test: List[np.ndarray]):
        if len(train) != len(test):
            raise ResamplingError(f"[{self.id}] needs as many train sets as test sets")
        self.instance = {
            "train": [np.asarray(s) for s in train],
            "test": [np.asarray(s) for s in test],
        }
        self.task_hash = task.hash
        self.task_row_hash = task.row_hash
        self.task_nrow = task.nrow

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def _check_iteration(self, i: int):
        if self.instance is None:
            raise NotInstantiatedError(self.id)
        if not 0 <= i < self.iters:
            raise ResamplingError(f"[{self.id}] iteration {i} out of range [0, {self.iters})")

    def train_set(self, i: int) -> np.ndarray:
        self._check_iteration(i)
        return self.instance["train"][i]

    def test_set(self, i: int) -> np.ndarray:
        self._check_iteration(i)
        return self.instance["test"][i]

    def check_task(self, task: Task):
        """Raise ResamplingError unless this instance was drawn for ``task``'s rows."""
        if self.instance is None:
            raise NotInstantiatedError(self.id)
        if task.row_hash != self.task_row_hash:
            raise ResamplingError(
                f"Resampling '{self.id}' was instantiated on a different task than '{task.id}'"
            )
        if task.hash != self.task_hash:
            logger.debug(f"[{self.id}] reused on '{task.id}', whose columns or roles differ from the "
                         "instantiation task")

    @property
    def hash(self) -> str:
        sets = None
        if self.instance is not None:
            sets = [[s.tolist() for s in self.instance["train"]],
                    [s.tolist() for s in self.instance["test"]]]
        return compute_hash(type(self).__name__, self.id, self.param_set.values, sets)

    def clone(self) -> "Resampling":
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self.param_set.values.items())
        status = f"instantiated, iters={self.iters}" if self.is_instantiated else "not instantiated"
        return f"<{type(self).__name__}:{self.id}> ({status}) [{values}]"
