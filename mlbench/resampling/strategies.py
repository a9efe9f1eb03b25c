# @author: José Arbelaez
"""
Resampling strategies.

    holdout       one split, ``ratio`` of the rows for training
    cv            k-fold cross-validation
    repeated_cv   ``repeats`` independent k-fold cross-validations
    subsampling   ``repeats`` holdout splits
    bootstrap     ``repeats`` draws with replacement, out-of-bag rows for testing
    loo           leave-one-out (leave-one-group-out on grouped tasks)
    insample      train and test on all rows
    custom        user supplied train/test sets
    custom_cv     folds defined by a column or a vector of fold labels
"""

from __future__ import annotations
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.model_selection import (
    GroupKFold,
    GroupShuffleSplit,
    KFold,
    LeaveOneGroupOut,
    LeaveOneOut,
    ShuffleSplit,
    StratifiedKFold,
    StratifiedShuffleSplit,
)
from sklearn.utils import resample

from ..exceptions import ResamplingError
from ..params import ParamDbl, ParamInt, ParamSet
from ..registry import mlr_resamplings
from ..tasks.task import Task
from .base import Resampling, Splits, sorted_splits


def _n_train(n: int, ratio: float) -> int:
    return int(round(ratio * n))


def _shuffle_splits(n: int, n_splits: int, ratio: float, random_state, stratify, groups) -> Splits:
    """``n_splits`` random train/test partitions with ``ratio`` of the rows (or groups) for training."""
    if groups is not None:
        splitter = GroupShuffleSplit(n_splits=n_splits, train_size=ratio, random_state=random_state)
    else:
        k = _n_train(n, ratio)
        shuffle_split = StratifiedShuffleSplit if stratify is not None else ShuffleSplit
        splitter = shuffle_split(n_splits=n_splits, train_size=k, test_size=n - k, random_state=random_state)
    return sorted_splits(splitter.split(np.zeros(n), stratify, groups))


class ResamplingHoldout(Resampling):

    def __init__(self, ratio: float = 2 / 3):
        param_set = ParamSet([ParamDbl("ratio", lower=0.0, upper=1.0, default=2 / 3)])
        super().__init__("holdout", param_set, label="Holdout")
        self.param_set.set_values(ratio=ratio)

    def _iters_from_params(self) -> int:
        return 1

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        return _shuffle_splits(n, 1, self.values["ratio"], random_state, stratify, groups)


class ResamplingCV(Resampling):
    """
    k-fold cross-validation on shuffled rows. Fold sizes differ by at most
    one; stratified tasks use StratifiedKFold, grouped tasks GroupKFold.
    """

    def __init__(self, folds: int = 10):
        param_set = ParamSet([ParamInt("folds", lower=2, default=10)])
        super().__init__("cv", param_set, label="Cross-Validation")
        self.param_set.set_values(folds=folds)

    def _iters_from_params(self) -> int:
        return self.values["folds"]

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        folds = self.values["folds"]
        if groups is not None:
            splitter = GroupKFold(n_splits=folds, shuffle=True, random_state=random_state)
        elif stratify is not None:
            splitter = StratifiedKFold(n_splits=folds, shuffle=True, random_state=random_state)
        else:
            splitter = KFold(n_splits=folds, shuffle=True, random_state=random_state)
        return sorted_splits(splitter.split(np.zeros(n), stratify, groups))

    def _validate_sets(self, train, test):
        if any(len(s) == 0 for s in test):
            raise ResamplingError(
                f"[{self.id}] cannot build {self.values['folds']} folds: fewer units than folds"
            )


class ResamplingRepeatedCV(ResamplingCV):
    """``repeats`` x ``folds`` iterations; iteration i is fold i % folds of repetition i // folds."""

    def __init__(self, folds: int = 10, repeats: int = 10):
        Resampling.__init__(self, "repeated_cv", ParamSet([
            ParamInt("folds", lower=2, default=10),
            ParamInt("repeats", lower=1, default=10),
        ]), label="Repeated Cross-Validation")
        self.param_set.set_values(folds=folds, repeats=repeats)

    def _iters_from_params(self) -> int:
        return self.values["folds"] * self.values["repeats"]

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        train, test = [], []
        for _ in range(self.values["repeats"]):
            tr, te = super()._split(n, random_state, stratify, groups)
            train.extend(tr)
            test.extend(te)
        return train, test

    def folds(self, iters: Sequence[int]) -> np.ndarray:
        return np.asarray(iters) % self.values["folds"]

    def repeats(self, iters: Sequence[int]) -> np.ndarray:
        return np.asarray(iters) // self.values["folds"]


class ResamplingSubsampling(Resampling):

    def __init__(self, repeats: int = 30, ratio: float = 2 / 3):
        param_set = ParamSet([
            ParamInt("repeats", lower=1, default=30),
            ParamDbl("ratio", lower=0.0, upper=1.0, default=2 / 3),
        ])
        super().__init__("subsampling", param_set, label="Subsampling")
        self.param_set.set_values(repeats=repeats, ratio=ratio)

    def _iters_from_params(self) -> int:
        return self.values["repeats"]

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        return _shuffle_splits(n, self.values["repeats"], self.values["ratio"], random_state, stratify, groups)


class ResamplingBootstrap(Resampling):
    """
    Training sets are drawn with replacement (whole groups on grouped tasks);
    the out-of-bag rows form the test set.
    """
    duplicated_ids = True

    def __init__(self, repeats: int = 30, ratio: float = 1.0):
        param_set = ParamSet([
            ParamInt("repeats", lower=1, default=30),
            ParamDbl("ratio", lower=0.0, default=1.0),
        ])
        super().__init__("bootstrap", param_set, label="Bootstrap")
        self.param_set.set_values(repeats=repeats, ratio=ratio)

    def _iters_from_params(self) -> int:
        return self.values["repeats"]

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        ratio = self.values["ratio"]
        positions = np.arange(n)
        train, test = [], []
        for _ in range(self.values["repeats"]):
            if groups is None:
                idx = resample(positions, replace=True, n_samples=_n_train(n, ratio),
                               random_state=random_state, stratify=stratify)
            else:
                units = pd.unique(groups)
                drawn = resample(units, replace=True, n_samples=_n_train(len(units), ratio),
                                 random_state=random_state)
                idx = np.concatenate([positions[groups == u] for u in drawn])
            in_bag = np.zeros(n, dtype=bool)
            in_bag[idx] = True
            train.append(idx)
            test.append(positions[~in_bag])
        return train, test


class ResamplingLOO(Resampling):
    """Leave-one-out; on grouped tasks every group is left out once."""
    supports_strata = False

    def __init__(self):
        super().__init__("loo", ParamSet(), label="Leave-One-Out")

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        splitter = LeaveOneOut() if groups is None else LeaveOneGroupOut()
        return sorted_splits(splitter.split(np.zeros(n), groups=groups))


class ResamplingInsample(Resampling):

    def __init__(self):
        super().__init__("insample", ParamSet(), label="Insample Resampling")

    def _iters_from_params(self) -> int:
        return 1

    def _split(self, n, random_state, stratify=None, groups=None) -> Splits:
        return [np.arange(n)], [np.arange(n)]


class ResamplingCustom(Resampling):
    """
    Train/test sets given explicitly.

    Example:
        >>> custom = rsmp("custom")
        >>> custom.instantiate(task, train_sets=[[0, 1, 2]], test_sets=[[3, 4]])
    """

    def __init__(self):
        super().__init__("custom", ParamSet(), label="Custom Splits")

    def _split(self, n, random_state, stratify=None, groups=None):
        raise ResamplingError("Custom resamplings are instantiated with explicit train and test sets")

    def instantiate(self, task: Task, train_sets=None, test_sets=None, seed: Optional[int] = None) -> "ResamplingCustom":
        if train_sets is None or test_sets is None:
            raise ResamplingError("Custom resampling needs both train_sets and test_sets")
        train = [np.asarray(task._check_rows(s)) for s in train_sets]
        test = [np.asarray(task._check_rows(s)) for s in test_sets]
        self._set_instance(task, train, test)
        self.seed = seed
        return self


class ResamplingCustomCV(Resampling):
    """
    Cross-validation with predefined folds: every distinct value of ``col``
    (a backend column) or of ``f`` (one label per used row) is one test set.
    """

    def __init__(self):
        super().__init__("custom_cv", ParamSet(), label="Custom Split Cross-Validation")

    def _split(self, n, random_state, stratify=None, groups=None):
        raise ResamplingError("custom_cv is instantiated with a fold column or fold labels")

    def instantiate(self, task: Task, col: Optional[str] = None, f=None,
                    seed: Optional[int] = None) -> "ResamplingCustomCV":
        row_ids = task.row_ids
        if (col is None) == (f is None):
            raise ResamplingError("custom_cv needs exactly one of 'col' or 'f'")
        if col is not None:
            labels = task.backend.loc[row_ids, task._check_cols(col)[0]]
        else:
            if len(f) != len(row_ids):
                raise ResamplingError(f"'f' has length {len(f)}, task has {len(row_ids)} rows")
            labels = pd.Series(np.asarray(f), index=row_ids)
        labels = labels.dropna()
        train, test = [], []
        for value in pd.unique(labels.to_numpy()):
            in_fold = (labels == value).to_numpy()
            test.append(labels.index[in_fold].to_numpy())
            train.append(labels.index[~in_fold].to_numpy())
        self._set_instance(task, train, test)
        self.seed = seed
        return self


mlr_resamplings.add("holdout", ResamplingHoldout)
mlr_resamplings.add("cv", ResamplingCV)
mlr_resamplings.add("repeated_cv", ResamplingRepeatedCV)
mlr_resamplings.add("subsampling", ResamplingSubsampling)
mlr_resamplings.add("bootstrap", ResamplingBootstrap)
mlr_resamplings.add("loo", ResamplingLOO)
mlr_resamplings.add("insample", ResamplingInsample)
mlr_resamplings.add("custom", ResamplingCustom)
mlr_resamplings.add("custom_cv", ResamplingCustomCV)
