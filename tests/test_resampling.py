import logging

import numpy as np
import pandas as pd
import pytest

from mlbench import rsmp
from mlbench.exceptions import NotInstantiatedError, ResamplingError


def _as_set(ids):
    return set(np.asarray(ids).tolist())


def test_cv_partitions_rows(iris):
    cv = rsmp("cv", folds=5).instantiate(iris, seed=1)
    assert cv.iters == 5
    seen = []
    for i in range(cv.iters):
        train, test = _as_set(cv.train_set(i)), _as_set(cv.test_set(i))
        assert not train & test
        assert train | test == _as_set(iris.row_ids)
        assert len(test) == 30
        seen.extend(cv.test_set(i).tolist())
    assert sorted(seen) == sorted(iris.row_ids.tolist())


def test_same_seed_same_sets(iris):
    a = rsmp("subsampling", repeats=3).instantiate(iris, seed=42)
    b = rsmp("subsampling", repeats=3).instantiate(iris.clone(), seed=42)
    for i in range(3):
        np.testing.assert_array_equal(a.train_set(i), b.train_set(i))
        np.testing.assert_array_equal(a.test_set(i), b.test_set(i))
    assert a.hash == b.hash


def test_iters_known_before_instantiation():
    assert rsmp("cv", folds=4).iters == 4
    assert rsmp("repeated_cv", folds=3, repeats=2).iters == 6
    assert rsmp("holdout").iters == 1
    assert rsmp("loo").iters is None


def test_uninstantiated_access_raises():
    with pytest.raises(NotInstantiatedError):
        rsmp("cv").train_set(0)


def test_iteration_out_of_range(iris):
    cv = rsmp("cv", folds=3).instantiate(iris, seed=1)
    with pytest.raises(ResamplingError):
        cv.test_set(3)


def test_holdout_ratio(regr_task):
    holdout = rsmp("holdout", ratio=0.75).instantiate(regr_task, seed=3)
    assert len(holdout.train_set(0)) == 60
    assert len(holdout.test_set(0)) == 20


def test_bootstrap_keeps_duplicates_and_oob_test(regr_task):
    boot = rsmp("bootstrap", repeats=4).instantiate(regr_task, seed=5)
    for i in range(4):
        train = boot.train_set(i)
        assert len(train) == regr_task.nrow
        assert len(np.unique(train)) < len(train)
        assert not _as_set(train) & _as_set(boot.test_set(i))


def test_loo(small_surv_task):
    loo = rsmp("loo").instantiate(small_surv_task)
    assert loo.iters == 6
    assert all(len(loo.test_set(i)) == 1 for i in range(6))


def test_insample_uses_all_rows(regr_task):
    ins = rsmp("insample").instantiate(regr_task)
    np.testing.assert_array_equal(ins.train_set(0), ins.test_set(0))
    assert len(ins.train_set(0)) == regr_task.nrow


def test_repeated_cv_fold_and_repeat(iris):
    rcv = rsmp("repeated_cv", folds=3, repeats=2).instantiate(iris, seed=1)
    assert rcv.folds([0, 1, 2, 3, 4, 5]).tolist() == [0, 1, 2, 0, 1, 2]
    assert rcv.repeats([0, 1, 2, 3, 4, 5]).tolist() == [0, 0, 0, 1, 1, 1]


def test_groups_stay_together(grouped_task):
    cv = rsmp("cv", folds=3).instantiate(grouped_task, seed=2)
    groups = grouped_task.groups
    for i in range(cv.iters):
        train_groups = set(groups.loc[cv.train_set(i)])
        test_groups = set(groups.loc[cv.test_set(i)])
        assert not train_groups & test_groups
        assert len(test_groups) == 2


def test_too_many_folds_for_groups(grouped_task):
    with pytest.raises(ResamplingError):
        rsmp("cv", folds=10).instantiate(grouped_task, seed=1)


def test_stratified_cv_keeps_class_balance(iris):
    iris.set_col_roles("Species", add_to=["stratum"])
    cv = rsmp("cv", folds=5).instantiate(iris, seed=4)
    truth = pd.Series(iris.truth(), index=iris.row_ids)
    for i in range(cv.iters):
        counts = truth.loc[cv.test_set(i)].value_counts()
        assert counts.tolist() == [10, 10, 10]


def test_groups_and_strata_conflict(grouped_task):
    grouped_task.set_col_roles("x", add_to=["stratum"])
    with pytest.raises(ResamplingError):
        rsmp("cv", folds=3).instantiate(grouped_task)


def test_check_task_detects_other_rows(iris):
    cv = rsmp("cv", folds=3).instantiate(iris, seed=1)
    cv.check_task(iris.clone())
    with pytest.raises(ResamplingError):
        cv.check_task(iris.clone().filter(list(range(100))))


def test_custom_splits(regr_task):
    custom = rsmp("custom").instantiate(regr_task, train_sets=[[0, 1, 2], [3, 4]], test_sets=[[5], [6, 7]])
    assert custom.iters == 2
    assert custom.test_set(1).tolist() == [6, 7]


def test_custom_cv_from_labels(regr_task):
    labels = np.where(np.arange(regr_task.nrow) < 20, "a", "b")
    ccv = rsmp("custom_cv").instantiate(regr_task, f=labels)
    assert ccv.iters == 2
    assert len(ccv.test_set(0)) == 20
    assert len(ccv.test_set(1)) == 60


def test_custom_cv_needs_exactly_one_source(regr_task):
    with pytest.raises(ResamplingError):
        rsmp("custom_cv").instantiate(regr_task)


@pytest.mark.parametrize("key, params", [
    ("holdout", {"ratio": 0.5}),
    ("subsampling", {"repeats": 3, "ratio": 0.5}),
    ("bootstrap", {"repeats": 3}),
    ("repeated_cv", {"folds": 3, "repeats": 2}),
])
def test_grouped_strategies_keep_groups_whole(grouped_task, key, params):
    resampling = rsmp(key, **params).instantiate(grouped_task, seed=5)
    groups = grouped_task.groups
    for i in range(resampling.iters):
        train_groups = set(groups.loc[resampling.train_set(i)])
        test_groups = set(groups.loc[resampling.test_set(i)])
        assert train_groups
        assert not train_groups & test_groups


def test_loo_leaves_one_group_out(grouped_task):
    loo = rsmp("loo").instantiate(grouped_task)
    assert loo.iters == 6
    groups = grouped_task.groups
    assert all(groups.loc[loo.test_set(i)].nunique() == 1 for i in range(6))
    assert all(len(loo.test_set(i)) == 4 for i in range(6))


def test_stratified_holdout(iris):
    iris.set_col_roles("Species", add_to=["stratum"])
    holdout = rsmp("holdout", ratio=0.8).instantiate(iris, seed=2)
    truth = pd.Series(iris.truth(), index=iris.row_ids)
    assert truth.loc[holdout.test_set(0)].value_counts().tolist() == [10, 10, 10]


def test_sets_follow_task_order(iris):
    holdout = rsmp("holdout").instantiate(iris, seed=7)
    for ids in (holdout.train_set(0), holdout.test_set(0)):
        assert (np.diff(ids) > 0).all()


def test_more_folds_than_rows(small_surv_task):
    with pytest.raises(ResamplingError):
        rsmp("cv", folds=10).instantiate(small_surv_task, seed=1)


def test_reuse_on_other_columns_is_logged(iris, caplog):
    cv = rsmp("cv", folds=3).instantiate(iris, seed=1)
    caplog.set_level(logging.DEBUG, logger="mlbench.resampling.base")
    cv.check_task(iris.clone())
    assert "reused on" not in caplog.text
    cv.check_task(iris.clone().select(["Petal.Length"]))
    assert "reused on 'iris'" in caplog.text
