import pytest

from mlbench import (
    RegistryError,
    lrn,
    lrns,
    mlr_learners,
    mlr_measures,
    msr,
    rsmp,
    rsmps,
    tnr,
    trm,
    tsks,
)
from mlbench.exceptions import MlbenchError


def test_unknown_key_lists_available():
    with pytest.raises(RegistryError) as info:
        lrn("classif.unknown")
    message = str(info.value)
    assert "Unknown learner 'classif.unknown'" in message
    assert "classif.rpart" in message


def test_registry_error_is_a_key_error():
    with pytest.raises(KeyError):
        msr("nope")
    assert issubclass(RegistryError, MlbenchError)


def test_get_returns_fresh_objects():
    a, b = mlr_learners.get("classif.rpart"), mlr_learners.get("classif.rpart")
    assert a is not b
    a.set_values(max_depth=2)
    assert "max_depth" not in b.param_set.values


def test_keys_are_sorted():
    keys = mlr_measures.keys()
    assert keys == sorted(keys)
    assert "surv.graf" in mlr_measures


def test_lrn_sets_fields_and_values():
    fallback = lrn("classif.featureless")
    learner = lrn("classif.rpart", predict_type="prob", fallback=fallback, encapsulate="try",
                  id="tree", max_depth=4)
    assert learner.id == "tree"
    assert learner.predict_type == "prob"
    assert learner.fallback is fallback
    assert learner.encapsulate == "try"
    assert learner.param_set.values == {"max_depth": 4}


def test_plural_sugar():
    assert [t.id for t in tsks(["iris", "wine"])] == ["iris", "wine"]
    assert [m.id for m in lrns(["regr.rpart", "regr.lm"])] == ["regr.rpart", "regr.lm"]
    assert [r.iters for r in rsmps(["holdout", "insample"])] == [1, 1]


def test_resampling_params():
    assert rsmp("cv", folds=7).values == {"folds": 7}
    assert trm("evals", n_evals=3).n_evals == 3
    assert tnr("grid_search").resolution == 10
