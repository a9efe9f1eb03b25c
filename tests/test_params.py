import numpy as np
import pytest

from mlbench import lrn
from mlbench.exceptions import ParamError
from mlbench.params import ParamDbl, ParamFct, ParamInt, ParamLgl, ParamSet, p_dbl, p_fct, p_int, ps, to_tune


@pytest.fixture
def param_set():
    return ParamSet([
        ParamDbl("alpha", lower=0.0, upper=10.0, default=1.0),
        ParamInt("k", lower=1, upper=20, default=5),
        ParamFct("method", levels=["a", "b"], default="a"),
        ParamLgl("flag", default=False),
    ])


def test_values_are_validated(param_set):
    param_set.set_values(alpha=2.5, k=3, method="b", flag=True)
    assert param_set.values == {"alpha": 2.5, "k": 3, "method": "b", "flag": True}
    with pytest.raises(ParamError):
        param_set.set_values(alpha=11.0)
    with pytest.raises(ParamError):
        param_set.set_values(k=2.5)
    with pytest.raises(ParamError):
        param_set.set_values(method="c")
    with pytest.raises(ParamError):
        param_set.set_values(unknown=1)


def test_none_removes_a_value(param_set):
    param_set.set_values(alpha=2.0)
    param_set.set_values(alpha=None)
    assert "alpha" not in param_set.values


def test_special_values_accepted():
    p = ParamSet([ParamInt("max_depth", lower=1, special_vals=[None])])
    p.set_values(max_depth=None)
    assert p.values == {"max_depth": None}


def test_defaults(param_set):
    assert param_set.defaults == {"alpha": 1.0, "k": 5, "method": "a", "flag": False}


def test_design_grid_is_full_factorial():
    space = ps(x=p_dbl(0.0, 1.0), n=p_int(1, 3), m=p_fct(["u", "v"]))
    design = space.generate_design_grid(resolution=3)
    assert list(design.columns) == ["x", "n", "m"]
    assert len(design) == 3 * 3 * 2
    assert sorted(design["x"].unique().tolist()) == [0.0, 0.5, 1.0]
    assert sorted(design["n"].unique().tolist()) == [1, 2, 3]


def test_param_resolutions_override():
    space = ps(x=p_dbl(0.0, 1.0), y=p_dbl(0.0, 1.0))
    design = space.generate_design_grid(resolution=2, param_resolutions={"y": 5})
    assert len(design) == 10


def test_random_design_respects_bounds():
    space = ps(x=p_dbl(-1.0, 1.0), n=p_int(2, 4))
    design = space.generate_design_random(200, seed=1)
    assert design["x"].between(-1, 1).all()
    assert set(design["n"].unique()) <= {2, 3, 4}


def test_unbounded_space_cannot_be_sampled():
    space = ps(x=p_dbl(0.0))
    with pytest.raises(ParamError):
        space.generate_design_grid(resolution=3)


def test_logscale_trafo():
    space = ps(c=p_dbl(1e-2, 1e2, logscale=True))
    assert space["c"].lower == pytest.approx(np.log(1e-2))
    assert space.trafo({"c": 0.0})["c"] == pytest.approx(1.0)


def test_extra_trafo():
    space = ps(extra_trafo=lambda xs: {"a": xs["a"] * 10}, a=p_dbl(0.0, 1.0))
    assert space.trafo({"a": 0.5}) == {"a": 5.0}


def test_to_tune_builds_search_space():
    learner = lrn("classif.rpart", max_depth=to_tune(2, 8), criterion=to_tune(), min_samples_leaf=3)
    space = learner.param_set.search_space()
    assert space.ids() == ["max_depth", "criterion"]
    assert space["max_depth"].lower == 2
    assert space["max_depth"].upper == 8
    assert space["criterion"].levels == ["gini", "entropy", "log_loss"]


def test_to_tune_with_levels():
    learner = lrn("classif.kknn", n_neighbors=to_tune([3, 5, 7]))
    space = learner.param_set.search_space()
    assert space["n_neighbors"].levels == [3, 5, 7]


def test_untuned_tokens_block_training(iris):
    learner = lrn("classif.rpart", max_depth=to_tune(2, 8))
    learner.encapsulate = "try"
    learner.train(iris)
    assert learner.errors
    assert "marked for tuning" in learner.errors[0]
