import numpy as np
import pandas as pd
import pytest

from mlbench import (
    AutoTuner,
    TuningInstance,
    extract_inner_tuning_archives,
    extract_inner_tuning_results,
    lrn,
    msr,
    p_dbl,
    ps,
    resample,
    rsmp,
    tnr,
    to_tune,
    trm,
    tune,
)
from mlbench.configs.search_spaces import apply_search_space, get_search_space, list_search_spaces
from mlbench.exceptions import ParamError, TerminatedError, TuningError


class ScoreArchive:
    """Archive stand-in exposing only what terminators read."""

    def __init__(self, scores, minimize=True):
        self._scores = np.asarray(scores, dtype=float)
        self.minimize = minimize

    def scores(self):
        return self._scores


@pytest.fixture
def rpart_depth():
    return lrn("classif.rpart", max_depth=to_tune(1, 4), random_state=0)


def _instance(task, learner, terminator=None, **kwargs):
    return TuningInstance(task, learner, rsmp("holdout"), msr("classif.ce"),
                          terminator or trm("none"), seed=1, **kwargs)


# ---------------------------------------------------------------------------
# Terminators
# ---------------------------------------------------------------------------

def test_perf_reached():
    term = trm("perf_reached", level=0.1)
    assert not term.is_terminated(ScoreArchive([]))
    assert not term.is_terminated(ScoreArchive([0.3, np.nan]))
    assert term.is_terminated(ScoreArchive([0.3, 0.05]))
    assert trm("perf_reached", level=0.9).is_terminated(ScoreArchive([0.95], minimize=False))


def test_stagnation():
    term = trm("stagnation", iters=2, threshold=0.0)
    assert not term.is_terminated(ScoreArchive([0.5, 0.4]))
    assert not term.is_terminated(ScoreArchive([0.5, 0.4, 0.3]))
    assert term.is_terminated(ScoreArchive([0.3, 0.4, 0.35]))


def test_combo_any_and_all():
    archive = ScoreArchive([0.05])
    reached, never = trm("perf_reached", level=0.1), trm("none")
    assert trm("combo", terminators=[reached, never]).is_terminated(archive)
    assert not trm("combo", terminators=[reached, never], any=False).is_terminated(archive)


def test_evals_budget_scales_with_dimension(iris):
    learner = lrn("classif.rpart", max_depth=to_tune(1, 4), min_samples_leaf=to_tune(1, 5))
    instance = _instance(iris, learner, trm("evals", n_evals=1, k=2))
    assert instance.terminator.budget(instance.archive) == 5


# ---------------------------------------------------------------------------
# Tuning instance
# ---------------------------------------------------------------------------

def test_instance_needs_a_search_space(iris):
    with pytest.raises(TuningError):
        _instance(iris, lrn("classif.rpart"))


def test_instance_rejects_tokens_and_space(iris, rpart_depth):
    with pytest.raises(TuningError):
        _instance(iris, rpart_depth, search_space=ps(ccp_alpha=p_dbl(0.0, 0.1)))


def test_instance_rejects_foreign_measure(iris, rpart_depth):
    with pytest.raises(TuningError):
        TuningInstance(iris, rpart_depth, rsmp("holdout"), msr("regr.mse"), trm("none"))


def test_instance_does_not_modify_learner(iris, rpart_depth):
    instance = _instance(iris, rpart_depth)
    assert "max_depth" in rpart_depth.param_set.tune_tokens()
    assert not instance.learner.param_set.tune_tokens()
    assert instance.resampling.is_instantiated


def test_eval_batch_and_archive(iris, rpart_depth):
    instance = _instance(iris, rpart_depth, trm("evals", n_evals=2))
    scores = instance.eval_batch(pd.DataFrame({"max_depth": [1, 3]}))
    assert scores.shape == (2,)
    assert scores[0] > scores[1]
    data = instance.archive.data
    assert list(data.columns[:2]) == ["max_depth", "classif.ce"]
    assert data["batch_nr"].tolist() == [1, 1]
    assert len(instance.archive.benchmark_result) == 2
    with pytest.raises(TerminatedError):
        instance.eval_batch(pd.DataFrame({"max_depth": [2]}))


def test_eval_batch_checks_bounds(iris, rpart_depth):
    instance = _instance(iris, rpart_depth)
    with pytest.raises(ParamError):
        instance.eval_batch(pd.DataFrame({"max_depth": [10]}))


# ---------------------------------------------------------------------------
# Tuners
# ---------------------------------------------------------------------------

def test_grid_search_evaluates_full_grid(iris, rpart_depth):
    instance = tune(tnr("grid_search", resolution=4, seed=1), iris, rpart_depth,
                    rsmp("holdout"), msr("classif.ce"), seed=1)
    assert instance.archive.n_evals == 4
    assert sorted(instance.archive.data["max_depth"]) == [1, 2, 3, 4]
    assert instance.is_optimized
    best = instance.archive.data["classif.ce"].min()
    assert instance.result_y == pytest.approx(best)
    assert instance.result["classif.ce"].iloc[0] == pytest.approx(best)
    assert instance.result_learner_param_vals["random_state"] == 0
    assert instance.result_learner_param_vals["max_depth"] == instance.result_x_domain["max_depth"]


def test_grid_search_stops_with_terminator(iris, rpart_depth):
    instance = tune(tnr("grid_search", resolution=4), iris, rpart_depth, rsmp("holdout"),
                    msr("classif.ce"), terminator=trm("evals", n_evals=2), seed=1)
    assert instance.archive.n_evals == 2


def test_random_search_needs_terminator(iris, rpart_depth):
    with pytest.raises(TuningError):
        tune(tnr("random_search"), iris, rpart_depth, rsmp("holdout"), msr("classif.ce"), seed=1)


def test_random_search_in_batches(iris, rpart_depth):
    instance = tune(tnr("random_search", batch_size=2, seed=3), iris, rpart_depth, rsmp("holdout"),
                    msr("classif.ce"), terminator=trm("evals", n_evals=5), seed=1)
    assert instance.archive.n_evals == 6
    assert instance.archive.n_batch == 3
    assert instance.archive.data["max_depth"].between(1, 4).all()


def test_design_points(iris, rpart_depth):
    design = pd.DataFrame({"max_depth": [2, 4]})
    instance = tune(tnr("design_points", design=design), iris, rpart_depth, rsmp("holdout"),
                    msr("classif.ce"), seed=1)
    assert instance.archive.data["max_depth"].tolist() == [2, 4]


def test_explicit_space_with_logscale(regr_task):
    space = ps(alpha=p_dbl(1e-3, 1e3, logscale=True))
    instance = tune(tnr("grid_search", resolution=3), regr_task, lrn("regr.ridge"), rsmp("cv", folds=3),
                    msr("regr.mse"), search_space=space, seed=1)
    domains = sorted(x["alpha"] for x in instance.archive.data["x_domain"])
    np.testing.assert_allclose(domains, [1e-3, 1.0, 1e3])
    assert instance.result_x_domain["alpha"] < 10


def test_failed_configurations_never_win(binary_task):
    learner = lrn("classif.kknn", n_neighbors=to_tune([3, 500]))
    instance = tune(tnr("grid_search"), binary_task, learner, rsmp("holdout"), msr("classif.ce"), seed=1)
    data = instance.archive.data.set_index("n_neighbors")
    assert np.isnan(data.loc[500, "classif.ce"])
    assert data.loc[500, "errors"] == 1
    assert instance.result_x_domain == {"n_neighbors": 3}


def test_run_time_zero_leaves_no_result(iris, rpart_depth):
    with pytest.raises(TuningError):
        tune(tnr("grid_search", resolution=2), iris, rpart_depth, rsmp("holdout"), msr("classif.ce"),
             terminator=trm("run_time", secs=0), seed=1)


# ---------------------------------------------------------------------------
# AutoTuner and nested resampling
# ---------------------------------------------------------------------------

def _auto_tuner(learner, **kwargs):
    return AutoTuner(learner, rsmp("holdout"), msr("classif.ce"), trm("none"),
                     tnr("grid_search", resolution=3), seed=1, **kwargs)


def test_auto_tuner_trains_best_configuration(iris, rpart_depth):
    at = _auto_tuner(rpart_depth)
    assert at.id == "classif.rpart.tuned"
    at.train(iris)
    best_depth = at.tuning_result["max_depth"].iloc[0]
    assert at.model.param_set.values["max_depth"] == best_depth
    assert len(at.archive) == 3
    prediction = at.predict(iris)
    assert len(prediction) == iris.nrow


def test_auto_tuner_rejects_instantiated_resampling(iris, rpart_depth):
    inner = rsmp("holdout").instantiate(iris, seed=1)
    with pytest.raises(TuningError):
        AutoTuner(rpart_depth, inner, msr("classif.ce"), trm("none"), tnr("grid_search"))


def test_auto_tuner_predict_type_propagates(rpart_depth):
    at = _auto_tuner(rpart_depth)
    at.predict_type = "prob"
    assert at.learner.predict_type == "prob"


def test_nested_resampling(iris, rpart_depth):
    rr = resample(iris, _auto_tuner(rpart_depth), rsmp("cv", folds=3), seed=2)
    assert rr.iters == 3
    assert rr.errors.empty
    results = extract_inner_tuning_results(rr)
    assert len(results) == 3
    assert list(results.columns[:5]) == ["nr", "iteration", "task_id", "learner_id", "resampling_id"]
    assert results["iteration"].tolist() == [0, 1, 2]
    assert "learner_param_vals" in results.columns
    archives = extract_inner_tuning_archives(rr)
    assert len(archives) == 9
    assert set(archives["max_depth"]) <= {1, 2, 3, 4}


def test_inner_results_without_stored_instance(iris, rpart_depth):
    at = _auto_tuner(rpart_depth, store_tuning_instance=False)
    rr = resample(iris, at, rsmp("cv", folds=2), seed=2)
    assert len(extract_inner_tuning_results(rr)) == 2
    assert extract_inner_tuning_archives(rr).empty


def test_extractors_on_plain_results(iris):
    rr = resample(iris, lrn("classif.rpart"), rsmp("cv", folds=2), seed=1)
    assert extract_inner_tuning_results(rr).empty


# ---------------------------------------------------------------------------
# Default search spaces
# ---------------------------------------------------------------------------

def test_default_search_spaces():
    assert "classif.rpart" in list_search_spaces()
    assert get_search_space("not.a.learner") is None
    learner = apply_search_space(lrn("classif.rpart", max_depth=5))
    tokens = learner.param_set.tune_tokens()
    assert set(tokens) == {"min_samples_leaf", "ccp_alpha"}
    assert learner.param_set.values["max_depth"] == 5
    with pytest.raises(ValueError):
        apply_search_space(lrn("regr.lm"))


@pytest.mark.parametrize("learner_id", ["classif.kknn", "regr.ridge", "regr.km"])
def test_default_spaces_can_be_gridded(learner_id):
    space = apply_search_space(lrn(learner_id)).param_set.search_space()
    design = space.generate_design_grid(resolution=2)
    assert len(design) > 0
