import json

import numpy as np
import pytest

from mlbench import benchmark, benchmark_grid, lrn, lrns, msr, msrs, resample, rsmp, tsk
from mlbench.analysis import BenchmarkResult, save_benchmark_result
from mlbench.exceptions import ResamplingError


@pytest.fixture
def cv3():
    return rsmp("cv", folds=3)


def test_resample_covers_every_row_once(iris, cv3):
    rr = resample(iris, lrn("classif.rpart"), cv3, seed=1)
    assert rr.iters == 3
    prediction = rr.prediction()
    assert sorted(prediction.row_ids.tolist()) == sorted(iris.row_ids.tolist())
    scores = rr.score(msr("classif.ce"))
    assert list(scores.columns) == ["task_id", "learner_id", "resampling_id", "iteration", "classif.ce"]
    assert rr.aggregate(msr("classif.ce"))["classif.ce"] == pytest.approx(scores["classif.ce"].mean())


def test_resample_does_not_touch_inputs(iris, cv3):
    learner = lrn("classif.rpart")
    resample(iris, learner, cv3, seed=1)
    assert not learner.is_trained
    assert not cv3.is_instantiated


def test_store_models(regr_task, cv3):
    rr = resample(regr_task, lrn("regr.rpart"), cv3, seed=1, store_models=True)
    assert all(m.model is not None for m in rr.learners)
    rr = resample(regr_task, lrn("regr.rpart"), cv3, seed=1)
    assert all(m.model is None for m in rr.learners)


def test_instantiated_resampling_must_match_task(iris, cv3):
    cv3.instantiate(iris, seed=1)
    with pytest.raises(ResamplingError):
        resample(iris.clone().filter(list(range(90))), lrn("classif.rpart"), cv3)


def test_failed_iterations_are_captured(binary_task):
    custom = rsmp("custom").instantiate(
        binary_task,
        train_sets=[list(range(0, 60, 2)), list(range(5))],
        test_sets=[list(range(1, 60, 2)), list(range(5, 60))],
    )
    rr = resample(binary_task, lrn("classif.kknn", n_neighbors=7), custom)
    assert rr.predictions()[1] is None
    assert len(rr.errors) == 1
    assert rr.errors["iteration"].tolist() == [1]
    scores = rr.score(msr("classif.ce"))["classif.ce"]
    assert np.isnan(scores.iloc[1])
    # failed iterations are excluded from the aggregate
    assert rr.aggregate(msr("classif.ce"))["classif.ce"] == pytest.approx(scores.iloc[0])


def test_micro_and_macro_average(regr_task):
    rr = resample(regr_task, lrn("regr.rpart", max_depth=2), rsmp("cv", folds=4), seed=2)
    macro = rr.aggregate(msr("regr.mse"))["regr.mse"]
    micro = rr.aggregate(msr("regr.mse", average="micro"))["regr.mse"]
    pooled = msr("regr.mse").score(rr.prediction())
    assert micro == pytest.approx(pooled)
    # folds have equal size, so both averages agree for the mse
    assert macro == pytest.approx(micro)


def test_parallel_matches_sequential(iris, cv3):
    cv3.instantiate(iris, seed=3)
    learner = lrn("classif.rpart", random_state=0)
    seq = resample(iris, learner, cv3, n_jobs=1)
    par = resample(iris, learner, cv3, n_jobs=2)
    assert [rec.iteration for rec in par.iterations] == [0, 1, 2]
    np.testing.assert_allclose(seq.score()["classif.ce"], par.score()["classif.ce"])


def test_benchmark_grid_shares_instances(iris, cv3):
    design = benchmark_grid(iris, lrns(["classif.featureless", "classif.rpart"]), cv3, seed=1)
    assert list(design.columns) == ["task", "learner", "resampling"]
    assert len(design) == 2
    assert design["resampling"].iloc[0] is design["resampling"].iloc[1]
    assert design["resampling"].iloc[0].is_instantiated
    assert not cv3.is_instantiated


def test_benchmark_grid_rejects_mixed_types(iris, regr_task, cv3):
    with pytest.raises(ValueError):
        benchmark_grid([iris, regr_task], lrn("classif.rpart"), cv3)


def test_paired_benchmark_grid(iris):
    wine = tsk("wine")
    instances = [rsmp("holdout").instantiate(iris, seed=1), rsmp("cv", folds=2).instantiate(wine, seed=1)]
    design = benchmark_grid([iris, wine], lrn("classif.rpart"), instances, paired=True)
    assert design["resampling"].tolist() == instances
    with pytest.raises(ResamplingError):
        benchmark_grid(iris, lrn("classif.rpart"), rsmp("holdout"), paired=True)


def test_benchmark_and_ranking(iris, cv3):
    tasks = [iris, tsk("wine")]
    design = benchmark_grid(tasks, lrns(["classif.featureless", "classif.rpart"]), cv3, seed=1)
    bmr = benchmark(design)
    assert len(bmr) == 4
    agg = bmr.aggregate(msrs(["classif.ce", "classif.acc"]))
    assert list(agg["learner_id"]) == ["classif.featureless", "classif.rpart"] * 2
    np.testing.assert_allclose(agg["classif.ce"] + agg["classif.acc"], 1.0)
    ranking = bmr.rank_learners(msr("classif.ce"))
    assert ranking.index[0] == "classif.rpart"
    assert ranking["avg_rank"].tolist() == [1.0, 2.0]


def test_benchmark_parallel_keeps_design_order(regr_task, cv3):
    design = benchmark_grid(regr_task, lrns(["regr.featureless", "regr.rpart", "regr.lm"]), cv3, seed=1)
    bmr = benchmark(design, n_jobs=2)
    assert [rr.learner.id for rr in bmr] == ["regr.featureless", "regr.rpart", "regr.lm"]
    assert all(rr.iters == 3 for rr in bmr)


def test_merge_is_multiset_union(iris, cv3):
    design = benchmark_grid(iris, lrns(["classif.featureless", "classif.rpart"]), cv3, seed=1)
    a = benchmark(design)
    b = benchmark(design.iloc[[1]])
    merged = a + b
    assert len(merged) == 3
    assert len(a) == 2
    assert merged.uhashes == a.uhashes + b.uhashes
    # both rpart results keep their own provenance
    rpart = merged.filter(learner_ids=["classif.rpart"])
    assert len(rpart) == 2
    assert all(rr.task is iris for rr in rpart)


def test_resample_result_round_trip(iris, cv3):
    rr = resample(iris, lrn("classif.rpart"), cv3, seed=1)
    back = rr.as_benchmark_result().as_resample_result()
    assert back.uhash == rr.uhash
    np.testing.assert_array_equal(back.prediction().row_ids, rr.prediction().row_ids)
    np.testing.assert_array_equal(back.prediction().response, rr.prediction().response)


def test_as_resample_result_needs_index(iris, cv3):
    design = benchmark_grid(iris, lrns(["classif.featureless", "classif.rpart"]), cv3, seed=1)
    bmr = benchmark(design)
    with pytest.raises(ValueError):
        bmr.as_resample_result()
    assert bmr.as_resample_result(1).learner.id == "classif.rpart"


def test_empty_benchmark_result():
    bmr = BenchmarkResult()
    assert len(bmr) == 0
    assert bmr.task_type is None
    assert bmr.score().empty


def test_save_benchmark_result(tmp_path, iris, cv3):
    bmr = benchmark(benchmark_grid(iris, lrn("classif.rpart"), cv3, seed=1))
    out = save_benchmark_result(bmr, output_dir=tmp_path / "out", session_name="run",
                                measures=msrs(["classif.ce", "classif.acc"]))
    assert (out / "run_aggregate.csv").exists()
    with open(out / "run_results.json", encoding="utf-8") as f:
        payload = json.load(f)
    assert payload["n_resample_results"] == 1
    result = payload["resample_results"][0]
    assert result["learner_id"] == "classif.rpart"
    assert len(result["iterations"]) == 3
    assert set(result["aggregate"]) == {"classif.ce", "classif.acc"}
