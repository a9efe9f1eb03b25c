import numpy as np
import pandas as pd
import pytest

from mlbench import msr, msrs
from mlbench.exceptions import MeasureError
from mlbench.measures.surv import harrell_cindex
from mlbench.predictions import DEFAULT_MEASURES, PredictionClassif, PredictionRegr, PredictionSurv
from mlbench.tasks.task import Surv


@pytest.fixture
def classif_prediction():
    return PredictionClassif(
        row_ids=[0, 1, 2, 3],
        truth=["pos", "pos", "neg", "neg"],
        prob=pd.DataFrame({"pos": [0.9, 0.4, 0.3, 0.1], "neg": [0.1, 0.6, 0.7, 0.9]}),
        class_names=["pos", "neg"],
    )


@pytest.fixture
def regr_prediction():
    return PredictionRegr(row_ids=[0, 1, 2], truth=[1.0, 2.0, 3.0], response=[1.0, 2.0, 5.0])


def test_response_derived_from_prob(classif_prediction):
    assert classif_prediction.response.tolist() == ["pos", "neg", "neg", "neg"]
    assert classif_prediction.predict_types == ["response", "prob"]


def test_classification_scores(classif_prediction):
    scores = classif_prediction.score(msrs(["classif.ce", "classif.acc", "classif.auc", "classif.recall"]))
    assert scores["classif.ce"] == pytest.approx(0.25)
    assert scores["classif.acc"] == pytest.approx(0.75)
    assert scores["classif.auc"] == pytest.approx(1.0)
    assert scores["classif.recall"] == pytest.approx(0.5)


def test_brier_uses_positive_class(classif_prediction):
    expected = np.mean((np.array([0.9, 0.4, 0.3, 0.1]) - np.array([1, 1, 0, 0])) ** 2)
    assert classif_prediction.score(msr("classif.brier"))["classif.brier"] == pytest.approx(expected)


def test_threshold_changes_response(classif_prediction):
    classif_prediction.set_threshold(0.35)
    assert classif_prediction.response.tolist() == ["pos", "pos", "neg", "neg"]
    assert classif_prediction.score(msr("classif.ce"))["classif.ce"] == 0.0


def test_confusion_matrix(classif_prediction):
    confusion = classif_prediction.confusion
    assert confusion.loc["pos", "pos"] == 1
    assert confusion.loc["neg", "pos"] == 1
    assert confusion.loc["neg", "neg"] == 2


def test_missing_predict_type_gives_nan():
    prediction = PredictionClassif([0, 1], ["a", "b"], response=["a", "a"], class_names=["a", "b"])
    assert np.isnan(msr("classif.auc").score(prediction))
    assert np.isnan(msr("classif.ce").score(None))


def test_binary_only_measures(iris):
    prediction = PredictionClassif([0, 1, 2], ["setosa", "versicolor", "virginica"],
                                   response=["setosa", "setosa", "virginica"],
                                   class_names=iris.class_names)
    with pytest.raises(MeasureError):
        msr("classif.precision").score(prediction)


def test_regression_scores(regr_prediction):
    scores = regr_prediction.score(msrs(["regr.mse", "regr.rmse", "regr.mae", "regr.maxae", "regr.medae"]))
    assert scores["regr.mse"] == pytest.approx(4 / 3)
    assert scores["regr.rmse"] == pytest.approx(np.sqrt(4 / 3))
    assert scores["regr.mae"] == pytest.approx(2 / 3)
    assert scores["regr.maxae"] == pytest.approx(2.0)
    assert scores["regr.medae"] == pytest.approx(0.0)


def test_measure_task_type_mismatch(regr_prediction):
    with pytest.raises(MeasureError):
        regr_prediction.score(msr("classif.ce"))


def test_default_measure(regr_prediction):
    assert list(regr_prediction.score()) == ["regr.mse"]


def test_harrell_cindex():
    time = np.array([10.0, 8.0, 6.0, 5.0, 3.0, 1.0])
    event = np.array([0, 1, 1, 0, 1, 1])
    assert harrell_cindex(time, event, np.arange(6.0)) == pytest.approx(1.0)
    assert harrell_cindex(time, event, -np.arange(6.0)) == pytest.approx(0.0)
    assert harrell_cindex(time, event, np.zeros(6)) == pytest.approx(0.5)


def test_graf_score_of_perfect_prediction_is_zero():
    time = np.array([10.0, 8.0, 6.0, 5.0, 3.0, 1.0])
    event = np.array([0, 1, 1, 0, 1, 1])
    grid = np.unique(time)
    perfect = pd.DataFrame((grid[None, :] < time[:, None]).astype(float), columns=grid)
    flat = pd.DataFrame(np.full((6, len(grid)), 0.5), columns=grid)
    graf = msr("surv.graf")
    score_perfect = graf.score(PredictionSurv(np.arange(6), Surv(time, event), distr=perfect))
    score_flat = graf.score(PredictionSurv(np.arange(6), Surv(time, event), distr=flat))
    assert score_perfect == pytest.approx(0.0)
    assert score_flat > score_perfect


def test_time_measures_need_a_learner(regr_prediction):
    with pytest.raises(MeasureError):
        msr("time_train").score(regr_prediction)


def test_measure_properties():
    ce = msr("classif.ce")
    assert ce.minimize
    assert ce.range == (0.0, 1.0)
    assert not msr("classif.auc").minimize
    assert msr("classif.auc").predict_type == "prob"


def test_combine_predictions(regr_prediction):
    other = PredictionRegr([3, 4], [4.0, 5.0], response=[4.0, 5.0])
    combined = regr_prediction + other
    assert len(combined) == 5
    assert combined.row_ids.tolist() == [0, 1, 2, 3, 4]
    assert combined.filter([3, 4]).truth.tolist() == [4.0, 5.0]


@pytest.mark.parametrize("task_type", ["classif", "regr", "surv"])
def test_default_measures_are_registered(task_type):
    measure = msr(DEFAULT_MEASURES[task_type])
    assert measure.task_type == task_type
