import warnings

import numpy as np
import pandas as pd
import pytest

from mlbench import lrn, msr, rsmp
from mlbench.exceptions import LearnerError, LearnerTrainError
from mlbench.learners.classif import LearnerClassifRpart


def _holdout(task, seed=1):
    return rsmp("holdout").instantiate(task, seed=seed)


def test_classif_response_and_prob(iris):
    split = _holdout(iris)
    learner = lrn("classif.rpart", predict_type="prob", random_state=1)
    learner.train(iris, row_ids=split.train_set(0))
    prediction = learner.predict(iris, row_ids=split.test_set(0))
    assert len(prediction) == len(split.test_set(0))
    assert list(prediction.prob.columns) == iris.class_names
    np.testing.assert_allclose(prediction.prob.sum(axis=1), 1.0)
    assert prediction.score(msr("classif.ce"))["classif.ce"] < 0.2


def test_featureless_predicts_majority(binary_task):
    binary_task.filter(list(range(40)))
    learner = lrn("classif.featureless").train(binary_task)
    prediction = learner.predict(binary_task)
    assert set(prediction.response) == {"neg"}


def test_lm_recovers_linear_signal(regr_task):
    learner = lrn("regr.lm", predict_type="se").train(regr_task)
    model = learner.model[-1]
    np.testing.assert_allclose(model.coef_, [3.0, -2.0], atol=0.1)
    prediction = learner.predict(regr_task)
    assert (prediction.se > 0).all()
    assert prediction.score(msr("regr.rmse"))["regr.rmse"] < 0.2


def test_featureless_regr_se_is_constant(regr_task):
    learner = lrn("regr.featureless", predict_type="se").train(regr_task)
    prediction = learner.predict(regr_task)
    assert np.allclose(prediction.response, regr_task.truth().mean())
    assert np.allclose(prediction.se, np.std(regr_task.truth(), ddof=1))


@pytest.mark.parametrize("key", ["regr.ranger", "regr.km"])
def test_se_learners(regr_task, key):
    learner = lrn(key, predict_type="se", random_state=0)
    prediction = learner.train(regr_task).predict(regr_task)
    assert prediction.se.shape == (regr_task.nrow,)
    assert (prediction.se >= 0).all()


@pytest.mark.parametrize("key", ["regr.rpart", "regr.ridge", "regr.plsr", "regr.kknn"])
def test_regression_learners_fit(regr_task, key):
    prediction = lrn(key).train(regr_task).predict(regr_task)
    assert prediction.score(msr("regr.rsq"))["regr.rsq"] > 0.5


@pytest.mark.parametrize("key", ["classif.ranger", "classif.log_reg", "classif.kknn", "classif.svm"])
def test_classification_learners_fit(binary_task, key):
    prediction = lrn(key, predict_type="prob").train(binary_task).predict(binary_task)
    assert prediction.score(msr("classif.acc"))["classif.acc"] > 0.9
    assert list(prediction.prob.columns) == ["pos", "neg"]


def test_plsr_caps_components(regr_task):
    learner = lrn("regr.plsr", n_components=10).train(regr_task)
    assert learner.model[-1].n_components == 2


def test_coxph_ranks_risk(surv_task):
    learner = lrn("surv.coxph").train(surv_task)
    prediction = learner.predict(surv_task)
    assert set(prediction.predict_types) >= {"crank", "lp", "distr"}
    assert prediction.distr.shape[0] == surv_task.nrow
    assert learner.model.coef[0] > 0
    assert prediction.score(msr("surv.cindex"))["surv.cindex"] > 0.6
    # survival curves are non increasing
    assert (np.diff(prediction.distr.to_numpy(), axis=1) <= 1e-12).all()


def test_kaplan_is_featureless(small_surv_task):
    prediction = lrn("surv.kaplan").train(small_surv_task).predict(small_surv_task)
    assert len(np.unique(prediction.crank)) == 1
    assert prediction.score(msr("surv.cindex"))["surv.cindex"] == pytest.approx(0.5)


def test_predict_type_must_be_supported():
    with pytest.raises(LearnerError):
        lrn("classif.rpart", predict_type="se")


def test_task_type_mismatch(regr_task):
    with pytest.raises(LearnerError):
        lrn("classif.rpart").train(regr_task)


def test_predict_before_train(regr_task):
    with pytest.raises(LearnerError):
        lrn("regr.rpart").predict(regr_task)


def test_train_error_is_raised_without_encapsulation(binary_task):
    learner = lrn("classif.kknn", n_neighbors=50)
    with pytest.raises(LearnerTrainError):
        learner.train(binary_task, row_ids=list(range(10)))


def test_encapsulated_error_without_fallback(binary_task):
    learner = lrn("classif.kknn", n_neighbors=50, encapsulate="try")
    learner.train(binary_task, row_ids=list(range(10)))
    assert learner.model is None
    assert "n_neighbors=50" in learner.errors[0]
    assert learner.predict(binary_task) is None


def test_fallback_provides_predictions(binary_task):
    learner = lrn("classif.kknn", n_neighbors=50, encapsulate="try",
                  fallback=lrn("classif.featureless"))
    learner.train(binary_task, row_ids=list(range(10)))
    prediction = learner.predict(binary_task)
    assert prediction is not None
    assert len(prediction) == binary_task.nrow
    assert any("fallback" in w for w in learner.warnings)


class _WarnThenFail(LearnerClassifRpart):
    def _train(self, task):
        warnings.warn("tree depth capped", UserWarning)
        raise ValueError("boom")


def test_warnings_before_a_failure_are_kept(iris):
    learner = _WarnThenFail()
    learner.encapsulate = "try"
    learner.train(iris)
    assert learner.errors == ["ValueError: boom"]
    assert learner.warnings == ["UserWarning: tree depth capped"]
    stages = [(r["stage"], r["class"]) for r in learner.state["log"]]
    assert stages == [("train", "warning"), ("train", "error")]


def test_warnings_before_a_raised_failure_are_kept(iris):
    learner = _WarnThenFail()
    with pytest.raises(LearnerTrainError):
        learner.train(iris)
    assert learner.warnings == ["UserWarning: tree depth capped"]


def test_warnings_are_logged(iris):
    learner = lrn("classif.log_reg", max_iter=1).train(iris)
    assert learner.model is not None
    assert any("ConvergenceWarning" in w for w in learner.warnings)
    assert list(learner.log.columns) == ["stage", "class", "msg"]


def test_timings_recorded(regr_task):
    learner = lrn("regr.rpart").train(regr_task)
    learner.predict(regr_task)
    assert learner.timings["train"] >= 0
    assert learner.timings["predict"] >= 0


def test_discard_model(regr_task):
    learner = lrn("regr.rpart").train(regr_task).discard_model()
    assert learner.is_trained
    with pytest.raises(LearnerError):
        learner.predict(regr_task)


def test_predict_newdata(regr_task):
    learner = lrn("regr.lm").train(regr_task)
    newdata = pd.DataFrame({"x1": [0.5, -0.5], "x2": [0.0, 0.5]})
    prediction = learner.predict_newdata(newdata)
    np.testing.assert_allclose(prediction.response, [1.5, -2.5], atol=0.15)
    assert np.isnan(prediction.truth).all()


def test_importance(iris):
    learner = lrn("classif.rpart", random_state=0).train(iris)
    importance = learner.importance()
    assert importance.sum() == pytest.approx(1.0)


def test_clone_is_independent(regr_task):
    learner = lrn("regr.rpart", max_depth=3).train(regr_task)
    other = learner.clone().reset()
    other.set_values(max_depth=5)
    assert learner.param_set.values["max_depth"] == 3
    assert learner.is_trained and not other.is_trained
    assert learner.hash != other.hash
