# @author: José Arbelaez
"""
Classification learners.

    classif.featureless  DummyClassifier
    classif.rpart        DecisionTreeClassifier
    classif.ranger       RandomForestClassifier
    classif.log_reg      LogisticRegression
    classif.kknn         KNeighborsClassifier
    classif.svm          SVC
"""

from __future__ import annotations
from typing import Any, Dict

import pandas as pd
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from ..params import ParamDbl, ParamFct, ParamInt, ParamLgl, ParamSet, ParamUty
from ..registry import mlr_learners
from ..tasks.task import Task
from .sklearn import LearnerSklearn, feature_frame


class LearnerClassif(LearnerSklearn):
    """Base for sklearn classifiers; predicts labels and class probabilities."""

    def __init__(self, id: str, param_set: ParamSet, predict_type: str = "response", **kwargs):
        kwargs.setdefault("predict_types", ("response", "prob"))
        kwargs.setdefault("properties", ("twoclass", "multiclass"))
        super().__init__(id, "classif", param_set, predict_type=predict_type, **kwargs)

    def _predict(self, task: Task) -> Dict[str, Any]:
        X = feature_frame(task)
        out = {"response": self.model.predict(X)}
        if self.predict_type == "prob":
            prob = pd.DataFrame(self.model.predict_proba(X), columns=list(self.model.classes_))
            # classes absent from the training rows get probability 0
            out["prob"] = prob.reindex(columns=self.state["class_names"], fill_value=0.0)
        return out


class LearnerClassifFeatureless(LearnerClassif):
    """Featureless baseline: predicts the majority class / class frequencies."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamFct("method", levels=["mode", "sample", "weighted.sample"], default="mode"),
        ])
        super().__init__("classif.featureless", param_set, properties=(
            "twoclass", "multiclass", "weights", "featureless"))
        self.param_set.set_values(**values)

    def _estimator(self, method: str = "mode"):
        strategy = {"mode": "prior", "sample": "uniform", "weighted.sample": "stratified"}[method]
        return DummyClassifier(strategy=strategy)


class LearnerClassifRpart(LearnerClassif):
    """CART classification tree."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("max_depth", lower=1, upper=30, special_vals=[None]),
            ParamInt("min_samples_split", lower=2, default=2),
            ParamInt("min_samples_leaf", lower=1, default=1),
            ParamDbl("ccp_alpha", lower=0.0, default=0.0),
            ParamFct("criterion", levels=["gini", "entropy", "log_loss"], default="gini"),
            ParamUty("random_state", special_vals=[None]),
        ])
        super().__init__("classif.rpart", param_set, properties=(
            "twoclass", "multiclass", "weights", "importance"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return DecisionTreeClassifier(**params)


class LearnerClassifRanger(LearnerClassif):
    """Random forest."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("n_estimators", lower=1, default=100),
            ParamUty("max_features", default="sqrt"),
            ParamInt("max_depth", lower=1, special_vals=[None]),
            ParamInt("min_samples_leaf", lower=1, default=1),
            ParamLgl("bootstrap", default=True),
            ParamInt("n_jobs", lower=-1, default=1, special_vals=[None]),
            ParamUty("random_state", special_vals=[None]),
        ])
        super().__init__("classif.ranger", param_set, properties=(
            "twoclass", "multiclass", "weights", "importance"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return RandomForestClassifier(**params)


class LearnerClassifLogReg(LearnerClassif):
    """(Multinomial) logistic regression on standardized features."""
    scale = True

    def __init__(self, **values):
        param_set = ParamSet([
            ParamDbl("C", lower=0.0, default=1.0),
            ParamLgl("fit_intercept", default=True),
            ParamInt("max_iter", lower=1, default=100),
            ParamUty("class_weight", special_vals=[None]),
        ])
        super().__init__("classif.log_reg", param_set, properties=(
            "twoclass", "multiclass", "weights"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return LogisticRegression(**params)


class LearnerClassifKKNN(LearnerClassif):
    """k-nearest neighbours on standardized features."""
    scale = True

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("n_neighbors", lower=1, default=7),
            ParamFct("weights", levels=["uniform", "distance"], default="uniform"),
            ParamDbl("p", lower=1.0, default=2.0),
        ])
        super().__init__("classif.kknn", param_set, properties=("twoclass", "multiclass"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return KNeighborsClassifier(**params)

    def _train(self, task: Task):
        k = self._param_values(tags=["train"]).get("n_neighbors", 7)
        if k > task.nrow:
            raise ValueError(f"n_neighbors={k} exceeds the number of training rows ({task.nrow})")
        return super()._train(task)


class LearnerClassifSVM(LearnerClassif):
    """Support vector machine; probabilities via Platt scaling."""
    scale = True

    def __init__(self, **values):
        param_set = ParamSet([
            ParamDbl("C", lower=0.0, default=1.0),
            ParamFct("kernel", levels=["linear", "poly", "rbf", "sigmoid"], default="rbf"),
            ParamUty("gamma", default="scale"),
            ParamInt("degree", lower=1, default=3),
            ParamUty("random_state", special_vals=[None]),
        ])
        super().__init__("classif.svm", param_set, properties=("twoclass", "multiclass", "weights"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return SVC(probability=self.predict_type == "prob", **params)


mlr_learners.add("classif.featureless", LearnerClassifFeatureless)
mlr_learners.add("classif.rpart", LearnerClassifRpart)
mlr_learners.add("classif.ranger", LearnerClassifRanger)
mlr_learners.add("classif.log_reg", LearnerClassifLogReg)
mlr_learners.add("classif.kknn", LearnerClassifKKNN)
mlr_learners.add("classif.svm", LearnerClassifSVM)
