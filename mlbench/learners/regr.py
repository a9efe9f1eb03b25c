# @author: José Arbelaez
"""
Regression learners.

    regr.featureless  DummyRegressor (se: training standard deviation)
    regr.rpart        DecisionTreeRegressor
    regr.ranger       RandomForestRegressor (se: spread over trees)
    regr.lm           LinearRegression (se: standard error of the fit)
    regr.ridge        Ridge
    regr.km           GaussianProcessRegressor (se: predictive std)
    regr.plsr         PLSRegression
    regr.kknn         KNeighborsRegressor
"""

from __future__ import annotations
from typing import Any, Dict

import numpy as np
from sklearn.cross_decomposition import PLSRegression
from sklearn.dummy import DummyRegressor
from sklearn.ensemble import RandomForestRegressor
from sklearn.gaussian_process import GaussianProcessRegressor
from sklearn.gaussian_process.kernels import Matern, WhiteKernel
from sklearn.linear_model import LinearRegression, Ridge
from sklearn.neighbors import KNeighborsRegressor
from sklearn.pipeline import Pipeline
from sklearn.tree import DecisionTreeRegressor

from ..params import ParamDbl, ParamFct, ParamInt, ParamLgl, ParamSet, ParamUty
from ..registry import mlr_learners
from ..tasks.task import Task
from .sklearn import LearnerSklearn, feature_frame


class LearnerRegr(LearnerSklearn):
    """Base for sklearn regressors."""

    def __init__(self, id: str, param_set: ParamSet, predict_type: str = "response", **kwargs):
        super().__init__(id, "regr", param_set, predict_type=predict_type, **kwargs)

    def _predict(self, task: Task) -> Dict[str, Any]:
        X = feature_frame(task)
        out = {"response": np.asarray(self.model.predict(X)).ravel()}
        if self.predict_type == "se":
            out["se"] = self._predict_se(X)
        return out

    def _predict_se(self, X) -> np.ndarray:
        raise NotImplementedError


class LearnerRegrFeatureless(LearnerRegr):
    """Predicts the mean (or median) of the training target."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamFct("strategy", levels=["mean", "median"], default="mean"),
        ])
        super().__init__("regr.featureless", param_set, predict_types=("response", "se"),
                         properties=("weights", "featureless"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return DummyRegressor(**params)

    def _train(self, task: Task) -> Pipeline:
        pipe = super()._train(task)
        pipe.train_sd_ = float(np.std(task.truth(), ddof=1)) if task.nrow > 1 else np.nan
        return pipe

    def _predict_se(self, X) -> np.ndarray:
        return np.full(len(X), self.model.train_sd_)


class LearnerRegrRpart(LearnerRegr):
    """CART regression tree."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("max_depth", lower=1, upper=30, special_vals=[None]),
            ParamInt("min_samples_split", lower=2, default=2),
            ParamInt("min_samples_leaf", lower=1, default=1),
            ParamDbl("ccp_alpha", lower=0.0, default=0.0),
            ParamUty("random_state", special_vals=[None]),
        ])
        super().__init__("regr.rpart", param_set, properties=("weights", "importance"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return DecisionTreeRegressor(**params)


class LearnerRegrRanger(LearnerRegr):
    """Random forest; ``se`` is the standard deviation of the per-tree predictions."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("n_estimators", lower=1, default=100),
            ParamUty("max_features", default=1.0),
            ParamInt("max_depth", lower=1, special_vals=[None]),
            ParamInt("min_samples_leaf", lower=1, default=1),
            ParamLgl("bootstrap", default=True),
            ParamInt("n_jobs", lower=-1, default=1, special_vals=[None]),
            ParamUty("random_state", special_vals=[None]),
        ])
        super().__init__("regr.ranger", param_set, predict_types=("response", "se"),
                         properties=("weights", "importance"))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return RandomForestRegressor(**params)

    def _predict_se(self, X) -> np.ndarray:
        Xt = self._transform(X)
        per_tree = np.stack([tree.predict(Xt) for tree in self.model[-1].estimators_])
        return per_tree.std(axis=0)


class LearnerRegrLm(LearnerRegr):
    """Ordinary least squares."""

    def __init__(self, **values):
        param_set = ParamSet([
            ParamLgl("fit_intercept", default=True),
        ])
        super().__init__("regr.lm", param_set, predict_types=("response", "se"),
                         properties=("weights",))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return LinearRegression(**params)

    def _train(self, task: Task) -> Pipeline:
        pipe = super()._train(task)
        # covariance of the coefficients for the se of the fitted mean
        X = feature_frame(task)
        D = self._design_from(pipe, X)
        y = task.truth()
        resid = y - pipe.predict(X)
        dof = len(y) - np.linalg.matrix_rank(D)
        sigma2 = float(resid @ resid / dof) if dof > 0 else np.nan
        pipe.coef_cov_ = sigma2 * np.linalg.pinv(D.T @ D)
        return pipe

    def _design_from(self, pipe: Pipeline, X) -> np.ndarray:
        Xt = pipe[:-1].transform(X)
        if pipe[-1].fit_intercept:
            return np.column_stack([np.ones(len(Xt)), Xt])
        return Xt

    def _predict_se(self, X) -> np.ndarray:
        D = self._design_from(self.model, X)
        return np.sqrt(np.maximum(np.sum((D @ self.model.coef_cov_) * D, axis=1), 0.0))


class LearnerRegrRidge(LearnerRegr):
    """Ridge regression on standardized features."""
    scale = True

    def __init__(self, **values):
        param_set = ParamSet([
            ParamDbl("alpha", lower=0.0, default=1.0),
            ParamLgl("fit_intercept", default=True),
        ])
        super().__init__("regr.ridge", param_set, properties=("weights",))
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return Ridge(**params)


class LearnerRegrKM(LearnerRegr):
    """
    Gaussian process (kriging) regression.

    Default kernel: Matern(nu=3/2) + WhiteKernel(noise_level), fitted on
    standardized features with a normalized target.
    """
    scale = True

    def __init__(self, **values):
        param_set = ParamSet([
            ParamUty("kernel", special_vals=[None]),
            ParamDbl("alpha", lower=0.0, default=1e-10),
            ParamLgl("normalize_y", default=True),
            ParamInt("n_restarts_optimizer", lower=0, default=0),
            ParamDbl("noise_level", lower=0.0, default=1e-5, tags=["control"]),
            ParamUty("random_state", special_vals=[None]),
        ])
        super().__init__("regr.km", param_set, predict_types=("response", "se"))
        self.param_set.set_values(**values)

    def _estimator(self, kernel=None, normalize_y: bool = True, **params):
        if kernel is None:
            noise_level = self.param_set.values.get("noise_level", 1e-5)
            kernel = Matern(nu=3 / 2) + WhiteKernel(noise_level=noise_level)
        return GaussianProcessRegressor(kernel=kernel, normalize_y=normalize_y, **params)

    def _predict(self, task: Task) -> Dict[str, Any]:
        X = feature_frame(task)
        mean, std = self.model.predict(X, return_std=True)
        out = {"response": np.asarray(mean).ravel()}
        if self.predict_type == "se":
            out["se"] = np.asarray(std).ravel()
        return out


class LearnerRegrPlsr(LearnerRegr):
    """
    Partial least squares regression.

    With ``auto_adjust_components`` (default) the number of components is
    capped at min(n_samples, n_features) of the encoded training data.
    """

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("n_components", lower=1, default=2),
            ParamLgl("scale", default=True),
            ParamInt("max_iter", lower=1, default=500),
            ParamLgl("auto_adjust_components", default=True, tags=["control"]),
        ])
        super().__init__("regr.plsr", param_set)
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return PLSRegression(**params)

    def _train(self, task: Task) -> Pipeline:
        X = feature_frame(task)
        pipe = self._pipeline(X)
        Xt = pipe[:-1].fit_transform(X)
        n_samples, n_features = Xt.shape
        max_components = min(n_samples, n_features)
        pls = pipe[-1]
        if self.param_set.values.get("auto_adjust_components", True) and pls.n_components > max_components:
            pls.set_params(n_components=max(1, max_components))
        pls.fit(Xt, task.truth())
        return pipe


class LearnerRegrKKNN(LearnerRegr):
    """k-nearest neighbours regression on standardized features."""
    scale = True

    def __init__(self, **values):
        param_set = ParamSet([
            ParamInt("n_neighbors", lower=1, default=7),
            ParamFct("weights", levels=["uniform", "distance"], default="uniform"),
            ParamDbl("p", lower=1.0, default=2.0),
        ])
        super().__init__("regr.kknn", param_set)
        self.param_set.set_values(**values)

    def _estimator(self, **params):
        return KNeighborsRegressor(**params)


mlr_learners.add("regr.featureless", LearnerRegrFeatureless)
mlr_learners.add("regr.rpart", LearnerRegrRpart)
mlr_learners.add("regr.ranger", LearnerRegrRanger)
mlr_learners.add("regr.lm", LearnerRegrLm)
mlr_learners.add("regr.ridge", LearnerRegrRidge)
mlr_learners.add("regr.km", LearnerRegrKM)
mlr_learners.add("regr.plsr", LearnerRegrPlsr)
mlr_learners.add("regr.kknn", LearnerRegrKKNN)
