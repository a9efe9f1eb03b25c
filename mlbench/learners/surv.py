# @author: José Arbelaez
"""
Survival learners.

    surv.kaplan  Kaplan-Meier estimator (featureless)
    surv.coxph   Cox proportional hazards with a Breslow baseline hazard,
                 optionally ridge-penalized, fitted with scipy.optimize
"""

from __future__ import annotations
import warnings
from dataclasses import dataclass
from typing import Any, Dict

import numpy as np
import pandas as pd
from scipy.optimize import minimize
from sklearn.pipeline import Pipeline

from ..params import ParamDbl, ParamInt, ParamSet
from ..registry import mlr_learners
from ..tasks.task import Task
from ..utils.survival import kaplan_meier
from .base import Learner
from .sklearn import feature_frame, make_preprocessor


def restricted_mean(times: np.ndarray, surv: np.ndarray) -> float:
    """Area under a survival step function from 0 to the last time point."""
    if times.size == 0:
        return 0.0
    widths = np.diff(np.concatenate([[0.0], times]))
    levels = np.concatenate([[1.0], surv[:-1]])
    return float(np.sum(widths * levels))


class LearnerSurvKaplan(Learner):
    """Kaplan-Meier estimator; every observation gets the same survival curve."""

    def __init__(self, **values):
        super().__init__("surv.kaplan", "surv", ParamSet(), predict_types=("crank", "distr"),
                         properties=("missings", "featureless"), packages=("numpy",))
        self.param_set.set_values(**values)

    def _train(self, task: Task) -> Dict[str, np.ndarray]:
        truth = task.truth()
        times, surv = kaplan_meier(truth.time, truth.event)
        return {"times": times, "surv": surv}

    def _predict(self, task: Task) -> Dict[str, Any]:
        times, surv = self.model["times"], self.model["surv"]
        n = task.nrow
        rmst = restricted_mean(times, surv)
        return {
            "distr": pd.DataFrame(np.tile(surv, (n, 1)), columns=times),
            "response": np.full(n, rmst),
            "crank": np.full(n, -rmst),
        }


# =============================================================================
# COX PROPORTIONAL HAZARDS
# =============================================================================

@dataclass
class CoxPHModel:
    preprocessor: Pipeline
    coef: np.ndarray
    feature_names: list
    baseline_times: np.ndarray
    baseline_cumhaz: np.ndarray
    loglik: float
    converged: bool

    def summary(self) -> pd.DataFrame:
        return pd.DataFrame({"coef": self.coef, "exp(coef)": np.exp(self.coef)},
                            index=self.feature_names)


def cox_negloglik(beta: np.ndarray, X: np.ndarray, event: np.ndarray, first: np.ndarray,
                  penalizer: float = 0.0):
    """
    Negative Breslow partial log-likelihood and its gradient.

    Rows must be sorted by time; ``first[i]`` is the index of the first row
    whose time equals time[i], so that rows first[i]: form the risk set.
    """
    lp = X @ beta
    c = lp.max()
    w = np.exp(lp - c)
    risk = np.cumsum(w[::-1])[::-1][first]
    risk_x = np.cumsum((w[:, None] * X)[::-1], axis=0)[::-1][first]
    ev = event == 1
    loglik = np.sum(lp[ev] - np.log(risk[ev]) - c)
    grad = np.sum(X[ev] - risk_x[ev] / risk[ev][:, None], axis=0)
    value = -loglik + 0.5 * penalizer * float(beta @ beta)
    return value, -grad + penalizer * beta


def breslow_baseline(lp: np.ndarray, time: np.ndarray, event: np.ndarray):
    """Breslow estimate of the cumulative baseline hazard at the distinct event times."""
    event_times = np.unique(time[event == 1])
    w = np.exp(lp)
    increments = np.array([
        np.sum((time == t) & (event == 1)) / np.sum(w[time >= t]) for t in event_times
    ])
    return event_times, np.cumsum(increments)


class LearnerSurvCoxPH(Learner):
    """
    Cox proportional hazards model on standardized, one-hot encoded features.

    Predicts the linear predictor (``lp``, also used as ``crank``) and the
    survival distribution S(t | x) = exp(-H0(t) * exp(lp)).
    """

    def __init__(self, **values):
        param_set = ParamSet([
            ParamDbl("penalizer", lower=0.0, default=0.0),
            ParamInt("max_iter", lower=1, default=200),
            ParamDbl("tol", lower=0.0, default=1e-6),
        ])
        super().__init__("surv.coxph", "surv", param_set, predict_types=("crank", "lp", "distr"),
                         properties=("missings",), packages=("scipy", "scikit-learn"))
        self.param_set.set_values(**values)

    def _train(self, task: Task) -> CoxPHModel:
        params = self._param_values(tags=["train"])
        penalizer = params.get("penalizer", 0.0)
        truth = task.truth()
        if not np.any(truth.event == 1):
            raise ValueError("Cannot fit a Cox model without any observed event")

        X = feature_frame(task)
        preprocessor = Pipeline(make_preprocessor(X, scale=True))
        Xt = preprocessor.fit_transform(X)

        order = np.argsort(truth.time, kind="mergesort")
        Xs, time, event = Xt[order], truth.time[order], truth.event[order]
        first = np.searchsorted(time, time, side="left")

        res = minimize(cox_negloglik, np.zeros(Xs.shape[1]), args=(Xs, event, first, penalizer),
                       jac=True, method="L-BFGS-B",
                       options={"maxiter": params.get("max_iter", 200), "gtol": params.get("tol", 1e-6)})
        if not res.success:
            warnings.warn(f"Cox model did not converge: {res.message}", RuntimeWarning)

        times, cumhaz = breslow_baseline(Xs @ res.x, time, event)
        return CoxPHModel(
            preprocessor=preprocessor,
            coef=res.x,
            feature_names=list(preprocessor.get_feature_names_out()),
            baseline_times=times,
            baseline_cumhaz=cumhaz,
            loglik=float(-res.fun),
            converged=bool(res.success),
        )

    def _predict(self, task: Task) -> Dict[str, Any]:
        model = self.model
        lp = model.preprocessor.transform(feature_frame(task)) @ model.coef
        surv = np.exp(-np.outer(np.exp(lp), model.baseline_cumhaz))
        return {
            "lp": lp,
            "crank": lp,
            "distr": pd.DataFrame(surv, columns=model.baseline_times),
        }


mlr_learners.add("surv.kaplan", LearnerSurvKaplan)
mlr_learners.add("surv.coxph", LearnerSurvCoxPH)
