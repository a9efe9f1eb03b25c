"""
Survival measures: Harrell's concordance index and the integrated Graf
(Brier) score with inverse probability of censoring weights.
"""

from functools import partial

import numpy as np

from ..registry import mlr_measures
from ..utils.survival import kaplan_meier, step_eval
from .base import Measure, MeasureSimple


def harrell_cindex(time: np.ndarray, event: np.ndarray, crank: np.ndarray) -> float:
    """
    Harrell's C. A pair (i, j) is comparable when t_i < t_j and i had an
    event; it is concordant when crank_i > crank_j. Ties in crank count 1/2.
    """
    concordant = 0.0
    comparable = 0
    for i in np.flatnonzero(event == 1):
        later = time > time[i]
        n = int(np.sum(later))
        if n == 0:
            continue
        comparable += n
        concordant += np.sum(crank[i] > crank[later]) + 0.5 * np.sum(crank[i] == crank[later])
    if comparable == 0:
        return float("nan")
    return float(concordant / comparable)


def _cindex(prediction) -> float:
    return harrell_cindex(prediction.truth.time, prediction.truth.event, prediction.crank)


class MeasureSurvGraf(Measure):
    """
    Integrated Graf score.

    The censoring distribution G is estimated with Kaplan-Meier on the
    training rows when ``task`` and ``train_set`` are given, otherwise on
    the test rows. Scores are averaged over the distinct test times.
    """

    def __init__(self):
        super().__init__("surv.graf", "surv", predict_type="distr", minimize=True,
                         range=(0.0, np.inf), label="Integrated Graf Score")

    def _score(self, prediction, task=None, learner=None, train_set=None) -> float:
        time, event = prediction.truth.time, prediction.truth.event
        if task is not None and train_set is not None:
            cens_source = task.truth(train_set)
        else:
            cens_source = prediction.truth
        g_times, g_surv = kaplan_meier(cens_source.time, 1 - cens_source.event)

        grid = np.unique(time)
        surv = prediction.survival_at(grid)             # (n, len(grid))
        g_at_obs = step_eval(g_times, g_surv, time)     # G(t_i)
        g_at_grid = step_eval(g_times, g_surv, grid)    # G(t)

        scores = []
        for k, t in enumerate(grid):
            s = surv[:, k]
            died = (time <= t) & (event == 1)
            alive = time > t
            w_died = np.where(g_at_obs > 0, 1.0 / np.maximum(g_at_obs, 1e-12), 0.0)
            w_alive = 1.0 / g_at_grid[k] if g_at_grid[k] > 0 else 0.0
            loss = np.zeros_like(s)
            loss[died] = (s[died] ** 2) * w_died[died]
            loss[alive] = ((1.0 - s[alive]) ** 2) * w_alive
            scores.append(np.mean(loss))
        return float(np.mean(scores))


mlr_measures.add("surv.cindex", partial(
    MeasureSimple, "surv.cindex", "surv", _cindex, predict_type="crank", minimize=False,
    range=(0.0, 1.0), label="Harrell's C-index"))
mlr_measures.add("surv.graf", MeasureSurvGraf)
