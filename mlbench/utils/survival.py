import numpy as np


def kaplan_meier(time: np.ndarray, event: np.ndarray):
    """
    Kaplan-Meier estimate of the survival function.

    Args:
        time: Observed times
        event: 1 for events, 0 for censored observations

    Returns:
        (times, surv): distinct observed times and S(t) right after each of them
    """
    time = np.asarray(time, dtype=float)
    event = np.asarray(event, dtype=int)
    times = np.unique(time)
    if times.size == 0:
        return times, np.ones(0)

    # number at risk and number of events at each distinct time
    at_risk = np.array([np.sum(time >= t) for t in times], dtype=float)
    deaths = np.array([np.sum((time == t) & (event == 1)) for t in times], dtype=float)
    factors = np.where(at_risk > 0, 1.0 - deaths / np.maximum(at_risk, 1.0), 1.0)
    return times, np.cumprod(factors)


def step_eval(times: np.ndarray, values: np.ndarray, at: np.ndarray, before: float = 1.0) -> np.ndarray:
    """Evaluate a right-continuous step function defined on ``times`` at ``at``."""
    idx = np.searchsorted(times, np.asarray(at, dtype=float), side="right") - 1
    out = np.full(idx.shape, before, dtype=float)
    valid = idx >= 0
    out[valid] = values[idx[valid]]
    return out
