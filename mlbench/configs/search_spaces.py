# @author: José Arbelaez
"""
Default search spaces for the built-in learners.

Each entry maps learner parameter ids to ``to_tune()`` tokens, so a
learner with a default space can be tuned without writing one by hand.

Usage:
    from mlbench.configs.search_spaces import (
        get_search_space,
        apply_search_space,
        DEFAULT_SEARCH_SPACES,
    )

    # Learner with its default space marked for tuning
    learner = apply_search_space(lrn("classif.rpart"))

    # Tokens only
    tokens = get_search_space("regr.ridge")
"""

from typing import Any, Dict, List, Optional

from sklearn.gaussian_process.kernels import RBF, Matern, WhiteKernel

from ..params.param_set import TuneToken, to_tune


# DEFAULT SEARCH SPACES
# =============================================================================

DEFAULT_SEARCH_SPACES: Dict[str, Dict[str, TuneToken]] = {
    # CLASSIFICATION
    # -------------------------------------------------------------------------
    "classif.rpart": {
        "max_depth": to_tune(1, 20),
        "min_samples_leaf": to_tune(1, 30),
        "ccp_alpha": to_tune(1e-4, 0.1, logscale=True),
    },
    "classif.ranger": {
        "n_estimators": to_tune(50, 500),
        "min_samples_leaf": to_tune(1, 20),
        "max_features": to_tune(["sqrt", "log2", 0.5]),
    },
    "classif.log_reg": {
        "C": to_tune(1e-3, 1e3, logscale=True),
    },
    "classif.kknn": {
        "n_neighbors": to_tune(1, 50),
        "weights": to_tune(["uniform", "distance"]),
    },
    "classif.svm": {
        "C": to_tune(1e-3, 1e3, logscale=True),
        "gamma": to_tune(["scale", "auto"]),
        "kernel": to_tune(["linear", "rbf"]),
    },

    # REGRESSION
    # -------------------------------------------------------------------------
    "regr.rpart": {
        "max_depth": to_tune(1, 20),
        "min_samples_leaf": to_tune(1, 30),
        "ccp_alpha": to_tune(1e-4, 0.1, logscale=True),
    },
    "regr.ranger": {
        "n_estimators": to_tune(50, 500),
        "min_samples_leaf": to_tune(1, 20),
    },
    "regr.ridge": {
        "alpha": to_tune(0.01, 100.0, logscale=True),
    },
    "regr.km": {
        "kernel": to_tune([
            Matern(nu=1.5) + WhiteKernel(noise_level=1e-5),
            Matern(nu=2.5) + WhiteKernel(noise_level=1e-5),
            RBF() + WhiteKernel(noise_level=1e-5),
        ]),
        "alpha": to_tune([1e-10, 1e-8]),
    },
    "regr.plsr": {
        "n_components": to_tune(1, 5),
    },
    "regr.kknn": {
        "n_neighbors": to_tune(1, 50),
        "weights": to_tune(["uniform", "distance"]),
    },
    "regr.featureless": {
        "strategy": to_tune(["mean", "median"]),
    },

    # SURVIVAL
    # -------------------------------------------------------------------------
    "surv.coxph": {
        "penalizer": to_tune(1e-4, 10.0, logscale=True),
    },
}


# HELPER FUNCTIONS
# =============================================================================

def get_search_space(learner_id: str) -> Optional[Dict[str, TuneToken]]:
    """
    Get the default search space (parameter id -> to_tune token) of a learner.

    Args:
        learner_id: Learner key, e.g. "classif.rpart"

    Returns:
        Dictionary of tokens, or None if the learner has no default space
    """
    space = DEFAULT_SEARCH_SPACES.get(learner_id)
    return None if space is None else dict(space)


def apply_search_space(learner: Any, learner_id: Optional[str] = None) -> Any:
    """
    Mark the default search space of ``learner`` for tuning.

    Parameters the user already set to a concrete value are left alone.

    Raises:
        ValueError: the learner has no default search space
    """
    key = learner_id or learner.id
    space = get_search_space(key)
    if space is None:
        raise ValueError(
            f"No default search space for '{key}'. Available: {', '.join(list_search_spaces())}"
        )
    fixed = learner.param_set.values
    learner.param_set.set_values(**{k: v for k, v in space.items() if k not in fixed})
    return learner


def list_search_spaces() -> List[str]:
    """Return the learner ids that have a default search space."""
    return list(DEFAULT_SEARCH_SPACES.keys())
