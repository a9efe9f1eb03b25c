"""Shared fixtures for mlbench tests.

All tests use real scikit-learn datasets or seeded generators; nothing is
mocked. Fixtures return fresh objects so tests can mutate them freely.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from mlbench import TaskClassif, TaskRegr, TaskSurv, tgen, tsk
from mlbench.configs.settings import reset_settings, update_settings


@pytest.fixture(autouse=True)
def _clean_settings(tmp_path):
    """Sequential, encapsulated runs writing into a temporary output dir."""
    reset_settings()
    update_settings(n_jobs=1, encapsulate="try", store_models=False, output_dir=tmp_path)
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _quiet_logging():
    logging.getLogger("mlbench").setLevel(logging.WARNING)
    yield
    logging.getLogger("mlbench").setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@pytest.fixture
def iris():
    return tsk("iris")


@pytest.fixture
def binary_task():
    """Two well separated gaussian classes, 60 rows."""
    rng = np.random.default_rng(0)
    n = 30
    X = np.vstack([rng.normal(-2.0, 1.0, size=(n, 2)), rng.normal(2.0, 1.0, size=(n, 2))])
    df = pd.DataFrame(X, columns=["x1", "x2"])
    df["y"] = pd.Categorical(["neg"] * n + ["pos"] * n, categories=["neg", "pos"])
    return TaskClassif("blobs", df, target="y", positive="pos")


@pytest.fixture
def regr_task():
    """y = 3 * x1 - 2 * x2 + noise, 80 rows."""
    rng = np.random.default_rng(1)
    df = pd.DataFrame({"x1": rng.uniform(-1, 1, 80), "x2": rng.uniform(-1, 1, 80)})
    df["y"] = 3 * df["x1"] - 2 * df["x2"] + rng.normal(0, 0.1, 80)
    return TaskRegr("linear", df, target="y")


@pytest.fixture
def surv_task():
    return tgen("simsurv", seed=7).generate(120)


@pytest.fixture
def small_surv_task():
    """Hand-made survival data with known ordering."""
    df = pd.DataFrame({
        "x": [0.1, 0.5, 0.9, 1.3, 1.7, 2.1],
        "time": [10.0, 8.0, 6.0, 5.0, 3.0, 1.0],
        "status": [0, 1, 1, 0, 1, 1],
    })
    return TaskSurv("toy_surv", df, time="time", event="status")


@pytest.fixture
def grouped_task():
    """24 rows in 6 groups of 4."""
    rng = np.random.default_rng(3)
    df = pd.DataFrame({
        "x": rng.normal(size=24),
        "g": np.repeat(["a", "b", "c", "d", "e", "f"], 4),
    })
    df["y"] = df["x"] * 2 + rng.normal(0, 0.1, 24)
    task = TaskRegr("grouped", df, target="y")
    task.set_col_roles("g", roles=["group"])
    return task
