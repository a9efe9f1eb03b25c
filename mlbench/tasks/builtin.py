"""
Example tasks built from the datasets bundled with scikit-learn.

No download is needed; every call returns a fresh Task on a fresh DataFrame.
"""

import pandas as pd
from sklearn import datasets

from ..registry import mlr_tasks
from .task import TaskClassif, TaskRegr


def load_task_iris() -> TaskClassif:
    bunch = datasets.load_iris(as_frame=True)
    df = bunch.data.copy()
    df.columns = ["Sepal.Length", "Sepal.Width", "Petal.Length", "Petal.Width"]
    df["Species"] = pd.Categorical.from_codes(bunch.target, categories=list(bunch.target_names))
    return TaskClassif("iris", df, target="Species", label="Iris Flowers")


def load_task_wine() -> TaskClassif:
    bunch = datasets.load_wine(as_frame=True)
    df = bunch.data.copy()
    df["type"] = pd.Categorical.from_codes(bunch.target, categories=list(bunch.target_names))
    return TaskClassif("wine", df, target="type", label="Wine Cultivars")


def load_task_breast_cancer() -> TaskClassif:
    bunch = datasets.load_breast_cancer(as_frame=True)
    df = bunch.data.copy()
    df.columns = [c.replace(" ", "_") for c in df.columns]
    df["diagnosis"] = pd.Categorical.from_codes(bunch.target, categories=list(bunch.target_names))
    return TaskClassif("breast_cancer", df, target="diagnosis", positive="malignant",
                       label="Wisconsin Breast Cancer")


def load_task_diabetes() -> TaskRegr:
    bunch = datasets.load_diabetes(as_frame=True)
    df = bunch.data.copy()
    df["progression"] = bunch.target.astype(float)
    return TaskRegr("diabetes", df, target="progression", label="Diabetes Progression")


mlr_tasks.add("iris", load_task_iris)
mlr_tasks.add("wine", load_task_wine)
mlr_tasks.add("breast_cancer", load_task_breast_cancer)
mlr_tasks.add("diabetes", load_task_diabetes)
