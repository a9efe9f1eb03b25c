# @author: José Arbelaez
"""
Learners backed by scikit-learn estimators.

Every fitted model is a Pipeline:

    encode  -> ColumnTransformer (median imputation for numeric columns,
               most-frequent imputation + one-hot encoding for the rest)
    scaler  -> StandardScaler (only for scale-sensitive estimators)
    model   -> the wrapped estimator
"""

from __future__ import annotations
from abc import abstractmethod
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from ..tasks.task import Task
from .base import Learner


def split_feature_columns(X: pd.DataFrame):
    """Return (numeric, categorical) column names; booleans count as categorical."""
    numeric, categorical = [], []
    for col in X.columns:
        s = X[col]
        if pd.api.types.is_numeric_dtype(s) and not pd.api.types.is_bool_dtype(s):
            numeric.append(col)
        else:
            categorical.append(col)
    return numeric, categorical


def feature_frame(task: Task) -> pd.DataFrame:
    """Feature columns of the task, non-numeric ones as object with NaN for missing."""
    X = task.data(cols=task.feature_names)
    _, categorical = split_feature_columns(X)
    for col in categorical:
        values = X[col].astype(object)
        X[col] = values.where(values.notna(), np.nan)
    return X


def make_preprocessor(X: pd.DataFrame, scale: bool = False) -> List[tuple]:
    """Pipeline steps turning a feature frame into a dense numeric matrix."""
    numeric, categorical = split_feature_columns(X)
    transformers = []
    if numeric:
        transformers.append(("num", SimpleImputer(strategy="median"), numeric))
    if categorical:
        transformers.append(("cat", Pipeline([
            ("impute", SimpleImputer(strategy="most_frequent")),
            ("onehot", OneHotEncoder(handle_unknown="ignore", sparse_output=False)),
        ]), categorical))
    steps = [("encode", ColumnTransformer(transformers, remainder="drop"))]
    if scale:
        steps.append(("scaler", StandardScaler()))
    return steps


class LearnerSklearn(Learner):
    """
    Learner wrapping a scikit-learn estimator in a preprocessing Pipeline.

    Subclasses implement ``_estimator(**params)``; parameter values tagged
    "train" are passed to it as keyword arguments.
    """
    scale: bool = False

    def __init__(self, id: str, task_type: str, param_set, **kwargs):
        kwargs.setdefault("properties", ())
        kwargs["properties"] = set(kwargs["properties"]) | {"missings"}
        kwargs.setdefault("packages", ("scikit-learn",))
        super().__init__(id, task_type, param_set, **kwargs)

    @abstractmethod
    def _estimator(self, **params) -> Any:
        pass

    def _pipeline(self, X: pd.DataFrame) -> Pipeline:
        params = self._param_values(tags=["train"])
        return Pipeline(make_preprocessor(X, scale=self.scale) + [("model", self._estimator(**params))])

    def _fit_kwargs(self, task: Task) -> Dict[str, Any]:
        if "weights" in task.properties:
            if "weights" in self.properties:
                return {"model__sample_weight": task.weights.to_numpy(dtype=float)}
            self._log("train", "warning", "Task has weights but learner ignores them")
        return {}

    def _train(self, task: Task) -> Pipeline:
        X = feature_frame(task)
        pipe = self._pipeline(X)
        pipe.fit(X, task.truth(), **self._fit_kwargs(task))
        return pipe

    def _transform(self, X: pd.DataFrame) -> np.ndarray:
        return self.model[:-1].transform(X)

    def importance(self) -> pd.Series:
        """Impurity based feature importance on the encoded features."""
        estimator = self.model[-1] if self.model is not None else None
        if estimator is None or not hasattr(estimator, "feature_importances_"):
            raise NotImplementedError(f"Learner '{self.id}' does not provide importance scores")
        names = self.model[:-1].get_feature_names_out()
        return pd.Series(estimator.feature_importances_, index=names).sort_values(ascending=False)
