# @author: José Arbelaez
"""
Base class for learners.

All learners inherit from Learner and must implement:
    - _train(task): Fit and return the model
    - _predict(task): Return a dict of predict-type outputs for the task rows

Learner.train / Learner.predict add the shared bookkeeping around them:
task compatibility checks, timing, warning capture, error encapsulation
and fallback predictions.
"""

from __future__ import annotations
import copy
import logging
import time
import warnings
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..exceptions import LearnerError, LearnerPredictError, LearnerTrainError
from ..params import ParamSet
from ..predictions import Prediction, PredictionClassif, PredictionRegr, PredictionSurv
from ..tasks.task import Task, TaskClassif, TaskRegr, TaskSurv
from ..utils.tools import compute_hash

logger = logging.getLogger(__name__)

_TASK_CLASSES = {"classif": TaskClassif, "regr": TaskRegr, "surv": TaskSurv}


class Learner(ABC):
    """
    Abstract base class for learners.

    Provides a consistent interface for:
        - Training (train) on all or a subset of the rows of a task
        - Predicting (predict, predict_newdata) into Prediction objects
        - Hyperparameters (param_set) and their search spaces
        - Encapsulation: with encapsulate="try" errors are logged in the
          learner state instead of raised, and the fallback learner (if any)
          provides the predictions

    Example:
        >>> learner = lrn("classif.rpart", max_depth=3)
        >>> learner.train(task, row_ids=train_ids)
        >>> prediction = learner.predict(task, row_ids=test_ids)
    """

    def __init__(self, id: str, task_type: str, param_set: Optional[ParamSet] = None,
                 predict_types: Iterable[str] = ("response",), predict_type: Optional[str] = None,
                 properties: Iterable[str] = (), packages: Iterable[str] = (),
                 label: Optional[str] = None):
        self.id = id
        self.task_type = task_type
        self.param_set = param_set if param_set is not None else ParamSet()
        self.predict_types = list(predict_types)
        self._predict_type = None
        self.predict_type = predict_type or self.predict_types[0]
        self.properties = set(properties)
        self.packages = list(packages)
        self.label = label or id
        self.state: Optional[Dict[str, Any]] = None
        self.fallback: Optional["Learner"] = None
        self.encapsulate = "none"

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    def _train(self, task: Task) -> Any:
        """Fit on all used rows of ``task`` and return the model."""
        pass

    @abstractmethod
    def _predict(self, task: Task) -> Dict[str, Any]:
        """Predict the used rows of ``task``; keys are predict types."""
        pass

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def predict_type(self) -> str:
        return self._predict_type

    @predict_type.setter
    def predict_type(self, value: str):
        if value not in self.predict_types:
            raise LearnerError(
                f"Learner '{self.id}' does not support predict type '{value}'. "
                f"Available: {', '.join(self.predict_types)}"
            )
        self._predict_type = value

    def set_values(self, **values) -> "Learner":
        self.param_set.set_values(**values)
        return self

    def _param_values(self, tags: Optional[List[str]] = None) -> Dict[str, Any]:
        tokens = self.param_set.tune_tokens()
        if tokens:
            raise LearnerError(
                f"Learner '{self.id}' still has parameters marked for tuning: {', '.join(tokens)}"
            )
        return self.param_set.get_values(tags=tags)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_trained(self) -> bool:
        return self.state is not None

    @property
    def model(self) -> Any:
        return None if self.state is None else self.state.get("model")

    @property
    def timings(self) -> Dict[str, Optional[float]]:
        if self.state is None:
            return {"train": None, "predict": None}
        return {"train": self.state.get("train_time"), "predict": self.state.get("predict_time")}

    @property
    def log(self) -> pd.DataFrame:
        rows = [] if self.state is None else self.state.get("log", [])
        return pd.DataFrame(rows, columns=["stage", "class", "msg"])

    @property
    def warnings(self) -> List[str]:
        return [r["msg"] for r in (self.state or {}).get("log", []) if r["class"] == "warning"]

    @property
    def errors(self) -> List[str]:
        return [r["msg"] for r in (self.state or {}).get("log", []) if r["class"] == "error"]

    def reset(self) -> "Learner":
        self.state = None
        if self.fallback is not None:
            self.fallback.reset()
        return self

    def clone(self) -> "Learner":
        return copy.deepcopy(self)

    def discard_model(self) -> "Learner":
        """Drop fitted models but keep the log and timings."""
        if self.state is not None:
            self.state["model"] = None
        if self.fallback is not None:
            self.fallback.discard_model()
        return self

    @property
    def hash(self) -> str:
        return compute_hash(type(self).__name__, self.id, self.predict_type,
                            self.param_set.values,
                            None if self.fallback is None else self.fallback.hash)

    # ------------------------------------------------------------------
    # Train / predict
    # ------------------------------------------------------------------

    def _check_task(self, task: Task):
        if task.task_type != self.task_type:
            raise LearnerError(
                f"Learner '{self.id}' is for '{self.task_type}' tasks, got '{task.task_type}'"
            )
        for prop in ("twoclass", "multiclass"):
            if prop in task.properties and prop not in self.properties:
                raise LearnerError(f"Learner '{self.id}' does not support {prop} tasks")

    def _log(self, stage: str, cls: str, msg: str):
        self.state["log"].append({"stage": stage, "class": cls, "msg": msg})
        if cls == "error":
            logger.error(f"[{self.id}] {stage}: {msg}")
        else:
            logger.warning(f"[{self.id}] {stage}: {msg}")

    def _call(self, stage: str, fn, task: Task):
        """
        Run ``fn(task)`` and log its warnings, also those emitted before a
        failure. Errors are raised under encapsulate="none", logged otherwise.
        """
        out, error = None, None
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            try:
                out = fn(task)
            except Exception as e:
                error = e
        for warning in w:
            self._log(stage, "warning", f"{warning.category.__name__}: {warning.message}")
        if error is not None:
            if self.encapsulate == "none":
                error_cls = LearnerTrainError if stage == "train" else LearnerPredictError
                raise error_cls(self.id, str(error)) from error
            self._log(stage, "error", f"{type(error).__name__}: {error}")
        return out

    def train(self, task: Task, row_ids=None) -> "Learner":
        """
        Train the learner on ``task``.

        Args:
            task: Task to train on
            row_ids: Subset of rows to use (default: all rows with role "use")

        Returns:
            self, with ``state`` populated
        """
        self._check_task(task)
        if row_ids is not None:
            # duplicated ids (bootstrap) are kept
            task = task.clone()
            task.row_roles["use"] = task._check_rows(row_ids)

        self.state = {
            "model": None,
            "log": [],
            "train_time": None,
            "predict_time": None,
            "task_type": task.task_type,
            "target_names": task.target_names,
            "feature_names": task.feature_names,
            "class_names": task.class_names if isinstance(task, TaskClassif) else None,
            "train_task_hash": task.hash,
        }

        t0 = time.perf_counter()
        self.state["model"] = self._call("train", self._train, task)
        self.state["train_time"] = time.perf_counter() - t0

        if self.fallback is not None:
            self.fallback.encapsulate = "try"
            self.fallback.train(task)

        return self

    def predict(self, task: Task, row_ids=None) -> Optional[Prediction]:
        """
        Predict the rows of ``task``.

        Returns:
            A Prediction, or None when training failed under encapsulation
            and no fallback learner is set.
        """
        if self.state is None:
            raise LearnerError(f"Learner '{self.id}' has not been trained yet")
        self._check_task(task)
        if row_ids is not None:
            task = task.clone().filter(row_ids)

        out = None
        t0 = time.perf_counter()
        if self.state["model"] is not None:
            out = self._call("predict", self._predict, task)
        elif not self.errors:
            raise LearnerError(f"Learner '{self.id}' has no model (was it discarded?)")
        self.state["predict_time"] = time.perf_counter() - t0

        if out is None:
            if self.fallback is None or self.fallback.state is None:
                return None
            self._log("predict", "warning", f"Using fallback learner '{self.fallback.id}'")
            return self.fallback.predict(task)

        return self._new_prediction(task, out)

    def predict_newdata(self, newdata: pd.DataFrame, task: Optional[Task] = None) -> Optional[Prediction]:
        """
        Predict rows of a DataFrame that is not part of a task.

        Target columns missing from ``newdata`` are added as missing values
        (censored at an unknown time for survival tasks).
        """
        if self.state is None:
            raise LearnerError(f"Learner '{self.id}' has not been trained yet")
        targets = task.target_names if task is not None else self.state["target_names"]
        df = newdata.copy()
        for i, col in enumerate(targets):
            if col not in df.columns:
                df[col] = 0 if (self.task_type == "surv" and i == 1) else np.nan
        if self.task_type == "surv":
            task = TaskSurv("newdata", df, time=targets[0], event=targets[1])
        else:
            task = _TASK_CLASSES[self.task_type]("newdata", df, target=targets[0])
        task.select([c for c in self.state["feature_names"] if c in df.columns])
        return self.predict(task)

    def _new_prediction(self, task: Task, out: Dict[str, Any]) -> Prediction:
        row_ids = task.row_ids
        if self.task_type == "classif":
            prob = out.get("prob") if self.predict_type == "prob" else None
            return PredictionClassif(row_ids, task.truth(), response=out.get("response"),
                                     prob=prob, class_names=self.state["class_names"])
        if self.task_type == "regr":
            se = out.get("se") if self.predict_type == "se" else None
            return PredictionRegr(row_ids, task.truth(), response=out.get("response"), se=se)
        if self.task_type == "surv":
            return PredictionSurv(row_ids, task.truth(), crank=out.get("crank"), lp=out.get("lp"),
                                  distr=out.get("distr"), response=out.get("response"))
        raise LearnerError(f"Unknown task type '{self.task_type}'")

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self.param_set.values.items())
        status = "trained" if self.is_trained else "untrained"
        return f"<{type(self).__name__}:{self.id}> ({status}) predict_type={self.predict_type} [{values}]"
