# @author: José Arbelaez
"""
Tasks: a dataset plus the role metadata defining a learning problem.

A Task wraps a pandas DataFrame (the backend) whose index provides the row
ids. Column roles decide which columns are features, targets, grouping or
stratification variables; row roles decide which rows are used for
resampling. Changing roles only changes the view, the backend itself is
never copied.

Task types:
    - TaskClassif: categorical target
    - TaskRegr: numeric target
    - TaskSurv: right-censored survival target (time, event)
"""

from __future__ import annotations
import copy
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd

from ..exceptions import TaskError
from ..utils.tools import compute_hash

COL_ROLES = ("feature", "target", "name", "order", "stratum", "group", "weight")
ROW_ROLES = ("use", "validation")


class Surv(NamedTuple):
    """Right-censored survival outcome."""
    time: np.ndarray
    event: np.ndarray

    def __len__(self) -> int:
        return len(self.time)


def _as_list(x) -> list:
    if x is None:
        return []
    if isinstance(x, (str, int, np.integer)):
        return [x]
    return list(x)


class Task:
    """
    Labeled view on a DataFrame.

    Args:
        id: Task identifier
        backend: DataFrame holding the data; its index are the row ids
        target: Target column name(s)
        label: Optional human readable description

    Example:
        >>> task = TaskRegr("cars", df, target="mpg")
        >>> task.select(["hp", "wt"]).feature_names
        ['hp', 'wt']
    """
    task_type: str = None

    def __init__(self, id: str, backend: pd.DataFrame, target, label: Optional[str] = None):
        if not isinstance(backend, pd.DataFrame):
            raise TaskError(f"Task '{id}' needs a pandas DataFrame backend, got {type(backend).__name__}")
        if not backend.index.is_unique:
            raise TaskError(f"Task '{id}' has duplicated row ids")
        if not backend.columns.is_unique:
            raise TaskError(f"Task '{id}' has duplicated column names")

        target = _as_list(target)
        missing = [t for t in target if t not in backend.columns]
        if missing:
            raise TaskError(f"Target column(s) {missing} not found in backend of task '{id}'")

        self.id = id
        self.label = label
        self.backend = backend
        self.col_roles: Dict[str, List[str]] = {role: [] for role in COL_ROLES}
        self.col_roles["target"] = target
        self.col_roles["feature"] = [c for c in backend.columns if c not in target]
        self.row_roles: Dict[str, List[Any]] = {
            "use": list(backend.index),
            "validation": [],
        }
        self._backend_hash: Optional[str] = None

    # ------------------------------------------------------------------
    # Basic accessors
    # ------------------------------------------------------------------

    @property
    def row_ids(self) -> np.ndarray:
        return np.asarray(self.row_roles["use"])

    @property
    def nrow(self) -> int:
        return len(self.row_roles["use"])

    @property
    def ncol(self) -> int:
        return len(self.col_roles["feature"]) + len(self.col_roles["target"])

    @property
    def feature_names(self) -> List[str]:
        return list(self.col_roles["feature"])

    @property
    def target_names(self) -> List[str]:
        return list(self.col_roles["target"])

    @property
    def feature_types(self) -> Dict[str, str]:
        out = {}
        for col in self.col_roles["feature"]:
            s = self.backend[col]
            if pd.api.types.is_bool_dtype(s):
                out[col] = "logical"
            elif pd.api.types.is_integer_dtype(s):
                out[col] = "integer"
            elif pd.api.types.is_numeric_dtype(s):
                out[col] = "numeric"
            elif isinstance(s.dtype, pd.CategoricalDtype):
                out[col] = "factor"
            else:
                out[col] = "character"
        return out

    @property
    def properties(self) -> set:
        props = set()
        if self.col_roles["group"]:
            props.add("groups")
        if self.col_roles["stratum"]:
            props.add("strata")
        if self.col_roles["weight"]:
            props.add("weights")
        return props

    def _role_frame(self, role: str, rows=None) -> Optional[pd.DataFrame]:
        cols = self.col_roles[role]
        if not cols:
            return None
        rows = self.row_ids if rows is None else rows
        return self.backend.loc[rows, cols]

    @property
    def groups(self) -> Optional[pd.Series]:
        """Group of each used row, or None."""
        frame = self._role_frame("group")
        return None if frame is None else frame.iloc[:, 0]

    @property
    def strata(self) -> Optional[pd.DataFrame]:
        return self._role_frame("stratum")

    @property
    def weights(self) -> Optional[pd.Series]:
        frame = self._role_frame("weight")
        return None if frame is None else frame.iloc[:, 0].astype(float)

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    def _check_rows(self, rows) -> list:
        rows = _as_list(rows)
        unknown = pd.Index(rows).difference(self.backend.index)
        if len(unknown) > 0:
            raise TaskError(f"Unknown row ids in task '{self.id}': {list(unknown[:5])}")
        return rows

    def _check_cols(self, cols) -> list:
        cols = _as_list(cols)
        unknown = [c for c in cols if c not in self.backend.columns]
        if unknown:
            raise TaskError(f"Unknown columns in task '{self.id}': {unknown}")
        return cols

    def data(self, rows=None, cols=None) -> pd.DataFrame:
        """
        Return a copy of the selected rows and columns.

        Args:
            rows: Row ids (default: rows with role "use")
            cols: Columns (default: targets followed by features)
        """
        rows = self.row_ids if rows is None else self._check_rows(rows)
        cols = self.target_names + self.feature_names if cols is None else self._check_cols(cols)
        return self.backend.loc[rows, cols].copy()

    def truth(self, rows=None):
        rows = self.row_ids if rows is None else self._check_rows(rows)
        return self.backend.loc[rows, self.col_roles["target"][0]].to_numpy()

    def head(self, n: int = 6) -> pd.DataFrame:
        return self.data(rows=self.row_ids[:n])

    def missings(self, cols=None) -> pd.Series:
        """Number of missing values per column in the used rows."""
        return self.data(cols=cols).isna().sum()

    # ------------------------------------------------------------------
    # View mutation
    # ------------------------------------------------------------------

    def filter(self, rows) -> "Task":
        """Restrict the used rows to ``rows`` (in the given order)."""
        rows = self._check_rows(rows)
        self.row_roles["use"] = list(dict.fromkeys(rows))
        return self

    def select(self, cols) -> "Task":
        """Restrict the features to ``cols``."""
        cols = _as_list(cols)
        unknown = [c for c in cols if c not in self.col_roles["feature"]]
        if unknown:
            raise TaskError(f"Columns {unknown} are not features of task '{self.id}'")
        keep = set(cols)
        self.col_roles["feature"] = [c for c in self.col_roles["feature"] if c in keep]
        return self

    def set_col_roles(self, cols, roles: Optional[Sequence[str]] = None,
                      add_to: Optional[Sequence[str]] = None,
                      remove_from: Optional[Sequence[str]] = None) -> "Task":
        """
        Change the roles of columns.

        Args:
            cols: Column(s) to modify
            roles: If given, the columns lose all other roles and get exactly these
            add_to: Roles to add the columns to
            remove_from: Roles to remove the columns from
        """
        cols = self._check_cols(cols)
        self.col_roles = self._update_roles(self.col_roles, COL_ROLES, cols, roles, add_to, remove_from)
        self._validate_col_roles()
        return self

    def set_row_roles(self, rows, roles: Optional[Sequence[str]] = None,
                      add_to: Optional[Sequence[str]] = None,
                      remove_from: Optional[Sequence[str]] = None) -> "Task":
        """Change the roles of rows, e.g. move rows to "validation"."""
        rows = self._check_rows(rows)
        self.row_roles = self._update_roles(self.row_roles, ROW_ROLES, rows, roles, add_to, remove_from)
        return self

    @staticmethod
    def _update_roles(current, allowed, keys, roles, add_to, remove_from):
        for r in _as_list(roles) + _as_list(add_to) + _as_list(remove_from):
            if r not in allowed:
                raise TaskError(f"Unknown role '{r}'. Available: {', '.join(allowed)}")
        out = {r: list(v) for r, v in current.items()}
        keyset = set(keys)
        if roles is not None:
            for r in out:
                out[r] = [k for k in out[r] if k not in keyset]
            add_to = _as_list(roles)
        for r in _as_list(remove_from):
            out[r] = [k for k in out[r] if k not in keyset]
        for r in _as_list(add_to):
            present = set(out[r])
            out[r].extend(k for k in keys if k not in present)
        return out

    def _validate_col_roles(self):
        if not self.col_roles["target"]:
            raise TaskError(f"Task '{self.id}' needs at least one target column")
        overlap = set(self.col_roles["target"]) & set(self.col_roles["feature"])
        if overlap:
            raise TaskError(f"Columns {sorted(overlap)} cannot be target and feature at once")
        for role in ("group", "weight", "name"):
            if len(self.col_roles[role]) > 1:
                raise TaskError(f"At most one column may have role '{role}'")

    # ------------------------------------------------------------------
    # Data mutation
    # ------------------------------------------------------------------

    def rbind(self, data: pd.DataFrame) -> "Task":
        """Append rows; their ids must not collide with existing ones."""
        if data.index.isin(self.backend.index).any():
            raise TaskError(f"rbind would duplicate row ids of task '{self.id}'")
        self.backend = pd.concat([self.backend, data], axis=0)
        self.row_roles["use"].extend(data.index.tolist())
        self._backend_hash = None
        return self

    def cbind(self, data: pd.DataFrame) -> "Task":
        """Add feature columns, aligned on row ids."""
        clash = [c for c in data.columns if c in self.backend.columns]
        if clash:
            raise TaskError(f"cbind would duplicate columns {clash} of task '{self.id}'")
        self.backend = self.backend.join(data, how="left")
        self.col_roles["feature"].extend(data.columns.tolist())
        self._backend_hash = None
        return self

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def backend_hash(self) -> str:
        if self._backend_hash is None:
            digest = pd.util.hash_pandas_object(self.backend, index=True).sum()
            self._backend_hash = compute_hash(int(digest) % (2 ** 63), list(self.backend.columns))
        return self._backend_hash

    @property
    def hash(self) -> str:
        return compute_hash(type(self).__name__, self.id, self.backend_hash,
                            self.col_roles, self.row_roles)

    @property
    def row_hash(self) -> str:
        """Digest of the used row ids; identifies the rows a resampling splits."""
        return compute_hash(sorted(self.row_roles["use"], key=repr))

    def clone(self) -> "Task":
        """Copy of the task sharing the backend but with independent roles."""
        out = copy.copy(self)
        out.col_roles = copy.deepcopy(self.col_roles)
        out.row_roles = copy.deepcopy(self.row_roles)
        return out

    def __repr__(self) -> str:
        return (f"<{type(self).__name__}:{self.id}> ({self.nrow} x {self.ncol}) "
                f"target={self.target_names} features={len(self.feature_names)}")


class TaskClassif(Task):
    """
    Classification task.

    Args:
        positive: Positive class for binary problems (default: first class)
    """
    task_type = "classif"

    def __init__(self, id: str, backend: pd.DataFrame, target: str,
                 positive: Any = None, label: Optional[str] = None):
        super().__init__(id, backend, target, label=label)
        if len(self.col_roles["target"]) != 1:
            raise TaskError("Classification tasks need exactly one target column")
        self._positive = positive
        if positive is not None:
            if len(self.class_names) != 2:
                raise TaskError("Positive class can only be set for binary tasks")
            if positive not in self.class_names:
                raise TaskError(f"Positive class '{positive}' is not a class of task '{id}'")

    @property
    def class_names(self) -> List[Any]:
        """Classes of the target, positive class first for binary tasks."""
        col = self.backend[self.col_roles["target"][0]]
        if isinstance(col.dtype, pd.CategoricalDtype):
            classes = list(col.cat.categories)
        else:
            values = pd.unique(col.dropna()).tolist()
            try:
                classes = sorted(values)
            except TypeError:
                classes = sorted(values, key=str)
        if self._positive is not None and len(classes) == 2:
            classes = [self._positive] + [c for c in classes if c != self._positive]
        return classes

    @property
    def positive(self):
        classes = self.class_names
        return classes[0] if len(classes) == 2 else None

    @property
    def negative(self):
        classes = self.class_names
        return classes[1] if len(classes) == 2 else None

    @property
    def properties(self) -> set:
        props = super().properties
        props.add("twoclass" if len(self.class_names) == 2 else "multiclass")
        return props


class TaskRegr(Task):
    """Regression task with a single numeric target."""
    task_type = "regr"

    def __init__(self, id: str, backend: pd.DataFrame, target: str, label: Optional[str] = None):
        super().__init__(id, backend, target, label=label)
        if len(self.col_roles["target"]) != 1:
            raise TaskError("Regression tasks need exactly one target column")
        if not pd.api.types.is_numeric_dtype(backend[self.col_roles["target"][0]]):
            raise TaskError(f"Target of regression task '{id}' must be numeric")

    def truth(self, rows=None) -> np.ndarray:
        return super().truth(rows).astype(float)


class TaskSurv(Task):
    """
    Right-censored survival task.

    Args:
        time: Column with observed times
        event: Column with event indicator (1/True = event, 0/False = censored)
    """
    task_type = "surv"

    def __init__(self, id: str, backend: pd.DataFrame, time: str = "time",
                 event: str = "status", label: Optional[str] = None):
        super().__init__(id, backend, [time, event], label=label)
        if not pd.api.types.is_numeric_dtype(backend[time]):
            raise TaskError(f"Survival time column '{time}' must be numeric")
        values = set(pd.unique(backend[event].dropna()).tolist())
        if not values <= {0, 1, True, False}:
            raise TaskError(f"Event column '{event}' must be binary")

    def truth(self, rows=None) -> Surv:
        rows = self.row_ids if rows is None else self._check_rows(rows)
        time_col, event_col = self.col_roles["target"]
        frame = self.backend.loc[rows, [time_col, event_col]]
        return Surv(frame[time_col].to_numpy(dtype=float), frame[event_col].to_numpy(dtype=int))

    def unique_times(self, rows=None) -> np.ndarray:
        return np.unique(self.truth(rows).time)

    def unique_event_times(self, rows=None) -> np.ndarray:
        truth = self.truth(rows)
        return np.unique(truth.time[truth.event == 1])

    @property
    def properties(self) -> set:
        props = super().properties
        props.add("right_censored")
        return props
