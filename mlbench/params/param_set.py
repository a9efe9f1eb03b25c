# @author: José Arbelaez
"""
Typed hyperparameter spaces.

A ParamSet describes the hyperparameters of a learner (domains, defaults,
current values) and doubles as a search space for tuning:

    - ParamDbl / ParamInt: bounded numeric parameters
    - ParamFct: one of a fixed set of levels (any hashable or object)
    - ParamLgl: booleans
    - ParamUty: untyped, optionally with a custom check

Search spaces are usually built with the ``ps``/``p_*`` helpers, or derived
from ``to_tune()`` tokens stored as learner parameter values.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import ParameterGrid

from ..exceptions import ParamError


class _NoDefault:
    def __repr__(self) -> str:
        return "<no default>"


NO_DEFAULT = _NoDefault()


# =============================================================================
# PARAMETERS
# =============================================================================

@dataclass
class Param:
    """
    Base class for a single hyperparameter.

    Attributes:
        id: Parameter name
        default: Default value (NO_DEFAULT if none)
        tags: Free-form tags, e.g. "train", "predict", "required"
        special_vals: Values accepted regardless of the domain (e.g. None)
        trafo: Optional transformation applied when used in a search space
    """
    id: Optional[str] = None
    default: Any = NO_DEFAULT
    tags: List[str] = field(default_factory=lambda: ["train"])
    special_vals: List[Any] = field(default_factory=list)
    trafo: Optional[Callable[[Any], Any]] = None

    kind = "uty"

    def check(self, value) -> None:
        """Raise ParamError if ``value`` is outside the domain."""
        if any(value is s or _safe_eq(value, s) for s in self.special_vals):
            return
        self._check(value)

    def _check(self, value) -> None:
        pass

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def is_number(self) -> bool:
        return False

    @property
    def is_bounded(self) -> bool:
        return False

    def grid_values(self, resolution: int) -> List[Any]:
        raise ParamError(f"Parameter '{self.id}' of type {self.kind} cannot be gridded")

    def sample(self, n: int, rng: np.random.Generator) -> List[Any]:
        raise ParamError(f"Parameter '{self.id}' of type {self.kind} cannot be sampled")

    def with_id(self, id: str) -> "Param":
        out = copy.copy(self)
        out.id = id
        return out


@dataclass
class ParamDbl(Param):
    lower: float = -np.inf
    upper: float = np.inf

    kind = "dbl"

    def _check(self, value) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
            raise ParamError(f"Parameter '{self.id}' must be numeric, got {value!r}")
        if np.isnan(value) or value < self.lower or value > self.upper:
            raise ParamError(
                f"Parameter '{self.id}' = {value!r} outside [{self.lower}, {self.upper}]"
            )

    @property
    def is_number(self) -> bool:
        return True

    @property
    def is_bounded(self) -> bool:
        return bool(np.isfinite(self.lower) and np.isfinite(self.upper))

    def grid_values(self, resolution: int) -> List[Any]:
        return [float(v) for v in np.linspace(self.lower, self.upper, resolution)]

    def sample(self, n: int, rng: np.random.Generator) -> List[Any]:
        return [float(v) for v in rng.uniform(self.lower, self.upper, size=n)]


@dataclass
class ParamInt(Param):
    lower: float = -np.inf
    upper: float = np.inf

    kind = "int"

    def _check(self, value) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            if not (isinstance(value, (float, np.floating)) and float(value).is_integer()):
                raise ParamError(f"Parameter '{self.id}' must be an integer, got {value!r}")
        if value < self.lower or value > self.upper:
            raise ParamError(
                f"Parameter '{self.id}' = {value!r} outside [{self.lower}, {self.upper}]"
            )

    @property
    def is_number(self) -> bool:
        return True

    @property
    def is_bounded(self) -> bool:
        return bool(np.isfinite(self.lower) and np.isfinite(self.upper))

    def grid_values(self, resolution: int) -> List[Any]:
        values = np.round(np.linspace(self.lower, self.upper, resolution))
        return [int(v) for v in np.unique(values)]

    def sample(self, n: int, rng: np.random.Generator) -> List[Any]:
        return [int(v) for v in rng.integers(int(self.lower), int(self.upper), size=n, endpoint=True)]


@dataclass
class ParamFct(Param):
    levels: List[Any] = field(default_factory=list)

    kind = "fct"

    def _check(self, value) -> None:
        if not any(value is lv or _safe_eq(value, lv) for lv in self.levels):
            raise ParamError(f"Parameter '{self.id}' = {value!r} not in levels {self.levels!r}")

    @property
    def is_bounded(self) -> bool:
        return True

    def grid_values(self, resolution: int) -> List[Any]:
        return list(self.levels)

    def sample(self, n: int, rng: np.random.Generator) -> List[Any]:
        idx = rng.integers(0, len(self.levels), size=n)
        return [self.levels[i] for i in idx]


@dataclass
class ParamLgl(Param):
    kind = "lgl"

    def _check(self, value) -> None:
        if not isinstance(value, (bool, np.bool_)):
            raise ParamError(f"Parameter '{self.id}' must be logical, got {value!r}")

    @property
    def is_bounded(self) -> bool:
        return True

    def grid_values(self, resolution: int) -> List[Any]:
        return [True, False]

    def sample(self, n: int, rng: np.random.Generator) -> List[Any]:
        return [bool(v) for v in rng.integers(0, 2, size=n)]


@dataclass
class ParamUty(Param):
    custom_check: Optional[Callable[[Any], bool]] = None

    def _check(self, value) -> None:
        if self.custom_check is not None and not self.custom_check(value):
            raise ParamError(f"Parameter '{self.id}' = {value!r} failed its check")


def _safe_eq(a, b) -> bool:
    try:
        return bool(a == b)
    except Exception:
        return False


# =============================================================================
# TUNE TOKENS
# =============================================================================

@dataclass
class TuneToken:
    """
    Placeholder stored as a learner parameter value to mark it for tuning.

    Created with ``to_tune()``. Converted to a search-space Param by
    ``ParamSet.search_space()``.
    """
    lower: Optional[float] = None
    upper: Optional[float] = None
    levels: Optional[List[Any]] = None
    logscale: bool = False

    def to_param(self, base: Param) -> Param:
        if self.levels is not None:
            return p_fct(self.levels).with_id(base.id)
        if isinstance(base, (ParamFct, ParamLgl)):
            return copy.copy(base)
        if not base.is_number:
            raise ParamError(f"Cannot tune parameter '{base.id}' without explicit levels")
        lower = base.lower if self.lower is None else self.lower
        upper = base.upper if self.upper is None else self.upper
        if isinstance(base, ParamInt):
            return p_int(lower, upper, logscale=self.logscale).with_id(base.id)
        return p_dbl(lower, upper, logscale=self.logscale).with_id(base.id)

    def __repr__(self) -> str:
        if self.levels is not None:
            return f"to_tune({self.levels!r})"
        return f"to_tune({self.lower}, {self.upper}, logscale={self.logscale})"


def to_tune(lower=None, upper=None, logscale: bool = False, levels=None) -> TuneToken:
    """
    Mark a learner hyperparameter for tuning.

    Example:
        >>> learner = lrn("classif.rpart", cp=to_tune(1e-4, 1e-1, logscale=True))
        >>> learner.param_set.search_space().ids()
        ['cp']
    """
    if isinstance(lower, (list, tuple)) and upper is None and levels is None:
        levels, lower = list(lower), None
    return TuneToken(lower=lower, upper=upper, levels=levels, logscale=logscale)


# =============================================================================
# SEARCH SPACE HELPERS
# =============================================================================

def _log_trafo(is_int: bool):
    if is_int:
        return lambda x: int(round(float(np.exp(x))))
    return lambda x: float(np.exp(x))


def p_dbl(lower: float = -np.inf, upper: float = np.inf, default: Any = NO_DEFAULT,
          logscale: bool = False, trafo: Optional[Callable] = None, **kwargs) -> ParamDbl:
    """Numeric search-space parameter; ``logscale`` searches log(lower)..log(upper)."""
    if logscale:
        if lower <= 0:
            raise ParamError("logscale requires a positive lower bound")
        return ParamDbl(lower=float(np.log(lower)), upper=float(np.log(upper)),
                        default=default, trafo=_log_trafo(False), **kwargs)
    return ParamDbl(lower=lower, upper=upper, default=default, trafo=trafo, **kwargs)


def p_int(lower: float = -np.inf, upper: float = np.inf, default: Any = NO_DEFAULT,
          logscale: bool = False, trafo: Optional[Callable] = None, **kwargs) -> Param:
    """Integer search-space parameter. On log scale it becomes a ParamDbl with rounding."""
    if logscale:
        if lower <= 0:
            raise ParamError("logscale requires a positive lower bound")
        return ParamDbl(lower=float(np.log(lower)), upper=float(np.log(upper)),
                        default=default, trafo=_log_trafo(True), **kwargs)
    return ParamInt(lower=lower, upper=upper, default=default, trafo=trafo, **kwargs)


def p_fct(levels: Iterable[Any], default: Any = NO_DEFAULT,
          trafo: Optional[Callable] = None, **kwargs) -> ParamFct:
    return ParamFct(levels=list(levels), default=default, trafo=trafo, **kwargs)


def p_lgl(default: Any = NO_DEFAULT, **kwargs) -> ParamLgl:
    return ParamLgl(default=default, **kwargs)


def p_uty(default: Any = NO_DEFAULT, custom_check: Optional[Callable] = None, **kwargs) -> ParamUty:
    return ParamUty(default=default, custom_check=custom_check, **kwargs)


def ps(extra_trafo: Optional[Callable[[dict], dict]] = None, **params: Param) -> "ParamSet":
    """
    Build a ParamSet from keyword arguments.

    Example:
        >>> space = ps(cp=p_dbl(1e-4, 1e-1, logscale=True), minsplit=p_int(2, 64))
    """
    return ParamSet([p.with_id(name) for name, p in params.items()], extra_trafo=extra_trafo)


# =============================================================================
# PARAM SET
# =============================================================================

class ParamSet:
    """
    Collection of parameters with current values.

    Values are validated on assignment; ``TuneToken`` values are accepted
    and later turned into a search space.
    """

    def __init__(self, params: Iterable[Param] = (), extra_trafo: Optional[Callable[[dict], dict]] = None):
        self.params: Dict[str, Param] = {}
        for p in params:
            if p.id is None:
                raise ParamError("Every parameter in a ParamSet needs an id")
            if p.id in self.params:
                raise ParamError(f"Duplicated parameter id '{p.id}'")
            self.params[p.id] = p
        self.extra_trafo = extra_trafo
        self._values: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def ids(self, kind: Optional[str] = None, tags: Optional[List[str]] = None) -> List[str]:
        out = []
        for pid, p in self.params.items():
            if kind is not None and p.kind != kind:
                continue
            if tags is not None and not set(tags) & set(p.tags):
                continue
            out.append(pid)
        return out

    @property
    def defaults(self) -> Dict[str, Any]:
        return {pid: p.default for pid, p in self.params.items() if p.has_default}

    @property
    def is_bounded(self) -> bool:
        return all(p.is_bounded for p in self.params.values())

    @property
    def has_trafo(self) -> bool:
        return self.extra_trafo is not None or any(p.trafo is not None for p in self.params.values())

    def __contains__(self, pid: str) -> bool:
        return pid in self.params

    def __len__(self) -> int:
        return len(self.params)

    def __getitem__(self, pid: str) -> Param:
        return self.params[pid]

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for pid, p in self.params.items():
            rows.append({
                "id": pid,
                "class": type(p).__name__,
                "lower": getattr(p, "lower", np.nan),
                "upper": getattr(p, "upper", np.nan),
                "levels": getattr(p, "levels", None),
                "default": p.default if p.has_default else None,
                "value": self._values.get(pid),
            })
        return pd.DataFrame(rows)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def set_values(self, **values) -> "ParamSet":
        """Validate and assign values; ``None`` removes a value."""
        for pid, value in values.items():
            if pid not in self.params:
                raise ParamError(f"Unknown parameter '{pid}'. Available: {', '.join(self.params)}")
            if value is None and None not in self.params[pid].special_vals:
                self._values.pop(pid, None)
                continue
            if not isinstance(value, TuneToken):
                self.params[pid].check(value)
            self._values[pid] = value
        return self

    def get_values(self, tags: Optional[List[str]] = None) -> Dict[str, Any]:
        """Current values, optionally restricted to params carrying one of ``tags``."""
        allowed = set(self.ids(tags=tags)) if tags is not None else set(self.params)
        return {k: v for k, v in self._values.items() if k in allowed}

    def check(self, xs: Dict[str, Any]) -> None:
        for pid, value in xs.items():
            if pid not in self.params:
                raise ParamError(f"Unknown parameter '{pid}'")
            self.params[pid].check(value)

    def subset(self, ids: List[str]) -> "ParamSet":
        out = ParamSet([self.params[i] for i in ids])
        out._values = {k: v for k, v in self._values.items() if k in ids}
        return out

    def clone(self) -> "ParamSet":
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Search space
    # ------------------------------------------------------------------

    def tune_tokens(self) -> Dict[str, TuneToken]:
        return {k: v for k, v in self._values.items() if isinstance(v, TuneToken)}

    def search_space(self) -> "ParamSet":
        """Build a search space from the ``to_tune()`` tokens among the values."""
        tokens = self.tune_tokens()
        return ParamSet([tok.to_param(self.params[pid]) for pid, tok in tokens.items()])

    def trafo(self, xs: Dict[str, Any]) -> Dict[str, Any]:
        """Map a point of the search space to learner parameter values."""
        out = {}
        for pid, value in xs.items():
            p = self.params.get(pid)
            out[pid] = p.trafo(value) if p is not None and p.trafo is not None else value
        if self.extra_trafo is not None:
            out = self.extra_trafo(out)
        return out

    def _require_bounded(self):
        unbounded = [pid for pid, p in self.params.items() if not p.is_bounded]
        if unbounded:
            raise ParamError(f"Search space is unbounded for: {', '.join(unbounded)}")

    def generate_design_grid(self, resolution: Optional[int] = None,
                             param_resolutions: Optional[Dict[str, int]] = None) -> pd.DataFrame:
        """
        Full factorial grid over the space.

        Args:
            resolution: Points per numeric parameter
            param_resolutions: Per-parameter override of ``resolution``

        Returns:
            DataFrame, one row per configuration, columns in parameter order
        """
        self._require_bounded()
        param_resolutions = param_resolutions or {}
        grid = {}
        for pid, p in self.params.items():
            res = param_resolutions.get(pid, resolution)
            if res is None and p.is_number:
                raise ParamError(f"No resolution given for numeric parameter '{pid}'")
            grid[pid] = p.grid_values(res)

        if not grid:
            return pd.DataFrame()

        rows = list(ParameterGrid({k: [(v,) for v in vals] for k, vals in grid.items()}))
        # ParameterGrid sorts keys; unwrap singletons and restore param order
        records = [{k: row[k][0] for k in self.params} for row in rows]
        return pd.DataFrame(records, columns=list(self.params))

    def generate_design_random(self, n: int, seed: Optional[int] = None,
                               rng: Optional[np.random.Generator] = None) -> pd.DataFrame:
        """Uniform random design of ``n`` points."""
        self._require_bounded()
        rng = rng if rng is not None else np.random.default_rng(seed)
        columns = {pid: p.sample(n, rng) for pid, p in self.params.items()}
        return pd.DataFrame(columns, columns=list(self.params))

    def __repr__(self) -> str:
        return f"<ParamSet ({len(self)} params): {', '.join(self.params)}>"
