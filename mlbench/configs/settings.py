"""
Runtime settings for mlbench.

Defaults can be overridden through environment variables:

    MLBENCH_N_JOBS         parallel jobs for resample/benchmark (default 1)
    MLBENCH_ENCAPSULATE    "try" captures per-iteration errors, "none" raises
    MLBENCH_STORE_MODELS   keep fitted models in results ("1"/"true")
    MLBENCH_OUTPUT_DIR     root directory for reports and logs
    MLBENCH_LOG_LEVEL      logging level used by the CLI

Usage:
    from mlbench.configs.settings import get_settings
    n_jobs = get_settings().n_jobs
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from ..utils.paths import OUTPUTS_DIR

ENCAPSULATION_MODES = ("none", "try")


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    n_jobs: int = 1
    encapsulate: str = "try"
    store_models: bool = False
    output_dir: Path = field(default_factory=lambda: OUTPUTS_DIR)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.encapsulate not in ENCAPSULATION_MODES:
            raise ValueError(
                f"Unknown encapsulation '{self.encapsulate}'. "
                f"Available: {', '.join(ENCAPSULATION_MODES)}"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            n_jobs=int(os.environ.get("MLBENCH_N_JOBS", 1)),
            encapsulate=os.environ.get("MLBENCH_ENCAPSULATE", "try"),
            store_models=_env_bool("MLBENCH_STORE_MODELS", False),
            output_dir=Path(os.environ.get("MLBENCH_OUTPUT_DIR", OUTPUTS_DIR)),
            log_level=os.environ.get("MLBENCH_LOG_LEVEL", "INFO"),
        )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def update_settings(**changes) -> Settings:
    """Replace selected fields of the process-wide settings."""
    global _SETTINGS
    _SETTINGS = replace(get_settings(), **changes)
    return _SETTINGS


def reset_settings() -> None:
    global _SETTINGS
    _SETTINGS = None
