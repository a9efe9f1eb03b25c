"""
Configuration module for mlbench.

Contains:
    - settings.py: Runtime settings (parallelism, encapsulation, output paths)
    - search_spaces.py: Default search spaces for the built-in learners
"""

from .settings import (
    ENCAPSULATION_MODES,
    Settings,
    get_settings,
    update_settings,
    reset_settings,
)
from .search_spaces import (
    DEFAULT_SEARCH_SPACES,
    get_search_space,
    apply_search_space,
    list_search_spaces,
)

__all__ = [
    "ENCAPSULATION_MODES",
    "Settings",
    "get_settings",
    "update_settings",
    "reset_settings",
    "DEFAULT_SEARCH_SPACES",
    "get_search_space",
    "apply_search_space",
    "list_search_spaces",
]
