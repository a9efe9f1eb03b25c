from .tools import _to_jsonable, slugify, compute_hash, format_params
from .log import setup_logging

__all__ = ["_to_jsonable", "slugify", "compute_hash", "format_params", "setup_logging"]
