import hashlib
import re

import numpy as np
import pandas as pd


def _to_jsonable(obj):
    """
    Convert common non-JSON-serializable objects (numpy scalars, pandas
    frames, sets, etc.) into plain Python types. For unknown objects, fall
    back to repr(obj).
    """
    if obj is None:
        return None

    # numpy scalars
    if isinstance(obj, (np.generic,)):
        value = obj.item()
        if isinstance(value, float) and np.isnan(value):
            return None
        return value

    # numpy arrays
    if isinstance(obj, np.ndarray):
        return [_to_jsonable(v) for v in obj.tolist()]

    # pandas containers
    if isinstance(obj, pd.DataFrame):
        return [_to_jsonable(r) for r in obj.to_dict(orient="records")]
    if isinstance(obj, pd.Series):
        return _to_jsonable(obj.to_dict())

    # dict
    if isinstance(obj, dict):
        # keys to str, values recursively
        return {str(k): _to_jsonable(v) for k, v in obj.items()}

    # list/tuple
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]

    # set
    if isinstance(obj, set):
        return sorted([_to_jsonable(v) for v in obj], key=repr)

    # NaN is not valid JSON
    if isinstance(obj, float) and np.isnan(obj):
        return None

    # plain python numeric / bool / str
    if isinstance(obj, (int, float, bool, str)):
        return obj

    # fallback for estimators / kernels / objects
    return repr(obj)


def slugify(text: str) -> str:
    """Lowercase ``text`` and replace anything non-alphanumeric by underscores."""
    text = re.sub(r"[^0-9a-zA-Z]+", "_", str(text)).strip("_")
    return text.lower()


def compute_hash(*parts) -> str:
    """Short stable digest of the repr of ``parts``."""
    h = hashlib.sha1()
    for p in parts:
        h.update(repr(_to_jsonable(p)).encode("utf-8"))
        h.update(b"|")
    return h.hexdigest()[:16]


def format_params(params: dict) -> str:
    """Compact ``k=v`` rendering used in ids and log lines."""
    return ", ".join(f"{k}={v!r}" for k, v in sorted(params.items()))
