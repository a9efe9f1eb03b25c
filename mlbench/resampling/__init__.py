"""
Resampling strategies. Importing this package registers them in ``mlr_resamplings``.
"""

from .base import Resampling
from .strategies import (
    ResamplingBootstrap,
    ResamplingCV,
    ResamplingCustom,
    ResamplingCustomCV,
    ResamplingHoldout,
    ResamplingInsample,
    ResamplingLOO,
    ResamplingRepeatedCV,
    ResamplingSubsampling,
)

__all__ = [
    "Resampling",
    "ResamplingBootstrap",
    "ResamplingCV",
    "ResamplingCustom",
    "ResamplingCustomCV",
    "ResamplingHoldout",
    "ResamplingInsample",
    "ResamplingLOO",
    "ResamplingRepeatedCV",
    "ResamplingSubsampling",
]
