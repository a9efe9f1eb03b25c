"""
Execution of resampling and benchmark experiments and their results.
"""

from .results import BenchmarkResult, IterationRecord, ResampleResult
from .resample import resample
from .benchmark import benchmark, benchmark_grid
from .reporting import save_benchmark_result

__all__ = [
    "BenchmarkResult",
    "IterationRecord",
    "ResampleResult",
    "resample",
    "benchmark",
    "benchmark_grid",
    "save_benchmark_result",
]
