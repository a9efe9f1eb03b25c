# @author: José Arbelaez
"""
Persisting benchmark results.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from ..configs.settings import get_settings
from .results import BenchmarkResult

logger = logging.getLogger(__name__)


def save_benchmark_result(
    bmr: BenchmarkResult,
    output_dir: Optional[Path] = None,
    session_name: str = "benchmark",
    measures=None,
) -> Path:
    """
    Save benchmark results to files.

    Creates:
        - {session_name}_results.json: Full results (per-iteration scores,
          timings, warnings and errors)
        - {session_name}_aggregate.csv: One row per resample result

    Args:
        bmr: BenchmarkResult to save
        output_dir: Output directory (default: {settings.output_dir}/benchmarks)
        session_name: Name prefix for output files
        measures: Measures to report (default: the task type's default measure)

    Returns:
        Path to output directory
    """
    if output_dir is None:
        output_dir = Path(get_settings().output_dir) / "benchmarks"

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    # Save JSON
    json_path = output_dir / f"{session_name}_results.json"
    bmr.to_json(json_path, measures=measures)

    # Save aggregate CSV
    csv_path = output_dir / f"{session_name}_aggregate.csv"
    bmr.aggregate(measures).drop(columns=["uhash"]).to_csv(csv_path, index=False)

    logger.info(f"Results saved to: {output_dir}")
    logger.info(f"  - {json_path.name}")
    logger.info(f"  - {csv_path.name}")

    return output_dir
