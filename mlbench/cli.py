#!/usr/bin/env python
# @author: José Arbelaez
"""
Command line interface for mlbench.

Usage:
    mlbench benchmark -t iris wine -l classif.featureless classif.rpart -r cv folds=5
    mlbench benchmark -t diabetes -l regr.featureless regr.ridge regr.km --n-jobs 4
    mlbench tune -t iris -l classif.rpart --outer cv folds=3 --inner holdout --n-evals 20
    mlbench list learners
    python -m mlbench --help

Example Output:
    Creates files in outputs/benchmarks/ (or --output-dir):
        - {session}_results.json: Full structured results
        - {session}_aggregate.csv: One row per task/learner/resampling
"""

import argparse
import ast
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from . import __version__
from .analysis import benchmark, benchmark_grid, resample, save_benchmark_result
from .configs.search_spaces import apply_search_space, list_search_spaces
from .configs.settings import ENCAPSULATION_MODES, get_settings, update_settings
from .predictions.prediction import DEFAULT_MEASURES
from .registry import (
    mlr_learners,
    mlr_measures,
    mlr_resamplings,
    mlr_task_generators,
    mlr_tasks,
    mlr_terminators,
    mlr_tuners,
)
from .sugar import lrn, lrns, msr, msrs, rsmp, tnr, trm, tsk, tsks
from .tuning import AutoTuner, TerminatorCombo, extract_inner_tuning_results
from .utils.log import setup_logging
from .utils.tools import slugify

logger = logging.getLogger(__name__)

REGISTRIES = {
    "tasks": mlr_tasks,
    "task-generators": mlr_task_generators,
    "learners": mlr_learners,
    "resamplings": mlr_resamplings,
    "measures": mlr_measures,
    "terminators": mlr_terminators,
    "tuners": mlr_tuners,
}


# =============================================================================
# ARGUMENT HELPERS
# =============================================================================

def _parse_value(text: str) -> Any:
    try:
        return ast.literal_eval(text)
    except (ValueError, SyntaxError):
        return text


def parse_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
    """
    Parse ``key=value`` strings into a dict; values are Python literals when possible.

    Example:
        >>> parse_key_values(["folds=3", "ratio=0.8", "method=mode"])
        {'folds': 3, 'ratio': 0.8, 'method': 'mode'}
    """
    out = {}
    for item in items or []:
        if "=" not in item:
            raise argparse.ArgumentTypeError(f"Expected key=value, got '{item}'")
        key, value = item.split("=", 1)
        out[key.strip()] = _parse_value(value.strip())
    return out


def _resampling_from(tokens: List[str]):
    key, params = tokens[0], parse_key_values(tokens[1:])
    return rsmp(key, **params)


def _session_name(prefix: str, output_name: Optional[str]) -> str:
    return slugify(output_name) if output_name else f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_benchmark(args) -> int:
    tasks = tsks(args.tasks)
    learners = lrns(args.learners)
    if args.predict_type:
        for learner in learners:
            learner.predict_type = args.predict_type
    resampling = _resampling_from(args.resampling)
    measures = msrs(args.measures) if args.measures else None

    print("=" * 70)
    print("BENCHMARK")
    print("=" * 70)
    print(f"\nTasks ({len(tasks)}): {[t.id for t in tasks]}")
    print(f"Learners ({len(learners)}): {[m.id for m in learners]}")
    print(f"Resampling: {resampling!r}")
    print(f"Seed: {args.seed}")
    print("=" * 70)

    design = benchmark_grid(tasks, learners, resampling, seed=args.seed)
    bmr = benchmark(design, store_models=args.store_models, n_jobs=args.n_jobs,
                    encapsulate=args.encapsulate)

    output_dir = save_benchmark_result(
        bmr,
        output_dir=args.output_dir,
        session_name=_session_name("benchmark", args.output_name),
        measures=measures,
    )

    print("\n--- Aggregated Performance ---")
    print(bmr.aggregate(measures).drop(columns=["uhash"]).to_string(index=False))
    print("\n--- Learner Ranking ---")
    print(bmr.rank_learners(measures[0] if measures else None))
    if len(bmr.errors):
        print(f"\n{len(bmr.errors)} iteration errors captured (see log)")
    print(f"\nResults saved to: {output_dir}")
    return 0


def cmd_tune(args) -> int:
    task = tsk(args.task)
    learner = apply_search_space(lrn(args.learner))
    measure = msr(args.measure) if args.measure else msr(DEFAULT_MEASURES[task.task_type])

    terminators = []
    if args.n_evals is not None:
        terminators.append(trm("evals", n_evals=args.n_evals))
    if args.run_time is not None:
        terminators.append(trm("run_time", secs=args.run_time))
    terminator = TerminatorCombo(terminators) if len(terminators) > 1 else (
        terminators[0] if terminators else trm("none"))

    tuner_params = {"seed": args.seed}
    if args.tuner == "grid_search":
        tuner_params["resolution"] = args.resolution
    tuner = tnr(args.tuner, **tuner_params)

    at = AutoTuner(learner, _resampling_from(args.inner), measure, terminator, tuner, seed=args.seed)

    print("=" * 70)
    print("NESTED RESAMPLING")
    print("=" * 70)
    print(f"\nTask: {task.id}")
    print(f"Learner: {learner.id} (search space: {learner.param_set.search_space().ids()})")
    print(f"Tuner: {tuner!r}")
    print(f"Terminator: {terminator!r}")
    print(f"Measure: {measure.id}")
    print("=" * 70)

    session = _session_name("tuning", args.output_name)
    rr = resample(task, at, _resampling_from(args.outer), store_models=False,
                  n_jobs=args.n_jobs, encapsulate=args.encapsulate, seed=args.seed)

    inner = extract_inner_tuning_results(rr)
    output_dir = save_benchmark_result(
        rr.as_benchmark_result(),
        output_dir=args.output_dir,
        session_name=session,
        measures=[measure],
    )
    inner.to_csv(Path(output_dir) / f"{session}_inner.csv", index=False)

    print("\n--- Outer Performance ---")
    print(rr.score([measure])[["iteration", measure.id]].to_string(index=False))
    print(f"\nAggregate {measure.id}: {rr.aggregate([measure])[measure.id]:.4f}")
    if not inner.empty:
        print("\n--- Inner Tuning Results ---")
        print(inner.drop(columns=["nr", "task_id", "learner_id", "resampling_id"]).to_string(index=False))
    print(f"\nResults saved to: {output_dir}")
    return 0


def cmd_list(args) -> int:
    kinds = list(REGISTRIES) + ["search-spaces"] if args.kind == "all" else [args.kind]
    for kind in kinds:
        keys = list_search_spaces() if kind == "search-spaces" else REGISTRIES[kind].keys()
        print(f"{kind} ({len(keys)}):")
        for key in keys:
            print(f"  {key}")
    return 0


# =============================================================================
# CLI
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mlbench",
        description="Benchmark and tune machine learning learners",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare two classifiers on two tasks with 5-fold CV
  mlbench benchmark -t iris wine -l classif.featureless classif.rpart -r cv folds=5

  # Regression learners in parallel
  mlbench benchmark -t diabetes -l regr.featureless regr.ridge regr.km --n-jobs 4

  # Nested resampling of a tuned decision tree
  mlbench tune -t iris -l classif.rpart --outer cv folds=3 --inner cv folds=3 --resolution 4

  # Available keys
  mlbench list all
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    settings = get_settings()

    def add_common(p: argparse.ArgumentParser):
        comp_group = p.add_argument_group("Computation")
        comp_group.add_argument("--n-jobs", type=int, default=settings.n_jobs,
                                help=f"Parallel jobs over resampling iterations (default: {settings.n_jobs})")
        comp_group.add_argument("--encapsulate", choices=ENCAPSULATION_MODES, default=settings.encapsulate,
                                help="'try' captures per-iteration errors, 'none' raises them "
                                     f"(default: {settings.encapsulate})")
        comp_group.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

        output_group = p.add_argument_group("Output")
        output_group.add_argument("--output-name", "-o", type=str, default=None,
                                  help="Session name prefix for output files (default: timestamped)")
        output_group.add_argument("--output-dir", type=Path, default=None,
                                  help="Output directory (default: {output_dir}/benchmarks)")
        output_group.add_argument("--log-level", type=str, default=settings.log_level,
                                  help=f"Logging level (default: {settings.log_level})")

    # benchmark
    bench = sub.add_parser("benchmark", help="Run a full factorial benchmark")
    data_group = bench.add_argument_group("Experiment")
    data_group.add_argument("--tasks", "-t", nargs="+", default=["iris"],
                            help="Task keys (default: iris)")
    data_group.add_argument("--learners", "-l", nargs="+",
                            default=["classif.featureless", "classif.rpart"],
                            help="Learner keys (default: classif.featureless classif.rpart)")
    data_group.add_argument("--resampling", "-r", nargs="+", default=["cv", "folds=3"],
                            help="Resampling key followed by key=value params (default: cv folds=3)")
    data_group.add_argument("--measures", "-m", nargs="+", default=None,
                            help="Measure keys (default: the task type's default measure)")
    data_group.add_argument("--predict-type", type=str, default=None,
                            help="Predict type set on every learner, e.g. prob or se")
    data_group.add_argument("--store-models", action="store_true", help="Keep fitted models")
    add_common(bench)
    bench.set_defaults(func=cmd_benchmark)

    # tune
    tune_p = sub.add_parser("tune", help="Nested resampling of a learner tuned on its default search space")
    exp_group = tune_p.add_argument_group("Experiment")
    exp_group.add_argument("--task", "-t", type=str, default="iris", help="Task key (default: iris)")
    exp_group.add_argument("--learner", "-l", type=str, default="classif.rpart",
                           help=f"Learner key with a default search space: {list_search_spaces()}")
    exp_group.add_argument("--outer", nargs="+", default=["cv", "folds=3"],
                           help="Outer resampling key and params (default: cv folds=3)")
    exp_group.add_argument("--inner", nargs="+", default=["cv", "folds=3"],
                           help="Inner resampling key and params (default: cv folds=3)")
    exp_group.add_argument("--measure", "-m", type=str, default=None,
                           help="Measure to optimize (default: the task type's default measure)")

    tuner_group = tune_p.add_argument_group("Tuning")
    tuner_group.add_argument("--tuner", choices=["grid_search", "random_search"], default="grid_search",
                             help="Search strategy (default: grid_search)")
    tuner_group.add_argument("--resolution", type=int, default=5,
                             help="Grid resolution for numeric parameters (default: 5)")
    tuner_group.add_argument("--n-evals", type=int, default=None,
                             help="Stop after this many configurations")
    tuner_group.add_argument("--run-time", type=float, default=None,
                             help="Stop after this many seconds")
    add_common(tune_p)
    tune_p.set_defaults(func=cmd_tune)

    # list
    list_p = sub.add_parser("list", help="List registered keys")
    list_p.add_argument("kind", nargs="?", default="all",
                        choices=["all", "search-spaces"] + list(REGISTRIES),
                        help="What to list (default: all)")
    list_p.set_defaults(func=cmd_list)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "tune" and args.tuner == "random_search" and args.n_evals is None and args.run_time is None:
        parser.error("random_search needs --n-evals or --run-time")

    if args.command != "list":
        update_settings(log_level=args.log_level)
        setup_logging(log_dir=Path(get_settings().output_dir) / "logs", name=args.command,
                      level=args.log_level)
        logger.info(f"mlbench {__version__}: {args.command}")

    pd.set_option("display.width", 140)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
