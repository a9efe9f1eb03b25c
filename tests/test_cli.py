import argparse
import logging

import pandas as pd
import pytest

from mlbench.cli import build_parser, main, parse_key_values


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)


def test_parse_key_values():
    assert parse_key_values(["folds=3", "ratio=0.8", "method=mode"]) == {
        "folds": 3, "ratio": 0.8, "method": "mode"}
    assert parse_key_values(None) == {}
    with pytest.raises(argparse.ArgumentTypeError):
        parse_key_values(["folds"])


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: mlbench" in capsys.readouterr().out


def test_list_learners(capsys):
    assert main(["list", "learners"]) == 0
    out = capsys.readouterr().out
    assert "classif.rpart" in out
    assert "surv.coxph" in out
    assert "regr.mse" not in out


def test_list_all(capsys):
    main(["list"])
    out = capsys.readouterr().out
    for kind in ("tasks", "measures", "tuners", "search-spaces"):
        assert f"{kind} (" in out


def test_benchmark_command(tmp_path, capsys):
    code = main(["benchmark", "-t", "iris", "-l", "classif.featureless", "classif.rpart",
                 "-r", "cv", "folds=2", "-m", "classif.ce", "classif.acc",
                 "--output-dir", str(tmp_path), "-o", "bench"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Learner Ranking" in out
    agg = pd.read_csv(tmp_path / "bench_aggregate.csv")
    assert agg["learner_id"].tolist() == ["classif.featureless", "classif.rpart"]
    assert {"classif.ce", "classif.acc"} <= set(agg.columns)
    assert (tmp_path / "bench_results.json").exists()


def test_tune_command(tmp_path):
    code = main(["tune", "-t", "iris", "-l", "classif.log_reg", "--outer", "cv", "folds=2",
                 "--inner", "holdout", "--resolution", "3",
                 "--output-dir", str(tmp_path), "-o", "nested"])
    assert code == 0
    inner = pd.read_csv(tmp_path / "nested_inner.csv")
    assert len(inner) == 2
    assert "C" in inner.columns
    assert (tmp_path / "nested_aggregate.csv").exists()


def test_random_search_needs_a_budget():
    with pytest.raises(SystemExit):
        main(["tune", "--tuner", "random_search"])


def test_parser_defaults():
    args = build_parser().parse_args(["benchmark"])
    assert args.tasks == ["iris"]
    assert args.resampling == ["cv", "folds=3"]
    assert args.n_jobs == 1
