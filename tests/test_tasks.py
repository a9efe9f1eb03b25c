import numpy as np
import pandas as pd
import pytest

from mlbench import TaskClassif, TaskRegr, TaskSurv, tgen, tsk
from mlbench.exceptions import TaskError
from mlbench.tasks.sampling import get_sampler


def test_iris_basic_properties(iris):
    assert iris.task_type == "classif"
    assert iris.nrow == 150
    assert iris.target_names == ["Species"]
    assert len(iris.feature_names) == 4
    assert iris.class_names == ["setosa", "versicolor", "virginica"]
    assert "multiclass" in iris.properties


def test_binary_task_positive_class_first(binary_task):
    assert binary_task.class_names == ["pos", "neg"]
    assert binary_task.positive == "pos"
    assert binary_task.negative == "neg"
    assert "twoclass" in binary_task.properties


def test_filter_and_select_change_the_view_only(iris):
    backend_shape = iris.backend.shape
    iris.filter([0, 1, 2, 3]).select(["Petal.Length"])
    assert iris.nrow == 4
    assert iris.feature_names == ["Petal.Length"]
    assert list(iris.data().columns) == ["Species", "Petal.Length"]
    assert iris.backend.shape == backend_shape


def test_clone_has_independent_roles(iris):
    other = iris.clone()
    other.filter([0, 1])
    assert iris.nrow == 150
    assert other.nrow == 2
    assert other.backend is iris.backend


def test_validation_rows_leave_the_used_rows(iris):
    iris.set_row_roles([0, 1, 2], roles=["validation"])
    assert iris.nrow == 147
    assert 0 not in iris.row_ids
    assert iris.row_roles["validation"] == [0, 1, 2]
    # still addressable explicitly
    assert len(iris.data(rows=[0, 1])) == 2
    assert list(iris.truth(rows=[0])) == ["setosa"]


def test_head_and_missings(regr_task):
    assert len(regr_task.head(3)) == 3
    regr_task.backend.iloc[0, 1] = np.nan
    missings = regr_task.missings()
    assert missings.sum() == 1
    assert missings.index.tolist()[0] == regr_task.target_names[0]


def test_unknown_rows_and_columns_raise(iris):
    with pytest.raises(TaskError):
        iris.filter([1000])
    with pytest.raises(TaskError):
        iris.select(["not_a_feature"])


def test_duplicated_row_ids_rejected():
    df = pd.DataFrame({"x": [1.0, 2.0], "y": [1.0, 2.0]}, index=[0, 0])
    with pytest.raises(TaskError):
        TaskRegr("dup", df, target="y")


def test_regression_target_must_be_numeric():
    df = pd.DataFrame({"x": [1.0, 2.0], "y": ["a", "b"]})
    with pytest.raises(TaskError):
        TaskRegr("bad", df, target="y")


def test_set_col_roles_moves_feature_to_group(grouped_task):
    assert "g" not in grouped_task.feature_names
    assert "groups" in grouped_task.properties
    assert grouped_task.groups.nunique() == 6


def test_target_cannot_also_be_feature(regr_task):
    with pytest.raises(TaskError):
        regr_task.set_col_roles("y", add_to=["feature"])


def test_rbind_and_cbind(regr_task):
    new = pd.DataFrame({"x1": [0.0], "x2": [0.0], "y": [0.0]}, index=[500])
    regr_task.rbind(new)
    assert regr_task.nrow == 81
    extra = pd.DataFrame({"x3": np.arange(81.0)}, index=regr_task.backend.index)
    regr_task.cbind(extra)
    assert "x3" in regr_task.feature_names
    with pytest.raises(TaskError):
        regr_task.rbind(new)


def test_hash_tracks_roles(iris):
    h = iris.hash
    assert iris.clone().hash == h
    assert iris.clone().filter([0, 1]).hash != h


def test_survival_truth(small_surv_task):
    truth = small_surv_task.truth()
    assert truth.time.tolist() == [10.0, 8.0, 6.0, 5.0, 3.0, 1.0]
    assert truth.event.tolist() == [0, 1, 1, 0, 1, 1]
    assert small_surv_task.unique_event_times().tolist() == [1.0, 3.0, 6.0, 8.0]
    assert "right_censored" in small_surv_task.properties


def test_survival_event_must_be_binary():
    df = pd.DataFrame({"x": [1.0, 2.0], "time": [1.0, 2.0], "status": [0, 2]})
    with pytest.raises(TaskError):
        TaskSurv("bad", df)


def test_positive_class_only_for_binary(iris):
    with pytest.raises(TaskError):
        TaskClassif("iris2", iris.backend, target="Species", positive="setosa")


def test_generators_are_reproducible():
    a = tgen("friedman1", seed=11).generate(50)
    b = tgen("friedman1", seed=11).generate(50)
    pd.testing.assert_frame_equal(a.data(), b.data())
    assert a.task_type == "regr"
    assert a.nrow == 50


def test_function_generator_respects_bounds():
    task = tgen("branin", sampler="lhs", seed=2).generate(40)
    X = task.data(cols=task.feature_names)
    assert X["x1"].between(-5, 10).all()
    assert X["x2"].between(0, 15).all()


def test_classif_generators_have_two_classes():
    task = tgen("moons", seed=1).generate(100)
    assert task.task_type == "classif"
    assert len(task.class_names) == 2


def test_simsurv_generator(surv_task):
    truth = surv_task.truth()
    assert surv_task.nrow == 120
    assert set(np.unique(truth.event)) <= {0, 1}
    assert (truth.time > 0).all()


@pytest.mark.parametrize("name", ["sobol", "lhs", "random"])
def test_samplers_in_unit_cube(name):
    X = get_sampler(name, seed=0).sample(16, 3)
    assert X.shape == (16, 3)
    assert (X >= 0).all() and (X <= 1).all()


def test_builtin_regression_task():
    task = tsk("diabetes")
    assert task.task_type == "regr"
    assert task.truth().dtype == float
