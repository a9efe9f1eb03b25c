"""
Tasks, example datasets and task generators.
"""

from .task import (
    COL_ROLES,
    ROW_ROLES,
    Surv,
    Task,
    TaskClassif,
    TaskRegr,
    TaskSurv,
)
from .builtin import (
    load_task_iris,
    load_task_wine,
    load_task_breast_cancer,
    load_task_diabetes,
)
from .generators import (
    TaskGenerator,
    TaskGeneratorMoons,
    TaskGeneratorCircle,
    TaskGenerator2DNormals,
    TaskGeneratorXor,
    TaskGeneratorFriedman1,
    TaskGeneratorFunction,
    TaskGeneratorSimsurv,
)

__all__ = [
    "COL_ROLES",
    "ROW_ROLES",
    "Surv",
    "Task",
    "TaskClassif",
    "TaskRegr",
    "TaskSurv",
    "load_task_iris",
    "load_task_wine",
    "load_task_breast_cancer",
    "load_task_diabetes",
    "TaskGenerator",
    "TaskGeneratorMoons",
    "TaskGeneratorCircle",
    "TaskGenerator2DNormals",
    "TaskGeneratorXor",
    "TaskGeneratorFriedman1",
    "TaskGeneratorFunction",
    "TaskGeneratorSimsurv",
]
