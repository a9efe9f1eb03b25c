# @author: José Arbelaez
"""
Short constructors for registered objects.

    tsk("iris")                           task
    tgen("moons", n=200)                  task generator
    lrn("classif.rpart", max_depth=3)     learner with hyperparameter values
    rsmp("cv", folds=5)                   resampling
    msr("classif.ce")                     measure
    trm("evals", n_evals=20)              terminator
    tnr("grid_search", resolution=5)      tuner

Plural forms take a list of keys and share the keyword arguments.
"""

from typing import Iterable, List

from .registry import (
    mlr_learners,
    mlr_measures,
    mlr_resamplings,
    mlr_task_generators,
    mlr_tasks,
    mlr_terminators,
    mlr_tuners,
)

# Learner attributes that are not hyperparameters
_LEARNER_FIELDS = ("predict_type", "fallback", "encapsulate", "id")


def tsk(key: str, **kwargs):
    return mlr_tasks.get(key, **kwargs)


def tsks(keys: Iterable[str], **kwargs) -> List:
    return [tsk(k, **kwargs) for k in keys]


def tgen(key: str, **kwargs):
    return mlr_task_generators.get(key, **kwargs)


def lrn(key: str, **kwargs):
    """
    Construct a learner and set its hyperparameters.

    ``predict_type``, ``fallback``, ``encapsulate`` and ``id`` are set as
    learner attributes; every other keyword is a hyperparameter value.

    Example:
        >>> learner = lrn("classif.rpart", predict_type="prob", max_depth=to_tune(1, 10))
    """
    fields = {k: kwargs.pop(k) for k in _LEARNER_FIELDS if k in kwargs}
    learner = mlr_learners.get(key)
    if kwargs:
        learner.param_set.set_values(**kwargs)
    for name, value in fields.items():
        setattr(learner, name, value)
    return learner


def lrns(keys: Iterable[str], **kwargs) -> List:
    return [lrn(k, **kwargs) for k in keys]


def rsmp(key: str, **kwargs):
    return mlr_resamplings.get(key, **kwargs)


def rsmps(keys: Iterable[str], **kwargs) -> List:
    return [rsmp(k, **kwargs) for k in keys]


def msr(key: str, **kwargs):
    return mlr_measures.get(key, **kwargs)


def msrs(keys: Iterable[str], **kwargs) -> List:
    return [msr(k, **kwargs) for k in keys]


def trm(key: str, **kwargs):
    return mlr_terminators.get(key, **kwargs)


def tnr(key: str, **kwargs):
    return mlr_tuners.get(key, **kwargs)
