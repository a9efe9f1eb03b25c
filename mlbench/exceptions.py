"""Exception hierarchy for mlbench.

All exceptions inherit from MlbenchError so callers can catch broadly
or narrowly as needed.
"""


class MlbenchError(Exception):
    """Base exception for all mlbench errors."""


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TaskError(MlbenchError):
    """Invalid task definition or role assignment."""


# ---------------------------------------------------------------------------
# Learners
# ---------------------------------------------------------------------------

class LearnerError(MlbenchError):
    """Learner misconfiguration or incompatible task."""


class LearnerTrainError(LearnerError):
    """Training a learner failed."""

    def __init__(self, learner_id: str, message: str):
        self.learner_id = learner_id
        super().__init__(f"[{learner_id}] training failed: {message}")


class LearnerPredictError(LearnerError):
    """Predicting with a learner failed."""

    def __init__(self, learner_id: str, message: str):
        self.learner_id = learner_id
        super().__init__(f"[{learner_id}] prediction failed: {message}")


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------

class ResamplingError(MlbenchError):
    """Invalid resampling configuration or task mismatch."""


class NotInstantiatedError(ResamplingError):
    """Resampling was used before being instantiated on a task."""

    def __init__(self, resampling_id: str):
        self.resampling_id = resampling_id
        super().__init__(f"Resampling '{resampling_id}' has not been instantiated")


# ---------------------------------------------------------------------------
# Measures and parameters
# ---------------------------------------------------------------------------

class MeasureError(MlbenchError):
    """Measure cannot be applied to the given prediction."""


class ParamError(MlbenchError):
    """Hyperparameter value violates its domain."""


# ---------------------------------------------------------------------------
# Tuning
# ---------------------------------------------------------------------------

class TuningError(MlbenchError):
    """Tuning instance misuse."""


class TerminatedError(TuningError):
    """Evaluation was requested after the terminator fired."""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class RegistryError(MlbenchError, KeyError):
    """Unknown key requested from a dictionary of objects."""

    def __init__(self, kind: str, key: str, available):
        self.kind = kind
        self.key = key
        available = ", ".join(sorted(available))
        super().__init__(f"Unknown {kind} '{key}'. Available: {available}")

    def __str__(self) -> str:
        return self.args[0]
