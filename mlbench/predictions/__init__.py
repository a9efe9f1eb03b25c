from .prediction import (
    DEFAULT_MEASURES,
    Prediction,
    PredictionClassif,
    PredictionRegr,
    PredictionSurv,
    survival_at,
)

__all__ = [
    "DEFAULT_MEASURES",
    "Prediction",
    "PredictionClassif",
    "PredictionRegr",
    "PredictionSurv",
    "survival_at",
]
