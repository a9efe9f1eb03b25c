from .base import Learner
from .sklearn import LearnerSklearn, feature_frame, make_preprocessor, split_feature_columns
from .classif import (
    LearnerClassif,
    LearnerClassifFeatureless,
    LearnerClassifKKNN,
    LearnerClassifLogReg,
    LearnerClassifRanger,
    LearnerClassifRpart,
    LearnerClassifSVM,
)
from .regr import (
    LearnerRegr,
    LearnerRegrFeatureless,
    LearnerRegrKKNN,
    LearnerRegrKM,
    LearnerRegrLm,
    LearnerRegrPlsr,
    LearnerRegrRanger,
    LearnerRegrRidge,
    LearnerRegrRpart,
)
from .surv import CoxPHModel, LearnerSurvCoxPH, LearnerSurvKaplan

__all__ = [
    "Learner",
    "LearnerSklearn",
    "feature_frame",
    "make_preprocessor",
    "split_feature_columns",
    "LearnerClassif",
    "LearnerClassifFeatureless",
    "LearnerClassifKKNN",
    "LearnerClassifLogReg",
    "LearnerClassifRanger",
    "LearnerClassifRpart",
    "LearnerClassifSVM",
    "LearnerRegr",
    "LearnerRegrFeatureless",
    "LearnerRegrKKNN",
    "LearnerRegrKM",
    "LearnerRegrLm",
    "LearnerRegrPlsr",
    "LearnerRegrRanger",
    "LearnerRegrRidge",
    "LearnerRegrRpart",
    "CoxPHModel",
    "LearnerSurvCoxPH",
    "LearnerSurvKaplan",
]
