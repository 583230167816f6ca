"""GLM model classes."""

from .glm import (
    SUPPORTED_TASKS,
    BinaryClassifier,
    Coefficients,
    GeneralizedLinearModel,
    LinearRegressionModel,
    LogisticRegressionModel,
    PoissonRegressionModel,
    Regression,
    model_for_task,
)

__all__ = [
    "BinaryClassifier",
    "Coefficients",
    "GeneralizedLinearModel",
    "LinearRegressionModel",
    "LogisticRegressionModel",
    "PoissonRegressionModel",
    "Regression",
    "SUPPORTED_TASKS",
    "model_for_task",
]
