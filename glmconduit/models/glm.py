"""Generalized linear models and their capability tags."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import sparse

from ..function.glm_loss import sigmoid


def _dense_vector(values) -> np.ndarray:
    if sparse.issparse(values):
        values = values.toarray()
    out = np.array(values, dtype=float).reshape(-1)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class Coefficients:
    """
    Means (and optional variances) of a coefficient distribution.

    Sparse vectors are accepted and stored densely; absent entries are zeros.
    """

    means: np.ndarray
    variances: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        means = _dense_vector(self.means)
        object.__setattr__(self, "means", means)
        if self.variances is not None:
            variances = _dense_vector(self.variances)
            if variances.shape != means.shape:
                raise ValueError("variances must have the same shape as means")
            object.__setattr__(self, "variances", variances)

    def __len__(self) -> int:
        return int(self.means.shape[0])


class GeneralizedLinearModel(ABC):
    """Linear margin ``x . beta + offset`` followed by an inverse link."""

    def __init__(self, coefficients: Coefficients | np.ndarray) -> None:
        if not isinstance(coefficients, Coefficients):
            coefficients = Coefficients(coefficients)
        self.coefficients = coefficients

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_coefficients={len(self.coefficients)})"

    def compute_margin(self, features, offset: float = 0.0) -> float:
        if sparse.issparse(features):
            return float(features.dot(self.coefficients.means).sum()) + offset
        return float(np.dot(features, self.coefficients.means)) + offset

    @abstractmethod
    def mean_function(self, margin: np.ndarray | float) -> np.ndarray | float:
        """Inverse link applied to the margin."""

    def compute_mean_function_with_offset(self, features: np.ndarray, offset: float) -> float:
        return float(self.mean_function(self.compute_margin(features, offset)))

    def compute_mean_function(self, features: np.ndarray) -> float:
        return self.compute_mean_function_with_offset(features, 0.0)


class Regression:
    """Capability tag: scores are predictions of the response itself."""


class BinaryClassifier:
    """Capability tag: scores are probabilities of the positive class."""

    def predict_class(self, features: np.ndarray, offset: float = 0.0, threshold: float = 0.5) -> int:
        return int(self.compute_mean_function_with_offset(features, offset) > threshold)


class LinearRegressionModel(GeneralizedLinearModel, Regression):
    def mean_function(self, margin):
        return margin


class PoissonRegressionModel(GeneralizedLinearModel, Regression):
    def mean_function(self, margin):
        return np.exp(margin)


class LogisticRegressionModel(GeneralizedLinearModel, BinaryClassifier):
    def mean_function(self, margin):
        return sigmoid(margin)


_MODELS = {
    "linear_regression": LinearRegressionModel,
    "logistic_regression": LogisticRegressionModel,
    "poisson_regression": PoissonRegressionModel,
}

SUPPORTED_TASKS = tuple(_MODELS)


def model_for_task(task: str, coefficients: Coefficients | np.ndarray) -> GeneralizedLinearModel:
    """
    Build the model class matching a task name.

    Raises:
        ValueError: If the task is not one of :data:`SUPPORTED_TASKS`.
    """
    try:
        model_cls = _MODELS[task.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported task: {task!r}. Supported tasks: {list(SUPPORTED_TASKS)}"
        ) from None
    return model_cls(coefficients)


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
