"""Objective functions minimized by the optimizers."""

from .glm_loss import (
    LogisticLossFunction,
    PointwiseLossFunction,
    PoissonLossFunction,
    SquaredLossFunction,
    sigmoid,
)
from .objective import CoefficientsLike, ObjectiveFunction, TwiceDiffFunction
from .torch_objective import (
    TorchObjectiveFunction,
    torch_logistic_loss,
    torch_poisson_loss,
    torch_squared_loss,
)

__all__ = [
    "CoefficientsLike",
    "LogisticLossFunction",
    "ObjectiveFunction",
    "PointwiseLossFunction",
    "PoissonLossFunction",
    "SquaredLossFunction",
    "TorchObjectiveFunction",
    "TwiceDiffFunction",
    "sigmoid",
    "torch_logistic_loss",
    "torch_poisson_loss",
    "torch_squared_loss",
]
