"""Regularization-path training of generalized linear models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from ..data import DataRecord, Dataset, as_dataset
from ..evaluation import evaluate
from ..function import (
    LogisticLossFunction,
    ObjectiveFunction,
    PoissonLossFunction,
    SquaredLossFunction,
)
from ..logging import get_logger
from ..models import GeneralizedLinearModel, model_for_task
from ..optimize import OptimizationStatesTracker, OptimizerConfig, create_optimizer

logger = get_logger(__name__)

_LOSSES = {
    "linear_regression": SquaredLossFunction,
    "logistic_regression": LogisticLossFunction,
    "poisson_regression": PoissonLossFunction,
}


@dataclass
class TrainedModel:
    """
    One point of a regularization path.

    Args:
        regularization_weight: L2 weight the model was trained with.
        model: The fitted model.
        tracker: Optimizer state history of the solve, or None when state
            tracking was disabled.
        metrics: Metrics on the validation data, if any was given.
    """

    regularization_weight: float
    model: GeneralizedLinearModel
    tracker: Optional[OptimizationStatesTracker]
    metrics: Optional[dict[str, float]] = None


def objective_for_task(task: str, regularization_weight: float = 0.0) -> ObjectiveFunction:
    """
    Build the loss matching a task name.

    Raises:
        ValueError: If the task is not supported.
    """
    try:
        loss_cls = _LOSSES[task.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported task: {task!r}. Supported tasks: {sorted(_LOSSES)}"
        ) from None
    return loss_cls(regularization_weight)


def train_generalized_linear_model(
    data: Union[Dataset, Iterable[DataRecord]],
    task: str,
    regularization_weights: Sequence[float],
    optimizer_config: Optional[OptimizerConfig] = None,
    initial_coefficients: Optional[np.ndarray] = None,
    validation_data: Optional[Union[Dataset, Iterable[DataRecord]]] = None,
) -> List[TrainedModel]:
    """
    Train one model per regularization weight.

    Weights are visited from largest to smallest and every solve is warm
    started from the previous solution. All solves share one optimizer that
    keeps the first solve's initial state, so their convergence tests are
    relative to the same baseline.

    Args:
        data: Training records.
        task: One of ``linear_regression``, ``logistic_regression``,
            ``poisson_regression``.
        regularization_weights: Non-empty collection of L2 weights.
        optimizer_config: Optimizer settings (L-BFGS defaults if None).
        initial_coefficients: Starting point of the first solve.
        validation_data: Optional records to evaluate each model on.

    Returns:
        Trained models in the order they were trained (decreasing weight).

    Raises:
        ValueError: If no weights are given, a weight is negative or not
            finite, or the task is unknown.
    """
    if len(regularization_weights) == 0:
        raise ValueError("regularization_weights must not be empty")
    weights = sorted((float(w) for w in regularization_weights), reverse=True)
    objective = objective_for_task(task)
    # validate all weights before the first solve
    for weight in weights:
        objective.regularization_weight = weight

    data = as_dataset(data)
    if validation_data is not None:
        validation_data = as_dataset(validation_data)
    config = optimizer_config if optimizer_config is not None else OptimizerConfig()
    optimizer = create_optimizer(config)
    optimizer.reuse_previous_initial_state = True

    trained: List[TrainedModel] = []
    coefficients = initial_coefficients
    for weight in weights:
        objective.regularization_weight = weight
        coefficients, value = optimizer.optimize(data, objective, coefficients)
        model = model_for_task(task, coefficients)
        logger.info(
            "Trained %s with regularization weight %g: objective=%.8e (%s)",
            type(model).__name__,
            weight,
            value,
            optimizer.convergence_reason.name,
        )
        metrics = evaluate(model, validation_data) if validation_data is not None else None
        trained.append(TrainedModel(weight, model, optimizer.state_tracker, metrics))
    return trained


__all__ = ["TrainedModel", "objective_for_task", "train_generalized_linear_model"]
