"""Training drivers for generalized linear models."""

from .glm_training import TrainedModel, objective_for_task, train_generalized_linear_model

__all__ = [
    "TrainedModel",
    "objective_for_task",
    "train_generalized_linear_model",
]
