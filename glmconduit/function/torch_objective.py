"""Objective functions whose gradients come from PyTorch autograd."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
import torch
import torch.nn.functional as F
from scipy import sparse

from ..data import DataRecord, stack_records
from .objective import ObjectiveFunction

TorchLoss = Callable[[torch.Tensor, torch.Tensor], torch.Tensor]


def _design_tensor(X) -> torch.Tensor:
    """float64 tensor for a dense array or a sparse COO tensor for a scipy matrix."""
    if sparse.issparse(X):
        coo = X.tocoo()
        indices = torch.as_tensor(np.vstack([coo.row, coo.col]), dtype=torch.int64)
        values = torch.as_tensor(coo.data, dtype=torch.float64)
        return torch.sparse_coo_tensor(indices, values, coo.shape)
    return torch.from_numpy(X)


def torch_squared_loss(margins: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
    return 0.5 * (margins - labels) ** 2


def torch_logistic_loss(margins: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
    return F.softplus(margins) - labels * margins


def torch_poisson_loss(margins: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
    return torch.exp(margins) - labels * margins


class TorchObjectiveFunction(ObjectiveFunction):
    """
    Objective defined by a per-record loss written with torch operations.

    The loss receives the margins ``x . beta + offset`` and the labels of one
    partition as float64 CPU tensors and must return per-record losses. The
    weighted sum is differentiated with autograd, so any smooth loss can be
    optimized without a hand-written gradient.

    Parameters
    ----------
    loss_fn:
        Callable ``(margins, labels) -> per-record loss tensor``.
    regularization_weight:
        L2 penalty weight.

    Example
    -------
    >>> from glmconduit.function import TorchObjectiveFunction, torch_logistic_loss
    >>> objective = TorchObjectiveFunction(torch_logistic_loss, regularization_weight=1.0)
    """

    def __init__(self, loss_fn: TorchLoss, regularization_weight: float = 0.0) -> None:
        super().__init__(regularization_weight)
        self.loss_fn = loss_fn

    def _value_and_gradient(
        self, records: Sequence[DataRecord], coefficients: np.ndarray
    ) -> tuple[float, np.ndarray]:
        if len(records) == 0:
            return 0.0, np.zeros_like(coefficients, dtype=float)
        X, labels, offsets, weights = stack_records(records)
        beta = torch.tensor(coefficients, dtype=torch.float64, requires_grad=True)
        design = _design_tensor(X)
        if design.is_sparse:
            linear = torch.sparse.mm(design, beta.unsqueeze(1)).squeeze(1)
        else:
            linear = design @ beta
        margins = linear + torch.from_numpy(offsets)
        per_record = self.loss_fn(margins, torch.from_numpy(labels))
        if per_record.shape != margins.shape:
            raise ValueError(
                f"loss_fn must return one loss per record, got shape "
                f"{tuple(per_record.shape)} for {margins.shape[0]} records"
            )
        total = (torch.from_numpy(weights) * per_record).sum()
        total.backward()
        return float(total.item()), beta.grad.detach().cpu().numpy().astype(float)


__all__ = [
    "TorchLoss",
    "TorchObjectiveFunction",
    "torch_logistic_loss",
    "torch_poisson_loss",
    "torch_squared_loss",
]
