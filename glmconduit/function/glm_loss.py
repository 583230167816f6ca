"""Pointwise GLM losses: squared, logistic and Poisson negative log likelihoods."""

from __future__ import annotations

from abc import abstractmethod
from typing import Sequence

import numpy as np

from ..data import DataRecord, stack_records
from .objective import TwiceDiffFunction


def sigmoid(x: np.ndarray | float) -> np.ndarray | float:
    """Numerically stable logistic function."""
    arr = np.asarray(x, dtype=float)
    flat = np.atleast_1d(arr)
    out = np.empty_like(flat)
    pos = flat >= 0
    out[pos] = 1.0 / (1.0 + np.exp(-flat[pos]))
    exp_x = np.exp(flat[~pos])
    out[~pos] = exp_x / (1.0 + exp_x)
    if arr.ndim == 0:
        return float(out[0])
    return out


class PointwiseLossFunction(TwiceDiffFunction):
    """
    Weighted sum of a loss ``l(margin, label)`` over records, where
    ``margin = x . beta + offset``.

    Subclasses supply the loss with its first and second derivatives with
    respect to the margin, vectorized over a partition.
    """

    @abstractmethod
    def loss_and_derivative(
        self, margins: np.ndarray, labels: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Per-record loss and ``dl/dmargin``."""

    @abstractmethod
    def second_derivative(self, margins: np.ndarray, labels: np.ndarray) -> np.ndarray:
        """Per-record ``d2l/dmargin2``."""

    def _value_and_gradient(
        self, records: Sequence[DataRecord], coefficients: np.ndarray
    ) -> tuple[float, np.ndarray]:
        if len(records) == 0:
            return 0.0, np.zeros_like(coefficients, dtype=float)
        X, labels, offsets, weights = stack_records(records)
        margins = X @ coefficients + offsets
        loss, d1 = self.loss_and_derivative(margins, labels)
        value = float(weights @ loss)
        gradient = X.T @ (weights * d1)
        return value, gradient

    def _hessian_vector(
        self,
        records: Sequence[DataRecord],
        coefficients: np.ndarray,
        direction: np.ndarray,
    ) -> np.ndarray:
        if len(records) == 0:
            return np.zeros_like(direction, dtype=float)
        X, labels, offsets, weights = stack_records(records)
        margins = X @ coefficients + offsets
        d2 = self.second_derivative(margins, labels)
        return X.T @ (weights * d2 * (X @ direction))


class SquaredLossFunction(PointwiseLossFunction):
    """``0.5 * (margin - label)^2``; linear regression."""

    def loss_and_derivative(self, margins, labels):
        residual = margins - labels
        return 0.5 * residual**2, residual

    def second_derivative(self, margins, labels):
        return np.ones_like(margins)


class LogisticLossFunction(PointwiseLossFunction):
    """``log(1 + exp(margin)) - label * margin`` with labels in ``{0, 1}``."""

    def loss_and_derivative(self, margins, labels):
        loss = np.logaddexp(0.0, margins) - labels * margins
        return loss, sigmoid(margins) - labels

    def second_derivative(self, margins, labels):
        p = sigmoid(margins)
        return p * (1.0 - p)


class PoissonLossFunction(PointwiseLossFunction):
    """``exp(margin) - label * margin``; Poisson regression with log link."""

    def loss_and_derivative(self, margins, labels):
        mean = np.exp(margins)
        return mean - labels * margins, mean - labels

    def second_derivative(self, margins, labels):
        return np.exp(margins)


__all__ = [
    "LogisticLossFunction",
    "PointwiseLossFunction",
    "PoissonLossFunction",
    "SquaredLossFunction",
    "sigmoid",
]
