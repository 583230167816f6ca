"""
Objective function interfaces consumed by the optimizers.

An objective function returns its value and gradient at a coefficient vector,
summed over every record of a dataset. For a :class:`DistributedDataset` the
coefficients arrive as a :class:`Broadcast` and the per-partition partial sums
are combined with one aggregation; for a :class:`LocalDataset` they arrive as a
plain array and the sum is computed in memory. Both paths share the same
per-partition kernel, so they agree up to floating-point summation order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, Union

import numpy as np

from ..data import Broadcast, DataRecord, Dataset, DistributedDataset

CoefficientsLike = Union[np.ndarray, Broadcast]


def _add_pairs(
    a: tuple[float, np.ndarray], b: tuple[float, np.ndarray]
) -> tuple[float, np.ndarray]:
    return a[0] + b[0], a[1] + b[1]


def _unwrap(data: Dataset, value: CoefficientsLike, name: str) -> np.ndarray:
    if isinstance(data, DistributedDataset):
        if not isinstance(value, Broadcast):
            raise TypeError(f"{name} must be broadcast for distributed data")
        return np.asarray(value.value, dtype=float)
    if isinstance(value, Broadcast):
        return np.asarray(value.value, dtype=float)
    return np.asarray(value, dtype=float)


class ObjectiveFunction(ABC):
    """
    Differentiable objective with an optional L2 penalty.

    Subclasses implement :meth:`_value_and_gradient` over one partition of
    records; this class handles the dataset dispatch and the penalty
    ``0.5 * regularization_weight * ||beta||^2``.
    """

    def __init__(self, regularization_weight: float = 0.0) -> None:
        self.regularization_weight = regularization_weight

    @property
    def regularization_weight(self) -> float:
        return self._regularization_weight

    @regularization_weight.setter
    def regularization_weight(self, weight: float) -> None:
        if weight < 0 or not np.isfinite(weight):
            raise ValueError(f"regularization_weight must be finite and >= 0, got {weight}")
        self._regularization_weight = float(weight)

    @abstractmethod
    def _value_and_gradient(
        self, records: Sequence[DataRecord], coefficients: np.ndarray
    ) -> tuple[float, np.ndarray]:
        """Unregularized value and gradient summed over ``records``."""

    def calculate(
        self, data: Dataset, coefficients: CoefficientsLike
    ) -> tuple[float, np.ndarray]:
        """Return ``(value, gradient)`` of the objective at ``coefficients``."""
        beta = _unwrap(data, coefficients, "coefficients")
        if isinstance(data, DistributedDataset):
            # partition tasks read the broadcast, never the driver's copy
            value, gradient = data.aggregate(
                lambda part: self._value_and_gradient(
                    part, np.asarray(coefficients.value, dtype=float)
                ),
                _add_pairs,
            )
        else:
            value, gradient = self._value_and_gradient(data.records, beta)
        if self._regularization_weight > 0:
            value += 0.5 * self._regularization_weight * float(beta @ beta)
            gradient = gradient + self._regularization_weight * beta
        return float(value), np.asarray(gradient, dtype=float)


class TwiceDiffFunction(ObjectiveFunction):
    """Objective that also exposes Hessian-vector products."""

    @abstractmethod
    def _hessian_vector(
        self,
        records: Sequence[DataRecord],
        coefficients: np.ndarray,
        direction: np.ndarray,
    ) -> np.ndarray:
        """Unregularized ``H(beta) @ direction`` summed over ``records``."""

    def hessian_vector(
        self,
        data: Dataset,
        coefficients: CoefficientsLike,
        direction: CoefficientsLike,
    ) -> np.ndarray:
        """Return ``H(beta) @ direction`` including the L2 penalty term."""
        beta = _unwrap(data, coefficients, "coefficients")
        d = _unwrap(data, direction, "direction")
        if isinstance(data, DistributedDataset):
            hv = data.aggregate(
                lambda part: self._hessian_vector(
                    part,
                    np.asarray(coefficients.value, dtype=float),
                    np.asarray(direction.value, dtype=float),
                ),
                np.add,
            )
        else:
            hv = self._hessian_vector(data.records, beta, d)
        if self._regularization_weight > 0:
            hv = hv + self._regularization_weight * d
        return np.asarray(hv, dtype=float)


__all__ = ["CoefficientsLike", "ObjectiveFunction", "TwiceDiffFunction"]
