"""
Per-feature box constraints.

A constraint map assigns ``(lower, upper)`` bounds to feature indices; indices
absent from the map are unbounded. ``-np.inf`` and ``np.inf`` are accepted for
one-sided bounds.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

ConstraintMap = Mapping[int, tuple[float, float]]


def validate_constraint_map(
    constraint_map: Optional[ConstraintMap],
) -> Optional[ConstraintMap]:
    """
    Check a constraint map and return a read-only copy.

    Raises:
        ValueError: On a negative index, a NaN bound, an infinite bound on
            the wrong side, or ``lower > upper``.
    """
    if constraint_map is None:
        return None
    checked: dict[int, tuple[float, float]] = {}
    for index, bounds in constraint_map.items():
        if int(index) != index or index < 0:
            raise ValueError(f"Constraint index must be a non-negative integer, got {index!r}")
        lower, upper = (float(b) for b in bounds)
        if np.isnan(lower) or np.isnan(upper):
            raise ValueError(f"Bounds for feature {index} contain NaN")
        if lower == np.inf or upper == -np.inf:
            raise ValueError(f"Bounds for feature {index} are empty: ({lower}, {upper})")
        if lower > upper:
            raise ValueError(
                f"Lower bound {lower} exceeds upper bound {upper} for feature {index}"
            )
        checked[int(index)] = (lower, upper)
    return MappingProxyType(checked)


def bounds_arrays(
    constraint_map: Optional[ConstraintMap], dim: int
) -> tuple[np.ndarray, np.ndarray]:
    """
    Expand a constraint map into dense lower and upper bound vectors.

    Raises:
        ValueError: If an index is outside ``[0, dim)``.
    """
    lower = np.full(dim, -np.inf)
    upper = np.full(dim, np.inf)
    if constraint_map:
        for index, (lo, hi) in constraint_map.items():
            if index >= dim:
                raise ValueError(
                    f"Constraint index {index} is out of range for {dim} coefficients"
                )
            lower[index] = lo
            upper[index] = hi
    return lower, upper


def project(coefficients: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
    """Clip coefficients into the box; always returns a new array."""
    return np.clip(np.asarray(coefficients, dtype=float), lower, upper)


__all__ = ["ConstraintMap", "bounds_arrays", "project", "validate_constraint_map"]
