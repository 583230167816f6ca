"""Numerical sanity checks shared by the optimizer and evaluation engines."""

from __future__ import annotations

import numpy as np
from scipy import sparse

EFFECTIVE_PARAMETER_THRESHOLD = 1e-9


def is_finite(value: float | np.ndarray) -> bool:
    """Return True if a scalar or every entry of an array is finite."""
    return bool(np.all(np.isfinite(value)))


def assert_finite(name: str, value: float | np.ndarray) -> None:
    """
    Fail fast on NaN or infinite values.

    Parameters
    ----------
    name:
        Label used in the error message.
    value:
        Scalar or array to check.

    Raises
    ------
    FloatingPointError
        If any entry is NaN or infinite.
    """
    if not is_finite(value):
        raise FloatingPointError(f"{name} is not finite: {value!r}")


def effective_parameter_count(
    coefficients, threshold: float = EFFECTIVE_PARAMETER_THRESHOLD
) -> int:
    """
    Count coefficients whose magnitude exceeds ``threshold``.

    This is the sparsity-aware parameter count used by information criteria,
    e.g. ``[0.0, 1e-10, 3.2, -0.4]`` has two effective parameters. For a
    ``scipy.sparse`` vector only the stored values are inspected.
    """
    if sparse.issparse(coefficients):
        stored = sparse.csr_matrix(coefficients.reshape(1, -1), dtype=float, copy=True)
        stored.sum_duplicates()
        coefficients = stored.data
    coefficients = np.asarray(coefficients, dtype=float)
    return int(np.count_nonzero(np.abs(coefficients) > threshold))


__all__ = [
    "EFFECTIVE_PARAMETER_THRESHOLD",
    "assert_finite",
    "effective_parameter_count",
    "is_finite",
]
