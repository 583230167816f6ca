"""Labeled data records consumed by objective functions and the evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy import sparse

Features = Union[np.ndarray, sparse.spmatrix, sparse.sparray]


def _frozen_features(features) -> Features:
    if sparse.issparse(features):
        # private one-row CSR copy with canonical (sorted, de-duplicated) storage
        row = sparse.csr_matrix(features.reshape(1, -1), dtype=float, copy=True)
        row.sum_duplicates()
        return row
    dense = np.array(features, dtype=float).reshape(-1)
    dense.setflags(write=False)
    return dense


@dataclass(frozen=True, eq=False)
class DataRecord:
    """
    One labeled training or evaluation example.

    Attributes:
        features: Dense vector, or a ``scipy.sparse`` row stored as a
            one-row CSR matrix. Either way a private float copy; dense
            vectors are also marked read-only.
        label: Response value. Binary tasks use ``{0, 1}``.
        offset: Additive correction applied to the linear margin.
        weight: Importance weight applied to the record's loss term.
    """

    features: Features
    label: float
    offset: float = 0.0
    weight: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "features", _frozen_features(self.features))
        object.__setattr__(self, "label", float(self.label))
        object.__setattr__(self, "offset", float(self.offset))
        object.__setattr__(self, "weight", float(self.weight))

    @property
    def is_sparse(self) -> bool:
        return sparse.issparse(self.features)

    @property
    def num_features(self) -> int:
        return int(self.features.shape[-1])

    def compute_margin(self, coefficients: np.ndarray) -> float:
        """Return ``features . coefficients + offset``."""
        if self.is_sparse:
            return float(self.features.dot(coefficients)[0]) + self.offset
        return float(self.features @ coefficients) + self.offset


def records_from_arrays(
    X,
    y: np.ndarray,
    offsets: Optional[np.ndarray] = None,
    weights: Optional[np.ndarray] = None,
) -> list[DataRecord]:
    """
    Build records from a design matrix and label vector.

    A ``scipy.sparse`` design matrix yields sparse records.

    Raises:
        ValueError: If the array lengths disagree.
    """
    if sparse.issparse(X):
        X = sparse.csr_matrix(X, dtype=float)
    else:
        X = np.atleast_2d(np.asarray(X, dtype=float))
    y = np.asarray(y, dtype=float).reshape(-1)
    n = X.shape[0]
    if y.shape[0] != n:
        raise ValueError(f"X has {n} rows but y has {y.shape[0]} entries")
    offsets = np.zeros(n) if offsets is None else np.asarray(offsets, dtype=float)
    weights = np.ones(n) if weights is None else np.asarray(weights, dtype=float)
    if offsets.shape != (n,) or weights.shape != (n,):
        raise ValueError("offsets and weights must have one entry per row of X")
    return [
        DataRecord(features=X[i], label=y[i], offset=offsets[i], weight=weights[i])
        for i in range(n)
    ]


def stack_records(
    records: tuple[DataRecord, ...] | list[DataRecord],
) -> tuple[Features, np.ndarray, np.ndarray, np.ndarray]:
    """
    Stack records into ``(X, labels, offsets, weights)`` arrays.

    ``X`` is a CSR matrix as soon as one record is sparse, so ``X @ beta``
    and ``X.T @ v`` keep working on 1-D vectors either way.
    """
    if len(records) == 0:
        return np.zeros((0, 0)), np.zeros(0), np.zeros(0), np.zeros(0)
    if any(r.is_sparse for r in records):
        X = sparse.vstack(
            [r.features if r.is_sparse else sparse.csr_matrix(r.features) for r in records],
            format="csr",
        )
    else:
        X = np.vstack([r.features for r in records])
    labels = np.fromiter((r.label for r in records), dtype=float, count=len(records))
    offsets = np.fromiter((r.offset for r in records), dtype=float, count=len(records))
    weights = np.fromiter((r.weight for r in records), dtype=float, count=len(records))
    return X, labels, offsets, weights


__all__ = ["DataRecord", "Features", "records_from_arrays", "stack_records"]
