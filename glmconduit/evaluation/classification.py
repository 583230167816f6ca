"""Threshold curves for binary classifiers.

Every distinct score is a decision threshold: records scoring at or above it
are predicted positive. Labels greater than 0.5 count as positive.

The curves are built from a score histogram, the positive and negative label
counts per distinct score. Histograms of separate partitions merge exactly, so
distributed data only ships one histogram per partition to the driver.
"""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np

from ..data import DistributedDataset, LocalDataset

ScoreHistogram = tuple[np.ndarray, np.ndarray, np.ndarray]


def score_histogram(scores: Iterable[float], labels: Iterable[float]) -> ScoreHistogram:
    """
    Label counts per distinct score.

    Returns:
        ``(distinct_scores, positives, negatives)`` with scores ascending.
    """
    scores = np.asarray(scores, dtype=float)
    positive = np.asarray(labels, dtype=float) > 0.5
    distinct, inverse = np.unique(scores, return_inverse=True)
    inverse = inverse.reshape(-1)
    positives = np.bincount(inverse, weights=positive.astype(float), minlength=distinct.size)
    negatives = np.bincount(inverse, weights=(~positive).astype(float), minlength=distinct.size)
    return distinct, positives, negatives


def merge_score_histograms(a: ScoreHistogram, b: ScoreHistogram) -> ScoreHistogram:
    """Combine two histograms; commutative and associative."""
    distinct, inverse = np.unique(np.concatenate([a[0], b[0]]), return_inverse=True)
    inverse = inverse.reshape(-1)
    positives = np.bincount(inverse, weights=np.concatenate([a[1], b[1]]), minlength=distinct.size)
    negatives = np.bincount(inverse, weights=np.concatenate([a[2], b[2]]), minlength=distinct.size)
    return distinct, positives, negatives


def distributed_score_histogram(
    scored: Union[DistributedDataset, LocalDataset, Iterable],
) -> ScoreHistogram:
    """Histogram of records exposing ``score`` and ``label``."""

    def partition_histogram(records) -> ScoreHistogram:
        return score_histogram([r.score for r in records], [r.label for r in records])

    if isinstance(scored, DistributedDataset):
        return scored.aggregate(partition_histogram, merge_score_histograms)
    return partition_histogram(list(scored))


def counts_from_histogram(
    histogram: ScoreHistogram,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, int, int]:
    """
    Cumulative true/false positive counts per threshold.

    Returns:
        ``(thresholds, tp, fp, num_positives, num_negatives)`` with
        thresholds in decreasing order.
    """
    distinct, positives, negatives = histogram
    tp = np.cumsum(positives[::-1])
    fp = np.cumsum(negatives[::-1])
    num_positives = int(round(tp[-1])) if tp.size else 0
    num_negatives = int(round(fp[-1])) if fp.size else 0
    return distinct[::-1], tp, fp, num_positives, num_negatives


def threshold_counts(
    scores: np.ndarray, labels: np.ndarray
) -> tuple[np.ndarray, np.ndarray, np.ndarray, int, int]:
    """Same as :func:`counts_from_histogram` for in-memory scores and labels."""
    return counts_from_histogram(score_histogram(scores, labels))


def area_under_roc(tp: np.ndarray, fp: np.ndarray, num_positives: int, num_negatives: int) -> float:
    tpr = np.r_[0.0, tp / num_positives, 1.0]
    fpr = np.r_[0.0, fp / num_negatives, 1.0]
    return float(np.trapezoid(tpr, fpr))


def area_under_precision_recall(tp: np.ndarray, fp: np.ndarray, num_positives: int) -> float:
    recall = tp / num_positives
    precision = tp / (tp + fp)
    # curve starts at recall 0 with the precision of the highest threshold
    recall = np.r_[0.0, recall]
    precision = np.r_[precision[0], precision]
    return float(np.trapezoid(precision, recall))


def peak_f1_score(tp: np.ndarray, fp: np.ndarray, num_positives: int) -> float:
    recall = tp / num_positives
    precision = tp / (tp + fp)
    denom = precision + recall
    f1 = np.divide(
        2.0 * precision * recall, denom, out=np.zeros_like(denom), where=denom > 0
    )
    return float(np.max(f1))


__all__ = [
    "ScoreHistogram",
    "area_under_precision_recall",
    "area_under_roc",
    "counts_from_histogram",
    "distributed_score_histogram",
    "merge_score_histograms",
    "peak_f1_score",
    "score_histogram",
    "threshold_counts",
]
