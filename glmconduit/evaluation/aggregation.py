"""
Numerically stable mean over partitioned data.

Each partition keeps a running ``(count, mean)`` updated incrementally
(Welford), and partial results are merged by count-weighted update instead of
summing everything first. The merge is commutative and associative up to
rounding, so partitions may be combined in any order.
"""

from __future__ import annotations

from typing import Iterable, Union

from ..data import DistributedDataset, LocalDataset

PartialMean = tuple[int, float]


def partition_mean(values: Iterable[float]) -> PartialMean:
    """Incremental ``(count, mean)`` of one partition; ``(0, 0.0)`` if empty."""
    count = 0
    mean = 0.0
    for x in values:
        count += 1
        mean += (x - mean) / count
    return count, mean


def merge_means(a: PartialMean, b: PartialMean) -> PartialMean:
    """Combine two partial means weighted by their counts."""
    count_a, mean_a = a
    count_b, mean_b = b
    count = count_a + count_b
    if count == 0:
        return 0, 0.0
    return count, mean_a + (mean_b - mean_a) * count_b / count


def distributed_mean(
    values: Union[DistributedDataset, LocalDataset, Iterable[float]],
) -> float:
    """
    Mean of a local or distributed collection of real values.

    Raises:
        ValueError: If there are no values.
    """
    if isinstance(values, DistributedDataset):
        count, mean = values.aggregate(partition_mean, merge_means)
    else:
        count, mean = partition_mean(values)
    if count == 0:
        raise ValueError("Cannot average an empty collection")
    return mean


__all__ = ["PartialMean", "distributed_mean", "merge_means", "partition_mean"]
