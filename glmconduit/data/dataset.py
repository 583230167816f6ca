"""
Local and partitioned dataset views.

Every algorithm in the package consumes the :data:`Dataset` sum type, either a
:class:`LocalDataset` (ordered, in memory) or a :class:`DistributedDataset`
(partitioned, no ordering guarantee). Partition tasks of a distributed dataset
run through an optional :class:`concurrent.futures.Executor`; without one they
run sequentially on the calling thread. Callers block until every partition
task has completed.

Read-only values shared with partition tasks are wrapped in a
:class:`Broadcast`, which must be released with :meth:`Broadcast.unpersist`
once the computation using it has finished.
"""

from __future__ import annotations

import itertools
from concurrent.futures import Executor
from typing import (
    Callable,
    Generic,
    Iterable,
    Iterator,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

import numpy as np

from .core import DataRecord

T = TypeVar("T")
R = TypeVar("R")


class Broadcast(Generic[T]):
    """Read-only value shared by all partition tasks of one computation."""

    def __init__(self, value: T, on_release: Optional[Callable[[], None]] = None) -> None:
        self._value = value
        self._on_release = on_release
        self._released = False

    @property
    def value(self) -> T:
        if self._released:
            raise RuntimeError("Broadcast value was read after unpersist()")
        return self._value

    @property
    def is_released(self) -> bool:
        return self._released

    def unpersist(self) -> None:
        """Release the shared value. Calling this twice is a no-op."""
        if self._released:
            return
        self._released = True
        self._value = None
        if self._on_release is not None:
            self._on_release()


class LocalDataset(Generic[T]):
    """Ordered, single-machine collection."""

    def __init__(self, records: Iterable[T]) -> None:
        self._records = tuple(records)

    @property
    def records(self) -> tuple[T, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[T]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"LocalDataset(n={len(self._records)})"

    def count(self) -> int:
        return len(self._records)

    def first(self) -> T:
        if not self._records:
            raise ValueError("Dataset is empty")
        return self._records[0]

    def map(self, func: Callable[[T], R]) -> "LocalDataset[R]":
        return LocalDataset(func(r) for r in self._records)


class DistributedDataset(Generic[T]):
    """
    Horizontally partitioned collection.

    Transformations (``map``, ``map_partitions``) are evaluated eagerly and
    their output is kept in memory, so a transformed dataset can be reused
    by several actions without recomputation.

    Args:
        partitions: Iterable of partitions, each an iterable of elements.
        executor: Optional executor running one task per partition.
    """

    def __init__(
        self,
        partitions: Iterable[Iterable[T]],
        executor: Optional[Executor] = None,
    ) -> None:
        self._partitions = tuple(tuple(p) for p in partitions)
        if not self._partitions:
            raise ValueError("A distributed dataset needs at least one partition")
        self._executor = executor
        self._live_broadcasts: set[int] = set()
        self._broadcast_ids = itertools.count()

    @classmethod
    def from_records(
        cls,
        records: Sequence[T],
        num_partitions: int,
        executor: Optional[Executor] = None,
    ) -> "DistributedDataset[T]":
        """Split ``records`` into ``num_partitions`` contiguous partitions."""
        if num_partitions <= 0:
            raise ValueError("num_partitions must be positive")
        bounds = np.linspace(0, len(records), num_partitions + 1).astype(int)
        partitions = [
            records[start:stop] for start, stop in zip(bounds[:-1], bounds[1:])
        ]
        return cls(partitions, executor=executor)

    @property
    def partitions(self) -> tuple[tuple[T, ...], ...]:
        return self._partitions

    @property
    def num_partitions(self) -> int:
        return len(self._partitions)

    @property
    def executor(self) -> Optional[Executor]:
        return self._executor

    @property
    def active_broadcasts(self) -> int:
        """Number of broadcasts created by this dataset and not yet released."""
        return len(self._live_broadcasts)

    def __repr__(self) -> str:
        return (
            f"DistributedDataset(num_partitions={self.num_partitions}, "
            f"n={self.count()})"
        )

    def _run(self, task: Callable[[tuple[T, ...]], R]) -> list[R]:
        if self._executor is None:
            return [task(p) for p in self._partitions]
        return list(self._executor.map(task, self._partitions))

    def broadcast(self, value: R) -> Broadcast[R]:
        """Share ``value`` read-only with every partition task."""
        broadcast_id = next(self._broadcast_ids)
        self._live_broadcasts.add(broadcast_id)
        return Broadcast(
            value, on_release=lambda: self._live_broadcasts.discard(broadcast_id)
        )

    def map_partitions(
        self, func: Callable[[tuple[T, ...]], Iterable[R]]
    ) -> "DistributedDataset[R]":
        return DistributedDataset(self._run(func), executor=self._executor)

    def map(self, func: Callable[[T], R]) -> "DistributedDataset[R]":
        return self.map_partitions(lambda part: [func(x) for x in part])

    def aggregate(
        self,
        partition_op: Callable[[tuple[T, ...]], R],
        comb_op: Callable[[R, R], R],
    ) -> R:
        """
        Reduce every partition with ``partition_op``, then combine the
        partial results pairwise (tree reduction) with ``comb_op``.

        ``comb_op`` must be associative; partial results are combined in
        partition order, but callers must not rely on that order.
        """
        partials = self._run(partition_op)
        while len(partials) > 1:
            paired = [
                comb_op(partials[i], partials[i + 1])
                for i in range(0, len(partials) - 1, 2)
            ]
            if len(partials) % 2 == 1:
                paired.append(partials[-1])
            partials = paired
        return partials[0]

    def count(self) -> int:
        return sum(len(p) for p in self._partitions)

    def first(self) -> T:
        for part in self._partitions:
            if part:
                return part[0]
        raise ValueError("Dataset is empty")

    def collect(self) -> list[T]:
        return [x for part in self._partitions for x in part]


Dataset = Union[DistributedDataset[DataRecord], LocalDataset[DataRecord]]


def as_dataset(data: Union[Dataset, Iterable[DataRecord]]) -> Dataset:
    """Wrap a plain iterable of records into a :class:`LocalDataset`."""
    if isinstance(data, (DistributedDataset, LocalDataset)):
        return data
    return LocalDataset(data)


def num_features(data: Dataset) -> int:
    """Return the feature dimension of the first record of ``data``."""
    return data.first().num_features


def partitions_of(data: Union[DistributedDataset[T], LocalDataset[T]]) -> tuple[tuple[T, ...], ...]:
    """View either dataset variant as a tuple of partitions."""
    if isinstance(data, DistributedDataset):
        return data.partitions
    return (data.records,)


__all__ = [
    "Broadcast",
    "Dataset",
    "DistributedDataset",
    "LocalDataset",
    "as_dataset",
    "num_features",
    "partitions_of",
]
