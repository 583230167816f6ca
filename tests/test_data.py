"""Tests for data records and the local/distributed dataset views."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from scipy import sparse

from glmconduit.data import (
    Broadcast,
    DataRecord,
    DistributedDataset,
    LocalDataset,
    as_dataset,
    num_features,
    partitions_of,
    records_from_arrays,
    stack_records,
)


def test_data_record_is_read_only_copy():
    features = np.array([1.0, 2.0])
    record = DataRecord(features, label=1, offset=0.5)
    features[0] = 100.0
    assert record.features[0] == 1.0
    assert record.label == 1.0
    assert record.weight == 1.0
    with pytest.raises(ValueError):
        record.features[0] = 3.0


def test_data_record_margin_includes_offset():
    record = DataRecord(np.array([1.0, -1.0]), label=0.0, offset=0.25)
    assert record.compute_margin(np.array([2.0, 1.0])) == pytest.approx(1.25)
    assert record.num_features == 2


def test_records_from_arrays_rejects_length_mismatch():
    with pytest.raises(ValueError, match="rows"):
        records_from_arrays(np.ones((3, 2)), np.ones(2))
    with pytest.raises(ValueError, match="offsets"):
        records_from_arrays(np.ones((3, 2)), np.ones(3), offsets=np.ones(2))


def test_stack_records_round_trips_arrays(rng):
    X = rng.normal(size=(5, 3))
    y = rng.normal(size=5)
    w = rng.uniform(size=5)
    X2, y2, offsets, w2 = stack_records(records_from_arrays(X, y, weights=w))
    np.testing.assert_allclose(X2, X)
    np.testing.assert_allclose(y2, y)
    np.testing.assert_allclose(w2, w)
    assert not np.any(offsets)


def test_broadcast_rejects_reads_after_unpersist():
    released = []
    shared = Broadcast(np.ones(2), on_release=lambda: released.append(True))
    assert shared.value.sum() == 2.0
    shared.unpersist()
    shared.unpersist()
    assert shared.is_released
    assert released == [True]
    with pytest.raises(RuntimeError):
        _ = shared.value


def test_distributed_dataset_tracks_live_broadcasts():
    data = DistributedDataset([[1, 2], [3]])
    first = data.broadcast("a")
    second = data.broadcast("b")
    assert data.active_broadcasts == 2
    first.unpersist()
    assert data.active_broadcasts == 1
    second.unpersist()
    assert data.active_broadcasts == 0


def test_from_records_splits_into_contiguous_partitions():
    data = DistributedDataset.from_records(list(range(10)), num_partitions=3)
    assert data.num_partitions == 3
    assert data.collect() == list(range(10))
    assert data.count() == 10
    assert data.first() == 0
    assert all(len(p) > 0 for p in data.partitions)


def test_from_records_rejects_non_positive_partitions():
    with pytest.raises(ValueError):
        DistributedDataset.from_records([1, 2], num_partitions=0)


def test_first_skips_empty_partitions():
    data = DistributedDataset([[], [], [7, 8]])
    assert data.first() == 7
    with pytest.raises(ValueError):
        DistributedDataset([[], []]).first()


def test_aggregate_tree_reduces_every_partition():
    data = DistributedDataset([[1, 2], [3], [], [4, 5, 6], [7]])
    total = data.aggregate(sum, lambda a, b: a + b)
    assert total == 28


def test_map_with_executor_matches_sequential():
    parts = [[1.0, 2.0], [3.0], [4.0, 5.0]]
    sequential = DistributedDataset(parts).map(lambda x: x * x)
    with ThreadPoolExecutor(max_workers=2) as pool:
        parallel = DistributedDataset(parts, executor=pool).map(lambda x: x * x)
    assert parallel.collect() == sequential.collect() == [1.0, 4.0, 9.0, 16.0, 25.0]


def test_local_dataset_operations():
    data = LocalDataset([3, 1, 2])
    assert len(data) == data.count() == 3
    assert data.first() == 3
    assert list(data.map(lambda x: -x)) == [-3, -1, -2]
    with pytest.raises(ValueError):
        LocalDataset([]).first()


def test_as_dataset_wraps_plain_iterables(linear_records):
    data = as_dataset(linear_records)
    assert isinstance(data, LocalDataset)
    assert as_dataset(data) is data
    assert num_features(data) == 3
    assert partitions_of(data) == (data.records,)


def test_sparse_record_keeps_a_csr_row():
    source = sparse.csr_matrix(np.array([[0.0, 2.0, 0.0, -1.0]]))
    record = DataRecord(source, label=1.0, offset=0.5)
    source.data[:] = 0.0
    assert record.is_sparse
    assert record.num_features == 4
    assert record.features.nnz == 2
    assert record.compute_margin(np.array([1.0, 1.0, 1.0, 3.0])) == pytest.approx(-0.5)


def test_sparse_column_vector_becomes_a_row():
    record = DataRecord(sparse.csr_matrix(np.array([[1.0], [0.0], [4.0]])), label=0.0)
    assert record.features.shape == (1, 3)
    assert record.compute_margin(np.array([1.0, 5.0, 0.5])) == pytest.approx(3.0)


def test_records_from_sparse_design(sparse_logistic_arrays):
    X, y = sparse_logistic_arrays
    records = records_from_arrays(X, y)
    assert all(r.is_sparse for r in records)
    assert num_features(as_dataset(records)) == X.shape[1]


def test_stack_records_mixes_sparse_and_dense_rows(rng):
    records = [
        DataRecord(sparse.csr_matrix(np.array([[0.0, 3.0, 0.0]])), label=1.0),
        DataRecord(np.array([1.0, 0.0, 2.0]), label=0.0, weight=2.0),
    ]
    X, labels, _, weights = stack_records(records)
    assert sparse.issparse(X)
    np.testing.assert_array_equal(X.toarray(), [[0.0, 3.0, 0.0], [1.0, 0.0, 2.0]])
    beta = rng.normal(size=3)
    np.testing.assert_allclose(X @ beta, [3.0 * beta[1], beta[0] + 2.0 * beta[2]])
    np.testing.assert_allclose(X.T @ np.array([1.0, 1.0]), [1.0, 3.0, 2.0])
    np.testing.assert_array_equal(weights, [1.0, 2.0])


def test_stack_records_stays_dense_without_sparse_rows(linear_records):
    X, *_ = stack_records(linear_records)
    assert isinstance(X, np.ndarray)
