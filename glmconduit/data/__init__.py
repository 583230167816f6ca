"""Data records and the local/distributed dataset abstraction."""

from .core import DataRecord, Features, records_from_arrays, stack_records
from .dataset import (
    Broadcast,
    Dataset,
    DistributedDataset,
    LocalDataset,
    as_dataset,
    num_features,
    partitions_of,
)

__all__ = [
    "Broadcast",
    "DataRecord",
    "Dataset",
    "DistributedDataset",
    "Features",
    "LocalDataset",
    "as_dataset",
    "num_features",
    "partitions_of",
    "records_from_arrays",
    "stack_records",
]
