"""Metric names and their static metadata table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

MEAN_ABSOLUTE_ERROR = "Mean absolute error"
MEAN_SQUARE_ERROR = "Mean square error"
ROOT_MEAN_SQUARE_ERROR = "Root mean square error"
AREA_UNDER_PRECISION_RECALL = "Area under precision/recall"
AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS = "Area under ROC"
PEAK_F1_SCORE = "Peak F1 score"
DATA_LOG_LIKELIHOOD = "Per-datum log likelihood"
AKAIKE_INFORMATION_CRITERION = "Akaike information criterion"

REGRESSION_METRICS = (MEAN_ABSOLUTE_ERROR, MEAN_SQUARE_ERROR, ROOT_MEAN_SQUARE_ERROR)
BINARY_CLASSIFICATION_METRICS = (
    AREA_UNDER_PRECISION_RECALL,
    AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS,
    PEAK_F1_SCORE,
)
MODEL_SELECTION_METRICS = (DATA_LOG_LIKELIHOOD, AKAIKE_INFORMATION_CRITERION)


class SortOrder(Enum):
    """Which direction of a metric means a better model."""

    LOWER_IS_BETTER = "lower"
    HIGHER_IS_BETTER = "higher"


@dataclass(frozen=True)
class MetricMetadata:
    """Description, preferred direction and valid range of one metric."""

    name: str
    description: str
    sort_order: SortOrder
    value_range: Optional[tuple[float, float]] = None


METRIC_METADATA: Mapping[str, MetricMetadata] = MappingProxyType(
    {
        MEAN_ABSOLUTE_ERROR: MetricMetadata(
            MEAN_ABSOLUTE_ERROR, "Regression metric", SortOrder.LOWER_IS_BETTER
        ),
        MEAN_SQUARE_ERROR: MetricMetadata(
            MEAN_SQUARE_ERROR, "Regression metric", SortOrder.LOWER_IS_BETTER
        ),
        ROOT_MEAN_SQUARE_ERROR: MetricMetadata(
            ROOT_MEAN_SQUARE_ERROR, "Regression metric", SortOrder.LOWER_IS_BETTER
        ),
        AREA_UNDER_PRECISION_RECALL: MetricMetadata(
            AREA_UNDER_PRECISION_RECALL,
            "Binary classification metric",
            SortOrder.HIGHER_IS_BETTER,
            (0.0, 1.0),
        ),
        AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS: MetricMetadata(
            AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS,
            "Binary classification metric",
            SortOrder.HIGHER_IS_BETTER,
            (0.0, 1.0),
        ),
        PEAK_F1_SCORE: MetricMetadata(
            PEAK_F1_SCORE,
            "Binary classification metric",
            SortOrder.HIGHER_IS_BETTER,
            (0.0, 1.0),
        ),
        DATA_LOG_LIKELIHOOD: MetricMetadata(
            DATA_LOG_LIKELIHOOD, "Model selection metric", SortOrder.HIGHER_IS_BETTER
        ),
        AKAIKE_INFORMATION_CRITERION: MetricMetadata(
            AKAIKE_INFORMATION_CRITERION,
            "Model selection metric",
            SortOrder.LOWER_IS_BETTER,
        ),
    }
)


def _metadata(metric: str) -> MetricMetadata:
    try:
        return METRIC_METADATA[metric]
    except KeyError:
        raise ValueError(f"Unknown metric: {metric!r}") from None


def is_better(metric: str, candidate: float, incumbent: float) -> bool:
    """Return True if ``candidate`` is strictly better than ``incumbent``."""
    if _metadata(metric).sort_order is SortOrder.HIGHER_IS_BETTER:
        return candidate > incumbent
    return candidate < incumbent


def validate_metric_value(metric: str, value: float) -> None:
    """
    Check that a metric value is finite and inside its documented range.

    Raises:
        ValueError: If the value is out of range or not finite.
    """
    if not np.isfinite(value):
        raise ValueError(f"{metric} is not finite: {value}")
    value_range = _metadata(metric).value_range
    if value_range is not None:
        low, high = value_range
        if not low <= value <= high:
            raise ValueError(f"{metric}={value} lies outside [{low}, {high}]")


__all__ = [
    "AKAIKE_INFORMATION_CRITERION",
    "AREA_UNDER_PRECISION_RECALL",
    "AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS",
    "BINARY_CLASSIFICATION_METRICS",
    "DATA_LOG_LIKELIHOOD",
    "MEAN_ABSOLUTE_ERROR",
    "MEAN_SQUARE_ERROR",
    "METRIC_METADATA",
    "MODEL_SELECTION_METRICS",
    "MetricMetadata",
    "PEAK_F1_SCORE",
    "REGRESSION_METRICS",
    "ROOT_MEAN_SQUARE_ERROR",
    "SortOrder",
    "is_better",
    "validate_metric_value",
]
