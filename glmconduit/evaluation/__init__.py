"""Evaluation metrics for trained GLMs."""

from .aggregation import distributed_mean, merge_means, partition_mean
from .classification import (
    ScoreHistogram,
    area_under_precision_recall,
    area_under_roc,
    counts_from_histogram,
    distributed_score_histogram,
    merge_score_histograms,
    peak_f1_score,
    score_histogram,
    threshold_counts,
)
from .evaluate import (
    EPSILON,
    ScoredRecord,
    akaike_information_criterion,
    binary_classification_metrics,
    data_log_likelihood,
    evaluate,
    histogram_classification_metrics,
    logistic_log_likelihood_term,
    poisson_log_likelihood_term,
    regression_metrics,
    score_dataset,
)
from .metrics import (
    AKAIKE_INFORMATION_CRITERION,
    AREA_UNDER_PRECISION_RECALL,
    AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS,
    BINARY_CLASSIFICATION_METRICS,
    DATA_LOG_LIKELIHOOD,
    MEAN_ABSOLUTE_ERROR,
    MEAN_SQUARE_ERROR,
    METRIC_METADATA,
    MODEL_SELECTION_METRICS,
    PEAK_F1_SCORE,
    REGRESSION_METRICS,
    ROOT_MEAN_SQUARE_ERROR,
    MetricMetadata,
    SortOrder,
    is_better,
    validate_metric_value,
)

__all__ = [
    "AKAIKE_INFORMATION_CRITERION",
    "AREA_UNDER_PRECISION_RECALL",
    "AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS",
    "BINARY_CLASSIFICATION_METRICS",
    "DATA_LOG_LIKELIHOOD",
    "EPSILON",
    "MEAN_ABSOLUTE_ERROR",
    "MEAN_SQUARE_ERROR",
    "METRIC_METADATA",
    "MODEL_SELECTION_METRICS",
    "MetricMetadata",
    "PEAK_F1_SCORE",
    "REGRESSION_METRICS",
    "ROOT_MEAN_SQUARE_ERROR",
    "ScoreHistogram",
    "ScoredRecord",
    "SortOrder",
    "akaike_information_criterion",
    "area_under_precision_recall",
    "area_under_roc",
    "binary_classification_metrics",
    "counts_from_histogram",
    "data_log_likelihood",
    "distributed_mean",
    "distributed_score_histogram",
    "evaluate",
    "histogram_classification_metrics",
    "is_better",
    "logistic_log_likelihood_term",
    "merge_means",
    "merge_score_histograms",
    "partition_mean",
    "peak_f1_score",
    "poisson_log_likelihood_term",
    "regression_metrics",
    "score_dataset",
    "score_histogram",
    "threshold_counts",
    "validate_metric_value",
]
