"""Model evaluation over local or distributed data.

:func:`evaluate` scores every record once and derives all applicable metrics
from that single scoring pass:

* regression models get mean absolute / square error and its root;
* binary classifiers get areas under the PR and ROC curves and peak F1;
* Poisson and logistic models get the per-datum log likelihood and, when the
  sample is large enough, the small-sample corrected AIC.

Which metrics apply is decided by the model's capability mixins
(:class:`~glmconduit.models.Regression`,
:class:`~glmconduit.models.BinaryClassifier`) rather than by a flag.

Example:
    >>> import numpy as np
    >>> from glmconduit.data import records_from_arrays
    >>> from glmconduit.models import LinearRegressionModel
    >>> records = records_from_arrays(np.eye(2), np.array([1.0, 0.0]))
    >>> metrics = evaluate(LinearRegressionModel(np.array([1.0, 0.0])), records)
    >>> metrics[MEAN_ABSOLUTE_ERROR]
    0.0
"""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple, Optional, Union

from ..data import DataRecord, Dataset, DistributedDataset, as_dataset
from ..diagnostics import (
    assert_finite,
    effective_parameter_count,
    is_debug_enabled,
)
from ..logging import get_logger, log_metrics
from ..models import (
    BinaryClassifier,
    GeneralizedLinearModel,
    LogisticRegressionModel,
    PoissonRegressionModel,
    Regression,
)
from .aggregation import distributed_mean
from .classification import (
    ScoreHistogram,
    area_under_precision_recall,
    area_under_roc,
    counts_from_histogram,
    distributed_score_histogram,
    peak_f1_score,
    score_histogram,
)
from .metrics import (
    AKAIKE_INFORMATION_CRITERION,
    AREA_UNDER_PRECISION_RECALL,
    AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS,
    DATA_LOG_LIKELIHOOD,
    MEAN_ABSOLUTE_ERROR,
    MEAN_SQUARE_ERROR,
    PEAK_F1_SCORE,
    ROOT_MEAN_SQUARE_ERROR,
    validate_metric_value,
)

logger = get_logger(__name__)

EPSILON = 1e-9


class ScoredRecord(NamedTuple):
    """Model output for one record: mean-function score, label and margin."""

    score: float
    label: float
    margin: float


def _score_record(model: GeneralizedLinearModel, record: DataRecord) -> ScoredRecord:
    margin = model.compute_margin(record.features, record.offset)
    return ScoredRecord(float(model.mean_function(margin)), record.label, margin)


def score_dataset(model: GeneralizedLinearModel, data: Dataset):
    """
    Score every record of ``data`` with ``model``.

    For distributed data the model is broadcast to the partition tasks and
    released once scoring has finished.
    """
    if isinstance(data, DistributedDataset):
        shared = data.broadcast(model)
        try:
            return data.map(lambda record: _score_record(shared.value, record))
        finally:
            shared.unpersist()
    return data.map(lambda record: _score_record(model, record))


def regression_metrics(scored) -> dict[str, float]:
    mae = distributed_mean(scored.map(lambda r: abs(r.score - r.label)))
    mse = distributed_mean(scored.map(lambda r: (r.score - r.label) ** 2))
    metrics = {
        MEAN_ABSOLUTE_ERROR: mae,
        MEAN_SQUARE_ERROR: mse,
        ROOT_MEAN_SQUARE_ERROR: math.sqrt(mse),
    }
    for name, value in metrics.items():
        assert_finite(name, value)
    return metrics


def histogram_classification_metrics(histogram: ScoreHistogram) -> dict[str, float]:
    """
    Area under PR, area under ROC and peak F1 from a score histogram.

    Returns an empty dict (and logs a warning) when only one class is present,
    since none of the three metrics is defined in that case.
    """
    _, tp, fp, num_positives, num_negatives = counts_from_histogram(histogram)
    if num_positives == 0 or num_negatives == 0:
        logger.warning(
            "Skipping binary classification metrics: %d positive and %d negative labels",
            num_positives,
            num_negatives,
        )
        return {}
    return {
        AREA_UNDER_PRECISION_RECALL: area_under_precision_recall(tp, fp, num_positives),
        AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS: area_under_roc(
            tp, fp, num_positives, num_negatives
        ),
        PEAK_F1_SCORE: peak_f1_score(tp, fp, num_positives),
    }


def binary_classification_metrics(
    scores: Iterable[float], labels: Iterable[float]
) -> dict[str, float]:
    """Classification metrics for in-memory scores and labels."""
    return histogram_classification_metrics(score_histogram(list(scores), list(labels)))


def poisson_log_likelihood_term(label: float, margin: float) -> float:
    try:
        rate = math.exp(margin)
    except OverflowError:
        rate = math.inf
    term = label * margin - rate - math.lgamma(1.0 + label)
    assert_finite("Poisson log likelihood term", term)
    return term


def logistic_log_likelihood_term(label: float, score: float) -> float:
    p = min(max(score, EPSILON), 1.0 - EPSILON)
    term = label * math.log(p) + (1.0 - label) * math.log1p(-p)
    assert_finite("Logistic log likelihood term", term)
    return term


def data_log_likelihood(model: GeneralizedLinearModel, scored) -> Optional[float]:
    """Per-datum log likelihood, or None if the model family has none."""
    if isinstance(model, PoissonRegressionModel):
        terms = scored.map(lambda r: poisson_log_likelihood_term(r.label, r.margin))
    elif isinstance(model, LogisticRegressionModel):
        terms = scored.map(lambda r: logistic_log_likelihood_term(r.label, r.score))
    else:
        return None
    return distributed_mean(terms)


def akaike_information_criterion(
    log_likelihood: float, num_samples: int, num_parameters: int
) -> Optional[float]:
    """
    Small-sample corrected AIC from a per-datum log likelihood.

    ``AIC = 2 (k - n LL) + 2 k (k + 1) / (n - k - 1)``. Returns None when
    ``n - k - 1 <= 0``, where the correction term is undefined.
    """
    n, k = num_samples, num_parameters
    if n - k - 1 <= 0:
        logger.warning(
            "Skipping AIC: %d samples are too few for %d effective parameters",
            n,
            k,
        )
        return None
    return 2.0 * (k - n * log_likelihood) + 2.0 * k * (k + 1) / (n - k - 1)


def evaluate(
    model: GeneralizedLinearModel, data: Union[Dataset, Iterable[DataRecord]]
) -> dict[str, float]:
    """
    Compute every metric applicable to ``model`` on ``data``.

    Args:
        model: Trained GLM.
        data: Local or distributed records.

    Returns:
        Mapping from metric name to value. Metrics that do not apply to the
        model, or that are undefined for the data, are absent.

    Raises:
        FloatingPointError: If an error metric or a log likelihood term is
            not finite.
        ValueError: If ``data`` is empty.
    """
    data = as_dataset(data)
    scored = score_dataset(model, data)
    num_samples = scored.count()
    if num_samples == 0:
        raise ValueError("Cannot evaluate a model on an empty dataset")

    metrics: dict[str, float] = {}
    if isinstance(model, Regression):
        metrics.update(regression_metrics(scored))
    if isinstance(model, BinaryClassifier):
        metrics.update(histogram_classification_metrics(distributed_score_histogram(scored)))

    log_likelihood = data_log_likelihood(model, scored)
    if log_likelihood is not None:
        metrics[DATA_LOG_LIKELIHOOD] = log_likelihood
        num_parameters = effective_parameter_count(model.coefficients.means)
        aic = akaike_information_criterion(log_likelihood, num_samples, num_parameters)
        if aic is not None:
            metrics[AKAIKE_INFORMATION_CRITERION] = aic

    if is_debug_enabled():
        for name, value in metrics.items():
            validate_metric_value(name, value)
    log_metrics(logger, metrics)
    return metrics


__all__ = [
    "EPSILON",
    "ScoredRecord",
    "akaike_information_criterion",
    "binary_classification_metrics",
    "data_log_likelihood",
    "evaluate",
    "histogram_classification_metrics",
    "logistic_log_likelihood_term",
    "poisson_log_likelihood_term",
    "regression_metrics",
    "score_dataset",
]
