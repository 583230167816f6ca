"""Tests for GLM model classes."""

import math

import numpy as np
import pytest
from scipy import sparse

from glmconduit.models import (
    SUPPORTED_TASKS,
    BinaryClassifier,
    Coefficients,
    LinearRegressionModel,
    LogisticRegressionModel,
    PoissonRegressionModel,
    Regression,
    model_for_task,
)


def test_coefficients_are_read_only_copies():
    means = np.array([1.0, 2.0])
    coefficients = Coefficients(means, variances=np.array([0.1, 0.2]))
    means[0] = 5.0
    assert coefficients.means[0] == 1.0
    assert len(coefficients) == 2
    with pytest.raises(ValueError):
        coefficients.means[0] = 3.0


def test_coefficient_variances_must_match_means():
    with pytest.raises(ValueError):
        Coefficients(np.zeros(2), variances=np.zeros(3))


def test_mean_functions():
    x = np.array([1.0, 2.0])
    beta = np.array([0.5, -0.25])
    assert LinearRegressionModel(beta).compute_mean_function_with_offset(x, 1.0) == pytest.approx(1.0)
    assert PoissonRegressionModel(beta).compute_mean_function(x) == pytest.approx(1.0)
    assert LogisticRegressionModel(beta).compute_mean_function_with_offset(x, 1.0) == pytest.approx(
        1.0 / (1.0 + math.exp(-1.0))
    )


def test_capabilities():
    assert isinstance(LinearRegressionModel(np.zeros(1)), Regression)
    assert isinstance(PoissonRegressionModel(np.zeros(1)), Regression)
    assert isinstance(LogisticRegressionModel(np.zeros(1)), BinaryClassifier)
    assert not isinstance(LogisticRegressionModel(np.zeros(1)), Regression)
    assert not isinstance(LinearRegressionModel(np.zeros(1)), BinaryClassifier)


def test_predict_class_thresholds_probability():
    model = LogisticRegressionModel(np.array([1.0]))
    assert model.predict_class(np.array([2.0])) == 1
    assert model.predict_class(np.array([-2.0])) == 0
    assert model.predict_class(np.array([2.0]), threshold=0.95) == 0


@pytest.mark.parametrize("task", SUPPORTED_TASKS)
def test_model_for_task(task):
    model = model_for_task(task, np.ones(3))
    assert len(model.coefficients) == 3
    assert type(model).__name__.lower().startswith(task.split("_")[0])


def test_model_for_unknown_task():
    with pytest.raises(ValueError, match="Unsupported task"):
        model_for_task("survival", np.ones(2))


def test_sparse_coefficients_are_stored_densely():
    means = sparse.csr_matrix(np.array([[0.0, 1.5, 0.0, -2.0]]))
    coefficients = Coefficients(means, variances=sparse.csr_matrix(np.array([[0.1, 0.0, 0.0, 0.2]])))
    np.testing.assert_array_equal(coefficients.means, [0.0, 1.5, 0.0, -2.0])
    np.testing.assert_array_equal(coefficients.variances, [0.1, 0.0, 0.0, 0.2])
    assert len(coefficients) == 4


def test_margin_of_sparse_features():
    model = LinearRegressionModel(np.array([0.5, -1.0, 2.0]))
    features = sparse.csr_matrix(np.array([[0.0, 3.0, 1.0]]))
    assert model.compute_margin(features, 0.25) == pytest.approx(-0.75)
    assert model.compute_margin(features.toarray().ravel(), 0.25) == pytest.approx(-0.75)
