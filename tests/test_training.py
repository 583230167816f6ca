"""Tests for the regularization-path training driver."""

import numpy as np
import pytest

from glmconduit.data import DistributedDataset
from glmconduit.evaluation import AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS
from glmconduit.function import LogisticLossFunction, PoissonLossFunction, SquaredLossFunction
from glmconduit.models import LinearRegressionModel, LogisticRegressionModel, PoissonRegressionModel
from glmconduit.optimize import LBFGS, ConvergenceReason, OptimizerConfig
from glmconduit.training import objective_for_task, train_generalized_linear_model


@pytest.mark.parametrize(
    "task, loss_cls",
    [
        ("linear_regression", SquaredLossFunction),
        ("logistic_regression", LogisticLossFunction),
        ("POISSON_REGRESSION", PoissonLossFunction),
    ],
)
def test_objective_for_task(task, loss_cls):
    objective = objective_for_task(task, regularization_weight=2.0)
    assert isinstance(objective, loss_cls)
    assert objective.regularization_weight == 2.0


def test_unknown_task_is_rejected(linear_records):
    with pytest.raises(ValueError, match="Unsupported task"):
        train_generalized_linear_model(linear_records, "ordinal_regression", [1.0])


def test_weights_are_visited_largest_first(linear_records):
    trained = train_generalized_linear_model(linear_records, "linear_regression", [0.1, 10.0, 1.0])
    assert [t.regularization_weight for t in trained] == [10.0, 1.0, 0.1]
    assert all(isinstance(t.model, LinearRegressionModel) for t in trained)
    norms = [np.linalg.norm(t.model.coefficients.means) for t in trained]
    assert norms == sorted(norms)


def test_each_model_has_its_own_sealed_tracker(logistic_records):
    trained = train_generalized_linear_model(logistic_records, "logistic_regression", [1.0, 0.5])
    first, second = trained
    assert first.tracker is not second.tracker
    assert first.tracker.is_sealed and second.tracker.is_sealed
    assert isinstance(second.model, LogisticRegressionModel)


def test_warm_start_begins_at_previous_solution(logistic_records):
    trained = train_generalized_linear_model(logistic_records, "logistic_regression", [5.0, 4.9])
    first, second = trained
    np.testing.assert_array_equal(
        second.tracker.states[0].coefficients, first.model.coefficients.means
    )


def test_solutions_match_independent_solves(poisson_records):
    config = OptimizerConfig(name="tron", tolerance=1e-10)
    trained = train_generalized_linear_model(poisson_records, "poisson_regression", [0.1, 3.0], config)
    for point in trained:
        assert isinstance(point.model, PoissonRegressionModel)
        reference, _ = LBFGS(tolerance=1e-12, max_iterations=500).optimize(
            poisson_records, PoissonLossFunction(point.regularization_weight)
        )
        np.testing.assert_allclose(point.model.coefficients.means, reference, atol=1e-3)
        assert point.tracker.convergence_reason is not ConvergenceReason.OBJECTIVE_NOT_FINITE


def test_validation_metrics_are_attached(logistic_records):
    train, validation = logistic_records[:60], logistic_records[60:]
    trained = train_generalized_linear_model(
        DistributedDataset.from_records(train, 3),
        "logistic_regression",
        [1.0],
        validation_data=validation,
    )
    assert AREA_UNDER_RECEIVER_OPERATOR_CHARACTERISTICS in trained[0].metrics


def test_metrics_absent_without_validation_data(linear_records):
    trained = train_generalized_linear_model(linear_records, "linear_regression", [1.0])
    assert trained[0].metrics is None


@pytest.mark.parametrize("weights", [[], [1.0, -1.0], [float("nan")]])
def test_invalid_weights_are_rejected(weights, linear_records):
    with pytest.raises(ValueError):
        train_generalized_linear_model(linear_records, "linear_regression", weights)
