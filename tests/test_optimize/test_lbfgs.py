import numpy as np
import pytest

from glmconduit.data import LocalDataset, stack_records
from glmconduit.function import LogisticLossFunction, SquaredLossFunction
from glmconduit.optimize import LBFGS, ConvergenceReason, OptimizerStatus


def ridge_solution(records, regularization_weight):
    X, y, _, _ = stack_records(records)
    A = X.T @ X + regularization_weight * np.eye(X.shape[1])
    return np.linalg.solve(A, X.T @ y)


def test_lbfgs_matches_ridge_closed_form(linear_records):
    optimizer = LBFGS(tolerance=1e-12, max_iterations=200)
    coefficients, value = optimizer.optimize(
        linear_records, SquaredLossFunction(regularization_weight=2.0)
    )
    np.testing.assert_allclose(coefficients, ridge_solution(linear_records, 2.0), atol=1e-4)
    assert optimizer.status is OptimizerStatus.CONVERGED
    assert value == pytest.approx(optimizer.current_state.value)


def test_lbfgs_recovers_logistic_coefficients(logistic_records):
    optimizer = LBFGS(tolerance=1e-10, max_iterations=200)
    coefficients, _ = optimizer.optimize(logistic_records, LogisticLossFunction(1.0))
    assert optimizer.current_state.gradient_norm < 1e-3 * optimizer.initial_state.gradient_norm
    # signs of the generating coefficients [1, -1]
    assert coefficients[0] > 0 > coefficients[1]


def test_history_is_bounded_by_num_corrections(linear_records):
    optimizer = LBFGS(num_corrections=2, tolerance=1e-14, max_iterations=30)
    optimizer.optimize(linear_records, SquaredLossFunction())
    assert optimizer.history_size <= 2


def test_max_iterations_stops_after_one_step(logistic_records):
    optimizer = LBFGS(max_iterations=1)
    optimizer.optimize(logistic_records, LogisticLossFunction())
    assert optimizer.convergence_reason is ConvergenceReason.MAX_ITERATIONS
    assert optimizer.status is OptimizerStatus.MAX_ITERATIONS_REACHED
    assert [s.iteration for s in optimizer.state_tracker.states] == [0, 1]


def test_warm_start_at_optimum_converges_immediately(linear_records):
    objective = SquaredLossFunction(regularization_weight=1.0)
    optimizer = LBFGS(tolerance=1e-8)
    solution = ridge_solution(linear_records, 1.0)
    optimizer.optimize(linear_records, objective, initial_coefficients=solution)
    assert optimizer.current_state.iteration == 1


def test_clear_inner_state_drops_history(linear_records):
    optimizer = LBFGS(max_iterations=5)
    optimizer.optimize(LocalDataset(linear_records), SquaredLossFunction())
    optimizer.clear_optimizer_inner_state()
    assert optimizer.history_size == 0


def test_num_corrections_must_be_positive():
    with pytest.raises(ValueError):
        LBFGS(num_corrections=0)
