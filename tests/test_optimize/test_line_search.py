import numpy as np
import pytest

from glmconduit.optimize import projected_armijo, wolfe_line_search


def quadratic(x: np.ndarray) -> tuple[float, np.ndarray]:
    A = np.diag([1.0, 10.0])
    return 0.5 * float(x @ A @ x), A @ x


def test_wolfe_step_satisfies_strong_wolfe_conditions():
    x = np.array([1.0, 1.0])
    fx, gx = quadratic(x)
    p = -gx
    res = wolfe_line_search(quadratic, x, p, fx, gx, c1=1e-4, c2=0.9)
    der0 = float(gx @ p)
    assert res.value <= fx + 1e-4 * res.alpha * der0
    assert abs(float(res.gradient @ p)) <= 0.9 * abs(der0)
    np.testing.assert_allclose(res.point, x + res.alpha * p)
    value, gradient = quadratic(res.point)
    assert res.value == pytest.approx(value)
    np.testing.assert_allclose(res.gradient, gradient)


def test_wolfe_rejects_ascent_direction():
    x = np.array([1.0, 1.0])
    fx, gx = quadratic(x)
    with pytest.raises(ValueError, match="descent"):
        wolfe_line_search(quadratic, x, gx, fx, gx)


def test_wolfe_rejects_bad_constants():
    x = np.array([1.0, 1.0])
    fx, gx = quadratic(x)
    with pytest.raises(ValueError):
        wolfe_line_search(quadratic, x, -gx, fx, gx, c1=0.9, c2=0.1)


def test_wolfe_backs_off_from_non_finite_region():
    def barrier(x):
        if x[0] >= 1.0:
            return np.inf, np.array([np.inf])
        return -np.log(1.0 - x[0]) + x[0] ** 2, np.array([1.0 / (1.0 - x[0]) + 2 * x[0]])

    x = np.array([-1.0])
    fx, gx = barrier(x)
    res = wolfe_line_search(barrier, x, -gx, fx, gx, alpha0=10.0)
    assert np.isfinite(res.value)
    assert res.value < fx


def test_projected_armijo_stays_in_box():
    lower, upper = np.array([0.5, -np.inf]), np.array([np.inf, np.inf])

    def proj(z):
        return np.clip(z, lower, upper)

    x = np.array([1.0, 1.0])
    fx, gx = quadratic(x)
    res = projected_armijo(quadratic, proj, x, fx, gx, -gx)
    assert res.point[0] >= 0.5
    assert res.value < fx
    assert res.nfev >= 1


def test_projected_armijo_returns_start_when_no_decrease():
    x = np.array([0.0, 0.0])
    fx, gx = quadratic(x)
    res = projected_armijo(quadratic, lambda z: z, x, fx, np.array([-1.0, 0.0]), np.array([1.0, 0.0]), max_iter=5)
    assert res.alpha == 0.0
    np.testing.assert_array_equal(res.point, x)
    assert res.nfev == 5
