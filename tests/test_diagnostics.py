"""Tests for diagnostics and debug mode."""

import numpy as np
import pytest
from scipy import sparse

from glmconduit.diagnostics import (
    DEBUG_ENV_VAR,
    assert_finite,
    debug_context,
    debug_flag_from_environment,
    effective_parameter_count,
    is_debug_enabled,
    is_finite,
    reload_debug_from_environment,
    set_debug_enabled,
)


def test_debug_mode_toggle_and_context() -> None:
    """Test debug mode toggling and context manager."""
    original = is_debug_enabled()

    try:
        set_debug_enabled(False)
        assert not is_debug_enabled()

        with debug_context(True):
            assert is_debug_enabled()

        assert not is_debug_enabled()

        set_debug_enabled(True)
        with debug_context(False):
            assert not is_debug_enabled()
        assert is_debug_enabled()
    finally:
        set_debug_enabled(original)


def test_debug_context_restores_on_error() -> None:
    original = is_debug_enabled()
    with pytest.raises(RuntimeError):
        with debug_context(not original):
            raise RuntimeError("boom")
    assert is_debug_enabled() == original


@pytest.mark.parametrize(
    "environ, expected",
    [
        ({}, False),
        ({DEBUG_ENV_VAR: "1"}, True),
        ({DEBUG_ENV_VAR: " Yes "}, True),
        ({DEBUG_ENV_VAR: "ON"}, True),
        ({DEBUG_ENV_VAR: "0"}, False),
        ({DEBUG_ENV_VAR: "enabled"}, False),
        ({"OTHER_DEBUG": "1"}, False),
    ],
)
def test_debug_flag_from_environment(environ, expected) -> None:
    assert debug_flag_from_environment(environ) is expected


def test_reload_debug_from_environment(monkeypatch) -> None:
    original = is_debug_enabled()
    try:
        monkeypatch.setenv(DEBUG_ENV_VAR, "true")
        assert reload_debug_from_environment() is True
        assert is_debug_enabled()
        monkeypatch.delenv(DEBUG_ENV_VAR)
        assert reload_debug_from_environment() is False
        assert not is_debug_enabled()
    finally:
        set_debug_enabled(original)


def test_is_finite_handles_scalars_and_arrays() -> None:
    assert is_finite(1.0)
    assert is_finite(np.zeros(3))
    assert not is_finite(np.array([0.0, np.inf]))
    assert not is_finite(float("nan"))


def test_assert_finite_names_the_value() -> None:
    assert_finite("gradient", np.ones(2))
    with pytest.raises(FloatingPointError, match="gradient"):
        assert_finite("gradient", np.array([np.nan]))


def test_effective_parameter_count_threshold() -> None:
    coefficients = np.array([0.0, 1e-10, 3.2, -0.4])
    assert effective_parameter_count(coefficients) == 2
    assert effective_parameter_count(coefficients, threshold=0.0) == 3
    assert effective_parameter_count(coefficients, threshold=1.0) == 1


def test_effective_parameter_count_inspects_stored_values() -> None:
    # explicit zero and a negligible value are stored but not effective
    coefficients = sparse.csr_matrix(
        (np.array([0.0, 3.2, 1e-12, -0.4]), np.array([0, 2, 5, 9]), np.array([0, 4])),
        shape=(1, 10),
    )
    assert coefficients.nnz == 4
    assert effective_parameter_count(coefficients) == 2
    assert effective_parameter_count(coefficients, threshold=0.0) == 3
    assert effective_parameter_count(coefficients.T) == 2
