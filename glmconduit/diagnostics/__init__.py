"""Diagnostics and debugging utilities for GLM Conduit."""

from .core import (
    EFFECTIVE_PARAMETER_THRESHOLD,
    assert_finite,
    effective_parameter_count,
    is_finite,
)
from .debug_mode import (
    DEBUG_ENV_VAR,
    debug_context,
    debug_flag_from_environment,
    is_debug_enabled,
    reload_debug_from_environment,
    set_debug_enabled,
)

__all__ = [
    "DEBUG_ENV_VAR",
    "EFFECTIVE_PARAMETER_THRESHOLD",
    "assert_finite",
    "effective_parameter_count",
    "is_finite",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "debug_flag_from_environment",
    "reload_debug_from_environment",
]
