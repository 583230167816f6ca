"""Debug mode management for GLM Conduit.

In debug mode the optimizer checks every state a step rule returns (same
dimension, inside the constraint box) and logs the state-tracker summary at
the end of a solve, and :func:`~glmconduit.evaluation.evaluate` checks every
metric against its declared range. The initial setting comes from the
``GLMCONDUIT_DEBUG`` environment variable.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

DEBUG_ENV_VAR = "GLMCONDUIT_DEBUG"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def debug_flag_from_environment(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Read the debug flag from ``environ`` (``os.environ`` by default)."""
    environ = os.environ if environ is None else environ
    return environ.get(DEBUG_ENV_VAR, "0").strip().lower() in _TRUE_VALUES


_debug_enabled: bool = debug_flag_from_environment()


def is_debug_enabled() -> bool:
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    """Globally enable or disable debug mode."""
    global _debug_enabled
    _debug_enabled = bool(enabled)


def reload_debug_from_environment() -> bool:
    """Re-read ``GLMCONDUIT_DEBUG`` after the process started; returns the new setting."""
    set_debug_enabled(debug_flag_from_environment())
    return _debug_enabled


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Context manager to temporarily enable or disable debug mode.

    Example
    -------
    >>> with debug_context(True):
    ...     # solves inside the block validate every state
    ...     pass
    """
    previous = _debug_enabled
    set_debug_enabled(enabled)
    try:
        yield
    finally:
        set_debug_enabled(previous)


__all__ = [
    "DEBUG_ENV_VAR",
    "debug_context",
    "debug_flag_from_environment",
    "is_debug_enabled",
    "reload_debug_from_environment",
    "set_debug_enabled",
]
