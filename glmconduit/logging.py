"""Logging utilities for GLM Conduit.

Every logger lives under the ``glmconduit`` namespace, writes
``[LEVEL] name: message`` lines to stderr and does not propagate to the root
logger. Solvers log one INFO line when a solve starts and ends and one DEBUG
line per iteration; the evaluator logs the metric names it produced.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

_ROOT = "glmconduit"
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Level given to loggers created from now on
_DEFAULT_LEVEL = logging.WARNING

_loggers: dict[str, logging.Logger] = {}


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _qualified_name(name: Optional[str]) -> str:
    if name is None or name == _ROOT:
        return _ROOT
    return name if name.startswith(_ROOT + ".") else f"{_ROOT}.{name}"


def _attach_handler(logger: logging.Logger, stream, formatter: logging.Formatter, level: int) -> None:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Args:
        name: Usually ``__name__``. Names outside the package are prefixed
            with ``glmconduit.``; None returns the package root logger.

    Example:
        >>> from glmconduit.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Starting solve")
    """
    logger_name = _qualified_name(name)
    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        _attach_handler(logger, sys.stderr, logging.Formatter(_DEFAULT_FORMAT), _DEFAULT_LEVEL)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every GLM Conduit logger and handler.

    Args:
        level: A ``logging`` constant or its name ('DEBUG', 'INFO', ...).
    """
    level = _resolve_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Replace the handlers of every logger created so far.

    Loggers created later pick up ``level`` but keep the default stderr
    handler. Typically called once at application startup.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses default.
        stream: Output stream (default: sys.stderr).
    """
    level = _resolve_level(level)
    formatter = logging.Formatter(format_string or _DEFAULT_FORMAT)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        _attach_handler(logger, stream or sys.stderr, formatter, level)

    global _DEFAULT_LEVEL
    _DEFAULT_LEVEL = level


@contextmanager
def log_level(level: int | str) -> Iterator[None]:
    """
    Temporarily change the level of every GLM Conduit logger.

    Useful to trace a single solve at DEBUG without reconfiguring handlers.
    Previous logger, handler and default levels are restored on exit.
    """
    global _DEFAULT_LEVEL
    saved = {
        name: (logger.level, [h.level for h in logger.handlers])
        for name, logger in _loggers.items()
    }
    saved_default = _DEFAULT_LEVEL
    set_log_level(level)
    try:
        yield
    finally:
        _DEFAULT_LEVEL = saved_default
        for name, logger in _loggers.items():
            logger_level, handler_levels = saved.get(name, (saved_default, []))
            logger.setLevel(logger_level)
            for handler, handler_level in zip(logger.handlers, handler_levels):
                handler.setLevel(handler_level)
            for handler in logger.handlers[len(handler_levels):]:
                handler.setLevel(logger_level)


def log_solver_iteration(
    logger: logging.Logger,
    solver: str,
    iteration: int,
    value: float,
    gradient_norm: float,
) -> None:
    """DEBUG line for one solver iteration."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "%s iteration %d: value=%.8e |gradient|=%.8e",
            solver,
            iteration,
            value,
            gradient_norm,
        )


def log_metrics(logger: logging.Logger, metrics: Mapping[str, float]) -> None:
    """INFO line naming the metrics, then one DEBUG line per value."""
    logger.info("Generated metrics with keys %s", sorted(metrics))
    if logger.isEnabledFor(logging.DEBUG):
        for name in sorted(metrics):
            logger.debug("%s = %.10g", name, metrics[name])


__all__ = [
    "configure_logging",
    "get_logger",
    "log_level",
    "log_metrics",
    "log_solver_iteration",
    "set_log_level",
]
