"""Factory for creating optimizers from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constraints import ConstraintMap
from .core import DEFAULT_MAX_ITERATIONS, DEFAULT_TOLERANCE
from .lbfgs import DEFAULT_NUM_CORRECTIONS, LBFGS
from .optimizer import Optimizer
from .tron import DEFAULT_MAX_CG_ITERATIONS, TRON

SUPPORTED_OPTIMIZERS = ("lbfgs", "tron")


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Configuration for creating an optimizer.

    Fields that a given optimizer does not use are ignored.

    Args:
        name: Optimizer name. Supported values: "lbfgs", "tron".
        max_iterations: Iteration cap. Must be positive.
        tolerance: Relative convergence tolerance. Must be finite and
            non-negative; zero runs until the iteration cap.
        constraint_map: Optional per-feature ``(lower, upper)`` bounds.
        num_corrections: L-BFGS history size.
        max_cg_iterations: TRON conjugate-gradient steps per trial.
        track_states: Record every accepted state.
        reuse_previous_initial_state: Keep the first solve's initial state
            for convergence checks of later warm-started solves.
    """

    name: str = "lbfgs"
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    tolerance: float = DEFAULT_TOLERANCE
    constraint_map: Optional[ConstraintMap] = None
    num_corrections: int = DEFAULT_NUM_CORRECTIONS
    max_cg_iterations: int = DEFAULT_MAX_CG_ITERATIONS
    track_states: bool = True
    reuse_previous_initial_state: bool = False


def create_optimizer(config: OptimizerConfig) -> Optimizer:
    """
    Create an optimizer from a configuration.

    Raises:
        ValueError: If the name is not supported, or the iteration cap,
            tolerance or constraint map is rejected by :class:`Optimizer`.
    """

    common = dict(
        max_iterations=config.max_iterations,
        tolerance=config.tolerance,
        constraint_map=config.constraint_map,
        state_tracking_enabled=config.track_states,
        reuse_previous_initial_state=config.reuse_previous_initial_state,
    )
    name_lower = config.name.lower()
    if name_lower == "lbfgs":
        return LBFGS(num_corrections=config.num_corrections, **common)
    elif name_lower == "tron":
        return TRON(max_cg_iterations=config.max_cg_iterations, **common)
    else:
        raise ValueError(
            f"Unsupported optimizer name: {config.name!r}. "
            f"Supported optimizers: {list(SUPPORTED_OPTIMIZERS)}"
        )


__all__ = ["OptimizerConfig", "SUPPORTED_OPTIMIZERS", "create_optimizer"]
