"""Core value types shared by every optimizer."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

Array = np.ndarray

DEFAULT_MAX_ITERATIONS = 100
DEFAULT_TOLERANCE = 1e-6


def _frozen_copy(values: Array) -> Array:
    out = np.array(values, dtype=float).reshape(-1)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class OptimizerState:
    """
    Snapshot of optimizer progress at one iteration.

    Arrays are copied and marked read-only on construction, so a recorded
    state never changes after the optimizer moves on.
    """

    coefficients: Array
    value: float
    gradient: Array
    iteration: int

    def __post_init__(self) -> None:
        coefficients = _frozen_copy(self.coefficients)
        gradient = _frozen_copy(self.gradient)
        if coefficients.shape != gradient.shape:
            raise ValueError(
                f"coefficients shape {coefficients.shape} does not match "
                f"gradient shape {gradient.shape}"
            )
        if self.iteration < 0:
            raise ValueError("iteration must be non-negative")
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "gradient", gradient)
        object.__setattr__(self, "value", float(self.value))
        object.__setattr__(self, "iteration", int(self.iteration))

    @property
    def gradient_norm(self) -> float:
        return float(np.linalg.norm(self.gradient))

    @property
    def is_finite(self) -> bool:
        return bool(np.isfinite(self.value) and np.all(np.isfinite(self.gradient)))


class ConvergenceReason(Enum):
    """Why an optimizer loop stopped."""

    OBJECTIVE_NOT_FINITE = "objective value or gradient is not finite"
    MAX_ITERATIONS = "maximum number of iterations reached"
    FUNCTION_VALUES_CONVERGED = "relative change of the objective value below tolerance"
    GRADIENT_CONVERGED = "relative gradient norm below tolerance"


class OptimizerStatus(Enum):
    """Lifecycle of one optimizer instance."""

    BEFORE_INIT = "before_init"
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    FAILED = "failed"


class OptimizationStatesTracker:
    """
    Ordered history of accepted optimizer states for one solve.

    Each tracked state is stored with the elapsed wall time since the tracker
    was created. Once :meth:`seal` has recorded the convergence reason the
    history is closed.
    """

    def __init__(self) -> None:
        self._start = time.perf_counter()
        self._states: List[OptimizerState] = []
        self._times: List[float] = []
        self._convergence_reason: Optional[ConvergenceReason] = None

    @property
    def states(self) -> tuple[OptimizerState, ...]:
        return tuple(self._states)

    @property
    def times(self) -> tuple[float, ...]:
        return tuple(self._times)

    @property
    def convergence_reason(self) -> Optional[ConvergenceReason]:
        return self._convergence_reason

    @property
    def is_sealed(self) -> bool:
        return self._convergence_reason is not None

    def __len__(self) -> int:
        return len(self._states)

    def track(self, state: OptimizerState) -> None:
        if self.is_sealed:
            raise RuntimeError("Cannot track states after the solve has finished")
        self._states.append(state)
        self._times.append(time.perf_counter() - self._start)

    def seal(self, reason: ConvergenceReason) -> None:
        if self.is_sealed:
            raise RuntimeError("Convergence reason has already been recorded")
        self._convergence_reason = reason

    def summary(self) -> str:
        """Text table of iteration, value, gradient norm and elapsed time."""
        lines = [f"{'Iter':>6} {'Value':>16} {'|Gradient|':>16} {'Time(s)':>10}"]
        for state, elapsed in zip(self._states, self._times):
            lines.append(
                f"{state.iteration:>6d} {state.value:>16.8e} "
                f"{state.gradient_norm:>16.8e} {elapsed:>10.4f}"
            )
        reason = self._convergence_reason.name if self._convergence_reason else "NONE"
        lines.append(f"Convergence reason: {reason}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"OptimizationStatesTracker(n_states={len(self._states)}, "
            f"convergence_reason={self._convergence_reason})"
        )


__all__ = [
    "Array",
    "ConvergenceReason",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_TOLERANCE",
    "OptimizationStatesTracker",
    "OptimizerState",
    "OptimizerStatus",
]
