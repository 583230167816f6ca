"""
Iteration state machine shared by every step rule.

:class:`Optimizer` owns everything that does not depend on how a step is
computed: the initial/current/previous states, objective evaluation over local
or distributed data (with broadcast coefficients released right after use),
box-constraint projection, convergence detection and state tracking. Concrete
step rules (:class:`~glmconduit.optimize.lbfgs.LBFGS`,
:class:`~glmconduit.optimize.tron.TRON`) implement :meth:`Optimizer.init`,
:meth:`Optimizer.run_one_iteration` and
:meth:`Optimizer.clear_optimizer_inner_state`.

An optimizer instance is meant for one sequential :meth:`Optimizer.optimize`
call at a time; its mutable fields are not guarded for concurrent use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

import numpy as np

from ..data import DataRecord, Dataset, DistributedDataset, as_dataset, num_features
from ..diagnostics import is_debug_enabled
from ..function import ObjectiveFunction, TwiceDiffFunction
from ..logging import get_logger, log_solver_iteration
from .constraints import ConstraintMap, bounds_arrays, project, validate_constraint_map
from .core import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    Array,
    ConvergenceReason,
    OptimizationStatesTracker,
    OptimizerState,
    OptimizerStatus,
)

logger = get_logger(__name__)

_TERMINAL_STATUS = {
    ConvergenceReason.OBJECTIVE_NOT_FINITE: OptimizerStatus.FAILED,
    ConvergenceReason.MAX_ITERATIONS: OptimizerStatus.MAX_ITERATIONS_REACHED,
    ConvergenceReason.FUNCTION_VALUES_CONVERGED: OptimizerStatus.CONVERGED,
    ConvergenceReason.GRADIENT_CONVERGED: OptimizerStatus.CONVERGED,
}


class Optimizer(ABC):
    """
    Abstract solver for smooth convex problems over a :data:`Dataset`.

    Args:
        max_iterations: Iteration cap; the loop stops once the current state
            reaches this iteration index.
        tolerance: Relative tolerance for the function-value and gradient
            convergence tests, both measured against the initial state.
        constraint_map: Optional ``{feature_index: (lower, upper)}`` box
            constraints applied to every evaluated point.
        state_tracking_enabled: Whether to record every accepted state.
        reuse_previous_initial_state: Keep the initial state of an earlier
            solve so convergence checks stay comparable across warm starts.
    """

    def __init__(
        self,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        tolerance: float = DEFAULT_TOLERANCE,
        constraint_map: Optional[ConstraintMap] = None,
        state_tracking_enabled: bool = True,
        reuse_previous_initial_state: bool = False,
    ) -> None:
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.constraint_map = constraint_map
        self.state_tracking_enabled = state_tracking_enabled
        self.reuse_previous_initial_state = reuse_previous_initial_state

        self._initial_state: Optional[OptimizerState] = None
        self._current_state: Optional[OptimizerState] = None
        self._previous_state: Optional[OptimizerState] = None
        self._tracker: Optional[OptimizationStatesTracker] = None
        self._convergence_reason: Optional[ConvergenceReason] = None
        self._status = OptimizerStatus.BEFORE_INIT
        self._lower: Optional[Array] = None
        self._upper: Optional[Array] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, value: int) -> None:
        if int(value) != value or value <= 0:
            raise ValueError(f"max_iterations must be a positive integer, got {value!r}")
        self._max_iterations = int(value)

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @tolerance.setter
    def tolerance(self, value: float) -> None:
        if not np.isfinite(value) or value < 0:
            raise ValueError(f"tolerance must be finite and >= 0, got {value!r}")
        self._tolerance = float(value)

    @property
    def constraint_map(self) -> Optional[ConstraintMap]:
        return self._constraint_map

    @constraint_map.setter
    def constraint_map(self, value: Optional[ConstraintMap]) -> None:
        self._constraint_map = validate_constraint_map(value)

    @property
    def has_constraints(self) -> bool:
        return bool(self._constraint_map)

    # ------------------------------------------------------------------
    # Read-only progress
    # ------------------------------------------------------------------
    @property
    def initial_state(self) -> Optional[OptimizerState]:
        return self._initial_state

    @property
    def current_state(self) -> Optional[OptimizerState]:
        return self._current_state

    @property
    def previous_state(self) -> Optional[OptimizerState]:
        return self._previous_state

    @property
    def convergence_reason(self) -> Optional[ConvergenceReason]:
        return self._convergence_reason

    @property
    def state_tracker(self) -> Optional[OptimizationStatesTracker]:
        return self._tracker

    @property
    def status(self) -> OptimizerStatus:
        return self._status

    # ------------------------------------------------------------------
    # Step-rule hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def init(
        self,
        state: OptimizerState,
        data: Dataset,
        objective_function: ObjectiveFunction,
        coefficients: Array,
    ) -> None:
        """Prepare step-rule state (curvature history, trust-region radius)."""

    @abstractmethod
    def run_one_iteration(
        self,
        data: Dataset,
        objective_function: ObjectiveFunction,
        state: OptimizerState,
    ) -> OptimizerState:
        """Take one step from ``state`` and return the next state."""

    @abstractmethod
    def clear_optimizer_inner_state(self) -> None:
        """Drop step-rule state left over from a previous solve."""

    def clear_optimization_states_tracker(self) -> None:
        self._tracker = OptimizationStatesTracker() if self.state_tracking_enabled else None

    # ------------------------------------------------------------------
    # Objective evaluation
    # ------------------------------------------------------------------
    def project_coefficients(self, coefficients: Array) -> Array:
        """Clip ``coefficients`` into the configured box (new array)."""
        if self._lower is None or self._upper is None:
            return np.array(coefficients, dtype=float)
        return project(coefficients, self._lower, self._upper)

    def calculate(
        self,
        data: Dataset,
        objective_function: ObjectiveFunction,
        coefficients: Array,
    ) -> tuple[float, Array]:
        """
        Evaluate value and gradient at ``coefficients``.

        Distributed data receives the coefficients as a broadcast that is
        released as soon as the aggregation returns.
        """
        coefficients = np.array(coefficients, dtype=float)
        if isinstance(data, DistributedDataset):
            shared = data.broadcast(coefficients)
            try:
                return objective_function.calculate(data, shared)
            finally:
                shared.unpersist()
        return objective_function.calculate(data, coefficients)

    def hessian_vector(
        self,
        data: Dataset,
        objective_function: TwiceDiffFunction,
        coefficients: Array,
        direction: Array,
    ) -> Array:
        """Hessian-vector product with the same broadcast discipline as :meth:`calculate`."""
        coefficients = np.array(coefficients, dtype=float)
        direction = np.array(direction, dtype=float)
        if isinstance(data, DistributedDataset):
            shared_coefficients = data.broadcast(coefficients)
            shared_direction = data.broadcast(direction)
            try:
                return objective_function.hessian_vector(
                    data, shared_coefficients, shared_direction
                )
            finally:
                shared_coefficients.unpersist()
                shared_direction.unpersist()
        return objective_function.hessian_vector(data, coefficients, direction)

    def compute_state(
        self,
        data: Dataset,
        objective_function: ObjectiveFunction,
        coefficients: Array,
        iteration: int = 0,
    ) -> OptimizerState:
        """Project ``coefficients`` and evaluate the objective there."""
        coefficients = self.project_coefficients(coefficients)
        value, gradient = self.calculate(data, objective_function, coefficients)
        return OptimizerState(coefficients, value, gradient, iteration)

    def gradient_norm(self, state: OptimizerState) -> float:
        """
        Norm used by the gradient convergence test.

        Under a constraint map this is the norm of the projected-gradient step
        ``P(x - g) - x``, which vanishes at a box-constrained minimum even when
        the raw gradient does not.
        """
        if self._lower is None or self._upper is None:
            return state.gradient_norm
        x = state.coefficients
        step = project(x - state.gradient, self._lower, self._upper) - x
        return float(np.linalg.norm(step))

    def free_variables(self, coefficients: Array, gradient: Array) -> np.ndarray:
        """
        Mask of coordinates a descent step may move.

        A coordinate is fixed when it sits on a bound and the negative
        gradient points out of the box.
        """
        if self._lower is None or self._upper is None:
            return np.ones(np.shape(coefficients), dtype=bool)
        at_lower = (coefficients <= self._lower) & (gradient > 0)
        at_upper = (coefficients >= self._upper) & (gradient < 0)
        return ~(at_lower | at_upper)

    # ------------------------------------------------------------------
    # Convergence
    # ------------------------------------------------------------------
    def _check_convergence(self) -> Optional[ConvergenceReason]:
        current = self._current_state
        if current is None:
            return None
        if not current.is_finite:
            return ConvergenceReason.OBJECTIVE_NOT_FINITE
        if current.iteration >= self._max_iterations:
            return ConvergenceReason.MAX_ITERATIONS
        previous = self._previous_state
        initial = self._initial_state
        if previous is None or initial is None:
            return None
        if abs(current.value - previous.value) <= self._tolerance * abs(initial.value):
            return ConvergenceReason.FUNCTION_VALUES_CONVERGED
        if self.gradient_norm(current) <= self._tolerance * self.gradient_norm(initial):
            return ConvergenceReason.GRADIENT_CONVERGED
        return None

    def is_done(self) -> bool:
        """True once any termination criterion holds for the current state."""
        return self._check_convergence() is not None

    def set_convergence_reason(self) -> None:
        reason = self._check_convergence()
        if reason is None:
            raise RuntimeError("set_convergence_reason() called before the solve finished")
        self._convergence_reason = reason
        self._status = _TERMINAL_STATUS[reason]
        if self._tracker is not None:
            self._tracker.seal(reason)

    def _non_finite_error(self, state: OptimizerState) -> FloatingPointError:
        return FloatingPointError(
            f"{type(self).__name__}: objective value or gradient is not finite at "
            f"iteration {state.iteration} (value={state.value})"
        )

    def _validate_state(self, state: OptimizerState, previous: OptimizerState) -> None:
        if state.coefficients.shape != previous.coefficients.shape:
            raise RuntimeError(
                f"Step changed the coefficient dimension from "
                f"{previous.coefficients.shape} to {state.coefficients.shape}"
            )
        if self._lower is not None and self._upper is not None:
            if np.any(state.coefficients < self._lower) or np.any(
                state.coefficients > self._upper
            ):
                raise RuntimeError(
                    f"Iteration {state.iteration} left the constraint box"
                )

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------
    def optimize(
        self,
        data: Union[Dataset, Iterable[DataRecord]],
        objective_function: ObjectiveFunction,
        initial_coefficients: Optional[Array] = None,
    ) -> tuple[Array, float]:
        """
        Minimize ``objective_function`` over ``data``.

        Args:
            data: Local or distributed dataset (a plain iterable of records
                is treated as local).
            objective_function: Objective to minimize.
            initial_coefficients: Starting point; zeros by default.

        Returns:
            ``(coefficients, value)`` of the final state.

        Raises:
            ValueError: If the starting point or the constraint map does not
                match the feature dimension.
            FloatingPointError: If the objective becomes non-finite. The
                convergence reason is recorded before raising.
        """
        data = as_dataset(data)
        dim = num_features(data)
        if initial_coefficients is None:
            initial_coefficients = np.zeros(dim)
        initial_coefficients = np.asarray(initial_coefficients, dtype=float).reshape(-1)
        if initial_coefficients.shape[0] != dim:
            raise ValueError(
                f"initial_coefficients has {initial_coefficients.shape[0]} entries "
                f"but the data has {dim} features"
            )

        self.clear_optimizer_inner_state()
        self.clear_optimization_states_tracker()
        self._convergence_reason = None
        self._previous_state = None
        self._current_state = None
        self._status = OptimizerStatus.BEFORE_INIT
        self._lower, self._upper = (
            bounds_arrays(self._constraint_map, dim) if self.has_constraints else (None, None)
        )

        logger.info(
            "%s: starting solve over %d features (max_iterations=%d, tolerance=%g)",
            type(self).__name__,
            dim,
            self._max_iterations,
            self._tolerance,
        )
        state = self.compute_state(data, objective_function, initial_coefficients, 0)
        self._current_state = state
        if self._tracker is not None:
            self._tracker.track(state)
        if not state.is_finite:
            self.set_convergence_reason()
            raise self._non_finite_error(state)

        # Keep an earlier initial state only when asked to, so convergence
        # tests stay relative to the same baseline across warm starts.
        if self._initial_state is None or not self.reuse_previous_initial_state:
            self._initial_state = state
        self._status = OptimizerStatus.INITIALIZED
        self.init(state, data, objective_function, state.coefficients)

        self._status = OptimizerStatus.ITERATING
        while True:
            current = self._current_state
            updated = self.run_one_iteration(data, objective_function, current)
            if updated.iteration != current.iteration + 1:
                raise RuntimeError(
                    f"{type(self).__name__} produced iteration {updated.iteration} "
                    f"after iteration {current.iteration}"
                )
            if is_debug_enabled():
                self._validate_state(updated, current)
            self._previous_state = current
            self._current_state = updated
            if self._tracker is not None:
                self._tracker.track(updated)
            log_solver_iteration(
                logger,
                type(self).__name__,
                updated.iteration,
                updated.value,
                self.gradient_norm(updated),
            )
            if self.is_done():
                break

        self.set_convergence_reason()
        final = self._current_state
        logger.info(
            "%s: finished after %d iterations (%s), value=%.8e",
            type(self).__name__,
            final.iteration,
            self._convergence_reason.name,
            final.value,
        )
        if is_debug_enabled() and self._tracker is not None:
            logger.info("state history:\n%s", self._tracker.summary())
        if self._convergence_reason is ConvergenceReason.OBJECTIVE_NOT_FINITE:
            raise self._non_finite_error(final)
        return np.array(final.coefficients), final.value


__all__ = ["Optimizer"]
