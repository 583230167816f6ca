"""Limited-memory BFGS step rule."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

import numpy as np

from ..data import Dataset
from ..function import ObjectiveFunction
from ..logging import get_logger
from .core import Array, OptimizerState
from .line_search import projected_armijo, wolfe_line_search
from .optimizer import Optimizer

logger = get_logger(__name__)

DEFAULT_NUM_CORRECTIONS = 10


class LBFGS(Optimizer):
    """
    L-BFGS using two-loop recursion.

    Unconstrained problems use a strong Wolfe line search. With a constraint
    map, coordinates held on a bound by the gradient are frozen, the
    direction is built over the remaining free variables, and the step is
    chosen by Armijo backtracking along the projected path so every
    evaluated point stays inside the box.

    Args:
        num_corrections: Number of ``(s, y)`` curvature pairs kept.
        **kwargs: Forwarded to :class:`Optimizer`.
    """

    def __init__(self, num_corrections: int = DEFAULT_NUM_CORRECTIONS, **kwargs) -> None:
        if num_corrections <= 0:
            raise ValueError("num_corrections must be positive.")
        super().__init__(**kwargs)
        self.num_corrections = int(num_corrections)
        self._s_history: Deque[Array] = deque(maxlen=self.num_corrections)
        self._y_history: Deque[Array] = deque(maxlen=self.num_corrections)

    def init(
        self,
        state: OptimizerState,
        data: Dataset,
        objective_function: ObjectiveFunction,
        coefficients: Array,
    ) -> None:
        self._s_history = deque(maxlen=self.num_corrections)
        self._y_history = deque(maxlen=self.num_corrections)

    def clear_optimizer_inner_state(self) -> None:
        self._s_history.clear()
        self._y_history.clear()

    @property
    def history_size(self) -> int:
        return len(self._s_history)

    def _two_loop(self, g: Array, free: Optional[np.ndarray] = None) -> Array:
        pairs = list(zip(self._s_history, self._y_history))
        if free is not None:
            # curvature restricted to the free subspace; pairs that lose
            # positive curvature there are skipped
            pairs = [(s * free, y * free) for s, y in pairs]
            pairs = [(s, y) for s, y in pairs if float(np.dot(y, s)) > 1e-12]
        q = g.copy()
        alpha_vals = []
        for s, y in reversed(pairs):
            rho = 1.0 / float(np.dot(y, s))
            alpha_i = rho * float(np.dot(s, q))
            q = q - alpha_i * y
            alpha_vals.append((rho, alpha_i, s, y))
        if pairs:
            last_s, last_y = pairs[-1]
            gamma = float(np.dot(last_s, last_y) / np.dot(last_y, last_y))
        else:
            gamma = 1.0
        r = gamma * q
        for rho, alpha_i, s, y in reversed(alpha_vals):
            beta = rho * float(np.dot(y, r))
            r = r + s * (alpha_i - beta)
        return -r

    def run_one_iteration(
        self,
        data: Dataset,
        objective_function: ObjectiveFunction,
        state: OptimizerState,
    ) -> OptimizerState:
        x = state.coefficients
        grad = state.gradient
        next_iteration = state.iteration + 1
        free = self.free_variables(x, grad) if self.has_constraints else None
        reduced = grad if free is None else np.where(free, grad, 0.0)
        if not np.any(reduced):
            return OptimizerState(x, state.value, grad, next_iteration)

        direction = self._two_loop(reduced, free)
        if free is not None:
            direction[~free] = 0.0
        if not float(np.dot(reduced, direction)) < 0:
            logger.debug("discarding curvature history: not a descent direction")
            self.clear_optimizer_inner_state()
            direction = -reduced

        # Without curvature information, scale the first trial step to unit length.
        alpha0 = 1.0 if self._s_history else min(1.0, 1.0 / float(np.linalg.norm(reduced)))

        def value_and_grad(point: Array) -> tuple[float, Array]:
            return self.calculate(data, objective_function, point)

        if self.has_constraints:
            result = projected_armijo(
                value_and_grad,
                self.project_coefficients,
                x,
                state.value,
                grad,
                direction,
                alpha0=alpha0,
            )
        else:
            result = wolfe_line_search(
                value_and_grad, x, direction, state.value, grad, alpha0=alpha0
            )

        s = result.point - x
        y = result.gradient - grad
        if float(np.dot(y, s)) > 1e-12:
            self._s_history.append(s)
            self._y_history.append(y)
        return OptimizerState(result.point, result.value, result.gradient, next_iteration)


__all__ = ["DEFAULT_NUM_CORRECTIONS", "LBFGS"]
