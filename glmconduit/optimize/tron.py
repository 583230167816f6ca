"""
Trust-region Newton (TRON) step rule.

Each iteration approximately minimizes the quadratic model inside the trust
region with Steihaug's truncated conjugate gradient, using Hessian-vector
products only, then accepts or rejects the trial point by the ratio of actual
to predicted reduction. The radius update follows Lin, Weng & Keerthi (2008),
"Trust region Newton method for large-scale logistic regression".
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..data import Dataset
from ..function import ObjectiveFunction, TwiceDiffFunction
from ..logging import get_logger
from .core import Array, OptimizerState
from .optimizer import Optimizer

logger = get_logger(__name__)

DEFAULT_MAX_CG_ITERATIONS = 20
DEFAULT_MAX_IMPROVEMENT_FAILURES = 5


def _boundary_step(s: Array, d: Array, delta: float) -> float:
    """Return tau >= 0 such that ``||s + tau * d|| == delta``."""
    std = float(np.dot(s, d))
    sts = float(np.dot(s, s))
    dtd = float(np.dot(d, d))
    dsq = delta * delta
    rad = np.sqrt(max(std * std + dtd * (dsq - sts), 0.0))
    if std >= 0:
        denom = std + rad
        return (dsq - sts) / denom if denom > 0 else 0.0
    return (rad - std) / dtd


class TRON(Optimizer):
    """
    Trust-region Newton method for twice-differentiable objectives.

    Args:
        max_cg_iterations: Cap on conjugate-gradient steps per trial.
        max_improvement_failures: Rejected trial steps tolerated per
            iteration before returning the unchanged point.
        **kwargs: Forwarded to :class:`Optimizer`.
    """

    eta0, eta1, eta2 = 1e-4, 0.25, 0.75
    sigma1, sigma2, sigma3 = 0.25, 0.5, 4.0

    def __init__(
        self,
        max_cg_iterations: int = DEFAULT_MAX_CG_ITERATIONS,
        max_improvement_failures: int = DEFAULT_MAX_IMPROVEMENT_FAILURES,
        **kwargs,
    ) -> None:
        if max_cg_iterations <= 0:
            raise ValueError("max_cg_iterations must be positive.")
        if max_improvement_failures <= 0:
            raise ValueError("max_improvement_failures must be positive.")
        super().__init__(**kwargs)
        self.max_cg_iterations = int(max_cg_iterations)
        self.max_improvement_failures = int(max_improvement_failures)
        self._delta: Optional[float] = None

    @property
    def trust_region_radius(self) -> Optional[float]:
        return self._delta

    def init(
        self,
        state: OptimizerState,
        data: Dataset,
        objective_function: ObjectiveFunction,
        coefficients: Array,
    ) -> None:
        if not isinstance(objective_function, TwiceDiffFunction):
            raise TypeError(
                f"TRON needs Hessian-vector products; "
                f"{type(objective_function).__name__} is not a TwiceDiffFunction"
            )
        self._delta = state.gradient_norm

    def clear_optimizer_inner_state(self) -> None:
        self._delta = None

    def _truncated_cg(
        self,
        data: Dataset,
        objective_function: TwiceDiffFunction,
        x: Array,
        g: Array,
        delta: float,
        free: Optional[np.ndarray] = None,
    ) -> tuple[Array, Array]:
        """
        Steihaug CG; returns the step ``s`` and residual ``r = -(g + H s)``.

        With a ``free`` mask the quadratic model is minimized over the free
        coordinates only; ``g`` must already be zero elsewhere.
        """
        s = np.zeros_like(g)
        r = -g
        d = r.copy()
        r_dot_r = float(np.dot(r, r))
        cg_tol = 0.1 * float(np.linalg.norm(g))
        for _ in range(self.max_cg_iterations):
            if np.sqrt(r_dot_r) <= cg_tol:
                break
            hd = self.hessian_vector(data, objective_function, x, d)
            if free is not None:
                hd = np.where(free, hd, 0.0)
            d_hd = float(np.dot(d, hd))
            if d_hd <= 0:
                tau = _boundary_step(s, d, delta)
                s = s + tau * d
                r = r - tau * hd
                break
            alpha = r_dot_r / d_hd
            s_next = s + alpha * d
            if np.linalg.norm(s_next) > delta:
                tau = _boundary_step(s, d, delta)
                s = s + tau * d
                r = r - tau * hd
                break
            s = s_next
            r = r - alpha * hd
            r_dot_r_new = float(np.dot(r, r))
            d = r + (r_dot_r_new / r_dot_r) * d
            r_dot_r = r_dot_r_new
        return s, r

    def _update_radius(self, actual: float, predicted: float, gs: float, f_diff: float, snorm: float) -> None:
        denom = f_diff - gs
        alpha = self.sigma3 if denom <= 0 else max(self.sigma1, -0.5 * (gs / denom))
        delta = self._delta
        if actual < self.eta0 * predicted:
            delta = min(max(alpha, self.sigma1) * snorm, self.sigma2 * delta)
        elif actual < self.eta1 * predicted:
            delta = max(self.sigma1 * delta, min(alpha * snorm, self.sigma2 * delta))
        elif actual < self.eta2 * predicted:
            delta = max(self.sigma1 * delta, min(alpha * snorm, self.sigma3 * delta))
        else:
            delta = max(delta, min(alpha * snorm, self.sigma3 * delta))
        self._delta = delta

    def run_one_iteration(
        self,
        data: Dataset,
        objective_function: ObjectiveFunction,
        state: OptimizerState,
    ) -> OptimizerState:
        x = state.coefficients
        g = state.gradient
        fx = state.value
        next_iteration = state.iteration + 1
        free = self.free_variables(x, g) if self.has_constraints else None
        reduced = g if free is None else np.where(free, g, 0.0)
        if not np.any(reduced):
            return OptimizerState(x, fx, g, next_iteration)

        for attempt in range(self.max_improvement_failures):
            step, residual = self._truncated_cg(
                data, objective_function, x, reduced, self._delta, free
            )
            trial = x + step
            candidate = self.project_coefficients(trial)
            if np.array_equal(candidate, trial):
                gs = float(np.dot(g, step))
                predicted = -0.5 * (gs - float(np.dot(step, residual)))
            else:
                # the CG residual no longer describes the clipped step
                step = candidate - x
                gs = float(np.dot(g, step))
                h_step = self.hessian_vector(data, objective_function, x, step)
                predicted = -(gs + 0.5 * float(np.dot(step, h_step)))
            snorm = float(np.linalg.norm(step))

            f_new, g_new = self.calculate(data, objective_function, candidate)
            if state.iteration == 0:
                self._delta = min(self._delta, snorm)
            if not np.isfinite(f_new):
                self._delta = self.sigma1 * min(self._delta, snorm)
                logger.debug("trial %d: non-finite objective, shrinking radius", attempt)
                continue

            actual = fx - f_new
            self._update_radius(actual, predicted, gs, f_new - fx, snorm)
            logger.debug(
                "trial %d: actual=%.4e predicted=%.4e radius=%.4e",
                attempt,
                actual,
                predicted,
                self._delta,
            )
            if predicted > 0 and actual > self.eta0 * predicted:
                return OptimizerState(candidate, f_new, g_new, next_iteration)

        logger.debug(
            "no acceptable step after %d trials at iteration %d",
            self.max_improvement_failures,
            state.iteration,
        )
        return OptimizerState(x, fx, g, next_iteration)


__all__ = ["DEFAULT_MAX_CG_ITERATIONS", "DEFAULT_MAX_IMPROVEMENT_FAILURES", "TRON"]
