"""Line searches following Nocedal & Wright.

Each trial point costs a full pass over the data, so both searches work from
a single ``value_and_grad`` callable, cache every evaluated point, and hand the
accepted point's value and gradient back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np

from .core import Array

ValueAndGradient = Callable[[Array], tuple[float, Array]]
Projection = Callable[[Array], Array]


@dataclass(frozen=True)
class LineSearchResult:
    """Accepted step length and the objective evaluated at the new point."""

    alpha: float
    point: Array
    value: float
    gradient: Array
    nfev: int


def wolfe_line_search(
    value_and_grad: ValueAndGradient,
    x: Array,
    p: Array,
    fx: float,
    grad_fx: Array,
    alpha0: float = 1.0,
    c1: float = 1e-4,
    c2: float = 0.9,
    max_iter: int = 40,
) -> LineSearchResult:
    """Perform a strong Wolfe line search using bracketing and zoom."""
    if not (0 < c1 < c2 < 1):
        raise ValueError("Require 0 < c1 < c2 < 1 for Wolfe conditions.")
    der0 = float(np.dot(grad_fx, p))
    if der0 >= 0:
        raise ValueError("Search direction must be a descent direction.")

    cache: dict[float, tuple[float, Array]] = {0.0: (float(fx), grad_fx)}
    nfev = 0

    def evaluate(alpha: float) -> tuple[float, Array]:
        nonlocal nfev
        if alpha not in cache:
            nfev += 1
            cache[alpha] = value_and_grad(x + alpha * p)
        return cache[alpha]

    def phi(alpha: float) -> float:
        return evaluate(alpha)[0]

    def phi_prime(alpha: float) -> float:
        return float(np.dot(evaluate(alpha)[1], p))

    alpha_prev = 0.0
    phi_prev = float(fx)
    alpha = float(alpha0)

    for iteration in range(max_iter):
        phi_alpha = phi(alpha)
        if (
            not np.isfinite(phi_alpha)
            or phi_alpha > fx + c1 * alpha * der0
            or (iteration > 0 and phi_alpha >= phi_prev)
        ):
            alpha = _zoom(phi, phi_prime, alpha_prev, alpha, fx, der0, c1, c2)
            break
        der_alpha = phi_prime(alpha)
        if abs(der_alpha) <= -c2 * der0:
            break
        if der_alpha >= 0:
            alpha = _zoom(phi, phi_prime, alpha, alpha_prev, fx, der0, c1, c2)
            break
        alpha_prev = alpha
        phi_prev = phi_alpha
        alpha *= 2.0

    value, gradient = evaluate(alpha)
    return LineSearchResult(
        alpha=alpha, point=x + alpha * p, value=value, gradient=gradient, nfev=nfev
    )


def _zoom(
    phi: Callable[[float], float],
    phi_prime: Callable[[float], float],
    alo: float,
    ahi: float,
    phi0: float,
    der0: float,
    c1: float,
    c2: float,
) -> float:
    """Zoom stage enforcing strong Wolfe conditions."""
    phi_alo = phi(alo)
    alpha = alo
    for _ in range(32):
        alpha = 0.5 * (alo + ahi)
        phi_alpha = phi(alpha)
        if (
            not np.isfinite(phi_alpha)
            or phi_alpha > phi0 + c1 * alpha * der0
            or phi_alpha >= phi_alo
        ):
            ahi = alpha
        else:
            der_alpha = phi_prime(alpha)
            if abs(der_alpha) <= -c2 * der0:
                return alpha
            if der_alpha * (ahi - alo) > 0:
                ahi = alo
            alo = alpha
            phi_alo = phi_alpha
        if abs(ahi - alo) < 1e-12:
            break
    return alpha


def projected_armijo(
    value_and_grad: ValueAndGradient,
    project: Projection,
    x: Array,
    fx: float,
    grad_fx: Array,
    direction: Array,
    alpha0: float = 1.0,
    beta: float = 0.5,
    sigma: float = 1e-4,
    max_iter: int = 30,
) -> LineSearchResult:
    """
    Armijo backtracking along the projected path ``P(x + alpha * direction)``.

    Sufficient decrease is measured against the actual (projected) step. When
    no trial point qualifies the search returns ``x`` unchanged with
    ``alpha == 0``.
    """
    if not (0 < sigma < 1):
        raise ValueError("Armijo constant sigma must lie in (0, 1)")
    if not (0 < beta < 1):
        raise ValueError("beta must lie in (0, 1)")
    alpha = float(alpha0)
    nfev = 0
    for _ in range(max_iter):
        candidate = project(x + alpha * direction)
        value, gradient = value_and_grad(candidate)
        nfev += 1
        actual_direction = candidate - x
        if np.isfinite(value) and value <= fx + sigma * float(
            np.dot(grad_fx, actual_direction)
        ):
            return LineSearchResult(
                alpha=alpha, point=candidate, value=value, gradient=gradient, nfev=nfev
            )
        alpha *= beta
    return LineSearchResult(alpha=0.0, point=x, value=fx, gradient=grad_fx, nfev=nfev)


__all__ = [
    "LineSearchResult",
    "Projection",
    "ValueAndGradient",
    "projected_armijo",
    "wolfe_line_search",
]
