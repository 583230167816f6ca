"""Iterative convex optimization over local or distributed datasets.

Example
-------
>>> import numpy as np
>>> from glmconduit.data import LocalDataset, records_from_arrays
>>> from glmconduit.function import SquaredLossFunction
>>> from glmconduit.optimize import LBFGS
>>> X = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
>>> data = LocalDataset(records_from_arrays(X, X @ np.array([2.0, -1.0])))
>>> coefficients, value = LBFGS(tolerance=1e-10).optimize(data, SquaredLossFunction())
>>> np.round(coefficients, 4)
array([ 2., -1.])
"""

from .constraints import ConstraintMap, bounds_arrays, project, validate_constraint_map
from .core import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    ConvergenceReason,
    OptimizationStatesTracker,
    OptimizerState,
    OptimizerStatus,
)
from .factory import SUPPORTED_OPTIMIZERS, OptimizerConfig, create_optimizer
from .lbfgs import LBFGS
from .line_search import LineSearchResult, projected_armijo, wolfe_line_search
from .optimizer import Optimizer
from .tron import TRON

__all__ = [
    "ConstraintMap",
    "ConvergenceReason",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_TOLERANCE",
    "LBFGS",
    "LineSearchResult",
    "OptimizationStatesTracker",
    "Optimizer",
    "OptimizerConfig",
    "OptimizerState",
    "OptimizerStatus",
    "SUPPORTED_OPTIMIZERS",
    "TRON",
    "bounds_arrays",
    "create_optimizer",
    "project",
    "projected_armijo",
    "validate_constraint_map",
    "wolfe_line_search",
]
