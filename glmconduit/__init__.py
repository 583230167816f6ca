"""GLM Conduit - convex optimization and evaluation of generalized linear models."""

__version__ = "0.1.0"

# Data
from .data import (
    Broadcast,
    DataRecord,
    Dataset,
    DistributedDataset,
    LocalDataset,
    records_from_arrays,
)

# Diagnostics
from .diagnostics import (
    assert_finite,
    debug_context,
    effective_parameter_count,
    is_debug_enabled,
    set_debug_enabled,
)

# Evaluation
from .evaluation import (
    METRIC_METADATA,
    distributed_mean,
    evaluate,
    is_better,
)

# Objective functions
from .function import (
    LogisticLossFunction,
    ObjectiveFunction,
    PoissonLossFunction,
    SquaredLossFunction,
    TorchObjectiveFunction,
    TwiceDiffFunction,
)

# Logging
from .logging import configure_logging, get_logger, log_level, set_log_level

# Models
from .models import (
    Coefficients,
    GeneralizedLinearModel,
    LinearRegressionModel,
    LogisticRegressionModel,
    PoissonRegressionModel,
    model_for_task,
)

# Optimization
from .optimize import (
    LBFGS,
    TRON,
    ConvergenceReason,
    OptimizationStatesTracker,
    Optimizer,
    OptimizerConfig,
    OptimizerState,
    OptimizerStatus,
    create_optimizer,
)

# Training
from .training import TrainedModel, train_generalized_linear_model

__all__ = [
    "__version__",
    # Data
    "Broadcast",
    "DataRecord",
    "Dataset",
    "DistributedDataset",
    "LocalDataset",
    "records_from_arrays",
    # Diagnostics
    "assert_finite",
    "debug_context",
    "effective_parameter_count",
    "is_debug_enabled",
    "set_debug_enabled",
    # Evaluation
    "METRIC_METADATA",
    "distributed_mean",
    "evaluate",
    "is_better",
    # Objective functions
    "LogisticLossFunction",
    "ObjectiveFunction",
    "PoissonLossFunction",
    "SquaredLossFunction",
    "TorchObjectiveFunction",
    "TwiceDiffFunction",
    # Logging
    "configure_logging",
    "get_logger",
    "log_level",
    "set_log_level",
    # Models
    "Coefficients",
    "GeneralizedLinearModel",
    "LinearRegressionModel",
    "LogisticRegressionModel",
    "PoissonRegressionModel",
    "model_for_task",
    # Optimization
    "LBFGS",
    "TRON",
    "ConvergenceReason",
    "OptimizationStatesTracker",
    "Optimizer",
    "OptimizerConfig",
    "OptimizerState",
    "OptimizerStatus",
    "create_optimizer",
    # Training
    "TrainedModel",
    "train_generalized_linear_model",
]
