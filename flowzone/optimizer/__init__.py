"""Binary-search parameter optimizer."""

from flowzone.optimizer.optimizer import (
    DEFAULT_PARAMS,
    IterationRecord,
    OptimizationResult,
    Optimizer,
)
from flowzone.optimizer.search import SearchState, step

__all__ = [
    "DEFAULT_PARAMS",
    "IterationRecord",
    "OptimizationResult",
    "Optimizer",
    "SearchState",
    "step",
]
