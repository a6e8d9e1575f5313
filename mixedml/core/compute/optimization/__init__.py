"""
Bounded optimisation backends for mixedml.

Every backend satisfies ``mixedml.core.protocols.BoxConstrainedOptimizer``
and reports convergence through ``OptimizerDiagnostics`` instead of
raising, leaving the failure policy to the caller.
"""

from mixedml.core.compute.optimization._common import (
    OptimizationResult,
    OptimizerDiagnostics,
)
from mixedml.core.compute.optimization.scipy_backends import (
    LBFGSBOptimizer,
    PowellOptimizer,
    get_optimizer,
)

__all__ = [
    "OptimizationResult",
    "OptimizerDiagnostics",
    "LBFGSBOptimizer",
    "PowellOptimizer",
    "get_optimizer",
]
