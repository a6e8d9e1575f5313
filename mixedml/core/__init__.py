"""
Core infrastructure for mixedml.

This module provides shared abstractions, utilities, and compute
infrastructure used by the domain sub-packages (mixed, hypothesis).

Key components:
    protocols: BoxConstrainedOptimizer protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra, optimisation backends
"""

from mixedml.core.protocols import BoxConstrainedOptimizer
from mixedml.core.result import Result
from mixedml.core.exceptions import (
    MixedMLError,
    ValidationError,
    DimensionError,
    NumericalError,
    NotPositiveDefiniteError,
    ConvergenceError,
    InvalidInput,
    NumericalFailure,
)

__all__ = [
    # Protocols
    "BoxConstrainedOptimizer",
    # Result
    "Result",
    # Exceptions
    "MixedMLError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "NotPositiveDefiniteError",
    "ConvergenceError",
    "InvalidInput",
    "NumericalFailure",
]
