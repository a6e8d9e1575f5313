"""
Shared compute infrastructure for mixedml.

This module provides timing utilities, tolerance tiers, linear algebra
kernels and bounded optimisers shared by the domain sub-packages.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical comparison tiers
    linalg: Cholesky factorisation and solves
    optimization: Box-constrained maximisers
"""

from mixedml.core.compute.timing import Timer

__all__ = [
    "Timer",
]
