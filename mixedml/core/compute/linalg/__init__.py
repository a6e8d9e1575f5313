"""
Linear algebra kernels for mixedml.

All functions follow these conventions:
    - CPU functions use NumPy/SciPy (LAPACK under the hood)
    - Each operation returns a structured result dataclass
    - Errors are raised immediately with clear messages

Submodules:
    cholesky: Cholesky factorisation, log-determinant and solves
"""

from mixedml.core.compute.linalg.cholesky import (
    CholeskyResult,
    cholesky_cpu,
)

__all__ = [
    "CholeskyResult",
    "cholesky_cpu",
]
