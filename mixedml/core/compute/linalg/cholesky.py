"""
Cholesky factorisation for symmetric positive definite matrices.

The marginal covariance of a mixed model is symmetric positive definite for
any strictly positive residual variance, so every determinant and every
solve against it goes through one factorisation. A⁻¹ itself is never
formed: traces of it are read off the triangular factor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import LinAlgError, cho_factor, cho_solve, solve_triangular

from mixedml.core.exceptions import NotPositiveDefiniteError


@dataclass(frozen=True)
class CholeskyResult:
    """
    Lower Cholesky factor of a symmetric positive definite matrix.

    Attributes:
        factor: (c, lower) pair as returned by scipy.linalg.cho_factor
        log_det: log|A| = 2 Σ log(diag(L))
    """
    factor: tuple[NDArray[np.floating[Any]], bool]
    log_det: float

    def solve(self, b: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        """Solve A x = b using the stored factor."""
        return cho_solve(self.factor, b)

    def whiten(self, b: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        """Return L⁻¹ b by forward substitution, so ‖L⁻¹ b‖² = bᵗ A⁻¹ b."""
        c, lower = self.factor
        return solve_triangular(c, b, lower=lower)

    def inverse_trace(self) -> float:
        """tr(A⁻¹) = ‖L⁻¹‖²_F."""
        n = self.factor[0].shape[0]
        return float(np.sum(self.whiten(np.eye(n)) ** 2))


def cholesky_cpu(
    A: NDArray[np.floating[Any]],
    matrix_name: str = 'A',
) -> CholeskyResult:
    """
    Factor A = L Lᵗ using LAPACK (via SciPy).

    Args:
        A: Symmetric positive definite matrix (n x n)
        matrix_name: Name used in error messages

    Returns:
        CholeskyResult with the factor and the log-determinant

    Raises:
        NotPositiveDefiniteError: If A is singular or indefinite
    """
    try:
        c, lower = cho_factor(A, lower=True, check_finite=True)
    except (LinAlgError, ValueError) as e:
        min_eig = _min_eigenvalue(A)
        raise NotPositiveDefiniteError(
            f"{matrix_name} is not positive definite "
            f"(min eigenvalue {min_eig:.3g}): {e}",
            matrix_name=matrix_name,
            min_eigenvalue=min_eig,
        ) from e

    diag = np.diag(c)
    if np.any(diag <= 0):
        raise NotPositiveDefiniteError(
            f"{matrix_name} has a non-positive Cholesky pivot",
            matrix_name=matrix_name,
            min_eigenvalue=_min_eigenvalue(A),
        )

    log_det = 2.0 * float(np.sum(np.log(diag)))
    return CholeskyResult(factor=(c, lower), log_det=log_det)


def _min_eigenvalue(A: NDArray[np.floating[Any]]) -> float:
    if not np.all(np.isfinite(A)):
        return float('nan')
    return float(np.min(np.linalg.eigvalsh(A)))
