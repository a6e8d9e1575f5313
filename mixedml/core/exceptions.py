"""
Exception hierarchy for mixedml.

Two families, matching the two ways a fit can fail:

    ValidationError  - the caller's input is malformed; raised before any
                       optimisation starts (alias: InvalidInput)
    NumericalError   - the input was fine but the computation broke down:
                       singular Σy, non-finite objective, optimiser failure
                       (alias: NumericalFailure)

Both derive from MixedMLError. Exceptions carry their diagnostics as
attributes so callers can inspect them without parsing messages.
"""

from __future__ import annotations

from typing import Any


class MixedMLError(Exception):
    """Base exception for all mixedml errors."""
    pass


class ValidationError(MixedMLError):
    """
    Input rejected by validation.

    Raised for non-numeric or non-finite data, too few observations,
    rank-deficient X, empty groups and inconsistent bounds.
    """
    pass


class DimensionError(ValidationError):
    """Shapes or vector lengths do not match what the model requires."""
    pass


class NumericalError(MixedMLError):
    """
    Numerical failure during likelihood evaluation or optimisation.
    """
    pass


class NotPositiveDefiniteError(NumericalError):
    """
    Cholesky factorisation failed.

    Typically the marginal covariance Σy at σ = 0, where it is singular.

    Attributes:
        matrix_name: Which matrix failed (e.g. 'Sigma_y')
        min_eigenvalue: Smallest eigenvalue, if it could be computed
        theta: Parameter vector (σ, σs, β) at which Σy was built, if known
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        min_eigenvalue: float | None = None,
        theta: Any = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.min_eigenvalue = min_eigenvalue
        self.theta = theta


class ConvergenceError(NumericalError):
    """
    The optimiser stopped without meeting its convergence criterion.

    The last iterate is not thrown away: the assembled non-converged
    solution travels with the exception as ``solution``.

    Attributes:
        iterations: Iterations performed
        final_change: Projected gradient norm at the last iterate, if known
        reason: 'max_iterations' or 'abnormal'
        threshold: Tolerance the fit ran with
        solution: Non-converged solution object, if one was assembled
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None,
        solution: Any = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
        self.solution = solution


InvalidInput = ValidationError
NumericalFailure = NumericalError
