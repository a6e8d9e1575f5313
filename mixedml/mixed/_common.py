"""
Common data types for the random-intercept linear mixed model.

Contains the frozen payloads that go inside Result[P] envelopes and the
optimiser configuration record. Each payload is a pure data container,
no computation.

Parameter vector convention used throughout the package:

    theta = (sigma, sigma_s, beta_1, ..., beta_p)

sigma is the residual standard deviation and sigma_s the random-intercept
standard deviation. The optimiser searches over standard deviations; both
standard deviations and variances are reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable

import numpy as np
from numpy.typing import NDArray


# Smallest variance allowed by the default box. Keeps Σy positive definite
# but biases estimates whose true value is zero upward by this much. The floor
# is absolute, in the squared units of y: for data on a scale c, pass
# variance_floor=1e-6 * c**2 or a genuine variance below 1e-6 is pinned.
VARIANCE_FLOOR = 1e-6

DEFAULT_TOL = 1e-12
DEFAULT_MAX_ITER = 1000

# Number of leading variance-component entries in theta
N_VARIANCE_PARAMS = 2


class FitStatus:
    """Convergence status values reported by ``fit``."""
    CONVERGED = 'converged'
    DID_NOT_CONVERGE = 'did_not_converge'
    DEGENERATE = 'degenerate'


@dataclass(frozen=True)
class OptimizerConfig:
    """Validated optimiser configuration for one fit.

    All vectors are ordered (sigma, sigma_s, beta_1, ..., beta_p).
    Unbounded entries are stored as ±inf.
    """
    initial_guess: NDArray
    lower_bounds: NDArray
    upper_bounds: NDArray
    max_iter: int
    tol: float
    variance_floor: float


@dataclass(frozen=True)
class LMMParams:
    """
    Parameter payload for a fitted random-intercept LMM.
    """
    # Fixed effects
    coefficients: NDArray              # β̂ (p,)
    coefficient_names: tuple[str, ...]
    se: NDArray                        # standard errors of β̂ (p,)

    # Variance components
    residual_variance: float           # σ̂²
    residual_std: float                # σ̂
    group_variance: float              # σ̂s²
    group_std: float                   # σ̂s
    at_boundary: dict[str, bool]       # component → sits on its lower bound

    # Model fit
    log_likelihood: float
    aic: float
    bic: float
    n_obs: int
    n_groups: int
    group_name: str

    # Convergence
    converged: bool
    status: str
    n_iter: int

    # Conditional modes of the random intercepts
    random_effects: dict[Hashable, float]

    # Predictions
    fitted_values: NDArray             # Xβ̂ + Kû (n,)
    residuals: NDArray                 # y - fitted (n,)

    # Optimiser vector at the optimum
    theta: NDArray

    def as_dict(self) -> dict[str, Any]:
        """The estimator's output record in plain Python types."""
        return {
            'beta_hat': self.coefficients.tolist(),
            'sigma_squared': self.residual_variance,
            'sigma_s_squared': self.group_variance,
            'log_likelihood_at_optimum': self.log_likelihood,
            'converged': self.converged,
            'iterations': self.n_iter,
        }
