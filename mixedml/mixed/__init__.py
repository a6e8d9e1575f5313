"""
Mixed models: maximum likelihood fit of a linear mixed model with one
random-intercept grouping factor.

Public API:
    fit()                — ML estimate of β, σ², σs²
    log_likelihood()     — the objective at an arbitrary θ = (σ, σs, β)
    ols_log_likelihood() — ML log-likelihood of the σs² = 0 model
    LMMSolution          — result wrapper
    OptimizerConfig      — validated optimiser configuration record
    FitStatus            — convergence status values
    VARIANCE_FLOOR       — default smallest variance in the search box
"""

from mixedml.mixed.solvers import fit, log_likelihood, ols_log_likelihood
from mixedml.mixed.solution import LMMSolution
from mixedml.mixed._common import (
    FitStatus,
    LMMParams,
    OptimizerConfig,
    VARIANCE_FLOOR,
)
from mixedml.mixed import datasets

__all__ = [
    "fit",
    "log_likelihood",
    "ols_log_likelihood",
    "LMMSolution",
    "LMMParams",
    "OptimizerConfig",
    "FitStatus",
    "VARIANCE_FLOOR",
    "datasets",
]
