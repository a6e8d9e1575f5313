"""
Marginal log-likelihood of the random-intercept LMM and its gradient.

For theta = (σ, σs, β) the response is marginally Gaussian:

    Y ~ N(Xβ, Σy),   Σy = σs² K Kᵗ + σ² I

    log L(θ) = −n/2 log(2π) − ½ log|Σy| − ½ rᵗ Σy⁻¹ r,   r = Y − Xβ

Both the determinant and the quadratic form come from one Cholesky
factorisation of Σy; no symbolic formula specific to a balanced design is
used, so arbitrary group sizes work.

Gradient, with α = Σy⁻¹ r and A ∈ {I, K Kᵗ} = ∂Σy/∂v for v ∈ {σ², σs²}:

    ∂ log L / ∂β = Xᵗ α
    ∂ log L / ∂v = −½ tr(Σy⁻¹ A) + ½ αᵗ A α
    ∂ log L / ∂σ = 2σ ∂ log L / ∂σ²   (likewise for σs)

References:
    Pinheiro, J. C., & Bates, D. M. (2000). Mixed-Effects Models in S and
    S-PLUS. Springer, Section 2.2.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from mixedml.core.compute.linalg import CholeskyResult, cholesky_cpu
from mixedml.core.exceptions import NotPositiveDefiniteError, NumericalError
from mixedml.mixed._common import N_VARIANCE_PARAMS

LOG_2PI = float(np.log(2.0 * np.pi))


def marginal_covariance(sigma: float, sigma_s: float, KKt: NDArray) -> NDArray:
    """Σy = σs² K Kᵗ + σ² I (a fresh array on every call)."""
    n = KKt.shape[0]
    return sigma_s ** 2 * KKt + sigma ** 2 * np.eye(n)


@dataclass(frozen=True)
class LikelihoodTerms:
    """Intermediate quantities of one likelihood evaluation."""
    theta: NDArray
    chol: CholeskyResult
    residual: NDArray      # r = y − Xβ
    alpha: NDArray         # Σy⁻¹ r
    value: float           # log L(θ)


class RandomInterceptLogLik:
    """
    Log-likelihood surface of one dataset.

    Holds the (immutable) data and caches the factorisation of the most
    recently evaluated θ, so an optimiser asking for the value and then
    the gradient at the same point factors Σy once.
    """

    def __init__(self, y: NDArray, X: NDArray, K: NDArray, KKt: NDArray | None = None):
        self.y = y
        self.X = X
        self.K = K
        self.KKt = K @ K.T if KKt is None else KKt
        self.n, self.p = X.shape
        self._last: LikelihoodTerms | None = None

    def evaluate(self, theta: NDArray) -> LikelihoodTerms:
        """Factor Σy at θ and compute log L(θ)."""
        theta = np.asarray(theta, dtype=np.float64)
        last = self._last
        if last is not None and np.array_equal(last.theta, theta):
            return last

        sigma, sigma_s = theta[0], theta[1]
        beta = theta[N_VARIANCE_PARAMS:]

        Sigma = marginal_covariance(sigma, sigma_s, self.KKt)
        try:
            chol = cholesky_cpu(Sigma, matrix_name='Sigma_y')
        except NotPositiveDefiniteError as e:
            raise NotPositiveDefiniteError(
                f"Sigma_y is singular at sigma={sigma:g}, sigma_s={sigma_s:g}; "
                f"use a strictly positive lower bound for the residual SD",
                matrix_name=e.matrix_name,
                min_eigenvalue=e.min_eigenvalue,
                theta=theta.copy(),
            ) from e

        r = self.y - self.X @ beta
        alpha = chol.solve(r)
        value = -0.5 * (self.n * LOG_2PI + chol.log_det + float(r @ alpha))

        terms = LikelihoodTerms(
            theta=theta.copy(), chol=chol, residual=r, alpha=alpha, value=value,
        )
        self._last = terms
        return terms

    def __call__(self, theta: NDArray) -> float:
        return self.evaluate(theta).value

    def gradient(self, theta: NDArray) -> NDArray:
        """Analytic gradient of log L with respect to (σ, σs, β)."""
        terms = self.evaluate(theta)
        sigma, sigma_s = terms.theta[0], terms.theta[1]
        alpha = terms.alpha

        # tr(Σ⁻¹) = ‖L⁻¹‖²_F and tr(Σ⁻¹ K Kᵗ) = ‖L⁻¹ K‖²_F
        tr_inv = terms.chol.inverse_trace()
        tr_inv_KKt = float(np.sum(terms.chol.whiten(self.K) ** 2))

        Kt_alpha = self.K.T @ alpha
        d_resid_var = -0.5 * tr_inv + 0.5 * float(alpha @ alpha)
        d_group_var = -0.5 * tr_inv_KKt + 0.5 * float(Kt_alpha @ Kt_alpha)

        grad = np.empty(self.p + N_VARIANCE_PARAMS, dtype=np.float64)
        grad[0] = 2.0 * sigma * d_resid_var
        grad[1] = 2.0 * sigma_s * d_group_var
        grad[N_VARIANCE_PARAMS:] = self.X.T @ alpha
        return grad


def ols_ml_fit(y: NDArray, X: NDArray) -> tuple[float, NDArray, float]:
    """ML fit of the model without a random intercept (σs² = 0).

    Returns:
        (log-likelihood, β̂_OLS, σ̂²_ML) where σ̂²_ML = RSS / n.

    Raises:
        NumericalError: If RSS is zero up to rounding.
    """
    n = X.shape[0]
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    rss = float(np.sum((y - X @ beta) ** 2))
    sigma_sq = rss / n
    # ‖r‖ below √eps ‖y‖ counts as an exact fit
    if rss <= np.finfo(np.float64).eps * float(y @ y):
        raise NumericalError(
            "OLS residual variance is zero: y lies in the column space of X, "
            "so the log-likelihood is unbounded"
        )
    ll = -0.5 * n * (LOG_2PI + np.log(sigma_sq) + 1.0)
    return float(ll), beta, sigma_sq
