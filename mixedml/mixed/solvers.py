"""
Solver dispatch for the random-intercept linear mixed model.

Public API:
    fit()                 — maximum likelihood fit of y = Xβ + Ku + ε
    log_likelihood()      — evaluate log L at an arbitrary θ = (σ, σs, β)
    ols_log_likelihood()  — ML log-likelihood of the σs² = 0 model
"""

from __future__ import annotations

import logging
import warnings
from typing import Hashable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mixedml.core.compute.linalg import cholesky_cpu
from mixedml.core.compute.optimization import get_optimizer
from mixedml.core.compute.timing import Timer
from mixedml.core.exceptions import ConvergenceError, NotPositiveDefiniteError
from mixedml.core.protocols import BoxConstrainedOptimizer
from mixedml.core.result import Result
from mixedml.core.validation import (
    check_array,
    check_finite,
    check_nonnegative,
    check_vector_length,
)
from mixedml.mixed._common import (
    DEFAULT_MAX_ITER,
    DEFAULT_TOL,
    N_VARIANCE_PARAMS,
    VARIANCE_FLOOR,
    FitStatus,
    LMMParams,
)
from mixedml.mixed._grouping import _plain
from mixedml.mixed._loglik import LikelihoodTerms, RandomInterceptLogLik, ols_ml_fit
from mixedml.mixed.design import MixedDesign, build_config, validate_fixed_effects
from mixedml.mixed.solution import LMMSolution

logger = logging.getLogger(__name__)


def fit(
    y: ArrayLike,
    X: ArrayLike,
    groups: ArrayLike | dict[str, ArrayLike],
    *,
    lower_bounds: Sequence[float | None] | None = None,
    upper_bounds: Sequence[float | None] | None = None,
    initial_guess: Sequence[float] | None = None,
    tol: float = DEFAULT_TOL,
    max_iter: int = DEFAULT_MAX_ITER,
    optimizer: 'str | BoxConstrainedOptimizer' = 'L-BFGS-B',
    variance_floor: float = VARIANCE_FLOOR,
    levels: Sequence[Hashable] | None = None,
    strict: bool = True,
) -> LMMSolution:
    """Fit a random-intercept linear mixed model by maximum likelihood.

    Model: y = Xβ + Ku + ε with u ~ N(0, σs² I), ε ~ N(0, σ² I), where K is
    the one-hot incidence matrix of ``groups``. The parameter vector is
    θ = (σ, σs, β_1, ..., β_p); all bound and guess vectors use this order.

    Args:
        y: Response vector (n,).
        X: Fixed effects design matrix (n, p), full column rank. Include an
            intercept column if desired.
        groups: Group label per observation, or ``{name: labels}``.
        lower_bounds: Lower bounds on θ. ``None`` entries mean unbounded.
            Default: ``√variance_floor`` for σ and σs, unbounded for β.
        upper_bounds: Upper bounds on θ. Default: unbounded.
        initial_guess: Starting θ inside the box. Default: OLS β with the
            OLS residual variance split evenly between σ² and σs².
        tol: Optimiser convergence tolerance. Default 1e-12.
        max_iter: Optimiser iteration budget. Default 1000.
        optimizer: 'L-BFGS-B' (default, analytic gradient), 'Powell'
            (derivative-free), or a BoxConstrainedOptimizer instance.
        variance_floor: Smallest variance in the default box (1e-6).
            Estimates at or near a zero variance are biased up by it. The
            floor is absolute, in the squared units of y; rescale it for
            small-scale data (e.g. 1e-12 when y is of order 1e-3).
        levels: Optional explicit group universe; a level without
            observations is rejected as an empty group.
        strict: If True (default), non-convergence raises ConvergenceError
            with the last iterate attached as ``error.solution``. If False,
            a RuntimeWarning is emitted and the non-converged solution is
            returned with ``converged=False``.

    Returns:
        LMMSolution.

    Raises:
        ValidationError: Malformed input (before any optimisation).
        NotPositiveDefiniteError: Σy singular at the initial guess or at a
            point visited by the optimiser.
        NumericalError: Non-finite objective at a visited point.
        ConvergenceError: Optimiser failure (``strict=True`` only).

    Examples:
        >>> from mixedml.mixed import fit, datasets
        >>> d = datasets.treatment_toy
        >>> result = fit(d['y'], d['X'], {'individual': d['individual']})
        >>> result.sigma, result.sigma_s
        (4.2426..., 5.7662...)
    """
    timer = Timer()
    timer.start()

    design = MixedDesign.validate(y, X, groups, levels=levels)
    config = build_config(
        design, lower_bounds, upper_bounds, initial_guess,
        tol=tol, max_iter=max_iter, variance_floor=variance_floor,
    )
    backend = get_optimizer(optimizer)
    grouping = design.grouping

    with timer.section('setup'):
        surface = RandomInterceptLogLik(design.y, design.X, grouping.K, grouping.KKt)
        # Fails fast with NotPositiveDefiniteError when Σy is singular at θ0
        start = surface.evaluate(config.initial_guess)

    logger.debug("fit: backend=%s, logL(theta0)=%.6g", backend.name, start.value)

    with timer.section('optimization'):
        opt = backend.maximize(
            surface,
            config.lower_bounds,
            config.upper_bounds,
            config.initial_guess,
            gradient=surface.gradient,
            tol=config.tol,
            max_iter=config.max_iter,
        )
    diag = opt.diagnostics
    theta_hat = opt.argmax

    with timer.section('final_evaluation'):
        terms = surface.evaluate(theta_hat)
        se = _fixed_effect_se(terms, design.X)
        u_hat = _conditional_modes(terms, grouping.K)

    at_boundary = _at_lower_bound(theta_hat, config.lower_bounds)

    if grouping.all_singletons:
        status = FitStatus.DEGENERATE
    elif diag.converged:
        status = FitStatus.CONVERGED
    else:
        status = FitStatus.DID_NOT_CONVERGE

    warn_list = []
    if not diag.converged:
        warn_list.append(
            f"Optimizer did not converge after {diag.n_iter} iterations: {diag.message}"
        )
    if status == FitStatus.DEGENERATE:
        warn_list.append(
            "Every group has a single observation, so K K' = I and only "
            "sigma^2 + sigma_s^2 is identifiable; the split between them is "
            "an artefact of the starting point"
        )
    for component, hit in at_boundary.items():
        if hit:
            warn_list.append(
                f"{component} variance is at its lower bound "
                f"({config.lower_bounds[0 if component == 'residual' else 1] ** 2:.3g}); "
                f"the estimate is biased upward by the floor"
            )
            logger.debug("fit: %s variance at lower bound", component)

    timer.stop()

    sigma, sigma_s = float(theta_hat[0]), float(theta_hat[1])
    beta = theta_hat[N_VARIANCE_PARAMS:].copy()
    ll = terms.value
    k = design.n_params
    fitted = design.X @ beta + grouping.K @ u_hat

    params = LMMParams(
        coefficients=beta,
        coefficient_names=tuple(_make_coef_names(design.p)),
        se=se,
        residual_variance=sigma ** 2,
        residual_std=sigma,
        group_variance=sigma_s ** 2,
        group_std=sigma_s,
        at_boundary=at_boundary,
        log_likelihood=ll,
        aic=-2.0 * ll + 2.0 * k,
        bic=-2.0 * ll + np.log(design.n) * k,
        n_obs=design.n,
        n_groups=grouping.n_groups,
        group_name=grouping.group_name,
        converged=diag.converged,
        status=status,
        n_iter=diag.n_iter,
        random_effects={
            _plain(level): float(u) for level, u in zip(grouping.levels, u_hat)
        },
        fitted_values=fitted,
        residuals=design.y - fitted,
        theta=theta_hat.copy(),
    )

    result = Result(
        params=params,
        info={
            'method': 'ML',
            'optimizer': backend.name,
            'converged': diag.converged,
            'reason': diag.reason,
            'message': diag.message,
            'n_iter': diag.n_iter,
            'n_fev': diag.n_fev,
            'gradient_norm': diag.gradient_norm,
            'objective': opt.value,
        },
        timing=timer.result(),
        backend_name=backend.name,
        warnings=tuple(warn_list),
    )
    solution = LMMSolution(_result=result, _config=config)

    logger.debug("fit: status=%s, nit=%d, logL=%.8g", status, diag.n_iter, ll)

    if not diag.converged:
        message = (
            f"LMM optimizer did not converge after {diag.n_iter} iterations "
            f"({diag.reason}). Message: {diag.message}"
        )
        if strict:
            raise ConvergenceError(
                message,
                iterations=diag.n_iter,
                final_change=diag.gradient_norm,
                reason=diag.reason,
                threshold=config.tol,
                solution=solution,
            )
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    if status == FitStatus.DEGENERATE:
        warnings.warn(
            "Random-intercept variance is not identifiable from residual "
            "variance when every group is a singleton; see "
            "LMMSolution.warnings.",
            UserWarning,
            stacklevel=2,
        )

    return solution


def log_likelihood(
    y: ArrayLike,
    X: ArrayLike,
    groups: ArrayLike | dict[str, ArrayLike],
    theta: Sequence[float],
    *,
    levels: Sequence[Hashable] | None = None,
) -> float:
    """Evaluate the ML log-likelihood at θ = (σ, σs, β_1, ..., β_p).

    Applies the same input validation as ``fit``. Useful for exploring the
    likelihood surface and for checking closed forms.

    Raises:
        ValidationError: Malformed input, θ of the wrong length, or a
            negative σ or σs.
        NotPositiveDefiniteError: Σy singular at θ (e.g. σ = σs = 0).
    """
    design = MixedDesign.validate(y, X, groups, levels=levels)
    check_vector_length(theta, design.n_params, 'theta')
    theta_arr = check_array(theta, 'theta').ravel()
    check_finite(theta_arr, 'theta')
    check_nonnegative(theta_arr[:N_VARIANCE_PARAMS], 'theta[sigma, sigma_s]')

    grouping = design.grouping
    surface = RandomInterceptLogLik(design.y, design.X, grouping.K, grouping.KKt)
    return surface(theta_arr)


def ols_log_likelihood(y: ArrayLike, X: ArrayLike) -> float:
    """ML log-likelihood of y = Xβ + ε (no random intercept).

    This is the σs² → 0 limit of the mixed model; comparing it with
    ``fit(...).log_likelihood`` via ``LMMSolution.compare`` tests for a
    non-zero random-intercept variance.

    Raises:
        ValidationError: Malformed input, as for ``fit``.
        NumericalError: y lies exactly in the column space of X, so the ML
            residual variance is zero and log L is unbounded.
    """
    y_arr, X_arr = validate_fixed_effects(y, X)
    ll, _, _ = ols_ml_fit(y_arr.astype(np.float64), X_arr.astype(np.float64))
    return ll


# =====================================================================
# Helpers
# =====================================================================

def _fixed_effect_se(terms: LikelihoodTerms, X: NDArray) -> NDArray:
    """SE(β̂) = sqrt(diag((Xᵗ Σy⁻¹ X)⁻¹)) at the optimum."""
    XtSX = X.T @ terms.chol.solve(X)
    try:
        info_chol = cholesky_cpu(XtSX, matrix_name="X' Sigma_y^-1 X")
    except NotPositiveDefiniteError:
        logger.debug("fixed-effect information matrix not PD; SEs set to NaN")
        return np.full(X.shape[1], np.nan)
    vcov = info_chol.solve(np.eye(X.shape[1]))
    return np.sqrt(np.maximum(np.diag(vcov), 0.0))


def _conditional_modes(terms: LikelihoodTerms, K: NDArray) -> NDArray:
    """û = σs² Kᵗ Σy⁻¹ (y − Xβ̂)."""
    sigma_s = terms.theta[1]
    return sigma_s ** 2 * (K.T @ terms.alpha)


def _at_lower_bound(theta: NDArray, lower: NDArray) -> dict[str, bool]:
    flags = {}
    for i, component in enumerate(('residual', 'group')):
        lb = lower[i]
        flags[component] = bool(theta[i] <= lb + max(1e-10, 1e-6 * abs(lb)))
    return flags


def _make_coef_names(p: int) -> list[str]:
    """Generate default coefficient names."""
    names = ['(Intercept)']
    for i in range(1, p):
        names.append(f'X{i}')
    return names
