"""
Solution wrapper for the random-intercept linear mixed model.

LMMSolution wraps Result[LMMParams] and provides an lme4-style summary,
property accessors for common quantities, and model comparison via
likelihood ratio tests.
"""

from __future__ import annotations

import warnings
from typing import Any, Hashable

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from mixedml.core.result import Result
from mixedml.mixed._common import FitStatus, LMMParams, OptimizerConfig


def _format_pvalue(p: float) -> str:
    """Format p-value like R."""
    if p < 2e-16:
        return '< 2e-16'
    elif p < 0.001:
        return f'{p:.2e}'
    else:
        return f'{p:.4f}'


class LMMSolution:
    """Solution wrapper for a fitted random-intercept linear mixed model.

    Exposes the estimator's output record (β̂, σ̂², σ̂s², log-likelihood at
    the optimum, convergence flag, iteration count) plus standard errors,
    conditional modes of the random intercepts, ICC and information
    criteria.
    """

    def __init__(self, _result: Result[LMMParams], _config: OptimizerConfig):
        self._result = _result
        self._config = _config

    @property
    def params(self) -> LMMParams:
        return self._result.params

    @property
    def config(self) -> OptimizerConfig:
        """Optimiser configuration the fit ran with."""
        return self._config

    # --- Fixed effects ---

    @property
    def coefficients(self) -> NDArray:
        """Fixed effect estimates β̂."""
        return self.params.coefficients

    beta_hat = coefficients

    @property
    def fixef(self) -> dict[str, float]:
        """Fixed effects as name → value dict."""
        return dict(zip(self.params.coefficient_names,
                        self.params.coefficients.tolist()))

    @property
    def se(self) -> NDArray:
        """Standard errors of β̂ from (Xᵗ Σy⁻¹ X)⁻¹."""
        return self.params.se

    # --- Variance components ---

    @property
    def sigma(self) -> float:
        """Residual standard deviation σ̂."""
        return self.params.residual_std

    @property
    def sigma_sq(self) -> float:
        """Residual variance σ̂²."""
        return self.params.residual_variance

    @property
    def sigma_s(self) -> float:
        """Random-intercept standard deviation σ̂s."""
        return self.params.group_std

    @property
    def sigma_s_sq(self) -> float:
        """Random-intercept variance σ̂s²."""
        return self.params.group_variance

    @property
    def at_boundary(self) -> dict[str, bool]:
        """Whether each variance component sits on its lower bound."""
        return self.params.at_boundary

    @property
    def icc(self) -> float:
        """Intraclass correlation σs² / (σs² + σ²)."""
        total = self.sigma_s_sq + self.sigma_sq
        return self.sigma_s_sq / total

    @property
    def ranef(self) -> dict[Hashable, float]:
        """Conditional modes of the random intercepts, keyed by group level."""
        return self.params.random_effects

    # --- Model fit ---

    @property
    def log_likelihood(self) -> float:
        return self.params.log_likelihood

    @property
    def aic(self) -> float:
        return self.params.aic

    @property
    def bic(self) -> float:
        return self.params.bic

    @property
    def fitted_values(self) -> NDArray:
        return self.params.fitted_values

    @property
    def residuals(self) -> NDArray:
        return self.params.residuals

    @property
    def theta(self) -> NDArray:
        """Optimiser vector (σ̂, σ̂s, β̂) at the reported optimum."""
        return self.params.theta

    # --- Convergence ---

    @property
    def converged(self) -> bool:
        return self.params.converged

    @property
    def status(self) -> str:
        """One of 'converged', 'did_not_converge', 'degenerate'."""
        return self.params.status

    @property
    def n_iter(self) -> int:
        return self.params.n_iter

    # --- Envelope ---

    @property
    def info(self) -> dict[str, Any]:
        """Optimiser metadata (backend, message, gradient norm, ...)."""
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def as_dict(self) -> dict[str, Any]:
        """Output record: beta_hat, sigma_squared, sigma_s_squared, ..."""
        return self.params.as_dict()

    # --- Model comparison ---

    def compare(self, other: 'LMMSolution | float', df: int | None = None) -> str:
        """Likelihood ratio test between two nested ML fits.

        Args:
            other: Another LMMSolution, or the log-likelihood of a reduced
                model (e.g. from ``ols_log_likelihood``).
            df: Difference in parameter count. Required when ``other`` is
                a float; inferred from the fixed-effect counts otherwise.

        Returns:
            Formatted LRT summary string.

        Note:
            When the reduced model sets σs² = 0 the null value lies on the
            boundary and the χ² reference distribution is conservative.
        """
        if isinstance(other, LMMSolution):
            other_ll = other.log_likelihood
            n_other = len(other.coefficients) + 2
        else:
            if df is None:
                raise ValueError("df is required when comparing against a log-likelihood")
            other_ll = float(other)
            n_other = len(self.coefficients) + 2 - df

        n_self = len(self.coefficients) + 2
        if n_self >= n_other:
            full_ll, reduced_ll, n_full, n_reduced = (
                self.log_likelihood, other_ll, n_self, n_other)
        else:
            full_ll, reduced_ll, n_full, n_reduced = (
                other_ll, self.log_likelihood, n_other, n_self)

        if df is None:
            df = n_full - n_reduced
        if df <= 0:
            warnings.warn(
                "Models have the same number of parameters; using df = 1.",
                UserWarning,
                stacklevel=2,
            )
            df = 1

        chi_sq = max(-2.0 * (reduced_ll - full_ll), 0.0)
        p_value = float(stats.chi2.sf(chi_sq, df))

        lines = [
            "Likelihood Ratio Test",
            "=" * 50,
            f"  Reduced model logLik: {reduced_ll:.4f}  (df = {n_reduced})",
            f"  Full model logLik:    {full_ll:.4f}  (df = {n_full})",
            f"  Chi-squared: {chi_sq:.4f}  on {df} df",
            f"  p-value: {_format_pvalue(p_value)}",
        ]
        return '\n'.join(lines)

    # --- Summary ---

    def summary(self) -> str:
        """lme4-style summary of an ML fit."""
        params = self.params

        lines = []
        lines.append("Linear mixed model fit by maximum likelihood")
        lines.append("")

        lines.append("Random effects:")
        lines.append(f" {'Groups':<12s} {'Name':<15s} {'Variance':>10s} "
                     f"{'Std.Dev.':>10s}")
        lines.append(
            f" {params.group_name:<12s} {'(Intercept)':<15s} "
            f"{params.group_variance:10.4f} {params.group_std:10.4f}"
        )
        lines.append(
            f" {'Residual':<12s} {'':<15s} {params.residual_variance:10.4f} "
            f"{params.residual_std:10.4f}"
        )
        lines.append(
            f"Number of obs: {params.n_obs}, groups: "
            f"{params.group_name}, {params.n_groups}"
        )
        lines.append("")

        lines.append("Fixed effects:")
        lines.append(f" {'':>15s} {'Estimate':>10s} {'Std. Error':>10s} "
                     f"{'t value':>10s}")
        for name, est, se in zip(params.coefficient_names,
                                 params.coefficients, params.se):
            t_val = est / se if se > 0 else float('nan')
            lines.append(f" {name:>15s} {est:10.4f} {se:10.4f} {t_val:10.3f}")
        lines.append("")

        lines.append(f"logLik: {params.log_likelihood:.4f}, "
                     f"AIC: {params.aic:.1f}, BIC: {params.bic:.1f}")
        lines.append(f"Optimizer: {self.info.get('optimizer', '?')}, "
                     f"iterations: {params.n_iter}, status: {params.status}")

        boundary = [k for k, v in params.at_boundary.items() if v]
        if boundary:
            lines.append("")
            lines.append(f"NOTE: variance at lower bound: {', '.join(boundary)}")
        if params.status == FitStatus.DEGENERATE:
            lines.append("")
            lines.append("WARNING: every group is a singleton; only the total "
                         "variance is identifiable")
        elif not params.converged:
            lines.append("")
            lines.append("WARNING: Model did not converge")

        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"LMMSolution(ML, n={self.params.n_obs}, "
            f"fixed={len(self.params.coefficients)}, "
            f"groups={self.params.n_groups}, status={self.params.status})"
        )
