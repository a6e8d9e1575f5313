"""
scipy.optimize backends for bounded maximisation.

scipy only minimises, so both backends negate the objective (and gradient)
on the way in and flip the sign of the optimum on the way out.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import Bounds, minimize

from mixedml.core.exceptions import NumericalError, ValidationError
from mixedml.core.protocols import BoxConstrainedOptimizer, Gradient, Objective
from mixedml.core.compute.optimization._common import (
    OptimizationResult,
    OptimizerDiagnostics,
)

logger = logging.getLogger(__name__)

# L-BFGS-B can stop with an abnormal line search when it is already sitting
# on the optimum; accept the iterate if the projected gradient is this small
# relative to the objective scale.
ABNORMAL_GRADIENT_RTOL = 1e-6


def _negated(objective: Objective) -> Objective:
    def neg(x: NDArray) -> float:
        value = float(objective(x))
        if not np.isfinite(value):
            raise NumericalError(
                f"Objective is not finite ({value}) at x = {np.asarray(x).tolist()}"
            )
        return -value
    return neg


def _negated_gradient(gradient: Gradient) -> Gradient:
    def neg(x: NDArray) -> NDArray:
        g = np.asarray(gradient(x), dtype=np.float64)
        if not np.all(np.isfinite(g)):
            raise NumericalError(
                f"Gradient is not finite at x = {np.asarray(x).tolist()}"
            )
        return -g
    return neg


def projected_gradient_norm(
    x: NDArray,
    grad: NDArray,
    lower: NDArray,
    upper: NDArray,
) -> float:
    """Infinity norm of the projected gradient of a *minimisation* problem.

    Components pushing against an active bound are zeroed, so a boundary
    optimum has a zero projected gradient.
    """
    pg = np.array(grad, dtype=np.float64, copy=True)
    at_lower = (x <= lower) & (pg > 0)
    at_upper = (x >= upper) & (pg < 0)
    pg[at_lower | at_upper] = 0.0
    return float(np.max(np.abs(pg))) if pg.size else 0.0


class LBFGSBOptimizer:
    """
    Gradient-based bounded maximiser (scipy's L-BFGS-B).

    Uses the supplied analytic gradient when given, otherwise scipy's
    finite-difference approximation.
    """

    @property
    def name(self) -> str:
        return 'cpu_lbfgsb'

    def maximize(
        self,
        objective: Objective,
        lower: NDArray[np.floating],
        upper: NDArray[np.floating],
        initial_guess: NDArray[np.floating],
        *,
        gradient: Gradient | None = None,
        tol: float = 1e-12,
        max_iter: int = 1000,
    ) -> OptimizationResult:
        neg_f = _negated(objective)
        neg_g = _negated_gradient(gradient) if gradient is not None else None

        logger.debug("L-BFGS-B start: x0=%s, tol=%g, max_iter=%d",
                     np.asarray(initial_guess).tolist(), tol, max_iter)

        res = minimize(
            neg_f,
            initial_guess,
            jac=neg_g,
            method='L-BFGS-B',
            bounds=Bounds(lower, upper),
            options={
                'maxiter': max_iter,
                'maxfun': max(15000, 20 * max_iter),
                'ftol': tol,
                'gtol': tol * 10,
            },
        )

        x = np.asarray(res.x, dtype=np.float64)
        jac = neg_g(x) if neg_g is not None else np.asarray(res.jac)
        pg_norm = projected_gradient_norm(x, jac, lower, upper)
        message = str(res.message)

        if res.status == 0:
            converged, reason = True, 'converged'
        elif res.status == 1:
            converged, reason = False, 'max_iterations'
        elif pg_norm <= ABNORMAL_GRADIENT_RTOL * max(1.0, abs(float(res.fun))):
            # Line search could not improve further, but the projected
            # gradient says we are at a stationary point of the box.
            converged, reason = True, 'converged'
        else:
            converged, reason = False, 'abnormal'

        logger.debug("L-BFGS-B finish: status=%d (%s), nit=%d, |pg|=%.3g",
                     res.status, message, res.nit, pg_norm)

        return OptimizationResult(
            argmax=x,
            value=-float(res.fun),
            diagnostics=OptimizerDiagnostics(
                converged=converged,
                n_iter=int(res.nit),
                n_fev=int(res.nfev),
                gradient_norm=pg_norm,
                message=message,
                reason=reason,
            ),
        )


class PowellOptimizer:
    """
    Derivative-free bounded maximiser (scipy's Powell).

    Slower than L-BFGS-B but independent of gradient correctness, which
    makes it a useful cross-check.
    """

    @property
    def name(self) -> str:
        return 'cpu_powell'

    def maximize(
        self,
        objective: Objective,
        lower: NDArray[np.floating],
        upper: NDArray[np.floating],
        initial_guess: NDArray[np.floating],
        *,
        gradient: Gradient | None = None,
        tol: float = 1e-12,
        max_iter: int = 1000,
    ) -> OptimizationResult:
        neg_f = _negated(objective)

        logger.debug("Powell start: x0=%s, tol=%g, max_iter=%d",
                     np.asarray(initial_guess).tolist(), tol, max_iter)

        res = minimize(
            neg_f,
            initial_guess,
            method='Powell',
            bounds=Bounds(lower, upper),
            options={
                'maxiter': max_iter,
                'maxfev': max(20000, 50 * max_iter),
                'xtol': tol,
                'ftol': tol,
            },
        )

        if res.success:
            reason = 'converged'
        elif res.status in (1, 2):
            reason = 'max_iterations'
        else:
            reason = 'abnormal'

        logger.debug("Powell finish: status=%d (%s), nit=%d",
                     res.status, res.message, res.nit)

        return OptimizationResult(
            argmax=np.asarray(res.x, dtype=np.float64),
            value=-float(res.fun),
            diagnostics=OptimizerDiagnostics(
                converged=bool(res.success),
                n_iter=int(res.nit),
                n_fev=int(res.nfev),
                gradient_norm=None,
                message=str(res.message),
                reason=reason,
            ),
        )


_OPTIMIZERS = {
    'L-BFGS-B': LBFGSBOptimizer,
    'Powell': PowellOptimizer,
}


def get_optimizer(choice: 'str | BoxConstrainedOptimizer') -> BoxConstrainedOptimizer:
    """Resolve a method name or pass through an optimiser instance."""
    if isinstance(choice, str):
        try:
            return _OPTIMIZERS[choice]()
        except KeyError:
            raise ValidationError(
                f"Unknown optimizer: {choice!r}. Use one of {sorted(_OPTIMIZERS)} "
                f"or an object implementing BoxConstrainedOptimizer."
            ) from None
    if isinstance(choice, BoxConstrainedOptimizer):
        return choice
    raise ValidationError(
        f"optimizer: expected a method name or a BoxConstrainedOptimizer, "
        f"got {type(choice).__name__}"
    )
