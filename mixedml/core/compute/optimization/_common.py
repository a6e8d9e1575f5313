"""
Result types shared by all optimisation backends.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class OptimizerDiagnostics:
    """Convergence diagnostics reported by a backend.

    Attributes:
        converged: Whether the backend's stopping criterion was satisfied.
        n_iter: Iterations performed.
        n_fev: Objective evaluations performed.
        gradient_norm: Infinity norm of the projected gradient at the
            final iterate, or None for derivative-free backends.
        message: Backend status message.
        reason: Short machine-readable status: 'converged',
            'max_iterations' or 'abnormal'.
    """
    converged: bool
    n_iter: int
    n_fev: int
    gradient_norm: float | None
    message: str
    reason: str


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of one ``maximize`` call.

    Attributes:
        argmax: Final iterate (the best point found, converged or not).
        value: Objective value at ``argmax`` (maximisation sign).
        diagnostics: Convergence diagnostics.
    """
    argmax: NDArray[np.floating]
    value: float
    diagnostics: OptimizerDiagnostics
