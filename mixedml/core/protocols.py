"""
Core protocols for mixedml.

These define structural interfaces that interchangeable implementations must
satisfy. We use Protocol (structural typing) rather than ABC (nominal
typing) so a third-party optimiser only needs the right shape, not our base
class.

Design Principles:
    - Minimal contracts: prescribe only what's truly universal
    - Stateless: configuration is passed per call or at construction time
"""

from __future__ import annotations

from typing import Callable, Protocol, TYPE_CHECKING, runtime_checkable

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from mixedml.core.compute.optimization import OptimizationResult


Objective = Callable[[NDArray[np.floating]], float]
Gradient = Callable[[NDArray[np.floating]], NDArray[np.floating]]


@runtime_checkable
class BoxConstrainedOptimizer(Protocol):
    """
    Protocol for bounded numerical maximisers.

    The estimator only ever talks to an optimiser through this interface, so
    a different numerical backend can be substituted without touching the
    estimator's contract.
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}'
        Examples: 'cpu_lbfgsb', 'cpu_powell'
        """
        ...

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
    ) -> 'OptimizationResult':
        """
        Maximise ``objective`` over the box ``[lower, upper]``.

        Args:
            objective: Scalar function of the parameter vector.
            lower: Lower bounds; ``-inf`` for unbounded.
            upper: Upper bounds; ``+inf`` for unbounded.
            initial_guess: Starting point inside the box.
            gradient: Optional gradient of ``objective``. Derivative-free
                backends ignore it.
            tol: Convergence tolerance.
            max_iter: Iteration budget.

        Returns:
            OptimizationResult with the argmax, the objective there, and
            diagnostics. Non-convergence is reported, not raised.
        """
        ...
