"""
Tolerance tiers for numerical validation.

Defines precision expectations for different comparisons:
- exact algebra (closed forms, identities): machine precision
- optimiser output vs published reference values
- two optimiser backends against each other

Used by the test suite.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerances for one tier of numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Same quantity computed two algebraically equivalent ways
EXACT_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='exact_fp64',
    description='Double precision identity, e.g. closed form vs Cholesky',
)

# Converged ML estimates vs a reference library's ML fit
REFERENCE_ML = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='reference_ml',
    description='Converged optimum vs reference estimates (>= 4 significant digits)',
)

# Two different optimiser backends on the same problem
CROSS_OPTIMIZER = ToleranceTier(
    rtol=1e-3,
    atol=1e-4,
    name='cross_optimizer',
    description='Gradient-based vs derivative-free optimum',
)


def select_tolerance(comparison: str) -> ToleranceTier:
    """Select a tolerance tier by comparison kind."""
    tiers = {
        'exact': EXACT_FP64,
        'reference': REFERENCE_ML,
        'optimizer': CROSS_OPTIMIZER,
    }
    try:
        return tiers[comparison]
    except KeyError:
        raise ValueError(
            f"Unknown comparison {comparison!r}; use one of {sorted(tiers)}"
        ) from None
