"""
mixedml: maximum likelihood linear mixed models with one random intercept.

Derives and fits y = Xβ + Ku + ε, u ~ N(0, σs² I), ε ~ N(0, σ² I) by
maximising the exact Gaussian log-likelihood with a box-constrained
optimiser.

Submodules:
    mixed: fit(), log_likelihood(), LMMSolution
    hypothesis: paired t-test used to cross-check fixed effects
    core: exceptions, result envelope, optimisers, linear algebra
"""

__version__ = "0.1.0"

from mixedml import mixed
from mixedml import hypothesis
from mixedml.mixed import fit, log_likelihood

__all__ = [
    "__version__",
    "mixed",
    "hypothesis",
    "fit",
    "log_likelihood",
]
