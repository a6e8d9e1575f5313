"""
Result envelope shared by the estimator and the hypothesis tests.

A Result bundles a frozen, domain-specific payload (``LMMParams``,
``HTestParams``) with what every fit reports: optimiser or test metadata,
section timings, the backend that produced it and any non-fatal warnings.
Solution classes wrap a Result and expose it through properties.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

P = TypeVar('P')


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable envelope around a payload of type P.

    Attributes:
        params: Frozen payload (estimates, statistics)
        info: Metadata such as method, optimiser message, iteration counts
        timing: Seconds per named section plus 'total_seconds', or None
        backend_name: e.g. 'cpu_lbfgsb', 'cpu_powell', 'cpu_t_test'
        warnings: Messages describing non-fatal issues (boundary estimates,
            non-convergence, unidentifiable components)
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """True if any warning message contains ``substring``."""
        return any(substring in w for w in self.warnings)
