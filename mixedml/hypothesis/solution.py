"""
Hypothesis test solution type.

HTestSolution wraps Result[HTestParams] and prints in R's print.htest
layout.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from mixedml.core.result import Result
from mixedml.hypothesis._common import HTestParams
from mixedml.hypothesis.design import TTestDesign


class HTestSolution:
    """
    User-facing hypothesis test result.
    """

    def __init__(self, _result: Result[HTestParams], _design: TTestDesign):
        self._result = _result
        self._design = _design

    @property
    def statistic(self) -> float:
        return self._result.params.statistic

    @property
    def parameter(self) -> dict[str, float]:
        """Distribution parameters (e.g. {'df': 1})."""
        return self._result.params.parameter

    @property
    def p_value(self) -> float:
        return self._result.params.p_value

    @property
    def conf_int(self) -> NDArray[np.floating[Any]]:
        return self._result.params.conf_int

    @property
    def estimate(self) -> dict[str, float]:
        return self._result.params.estimate

    @property
    def null_value(self) -> dict[str, float]:
        return self._result.params.null_value

    @property
    def alternative(self) -> str:
        return self._result.params.alternative

    @property
    def method(self) -> str:
        return self._result.params.method

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    def summary(self) -> str:
        """Format as R's print.htest output."""
        p = self._result.params
        lines = [f"\t{p.method}", "", f"data:  {p.data_name}"]

        parts = [f"{p.statistic_name} = {p.statistic:.5g}"]
        parts.extend(f"{name} = {val:.5g}" for name, val in p.parameter.items())
        parts.append(f"p-value = {_format_pvalue(p.p_value)}")
        lines.append(", ".join(parts))

        nv_name, nv_val = next(iter(p.null_value.items()))
        relation = {
            "two.sided": "is not equal to",
            "less": "is less than",
            "greater": "is greater than",
        }[p.alternative]
        lines.append(f"alternative hypothesis: true {nv_name} {relation} {nv_val:g}")

        lines.append(f"{int(round(p.conf_level * 100))} percent confidence interval:")
        lo, hi = p.conf_int
        lines.append(f" {_format_number(lo)}  {_format_number(hi)}")

        lines.append("sample estimates:")
        lines.append(" ".join(f"{n:>16s}" for n in p.estimate))
        lines.append(" ".join(f"{v:16.7g}" for v in p.estimate.values()))
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        p = self._result.params
        return (
            f"HTestSolution(method={p.method!r}, t={p.statistic:.4g}, "
            f"p_value={p.p_value:.4g})"
        )


def _format_pvalue(p: float) -> str:
    if np.isnan(p):
        return "NA"
    if p < 2.2e-16:
        return "< 2.2e-16"
    if p < 0.001:
        return f"{p:.4e}"
    return f"{p:.4g}"


def _format_number(x: float) -> str:
    if np.isinf(x):
        return "-Inf" if x < 0 else "Inf"
    return f"{x:.7g}"
