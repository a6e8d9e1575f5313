"""
Common types for hypothesis testing.

HTestParams mirrors the fields of R's htest object so results can be read
side by side with R output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


VALID_ALTERNATIVES = ("two.sided", "less", "greater")


@dataclass(frozen=True)
class HTestParams:
    """
    Parameter payload for a hypothesis test.

    Attributes
    ----------
    statistic : float
        Test statistic value (NaN when the data are constant).
    statistic_name : str
        Name of the test statistic, e.g. "t".
    parameter : dict
        Distribution parameters, e.g. {"df": 9}.
    p_value : float
        p-value of the test.
    conf_int : ndarray
        Confidence interval, shape (2,).
    conf_level : float
        Confidence level (e.g. 0.95).
    estimate : dict
        Point estimate(s), e.g. {"mean difference": 9.0}.
    null_value : dict
        Hypothesized value under H0.
    alternative : str
        "two.sided", "less", or "greater".
    method : str
        Human-readable method name, e.g. "Paired t-test".
    data_name : str
        Description of the data, e.g. "x and y".
    """
    statistic: float
    statistic_name: str
    parameter: dict[str, float]
    p_value: float
    conf_int: NDArray[np.floating[Any]]
    conf_level: float
    estimate: dict[str, float]
    null_value: dict[str, float]
    alternative: str
    method: str
    data_name: str
