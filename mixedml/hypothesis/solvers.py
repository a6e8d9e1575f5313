"""
Public API for hypothesis tests.
"""

from __future__ import annotations

import logging
from typing import Literal

from numpy.typing import ArrayLike

from mixedml.core.compute.timing import Timer
from mixedml.core.result import Result
from mixedml.hypothesis._t_test import t_statistic
from mixedml.hypothesis.design import TTestDesign
from mixedml.hypothesis.solution import HTestSolution

logger = logging.getLogger(__name__)


def t_test(
    x: ArrayLike | TTestDesign,
    y: ArrayLike | None = None,
    *,
    paired: bool = False,
    mu: float = 0.0,
    alternative: Literal["two.sided", "less", "greater"] = "two.sided",
    conf_level: float = 0.95,
) -> HTestSolution:
    """
    One-sample or paired t-test. Matches R t.test().

    In a design with one untreated and one treated observation per group,
    the paired test on (treated, untreated) estimates the same treatment
    effect as the fixed-effect slope of the random-intercept model, which
    makes it an independent cross-check of ``mixedml.mixed.fit``.

    Parameters
    ----------
    x : array-like or TTestDesign
        Sample, or first member of each pair.
    y : array-like or None
        Second member of each pair (requires paired=True).
    paired : bool
        Test mean(x - y) = mu.
    mu : float
        Hypothesized mean (difference). Default 0.
    alternative : str
        "two.sided" (default), "less", or "greater".
    conf_level : float
        Confidence level for the interval. Default 0.95.

    Returns
    -------
    HTestSolution
    """
    if isinstance(x, TTestDesign):
        design = x
    else:
        design = TTestDesign.build(
            x, y,
            paired=paired,
            mu=mu,
            alternative=alternative,
            conf_level=conf_level,
        )

    timer = Timer()
    timer.start()
    params, warnings_list = t_statistic(design)
    timer.stop()

    logger.debug("t_test: %s, t=%.6g, df=%g", params.method,
                 params.statistic, params.parameter["df"])

    result = Result(
        params=params,
        info={'method': params.method},
        timing=timer.result(),
        backend_name='cpu_t_test',
        warnings=tuple(warnings_list),
    )
    return HTestSolution(_result=result, _design=design)
