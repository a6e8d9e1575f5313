"""
Hypothesis testing module.

Public API:
    t_test(x, y, paired=True) - one-sample and paired t-tests (R t.test)
"""

from mixedml.hypothesis.solvers import t_test
from mixedml.hypothesis.design import TTestDesign
from mixedml.hypothesis._common import HTestParams
from mixedml.hypothesis.solution import HTestSolution

__all__ = [
    "t_test",
    "TTestDesign",
    "HTestParams",
    "HTestSolution",
]
