"""
TTestDesign: validated inputs for one-sample and paired t-tests.

A paired test is a one-sample test on the differences x − y, so the design
stores the differences directly and remembers that it was paired.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mixedml.core.exceptions import ValidationError, DimensionError
from mixedml.hypothesis._common import VALID_ALTERNATIVES


@dataclass(frozen=True)
class TTestDesign:
    """
    Design for t_test().

    Attributes:
        x: Sample (one-sample) or paired differences x − y, NaN removed.
        paired: Whether x holds paired differences.
        mu: Hypothesized mean (difference).
        alternative: "two.sided", "less" or "greater".
        conf_level: Confidence level in (0, 1).
        data_name: Description used in the summary.
    """
    x: NDArray[np.floating[Any]]
    paired: bool
    mu: float
    alternative: str
    conf_level: float
    data_name: str

    @classmethod
    def build(
        cls,
        x: ArrayLike,
        y: ArrayLike | None = None,
        *,
        paired: bool = False,
        mu: float = 0.0,
        alternative: str = "two.sided",
        conf_level: float = 0.95,
    ) -> 'TTestDesign':
        """Validate inputs and build the design.

        Raises:
            ValidationError: Bad alternative or conf_level, fewer than two
                usable observations, or y given without paired=True.
            DimensionError: Paired samples of unequal length.
        """
        if alternative not in VALID_ALTERNATIVES:
            raise ValidationError(
                f"alternative must be one of {VALID_ALTERNATIVES}, got {alternative!r}"
            )
        if not (0.0 < conf_level < 1.0):
            raise ValidationError(
                f"conf_level must be in (0, 1), got {conf_level}"
            )

        x_raw = np.asarray(x, dtype=np.float64).ravel()

        if y is None:
            if paired:
                raise ValidationError("paired=True requires a second sample y")
            values = x_raw[~np.isnan(x_raw)]
            data_name = "x"
        else:
            if not paired:
                raise ValidationError(
                    "two-sample t-tests are not supported; pass paired=True "
                    "for matched samples"
                )
            y_raw = np.asarray(y, dtype=np.float64).ravel()
            if len(x_raw) != len(y_raw):
                raise DimensionError(
                    f"Paired t-test requires equal lengths: "
                    f"len(x)={len(x_raw)}, len(y)={len(y_raw)}"
                )
            diffs = x_raw - y_raw
            # Drop a pair when either member is missing (R's complete.cases)
            values = diffs[~np.isnan(diffs)]
            data_name = "x and y"

        if len(values) < 2:
            raise ValidationError(
                f"Need at least 2 non-missing observations, got {len(values)}"
            )

        return cls(
            x=values,
            paired=paired,
            mu=float(mu),
            alternative=alternative,
            conf_level=float(conf_level),
            data_name=data_name,
        )
