"""
Design validation for the random-intercept linear mixed model.

MixedDesign validates and organizes the inputs: the response y, the fixed
effects matrix X and the grouping factor. ``build_config`` validates the
optimiser box and starting point against a design. Everything here runs
before any optimisation so invalid input never reaches the optimiser.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Hashable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mixedml.core.exceptions import ValidationError, DimensionError
from mixedml.core.validation import (
    check_array,
    check_box,
    check_column_rank,
    check_consistent_length,
    check_finite,
    check_identifiable,
    check_ndim,
    check_positive,
    check_vector_length,
    check_within_box,
)
from mixedml.mixed._common import N_VARIANCE_PARAMS, OptimizerConfig
from mixedml.mixed._grouping import GroupingSpec, build_grouping, resolve_groups

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MixedDesign:
    """Validated design for a random-intercept mixed model.

    Attributes:
        y: Response vector (n,).
        X: Fixed effects design matrix (n, p).
        grouping: The random-intercept grouping factor and its K matrix.
        n: Number of observations.
        p: Number of fixed effect columns.
    """
    y: NDArray
    X: NDArray
    grouping: GroupingSpec
    n: int
    p: int

    @property
    def n_params(self) -> int:
        """Length of theta = (sigma, sigma_s, beta...)."""
        return self.p + N_VARIANCE_PARAMS

    @staticmethod
    def validate(
        y: ArrayLike,
        X: ArrayLike,
        groups: ArrayLike | dict[str, ArrayLike],
        levels: Sequence[Hashable] | None = None,
    ) -> 'MixedDesign':
        """Validate inputs and create a MixedDesign.

        Args:
            y: Response vector.
            X: Fixed effects design matrix. A 1-D X is treated as a single
               column; include an intercept column yourself if desired.
            groups: Group label per observation, or ``{name: labels}``.
            levels: Optional explicit group universe (fixes K's columns).

        Returns:
            Validated MixedDesign.

        Raises:
            DimensionError: On shape problems.
            ValidationError: On non-numeric or non-finite data, n < p + 1,
                rank-deficient X, or empty groups.
        """
        y, X = validate_fixed_effects(y, X)
        n, p = X.shape

        group_name, labels = resolve_groups(groups)
        grouping = build_grouping(labels, n, group_name=group_name, levels=levels)

        logger.debug("MixedDesign: n=%d, p=%d, groups=%d (sizes %s)",
                     n, p, grouping.n_groups, grouping.sizes.tolist())

        return MixedDesign(
            y=y.astype(np.float64, copy=True),
            X=X.astype(np.float64, copy=True),
            grouping=grouping,
            n=n,
            p=p,
        )


def validate_fixed_effects(y: ArrayLike, X: ArrayLike) -> tuple[NDArray, NDArray]:
    """Check y and X for shape, finiteness, n >= p + 1 and full column rank.

    A 1D X is treated as a single column.

    Raises:
        DimensionError: On shape problems.
        ValidationError: On non-numeric or non-finite data, n < p + 1 or
            rank-deficient X.
    """
    y = check_array(y, 'y')
    check_ndim(y, 1, 'y')
    X = check_array(X, 'X')
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    check_ndim(X, 2, 'X')
    check_consistent_length(y, X, names=('y', 'X'))

    n, p = X.shape
    if p == 0:
        raise DimensionError("X: needs at least one column")
    check_identifiable(n, p, 'X')
    check_finite(y, 'y')
    check_finite(X, 'X')
    check_column_rank(X, 'X')
    return y, X


def build_config(
    design: MixedDesign,
    lower_bounds: Sequence[float | None] | None,
    upper_bounds: Sequence[float | None] | None,
    initial_guess: Sequence[float] | None,
    tol: float,
    max_iter: int,
    variance_floor: float,
) -> OptimizerConfig:
    """Validate the optimiser box and starting point for ``design``.

    ``None`` entries in a bound vector mean unbounded. A missing initial
    guess is derived from OLS (see ``default_initial_guess``) and clipped
    into the box.

    Raises:
        ValidationError: On inconsistent bounds, a starting point outside
            the box, or invalid tol / max_iter / variance_floor.
    """
    check_positive(tol, 'tol')
    if int(max_iter) != max_iter or max_iter < 1:
        raise ValidationError(f"max_iter: must be a positive integer, got {max_iter}")
    if not variance_floor >= 0:
        raise ValidationError(
            f"variance_floor: must be >= 0, got {variance_floor}"
        )

    k = design.n_params
    sd_floor = float(np.sqrt(variance_floor))

    if lower_bounds is None:
        lower = np.full(k, -np.inf)
        lower[:N_VARIANCE_PARAMS] = sd_floor
    else:
        check_vector_length(lower_bounds, k, 'lower_bounds')
        lower = _bound_vector(lower_bounds, -np.inf, 'lower_bounds')

    if upper_bounds is None:
        upper = np.full(k, np.inf)
    else:
        check_vector_length(upper_bounds, k, 'upper_bounds')
        upper = _bound_vector(upper_bounds, np.inf, 'upper_bounds')

    check_box(lower, upper, n_variance=N_VARIANCE_PARAMS)

    if initial_guess is None:
        x0 = np.clip(default_initial_guess(design), lower, upper)
    else:
        check_vector_length(initial_guess, k, 'initial_guess')
        x0 = check_array(initial_guess, 'initial_guess').ravel()
        check_finite(x0, 'initial_guess')
        check_within_box(x0, lower, upper, 'initial_guess')

    return OptimizerConfig(
        initial_guess=x0,
        lower_bounds=lower,
        upper_bounds=upper,
        max_iter=int(max_iter),
        tol=float(tol),
        variance_floor=float(variance_floor),
    )


def default_initial_guess(design: MixedDesign) -> NDArray:
    """OLS β and the OLS residual variance split evenly between σ² and σs²."""
    beta, *_ = np.linalg.lstsq(design.X, design.y, rcond=None)
    rss = float(np.sum((design.y - design.X @ beta) ** 2))
    sd = np.sqrt(rss / (2.0 * design.n))
    if sd == 0.0:
        sd = 1.0
    return np.concatenate([[sd, sd], beta])


def _bound_vector(
    values: Sequence[float | None],
    fill: float,
    name: str,
) -> NDArray:
    out = np.array([fill if v is None else v for v in values], dtype=np.float64)
    if np.any(np.isnan(out)):
        raise ValidationError(f"{name}: NaN is not a valid bound; use None or inf")
    return out
