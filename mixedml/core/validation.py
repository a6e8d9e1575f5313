"""
Input validators for mixedml.

Everything a caller passes to ``fit``, ``log_likelihood`` or ``t_test`` is
checked here before any numerical work starts. Validators raise
ValidationError (or its DimensionError subclass) naming the offending
argument and the value found; they never repair input.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mixedml.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Convert ``array`` to a floating numpy array.

    Booleans and integers are promoted to float64; existing floating
    dtypes are kept. Strings, objects and other non-numeric dtypes are
    rejected.

    Raises:
        ValidationError: If the input is not numeric
    """
    try:
        arr = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if arr.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )
    if arr.dtype != np.bool_ and not np.issubdtype(arr.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {arr.dtype}, expected numeric data"
        )
    if np.issubdtype(arr.dtype, np.floating):
        return arr
    return arr.astype(np.float64)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """Reject NaN and ±Inf, reporting how many of each were found."""
    finite = np.isfinite(array)
    if finite.all():
        return
    n_nan = int(np.isnan(array).sum())
    n_inf = int(np.isinf(array).sum())
    raise ValidationError(
        f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
    )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Raises:
        DimensionError: If ``array.ndim != ndim``
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_consistent_length(
    *arrays: NDArray[Any],
    names: tuple[str, ...]
) -> None:
    """
    Require every array to have the same number of rows.

    Raises:
        ValueError: If ``names`` does not match ``arrays`` (caller bug)
        DimensionError: If the row counts differ
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )
    rows = [a.shape[0] for a in arrays]
    if len(set(rows)) > 1:
        details = ", ".join(f"{nm}={r}" for nm, r in zip(names, rows))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_identifiable(n: int, p: int, name: str) -> None:
    """
    Verify there are more observations than fixed-effect columns.

    With n <= p the residual carries no information about the variance
    components and the model is not identifiable.

    Raises:
        ValidationError: If n < p + 1
    """
    if n < p + 1:
        raise ValidationError(
            f"{name}: {n} rows for {p} columns; need at least {p + 1} "
            f"observations (p + 1) for an identifiable model"
        )


def check_column_rank(X: NDArray[np.floating[Any]], name: str) -> None:
    """
    Require full column rank, so β is identified by the fixed effects.

    Raises:
        ValidationError: If some column is a linear combination of others
    """
    p = X.shape[1]
    rank = int(np.linalg.matrix_rank(X))
    if rank < p:
        raise ValidationError(
            f"{name}: rank-deficient (rank={rank}, expected={p}); "
            f"drop collinear columns"
        )


def check_vector_length(
    values: Sequence[Any] | NDArray[Any],
    length: int,
    name: str,
) -> None:
    """
    Verify a parameter vector has the expected number of entries.

    Raises:
        DimensionError: If the length differs
    """
    actual = len(values)
    if actual != length:
        raise DimensionError(
            f"{name}: expected {length} entries (sigma, sigma_s, beta_1..beta_p), "
            f"got {actual}"
        )


def check_box(
    lower: NDArray[np.floating[Any]],
    upper: NDArray[np.floating[Any]],
    n_variance: int = 2,
) -> None:
    """
    Verify box constraints are consistent.

    The first ``n_variance`` entries bound standard deviations and must have
    non-negative lower bounds.

    Raises:
        ValidationError: If any lower bound exceeds its upper bound, a bound
            is NaN, or a variance lower bound is negative
    """
    if np.any(np.isnan(lower)) or np.any(np.isnan(upper)):
        raise ValidationError("bounds: NaN is not a valid bound; use None or inf")

    bad = np.where(lower > upper)[0]
    if len(bad) > 0:
        details = ", ".join(
            f"[{i}] {lower[i]:g} > {upper[i]:g}" for i in bad
        )
        raise ValidationError(f"bounds: lower exceeds upper at {details}")

    negative = np.where(lower[:n_variance] < 0)[0]
    if len(negative) > 0:
        raise ValidationError(
            f"lower_bounds: variance-component bounds must be non-negative, "
            f"got {lower[:n_variance].tolist()}"
        )


def check_within_box(
    x: NDArray[np.floating[Any]],
    lower: NDArray[np.floating[Any]],
    upper: NDArray[np.floating[Any]],
    name: str,
) -> None:
    """
    Verify a point lies inside the box.

    Raises:
        ValidationError: If any coordinate is outside [lower, upper]
    """
    outside = np.where((x < lower) | (x > upper))[0]
    if len(outside) > 0:
        details = ", ".join(
            f"[{i}] {x[i]:g} not in [{lower[i]:g}, {upper[i]:g}]" for i in outside
        )
        raise ValidationError(f"{name}: outside the bounds at {details}")


def check_positive(value: float, name: str) -> None:
    """
    Verify a scalar setting is strictly positive.

    Raises:
        ValidationError: If value <= 0
    """
    if not value > 0:
        raise ValidationError(f"{name}: must be > 0, got {value}")


def check_nonnegative(values: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify every entry is >= 0.

    Raises:
        ValidationError: If any entry is negative
    """
    negative = np.where(values < 0)[0]
    if len(negative) > 0:
        raise ValidationError(
            f"{name}: must be non-negative, got {values.tolist()}"
        )
