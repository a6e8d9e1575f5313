"""
Grouping factor handling and incidence matrix construction.

A single random-intercept grouping factor is represented by the n × m
incidence matrix K with K[i, j] = 1 when observation i belongs to group j.
Every row of K has exactly one 1; every column at least one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mixedml.core.exceptions import ValidationError, DimensionError


@dataclass(frozen=True)
class GroupingSpec:
    """One random-intercept grouping factor.

    Attributes:
        group_name: Name of the grouping factor (e.g. 'individual').
        levels: Distinct group labels in column order of K, shape (m,).
        group_ids: 0-indexed column of K for each observation, shape (n,).
        K: Incidence matrix, shape (n, m).
        KKt: K Kᵗ, shape (n, n); entry (i, k) is 1 when i and k share a group.
        sizes: Number of observations per group, shape (m,).
    """
    group_name: str
    levels: NDArray
    group_ids: NDArray
    K: NDArray
    KKt: NDArray
    sizes: NDArray

    @property
    def n_groups(self) -> int:
        return len(self.levels)

    @property
    def all_singletons(self) -> bool:
        """Every group has one member, so K Kᵗ = I."""
        return bool(np.all(self.sizes == 1))


def resolve_groups(
    groups: ArrayLike | dict[str, ArrayLike],
) -> tuple[str, NDArray]:
    """Accept a label vector or a one-entry ``{name: labels}`` dict."""
    if isinstance(groups, dict):
        if len(groups) != 1:
            raise ValidationError(
                f"groups: exactly one grouping factor is supported, got "
                f"{len(groups)} ({list(groups)})"
            )
        (name, labels), = groups.items()
        return str(name), np.asarray(labels)
    return 'group', np.asarray(groups)


def build_grouping(
    labels: NDArray,
    n: int,
    group_name: str = 'group',
    levels: Sequence[Hashable] | None = None,
) -> GroupingSpec:
    """Build the incidence matrix for one grouping factor.

    Args:
        labels: Group label per observation, shape (n,).
        n: Number of observations (length of y).
        group_name: Name of the grouping factor.
        levels: Optional explicit group universe; fixes the column order
            of K. Every level must have at least one member.

    Returns:
        GroupingSpec.

    Raises:
        DimensionError: If labels is not 1-D or its length differs from n.
        ValidationError: If a level has no members or a label is not one
            of ``levels``.
    """
    labels = np.asarray(labels)
    if labels.ndim != 1:
        raise DimensionError(
            f"groups: expected 1D label vector, got shape {labels.shape}"
        )
    if labels.shape[0] != n:
        raise DimensionError(
            f"groups: {labels.shape[0]} labels, expected {n} (matching y)"
        )

    if levels is None:
        level_arr, group_ids = _factorize(labels)
    else:
        level_arr, group_ids = _factorize_with_levels(labels, levels)

    m = len(level_arr)
    K = np.zeros((n, m), dtype=np.float64)
    K[np.arange(n), group_ids] = 1.0
    sizes = K.sum(axis=0).astype(np.int64)

    empty = np.where(sizes == 0)[0]
    if len(empty) > 0:
        raise ValidationError(
            f"groups: levels {[_plain(level_arr[j]) for j in empty]} have no "
            f"observations; every group needs at least one member"
        )

    return GroupingSpec(
        group_name=group_name,
        levels=level_arr,
        group_ids=group_ids,
        K=K,
        KKt=K @ K.T,
        sizes=sizes,
    )


def _factorize(labels: NDArray) -> tuple[NDArray, NDArray]:
    try:
        return np.unique(labels, return_inverse=True)
    except TypeError as e:
        raise ValidationError(
            f"groups: labels are not mutually comparable ({e}); "
            f"pass levels= to fix the group order"
        ) from e


def _factorize_with_levels(
    labels: NDArray,
    levels: Sequence[Hashable],
) -> tuple[NDArray, NDArray]:
    level_list = list(levels)
    index = {}
    for j, level in enumerate(level_list):
        if level in index:
            raise ValidationError(f"levels: duplicate level {level!r}")
        index[level] = j

    group_ids = np.empty(len(labels), dtype=np.int64)
    unknown = []
    for i, label in enumerate(labels.tolist()):
        j = index.get(label)
        if j is None:
            unknown.append(label)
        else:
            group_ids[i] = j
    if unknown:
        raise ValidationError(
            f"groups: labels {sorted(set(map(repr, unknown)))} are not in levels"
        )

    level_arr = np.empty(len(level_list), dtype=object)
    level_arr[:] = level_list
    return level_arr, group_ids


def _plain(value: Any) -> Any:
    """numpy scalar → Python scalar for readable messages and dict keys."""
    return value.item() if isinstance(value, np.generic) else value
