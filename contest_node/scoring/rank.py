"""Distance-from-target rank of a finishing position.

The target scores 0. Positions ahead of the target count back towards 1st
(P9 → 1, P1 → target - 1), positions behind it rank after every position
ahead of it (P11 → 10, P12 → 11). This yields the ordering
P10, P9, ..., P1, P11, P12, ... with the target as unique minimum.
"""
from __future__ import annotations

TARGET_POSITION = 10


def rank(position: int, target: int = TARGET_POSITION) -> int:
    if position == target:
        return 0
    if position < target:
        return target - position
    return position - 1


def resolve_rank(position: int | None, target: int = TARGET_POSITION) -> int | None:
    """Rank of a finish that may be unknown. None means unranked."""
    if position is None or position < 1:
        return None
    return rank(position, target)


def rank_sort_key(value: int | None) -> tuple[bool, int]:
    # Unranked entries sort after every ranked one.
    return (value is None, value if value is not None else 0)
