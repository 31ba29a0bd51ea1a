"""Symmetric trim: shrink a sorted collection toward a target value."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def symmetric_trim(
    items: Sequence[T],
    *,
    target: float,
    cap: int,
    metric: Callable[[T], float],
) -> list[T]:
    """Keep at most `cap` items whose metric lies closest to `target`.

    Items are sorted descending by `metric`. While too many remain, the
    overshoot of the first item is compared with the undershoot of the last
    and whichever end lies farther from the target is dropped; ties drop the
    last. Removals only ever happen at the ends, so the survivors form a
    contiguous run of the sorted order.
    """
    ordered = sorted(items, key=metric, reverse=True)
    lo, hi = 0, len(ordered)
    while hi - lo > max(0, cap):
        overshoot = metric(ordered[lo]) - target
        undershoot = target - metric(ordered[hi - 1])
        if overshoot > undershoot:
            lo += 1
        else:
            hi -= 1
    return ordered[lo:hi]


__all__ = ["symmetric_trim"]
