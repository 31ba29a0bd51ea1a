"""Waypoint assembly and downsampling for routing requests."""

from __future__ import annotations

import math
from typing import TypeVar

from explox.domain.constants import DOWNSAMPLE_DIVISOR, MAX_ROUTING_WAYPOINTS
from explox.domain.models import Combo, LngLat, Query

T = TypeVar("T")


def combo_waypoints(query: Query, combo: Combo) -> list[LngLat]:
    """Closed loop: start, every point of every part, start again."""
    start = query.start.as_lnglat()
    waypoints: list[LngLat] = [start]
    for part in combo.parts:
        waypoints.extend(point.as_lnglat() for point in part.geo)
    waypoints.append(start)
    return waypoints


def downsample(
    waypoints: list[T],
    *,
    max_count: int = MAX_ROUTING_WAYPOINTS,
    divisor: int = DOWNSAMPLE_DIVISOR,
) -> list[T]:
    """Keep index 0, every stride-th index and the final index."""
    count = len(waypoints)
    if count <= max_count:
        return list(waypoints)
    stride = math.ceil(count / divisor)
    kept = [waypoints[i] for i in range(0, count, stride)]
    if (count - 1) % stride != 0:
        kept.append(waypoints[-1])
    return kept


__all__ = ["combo_waypoints", "downsample"]
