"""Great-circle distance helpers."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6371000.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in metres."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def path_length(points: list[tuple[float, float]]) -> float:
    """Sum of haversine legs over (lng, lat) points."""
    total = 0.0
    for (lng1, lat1), (lng2, lat2) in zip(points, points[1:]):
        total += haversine(lat1, lng1, lat2, lng2)
    return total
