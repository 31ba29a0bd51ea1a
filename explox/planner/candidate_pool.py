"""Candidate pool: which stored routes and segments could fit the query."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from explox.domain.constants import LOWER_BOUND_GRACE, MIN_PART_SHARE
from explox.domain.models import Query, RoutePart
from explox.persistence.models import PartCriteria
from explox.planner.distance import haversine

_LOGGER = logging.getLogger("explox.candidate_pool")


class PartSource(Protocol):
    def list_parts(self, criteria: PartCriteria, *, detailed: bool = True, limit: int = 30) -> list[RoutePart]: ...


@dataclass
class CandidatePool:
    routes: list[RoutePart] = field(default_factory=list)
    segments: list[RoutePart] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.routes) + len(self.segments)


def distance_bounds(target_distance: float) -> tuple[float, float]:
    """Exclusive (min, max) part distance for a target."""
    return target_distance * MIN_PART_SHARE, target_distance


def filter_by_distance(parts: list[RoutePart], target_distance: float) -> list[RoutePart]:
    low, high = distance_bounds(target_distance)
    return [part for part in parts if low < part.distance < high]


def lower_bound_distance(query: Query, part: RoutePart) -> float:
    """Part length plus straight lines from the start to both of its ends."""
    start = query.start
    first, last = part.first_point, part.last_point
    return (
        part.distance
        + haversine(start.lat, start.lng, first.lat, first.lng)
        + haversine(start.lat, start.lng, last.lat, last.lng)
    )


def filter_by_lower_bound(query: Query, parts: list[RoutePart]) -> list[RoutePart]:
    target = query.target_distance
    kept: list[RoutePart] = []
    for part in parts:
        if len(part.geo) < 2:
            continue
        bound = lower_bound_distance(query, part)
        if bound - LOWER_BOUND_GRACE * target > target:
            _LOGGER.debug("part %s too long with connections: %.1f m", part.id, bound)
            continue
        kept.append(part.model_copy(update={"lower_bound_distance": bound}))
    return kept


def filter_by_radius(query: Query, parts: list[RoutePart]) -> list[RoutePart]:
    """Keep parts that never leave the search radius around the start."""
    radius = query.radius or query.target_distance / 2.0
    start = query.start
    return [
        part
        for part in parts
        if all(haversine(start.lat, start.lng, p.lat, p.lng) <= radius for p in part.geo)
    ]


def build_candidate_pool(
    query: Query,
    store: PartSource,
    *,
    limit: int = 500,
    radius_filter: bool = False,
) -> CandidatePool:
    low, high = distance_bounds(query.target_distance)
    pools: dict[bool, list[RoutePart]] = {}
    for is_route in (True, False):
        criteria = PartCriteria(
            min_distance=low,
            max_distance=high,
            is_route=is_route,
            is_generated=False,
        )
        parts = filter_by_distance(store.list_parts(criteria, detailed=True, limit=limit), query.target_distance)
        if radius_filter:
            parts = filter_by_radius(query, parts)
        pools[is_route] = filter_by_lower_bound(query, parts)

    pool = CandidatePool(routes=pools[True], segments=pools[False])
    _LOGGER.info(
        "candidate pool for %.0f m: %d routes, %d segments",
        query.target_distance,
        len(pool.routes),
        len(pool.segments),
    )
    return pool


__all__ = [
    "CandidatePool",
    "build_candidate_pool",
    "distance_bounds",
    "filter_by_distance",
    "filter_by_lower_bound",
    "filter_by_radius",
    "lower_bound_distance",
]
