"""Familiarity scoring against the user's explored geography."""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol

from explox.domain.constants import (
    FAMILIARITY_LOOKUP_LIMIT,
    FAMILIARITY_RADIUS_M,
    FAMILIARITY_SAMPLES,
    MAX_FINALISTS,
)
from explox.domain.exceptions import GenerationCancelled
from explox.domain.models import Activity, Candidate, GeoPoint, LngLat
from explox.shared.exceptions import PersistenceError

_LOGGER = logging.getLogger("explox.familiarity")


class GeoIndex(Protocol):
    def find_within_radius(self, lat: float, lng: float, distance_m: float, limit: int = 30) -> list[GeoPoint]: ...


def explored_point_ids(activities: list[Activity]) -> set[str]:
    return {point.id for activity in activities for point in activity.geo if point.id}


def sample_waypoints(waypoints: list[LngLat], samples: int = FAMILIARITY_SAMPLES) -> tuple[list[LngLat], int]:
    """Every stride-th waypoint, plus the sample count the score divides by."""
    count = len(waypoints)
    sample_count = min(samples, count)
    if sample_count == 0:
        return [], 0
    stride = math.ceil(count / sample_count)
    return waypoints[::stride], sample_count


def _is_familiar(
    index: GeoIndex,
    waypoint: LngLat,
    explored: set[str],
    radius_m: float,
) -> bool:
    lng, lat = waypoint
    try:
        nearby = index.find_within_radius(lat, lng, radius_m, limit=FAMILIARITY_LOOKUP_LIMIT)
    except PersistenceError as exc:
        _LOGGER.warning("radius lookup failed at (%.5f, %.5f): %s", lat, lng, exc)
        return False
    return any(point.id in explored for point in nearby)


def score_candidate(
    candidate: Candidate,
    explored: set[str],
    index: GeoIndex,
    *,
    radius_m: float = FAMILIARITY_RADIUS_M,
    cancel_event: Optional[threading.Event] = None,
) -> float:
    visited, sample_count = sample_waypoints(candidate.waypoints)
    if sample_count == 0 or not explored:
        return 0.0
    matches = 0
    for waypoint in visited:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled("familiarity scoring cancelled")
        if _is_familiar(index, waypoint, explored, radius_m):
            matches += 1
    return min(1.0, matches / sample_count)


def score_candidates(
    candidates: list[Candidate],
    activities: list[Activity],
    index: GeoIndex,
    *,
    max_workers: int = 4,
    keep: int = MAX_FINALISTS,
    cancel_event: Optional[threading.Event] = None,
) -> list[Candidate]:
    """Attach a familiarity score to each candidate and keep the first `keep`.

    The cut follows the incoming routed-distance order; scores do not reorder.
    """
    if not candidates:
        return []

    explored = explored_point_ids(activities)
    workers = max(1, min(max_workers, len(candidates)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="explox-familiarity") as pool:
        futures: list[Future[float]] = [
            pool.submit(score_candidate, candidate, explored, index, cancel_event=cancel_event)
            for candidate in candidates
        ]
        try:
            scores = [future.result() for future in futures]
        except GenerationCancelled:
            for future in futures:
                future.cancel()
            raise

    scored = [
        candidate.model_copy(update={"familiarity_score": score})
        for candidate, score in zip(candidates, scores)
    ]
    return scored[:keep]


__all__ = [
    "explored_point_ids",
    "sample_waypoints",
    "score_candidate",
    "score_candidates",
]
