"""Turn finalist candidates into persisted, deduplicated generated routes."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

from explox.domain.exceptions import GenerationCancelled
from explox.domain.models import Candidate, GeneratedRoute, GeoPoint, Query, RoutePart
from explox.planner.identity import route_hash
from explox.services.export_hook import ExportHook, notify_export

_LOGGER = logging.getLogger("explox.materialize")


class RouteStore(Protocol):
    def upsert_generated_part(self, part: RoutePart) -> tuple[RoutePart, bool]: ...


def route_title(distance: float) -> str:
    return f"New Route ({distance / 1000.0:.1f} km)"


def route_body(candidate: Candidate) -> str:
    sources = ", ".join(part.title for part in candidate.parts if part.title)
    text = f"Generated loop of {candidate.distance / 1000.0:.1f} km"
    return f"{text} through {sources}." if sources else f"{text}."


def _draft(query: Query, candidate: Candidate) -> RoutePart:
    title = route_title(candidate.distance)
    end = query.end or query.start
    return RoutePart(
        title=title,
        body=route_body(candidate),
        distance=candidate.distance,
        is_route=True,
        is_generated=True,
        user_id=query.user_id,
        external_id=str(route_hash(candidate.distance, query.start, end, title)),
        source_part_ids=[part.id for part in candidate.parts if part.id],
        geo=[GeoPoint(lng=lng, lat=lat) for lng, lat in candidate.waypoints],
    )


def materialize_candidate(
    query: Query,
    candidate: Candidate,
    store: RouteStore,
    export_hook: Optional[ExportHook] = None,
) -> GeneratedRoute:
    score = candidate.familiarity_score or 0.0
    route, created = store.upsert_generated_part(_draft(query, candidate))
    if not created:
        _LOGGER.info("reusing generated route %s (%s)", route.id, route.external_id)
        return GeneratedRoute(route=route, familiarity_score=score, reused=True)

    notify_export(export_hook, route)
    return GeneratedRoute(route=route, familiarity_score=score, reused=False)


def materialize_candidates(
    query: Query,
    candidates: list[Candidate],
    store: RouteStore,
    export_hook: Optional[ExportHook] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> list[GeneratedRoute]:
    """Materialize finalists in order; each commit stands on its own."""
    routes: list[GeneratedRoute] = []
    for candidate in candidates:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled("materialization cancelled")
        routes.append(materialize_candidate(query, candidate, store, export_hook))
    return routes


__all__ = ["materialize_candidate", "materialize_candidates", "route_body", "route_title"]
