"""Route synthesis: turn combos into routed candidates."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from explox.domain.constants import MAX_CANDIDATES
from explox.domain.exceptions import GenerationCancelled
from explox.domain.models import Candidate, Combo, Query
from explox.planner.routing_provider import RoutingProvider
from explox.planner.trim import symmetric_trim
from explox.planner.waypoints import combo_waypoints, downsample
from explox.shared.exceptions import ExternalServiceError

_LOGGER = logging.getLogger("explox.synthesis")


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise GenerationCancelled("route synthesis cancelled")


def synthesize_candidate(
    query: Query,
    combo: Combo,
    provider: RoutingProvider,
    cancel_event: Optional[threading.Event] = None,
) -> Candidate:
    _check_cancelled(cancel_event)
    waypoints = downsample(combo_waypoints(query, combo))
    try:
        path = provider.find_route(waypoints)
    except ExternalServiceError as exc:
        _LOGGER.warning("routing failed for %d waypoints: %s", len(waypoints), exc)
        return Candidate(distance=0.0, parts=combo.parts)
    return Candidate(distance=path.distance, waypoints=path.waypoints, parts=combo.parts)


def synthesize_candidates(
    query: Query,
    combos: list[Combo],
    provider: RoutingProvider,
    *,
    max_workers: int = 4,
    cap: int = MAX_CANDIDATES,
    cancel_event: Optional[threading.Event] = None,
) -> list[Candidate]:
    """Route every combo, drop failures, then trim to `cap` by routed distance."""
    if not combos:
        return []

    _check_cancelled(cancel_event)
    workers = max(1, min(max_workers, len(combos)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="explox-routing") as pool:
        futures: list[Future[Candidate]] = [
            pool.submit(synthesize_candidate, query, combo, provider, cancel_event)
            for combo in combos
        ]
        candidates: list[Candidate] = []
        try:
            # collected in submission order, never completion order
            for index, future in enumerate(futures):
                candidate = future.result()
                if candidate.distance <= 0:
                    _LOGGER.info("combo %d produced no route; skipped", index)
                    continue
                candidates.append(candidate)
        except GenerationCancelled:
            for future in futures:
                future.cancel()
            raise

    return symmetric_trim(
        candidates,
        target=query.target_distance,
        cap=cap,
        metric=lambda candidate: candidate.distance,
    )


__all__ = ["synthesize_candidate", "synthesize_candidates"]
