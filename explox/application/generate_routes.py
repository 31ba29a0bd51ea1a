"""Single entrypoint for route generation.

Stages run strictly in sequence, each a function of the query and the
previous stage's output:

    candidate pool -> combos -> synthesis -> familiarity -> materialize -> order

The run always ends with a persisted SearchResult, possibly without routes.
Only persistence failures and cancellation abort it.
"""

from __future__ import annotations

import threading
import time
from typing import Optional, TextIO

from explox.application.context import AppContext
from explox.domain.exceptions import GenerationCancelled
from explox.domain.models import Query, SearchResult
from explox.infrastructure.logging import StructuredLogger, get_logger
from explox.observability.metrics import get_generation_metrics
from explox.planner.candidate_pool import build_candidate_pool
from explox.planner.combos import build_combos, reduce_combos
from explox.planner.familiarity import score_candidates
from explox.planner.materialize import materialize_candidates
from explox.planner.ordering import order_routes
from explox.planner.synthesis import synthesize_candidates
from explox.services.profile_service import load_user_activities
from explox.shared.exceptions import PersistenceError


def _run_pipeline(
    query: Query,
    ctx: AppContext,
    logger: StructuredLogger,
    cancel_event: Optional[threading.Event],
    stage_counts: dict[str, int],
) -> SearchResult:
    settings = ctx.settings
    store = ctx.repository

    logger.stage_start("candidate_pool", target_distance=query.target_distance)
    pool = build_candidate_pool(
        query,
        store,
        limit=settings.part_list_limit,
        radius_filter=settings.radius_filter,
    )
    stage_counts["candidate_pool"] = pool.size
    logger.stage_end("candidate_pool", count_out=pool.size, routes=len(pool.routes), segments=len(pool.segments))

    logger.stage_start("combos")
    combos = build_combos(pool)
    reduced = reduce_combos(query, combos)
    stage_counts["combos"] = len(reduced)
    logger.stage_end("combos", count_in=len(combos), count_out=len(reduced))

    logger.stage_start("synthesis", provider=ctx.routing_provider.name)
    candidates = synthesize_candidates(
        query,
        reduced,
        ctx.routing_provider,
        max_workers=settings.routing_workers,
        cancel_event=cancel_event,
    )
    stage_counts["candidates"] = len(candidates)
    logger.stage_end("synthesis", count_in=len(reduced), count_out=len(candidates))

    finalists = []
    if candidates:
        logger.stage_start("familiarity")
        activities = load_user_activities(store, query.user_id)
        finalists = score_candidates(
            candidates,
            activities,
            store,
            max_workers=settings.routing_workers,
            cancel_event=cancel_event,
        )
        logger.stage_end(
            "familiarity",
            count_in=len(candidates),
            count_out=len(finalists),
            activities=len(activities),
        )
    stage_counts["finalists"] = len(finalists)

    logger.stage_start("materialize")
    routes = materialize_candidates(query, finalists, store, ctx.export_hook, cancel_event=cancel_event)
    reused = sum(1 for route in routes if route.reused)
    stage_counts["routes"] = len(routes)
    stage_counts["routes_reused"] = reused
    logger.stage_end("materialize", count_in=len(finalists), count_out=len(routes), reused=reused)

    logger.stage_start("assemble", preference=query.preference.value)
    ordered = order_routes(routes, query.preference)
    result = store.save_search_result(
        SearchResult(
            user_id=query.user_id,
            distance=query.target_distance,
            query=query.model_dump(mode="json"),
            generated_route_ids=[route.route.id for route in ordered],
            familiarity_scores=[route.familiarity_score for route in ordered],
            reused_route_ids=[route.route.id for route in ordered if route.reused],
            routes=ordered,
        )
    )
    logger.stage_end("assemble", count_in=len(routes), count_out=len(ordered), search_result_id=result.id)
    return result


def generate_routes(
    query: Query,
    *,
    ctx: AppContext,
    cancel_event: Optional[threading.Event] = None,
    trace_id: Optional[str] = None,
    log_output: Optional[TextIO] = None,
) -> SearchResult:
    logger = get_logger(trace_id=trace_id, output=log_output)
    stage_counts: dict[str, int] = {}
    status = "ok"
    started = time.perf_counter()
    try:
        result = _run_pipeline(query, ctx, logger, cancel_event, stage_counts)
        if not result.routes:
            status = "empty"
        return result
    except GenerationCancelled as exc:
        status = "cancelled"
        logger.warning("pipeline", str(exc))
        raise
    except PersistenceError as exc:
        status = "persistence_error"
        logger.error("pipeline", str(exc))
        raise
    finally:
        latency_ms = (time.perf_counter() - started) * 1000
        get_generation_metrics().record_run(
            status=status,
            preference=query.preference.value,
            latency_ms=latency_ms,
            trace_id=logger.trace_id,
            stage_counts=stage_counts,
            routes_created=stage_counts.get("routes", 0) - stage_counts.get("routes_reused", 0),
            routes_reused=stage_counts.get("routes_reused", 0),
        )
        logger.summary(status=status, latency_ms=round(latency_ms, 1), **stage_counts)


__all__ = ["generate_routes"]
