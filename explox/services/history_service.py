"""Read-only access to past searches."""

from __future__ import annotations

from explox.application.context import AppContext
from explox.domain.models import GeneratedRoute, SearchResult
from explox.persistence.models import PartCriteria


def get_search_result(*, ctx: AppContext, result_id: str) -> SearchResult | None:
    """Load a SearchResult with its generated routes re-attached in stored order."""
    repo = ctx.repository
    result = repo.load_search_result(result_id)
    if result is None:
        return None
    reused = set(result.reused_route_ids)
    routes: list[GeneratedRoute] = []
    for route_id, score in zip(result.generated_route_ids, result.familiarity_scores):
        part = repo.load_part(PartCriteria(id=route_id))
        if part is None:
            continue
        routes.append(GeneratedRoute(route=part, familiarity_score=score, reused=route_id in reused))
    return result.model_copy(update={"routes": routes})


__all__ = ["get_search_result"]
