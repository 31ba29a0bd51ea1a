"""API request/response models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from explox.domain.models import GeneratedRoute, SearchResult


class HealthResponse(BaseModel):
    status: str
    version: str = ""


class GeneratedRouteResponse(BaseModel):
    id: str
    external_id: Optional[str] = None
    title: str
    body: str = ""
    distance: float = Field(description="routed distance in metres")
    familiarity_score: float = Field(ge=0.0, le=1.0)
    reused: bool = False
    coordinates: list[tuple[float, float]] = Field(default_factory=list, description="(lng, lat) pairs")

    @classmethod
    def from_generated(cls, generated: GeneratedRoute) -> "GeneratedRouteResponse":
        route = generated.route
        return cls(
            id=route.id,
            external_id=route.external_id,
            title=route.title,
            body=route.body,
            distance=route.distance,
            familiarity_score=generated.familiarity_score,
            reused=generated.reused,
            coordinates=[point.as_lnglat() for point in route.geo],
        )


class SearchResultResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    distance: float
    query: dict[str, Any] = Field(default_factory=dict)
    generated_route_ids: list[str] = Field(default_factory=list)
    familiarity_scores: list[float] = Field(default_factory=list)
    accepted_route_ids: list[str] = Field(default_factory=list)
    reused_route_ids: list[str] = Field(default_factory=list)
    routes: list[GeneratedRouteResponse] = Field(default_factory=list)
    created_at: str = ""

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultResponse":
        return cls(
            id=result.id,
            user_id=result.user_id,
            distance=result.distance,
            query=result.query,
            generated_route_ids=result.generated_route_ids,
            familiarity_scores=result.familiarity_scores,
            accepted_route_ids=result.accepted_route_ids,
            reused_route_ids=result.reused_route_ids,
            routes=[GeneratedRouteResponse.from_generated(route) for route in result.routes],
            created_at=result.created_at,
        )


class ErrorResponse(BaseModel):
    detail: str


__all__ = ["ErrorResponse", "GeneratedRouteResponse", "HealthResponse", "SearchResultResponse"]
