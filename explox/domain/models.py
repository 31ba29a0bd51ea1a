"""Pydantic domain models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from explox.domain.enums import Difficulty, Preference, Sport

# Internal waypoint type: (lng, lat), the order OSRM speaks.
LngLat = tuple[float, float]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    def as_lnglat(self) -> LngLat:
        return (self.lng, self.lat)


class Query(BaseModel):
    """Per-request search parameters, read-only once built."""

    model_config = ConfigDict(frozen=True)

    target_distance: float = Field(gt=0)
    preference: Preference = Preference.DISCOVER
    start: Coordinate
    end: Optional[Coordinate] = None
    radius: Optional[float] = Field(default=None, gt=0)
    user_id: Optional[str] = None
    duration: Optional[float] = None
    difficulty: Difficulty = Difficulty.ADVANCED
    sport: Sport = Sport.CYCLING

    @model_validator(mode="before")
    @classmethod
    def _default_round_trip(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("end") is None:
            data["end"] = data.get("start")
        if data.get("radius") is None and data.get("target_distance") is not None:
            data["radius"] = float(data["target_distance"]) / 2.0
        return data


class GeoPoint(BaseModel):
    id: str = ""
    lng: float
    lat: float
    name: str = ""
    route_ids: list[str] = Field(default_factory=list)
    activity_ids: list[str] = Field(default_factory=list)

    def as_lnglat(self) -> LngLat:
        return (self.lng, self.lat)


class RoutePart(BaseModel):
    """A stored route or segment; `is_route` tells them apart."""

    id: str = ""
    title: str = ""
    body: str = ""
    location: str = ""
    distance: float = 0.0
    is_route: bool = True
    is_generated: bool = False
    user_id: Optional[str] = None
    external_id: Optional[str] = None
    geo: list[GeoPoint] = Field(default_factory=list)
    source_part_ids: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=_utc_now)
    lower_bound_distance: Optional[float] = Field(default=None, exclude=True)

    @property
    def first_point(self) -> GeoPoint:
        return self.geo[0]

    @property
    def last_point(self) -> GeoPoint:
        return self.geo[-1]


class Activity(BaseModel):
    id: str = ""
    user_id: str
    geo: list[GeoPoint] = Field(default_factory=list)
    created_at: str = Field(default_factory=_utc_now)


class Combo(BaseModel):
    parts: list[RoutePart] = Field(default_factory=list)
    lower_bound_distance: float = 0.0


class Candidate(BaseModel):
    distance: float = 0.0
    waypoints: list[LngLat] = Field(default_factory=list)
    parts: list[RoutePart] = Field(default_factory=list)
    familiarity_score: Optional[float] = None


class GeneratedRoute(BaseModel):
    route: RoutePart
    familiarity_score: float = Field(ge=0.0, le=1.0)
    reused: bool = False

    @property
    def distance(self) -> float:
        return self.route.distance


class SearchResult(BaseModel):
    id: str = ""
    user_id: Optional[str] = None
    distance: float
    query: dict[str, Any] = Field(default_factory=dict)
    generated_route_ids: list[str] = Field(default_factory=list)
    familiarity_scores: list[float] = Field(default_factory=list)
    accepted_route_ids: list[str] = Field(default_factory=list)
    reused_route_ids: list[str] = Field(default_factory=list)
    routes: list[GeneratedRoute] = Field(default_factory=list, exclude=True)
    created_at: str = Field(default_factory=_utc_now)


__all__ = [
    "Activity",
    "Candidate",
    "Combo",
    "Coordinate",
    "GeneratedRoute",
    "GeoPoint",
    "LngLat",
    "Query",
    "RoutePart",
    "SearchResult",
]
