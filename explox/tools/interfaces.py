"""Routing tool protocol and I/O schemas."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from explox.domain.constants import MAX_ROUTING_WAYPOINTS
from explox.domain.models import LngLat
from explox.shared.exceptions import ExternalServiceError


class RouteRequest(BaseModel):
    waypoints: list[LngLat] = Field(min_length=2, max_length=MAX_ROUTING_WAYPOINTS)
    profile: Optional[str] = None


class RoutedPath(BaseModel):
    distance: float = 0.0
    waypoints: list[LngLat] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "RoutedPath":
        return cls(distance=0.0, waypoints=[])


@runtime_checkable
class RouteTool(Protocol):
    name: str

    def route(self, params: RouteRequest) -> RoutedPath: ...


__all__ = ["ExternalServiceError", "RouteRequest", "RouteTool", "RoutedPath"]
