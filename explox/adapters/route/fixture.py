"""Offline route adapter based on haversine distance."""

from __future__ import annotations

from explox.planner.distance import path_length
from explox.tools.interfaces import RouteRequest, RoutedPath

# Road networks are longer than straight lines between waypoints.
DETOUR_FACTOR = 1.2


class FixtureRouteTool:
    name = "fixture"

    def __init__(self, detour_factor: float = DETOUR_FACTOR) -> None:
        self._detour_factor = detour_factor

    def route(self, params: RouteRequest) -> RoutedPath:
        distance = path_length(params.waypoints) * self._detour_factor
        return RoutedPath(distance=round(distance, 1), waypoints=list(params.waypoints))
