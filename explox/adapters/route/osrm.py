"""OSRM route adapter.

Calls the OSRM `route` service with steps enabled and turns the maneuver
points of every step of every leg of the first route into a waypoint list.
API reference: http://project-osrm.org/docs/v5.24.0/api/#route-service
"""

from __future__ import annotations

from typing import Any, Optional

from explox.infrastructure.http_client import HttpClient
from explox.tools.interfaces import ExternalServiceError, RouteRequest, RoutedPath

_SERVICE = "route"
_VERSION = "v1"


def format_coordinates(waypoints: list[tuple[float, float]]) -> str:
    """OSRM coordinate format: lng,lat;lng,lat (longitude first)."""
    return ";".join(f"{lng},{lat}" for lng, lat in waypoints)


def _number(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ExternalServiceError("osrm", f"not a number: {value!r}") from exc


def _coordinate(location: list[Any]) -> tuple[float, float]:
    if location[0] is None or location[1] is None:
        raise ExternalServiceError("osrm", f"incomplete maneuver location: {location!r}")
    return _number(location[0]), _number(location[1])


def parse_route_response(data: Any) -> RoutedPath:
    if not isinstance(data, dict):
        raise ExternalServiceError("osrm", "response did not contain a JSON object")
    if data.get("code") != "Ok":
        raise ExternalServiceError("osrm", f"response code was not Ok: {data.get('code')}")

    routes = data.get("routes") or []
    if not isinstance(routes, list) or not routes:
        raise ExternalServiceError("osrm", "response did not contain any routes")
    route = routes[0]
    if not isinstance(route, dict):
        raise ExternalServiceError("osrm", "first route is not an object")
    legs = route.get("legs") or []
    if not isinstance(legs, list) or not legs:
        raise ExternalServiceError("osrm", "response did not contain any route legs")

    waypoints: list[tuple[float, float]] = []
    for leg in legs:
        if not isinstance(leg, dict):
            raise ExternalServiceError("osrm", "route leg is not an object")
        steps = leg.get("steps") or []
        if not isinstance(steps, list):
            raise ExternalServiceError("osrm", "leg steps are not a list")
        for step in steps:
            if not isinstance(step, dict):
                raise ExternalServiceError("osrm", "leg step is not an object")
            maneuver = step.get("maneuver")
            if not maneuver:
                continue
            if not isinstance(maneuver, dict):
                raise ExternalServiceError("osrm", "step maneuver is not an object")
            location = maneuver.get("location") or []
            if not isinstance(location, list):
                raise ExternalServiceError("osrm", "maneuver location is not a list")
            if len(location) >= 2:
                waypoints.append(_coordinate(location))

    return RoutedPath(distance=_number(route.get("distance")), waypoints=waypoints)


class OsrmRouteTool:
    name = "osrm"

    def __init__(
        self,
        base_url: str,
        *,
        profile: str = "bike",
        timeout: float = 10.0,
        max_retries: int = 1,
        http: Optional[HttpClient] = None,
    ) -> None:
        if not base_url:
            raise ValueError("OSRM base URL is not set (OSRM_BASE_URL)")
        self._base_url = base_url.rstrip("/")
        self._profile = profile
        self._http = http or HttpClient(timeout=timeout, max_retries=max_retries, service_name="osrm")

    def build_url(self, params: RouteRequest) -> str:
        profile = params.profile or self._profile
        coordinates = format_coordinates(params.waypoints)
        return f"{self._base_url}/{_SERVICE}/{_VERSION}/{profile}/{coordinates}"

    def route(self, params: RouteRequest) -> RoutedPath:
        data = self._http.get(
            self.build_url(params),
            params={"overview": "false", "steps": "true"},
        )
        return parse_route_response(data)
