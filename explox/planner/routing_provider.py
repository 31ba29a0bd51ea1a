"""Routing provider abstraction with transparent fallback diagnostics."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Optional, Protocol, Sequence

from explox.adapters.route.fixture import FixtureRouteTool
from explox.adapters.route.osrm import OsrmRouteTool
from explox.config.settings import GenerationSettings
from explox.domain.models import LngLat
from explox.infrastructure.cache import TTLCache, route_cache, waypoint_cache_key
from explox.observability.metrics import get_generation_metrics
from explox.tools.interfaces import ExternalServiceError, RouteRequest, RouteTool, RoutedPath

_FALLBACK_SOURCE = "fallback_fixture"
_MAX_DIAGNOSTIC_EVENTS = 50
_LOGGER = logging.getLogger("explox.routing")


class RoutingProvider(Protocol):
    name: str

    def find_route(self, waypoints: Sequence[LngLat]) -> RoutedPath:
        """Route through the waypoints; an empty path means the call failed."""

    def get_diagnostics(self) -> dict[str, Any]:
        """Return routing diagnostics for observability."""


class ToolRoutingProvider:
    """Wraps a RouteTool with caching, metrics and soft-failure handling.

    Failures never propagate: they are logged, counted and turned into an
    empty path (distance 0). With a fallback tool configured, the fallback
    answers instead and the event is recorded as `fallback_fixture`.
    """

    def __init__(
        self,
        tool: RouteTool,
        *,
        profile: str = "bike",
        fallback: Optional[RouteTool] = None,
        cache: Optional[TTLCache[RoutedPath]] = None,
    ) -> None:
        self._tool = tool
        self._profile = profile
        self._fallback = fallback
        self._cache = cache
        self._failure_count = 0
        self._fallback_count = 0
        self._diagnostic_events: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self.name = tool.name

    def _record_failure(self, waypoints: int, error: Exception, *, fell_back: bool) -> None:
        event = {
            "routing_source": _FALLBACK_SOURCE if fell_back else self.name,
            "waypoints": waypoints,
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        with self._lock:
            self._failure_count += 1
            if fell_back:
                self._fallback_count += 1
            self._diagnostic_events.append(event)
            if len(self._diagnostic_events) > _MAX_DIAGNOSTIC_EVENTS:
                self._diagnostic_events = self._diagnostic_events[-_MAX_DIAGNOSTIC_EVENTS:]
        _LOGGER.warning(
            "routing call failed via %s (%d waypoints, fallback=%s): %s",
            self.name,
            waypoints,
            fell_back,
            error,
        )

    def find_route(self, waypoints: Sequence[LngLat]) -> RoutedPath:
        key = waypoint_cache_key(self._profile, waypoints)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        metrics = get_generation_metrics()
        started = time.perf_counter()
        try:
            request = RouteRequest(waypoints=list(waypoints), profile=self._profile)
            path = self._tool.route(request)
        except (ExternalServiceError, ValueError) as exc:
            metrics.record_routing_call(
                provider=self.name,
                latency_ms=(time.perf_counter() - started) * 1000,
                ok=False,
                error_type=type(exc).__name__,
            )
            if self._fallback is None or len(waypoints) < 2:
                self._record_failure(len(waypoints), exc, fell_back=False)
                return RoutedPath.empty()
            self._record_failure(len(waypoints), exc, fell_back=True)
            return self._fallback.route(RouteRequest(waypoints=list(waypoints), profile=self._profile))

        metrics.record_routing_call(
            provider=self.name,
            latency_ms=(time.perf_counter() - started) * 1000,
            ok=True,
        )
        if self._cache is not None and path.distance > 0:
            self._cache.set(key, path)
        return path

    def get_diagnostics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "routing_source": self.name,
                "failure_count": self._failure_count,
                "fallback_count": self._fallback_count,
                "events": list(self._diagnostic_events),
            }


def build_routing_provider(settings: GenerationSettings) -> RoutingProvider:
    mode = settings.route_provider
    if mode not in {"real", "auto"}:
        return ToolRoutingProvider(FixtureRouteTool(), profile=settings.osrm_profile)

    osrm = OsrmRouteTool(
        settings.osrm_base_url,
        profile=settings.osrm_profile,
        timeout=settings.osrm_timeout_seconds,
        max_retries=settings.osrm_max_retries,
    )
    fallback = FixtureRouteTool() if mode == "auto" else None
    return ToolRoutingProvider(
        osrm,
        profile=settings.osrm_profile,
        fallback=fallback,
        cache=route_cache,
    )


__all__ = ["RoutingProvider", "ToolRoutingProvider", "build_routing_provider"]
