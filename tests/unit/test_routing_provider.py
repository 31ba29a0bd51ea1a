"""Routing provider fallback and diagnostics tests."""

from __future__ import annotations

from explox.config.settings import GenerationSettings, load_settings
from explox.infrastructure.cache import TTLCache
from explox.observability.metrics import get_generation_metrics
from explox.planner.routing_provider import ToolRoutingProvider, build_routing_provider
from explox.tools.interfaces import ExternalServiceError, RoutedPath

_WAYPOINTS = [(6.96, 49.26), (6.97, 49.27), (6.96, 49.26)]


class _FailTool:
    name = "osrm"

    def route(self, params):
        raise ExternalServiceError("osrm", "backend down")


class _OkTool:
    name = "osrm"

    def __init__(self):
        self.calls = 0

    def route(self, params):
        self.calls += 1
        return RoutedPath(distance=4700.0, waypoints=list(params.waypoints))


class _FixedFallback:
    name = "fixture"

    def route(self, params):
        return RoutedPath(distance=1234.0, waypoints=list(params.waypoints))


def test_failure_without_fallback_is_an_empty_path():
    provider = ToolRoutingProvider(_FailTool())
    path = provider.find_route(_WAYPOINTS)
    diagnostics = provider.get_diagnostics()

    assert path.distance == 0.0
    assert diagnostics["failure_count"] == 1
    assert diagnostics["fallback_count"] == 0
    assert diagnostics["events"][0]["error_type"] == "ExternalServiceError"
    assert get_generation_metrics().snapshot()["routing_calls"]["osrm"]["error"] == 1


def test_failure_with_fallback_is_transparent():
    provider = ToolRoutingProvider(_FailTool(), fallback=_FixedFallback())
    path = provider.find_route(_WAYPOINTS)
    diagnostics = provider.get_diagnostics()

    assert path.distance == 1234.0
    assert diagnostics["fallback_count"] == 1
    assert diagnostics["events"][0]["routing_source"] == "fallback_fixture"


def test_successful_paths_are_cached():
    tool = _OkTool()
    cache: TTLCache[RoutedPath] = TTLCache(default_ttl=60, max_size=10)
    provider = ToolRoutingProvider(tool, cache=cache)

    assert provider.find_route(_WAYPOINTS).distance == 4700.0
    assert provider.find_route(_WAYPOINTS).distance == 4700.0
    assert tool.calls == 1
    assert cache.stats["hits"] == 1


def test_oversized_request_is_a_soft_failure():
    provider = ToolRoutingProvider(_OkTool())
    assert provider.find_route([(6.96, 49.26)] * 30).distance == 0.0


def test_factory_defaults_to_fixture_without_osrm_url():
    provider = build_routing_provider(load_settings())
    assert provider.name == "fixture"
    assert provider.find_route(_WAYPOINTS).distance > 0


def test_factory_selects_osrm_when_configured(monkeypatch):
    monkeypatch.setenv("OSRM_BASE_URL", "http://osrm.test")
    settings = load_settings()
    assert settings.route_provider == "real"
    assert build_routing_provider(settings).name == "osrm"
    assert build_routing_provider(GenerationSettings(route_provider="auto")).name == "osrm"
