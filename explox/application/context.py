"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from explox.config.settings import GenerationSettings, load_settings
from explox.infrastructure.cache import route_cache
from explox.persistence.repository import RouteRepository, get_route_repository
from explox.planner.routing_provider import RoutingProvider, build_routing_provider
from explox.services.export_hook import ExportHook, get_export_hook


@dataclass
class AppContext:
    settings: GenerationSettings
    repository: RouteRepository
    routing_provider: RoutingProvider
    export_hook: Optional[ExportHook] = None
    cache: Any = None


def make_app_context(
    settings: Optional[GenerationSettings] = None,
    repository: Optional[RouteRepository] = None,
) -> AppContext:
    resolved = settings or load_settings()
    return AppContext(
        settings=resolved,
        repository=repository or get_route_repository(),
        routing_provider=build_routing_provider(resolved),
        export_hook=get_export_hook(),
        cache=route_cache,
    )


__all__ = ["AppContext", "make_app_context"]
