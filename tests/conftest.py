"""pytest fixtures: environment isolation and a throwaway route store."""

from __future__ import annotations

from typing import Any, Callable, Sequence

import pytest

from explox.domain.models import GeoPoint, LngLat, RoutePart
from explox.infrastructure.cache import route_cache
from explox.observability.metrics import get_generation_metrics
from explox.persistence.sqlite_repository import SQLiteRouteRepository
from explox.tools.interfaces import RoutedPath

_ENV_VARS = (
    "OSRM_BASE_URL",
    "OSRM_PROFILE",
    "OSRM_TIMEOUT_SECONDS",
    "OSRM_MAX_RETRIES",
    "ROUTING_PROVIDER",
    "EXPLOX_ROUTING_WORKERS",
    "EXPLOX_PART_LIST_LIMIT",
    "EXPLOX_RADIUS_FILTER",
    "EXPLOX_DB_PATH",
    "EXPLOX_EXPORT_DIR",
    "GENERATION_TIMEOUT_SECONDS",
    "RATE_LIMIT_MAX",
    "RATE_LIMIT_WINDOW",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No real OSRM calls and no shared database between tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EXPLOX_DB_PATH", str(tmp_path / "explox.sqlite3"))
    get_generation_metrics().reset()
    route_cache.clear()
    yield
    route_cache.clear()


@pytest.fixture
def store(tmp_path) -> SQLiteRouteRepository:
    return SQLiteRouteRepository(tmp_path / "routes.sqlite3")


@pytest.fixture
def seed_part(store):
    """Persist a part from (lat, lng) points, the way an importer would."""

    def _seed(
        points: Sequence[tuple[float, float]],
        distance: float,
        *,
        is_route: bool = True,
        is_generated: bool = False,
        title: str = "",
        external_id: str | None = None,
    ) -> RoutePart:
        geo = [store.save_geo_point(GeoPoint(lat=lat, lng=lng)) for lat, lng in points]
        part = store.save_part(
            RoutePart(
                title=title,
                distance=distance,
                is_route=is_route,
                is_generated=is_generated,
                external_id=external_id,
                geo=geo,
            )
        )
        for point in geo:
            store.save_geo_point(point.model_copy(update={"route_ids": [part.id]}))
        return part

    return _seed


class FakeRoutingProvider:
    """Returns a fixed distance and echoes the waypoints back."""

    name = "fake"

    def __init__(self, distance: float | Callable[[list[LngLat]], float] = 0.0) -> None:
        self._distance = distance
        self.calls: list[list[LngLat]] = []

    def find_route(self, waypoints: Sequence[LngLat]) -> RoutedPath:
        self.calls.append(list(waypoints))
        distance = self._distance(list(waypoints)) if callable(self._distance) else self._distance
        if distance <= 0:
            return RoutedPath.empty()
        return RoutedPath(distance=distance, waypoints=list(waypoints))

    def get_diagnostics(self) -> dict[str, Any]:
        return {"routing_source": self.name, "calls": len(self.calls)}


@pytest.fixture
def fake_provider():
    return FakeRoutingProvider
