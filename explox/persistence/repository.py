"""Route store interface and factory."""

from __future__ import annotations

from typing import Protocol

from explox.config.settings import resolve_db_path
from explox.domain.models import Activity, GeoPoint, RoutePart, SearchResult
from explox.persistence.models import PartCriteria
from explox.persistence.sqlite_repository import SQLiteRouteRepository


class RouteRepository(Protocol):
    backend: str

    def list_parts(self, criteria: PartCriteria, *, detailed: bool = True, limit: int = 30) -> list[RoutePart]: ...

    def find_within_radius(self, lat: float, lng: float, distance_m: float, limit: int = 30) -> list[GeoPoint]: ...

    def load_part(self, criteria: PartCriteria) -> RoutePart | None: ...

    def save_part(self, part: RoutePart) -> RoutePart: ...

    def upsert_generated_part(self, part: RoutePart) -> tuple[RoutePart, bool]: ...

    def save_geo_point(self, point: GeoPoint) -> GeoPoint: ...

    def save_activity(self, activity: Activity) -> Activity: ...

    def list_activities(self, user_id: str) -> list[Activity]: ...

    def save_search_result(self, result: SearchResult) -> SearchResult: ...

    def load_search_result(self, result_id: str) -> SearchResult | None: ...


def get_route_repository(db_path: str | None = None) -> RouteRepository:
    return SQLiteRouteRepository(db_path or resolve_db_path())


__all__ = ["RouteRepository", "get_route_repository"]
