"""Persistence package exports."""

from explox.persistence.models import PartCriteria
from explox.persistence.repository import RouteRepository, get_route_repository
from explox.persistence.sqlite_repository import SQLiteRouteRepository

__all__ = [
    "PartCriteria",
    "RouteRepository",
    "SQLiteRouteRepository",
    "get_route_repository",
]
