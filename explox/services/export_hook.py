"""Export notification for newly materialized routes."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from explox.config.settings import resolve_export_dir
from explox.domain.models import RoutePart

_LOGGER = logging.getLogger("explox.export")


class ExportHook(Protocol):
    def __call__(self, route: RoutePart) -> None: ...


def log_export(route: RoutePart) -> None:
    _LOGGER.info("new generated route %s (%.0f m, %d points)", route.id, route.distance, len(route.geo))


class JsonFileExport:
    """Writes one `<route id>.json` document per generated route."""

    def __init__(self, export_dir: str | Path) -> None:
        self.export_dir = Path(export_dir)

    def __call__(self, route: RoutePart) -> None:
        self.export_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "id": route.id,
            "external_id": route.external_id,
            "title": route.title,
            "body": route.body,
            "distance": route.distance,
            "user_id": route.user_id,
            "created_at": route.created_at,
            "coordinates": [[point.lng, point.lat] for point in route.geo],
        }
        target = self.export_dir / f"{route.id}.json"
        target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        log_export(route)


def notify_export(hook: Optional[ExportHook], route: RoutePart) -> None:
    """Fire-and-forget: exporter errors are logged, never raised."""
    if hook is None:
        return
    try:
        hook(route)
    except Exception as exc:
        _LOGGER.warning("export of route %s failed: %s", route.id, exc)


def get_export_hook() -> ExportHook:
    export_dir = resolve_export_dir()
    if export_dir is None:
        return log_export
    return JsonFileExport(export_dir)


__all__ = ["ExportHook", "JsonFileExport", "get_export_hook", "log_export", "notify_export"]
