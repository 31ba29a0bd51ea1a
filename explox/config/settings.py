"""Runtime settings resolved from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}
_DEFAULT_OSRM_URL = "http://router.project-osrm.org"
_DEFAULT_DB_PATH = Path("data") / "explox.sqlite3"


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _is_configured(value: str | None) -> bool:
    return bool(value and value.strip())


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def resolve_route_provider_default() -> str:
    mode = str(os.getenv("ROUTING_PROVIDER") or "").strip().lower()
    if mode in {"real", "fixture", "auto"}:
        return mode
    if _is_configured(os.getenv("OSRM_BASE_URL")):
        # An explicit OSRM endpoint means the operator wants real routing.
        return "real"
    return "fixture"


def resolve_db_path() -> Path:
    raw = os.getenv("EXPLOX_DB_PATH", "").strip()
    return Path(raw) if raw else _DEFAULT_DB_PATH


def resolve_export_dir() -> Path | None:
    raw = os.getenv("EXPLOX_EXPORT_DIR", "").strip()
    return Path(raw) if raw else None


class GenerationSettings(BaseModel):
    osrm_base_url: str = Field(default=_DEFAULT_OSRM_URL)
    osrm_profile: str = Field(default="bike")
    osrm_timeout_seconds: float = Field(default=10.0, gt=0)
    osrm_max_retries: int = Field(default=1, ge=0)
    route_provider: str = Field(default="fixture")
    routing_workers: int = Field(default=4, ge=1)
    part_list_limit: int = Field(default=500, ge=1)
    radius_filter: bool = Field(default=False)
    generation_timeout_seconds: int = Field(default=120, ge=1)
    rate_limit_max: int = Field(default=60, ge=1)
    rate_limit_window: int = Field(default=60, ge=1)


def load_settings(*, route_provider: str | None = None) -> GenerationSettings:
    resolved_route = str(route_provider or "").strip().lower() or resolve_route_provider_default()
    return GenerationSettings(
        osrm_base_url=os.getenv("OSRM_BASE_URL", "").strip() or _DEFAULT_OSRM_URL,
        osrm_profile=os.getenv("OSRM_PROFILE", "").strip() or "bike",
        osrm_timeout_seconds=_float_env("OSRM_TIMEOUT_SECONDS", 10.0),
        osrm_max_retries=_int_env("OSRM_MAX_RETRIES", 1),
        route_provider=resolved_route,
        routing_workers=max(1, _int_env("EXPLOX_ROUTING_WORKERS", 4)),
        part_list_limit=max(1, _int_env("EXPLOX_PART_LIST_LIMIT", 500)),
        radius_filter=_is_enabled(os.getenv("EXPLOX_RADIUS_FILTER")),
        generation_timeout_seconds=max(1, _int_env("GENERATION_TIMEOUT_SECONDS", 120)),
        rate_limit_max=max(1, _int_env("RATE_LIMIT_MAX", 60)),
        rate_limit_window=max(1, _int_env("RATE_LIMIT_WINDOW", 60)),
    )


__all__ = [
    "GenerationSettings",
    "load_settings",
    "resolve_db_path",
    "resolve_export_dir",
    "resolve_route_provider_default",
]
