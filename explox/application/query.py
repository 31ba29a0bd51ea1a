"""Raw request parameters -> Query."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from explox.domain.constants import DEFAULT_DISTANCE_M
from explox.domain.enums import Difficulty, Preference, Sport
from explox.domain.exceptions import QueryValidationError
from explox.domain.models import Coordinate, Query


def _text(value: Any) -> str:
    return str(value or "").strip()


def parse_coordinate(raw: Any, *, field: str) -> Optional[Coordinate]:
    """Parse `"lat,lng"`; blank means absent."""
    text = _text(raw)
    if not text:
        return None
    parts = [piece.strip() for piece in text.split(",")]
    if len(parts) != 2:
        raise QueryValidationError(f"{field} must be 'lat,lng', got {text!r}")
    try:
        return Coordinate(lat=float(parts[0]), lng=float(parts[1]))
    except (ValueError, ValidationError) as exc:
        raise QueryValidationError(f"{field} is not a valid coordinate: {text!r}") from exc


def _distance_m(raw: Any) -> float:
    text = _text(raw)
    if not text:
        return DEFAULT_DISTANCE_M
    try:
        km = float(text)
    except ValueError as exc:
        raise QueryValidationError(f"distance must be a number of km, got {text!r}") from exc
    if km <= 0:
        raise QueryValidationError("distance must be positive")
    return km * 1000.0


def _enum(enum_cls: type, raw: Any, default: Any, field: str) -> Any:
    text = _text(raw).lower()
    if not text:
        return default
    try:
        return enum_cls(text)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_cls)
        raise QueryValidationError(f"{field} must be one of: {allowed}") from exc


def _duration(raw: Any) -> Optional[float]:
    text = _text(raw)
    if not text:
        return None
    try:
        return float(text)
    except ValueError as exc:
        raise QueryValidationError(f"duration must be numeric, got {text!r}") from exc


def build_query(params: Mapping[str, Any], *, user_id: Optional[str] = None) -> Query:
    """Default absent fields and validate the rest.

    `distance` is in km. The start point comes from `start` or from
    separate `lat`/`lng` parameters; `end` defaults to the start.
    """
    start = parse_coordinate(params.get("start"), field="start")
    if start is None and _text(params.get("lat")) and _text(params.get("lng")):
        start = parse_coordinate(f"{params.get('lat')},{params.get('lng')}", field="start")
    if start is None:
        raise QueryValidationError("start is required")

    try:
        return Query(
            target_distance=_distance_m(params.get("distance")),
            preference=_enum(Preference, params.get("preference"), Preference.DISCOVER, "preference"),
            difficulty=_enum(Difficulty, params.get("difficulty"), Difficulty.ADVANCED, "difficulty"),
            sport=_enum(Sport, params.get("sport"), Sport.CYCLING, "sport"),
            duration=_duration(params.get("duration")),
            start=start,
            end=parse_coordinate(params.get("end"), field="end"),
            user_id=user_id or _text(params.get("user")) or None,
        )
    except ValidationError as exc:
        raise QueryValidationError(str(exc)) from exc


__all__ = ["build_query", "parse_coordinate"]
