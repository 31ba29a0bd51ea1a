"""TTL cache for routing-service responses."""

from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")

_COORD_PRECISION = 5


class TTLCache(Generic[T]):
    """Thread-safe TTL cache; when full, drops the tenth closest to expiry."""

    def __init__(self, default_ttl: float = 1800.0, max_size: int = 300):
        self._entries: dict[str, tuple[T, float]] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or time.time() > entry[1]:
                self._entries.pop(key, None)
                self._misses += 1
                return None
            self._hits += 1
            return entry[0]

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        expire_at = time.time() + (self._default_ttl if ttl is None else ttl)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                by_expiry = sorted(self._entries, key=lambda k: self._entries[k][1])
                for stale in by_expiry[: self._max_size // 10 + 1]:
                    del self._entries[stale]
            self._entries[key] = (value, expire_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    @property
    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


def waypoint_cache_key(profile: str, waypoints: Sequence[tuple[float, float]]) -> str:
    """Key a routing request by profile and rounded (lng, lat) list."""
    rounded = [
        [round(lng, _COORD_PRECISION), round(lat, _COORD_PRECISION)]
        for lng, lat in waypoints
    ]
    raw = json.dumps([profile, rounded], separators=(",", ":"))
    return hashlib.md5(raw.encode()).hexdigest()


route_cache: TTLCache[Any] = TTLCache(default_ttl=1800.0, max_size=300)
