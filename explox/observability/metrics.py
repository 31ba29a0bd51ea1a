"""In-process metrics for route generation runs."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field

_MAX_SAMPLES = 5000
_MAX_HISTORY = 200


@dataclass
class _LatencyAgg:
    total_ms: float = 0.0
    count: int = 0
    max_ms: float = 0.0
    values: list[float] = field(default_factory=list)

    def add(self, value_ms: float) -> None:
        val = max(0.0, float(value_ms))
        self.total_ms += val
        self.count += 1
        self.max_ms = max(self.max_ms, val)
        self.values.append(val)
        if len(self.values) > _MAX_SAMPLES:
            self.values = self.values[-_MAX_SAMPLES:]

    def p95(self) -> float:
        if not self.values:
            return 0.0
        rows = sorted(self.values)
        idx = max(0, min(len(rows) - 1, math.ceil(len(rows) * 0.95) - 1))
        return rows[idx]

    def snapshot(self) -> dict[str, float]:
        avg_ms = (self.total_ms / self.count) if self.count else 0.0
        return {
            "count": self.count,
            "avg_ms": round(avg_ms, 2),
            "max_ms": round(self.max_ms, 2),
            "p95_ms": round(self.p95(), 2),
        }


@dataclass
class _RoutingStats:
    ok: int = 0
    error: int = 0
    latency: _LatencyAgg = field(default_factory=_LatencyAgg)
    error_types: dict[str, int] = field(default_factory=dict)


class GenerationMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_runs = 0
        self._status_counts: dict[str, int] = {}
        self._preference_counts: dict[str, int] = {}
        self._latency = _LatencyAgg()
        self._routing: dict[str, _RoutingStats] = {}
        self._routes_created = 0
        self._routes_reused = 0
        self._history: list[dict[str, object]] = []

    def record_run(
        self,
        *,
        status: str,
        preference: str,
        latency_ms: float,
        trace_id: str = "",
        stage_counts: dict[str, int] | None = None,
        routes_created: int = 0,
        routes_reused: int = 0,
    ) -> None:
        key_status = status or "unknown"
        with self._lock:
            self._total_runs += 1
            self._status_counts[key_status] = self._status_counts.get(key_status, 0) + 1
            self._preference_counts[preference] = self._preference_counts.get(preference, 0) + 1
            self._latency.add(latency_ms)
            self._routes_created += max(0, routes_created)
            self._routes_reused += max(0, routes_reused)
            self._history.append(
                {
                    "trace_id": trace_id,
                    "status": key_status,
                    "preference": preference,
                    "latency_ms": round(max(0.0, float(latency_ms)), 2),
                    "stage_counts": dict(stage_counts or {}),
                }
            )
            if len(self._history) > _MAX_HISTORY:
                self._history = self._history[-_MAX_HISTORY:]

    def record_routing_call(
        self,
        *,
        provider: str,
        latency_ms: float,
        ok: bool,
        error_type: str = "",
    ) -> None:
        key = (provider or "unknown").strip().lower() or "unknown"
        with self._lock:
            row = self._routing.setdefault(key, _RoutingStats())
            row.latency.add(latency_ms)
            if ok:
                row.ok += 1
            else:
                row.error += 1
                if error_type:
                    row.error_types[error_type] = row.error_types.get(error_type, 0) + 1

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            routing = {
                name: {
                    "ok": row.ok,
                    "error": row.error,
                    "success_rate": round(row.ok / (row.ok + row.error), 4) if (row.ok + row.error) else 0.0,
                    "latency": row.latency.snapshot(),
                    "error_types": dict(row.error_types),
                }
                for name, row in self._routing.items()
            }
            return {
                "total_runs": self._total_runs,
                "status_counts": dict(self._status_counts),
                "preference_counts": dict(self._preference_counts),
                "latency": self._latency.snapshot(),
                "routes_created": self._routes_created,
                "routes_reused": self._routes_reused,
                "routing_calls": routing,
                "last_runs": list(self._history),
            }

    def reset(self) -> None:
        with self._lock:
            self._total_runs = 0
            self._status_counts = {}
            self._preference_counts = {}
            self._latency = _LatencyAgg()
            self._routing = {}
            self._routes_created = 0
            self._routes_reused = 0
            self._history = []


_metrics_lock = threading.Lock()
_metrics: GenerationMetrics | None = None


def get_generation_metrics() -> GenerationMetrics:
    global _metrics
    with _metrics_lock:
        if _metrics is None:
            _metrics = GenerationMetrics()
        return _metrics


__all__ = ["GenerationMetrics", "get_generation_metrics"]
