"""Metrics, cache and structured logging tests."""

from __future__ import annotations

import io
import json

from explox.infrastructure.cache import TTLCache, waypoint_cache_key
from explox.infrastructure.logging import get_logger
from explox.observability.metrics import GenerationMetrics


def test_metrics_snapshot_counts_runs_and_routing_calls():
    metrics = GenerationMetrics()
    metrics.record_run(status="ok", preference="discover", latency_ms=120, routes_created=2)
    metrics.record_run(status="empty", preference="distance", latency_ms=30)
    metrics.record_routing_call(provider="OSRM", latency_ms=50, ok=True)
    metrics.record_routing_call(provider="osrm", latency_ms=80, ok=False, error_type="ExternalServiceError")

    snap = metrics.snapshot()
    assert snap["total_runs"] == 2
    assert snap["status_counts"] == {"ok": 1, "empty": 1}
    assert snap["routes_created"] == 2
    assert snap["latency"]["max_ms"] == 120
    assert snap["routing_calls"]["osrm"]["success_rate"] == 0.5
    assert snap["routing_calls"]["osrm"]["error_types"] == {"ExternalServiceError": 1}

    metrics.reset()
    assert metrics.snapshot()["total_runs"] == 0


def test_cache_expires_and_evicts():
    cache: TTLCache[str] = TTLCache(default_ttl=60, max_size=3)
    cache.set("gone", "x", ttl=-1)
    assert cache.get("gone") is None
    for key in ("a", "b", "c", "d"):
        cache.set(key, key)
    assert cache.stats["size"] <= 3
    assert cache.get("d") == "d"


def test_waypoint_cache_key_ignores_float_noise():
    a = waypoint_cache_key("bike", [(6.96, 49.26), (6.97, 49.27)])
    b = waypoint_cache_key("bike", [(6.960000001, 49.26), (6.97, 49.27)])
    assert a == b
    assert a != waypoint_cache_key("foot", [(6.96, 49.26), (6.97, 49.27)])


def test_structured_logger_emits_json_lines():
    out = io.StringIO()
    logger = get_logger(trace_id="t1", output=out)
    logger.stage_start("synthesis")
    logger.stage_end("synthesis", count_in=5, count_out=3)
    logger.summary(status="ok")

    events = [json.loads(line) for line in out.getvalue().splitlines()]
    assert [event["event"] for event in events] == ["stage_start", "stage_end", "summary"]
    assert all(event["trace_id"] == "t1" for event in events)
    assert events[1]["count_out"] == 3
    assert events[1]["duration_ms"] >= 0
