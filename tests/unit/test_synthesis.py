"""Route synthesis tests."""

from __future__ import annotations

import threading

import pytest

from explox.domain.exceptions import GenerationCancelled
from explox.domain.models import Combo, Coordinate, GeoPoint, Query, RoutePart
from explox.planner.synthesis import synthesize_candidate, synthesize_candidates
from explox.shared.exceptions import ExternalServiceError

QUERY = Query(target_distance=5000, start=Coordinate(lat=49.26, lng=6.96))


def _combo(tag: int, points: int = 3) -> Combo:
    geo = [GeoPoint(lat=49.26 + 0.001 * i, lng=6.96 + 0.0001 * tag) for i in range(points)]
    return Combo(parts=[RoutePart(title=f"p{tag}", distance=3000, geo=geo)], lower_bound_distance=3000)


def _tag(waypoints) -> int:
    return round((waypoints[1][0] - 6.96) / 0.0001)


def test_candidate_carries_routed_path_and_parts(fake_provider):
    provider = fake_provider(4700)
    candidate = synthesize_candidate(QUERY, _combo(1), provider)
    assert candidate.distance == 4700
    assert candidate.parts[0].title == "p1"
    assert candidate.waypoints[0] == candidate.waypoints[-1] == (6.96, 49.26)


def test_routing_payload_never_exceeds_25_waypoints(fake_provider):
    provider = fake_provider(4700)
    synthesize_candidate(QUERY, _combo(1, points=300), provider)
    sent = provider.calls[0]
    assert len(sent) <= 25
    assert sent[0] == (6.96, 49.26)
    assert sent[-1] == (6.96, 49.26)


def test_failed_combos_are_skipped(fake_provider):
    provider = fake_provider(lambda waypoints: 0.0 if _tag(waypoints) == 2 else 4000.0 + _tag(waypoints))
    candidates = synthesize_candidates(QUERY, [_combo(1), _combo(2), _combo(3)], provider)
    assert sorted(candidate.parts[0].title for candidate in candidates) == ["p1", "p3"]
    assert len(provider.calls) == 3
    assert all(candidate.distance > 0 for candidate in candidates)


def test_external_service_error_is_a_soft_failure():
    class _Broken:
        name = "broken"

        def find_route(self, waypoints):
            raise ExternalServiceError("osrm", "down")

        def get_diagnostics(self):
            return {}

    assert synthesize_candidates(QUERY, [_combo(1)], _Broken()) == []


def test_candidates_trimmed_to_ten_closest(fake_provider):
    provider = fake_provider(lambda waypoints: 1000.0 * _tag(waypoints))
    combos = [_combo(tag) for tag in range(1, 13)]
    candidates = synthesize_candidates(QUERY, combos, provider, max_workers=3)
    distances = [candidate.distance for candidate in candidates]
    assert len(candidates) == 10
    assert distances == sorted(distances, reverse=True)
    assert 12000.0 not in distances and 11000.0 not in distances


def test_cancelled_run_raises(fake_provider):
    event = threading.Event()
    event.set()
    provider = fake_provider(4700)
    with pytest.raises(GenerationCancelled):
        synthesize_candidates(QUERY, [_combo(1)], provider, cancel_event=event)
    assert provider.calls == []
