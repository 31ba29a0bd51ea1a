"""Candidate pool filter tests."""

from __future__ import annotations

import pytest

from explox.domain.models import Coordinate, GeoPoint, Query, RoutePart
from explox.planner.candidate_pool import (
    build_candidate_pool,
    filter_by_distance,
    filter_by_lower_bound,
    filter_by_radius,
    lower_bound_distance,
)
from explox.planner.distance import haversine

START = Coordinate(lat=49.26, lng=6.96)
# about 150 m north / south of START
NORTH = (49.26135, 6.96)
SOUTH = (49.25865, 6.96)


def _query(target: float = 5000.0) -> Query:
    return Query(target_distance=target, start=START)


def _part(distance: float, points, *, is_route: bool = True) -> RoutePart:
    return RoutePart(
        distance=distance,
        is_route=is_route,
        geo=[GeoPoint(lat=lat, lng=lng) for lat, lng in points],
    )


def test_distance_filter_bounds_are_exclusive():
    parts = [_part(d, [NORTH, SOUTH]) for d in (999, 1000, 1001, 4999, 5000, 6000)]
    kept = filter_by_distance(parts, 5000)
    assert [part.distance for part in kept] == [1001, 4999]


def test_lower_bound_adds_both_connections():
    part = _part(4500, [NORTH, SOUTH])
    expected = 4500 + haversine(49.26, 6.96, *NORTH) + haversine(49.26, 6.96, *SOUTH)
    assert lower_bound_distance(_query(), part) == pytest.approx(expected)
    assert lower_bound_distance(_query(), part) == pytest.approx(4800, abs=2)


def test_lower_bound_filter_keeps_grace_margin():
    query = _query()
    near = _part(4500, [NORTH, SOUTH])
    # 0.05 deg north is ~5.6 km away: bound far beyond 1.1 * target
    far = _part(4000, [(49.31, 6.96), (49.31, 6.961)])
    kept = filter_by_lower_bound(query, [near, far])
    assert len(kept) == 1
    assert kept[0].lower_bound_distance == pytest.approx(4800, abs=2)
    for part in kept:
        assert part.lower_bound_distance - 0.1 * query.target_distance <= query.target_distance


def test_lower_bound_filter_drops_parts_without_endpoints():
    kept = filter_by_lower_bound(_query(), [_part(3000, [NORTH]), _part(3000, [])])
    assert kept == []


def test_lower_bound_is_not_serialized():
    part = filter_by_lower_bound(_query(), [_part(4500, [NORTH, SOUTH])])[0]
    assert "lower_bound_distance" not in part.model_dump()


def test_radius_filter_requires_every_point_inside():
    query = _query()  # radius defaults to 2500 m
    inside = _part(2000, [NORTH, SOUTH])
    outside = _part(2000, [NORTH, (49.30, 6.96)])
    assert filter_by_radius(query, [inside, outside]) == [inside]


def test_build_candidate_pool_splits_routes_and_segments(seed_part, store):
    seed_part([NORTH, SOUTH], 4500, title="route")
    seed_part([NORTH, SOUTH], 3000, is_route=False, title="segment")
    seed_part([NORTH, SOUTH], 500, title="too short")
    seed_part([NORTH, SOUTH], 4200, is_generated=True, external_id="7", title="generated")

    pool = build_candidate_pool(_query(), store)

    assert [part.title for part in pool.routes] == ["route"]
    assert [part.title for part in pool.segments] == ["segment"]
    assert pool.size == 2
    assert all(part.lower_bound_distance is not None for part in pool.routes + pool.segments)


def test_build_candidate_pool_radius_filter_is_opt_in(seed_part, store):
    seed_part([NORTH, (49.285, 6.96), SOUTH], 3000, title="leaves radius")
    assert len(build_candidate_pool(_query(), store).routes) == 1
    assert build_candidate_pool(_query(), store, radius_filter=True).routes == []
