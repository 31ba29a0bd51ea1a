"""Preference ordering tests."""

from __future__ import annotations

from explox.domain.enums import Preference
from explox.domain.models import GeneratedRoute, RoutePart
from explox.planner.ordering import order_routes


def _route(route_id: str, distance: float, score: float) -> GeneratedRoute:
    return GeneratedRoute(route=RoutePart(id=route_id, distance=distance), familiarity_score=score)


def _ids(routes):
    return [route.route.id for route in routes]


def test_discover_puts_most_familiar_first():
    routes = [_route("low", 5000, 0.2), _route("high", 4000, 0.8)]
    assert _ids(order_routes(routes, Preference.DISCOVER)) == ["high", "low"]


def test_distance_puts_longest_first():
    routes = [_route("short", 4000, 0.9), _route("long", 5200, 0.1), _route("mid", 4800, 0.5)]
    assert _ids(order_routes(routes, Preference.DISTANCE)) == ["long", "mid", "short"]


def test_balanced_uses_pairwise_formula():
    # compare(a, b) = b.d + (1 - b.f) * a.d - a.d + (1 - a.f) * b.d
    a = _route("a", 4000, 1.0)
    b = _route("b", 5000, 1.0)
    # fully familiar routes: compare(a, b) = 1000 and compare(b, a) = -1000
    assert _ids(order_routes([a, b], Preference.BALANCED)) == ["b", "a"]


def test_balanced_with_mixed_familiarity():
    # K = b.f * a.d + a.f * b.d = 0.85 * 4000 + 0.95 * 5000 = 8150
    # compare(a, b) = 2 * 5000 - K = 1850, compare(b, a) = 2 * 4000 - K = -150
    a = _route("a", 4000, 0.95)
    b = _route("b", 5000, 0.85)
    assert _ids(order_routes([a, b], Preference.BALANCED)) == ["b", "a"]
    assert _ids(order_routes([b, a], Preference.BALANCED)) == ["b", "a"]


def test_balanced_keeps_input_order_when_both_comparisons_are_positive():
    # K = 0.2 * 4000 + 0.8 * 5000 = 4800: compare(a, b) = 5200 and compare(b, a) = 3200
    a = _route("a", 4000, 0.8)
    b = _route("b", 5000, 0.2)
    assert _ids(order_routes([a, b], Preference.BALANCED)) == ["a", "b"]
    assert _ids(order_routes([b, a], Preference.BALANCED)) == ["b", "a"]


def test_ordering_does_not_mutate_input():
    routes = [_route("low", 5000, 0.2), _route("high", 4000, 0.8)]
    order_routes(routes, Preference.DISCOVER)
    assert _ids(routes) == ["low", "high"]
