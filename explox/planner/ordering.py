"""Preference ordering of generated routes."""

from __future__ import annotations

from functools import cmp_to_key

from explox.domain.enums import Preference
from explox.domain.models import GeneratedRoute


def _balanced_compare(a: GeneratedRoute, b: GeneratedRoute) -> float:
    # Kept exactly as shipped; the comparator is asymmetric.
    return (
        b.distance
        + (1 - b.familiarity_score) * a.distance
        - a.distance
        + (1 - a.familiarity_score) * b.distance
    )


def order_routes(routes: list[GeneratedRoute], preference: Preference) -> list[GeneratedRoute]:
    if preference == Preference.DISCOVER:
        return sorted(routes, key=lambda route: route.familiarity_score, reverse=True)
    if preference == Preference.DISTANCE:
        return sorted(routes, key=lambda route: route.distance, reverse=True)
    return sorted(routes, key=cmp_to_key(_balanced_compare))


__all__ = ["order_routes"]
