"""Combo building and reduction."""

from __future__ import annotations

from explox.domain.constants import MAX_COMBOS
from explox.domain.models import Combo, Query
from explox.planner.candidate_pool import CandidatePool
from explox.planner.trim import symmetric_trim


def build_combos(pool: CandidatePool) -> list[Combo]:
    """One single-part combo per pooled route, then per pooled segment."""
    combos: list[Combo] = []
    for part in [*pool.routes, *pool.segments]:
        combos.append(
            Combo(
                parts=[part],
                lower_bound_distance=part.lower_bound_distance or 0.0,
            )
        )
    return combos


def reduce_combos(query: Query, combos: list[Combo], cap: int = MAX_COMBOS) -> list[Combo]:
    return symmetric_trim(
        combos,
        target=query.target_distance,
        cap=cap,
        metric=lambda combo: combo.lower_bound_distance,
    )


__all__ = ["build_combos", "reduce_combos"]
