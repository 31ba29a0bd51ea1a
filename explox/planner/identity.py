"""Deterministic identity hash for generated routes.

The hash must match values already stored by other clients, so the rolling
part wraps to signed 32-bit after every operation.
"""

from __future__ import annotations

import math

from explox.domain.models import Coordinate

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def route_hash(distance: float, start: Coordinate, end: Coordinate, title: str = "") -> int:
    seed = math.ceil(distance * start.lng * start.lat * end.lng * end.lat * 1000)
    if not title:
        return seed
    value = seed
    for char in title:
        shifted = to_int32(to_int32(value) << 5)
        value = to_int32(shifted - value + ord(char))
    return value


__all__ = ["route_hash", "to_int32"]
