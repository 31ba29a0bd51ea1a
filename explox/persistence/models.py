"""Persistence-layer query schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PartCriteria(BaseModel):
    """Filter for route/segment lookups; unset fields do not constrain."""

    id: Optional[str] = None
    external_id: Optional[str] = None
    min_distance: Optional[float] = Field(default=None, description="exclusive lower bound (m)")
    max_distance: Optional[float] = Field(default=None, description="exclusive upper bound (m)")
    is_route: Optional[bool] = None
    is_generated: Optional[bool] = None
    user_id: Optional[str] = None


__all__ = ["PartCriteria"]
