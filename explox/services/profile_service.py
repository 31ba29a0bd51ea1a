"""User profile lookups for familiarity scoring."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from explox.domain.models import Activity

_LOGGER = logging.getLogger("explox.profile")


class ActivitySource(Protocol):
    def list_activities(self, user_id: str) -> list[Activity]: ...


def load_user_activities(store: ActivitySource, user_id: Optional[str]) -> list[Activity]:
    """Historical activities of the user; anonymous searches have none."""
    if not user_id:
        return []
    activities = store.list_activities(user_id)
    _LOGGER.debug("user %s has %d activities", user_id, len(activities))
    return activities


__all__ = ["ActivitySource", "load_user_activities"]
