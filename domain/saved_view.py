"""
Domain: Saved board views.

A saved view is a named set of board filters a user can re-apply later.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .lead_filters import LeadFilters
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class SavedView:
    view_id: str
    name: str
    filters: LeadFilters
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if not self.name.strip():
            raise ValueError("name must not be empty")
