"""
Domain: Board filtering and sorting (pure).

Filters narrow a user's lead list on the board; every criterion left empty is
ignored. Sorting never mutates its input and is stable, so leads that tie keep
their incoming order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .lead import Lead, Priority
from .stage import FunnelStage

_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class SortOption(str, Enum):
    ENGAGEMENT_SCORE = "engagement-score"
    LAST_ACTIVITY = "last-activity"
    REVENUE = "revenue"
    CREATED_DATE = "created-date"
    PRIORITY = "priority"


@dataclass(frozen=True, slots=True)
class LeadFilters:
    stages: Tuple[FunnelStage, ...] = ()
    tags: Tuple[str, ...] = ()
    priorities: Tuple[Priority, ...] = ()
    search_query: str = ""
    engagement_score_min: Optional[int] = None
    engagement_score_max: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return (
            not self.stages
            and not self.tags
            and not self.priorities
            and not self.search_query.strip()
            and self.engagement_score_min is None
            and self.engagement_score_max is None
        )


def _matches_search(lead: Lead, query: str) -> bool:
    if query in lead.display_name.lower():
        return True
    if any(query in note.text.lower() for note in lead.notes):
        return True
    instagram = lead.platforms.instagram
    if instagram is not None and query in instagram.username.lower():
        return True
    snapchat = lead.platforms.snapchat
    if snapchat is not None and query in snapchat.username.lower():
        return True
    return any(query in tag.lower() for tag in lead.tags)


def filter_leads(leads: Iterable[Lead], filters: LeadFilters) -> List[Lead]:
    filtered = list(leads)

    if filters.stages:
        filtered = [lead for lead in filtered if lead.stage in filters.stages]

    if filters.tags:
        wanted = set(filters.tags)
        filtered = [lead for lead in filtered if wanted.intersection(lead.tags)]

    if filters.priorities:
        filtered = [lead for lead in filtered if lead.priority in filters.priorities]

    if filters.engagement_score_min is not None:
        filtered = [
            lead for lead in filtered
            if lead.engagement.engagement_score >= filters.engagement_score_min
        ]
    if filters.engagement_score_max is not None:
        filtered = [
            lead for lead in filtered
            if lead.engagement.engagement_score <= filters.engagement_score_max
        ]

    query = filters.search_query.strip().lower()
    if query:
        filtered = [lead for lead in filtered if _matches_search(lead, query)]

    return filtered


def sort_leads(leads: Iterable[Lead], sort_by: SortOption) -> List[Lead]:
    """Sort descending by the chosen key (priority: high first)."""

    option = SortOption(sort_by)
    if option is SortOption.ENGAGEMENT_SCORE:
        key = lambda lead: lead.engagement.engagement_score  # noqa: E731
    elif option is SortOption.LAST_ACTIVITY:
        key = lambda lead: lead.engagement.last_activity_at  # noqa: E731
    elif option is SortOption.REVENUE:
        key = lambda lead: lead.monetization.total_revenue  # noqa: E731
    elif option is SortOption.CREATED_DATE:
        key = lambda lead: lead.created_at  # noqa: E731
    else:
        key = lambda lead: _PRIORITY_RANK[lead.priority]  # noqa: E731
    return sorted(leads, key=key, reverse=True)
