"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides shared fixtures:

- `make_lead`: builds a Lead with sensible defaults, overridable per field
- `lead_store`: an in-memory stand-in for repositories.lead_repository
"""

from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.lead import ActivityLevel, EngagementMetrics, Lead, Monetization  # noqa: E402
from domain.stage import FunnelStage  # noqa: E402
from repositories import lead_repository  # noqa: E402

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def build_lead(
    *,
    lead_id: str = "lead-1",
    display_name: str = "Jamie",
    stage: FunnelStage = FunnelStage.INSTAGRAM_FOLLOWED,
    reply_speed: float = 10.0,
    activity_level: ActivityLevel = ActivityLevel.MEDIUM,
    last_activity_at: datetime | None = None,
    total_interactions: int = 0,
    total_revenue: Decimal = Decimal("0"),
    **overrides,
) -> Lead:
    """
    Lead defaults are chosen to be neutral: reply speed 10h (no adjustment),
    medium activity, activity 3 days ago (no recency adjustment), no contact,
    updated just now.
    """

    engagement = EngagementMetrics(
        reply_speed=reply_speed,
        activity_level=activity_level,
        last_activity_at=last_activity_at or days_ago(3),
        total_interactions=total_interactions,
    )
    lead = Lead(
        lead_id=lead_id,
        display_name=display_name,
        stage=stage,
        engagement=engagement,
        monetization=Monetization(total_revenue=total_revenue),
        created_at=days_ago(30),
        updated_at=NOW,
    )
    return replace(lead, **overrides) if overrides else lead


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_lead():
    return build_lead


class InMemoryLeadStore:
    """Dict-backed replacement for the Supabase lead repository."""

    def __init__(self) -> None:
        self.rows: Dict[Tuple[str, str], Lead] = {}

    def insert_lead(self, user_id: str, lead: Lead) -> None:
        self.rows[(user_id, lead.lead_id)] = lead

    def get_lead(self, user_id: str, lead_id: str) -> Lead | None:
        return self.rows.get((user_id, lead_id))

    def list_leads(self, user_id: str) -> List[Lead]:
        leads = [lead for (owner, _), lead in self.rows.items() if owner == user_id]
        return sorted(leads, key=lambda lead: lead.updated_at, reverse=True)

    def list_all_leads(self) -> List[Tuple[str, Lead]]:
        return [(owner, lead) for (owner, _), lead in self.rows.items()]

    def update_lead(self, user_id: str, lead: Lead) -> None:
        self.rows[(user_id, lead.lead_id)] = lead

    def delete_lead(self, user_id: str, lead_id: str) -> bool:
        return self.rows.pop((user_id, lead_id), None) is not None


@pytest.fixture
def lead_store(monkeypatch) -> InMemoryLeadStore:
    store = InMemoryLeadStore()
    for name in ("insert_lead", "get_lead", "list_leads", "list_all_leads", "update_lead", "delete_lead"):
        monkeypatch.setattr(lead_repository, name, getattr(store, name))
    return store
