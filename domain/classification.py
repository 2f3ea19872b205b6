"""
Domain: Lead classification.

Three independent pure rules evaluated against a lead whose engagement score
has already been refreshed:

- priority tier (ordered decision list, first match wins)
- high-value flag (revenue or engagement threshold)
- dormancy flag (no activity for more than 14 days)

Dormancy is a flag only. It never moves the lead into the DORMANT stage.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import FrozenSet

from .lead import Lead, Priority
from .stage import FunnelStage
from .time import days_since

HIGH_VALUE_REVENUE_THRESHOLD = Decimal("500")
HIGH_VALUE_SCORE_THRESHOLD = 75
HIGH_PRIORITY_SCORE_THRESHOLD = 70
LOW_PRIORITY_SCORE_THRESHOLD = 30
ENGAGED_SCORE_THRESHOLD = 50
DORMANCY_THRESHOLD_DAYS = 14

HIGH_PRIORITY_STAGES: FrozenSet[FunnelStage] = frozenset({
    FunnelStage.THE_ASK,
    FunnelStage.ASK_DELIVERED,
    FunnelStage.HEATED_SNAPCHAT_CONVERSATION,
    FunnelStage.PAID,
})

CONVERSATION_STAGES: FrozenSet[FunnelStage] = frozenset({
    FunnelStage.SNAPCHAT_CONVERSATION,
    FunnelStage.SNAPCHAT_ADDED_BACK,
    FunnelStage.ENGAGED_IN_DM_CONVERSATION,
})


def calculate_priority(lead: Lead) -> Priority:
    """
    Priority tier for a lead.

    Reads lead.is_high_value, so the flag must be refreshed first.
    """

    score = lead.engagement.engagement_score

    if lead.is_high_value:
        return Priority.HIGH
    if lead.stage in HIGH_PRIORITY_STAGES:
        return Priority.HIGH
    if score > HIGH_PRIORITY_SCORE_THRESHOLD:
        return Priority.HIGH
    if lead.stage is FunnelStage.DORMANT:
        return Priority.LOW
    if score < LOW_PRIORITY_SCORE_THRESHOLD:
        return Priority.LOW
    if lead.stage in CONVERSATION_STAGES and score > ENGAGED_SCORE_THRESHOLD:
        return Priority.MEDIUM
    return Priority.MEDIUM


def is_high_value(lead: Lead) -> bool:
    return (
        lead.monetization.total_revenue > HIGH_VALUE_REVENUE_THRESHOLD
        or lead.engagement.engagement_score > HIGH_VALUE_SCORE_THRESHOLD
    )


def should_be_dormant(lead: Lead, as_of: datetime) -> bool:
    inactive_days = days_since(lead.engagement.last_activity_at, as_of)
    return inactive_days > DORMANCY_THRESHOLD_DAYS and lead.stage is not FunnelStage.DORMANT
