"""
Domain: Engagement scoring.

The engagement score is a transparent 0-100 summary of how responsive and
active a lead is and how far along the funnel they sit:

    score = 50
          + reply-speed adjustment   (+20 / +10 / -15 / 0)
          + activity adjustment      (+15 / 0 / -10)
          + stage weight             (see domain/stage.py)
          + recency adjustment       (+10 / 0 / -10)

clamped to [0, 100]. Every term is an integer, so no rounding policy applies.

The score never reads the lead's previously stored score.
"""

from __future__ import annotations

from datetime import datetime

from .lead import ActivityLevel, Lead
from .stage import stage_weight
from .time import days_since

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100


def reply_speed_adjustment(reply_speed_hours: float) -> int:
    # First matching band wins.
    if reply_speed_hours < 2:
        return 20
    if reply_speed_hours < 6:
        return 10
    if reply_speed_hours > 24:
        return -15
    return 0


def activity_adjustment(activity_level: ActivityLevel) -> int:
    level = ActivityLevel(activity_level)
    if level is ActivityLevel.HIGH:
        return 15
    if level is ActivityLevel.LOW:
        return -10
    return 0


def recency_adjustment(days_since_activity: float) -> int:
    if days_since_activity < 1:
        return 10
    if days_since_activity > 7:
        return -10
    return 0


def calculate_engagement_score(lead: Lead, as_of: datetime) -> int:
    """
    Compute the engagement score for `lead` evaluated at `as_of`.

    Deterministic for a given (lead, as_of). Raises ValueError if the lead's
    stage has no weight (i.e. is not a FunnelStage).
    """

    engagement = lead.engagement
    score = BASE_SCORE
    score += reply_speed_adjustment(engagement.reply_speed)
    score += activity_adjustment(engagement.activity_level)
    score += stage_weight(lead.stage)
    score += recency_adjustment(days_since(engagement.last_activity_at, as_of))
    return max(MIN_SCORE, min(MAX_SCORE, score))
