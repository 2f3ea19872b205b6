"""
Domain: Lead recalculation.

`recalculate_lead` is the single entry point that brings a lead's derived
fields back in line with its raw fields. It must run on every create and every
mutation (field edit, stage move, reminder completion) before the lead is
persisted. Skipping it leaves derived fields stale.

Order matters:
1. engagement score, from the input lead
2. high-value flag, then priority (which reads the fresh flag), then dormancy
3. reminder generation against the lead from step 2
4. completion memory: generated ids the user already completed are withheld
   for as long as their trigger keeps firing
5. merge with existing reminders
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import FrozenSet

from .classification import calculate_priority, is_high_value, should_be_dormant
from .lead import Lead
from .reminders import generate_reminders, merge_reminders
from .scoring import calculate_engagement_score
from .time import require_utc_timestamp


def recalculate_lead(lead: Lead, as_of: datetime) -> Lead:
    """
    Return a fully self-consistent copy of `lead` evaluated at `as_of`.

    Pure: the input lead is not modified. Recalculating the result again at the
    same instant is a fixed point.
    """

    require_utc_timestamp("as_of", as_of)

    score = calculate_engagement_score(lead, as_of)
    scored = replace(lead, engagement=replace(lead.engagement, engagement_score=score))

    scored = replace(scored, is_high_value=is_high_value(scored))
    classified = replace(
        scored,
        priority=calculate_priority(scored),
        is_dormant=should_be_dormant(scored, as_of),
    )

    generated = generate_reminders(classified, as_of)
    generated_ids = {r.reminder_id for r in generated}

    just_completed = {r.reminder_id for r in lead.reminders if r.completed_at is not None}
    suppressed: FrozenSet[str] = frozenset((lead.completed_reminder_ids | just_completed) & generated_ids)

    merged = merge_reminders(
        lead.reminders,
        [r for r in generated if r.reminder_id not in suppressed],
    )

    return replace(
        classified,
        reminders=tuple(merged),
        completed_reminder_ids=suppressed,
    )
