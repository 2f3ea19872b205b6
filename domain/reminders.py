"""
Domain: Reminder generation and merging.

Generation evaluates eight independent trigger rules against a recalculated
lead. Each rule yields at most one reminder whose identity is a
`ReminderKey(trigger, lead_id)`. The key is stable across runs, so repeated
generation against an unchanged lead yields the same identities; only `due_at`
(anchored at `as_of`) and the inactivity message (which embeds a day count)
vary.

Merging keeps the user's open reminders untouched, drops completed ones and
adds only generated reminders whose identity is not already present. This
gives at most one live reminder per identity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Set

from .lead import Lead, Priority, Reminder, ReminderType
from .stage import FunnelStage
from .time import days_since

_DEFAULT_DUE = timedelta(hours=24)
_DELIVERY_DUE = timedelta(hours=48)

STALE_CONTACT_DAYS = 3
OVERDUE_CONTACT_DAYS = 7
ASK_STALLED_DAYS = 2
RECENT_PAYMENT_DAYS = 7
UPSELL_WINDOW_DAYS = 3
REENGAGE_AFTER_DAYS = 7
DM_STAGE_STUCK_DAYS = 3
DM_MIN_INTERACTIONS = 5
SNAP_PENDING_DAYS = 1
INACTIVITY_DAYS = 14

# Post-purchase stages in which the "deliver service" reminder is considered.
# Checked while the lead is already PAID, so membership always holds.
_DELIVERY_STAGES = frozenset({
    FunnelStage.SATISFIED_CUSTOMER,
    FunnelStage.RETURNING_CUSTOMER,
    FunnelStage.PAID,
})


class ReminderTrigger(str, Enum):
    FOLLOW_UP = "follow-up"
    ASK_STALLED = "follow-up-ask"
    DELIVER = "deliver"
    UPSELL = "upsell"
    REENGAGE = "reengage"
    ASK_FOR_SNAP = "ask-for-snap"
    SEND_INITIAL_SNAP = "send-initial-snap"
    INACTIVITY = "inactivity"


@dataclass(frozen=True, slots=True)
class ReminderKey:
    """
    Identity of a generated reminder: which rule fired, for which lead.

    Rendered as "<trigger>-<lead_id>" when stored on a Reminder.
    """

    trigger: ReminderTrigger
    lead_id: str

    @property
    def reminder_id(self) -> str:
        return f"{self.trigger.value}-{self.lead_id}"

    def __str__(self) -> str:
        return self.reminder_id


def _reminder(
    key: ReminderKey,
    type_: ReminderType,
    message: str,
    due_at: datetime,
    priority: Priority,
) -> Reminder:
    return Reminder(
        reminder_id=key.reminder_id,
        type=type_,
        message=message,
        due_at=due_at,
        priority=priority,
    )


def generate_reminders(lead: Lead, as_of: datetime) -> List[Reminder]:
    """
    Candidate reminders for `lead` evaluated at `as_of`.

    The lead is expected to be recalculated already (is_high_value is read as
    stored). Rules are independent: a lead may trigger none, one or many.
    """

    reminders: List[Reminder] = []
    name = lead.display_name
    lead_id = lead.lead_id
    tomorrow = as_of + _DEFAULT_DUE
    inactive_days = days_since(lead.engagement.last_activity_at, as_of)
    is_dormant_stage = lead.stage is FunnelStage.DORMANT

    # 1. No response to the last outbound contact.
    if lead.last_contact_at is not None:
        contact_days = days_since(lead.last_contact_at, as_of)
        if contact_days > STALE_CONTACT_DAYS and not is_dormant_stage:
            reminders.append(_reminder(
                ReminderKey(ReminderTrigger.FOLLOW_UP, lead_id),
                ReminderType.FOLLOW_UP,
                f"Follow up with {name}",
                tomorrow,
                Priority.HIGH if contact_days > OVERDUE_CONTACT_DAYS else Priority.MEDIUM,
            ))

    # 2. The ask is out but nothing has come back.
    if lead.stage is FunnelStage.THE_ASK:
        days_since_ask = (
            days_since(lead.last_contact_at, as_of) if lead.last_contact_at is not None else 0
        )
        if days_since_ask > ASK_STALLED_DAYS:
            reminders.append(_reminder(
                ReminderKey(ReminderTrigger.ASK_STALLED, lead_id),
                ReminderType.FOLLOW_UP,
                f'Follow up on "The Ask" with {name}',
                tomorrow,
                Priority.HIGH,
            ))

    # 3. Paid recently, service still to deliver.
    if lead.stage is FunnelStage.PAID:
        has_recent_payment = any(
            days_since(payment.received_at, as_of) < RECENT_PAYMENT_DAYS
            for payment in lead.monetization.payments
        )
        if has_recent_payment and lead.stage in _DELIVERY_STAGES:
            reminders.append(_reminder(
                ReminderKey(ReminderTrigger.DELIVER, lead_id),
                ReminderType.CUSTOM,
                f"Deliver service to {name} - they've paid",
                as_of + _DELIVERY_DUE,
                Priority.HIGH,
            ))

    # 4. Returning customer who is active right now.
    if lead.stage is FunnelStage.RETURNING_CUSTOMER and inactive_days < UPSELL_WINDOW_DAYS:
        reminders.append(_reminder(
            ReminderKey(ReminderTrigger.UPSELL, lead_id),
            ReminderType.CUSTOM,
            f"Upsell opportunity with {name}",
            tomorrow,
            Priority.MEDIUM,
        ))

    # 5. High-value lead going quiet.
    if lead.is_high_value and inactive_days > REENGAGE_AFTER_DAYS and not is_dormant_stage:
        reminders.append(_reminder(
            ReminderKey(ReminderTrigger.REENGAGE, lead_id),
            ReminderType.FOLLOW_UP,
            f"Re-engage with {name}",
            tomorrow,
            Priority.HIGH,
        ))

    # 6 and 7 measure time in stage from updated_at, which any edit resets.
    if lead.stage is FunnelStage.ENGAGED_IN_DM_CONVERSATION:
        days_in_stage = days_since(lead.updated_at, as_of)
        if days_in_stage > DM_STAGE_STUCK_DAYS and lead.engagement.total_interactions > DM_MIN_INTERACTIONS:
            reminders.append(_reminder(
                ReminderKey(ReminderTrigger.ASK_FOR_SNAP, lead_id),
                ReminderType.CUSTOM,
                f"Ask {name} for their Snapchat",
                tomorrow,
                Priority.MEDIUM,
            ))

    if lead.stage is FunnelStage.SNAPCHAT_ADDED_BACK:
        days_in_stage = days_since(lead.updated_at, as_of)
        if days_in_stage > SNAP_PENDING_DAYS:
            reminders.append(_reminder(
                ReminderKey(ReminderTrigger.SEND_INITIAL_SNAP, lead_id),
                ReminderType.CUSTOM,
                f"Send initial snap to {name}",
                tomorrow,
                Priority.MEDIUM,
            ))

    # 8. General inactivity.
    if inactive_days > INACTIVITY_DAYS and not is_dormant_stage:
        reminders.append(_reminder(
            ReminderKey(ReminderTrigger.INACTIVITY, lead_id),
            ReminderType.INACTIVITY,
            f"{name} has been inactive for {math.floor(inactive_days)} days",
            tomorrow,
            Priority.MEDIUM,
        ))

    return reminders


def merge_reminders(existing: Iterable[Reminder], generated: Iterable[Reminder]) -> List[Reminder]:
    """
    Merge a lead's current reminders with freshly generated candidates.

    - Every existing reminder without completed_at is kept as-is, in order.
    - Completed reminders are dropped.
    - A generated reminder is appended only if no existing reminder (completed
      or not) already has its id. Duplicates within `generated` collapse to the
      first occurrence.
    """

    existing = list(existing)
    seen: Set[str] = {r.reminder_id for r in existing}
    merged: List[Reminder] = [r for r in existing if r.completed_at is None]

    for reminder in generated:
        if reminder.reminder_id in seen:
            continue
        seen.add(reminder.reminder_id)
        merged.append(reminder)

    return merged
