"""
Lead service.

Every operation that changes a lead follows the same cycle:

1. load the current lead (scoped to its owner)
2. apply the change, stamping updated_at
3. run `recalculate_lead` so derived fields match the raw fields
4. write the full lead back

This is the only place the wall clock is read; the domain receives the instant
explicitly. Persistence is last-write-wins (see repositories/lead_repository.py).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from domain.lead import (
    EngagementMetrics,
    Lead,
    Monetization,
    Note,
    Offer,
    OfferStatus,
    Payment,
    PlatformIdentity,
    Priority,
    Reminder,
    ReminderType,
)
from domain.lead_filters import LeadFilters, SortOption, filter_leads, sort_leads
from domain.recalculation import recalculate_lead
from domain.stage import FunnelStage
from repositories import lead_repository

logger = logging.getLogger(__name__)

# Raw fields a caller may change through `update_lead`.
EDITABLE_FIELDS = frozenset({
    "display_name",
    "stage",
    "engagement",
    "monetization",
    "platforms",
    "tags",
    "notes",
    "reminders",
    "last_contact_at",
    "source",
    "referred_by",
    "custom_fields",
})

# Owned by the engine; accepted but always overwritten on recalculation.
DERIVED_FIELDS = frozenset({"priority", "is_high_value", "is_dormant"})


class LeadNotFoundError(LookupError):
    """Raised when a lead does not exist or is not owned by the caller."""


class ReminderNotFoundError(LookupError):
    """Raised when a reminder id is not present on the lead."""


@dataclass(frozen=True, slots=True)
class LeadDraft:
    """Caller-supplied raw fields for a new lead."""

    display_name: str
    stage: FunnelStage
    engagement: EngagementMetrics
    monetization: Monetization = field(default_factory=Monetization)
    platforms: PlatformIdentity = field(default_factory=PlatformIdentity)
    tags: Tuple[str, ...] = ()
    notes: Tuple[Note, ...] = ()
    reminders: Tuple[Reminder, ...] = ()
    last_contact_at: Optional[datetime] = None
    source: Optional[str] = None
    referred_by: Optional[str] = None
    custom_fields: Mapping[str, Any] = field(default_factory=dict)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _load(user_id: str, lead_id: str) -> Lead:
    lead = lead_repository.get_lead(user_id, lead_id)
    if lead is None:
        logger.warning("Lead %s not found for user %s", lead_id, user_id)
        raise LeadNotFoundError(f"Lead not found: {lead_id}")
    return lead


def _mutate(
    user_id: str,
    lead_id: str,
    change: Callable[[Lead, datetime], Lead],
    now: Optional[datetime],
) -> Lead:
    now = now or _utcnow()
    current = _load(user_id, lead_id)
    changed = replace(change(current, now), lead_id=current.lead_id, updated_at=now)
    recalculated = recalculate_lead(changed, now)
    lead_repository.update_lead(user_id, recalculated)
    return recalculated


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_lead(user_id: str, lead_id: str) -> Lead:
    return _load(user_id, lead_id)


def list_leads(
    user_id: str,
    filters: Optional[LeadFilters] = None,
    sort_by: Optional[SortOption] = None,
) -> List[Lead]:
    """List a user's leads (most recently updated first unless `sort_by` is given)."""

    leads = lead_repository.list_leads(user_id)
    if filters is not None and not filters.is_empty:
        leads = filter_leads(leads, filters)
    if sort_by is not None:
        leads = sort_leads(leads, sort_by)
    return leads


# ---------------------------------------------------------------------------
# Create / update / move / delete
# ---------------------------------------------------------------------------

def create_lead(user_id: str, draft: LeadDraft, now: Optional[datetime] = None) -> Lead:
    """
    Create, recalculate and persist a new lead.

    last_contact_at defaults to the creation instant when not supplied.
    """

    now = now or _utcnow()
    lead = Lead(
        lead_id=str(uuid4()),
        display_name=draft.display_name,
        stage=draft.stage,
        engagement=draft.engagement,
        monetization=draft.monetization,
        platforms=draft.platforms,
        tags=tuple(draft.tags),
        notes=tuple(draft.notes),
        reminders=tuple(draft.reminders),
        last_contact_at=draft.last_contact_at or now,
        source=draft.source,
        referred_by=draft.referred_by,
        custom_fields=dict(draft.custom_fields),
        created_at=now,
        updated_at=now,
    )
    recalculated = recalculate_lead(lead, now)
    lead_repository.insert_lead(user_id, recalculated)
    logger.info(
        "Created lead %s at stage %s (score=%d, priority=%s)",
        recalculated.lead_id,
        recalculated.stage.value,
        recalculated.engagement.engagement_score,
        recalculated.priority.value,
    )
    return recalculated


def update_lead(
    user_id: str,
    lead_id: str,
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Lead:
    """
    Apply a partial update of raw fields.

    Derived fields in `changes` are ignored; unknown fields raise ValueError.
    """

    unknown = set(changes) - EDITABLE_FIELDS - DERIVED_FIELDS
    if unknown:
        raise ValueError(f"Unknown lead fields: {sorted(unknown)}")

    applicable: Dict[str, Any] = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    if "tags" in applicable:
        applicable["tags"] = tuple(applicable["tags"])
    if "notes" in applicable:
        applicable["notes"] = tuple(applicable["notes"])
    if "reminders" in applicable:
        applicable["reminders"] = tuple(applicable["reminders"])
    if "custom_fields" in applicable:
        applicable["custom_fields"] = dict(applicable["custom_fields"])

    return _mutate(user_id, lead_id, lambda lead, _now: replace(lead, **applicable), now)


def move_lead(
    user_id: str,
    lead_id: str,
    stage: FunnelStage,
    now: Optional[datetime] = None,
) -> Lead:
    """Move a lead to any stage. No transition order is enforced."""

    target = FunnelStage(stage)
    lead = _mutate(user_id, lead_id, lambda current, _now: replace(current, stage=target), now)
    logger.info("Moved lead %s to %s", lead_id, target.value)
    return lead


def delete_lead(user_id: str, lead_id: str) -> None:
    if not lead_repository.delete_lead(user_id, lead_id):
        logger.warning("Lead %s not found for user %s", lead_id, user_id)
        raise LeadNotFoundError(f"Lead not found: {lead_id}")
    logger.info("Deleted lead %s", lead_id)


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

def complete_reminder(
    user_id: str,
    lead_id: str,
    reminder_id: str,
    now: Optional[datetime] = None,
) -> Lead:
    """
    Mark a reminder as completed.

    Recalculation drops it from the lead; a generated reminder with the same id
    is not produced again while its trigger keeps firing.
    """

    def change(lead: Lead, at: datetime) -> Lead:
        reminder = lead.find_reminder(reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(f"Reminder not found: {reminder_id}")
        if reminder.is_completed:
            return lead
        return replace(lead, reminders=tuple(
            r.completed(at) if r.reminder_id == reminder_id else r for r in lead.reminders
        ))

    lead = _mutate(user_id, lead_id, change, now)
    logger.info("Completed reminder %s on lead %s", reminder_id, lead_id)
    return lead


def delete_reminder(
    user_id: str,
    lead_id: str,
    reminder_id: str,
    now: Optional[datetime] = None,
) -> Lead:
    """Remove a reminder. Generated reminders are suppressed like completed ones."""

    def change(lead: Lead, _at: datetime) -> Lead:
        if lead.find_reminder(reminder_id) is None:
            raise ReminderNotFoundError(f"Reminder not found: {reminder_id}")
        return replace(
            lead,
            reminders=tuple(r for r in lead.reminders if r.reminder_id != reminder_id),
            completed_reminder_ids=lead.completed_reminder_ids | {reminder_id},
        )

    return _mutate(user_id, lead_id, change, now)


def add_reminder(
    user_id: str,
    lead_id: str,
    message: str,
    due_at: datetime,
    priority: Priority = Priority.MEDIUM,
    reminder_type: ReminderType = ReminderType.CUSTOM,
    now: Optional[datetime] = None,
) -> Lead:
    """Attach a manual reminder to a lead."""

    reminder = Reminder(
        reminder_id=f"manual-{uuid4()}",
        type=ReminderType(reminder_type),
        message=message,
        due_at=due_at,
        priority=Priority(priority),
    )
    return _mutate(
        user_id,
        lead_id,
        lambda lead, _at: replace(lead, reminders=lead.reminders + (reminder,)),
        now,
    )


# ---------------------------------------------------------------------------
# Notes and monetization
# ---------------------------------------------------------------------------

def add_note(user_id: str, lead_id: str, text: str, now: Optional[datetime] = None) -> Lead:
    if not text.strip():
        raise ValueError("note text must not be empty")

    def change(lead: Lead, at: datetime) -> Lead:
        note = Note(note_id=str(uuid4()), text=text, created_at=at)
        return replace(lead, notes=lead.notes + (note,))

    return _mutate(user_id, lead_id, change, now)


def add_offer(
    user_id: str,
    lead_id: str,
    amount: Decimal,
    description: str,
    currency: str = "USD",
    now: Optional[datetime] = None,
) -> Lead:
    if amount <= 0:
        raise ValueError("offer amount must be > 0")

    def change(lead: Lead, at: datetime) -> Lead:
        offer = Offer(
            offer_id=str(uuid4()),
            amount=Decimal(amount),
            currency=currency,
            description=description,
            created_at=at,
        )
        return replace(lead, monetization=lead.monetization.with_offer(offer))

    return _mutate(user_id, lead_id, change, now)


def record_payment(
    user_id: str,
    lead_id: str,
    amount: Decimal,
    method: str,
    currency: str = "USD",
    received_at: Optional[datetime] = None,
    offer_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Lead:
    """
    Record a payment, adding it to total_revenue.

    When `offer_id` names an offer on the lead, that offer is marked accepted.
    """

    if amount <= 0:
        raise ValueError("payment amount must be > 0")

    def change(lead: Lead, at: datetime) -> Lead:
        payment = Payment(
            payment_id=str(uuid4()),
            amount=Decimal(amount),
            currency=currency,
            method=method,
            received_at=received_at or at,
            offer_id=offer_id,
        )
        monetization = lead.monetization.with_payment(payment)
        if offer_id is not None:
            monetization = replace(monetization, offers=tuple(
                replace(o, status=OfferStatus.ACCEPTED) if o.offer_id == offer_id else o
                for o in monetization.offers
            ))
        return replace(lead, monetization=monetization)

    lead = _mutate(user_id, lead_id, change, now)
    logger.info("Recorded payment of %s %s on lead %s", amount, currency, lead_id)
    return lead


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------

def refresh_lead(user_id: str, lead: Lead, now: Optional[datetime] = None, persist: bool = True) -> Lead:
    """
    Recalculate a stored lead without treating it as a user edit.

    updated_at is left alone so "days in stage" keeps counting.
    """

    recalculated = recalculate_lead(lead, now or _utcnow())
    if persist:
        lead_repository.update_lead(user_id, recalculated)
    return recalculated


__all__ = [
    "LeadDraft",
    "LeadNotFoundError",
    "ReminderNotFoundError",
    "add_note",
    "add_offer",
    "add_reminder",
    "complete_reminder",
    "create_lead",
    "delete_lead",
    "delete_reminder",
    "get_lead",
    "list_leads",
    "move_lead",
    "record_payment",
    "refresh_lead",
    "update_lead",
]
