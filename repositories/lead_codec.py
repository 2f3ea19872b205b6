"""
Lead document codec.

Converts domain Leads to and from the JSON document stored in the `data`
column of the `leads` table. No business rules belong here; derived fields are
stored exactly as the engine produced them.

Document conventions:
- timestamps are ISO-8601 strings in UTC
- money amounts are decimal strings
- enums are stored by value
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from domain.lead import (
    ActivityLevel,
    EngagementMetrics,
    InstagramIdentity,
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
    SnapchatIdentity,
)
from domain.lead_filters import LeadFilters
from domain.stage import parse_stage


def to_iso_utc(dt: datetime) -> str:
    """Convert a timezone-aware datetime to an ISO-8601 string in UTC."""

    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("timestamp must be timezone-aware (UTC)")
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a stored timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    Naive values are interpreted as UTC.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _optional_datetime(value: Any) -> Optional[datetime]:
    return parse_utc_datetime(value) if value else None


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

def platforms_to_document(platforms: PlatformIdentity) -> Dict[str, Any]:
    doc: Dict[str, Any] = {}
    if platforms.instagram is not None:
        doc["instagram"] = {
            "username": platforms.instagram.username,
            "display_name": platforms.instagram.display_name,
            "profile_url": platforms.instagram.profile_url,
        }
    if platforms.snapchat is not None:
        doc["snapchat"] = {
            "username": platforms.snapchat.username,
            "display_name": platforms.snapchat.display_name,
        }
    return doc


def platforms_from_document(doc: Optional[Mapping[str, Any]]) -> PlatformIdentity:
    doc = doc or {}
    instagram = doc.get("instagram")
    snapchat = doc.get("snapchat")
    return PlatformIdentity(
        instagram=InstagramIdentity(
            username=str(instagram["username"]),
            display_name=instagram.get("display_name"),
            profile_url=instagram.get("profile_url"),
        ) if instagram else None,
        snapchat=SnapchatIdentity(
            username=str(snapchat["username"]),
            display_name=snapchat.get("display_name"),
        ) if snapchat else None,
    )


def engagement_to_document(engagement: EngagementMetrics) -> Dict[str, Any]:
    return {
        "reply_speed": engagement.reply_speed,
        "activity_level": engagement.activity_level.value,
        "last_activity_at": to_iso_utc(engagement.last_activity_at),
        "total_interactions": engagement.total_interactions,
        "engagement_score": engagement.engagement_score,
    }


def engagement_from_document(doc: Mapping[str, Any]) -> EngagementMetrics:
    return EngagementMetrics(
        reply_speed=float(doc["reply_speed"]),
        activity_level=ActivityLevel(doc["activity_level"]),
        last_activity_at=parse_utc_datetime(doc["last_activity_at"]),
        total_interactions=int(doc.get("total_interactions") or 0),
        engagement_score=int(doc.get("engagement_score") or 0),
    )


def offer_to_document(offer: Offer) -> Dict[str, Any]:
    return {
        "id": offer.offer_id,
        "amount": str(offer.amount),
        "currency": offer.currency,
        "description": offer.description,
        "created_at": to_iso_utc(offer.created_at),
        "status": offer.status.value,
    }


def offer_from_document(doc: Mapping[str, Any]) -> Offer:
    return Offer(
        offer_id=str(doc["id"]),
        amount=_decimal(doc["amount"]),
        currency=str(doc.get("currency") or "USD"),
        description=str(doc.get("description") or ""),
        created_at=parse_utc_datetime(doc["created_at"]),
        status=OfferStatus(doc.get("status") or OfferStatus.PENDING.value),
    )


def payment_to_document(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.payment_id,
        "amount": str(payment.amount),
        "currency": payment.currency,
        "method": payment.method,
        "received_at": to_iso_utc(payment.received_at),
        "offer_id": payment.offer_id,
    }


def payment_from_document(doc: Mapping[str, Any]) -> Payment:
    return Payment(
        payment_id=str(doc["id"]),
        amount=_decimal(doc["amount"]),
        currency=str(doc.get("currency") or "USD"),
        method=str(doc.get("method") or ""),
        received_at=parse_utc_datetime(doc["received_at"]),
        offer_id=doc.get("offer_id"),
    )


def monetization_to_document(monetization: Monetization) -> Dict[str, Any]:
    return {
        "offers": [offer_to_document(o) for o in monetization.offers],
        "payments": [payment_to_document(p) for p in monetization.payments],
        "total_revenue": str(monetization.total_revenue),
        "average_offer_value": str(monetization.average_offer_value),
    }


def monetization_from_document(doc: Optional[Mapping[str, Any]]) -> Monetization:
    doc = doc or {}
    return Monetization(
        offers=tuple(offer_from_document(o) for o in doc.get("offers") or []),
        payments=tuple(payment_from_document(p) for p in doc.get("payments") or []),
        total_revenue=_decimal(doc.get("total_revenue")),
        average_offer_value=_decimal(doc.get("average_offer_value")),
    )


def reminder_to_document(reminder: Reminder) -> Dict[str, Any]:
    return {
        "id": reminder.reminder_id,
        "type": reminder.type.value,
        "message": reminder.message,
        "due_at": to_iso_utc(reminder.due_at),
        "priority": reminder.priority.value,
        "completed_at": to_iso_utc(reminder.completed_at) if reminder.completed_at else None,
    }


def reminder_from_document(doc: Mapping[str, Any]) -> Reminder:
    return Reminder(
        reminder_id=str(doc["id"]),
        type=ReminderType(doc["type"]),
        message=str(doc["message"]),
        due_at=parse_utc_datetime(doc["due_at"]),
        priority=Priority(doc["priority"]),
        completed_at=_optional_datetime(doc.get("completed_at")),
    )


def note_to_document(note: Note) -> Dict[str, Any]:
    return {"id": note.note_id, "text": note.text, "created_at": to_iso_utc(note.created_at)}


def note_from_document(doc: Mapping[str, Any]) -> Note:
    return Note(
        note_id=str(doc["id"]),
        text=str(doc["text"]),
        created_at=parse_utc_datetime(doc["created_at"]),
    )


# ---------------------------------------------------------------------------
# Lead
# ---------------------------------------------------------------------------

def lead_to_document(lead: Lead) -> Dict[str, Any]:
    """Convert a domain Lead to its stored JSON document."""

    return {
        "id": lead.lead_id,
        "display_name": lead.display_name,
        "stage": lead.stage.value,
        "platforms": platforms_to_document(lead.platforms),
        "tags": list(lead.tags),
        "notes": [note_to_document(n) for n in lead.notes],
        "engagement": engagement_to_document(lead.engagement),
        "monetization": monetization_to_document(lead.monetization),
        "reminders": [reminder_to_document(r) for r in lead.reminders],
        "completed_reminder_ids": sorted(lead.completed_reminder_ids),
        "priority": lead.priority.value,
        "is_high_value": lead.is_high_value,
        "is_dormant": lead.is_dormant,
        "created_at": to_iso_utc(lead.created_at),
        "updated_at": to_iso_utc(lead.updated_at),
        "last_contact_at": to_iso_utc(lead.last_contact_at) if lead.last_contact_at else None,
        "metadata": {
            "source": lead.source,
            "referred_by": lead.referred_by,
            "custom_fields": dict(lead.custom_fields),
        },
    }


def lead_from_document(doc: Mapping[str, Any]) -> Lead:
    """
    Convert a stored JSON document into a domain Lead.

    Raises ValueError for an unknown stage or enum value.
    """

    metadata = doc.get("metadata") or {}
    return Lead(
        lead_id=str(doc["id"]),
        display_name=str(doc["display_name"]),
        stage=parse_stage(str(doc["stage"])),
        platforms=platforms_from_document(doc.get("platforms")),
        tags=tuple(doc.get("tags") or ()),
        notes=tuple(note_from_document(n) for n in doc.get("notes") or []),
        engagement=engagement_from_document(doc["engagement"]),
        monetization=monetization_from_document(doc.get("monetization")),
        reminders=tuple(reminder_from_document(r) for r in doc.get("reminders") or []),
        completed_reminder_ids=frozenset(doc.get("completed_reminder_ids") or ()),
        priority=Priority(doc.get("priority") or Priority.MEDIUM.value),
        is_high_value=bool(doc.get("is_high_value", False)),
        is_dormant=bool(doc.get("is_dormant", False)),
        created_at=parse_utc_datetime(doc["created_at"]),
        updated_at=parse_utc_datetime(doc["updated_at"]),
        last_contact_at=_optional_datetime(doc.get("last_contact_at")),
        source=metadata.get("source"),
        referred_by=metadata.get("referred_by"),
        custom_fields=dict(metadata.get("custom_fields") or {}),
    )


# ---------------------------------------------------------------------------
# Filters (saved views)
# ---------------------------------------------------------------------------

def filters_to_document(filters: LeadFilters) -> Dict[str, Any]:
    return {
        "stages": [s.value for s in filters.stages],
        "tags": list(filters.tags),
        "priority": [p.value for p in filters.priorities],
        "search_query": filters.search_query,
        "engagement_score_min": filters.engagement_score_min,
        "engagement_score_max": filters.engagement_score_max,
    }


def filters_from_document(doc: Optional[Mapping[str, Any]]) -> LeadFilters:
    doc = doc or {}
    return LeadFilters(
        stages=tuple(parse_stage(str(s)) for s in doc.get("stages") or []),
        tags=tuple(doc.get("tags") or ()),
        priorities=tuple(Priority(p) for p in doc.get("priority") or []),
        search_query=str(doc.get("search_query") or ""),
        engagement_score_min=doc.get("engagement_score_min"),
        engagement_score_max=doc.get("engagement_score_max"),
    )


__all__ = [
    "filters_from_document",
    "filters_to_document",
    "lead_from_document",
    "lead_to_document",
    "parse_utc_datetime",
    "to_iso_utc",
]
