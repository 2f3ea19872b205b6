"""
Tests for `services/lead_service.py`.

The Supabase repository is replaced by the in-memory `lead_store` fixture, so
these tests exercise the load -> change -> recalculate -> persist cycle.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, days_ago
from domain.lead import ActivityLevel, EngagementMetrics, OfferStatus, Priority
from domain.lead_filters import LeadFilters, SortOption
from domain.stage import FunnelStage
from services import lead_service
from services.lead_service import LeadDraft, LeadNotFoundError, ReminderNotFoundError

USER = "user-1"


def _draft(**kwargs) -> LeadDraft:
    defaults = dict(
        display_name="Jordan",
        stage=FunnelStage.INSTAGRAM_FOLLOWED,
        engagement=EngagementMetrics(
            reply_speed=10,
            activity_level=ActivityLevel.MEDIUM,
            last_activity_at=days_ago(3),
        ),
    )
    defaults.update(kwargs)
    return LeadDraft(**defaults)


def test_create_lead_recalculates_and_persists(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(stage=FunnelStage.THE_ASK), now=NOW)

    assert lead.engagement.engagement_score == 80
    assert lead.priority is Priority.HIGH
    assert lead.is_high_value is True
    assert lead.created_at == lead.updated_at == NOW
    assert lead.last_contact_at == NOW
    assert lead_store.rows[(USER, lead.lead_id)] == lead


def test_leads_are_scoped_to_their_owner(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    with pytest.raises(LeadNotFoundError):
        lead_service.get_lead("someone-else", lead.lead_id)
    assert lead_service.list_leads("someone-else") == []


def test_update_ignores_derived_fields_and_rejects_unknown(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)

    updated = lead_service.update_lead(
        USER,
        lead.lead_id,
        {"display_name": "Jordan B", "priority": "high", "is_high_value": True},
        now=NOW + timedelta(hours=1),
    )
    assert updated.display_name == "Jordan B"
    assert updated.priority is Priority.MEDIUM
    assert updated.is_high_value is False
    assert updated.updated_at == NOW + timedelta(hours=1)

    with pytest.raises(ValueError):
        lead_service.update_lead(USER, lead.lead_id, {"engagement_score": 90}, now=NOW)


def test_update_missing_lead_raises(lead_store) -> None:
    with pytest.raises(LeadNotFoundError):
        lead_service.update_lead(USER, "missing", {"display_name": "X"}, now=NOW)


def test_move_lead_rescores(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    moved = lead_service.move_lead(USER, lead.lead_id, FunnelStage.DORMANT, now=NOW)

    assert moved.stage is FunnelStage.DORMANT
    assert moved.engagement.engagement_score == 25
    assert moved.priority is Priority.LOW


def test_move_lead_rejects_unknown_stage(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    with pytest.raises(ValueError):
        lead_service.move_lead(USER, lead.lead_id, "nowhere", now=NOW)  # type: ignore[arg-type]


def test_complete_reminder_is_not_regenerated(lead_store) -> None:
    lead = lead_service.create_lead(
        USER, _draft(stage=FunnelStage.THE_ASK, last_contact_at=days_ago(3)), now=NOW
    )
    reminder_id = f"follow-up-ask-{lead.lead_id}"
    assert lead.find_reminder(reminder_id) is not None

    completed = lead_service.complete_reminder(USER, lead.lead_id, reminder_id, now=NOW)
    assert completed.find_reminder(reminder_id) is None

    # Any later edit keeps it away while the ask is still unanswered
    edited = lead_service.update_lead(
        USER, lead.lead_id, {"tags": ["hot"]}, now=NOW + timedelta(days=1)
    )
    assert edited.find_reminder(reminder_id) is None


def test_complete_unknown_reminder_raises(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    with pytest.raises(ReminderNotFoundError):
        lead_service.complete_reminder(USER, lead.lead_id, "nope", now=NOW)


def test_manual_reminder_add_and_delete(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    with_reminder = lead_service.add_reminder(
        USER, lead.lead_id, "Check story reply", NOW + timedelta(days=2), now=NOW
    )
    (reminder,) = with_reminder.reminders
    assert reminder.reminder_id.startswith("manual-")

    cleared = lead_service.delete_reminder(USER, lead.lead_id, reminder.reminder_id, now=NOW)
    assert cleared.reminders == ()
    assert cleared.completed_reminder_ids == frozenset()


def test_add_note_rejects_blank_text(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    with pytest.raises(ValueError):
        lead_service.add_note(USER, lead.lead_id, "   ", now=NOW)

    noted = lead_service.add_note(USER, lead.lead_id, "Likes gym content", now=NOW)
    assert [n.text for n in noted.notes] == ["Likes gym content"]


def test_offer_then_payment_updates_revenue_and_high_value(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(stage=FunnelStage.THE_ASK), now=NOW)
    offered = lead_service.add_offer(USER, lead.lead_id, Decimal("600"), "Custom set", now=NOW)
    (offer,) = offered.monetization.offers
    assert offered.monetization.average_offer_value == Decimal("600")

    paid = lead_service.record_payment(
        USER, lead.lead_id, Decimal("600"), "cashapp", offer_id=offer.offer_id, now=NOW
    )
    assert paid.monetization.total_revenue == Decimal("600")
    assert paid.monetization.offers[0].status is OfferStatus.ACCEPTED
    assert paid.is_high_value is True


def test_non_positive_amounts_rejected(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    with pytest.raises(ValueError):
        lead_service.add_offer(USER, lead.lead_id, Decimal("0"), "Free", now=NOW)
    with pytest.raises(ValueError):
        lead_service.record_payment(USER, lead.lead_id, Decimal("-5"), "cash", now=NOW)


def test_list_leads_filters_and_sorts(lead_store) -> None:
    cold = lead_service.create_lead(USER, _draft(display_name="Cold"), now=NOW)
    hot = lead_service.create_lead(
        USER, _draft(display_name="Hot", stage=FunnelStage.PAID), now=NOW
    )

    by_score = lead_service.list_leads(USER, sort_by=SortOption.ENGAGEMENT_SCORE)
    assert [lead.lead_id for lead in by_score] == [hot.lead_id, cold.lead_id]

    only_paid = lead_service.list_leads(USER, LeadFilters(stages=(FunnelStage.PAID,)))
    assert [lead.lead_id for lead in only_paid] == [hot.lead_id]


def test_delete_lead(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    lead_service.delete_lead(USER, lead.lead_id)
    assert lead_store.rows == {}
    with pytest.raises(LeadNotFoundError):
        lead_service.delete_lead(USER, lead.lead_id)


def test_refresh_lead_keeps_updated_at(lead_store) -> None:
    lead = lead_service.create_lead(USER, _draft(), now=NOW)
    later = NOW + timedelta(days=20)

    refreshed = lead_service.refresh_lead(USER, lead, now=later)

    assert refreshed.updated_at == NOW
    assert refreshed.is_dormant is True
    assert lead_store.rows[(USER, lead.lead_id)] == refreshed
