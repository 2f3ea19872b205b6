"""
Tests for `domain/analytics.py`.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from conftest import NOW, build_lead, days_ago
from domain.analytics import build_pipeline_analytics
from domain.lead import Monetization, Payment
from domain.recalculation import recalculate_lead
from domain.stage import FunnelStage


def _payment(payment_id: str, days: float, amount: str = "100") -> Payment:
    return Payment(
        payment_id=payment_id,
        amount=Decimal(amount),
        currency="USD",
        method="paypal",
        received_at=days_ago(days),
    )


def test_empty_pipeline() -> None:
    analytics = build_pipeline_analytics([])
    assert analytics.total_leads == 0
    assert len(analytics.leads_by_stage) == 16
    assert all(count == 0 for count in analytics.leads_by_stage.values())
    assert analytics.followed_to_paid_rate == 0.0
    assert analytics.heated_to_ask_rate == 0.0
    assert analytics.average_days_to_first_payment is None
    assert analytics.top_stages == []
    assert analytics.total_revenue == Decimal("0")


def test_stage_counts_and_conversion_rates() -> None:
    leads = [
        build_lead(lead_id="f1"),
        build_lead(lead_id="f2"),
        build_lead(lead_id="f3"),
        build_lead(lead_id="f4"),
        build_lead(lead_id="p1", stage=FunnelStage.PAID),
        build_lead(lead_id="h1", stage=FunnelStage.HEATED_SNAPCHAT_CONVERSATION),
        build_lead(lead_id="h2", stage=FunnelStage.HEATED_SNAPCHAT_CONVERSATION),
        build_lead(lead_id="a1", stage=FunnelStage.ASK_DELIVERED),
    ]
    analytics = build_pipeline_analytics(leads)

    assert analytics.total_leads == 8
    assert analytics.leads_by_stage[FunnelStage.INSTAGRAM_FOLLOWED] == 4
    assert analytics.followed_to_paid_rate == pytest.approx(25.0)
    assert analytics.heated_to_ask_rate == pytest.approx(50.0)
    assert analytics.top_stages[0] == (FunnelStage.INSTAGRAM_FOLLOWED, 4)
    assert analytics.top_stages[1] == (FunnelStage.HEATED_SNAPCHAT_CONVERSATION, 2)
    # Ties keep funnel order
    assert analytics.top_stages[2:] == [(FunnelStage.ASK_DELIVERED, 1), (FunnelStage.PAID, 1)]


def test_top_stages_capped_at_five() -> None:
    stages = list(FunnelStage)[:7]
    analytics = build_pipeline_analytics(
        [build_lead(lead_id=stage.value, stage=stage) for stage in stages]
    )
    assert len(analytics.top_stages) == 5


def test_average_days_to_first_payment_uses_earliest_payment() -> None:
    # build_lead creates leads 30 days ago
    first = build_lead(
        lead_id="x",
        stage=FunnelStage.PAID,
        monetization=Monetization(payments=(_payment("late", 5), _payment("early", 20))),
    )
    second = build_lead(
        lead_id="y",
        stage=FunnelStage.PAID,
        monetization=Monetization(payments=(_payment("only", 26),)),
    )
    unpaid = build_lead(lead_id="z")

    analytics = build_pipeline_analytics([first, second, unpaid])
    assert analytics.average_days_to_first_payment == pytest.approx((10 + 4) / 2)


def test_totals() -> None:
    leads = [
        build_lead(lead_id="a", total_revenue=Decimal("120.50"), is_high_value=True),
        build_lead(lead_id="b", total_revenue=Decimal("30"), is_dormant=True),
    ]
    analytics = build_pipeline_analytics(leads)
    assert analytics.total_revenue == Decimal("150.50")
    assert analytics.high_value_count == 1
    assert analytics.dormant_count == 1
    assert analytics.open_reminder_count == 0


def test_open_reminder_count_ignores_completed() -> None:
    lead = recalculate_lead(build_lead(last_contact_at=days_ago(5)), NOW)
    done = replace(lead, reminders=tuple(r.completed(NOW) for r in lead.reminders))
    assert build_pipeline_analytics([lead, done]).open_reminder_count == 1
