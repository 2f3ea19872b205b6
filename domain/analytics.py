"""
Domain: Pipeline analytics (pure).

Aggregates a user's leads into the figures shown on the analytics page:
stage distribution, two funnel conversion ratios, time to first payment and a
handful of totals. Conversion ratios compare current stage counts, not
historical transitions, since stage history is not recorded.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .lead import Lead
from .stage import FUNNEL_ORDER, FunnelStage
from .time import days_since

TOP_STAGE_LIMIT = 5


@dataclass(frozen=True, slots=True)
class PipelineAnalytics:
    total_leads: int
    leads_by_stage: Dict[FunnelStage, int]
    followed_to_paid_rate: float
    heated_to_ask_rate: float
    average_days_to_first_payment: Optional[float]
    top_stages: List[Tuple[FunnelStage, int]]
    total_revenue: Decimal
    high_value_count: int
    dormant_count: int
    open_reminder_count: int


def _rate(numerator: int, denominator: int) -> float:
    """Percentage, or 0 when the denominator is empty."""

    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


def build_pipeline_analytics(leads: Iterable[Lead]) -> PipelineAnalytics:
    leads = list(leads)

    by_stage: Dict[FunnelStage, int] = {stage: 0 for stage in FUNNEL_ORDER}
    for lead in leads:
        by_stage[lead.stage] += 1

    days_to_payment: List[float] = []
    for lead in leads:
        if not lead.monetization.payments:
            continue
        first_payment = min(p.received_at for p in lead.monetization.payments)
        days_to_payment.append(days_since(lead.created_at, first_payment))

    average_days = sum(days_to_payment) / len(days_to_payment) if days_to_payment else None

    non_empty = [(stage, count) for stage, count in by_stage.items() if count > 0]
    # sorted() is stable, so ties keep funnel order.
    top_stages = sorted(non_empty, key=lambda item: item[1], reverse=True)[:TOP_STAGE_LIMIT]

    return PipelineAnalytics(
        total_leads=len(leads),
        leads_by_stage=by_stage,
        followed_to_paid_rate=_rate(
            by_stage[FunnelStage.PAID], by_stage[FunnelStage.INSTAGRAM_FOLLOWED]
        ),
        heated_to_ask_rate=_rate(
            by_stage[FunnelStage.ASK_DELIVERED], by_stage[FunnelStage.HEATED_SNAPCHAT_CONVERSATION]
        ),
        average_days_to_first_payment=average_days,
        top_stages=top_stages,
        total_revenue=sum((lead.monetization.total_revenue for lead in leads), Decimal("0")),
        high_value_count=sum(1 for lead in leads if lead.is_high_value),
        dormant_count=sum(1 for lead in leads if lead.is_dormant),
        open_reminder_count=sum(len(lead.open_reminders) for lead in leads),
    )
