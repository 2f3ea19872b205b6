"""
Analytics API Endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_user_id
from api.models import AnalyticsResponse, StageCount
from services.analytics_service import get_pipeline_analytics

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Pipeline Analytics",
    description="Stage distribution, conversion rates and revenue totals for the caller's leads."
)
def pipeline_analytics(user_id: str = Depends(get_user_id)):
    """
    Aggregate analytics over all of the caller's leads.

    Conversion rates are percentages of current stage counts:
    - followed_to_paid_rate: PAID / INSTAGRAM_FOLLOWED
    - heated_to_ask_rate: ASK_DELIVERED / HEATED_SNAPCHAT_CONVERSATION
    """
    try:
        analytics = get_pipeline_analytics(user_id)
        return AnalyticsResponse(
            total_leads=analytics.total_leads,
            leads_by_stage={stage.value: count for stage, count in analytics.leads_by_stage.items()},
            followed_to_paid_rate=analytics.followed_to_paid_rate,
            heated_to_ask_rate=analytics.heated_to_ask_rate,
            average_days_to_first_payment=analytics.average_days_to_first_payment,
            top_stages=[StageCount(stage=stage, count=count) for stage, count in analytics.top_stages],
            total_revenue=analytics.total_revenue,
            high_value_count=analytics.high_value_count,
            dormant_count=analytics.dormant_count,
            open_reminder_count=analytics.open_reminder_count,
        )
    except Exception as e:
        logger.exception("Failed to compute analytics")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to compute analytics: {str(e)}"
        )
