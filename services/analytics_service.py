"""
Analytics service.

Loads a user's leads and aggregates them with `domain.analytics`.
Figures are computed from stored leads as-is; run the recalculation script to
refresh time-dependent flags before reporting if leads have not been touched
recently.
"""

from __future__ import annotations

from domain.analytics import PipelineAnalytics, build_pipeline_analytics
from repositories import lead_repository


def get_pipeline_analytics(user_id: str) -> PipelineAnalytics:
    return build_pipeline_analytics(lead_repository.list_leads(user_id))


__all__ = ["get_pipeline_analytics"]
