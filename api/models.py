"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.

Response models mirror the stored lead document (repositories/lead_codec.py),
so a domain Lead is rendered with `LeadResponse.model_validate(lead_to_document(lead))`.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from domain.lead import ActivityLevel, OfferStatus, Priority, ReminderType
from domain.stage import FunnelStage


def _new_id() -> str:
    return str(uuid4())


# ============================================================================
# Shared Lead Parts
# ============================================================================

class InstagramIdentityModel(BaseModel):
    username: str
    display_name: Optional[str] = None
    profile_url: Optional[str] = None


class SnapchatIdentityModel(BaseModel):
    username: str
    display_name: Optional[str] = None


class PlatformIdentityModel(BaseModel):
    instagram: Optional[InstagramIdentityModel] = None
    snapchat: Optional[SnapchatIdentityModel] = None


class EngagementInput(BaseModel):
    """Raw engagement counters supplied by the client."""
    reply_speed: float = Field(..., ge=0, description="Average hours to reply")
    activity_level: ActivityLevel
    last_activity_at: datetime
    total_interactions: int = Field(0, ge=0)


class EngagementResponse(EngagementInput):
    engagement_score: int


class OfferModel(BaseModel):
    id: str = Field(default_factory=_new_id)
    amount: Decimal
    currency: str = "USD"
    description: str = ""
    created_at: datetime
    status: OfferStatus = OfferStatus.PENDING


class PaymentModel(BaseModel):
    id: str = Field(default_factory=_new_id)
    amount: Decimal
    currency: str = "USD"
    method: str = ""
    received_at: datetime
    offer_id: Optional[str] = None


class MonetizationInput(BaseModel):
    """
    Monetization baseline.

    total_revenue and average_offer_value default to values derived from the
    payments and offers lists when omitted.
    """
    offers: List[OfferModel] = Field(default_factory=list)
    payments: List[PaymentModel] = Field(default_factory=list)
    total_revenue: Optional[Decimal] = None
    average_offer_value: Optional[Decimal] = None


class MonetizationResponse(BaseModel):
    offers: List[OfferModel]
    payments: List[PaymentModel]
    total_revenue: Decimal
    average_offer_value: Decimal


class NoteModel(BaseModel):
    id: str = Field(default_factory=_new_id)
    text: str
    created_at: datetime


class ReminderModel(BaseModel):
    id: str
    type: ReminderType
    message: str
    due_at: datetime
    priority: Priority
    completed_at: Optional[datetime] = None


class LeadMetadataModel(BaseModel):
    source: Optional[str] = None
    referred_by: Optional[str] = None
    custom_fields: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Lead Requests
# ============================================================================

class LeadCreateRequest(BaseModel):
    """Request to create a lead. Derived fields are computed by the server."""
    display_name: str = Field(..., min_length=1)
    stage: FunnelStage = FunnelStage.INSTAGRAM_FOLLOWED
    engagement: EngagementInput
    monetization: MonetizationInput = Field(default_factory=MonetizationInput)
    platforms: PlatformIdentityModel = Field(default_factory=PlatformIdentityModel)
    tags: List[str] = Field(default_factory=list)
    notes: List[NoteModel] = Field(default_factory=list)
    last_contact_at: Optional[datetime] = None
    source: Optional[str] = None
    referred_by: Optional[str] = None
    custom_fields: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "display_name": "Jamie",
                "stage": "engaged_in_dm_conversation",
                "engagement": {
                    "reply_speed": 1.5,
                    "activity_level": "high",
                    "last_activity_at": "2025-01-01T12:00:00Z",
                    "total_interactions": 8
                },
                "platforms": {"instagram": {"username": "jamie.ig"}},
                "tags": ["warm"]
            }
        }


class LeadUpdateRequest(BaseModel):
    """
    Partial update of a lead's raw fields.

    priority, is_high_value and is_dormant are accepted for compatibility but
    always recomputed by the server.
    """
    display_name: Optional[str] = Field(None, min_length=1)
    stage: Optional[FunnelStage] = None
    engagement: Optional[EngagementInput] = None
    monetization: Optional[MonetizationInput] = None
    platforms: Optional[PlatformIdentityModel] = None
    tags: Optional[List[str]] = None
    last_contact_at: Optional[datetime] = None
    source: Optional[str] = None
    referred_by: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None
    priority: Optional[Priority] = None
    is_high_value: Optional[bool] = None
    is_dormant: Optional[bool] = None


class MoveLeadRequest(BaseModel):
    """Request to move a lead to another funnel stage."""
    stage: str

    class Config:
        json_schema_extra = {"example": {"stage": "the_ask"}}


class ReminderCreateRequest(BaseModel):
    message: str = Field(..., min_length=1)
    due_at: datetime
    priority: Priority = Priority.MEDIUM
    type: ReminderType = ReminderType.CUSTOM


class NoteCreateRequest(BaseModel):
    text: str = Field(..., min_length=1)


class OfferCreateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    description: str = ""
    currency: str = "USD"


class PaymentCreateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    method: str = Field(..., min_length=1)
    currency: str = "USD"
    received_at: Optional[datetime] = None
    offer_id: Optional[str] = None


# ============================================================================
# Lead Responses
# ============================================================================

class LeadResponse(BaseModel):
    """A lead with all derived fields refreshed."""
    id: str
    display_name: str
    stage: FunnelStage
    platforms: PlatformIdentityModel
    tags: List[str]
    notes: List[NoteModel]
    engagement: EngagementResponse
    monetization: MonetizationResponse
    reminders: List[ReminderModel]
    priority: Priority
    is_high_value: bool
    is_dormant: bool
    created_at: datetime
    updated_at: datetime
    last_contact_at: Optional[datetime] = None
    metadata: LeadMetadataModel


class LeadListResponse(BaseModel):
    items: List[LeadResponse]
    total_count: int


# ============================================================================
# Analytics Models
# ============================================================================

class StageCount(BaseModel):
    stage: FunnelStage
    count: int


class AnalyticsResponse(BaseModel):
    total_leads: int
    leads_by_stage: Dict[str, int]
    followed_to_paid_rate: float
    heated_to_ask_rate: float
    average_days_to_first_payment: Optional[float] = None
    top_stages: List[StageCount]
    total_revenue: Decimal
    high_value_count: int
    dormant_count: int
    open_reminder_count: int


# ============================================================================
# Saved View Models
# ============================================================================

class LeadFiltersModel(BaseModel):
    stages: List[FunnelStage] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    priority: List[Priority] = Field(default_factory=list)
    search_query: str = ""
    engagement_score_min: Optional[int] = Field(None, ge=0, le=100)
    engagement_score_max: Optional[int] = Field(None, ge=0, le=100)


class SavedViewCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    filters: LeadFiltersModel


class SavedViewResponse(BaseModel):
    id: str
    name: str
    filters: LeadFiltersModel
    created_at: datetime


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Not found",
                "detail": "Lead not found: 123e4567-e89b-12d3-a456-426614174000",
                "status_code": 404
            }
        }
