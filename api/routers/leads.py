"""
Leads API Endpoints.

CRUD for leads plus stage moves, reminders, notes, offers and payments. Every
mutating endpoint goes through services/lead_service.py, which recalculates the
lead's derived fields before persisting.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_user_id
from api.models import (
    LeadCreateRequest,
    LeadListResponse,
    LeadResponse,
    LeadUpdateRequest,
    MonetizationInput,
    MoveLeadRequest,
    NoteCreateRequest,
    OfferCreateRequest,
    PaymentCreateRequest,
    ReminderCreateRequest,
)
from domain.lead import Lead, Monetization, Priority
from domain.lead_filters import LeadFilters, SortOption
from domain.stage import parse_stage
from repositories.lead_codec import (
    engagement_from_document,
    lead_to_document,
    monetization_from_document,
    note_from_document,
    parse_utc_datetime,
    platforms_from_document,
)
from services import lead_service
from services.lead_service import LeadDraft, LeadNotFoundError, ReminderNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def _service_errors(action: str) -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""

    try:
        yield
    except HTTPException:
        raise
    except (LeadNotFoundError, ReminderNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}: {str(e)}")


def _to_response(lead: Lead) -> LeadResponse:
    return LeadResponse.model_validate(lead_to_document(lead))


def _monetization_from_request(request: MonetizationInput) -> Monetization:
    """Build domain Monetization, deriving totals the client left out."""

    data = request.model_dump()
    payments = data["payments"]
    offers = data["offers"]
    if data["total_revenue"] is None:
        data["total_revenue"] = sum((Decimal(p["amount"]) for p in payments), Decimal("0"))
    if data["average_offer_value"] is None:
        data["average_offer_value"] = (
            sum((Decimal(o["amount"]) for o in offers), Decimal("0")) / len(offers)
            if offers else Decimal("0")
        )
    return monetization_from_document(data)


def _draft_from_request(request: LeadCreateRequest) -> LeadDraft:
    data = request.model_dump()
    return LeadDraft(
        display_name=request.display_name,
        stage=request.stage,
        engagement=engagement_from_document(data["engagement"]),
        monetization=_monetization_from_request(request.monetization),
        platforms=platforms_from_document(data["platforms"]),
        tags=tuple(request.tags),
        notes=tuple(note_from_document(n) for n in data["notes"]),
        last_contact_at=(
            parse_utc_datetime(request.last_contact_at) if request.last_contact_at else None
        ),
        source=request.source,
        referred_by=request.referred_by,
        custom_fields=dict(request.custom_fields),
    )


def _changes_from_request(request: LeadUpdateRequest) -> Dict[str, Any]:
    """Only fields the client actually sent become changes."""

    sent = request.model_dump(exclude_unset=True)
    changes: Dict[str, Any] = {}
    for name, value in sent.items():
        if name == "engagement" and value is not None:
            changes[name] = engagement_from_document(value)
        elif name == "monetization" and value is not None:
            changes[name] = _monetization_from_request(request.monetization)
        elif name == "platforms" and value is not None:
            changes[name] = platforms_from_document(value)
        elif name == "last_contact_at":
            changes[name] = parse_utc_datetime(value) if value else None
        elif name == "tags" and value is not None:
            changes[name] = tuple(value)
        elif value is None and name in ("display_name", "stage", "engagement", "monetization",
                                        "platforms", "tags", "custom_fields"):
            raise HTTPException(status_code=400, detail=f"{name} cannot be null")
        else:
            changes[name] = value
    return changes


@router.get(
    "/leads",
    response_model=LeadListResponse,
    summary="List Leads",
    description="List the caller's leads with optional board filters and sorting."
)
def list_leads(
    user_id: str = Depends(get_user_id),
    stage: Optional[List[str]] = Query(None, description="Filter by stage (repeatable)"),
    tag: Optional[List[str]] = Query(None, description="Filter by tag (repeatable, any match)"),
    priority: Optional[List[Priority]] = Query(None, description="Filter by priority (repeatable)"),
    q: Optional[str] = Query(None, description="Search name, notes, usernames and tags"),
    min_score: Optional[int] = Query(None, ge=0, le=100),
    max_score: Optional[int] = Query(None, ge=0, le=100),
    sort: Optional[SortOption] = Query(None, description="Sort option, e.g. 'engagement-score'"),
):
    """
    List leads for the board.

    **Example usage:**
    - All leads: `GET /api/v1/leads`
    - Monetization columns only: `GET /api/v1/leads?stage=the_ask&stage=ask_delivered`
    - Hottest first: `GET /api/v1/leads?sort=engagement-score`
    """
    with _service_errors("list leads"):
        filters = LeadFilters(
            stages=tuple(parse_stage(s) for s in stage or []),
            tags=tuple(tag or []),
            priorities=tuple(priority or []),
            search_query=q or "",
            engagement_score_min=min_score,
            engagement_score_max=max_score,
        )
        leads = lead_service.list_leads(user_id, filters=filters, sort_by=sort)
        items = [_to_response(lead) for lead in leads]
        return LeadListResponse(items=items, total_count=len(items))


@router.post(
    "/leads",
    response_model=LeadResponse,
    status_code=201,
    summary="Create Lead",
    description="Create a lead; engagement score, priority, flags and reminders are computed server-side."
)
def create_lead(request: LeadCreateRequest, user_id: str = Depends(get_user_id)):
    with _service_errors("create lead"):
        lead = lead_service.create_lead(user_id, _draft_from_request(request))
        return _to_response(lead)


@router.get("/leads/{lead_id}", response_model=LeadResponse, summary="Get Lead")
def get_lead(lead_id: str, user_id: str = Depends(get_user_id)):
    with _service_errors("fetch lead"):
        return _to_response(lead_service.get_lead(user_id, lead_id))


@router.patch(
    "/leads/{lead_id}",
    response_model=LeadResponse,
    summary="Update Lead",
    description="Partially update raw lead fields and recalculate derived fields."
)
def update_lead(lead_id: str, request: LeadUpdateRequest, user_id: str = Depends(get_user_id)):
    with _service_errors("update lead"):
        lead = lead_service.update_lead(user_id, lead_id, _changes_from_request(request))
        return _to_response(lead)


@router.delete("/leads/{lead_id}", summary="Delete Lead")
def delete_lead(lead_id: str, user_id: str = Depends(get_user_id)):
    with _service_errors("delete lead"):
        lead_service.delete_lead(user_id, lead_id)
        return {"message": "Lead deleted successfully"}


@router.post(
    "/leads/{lead_id}/move",
    response_model=LeadResponse,
    summary="Move Lead",
    description="Move a lead to any funnel stage (board drag-and-drop)."
)
def move_lead(lead_id: str, request: MoveLeadRequest, user_id: str = Depends(get_user_id)):
    try:
        stage = parse_stage(request.stage)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid stage")

    with _service_errors("move lead"):
        return _to_response(lead_service.move_lead(user_id, lead_id, stage))


@router.post("/leads/{lead_id}/reminders", response_model=LeadResponse, status_code=201,
             summary="Add Reminder")
def add_reminder(lead_id: str, request: ReminderCreateRequest, user_id: str = Depends(get_user_id)):
    with _service_errors("add reminder"):
        lead = lead_service.add_reminder(
            user_id,
            lead_id,
            message=request.message,
            due_at=parse_utc_datetime(request.due_at),
            priority=request.priority,
            reminder_type=request.type,
        )
        return _to_response(lead)


@router.post("/leads/{lead_id}/reminders/{reminder_id}/complete", response_model=LeadResponse,
             summary="Complete Reminder")
def complete_reminder(lead_id: str, reminder_id: str, user_id: str = Depends(get_user_id)):
    with _service_errors("complete reminder"):
        return _to_response(lead_service.complete_reminder(user_id, lead_id, reminder_id))


@router.delete("/leads/{lead_id}/reminders/{reminder_id}", response_model=LeadResponse,
               summary="Delete Reminder")
def delete_reminder(lead_id: str, reminder_id: str, user_id: str = Depends(get_user_id)):
    with _service_errors("delete reminder"):
        return _to_response(lead_service.delete_reminder(user_id, lead_id, reminder_id))


@router.post("/leads/{lead_id}/notes", response_model=LeadResponse, status_code=201,
             summary="Add Note")
def add_note(lead_id: str, request: NoteCreateRequest, user_id: str = Depends(get_user_id)):
    with _service_errors("add note"):
        return _to_response(lead_service.add_note(user_id, lead_id, request.text))


@router.post("/leads/{lead_id}/offers", response_model=LeadResponse, status_code=201,
             summary="Add Offer")
def add_offer(lead_id: str, request: OfferCreateRequest, user_id: str = Depends(get_user_id)):
    with _service_errors("add offer"):
        lead = lead_service.add_offer(
            user_id,
            lead_id,
            amount=request.amount,
            description=request.description,
            currency=request.currency,
        )
        return _to_response(lead)


@router.post("/leads/{lead_id}/payments", response_model=LeadResponse, status_code=201,
             summary="Record Payment")
def record_payment(lead_id: str, request: PaymentCreateRequest, user_id: str = Depends(get_user_id)):
    with _service_errors("record payment"):
        lead = lead_service.record_payment(
            user_id,
            lead_id,
            amount=request.amount,
            method=request.method,
            currency=request.currency,
            received_at=parse_utc_datetime(request.received_at) if request.received_at else None,
            offer_id=request.offer_id,
        )
        return _to_response(lead)


__all__ = ["router"]
