"""
Saved Views API Endpoints.

Named board filter sets the user can save and re-apply.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_user_id
from api.models import LeadFiltersModel, SavedViewCreateRequest, SavedViewResponse
from domain.lead_filters import LeadFilters
from domain.saved_view import SavedView
from repositories.lead_codec import filters_to_document
from services import saved_view_service
from services.saved_view_service import SavedViewNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(view: SavedView) -> SavedViewResponse:
    return SavedViewResponse(
        id=view.view_id,
        name=view.name,
        filters=LeadFiltersModel.model_validate(filters_to_document(view.filters)),
        created_at=view.created_at,
    )


@router.get("/views", response_model=List[SavedViewResponse], summary="List Saved Views")
def list_views(user_id: str = Depends(get_user_id)):
    try:
        return [_to_response(view) for view in saved_view_service.list_views(user_id)]
    except Exception as e:
        logger.exception("Failed to fetch saved views")
        raise HTTPException(status_code=500, detail=f"Failed to fetch saved views: {str(e)}")


@router.post("/views", response_model=SavedViewResponse, status_code=201, summary="Create Saved View")
def create_view(request: SavedViewCreateRequest, user_id: str = Depends(get_user_id)):
    filters = LeadFilters(
        stages=tuple(request.filters.stages),
        tags=tuple(request.filters.tags),
        priorities=tuple(request.filters.priority),
        search_query=request.filters.search_query,
        engagement_score_min=request.filters.engagement_score_min,
        engagement_score_max=request.filters.engagement_score_max,
    )
    try:
        return _to_response(saved_view_service.create_view(user_id, request.name, filters))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to create saved view")
        raise HTTPException(status_code=500, detail=f"Failed to create saved view: {str(e)}")


@router.delete("/views/{view_id}", summary="Delete Saved View")
def delete_view(view_id: str, user_id: str = Depends(get_user_id)):
    try:
        saved_view_service.delete_view(user_id, view_id)
    except SavedViewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception("Failed to delete saved view")
        raise HTTPException(status_code=500, detail=f"Failed to delete saved view: {str(e)}")
    return {"message": "Saved view deleted successfully"}
