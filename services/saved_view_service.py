"""
Saved view service.

Thin layer over the saved view repository that assigns ids and timestamps.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List
from uuid import uuid4

from domain.lead_filters import LeadFilters
from domain.saved_view import SavedView
from repositories import saved_view_repository

logger = logging.getLogger(__name__)


class SavedViewNotFoundError(LookupError):
    """Raised when a saved view does not exist or is not owned by the caller."""


def list_views(user_id: str) -> List[SavedView]:
    return saved_view_repository.list_views(user_id)


def create_view(user_id: str, name: str, filters: LeadFilters) -> SavedView:
    view = SavedView(
        view_id=str(uuid4()),
        name=name.strip(),
        filters=filters,
        created_at=datetime.now(timezone.utc),
    )
    saved_view_repository.insert_view(user_id, view)
    logger.info("Saved view %s (%s) for user %s", view.view_id, view.name, user_id)
    return view


def delete_view(user_id: str, view_id: str) -> None:
    if not saved_view_repository.delete_view(user_id, view_id):
        raise SavedViewNotFoundError(f"Saved view not found: {view_id}")


__all__ = ["SavedViewNotFoundError", "create_view", "delete_view", "list_views"]
