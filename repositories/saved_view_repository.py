"""
Saved view repository (persistence).

Stores named board filter sets in the `saved_views` table:
- id          text
- user_id     text
- name        text
- filters     jsonb (see repositories/lead_codec.filters_to_document)
- created_at  timestamptz
"""

from __future__ import annotations

from typing import Any, List, Mapping

from domain.saved_view import SavedView
from repositories.client import get_supabase
from repositories.lead_codec import (
    filters_from_document,
    filters_to_document,
    parse_utc_datetime,
    to_iso_utc,
)

_SAVED_VIEWS_TABLE: str = "saved_views"


def _row_to_view(row: Mapping[str, Any]) -> SavedView:
    return SavedView(
        view_id=str(row["id"]),
        name=str(row["name"]),
        filters=filters_from_document(row.get("filters")),
        created_at=parse_utc_datetime(row["created_at"]),
    )


def insert_view(user_id: str, view: SavedView) -> None:
    payload = {
        "id": view.view_id,
        "user_id": user_id,
        "name": view.name,
        "filters": filters_to_document(view.filters),
        "created_at": to_iso_utc(view.created_at),
    }
    response = get_supabase().table(_SAVED_VIEWS_TABLE).insert(payload).execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to insert saved view: {error}")


def list_views(user_id: str) -> List[SavedView]:
    """List a user's saved views, newest first."""

    response = (
        get_supabase().table(_SAVED_VIEWS_TABLE)
        .select("id, name, filters, created_at")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list saved views: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_view(row) for row in rows]


def delete_view(user_id: str, view_id: str) -> bool:
    response = (
        get_supabase().table(_SAVED_VIEWS_TABLE)
        .delete()
        .eq("id", view_id)
        .eq("user_id", user_id)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to delete saved view: {error}")

    rows = getattr(response, "data", None) or []
    return len(rows) > 0


__all__ = ["insert_view", "list_views", "delete_view"]
