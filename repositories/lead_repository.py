"""
Lead repository (persistence).

This module provides *only* persistence operations for the Lead domain entity.
No business rules (scoring, classification, reminders) belong here; callers
must hand in leads that have already been recalculated.

Each lead is stored as one row of the `leads` table:
- id          text, the lead id
- user_id     text, the owning user
- data        jsonb, the document produced by repositories/lead_codec.py
- created_at  timestamptz
- updated_at  timestamptz

Writes are last-write-wins: there is no version column, so two concurrent
read-modify-write cycles on the same lead can lose one update.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Tuple

from domain.lead import Lead
from repositories.client import get_supabase
from repositories.lead_codec import lead_from_document, lead_to_document, to_iso_utc

# Supabase table name for Lead records.
_LEADS_TABLE: str = "leads"


def _lead_to_row(user_id: str, lead: Lead) -> dict[str, Any]:
    """Convert a domain Lead to a Supabase row payload."""

    return {
        "id": lead.lead_id,
        "user_id": user_id,
        "data": lead_to_document(lead),
        "created_at": to_iso_utc(lead.created_at),
        "updated_at": to_iso_utc(lead.updated_at),
    }


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    """Convert a Supabase row into a domain Lead. Row timestamps are authoritative."""

    data = dict(row["data"])
    data["id"] = row["id"]
    if row.get("created_at"):
        data["created_at"] = row["created_at"]
    if row.get("updated_at"):
        data["updated_at"] = row["updated_at"]
    return lead_from_document(data)


def _raise_on_error(response: Any, action: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")


def insert_lead(user_id: str, lead: Lead) -> None:
    """
    Insert a Lead owned by `user_id`.

    Raises:
    - RuntimeError if Supabase returns an error response.
    - ValueError/TypeError for invalid domain values (e.g., timestamps).
    """

    response = get_supabase().table(_LEADS_TABLE).insert(_lead_to_row(user_id, lead)).execute()
    _raise_on_error(response, "insert lead")


def get_lead(user_id: str, lead_id: str) -> Lead | None:
    """
    Fetch a Lead by ID, scoped to its owner.

    Returns:
    - Lead if found
    - None if no record exists for the given ID and user
    """

    response = (
        get_supabase().table(_LEADS_TABLE)
        .select("id, data, created_at, updated_at")
        .eq("id", lead_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    _raise_on_error(response, "fetch lead")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_lead(rows[0])


def list_leads(user_id: str) -> List[Lead]:
    """List a user's leads, most recently updated first."""

    response = (
        get_supabase().table(_LEADS_TABLE)
        .select("id, data, created_at, updated_at")
        .eq("user_id", user_id)
        .order("updated_at", desc=True)
        .execute()
    )
    _raise_on_error(response, "list leads")

    rows = getattr(response, "data", None) or []
    return [_row_to_lead(row) for row in rows]


def list_all_leads() -> List[Tuple[str, Lead]]:
    """List every stored lead with its owner's user id (batch maintenance only)."""

    response = (
        get_supabase().table(_LEADS_TABLE)
        .select("id, user_id, data, created_at, updated_at")
        .execute()
    )
    _raise_on_error(response, "list all leads")

    rows = getattr(response, "data", None) or []
    return [(str(row["user_id"]), _row_to_lead(row)) for row in rows]


def update_lead(user_id: str, lead: Lead) -> None:
    """Overwrite a stored lead with `lead` (full document replacement)."""

    row = _lead_to_row(user_id, lead)
    response = (
        get_supabase().table(_LEADS_TABLE)
        .update({"data": row["data"], "updated_at": row["updated_at"]})
        .eq("id", lead.lead_id)
        .eq("user_id", user_id)
        .execute()
    )
    _raise_on_error(response, "update lead")


def delete_lead(user_id: str, lead_id: str) -> bool:
    """
    Delete a lead.

    Returns True if a row was deleted, False if none matched.
    """

    response = (
        get_supabase().table(_LEADS_TABLE)
        .delete()
        .eq("id", lead_id)
        .eq("user_id", user_id)
        .execute()
    )
    _raise_on_error(response, "delete lead")

    rows = getattr(response, "data", None) or []
    return len(rows) > 0


__all__ = [
    "insert_lead",
    "get_lead",
    "list_leads",
    "list_all_leads",
    "update_lead",
    "delete_lead",
]
