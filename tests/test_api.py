"""
API tests using FastAPI's TestClient.

Repositories are replaced with in-memory stores, so these run without Supabase.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from api.main import app
from domain.saved_view import SavedView
from repositories import saved_view_repository

HEADERS = {"X-User-Id": "user-1"}


def _iso(days_ago: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days_ago)).isoformat()


def _lead_payload(**overrides) -> dict:
    payload = {
        "display_name": "Jamie",
        "stage": "instagram_followed",
        "engagement": {
            "reply_speed": 10,
            "activity_level": "medium",
            "last_activity_at": _iso(3),
            "total_interactions": 2,
        },
        "platforms": {"instagram": {"username": "jamie.ig"}},
        "tags": ["warm"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client(lead_store) -> TestClient:
    return TestClient(app)


@pytest.fixture
def view_store(monkeypatch) -> Dict[Tuple[str, str], SavedView]:
    rows: Dict[Tuple[str, str], SavedView] = {}

    def insert_view(user_id: str, view: SavedView) -> None:
        rows[(user_id, view.view_id)] = view

    def list_views(user_id: str) -> List[SavedView]:
        return [view for (owner, _), view in rows.items() if owner == user_id]

    def delete_view(user_id: str, view_id: str) -> bool:
        return rows.pop((user_id, view_id), None) is not None

    monkeypatch.setattr(saved_view_repository, "insert_view", insert_view)
    monkeypatch.setattr(saved_view_repository, "list_views", list_views)
    monkeypatch.setattr(saved_view_repository, "delete_view", delete_view)
    return rows


def _create(client: TestClient, **overrides) -> dict:
    response = client.post("/api/v1/leads", json=_lead_payload(**overrides), headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_user_header_is_unauthorized(client) -> None:
    assert client.get("/api/v1/leads").status_code == 401


def test_create_lead_computes_derived_fields(client) -> None:
    body = _create(client, stage="the_ask", last_contact_at=_iso(2.5))

    assert body["engagement"]["engagement_score"] == 80
    assert body["priority"] == "high"
    assert body["is_high_value"] is True
    assert [r["id"] for r in body["reminders"]] == [f"follow-up-ask-{body['id']}"]
    assert body["metadata"]["custom_fields"] == {}


def test_create_lead_rejects_unknown_stage(client) -> None:
    response = client.post(
        "/api/v1/leads", json=_lead_payload(stage="vip_lounge"), headers=HEADERS
    )
    assert response.status_code == 422


def test_create_derives_total_revenue_from_payments(client) -> None:
    body = _create(
        client,
        monetization={
            "payments": [
                {"amount": "300", "method": "cashapp", "received_at": _iso(10)},
                {"amount": "250", "method": "paypal", "received_at": _iso(9)},
            ]
        },
    )
    assert body["monetization"]["total_revenue"] == "550"
    assert body["is_high_value"] is True


def test_get_lead_is_scoped_to_user(client) -> None:
    lead = _create(client)
    assert client.get(f"/api/v1/leads/{lead['id']}", headers=HEADERS).status_code == 200
    other = client.get(f"/api/v1/leads/{lead['id']}", headers={"X-User-Id": "user-2"})
    assert other.status_code == 404


def test_update_overrides_client_supplied_derived_fields(client) -> None:
    lead = _create(client)
    response = client.patch(
        f"/api/v1/leads/{lead['id']}",
        json={"tags": ["warm", "gym"], "priority": "high", "is_high_value": True},
        headers=HEADERS,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["tags"] == ["warm", "gym"]
    assert body["priority"] == "medium"
    assert body["is_high_value"] is False


def test_update_rejects_null_required_field(client) -> None:
    lead = _create(client)
    response = client.patch(
        f"/api/v1/leads/{lead['id']}", json={"engagement": None}, headers=HEADERS
    )
    assert response.status_code == 400


def test_move_lead(client) -> None:
    lead = _create(client)
    response = client.post(
        f"/api/v1/leads/{lead['id']}/move", json={"stage": "paid"}, headers=HEADERS
    )
    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "paid"
    assert body["engagement"]["engagement_score"] == 85
    assert body["priority"] == "high"


def test_move_lead_invalid_stage(client) -> None:
    lead = _create(client)
    response = client.post(
        f"/api/v1/leads/{lead['id']}/move", json={"stage": "nowhere"}, headers=HEADERS
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid stage"


def test_move_missing_lead(client) -> None:
    response = client.post("/api/v1/leads/missing/move", json={"stage": "paid"}, headers=HEADERS)
    assert response.status_code == 404


def test_complete_reminder_flow(client) -> None:
    lead = _create(client, stage="the_ask", last_contact_at=_iso(2.5))
    reminder_id = lead["reminders"][0]["id"]

    response = client.post(
        f"/api/v1/leads/{lead['id']}/reminders/{reminder_id}/complete", headers=HEADERS
    )
    assert response.status_code == 200
    assert response.json()["reminders"] == []

    again = client.patch(f"/api/v1/leads/{lead['id']}", json={"tags": []}, headers=HEADERS)
    assert again.json()["reminders"] == []

    missing = client.post(
        f"/api/v1/leads/{lead['id']}/reminders/nope/complete", headers=HEADERS
    )
    assert missing.status_code == 404


def test_manual_reminder_notes_offers_and_payments(client) -> None:
    lead = _create(client)
    base = f"/api/v1/leads/{lead['id']}"

    reminder = client.post(
        f"{base}/reminders",
        json={"message": "Check story reply", "due_at": _iso(-1)},
        headers=HEADERS,
    )
    assert reminder.status_code == 201
    assert reminder.json()["reminders"][0]["id"].startswith("manual-")

    note = client.post(f"{base}/notes", json={"text": "Prefers evenings"}, headers=HEADERS)
    assert note.status_code == 201
    assert note.json()["notes"][0]["text"] == "Prefers evenings"

    offer = client.post(
        f"{base}/offers", json={"amount": "600", "description": "Custom set"}, headers=HEADERS
    )
    assert offer.status_code == 201
    offer_id = offer.json()["monetization"]["offers"][0]["id"]

    payment = client.post(
        f"{base}/payments",
        json={"amount": "600", "method": "cashapp", "offer_id": offer_id},
        headers=HEADERS,
    )
    assert payment.status_code == 201
    body = payment.json()
    assert body["monetization"]["total_revenue"] == "600"
    assert body["monetization"]["offers"][0]["status"] == "accepted"
    assert body["is_high_value"] is True


def test_list_filters_and_sorts(client) -> None:
    cold = _create(client, display_name="Cold")
    hot = _create(client, display_name="Hot", stage="paid")

    by_score = client.get("/api/v1/leads", params={"sort": "engagement-score"}, headers=HEADERS)
    assert [lead["id"] for lead in by_score.json()["items"]] == [hot["id"], cold["id"]]

    paid = client.get("/api/v1/leads", params={"stage": "paid"}, headers=HEADERS).json()
    assert paid["total_count"] == 1

    searched = client.get("/api/v1/leads", params={"q": "cold"}, headers=HEADERS).json()
    assert [lead["id"] for lead in searched["items"]] == [cold["id"]]

    bad = client.get("/api/v1/leads", params={"stage": "nowhere"}, headers=HEADERS)
    assert bad.status_code == 400


def test_delete_lead(client) -> None:
    lead = _create(client)
    assert client.delete(f"/api/v1/leads/{lead['id']}", headers=HEADERS).status_code == 200
    assert client.delete(f"/api/v1/leads/{lead['id']}", headers=HEADERS).status_code == 404


def test_analytics(client) -> None:
    _create(client)
    _create(client)
    _create(client, stage="paid")

    response = client.get("/api/v1/analytics", headers=HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["total_leads"] == 3
    assert body["leads_by_stage"]["instagram_followed"] == 2
    assert body["followed_to_paid_rate"] == pytest.approx(50.0)
    assert body["top_stages"][0] == {"stage": "instagram_followed", "count": 2}
    assert body["average_days_to_first_payment"] is None


def test_saved_views(client, view_store) -> None:
    created = client.post(
        "/api/v1/views",
        json={"name": "Hot asks", "filters": {"stages": ["the_ask"], "priority": ["high"]}},
        headers=HEADERS,
    )
    assert created.status_code == 201
    view = created.json()
    assert view["filters"]["stages"] == ["the_ask"]

    listed = client.get("/api/v1/views", headers=HEADERS).json()
    assert [v["id"] for v in listed] == [view["id"]]

    assert client.delete(f"/api/v1/views/{view['id']}", headers=HEADERS).status_code == 200
    assert client.delete(f"/api/v1/views/{view['id']}", headers=HEADERS).status_code == 404
