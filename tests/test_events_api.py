"""
Tests for event CRUD endpoints, listings and admin views.
"""

from datetime import datetime, timezone, timedelta

import pytest
from httpx import AsyncClient

from community_events.models.enums import EventStatus


def event_payload(**overrides) -> dict:
    payload = {
        "title": "Pride Walk 2026",
        "description": "Annual walk through the city",
        "date": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        "location": "City Square",
        "organizer_name": "Pride Volunteers",
        "max_attendees": 100,
        "status": "published",
        "tags": ["walk", "outdoors"],
        "schedule": [{"time": "10:00", "event": "Gather at the square"}],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, admin_headers):
    """Admin can create an event; slug and counters are server-side."""
    response = await client.post("/api/v1/events/", json=event_payload(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["slug"] == "pride-walk-2026"
    assert data["current_attendees"] == 0
    assert data["spots_left"] == 100
    assert data["is_sold_out"] is False
    assert data["schedule"] == [{"time": "10:00", "event": "Gather at the square"}]


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/events/", json=event_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_manager_forbidden(client: AsyncClient, manager_headers):
    response = await client.post("/api/v1/events/", json=event_payload(), headers=manager_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_event_past_date(client: AsyncClient, admin_headers):
    past_date = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = await client.post(
        "/api/v1/events/", json=event_payload(date=past_date), headers=admin_headers
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "validation_error"
    assert "date" in body["errors"]


@pytest.mark.asyncio
async def test_create_event_duplicate_slug(client: AsyncClient, sub_admin_headers):
    first = await client.post("/api/v1/events/", json=event_payload(), headers=sub_admin_headers)
    second = await client.post(
        "/api/v1/events/", json=event_payload(title="PRIDE walk 2026"), headers=sub_admin_headers
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["error"] == "conflict"


@pytest.mark.asyncio
async def test_create_event_zero_capacity_rejected(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/events/", json=event_payload(max_attendees=0), headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_event_by_id_and_slug(client: AsyncClient, make_event):
    event = await make_event(title="Queer Film Night", max_attendees=10, current_attendees=4)

    by_id = await client.get(f"/api/v1/events/{event.id}")
    by_slug = await client.get("/api/v1/events/queer-film-night")

    assert by_id.status_code == 200
    assert by_slug.json()["id"] == event.id
    assert by_id.json()["spots_left"] == 6


@pytest.mark.asyncio
async def test_get_event_with_all_digit_slug(client: AsyncClient, make_event):
    event = await make_event(title="2024")

    response = await client.get("/api/v1/events/2024")

    assert response.status_code == 200
    assert response.json()["id"] == event.id
    assert response.json()["slug"] == "2024"


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    response = await client.get("/api/v1/events/99999")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_list_events_public(client: AsyncClient, make_event):
    await make_event(title="Open Mic")
    await make_event(title="Hidden Draft", status=EventStatus.DRAFT.value)

    response = await client.get("/api/v1/events/")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert [e["title"] for e in data["events"]] == ["Open Mic"]
    assert data["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}
    assert data["cached"] is False


@pytest.mark.asyncio
async def test_list_events_limit_capped(client: AsyncClient):
    response = await client.get("/api/v1/events/?limit=1000")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_listing_requires_capability(
    client: AsyncClient, make_event, admin_headers, manager_headers
):
    await make_event(title="Draft Picnic", status=EventStatus.DRAFT.value)

    forbidden = await client.get("/api/v1/events/admin/all", headers=manager_headers)
    allowed = await client.get(
        "/api/v1/events/admin/all?status=draft&search=picnic", headers=admin_headers
    )

    assert forbidden.status_code == 403
    assert allowed.status_code == 200
    assert [e["title"] for e in allowed.json()["events"]] == ["Draft Picnic"]


@pytest.mark.asyncio
async def test_update_event(client: AsyncClient, make_event, admin_headers):
    event = await make_event(title="Drag Brunch", max_attendees=10)

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"title": "Drag Brunch Deluxe", "max_attendees": 20, "featured": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Drag Brunch Deluxe"
    assert data["slug"] == "drag-brunch"
    assert data["max_attendees"] == 20
    assert data["featured"] is True


@pytest.mark.asyncio
async def test_update_event_cannot_set_attendee_counter(
    client: AsyncClient, make_event, admin_headers
):
    event = await make_event(max_attendees=10)

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"current_attendees": 9},
        headers=admin_headers,
    )

    assert response.status_code == 422
    current = await client.get(f"/api/v1/events/{event.id}")
    assert current.json()["current_attendees"] == 0


@pytest.mark.asyncio
async def test_update_event_capacity_below_confirmed(client: AsyncClient, make_event, admin_headers):
    event = await make_event(max_attendees=10, current_attendees=5)

    response = await client.put(
        f"/api/v1/events/{event.id}", json={"max_attendees": 4}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["errors"] == {"max_attendees": "below confirmed attendees"}


@pytest.mark.asyncio
async def test_delete_event(client: AsyncClient, make_event, admin_headers):
    event = await make_event(max_attendees=5)
    for n in range(2):
        await client.post(
            f"/api/v1/events/{event.id}/register",
            json={"first_name": "Sam", "last_name": "Lee", "email": f"sam{n}@example.com"},
        )

    response = await client.delete(f"/api/v1/events/{event.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["registrations_deleted"] == 2
    assert (await client.get(f"/api/v1/events/{event.id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_event_requires_auth(client: AsyncClient, make_event):
    event = await make_event()
    response = await client.delete(f"/api/v1/events/{event.id}")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_event_stats_endpoint(client: AsyncClient, make_event, manager_headers):
    await make_event()
    await make_event(status=EventStatus.DRAFT.value)

    response = await client.get("/api/v1/events/stats", headers=manager_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["by_status"] == {"published": 1, "draft": 1}


@pytest.mark.asyncio
async def test_reconciliation_endpoints(
    client: AsyncClient, make_event, admin_headers, sub_admin_headers
):
    event = await make_event(max_attendees=10, current_attendees=3)

    denied = await client.get("/api/v1/events/reconciliation", headers=sub_admin_headers)
    report = await client.get("/api/v1/events/reconciliation", headers=admin_headers)
    repair = await client.post("/api/v1/events/reconciliation/repair", headers=admin_headers)

    assert denied.status_code == 403
    assert report.json()["mismatches"] == [
        {"event_id": event.id, "slug": event.slug, "recorded": 3, "actual": 0}
    ]
    assert report.json()["repaired"] is False
    assert repair.json()["repaired"] is True
    assert (await client.get(f"/api/v1/events/{event.id}")).json()["current_attendees"] == 0


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    health = await client.get("/health")
    metrics = await client.get("/metrics")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert metrics.status_code == 200
    assert "registration_attempts_total" in metrics.text


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
