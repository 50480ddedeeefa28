from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from meetly.core.db import get_session
from meetly.core.security import create_access_token
from meetly.main import app

pytestmark = pytest.mark.anyio

WEEK = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]


@pytest.fixture
async def client(session_maker, anyio_backend):
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth(host) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(host.id)}"}


def nine_am(day) -> str:
    return datetime(day.year, day.month, day.day, 9, 0, tzinfo=UTC).isoformat()


def guest(start: str, email: str = "grace@example.com") -> dict:
    return {"start_time": start, "guest_name": "Grace Guest", "guest_email": email}


async def test__health(client) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test__public_profile_lists_public_events(client, host, event) -> None:
    resp = await client.get(f"/api/v1/public/{host.username}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["username"] == host.username
    assert [e["slug"] for e in data["events"]] == ["intro-call"]


async def test__unknown_user_is_404(client) -> None:
    resp = await client.get("/api/v1/public/nobody")
    assert resp.status_code == 404
    assert resp.json()["code"] == "USER_NOT_FOUND"


async def test__slots_for_a_working_day(client, host, event, next_monday) -> None:
    resp = await client.get(
        f"/api/v1/public/{host.username}/intro-call/slots",
        params={"start_date": next_monday.isoformat(), "end_date": next_monday.isoformat(), "timezone": "UTC"},
    )
    assert resp.status_code == 200
    slots = resp.json()["slots"]
    assert len(slots) == 16
    first = datetime.fromisoformat(slots[0]["start"])
    assert first == datetime.fromisoformat(nine_am(next_monday))
    assert datetime.fromisoformat(slots[0]["end"]) - first == timedelta(minutes=30)


async def test__slots_reject_bad_input(client, host, event, next_monday) -> None:
    url = f"/api/v1/public/{host.username}/intro-call/slots"
    day = next_monday.isoformat()

    resp = await client.get(url, params={"start_date": day, "end_date": day, "timezone": "Mars/Base"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_TIMEZONE"

    # a tzdata directory name is not a zone
    resp = await client.get(url, params={"start_date": day, "end_date": day, "timezone": "Europe"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_TIMEZONE"

    earlier = (next_monday - timedelta(days=1)).isoformat()
    resp = await client.get(url, params={"start_date": day, "end_date": earlier})
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_RANGE"


async def test__booking_then_conflict(client, host, event, next_monday) -> None:
    url = f"/api/v1/public/{host.username}/intro-call/bookings"
    resp = await client.post(url, json=guest(nine_am(next_monday)))
    assert resp.status_code == 201
    meeting = resp.json()
    assert meeting["status"] == "SCHEDULED"
    assert meeting["meet_link"] is None

    resp = await client.post(url, json=guest(nine_am(next_monday), email="late@example.com"))
    assert resp.status_code == 409
    assert resp.json()["code"] == "SLOT_UNAVAILABLE"

    resp = await client.get(
        f"/api/v1/public/{host.username}/intro-call/slots",
        params={"start_date": next_monday.isoformat(), "end_date": next_monday.isoformat()},
    )
    assert len(resp.json()["slots"]) == 15


async def test__booking_off_grid_is_rejected(client, host, event, next_monday) -> None:
    start = datetime(next_monday.year, next_monday.month, next_monday.day, 9, 10, tzinfo=UTC)
    resp = await client.post(f"/api/v1/public/{host.username}/intro-call/bookings", json=guest(start.isoformat()))
    assert resp.status_code == 409


async def test__host_endpoints_need_a_token(client) -> None:
    for method, path in [("GET", "/api/v1/events"), ("GET", "/api/v1/meetings"), ("GET", "/api/v1/availability/me")]:
        resp = await client.request(method, path)
        assert resp.status_code == 401

    resp = await client.get("/api/v1/events", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


async def test__private_event_is_not_bookable(client, host, event, auth, next_monday) -> None:
    resp = await client.put(f"/api/v1/events/{event.id}/toggle-privacy", headers=auth)
    assert resp.status_code == 200
    assert resp.json()["is_private"] is True

    resp = await client.get(f"/api/v1/public/{host.username}/intro-call")
    assert resp.status_code == 404
    resp = await client.post(
        f"/api/v1/public/{host.username}/intro-call/bookings", json=guest(nine_am(next_monday))
    )
    assert resp.status_code == 404

    # the host can still book it directly
    resp = await client.post(
        "/api/v1/meetings", headers=auth, json={**guest(nine_am(next_monday)), "event_id": event.id}
    )
    assert resp.status_code == 201


async def test__replace_availability(client, host, event, auth, next_monday) -> None:
    days = [
        {"day": d, "start_time": "10:00:00", "end_time": "11:00:00", "is_available": d == "MONDAY"}
        for d in WEEK
    ]
    resp = await client.put(
        "/api/v1/availability", headers=auth, json={"time_gap": 15, "timezone": "UTC", "days": days}
    )
    assert resp.status_code == 200
    assert resp.json()["time_gap"] == 15

    resp = await client.get(
        f"/api/v1/public/{host.username}/intro-call/slots",
        params={"start_date": next_monday.isoformat(), "end_date": (next_monday + timedelta(days=6)).isoformat()},
    )
    # 10:00, 10:15, 10:30 on Monday only
    assert len(resp.json()["slots"]) == 3


async def test__partial_week_is_rejected(client, auth) -> None:
    days = [{"day": "MONDAY", "start_time": "09:00:00", "end_time": "17:00:00", "is_available": True}]
    resp = await client.put("/api/v1/availability", headers=auth, json={"time_gap": 30, "days": days})
    assert resp.status_code == 422


async def test__event_crud(client, auth) -> None:
    resp = await client.post(
        "/api/v1/events",
        headers=auth,
        json={"title": "Office Hours", "duration": 45, "location_type": "PHYSICAL"},
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["slug"] == "office-hours"

    resp = await client.put(f"/api/v1/events/{created['id']}", headers=auth, json={"duration": 60})
    assert resp.json()["duration"] == 60

    bad = {"title": "Bad", "duration": 0, "location_type": "OTHER"}
    resp = await client.post("/api/v1/events", headers=auth, json=bad)
    assert resp.status_code == 422

    resp = await client.delete(f"/api/v1/events/{created['id']}", headers=auth)
    assert resp.status_code == 204


async def test__event_with_bookings_cannot_be_deleted(client, host, event, auth, next_monday) -> None:
    await client.post(f"/api/v1/public/{host.username}/intro-call/bookings", json=guest(nine_am(next_monday)))
    resp = await client.delete(f"/api/v1/events/{event.id}", headers=auth)
    assert resp.status_code == 409
    assert resp.json()["code"] == "EVENT_HAS_BOOKINGS"


async def test__meeting_lifecycle(client, host, event, auth, next_monday) -> None:
    url = f"/api/v1/public/{host.username}/intro-call/bookings"
    resp = await client.post(url, json=guest(nine_am(next_monday)))
    meeting_id = resp.json()["id"]

    resp = await client.get("/api/v1/meetings", headers=auth)
    assert [m["id"] for m in resp.json()] == [meeting_id]

    later = datetime(next_monday.year, next_monday.month, next_monday.day, 14, 0, tzinfo=UTC)
    resp = await client.put(
        f"/api/v1/meetings/{meeting_id}/reschedule", headers=auth, json={"start_time": later.isoformat()}
    )
    assert resp.status_code == 200
    assert datetime.fromisoformat(resp.json()["start_time"]) == later

    resp = await client.put(f"/api/v1/meetings/{meeting_id}/cancel", headers=auth)
    assert resp.json()["status"] == "CANCELLED"
    resp = await client.put(f"/api/v1/meetings/{meeting_id}/cancel", headers=auth)
    assert resp.status_code == 409
    assert resp.json()["code"] == "MEETING_NOT_SCHEDULED"

    resp = await client.get("/api/v1/meetings", headers=auth, params={"filter": "CANCELLED"})
    assert [m["id"] for m in resp.json()] == [meeting_id]
    resp = await client.get("/api/v1/meetings", headers=auth)
    assert resp.json() == []
