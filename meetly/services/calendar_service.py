"""Best-effort mirroring of confirmed bookings into the host's Google Calendar.

Nothing in here may fail a booking: every error is logged and turned into a
missing link.
"""
import logging
from datetime import UTC, datetime, timedelta

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.core.config import settings
from meetly.models.event import EventType, LocationType
from meetly.models.integration import Integration
from meetly.models.meeting import Meeting
from meetly.models.user import User
from meetly.services.slot_service import from_naive_utc

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.google_api_timeout_seconds)


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


async def get_integration(session: AsyncSession, user_id: int) -> Integration | None:
    result = await session.execute(
        select(Integration).where(Integration.user_id == user_id, Integration.provider == "GOOGLE")
    )
    return result.scalar_one_or_none()


async def get_valid_access_token(session: AsyncSession, integration: Integration) -> str | None:
    """Return a usable access token, refreshing it when it expires within 5 minutes."""
    if integration.expires_at is None or integration.expires_at > _utc_naive_now() + timedelta(minutes=5):
        return integration.access_token
    if not integration.refresh_token or not settings.google_calendar_enabled:
        logger.warning("Google token expired for user %s and cannot be refreshed", integration.user_id)
        return None
    async with _client() as client:
        resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "refresh_token": integration.refresh_token,
                "grant_type": "refresh_token",
            },
        )
    if resp.status_code != 200:
        logger.warning("Google token refresh failed: status=%s body=%s", resp.status_code, resp.text[:500])
        return None
    tokens = resp.json()
    access_token = tokens.get("access_token")
    if not access_token:
        return None
    integration.access_token = access_token
    integration.expires_at = _utc_naive_now() + timedelta(seconds=int(tokens.get("expires_in", 3600)))
    session.add(integration)
    await session.flush()
    return access_token


async def create_calendar_event(
    access_token: str, calendar_id: str, host: User, event: EventType, meeting: Meeting
) -> dict | None:
    body = {
        "summary": f"{event.title} with {meeting.guest_name}",
        "description": meeting.additional_info or event.description or "",
        "start": {"dateTime": from_naive_utc(meeting.start_time).isoformat(), "timeZone": host.timezone},
        "end": {"dateTime": from_naive_utc(meeting.end_time).isoformat(), "timeZone": host.timezone},
        "attendees": [{"email": meeting.guest_email, "displayName": meeting.guest_name}],
    }
    if event.location_type == LocationType.GOOGLE_MEET_AND_CALENDAR:
        body["conferenceData"] = {"createRequest": {"requestId": f"meetly-{meeting.id}"}}
    async with _client() as client:
        resp = await client.post(
            f"{GOOGLE_CALENDAR_API}/calendars/{calendar_id}/events",
            params={"conferenceDataVersion": 1, "sendUpdates": "all"},
            headers={"Authorization": f"Bearer {access_token}"},
            json=body,
        )
    if resp.status_code not in (200, 201):
        logger.warning("Google event insert failed: status=%s body=%s", resp.status_code, resp.text[:500])
        return None
    return resp.json()


async def mirror_meeting(session: AsyncSession, host: User, event: EventType, meeting: Meeting) -> str | None:
    """Create the calendar event for a confirmed meeting and store its link.

    Returns the joinable link, or None when the host has no integration or anything fails.
    """
    try:
        integration = await get_integration(session, host.id)
        if not integration:
            logger.debug("No Google integration for user %s, skipping calendar mirror", host.id)
            return None
        access_token = await get_valid_access_token(session, integration)
        if not access_token:
            return None
        created = await create_calendar_event(access_token, integration.calendar_id, host, event, meeting)
        if not created:
            return None
        meeting.calendar_event_id = created.get("id")
        meeting.meet_link = created.get("hangoutLink")
        session.add(meeting)
        await session.flush()
        return meeting.meet_link
    except Exception as e:
        logger.exception("Calendar mirroring failed for meeting %s: %s", meeting.id, e)
        # the booking itself is already committed; drop only the mirroring writes
        await session.rollback()
        await session.refresh(meeting)
        return None


async def remove_calendar_event(session: AsyncSession, host: User, meeting: Meeting) -> bool:
    if not meeting.calendar_event_id:
        return False
    try:
        integration = await get_integration(session, host.id)
        if not integration:
            return False
        access_token = await get_valid_access_token(session, integration)
        if not access_token:
            return False
        async with _client() as client:
            resp = await client.delete(
                f"{GOOGLE_CALENDAR_API}/calendars/{integration.calendar_id}/events/{meeting.calendar_event_id}",
                params={"sendUpdates": "all"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if resp.status_code not in (200, 204, 410):
            logger.warning("Google event delete failed: status=%s body=%s", resp.status_code, resp.text[:500])
            return False
        return True
    except Exception as e:
        logger.exception("Removing calendar event failed for meeting %s: %s", meeting.id, e)
        return False


async def move_calendar_event(session: AsyncSession, host: User, event: EventType, meeting: Meeting) -> str | None:
    """Replace the mirrored entry of a rescheduled meeting with one at the new time.

    The old link is cleared and committed before re-mirroring; a failed insert leaves no link.
    """
    if not await remove_calendar_event(session, host, meeting):
        return meeting.meet_link
    meeting.calendar_event_id = None
    meeting.meet_link = None
    session.add(meeting)
    await session.commit()
    return await mirror_meeting(session, host, event, meeting)
