from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.api.schemas.slots import (
    AvailableSlotsResponse,
    PublicEventResponse,
    PublicEventsResponse,
    SlotInfo,
)
from meetly.core.db import get_session
from meetly.models.meeting import MeetingCreate, MeetingPublic
from meetly.services.calendar_service import mirror_meeting
from meetly.services.event_service import (
    event_to_public,
    get_public_event_by_username_and_slug,
    get_public_events_by_username,
)
from meetly.services.meeting_service import book_meeting, meeting_to_public
from meetly.services.slot_service import get_available_slots_for_event
from meetly.services.user_service import user_to_public

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/{username}", response_model=PublicEventsResponse)
async def public_events(username: str, session: AsyncSession = Depends(get_session)) -> PublicEventsResponse:
    user, events = await get_public_events_by_username(session, username)
    return PublicEventsResponse(user=user_to_public(user), events=[event_to_public(e) for e in events])


@router.get("/{username}/{slug}", response_model=PublicEventResponse)
async def public_event(
    username: str, slug: str, session: AsyncSession = Depends(get_session)
) -> PublicEventResponse:
    user, event = await get_public_event_by_username_and_slug(session, username, slug)
    return PublicEventResponse(user=user_to_public(user), event=event_to_public(event))


@router.get("/{username}/{slug}/slots", response_model=AvailableSlotsResponse)
async def available_slots(
    username: str,
    slug: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    timezone: str = Query("UTC", description="IANA timezone the slots are expressed in"),
    session: AsyncSession = Depends(get_session),
) -> AvailableSlotsResponse:
    """Free slots between two dates (inclusive, in `timezone`), ascending by start."""
    host, event = await get_public_event_by_username_and_slug(session, username, slug)
    slots = await get_available_slots_for_event(session, host, event, start_date, end_date, timezone)
    return AvailableSlotsResponse(
        timezone=timezone,
        start_date=start_date,
        end_date=end_date,
        slots=[SlotInfo(start=s.start, end=s.end) for s in slots],
    )


@router.post("/{username}/{slug}/bookings", response_model=MeetingPublic, status_code=status.HTTP_201_CREATED)
async def book(
    username: str,
    slug: str,
    body: MeetingCreate,
    session: AsyncSession = Depends(get_session),
) -> MeetingPublic:
    host, event = await get_public_event_by_username_and_slug(session, username, slug)
    meeting = await book_meeting(session, event, body)
    # the booking stands on its own; mirroring happens after it is committed
    await session.commit()
    await mirror_meeting(session, host, event, meeting)
    return meeting_to_public(meeting)
