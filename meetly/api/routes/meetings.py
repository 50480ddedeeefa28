from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.api.deps import get_current_user
from meetly.api.schemas.meetings import HostMeetingCreate, RescheduleRequest
from meetly.core.db import get_session
from meetly.models.meeting import MeetingCreate, MeetingFilter, MeetingPublic
from meetly.models.user import User
from meetly.services.calendar_service import mirror_meeting, move_calendar_event, remove_calendar_event
from meetly.services.event_service import get_event_for_owner
from meetly.services.meeting_service import (
    book_meeting,
    cancel_meeting,
    list_meetings_for_host,
    meeting_to_public,
    reschedule_meeting,
)

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.get("", response_model=list[MeetingPublic])
async def list_my_meetings(
    filter_: MeetingFilter = Query(MeetingFilter.UPCOMING, alias="filter"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[MeetingPublic]:
    meetings = await list_meetings_for_host(session, current_user.id, filter_)
    return [meeting_to_public(m) for m in meetings]


@router.post("", response_model=MeetingPublic, status_code=status.HTTP_201_CREATED)
async def schedule(
    body: HostMeetingCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MeetingPublic:
    """Host-initiated booking; private event types are allowed here."""
    event = await get_event_for_owner(session, current_user.id, body.event_id)
    data = MeetingCreate.model_validate(body.model_dump(exclude={"event_id"}))
    meeting = await book_meeting(session, event, data)
    await session.commit()
    await mirror_meeting(session, current_user, event, meeting)
    return meeting_to_public(meeting)


@router.put("/{meeting_id}/cancel", response_model=MeetingPublic)
async def cancel(
    meeting_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MeetingPublic:
    meeting = await cancel_meeting(session, current_user.id, meeting_id)
    await session.commit()
    await remove_calendar_event(session, current_user, meeting)
    return meeting_to_public(meeting)


@router.put("/{meeting_id}/reschedule", response_model=MeetingPublic)
async def reschedule(
    meeting_id: int,
    body: RescheduleRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> MeetingPublic:
    meeting = await reschedule_meeting(session, current_user.id, meeting_id, body.start_time)
    await session.commit()
    if meeting.calendar_event_id:
        event = await get_event_for_owner(session, current_user.id, meeting.event_id)
        await move_calendar_event(session, current_user, event, meeting)
    return meeting_to_public(meeting)
