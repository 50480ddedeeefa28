import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.core.config import settings
from meetly.core.exceptions import MeetingNotFound, MeetingNotScheduled, SlotUnavailable, UserNotFound
from meetly.models.event import EventType
from meetly.models.meeting import Meeting, MeetingCreate, MeetingFilter, MeetingPublic, MeetingStatus
from meetly.models.user import User
from meetly.services.availability_service import get_weekly_rule
from meetly.services.slot_engine import BookableSlot, as_utc, validate_and_reserve
from meetly.services.slot_service import from_naive_utc, get_active_meetings, to_naive_utc

logger = logging.getLogger(__name__)


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def meeting_to_public(m: Meeting) -> MeetingPublic:
    return MeetingPublic(
        id=m.id,
        event_id=m.event_id,
        guest_name=m.guest_name,
        guest_email=m.guest_email,
        additional_info=m.additional_info,
        start_time=from_naive_utc(m.start_time),
        end_time=from_naive_utc(m.end_time),
        status=m.status,
        meet_link=m.meet_link,
        created_at=m.created_at,
    )


async def _lock_host(session: AsyncSession, host_id: int) -> User:
    """Serialize booking transactions per host. SQLite ignores FOR UPDATE and relies on BEGIN IMMEDIATE."""
    result = await session.execute(select(User).where(User.id == host_id).with_for_update())
    host = result.scalar_one_or_none()
    if not host:
        raise UserNotFound
    return host


async def _reserve(
    session: AsyncSession,
    host: User,
    duration_minutes: int,
    requested_start: datetime,
    now: datetime | None,
    exclude_meeting_id: int | None = None,
) -> BookableSlot:
    rule = await get_weekly_rule(session, host)
    requested = as_utc(requested_start)
    # a host day never spans more than a calendar day either side of the start
    meetings = await get_active_meetings(
        session,
        host.id,
        requested - timedelta(days=1),
        requested + timedelta(days=2),
        exclude_meeting_id=exclude_meeting_id,
    )
    return validate_and_reserve(
        rule,
        duration_minutes,
        requested,
        host.timezone,
        meetings,
        now=now,
        min_notice_minutes=settings.min_booking_notice_minutes,
    )


async def _flush_or_unavailable(session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError as e:
        # lost the race to a concurrent booking of the same start
        logger.info("Booking conflict on flush: %s", e.orig)
        raise SlotUnavailable from e


async def book_meeting(
    session: AsyncSession, event: EventType, data: MeetingCreate, now: datetime | None = None
) -> Meeting:
    """Validate the requested start against a fresh snapshot and insert the meeting.

    Runs inside the caller's transaction; the host row stays locked until it commits.
    """
    host = await _lock_host(session, event.user_id)
    slot = await _reserve(session, host, event.duration, data.start_time, now)
    meeting = Meeting(
        host_id=host.id,
        event_id=event.id,
        guest_name=data.guest_name,
        guest_email=data.guest_email,
        additional_info=data.additional_info,
        start_time=to_naive_utc(slot.start),
        end_time=to_naive_utc(slot.end),
        status=MeetingStatus.SCHEDULED,
    )
    session.add(meeting)
    await _flush_or_unavailable(session)
    await session.refresh(meeting)
    logger.info("Booked meeting %s for host %s at %s", meeting.id, host.id, slot.start.isoformat())
    return meeting


async def get_meeting_for_host(session: AsyncSession, host_id: int, meeting_id: int) -> Meeting:
    result = await session.execute(
        select(Meeting).where(Meeting.id == meeting_id, Meeting.host_id == host_id)
    )
    meeting = result.scalar_one_or_none()
    if not meeting:
        raise MeetingNotFound
    return meeting


async def cancel_meeting(session: AsyncSession, host_id: int, meeting_id: int) -> Meeting:
    meeting = await get_meeting_for_host(session, host_id, meeting_id)
    if meeting.status != MeetingStatus.SCHEDULED:
        raise MeetingNotScheduled("Meeting is already cancelled")
    meeting.status = MeetingStatus.CANCELLED
    meeting.updated_at = _utc_naive_now()
    session.add(meeting)
    await session.flush()
    logger.info("Cancelled meeting %s of host %s", meeting.id, host_id)
    return meeting


async def reschedule_meeting(
    session: AsyncSession, host_id: int, meeting_id: int, new_start: datetime, now: datetime | None = None
) -> Meeting:
    """Move a scheduled meeting, keeping the duration it was booked with."""
    host = await _lock_host(session, host_id)
    meeting = await get_meeting_for_host(session, host_id, meeting_id)
    if meeting.status != MeetingStatus.SCHEDULED:
        raise MeetingNotScheduled("Cancelled meetings cannot be rescheduled")
    duration = int((meeting.end_time - meeting.start_time).total_seconds()) // 60
    slot = await _reserve(session, host, duration, new_start, now, exclude_meeting_id=meeting.id)
    meeting.start_time = to_naive_utc(slot.start)
    meeting.end_time = to_naive_utc(slot.end)
    meeting.updated_at = _utc_naive_now()
    session.add(meeting)
    await _flush_or_unavailable(session)
    logger.info("Rescheduled meeting %s of host %s to %s", meeting.id, host_id, slot.start.isoformat())
    return meeting


async def list_meetings_for_host(
    session: AsyncSession, host_id: int, meeting_filter: MeetingFilter = MeetingFilter.UPCOMING
) -> list[Meeting]:
    now = _utc_naive_now()
    q = select(Meeting).where(Meeting.host_id == host_id)
    if meeting_filter == MeetingFilter.CANCELLED:
        q = q.where(Meeting.status == MeetingStatus.CANCELLED).order_by(Meeting.start_time.desc())
    elif meeting_filter == MeetingFilter.PAST:
        q = q.where(Meeting.status == MeetingStatus.SCHEDULED, Meeting.end_time <= now).order_by(
            Meeting.start_time.desc()
        )
    else:
        q = q.where(Meeting.status == MeetingStatus.SCHEDULED, Meeting.end_time > now).order_by(
            Meeting.start_time
        )
    result = await session.execute(q)
    return list(result.scalars().all())
