from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.core.config import settings
from meetly.models.event import EventType
from meetly.models.meeting import Meeting, MeetingStatus
from meetly.models.user import User
from meetly.services.availability_service import get_weekly_rule
from meetly.services.slot_engine import (
    AvailableSlots,
    BookedInterval,
    list_available_slots,
    resolve_timezone,
)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def from_naive_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


async def get_active_meetings(
    session: AsyncSession,
    host_id: int,
    start: datetime,
    end: datetime,
    exclude_meeting_id: int | None = None,
) -> list[BookedInterval]:
    """Non-cancelled meetings of a host overlapping [start, end)."""
    q = select(Meeting.start_time, Meeting.end_time).where(
        Meeting.host_id == host_id,
        Meeting.status == MeetingStatus.SCHEDULED,
        Meeting.start_time < to_naive_utc(end),
        Meeting.end_time > to_naive_utc(start),
    )
    if exclude_meeting_id is not None:
        q = q.where(Meeting.id != exclude_meeting_id)
    result = await session.execute(q)
    return [BookedInterval(from_naive_utc(s), from_naive_utc(e)) for s, e in result.all()]


async def get_available_slots_for_event(
    session: AsyncSession,
    host: User,
    event: EventType,
    start_date: date,
    end_date: date,
    display_timezone: str,
    now: datetime | None = None,
) -> AvailableSlots:
    rule = await get_weekly_rule(session, host)
    display_tz = resolve_timezone(display_timezone)
    # +-1 day covers any offset between the display and host timezones
    window_start = datetime.combine(start_date - timedelta(days=1), time.min, tzinfo=display_tz)
    window_end = datetime.combine(end_date + timedelta(days=2), time.min, tzinfo=display_tz)
    # range validation happens in the engine; skip the fetch for inverted ranges
    meetings = (
        await get_active_meetings(session, host.id, window_start, window_end) if end_date >= start_date else []
    )
    return list_available_slots(
        rule,
        event.duration,
        start_date,
        end_date,
        host.timezone,
        display_tz,
        meetings,
        now=now,
        min_notice_minutes=settings.min_booking_notice_minutes,
        max_range_days=settings.max_slot_range_days,
    )
