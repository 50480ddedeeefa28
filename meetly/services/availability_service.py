from datetime import time

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.core.config import settings
from meetly.core.exceptions import UserNotFound
from meetly.models.availability import (
    Availability,
    AvailabilityPublic,
    DayAvailability,
    DayAvailabilityPublic,
    DayOfWeek,
)
from meetly.models.user import User
from meetly.services.slot_engine import DayRule, WeeklyRule, resolve_timezone

DEFAULT_START = time(9, 0)
DEFAULT_END = time(17, 0)
_WEEKEND = (DayOfWeek.SATURDAY, DayOfWeek.SUNDAY)


def default_days() -> list[DayAvailabilityPublic]:
    """Mon-Fri 09:00-17:00, weekend off."""
    return [
        DayAvailabilityPublic(
            day=day,
            start_time=DEFAULT_START,
            end_time=DEFAULT_END,
            is_available=day not in _WEEKEND,
        )
        for day in DayOfWeek
    ]


async def create_default_availability(session: AsyncSession, user_id: int) -> Availability:
    availability = Availability(user_id=user_id, time_gap=settings.default_time_gap_minutes)
    session.add(availability)
    await session.flush()
    for d in default_days():
        session.add(
            DayAvailability(
                availability_id=availability.id,
                day=d.day,
                start_time=d.start_time,
                end_time=d.end_time,
                is_available=d.is_available,
            )
        )
    await session.flush()
    return availability


async def _get_availability_row(session: AsyncSession, user_id: int) -> Availability:
    result = await session.execute(select(Availability).where(Availability.user_id == user_id))
    availability = result.scalar_one_or_none()
    if availability is None:
        # hosts created before availability existed get the defaults lazily
        availability = await create_default_availability(session, user_id)
    return availability


async def _get_day_rows(session: AsyncSession, availability_id: int) -> dict[DayOfWeek, DayAvailability]:
    result = await session.execute(
        select(DayAvailability).where(DayAvailability.availability_id == availability_id)
    )
    return {row.day: row for row in result.scalars().all()}


async def get_availability(session: AsyncSession, user: User) -> AvailabilityPublic:
    availability = await _get_availability_row(session, user.id)
    rows = await _get_day_rows(session, availability.id)
    days = [
        DayAvailabilityPublic(
            day=day,
            start_time=rows[day].start_time,
            end_time=rows[day].end_time,
            is_available=rows[day].is_available,
        )
        if day in rows
        else DayAvailabilityPublic(day=day, start_time=DEFAULT_START, end_time=DEFAULT_END, is_available=False)
        for day in DayOfWeek
    ]
    return AvailabilityPublic(time_gap=availability.time_gap, timezone=user.timezone, days=days)


def to_weekly_rule(availability: AvailabilityPublic) -> WeeklyRule:
    by_day = {d.day: d for d in availability.days}
    return WeeklyRule(
        time_gap_minutes=availability.time_gap,
        days=tuple(
            DayRule(
                is_available=by_day[day].is_available,
                start_time=by_day[day].start_time,
                end_time=by_day[day].end_time,
            )
            for day in DayOfWeek
        ),
    )


async def get_weekly_rule(session: AsyncSession, user: User) -> WeeklyRule:
    return to_weekly_rule(await get_availability(session, user))


async def update_availability(
    session: AsyncSession, user_id: int, time_gap: int, timezone: str | None, days: list[DayAvailabilityPublic]
) -> AvailabilityPublic:
    """Replace the whole week in one go; the caller has validated all seven days are present."""
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound
    if timezone is not None:
        resolve_timezone(timezone)
        user.timezone = timezone
        session.add(user)

    availability = await _get_availability_row(session, user_id)
    availability.time_gap = time_gap
    session.add(availability)
    await session.execute(delete(DayAvailability).where(DayAvailability.availability_id == availability.id))
    for d in days:
        session.add(
            DayAvailability(
                availability_id=availability.id,
                day=d.day,
                start_time=d.start_time,
                end_time=d.end_time,
                is_available=d.is_available,
            )
        )
    await session.flush()
    return await get_availability(session, user)
