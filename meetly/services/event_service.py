import logging
import re
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.core.exceptions import EventTypeHasBookings, EventTypeNotFound
from meetly.models.event import EventCreate, EventPublic, EventType, EventUpdate
from meetly.models.meeting import Meeting
from meetly.models.user import User
from meetly.services.user_service import get_user_by_username

logger = logging.getLogger(__name__)


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:80] or "event"


async def _unique_slug(session: AsyncSession, user_id: int, title: str) -> str:
    base = slugify(title)
    result = await session.execute(
        select(EventType.slug).where(EventType.user_id == user_id, EventType.slug.startswith(base))
    )
    taken = set(result.scalars().all())
    slug, n = base, 2
    while slug in taken:
        slug = f"{base}-{n}"
        n += 1
    return slug


def event_to_public(event: EventType) -> EventPublic:
    return EventPublic.model_validate(event, from_attributes=True)


async def create_event(session: AsyncSession, user_id: int, data: EventCreate) -> EventType:
    event = EventType(
        user_id=user_id,
        title=data.title,
        description=data.description,
        duration=data.duration,
        location_type=data.location_type,
        slug=await _unique_slug(session, user_id, data.title),
    )
    session.add(event)
    await session.flush()
    await session.refresh(event)
    return event


async def list_events_for_user(session: AsyncSession, user_id: int) -> list[EventType]:
    result = await session.execute(
        select(EventType).where(EventType.user_id == user_id).order_by(EventType.created_at.desc())
    )
    return list(result.scalars().all())


async def get_event_for_owner(session: AsyncSession, user_id: int, event_id: int) -> EventType:
    result = await session.execute(
        select(EventType).where(EventType.id == event_id, EventType.user_id == user_id)
    )
    event = result.scalar_one_or_none()
    if not event:
        raise EventTypeNotFound
    return event


async def update_event(session: AsyncSession, user_id: int, event_id: int, data: EventUpdate) -> EventType:
    """Edit an event type. Existing meetings keep the duration they were booked with."""
    event = await get_event_for_owner(session, user_id, event_id)
    for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(event, key, value)
    event.updated_at = _utc_naive_now()
    session.add(event)
    await session.flush()
    return event


async def toggle_event_privacy(session: AsyncSession, user_id: int, event_id: int) -> EventType:
    event = await get_event_for_owner(session, user_id, event_id)
    event.is_private = not event.is_private
    event.updated_at = _utc_naive_now()
    session.add(event)
    await session.flush()
    return event


async def delete_event(session: AsyncSession, user_id: int, event_id: int) -> None:
    event = await get_event_for_owner(session, user_id, event_id)
    result = await session.execute(select(func.count()).select_from(Meeting).where(Meeting.event_id == event.id))
    if result.scalar_one():
        raise EventTypeHasBookings
    await session.delete(event)
    await session.flush()
    logger.info("Deleted event %s of user %s", event_id, user_id)


async def get_public_events_by_username(session: AsyncSession, username: str) -> tuple[User, list[EventType]]:
    user = await get_user_by_username(session, username)
    result = await session.execute(
        select(EventType)
        .where(EventType.user_id == user.id, EventType.is_private == False)  # noqa: E712
        .order_by(EventType.created_at.desc())
    )
    return user, list(result.scalars().all())


async def get_public_event_by_username_and_slug(
    session: AsyncSession, username: str, slug: str
) -> tuple[User, EventType]:
    """Private events are reported as missing to unauthenticated callers."""
    user = await get_user_by_username(session, username)
    result = await session.execute(
        select(EventType).where(
            EventType.user_id == user.id,
            EventType.slug == slug,
            EventType.is_private == False,  # noqa: E712
        )
    )
    event = result.scalar_one_or_none()
    if not event:
        raise EventTypeNotFound
    return user, event
