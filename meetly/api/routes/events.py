from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.api.deps import get_current_user
from meetly.core.db import get_session
from meetly.models.event import EventCreate, EventPublic, EventUpdate
from meetly.models.user import User
from meetly.services.event_service import (
    create_event,
    delete_event,
    event_to_public,
    list_events_for_user,
    toggle_event_privacy,
    update_event,
)

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventPublic, status_code=status.HTTP_201_CREATED)
async def create(
    body: EventCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> EventPublic:
    return event_to_public(await create_event(session, current_user.id, body))


@router.get("", response_model=list[EventPublic])
async def list_mine(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[EventPublic]:
    return [event_to_public(e) for e in await list_events_for_user(session, current_user.id)]


@router.put("/{event_id}", response_model=EventPublic)
async def edit(
    event_id: int,
    body: EventUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> EventPublic:
    return event_to_public(await update_event(session, current_user.id, event_id, body))


@router.put("/{event_id}/toggle-privacy", response_model=EventPublic)
async def toggle_privacy(
    event_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> EventPublic:
    return event_to_public(await toggle_event_privacy(session, current_user.id, event_id))


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(
    event_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> None:
    await delete_event(session, current_user.id, event_id)
