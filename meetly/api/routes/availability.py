from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.api.deps import get_current_user
from meetly.api.schemas.availability import UpdateAvailabilityRequest
from meetly.core.db import get_session
from meetly.models.availability import AvailabilityPublic
from meetly.models.user import User
from meetly.services.availability_service import get_availability, update_availability

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/me", response_model=AvailabilityPublic)
async def my_availability(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> AvailabilityPublic:
    return await get_availability(session, current_user)


@router.put("", response_model=AvailabilityPublic)
async def replace_availability(
    body: UpdateAvailabilityRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> AvailabilityPublic:
    return await update_availability(session, current_user.id, body.time_gap, body.timezone, body.days)
