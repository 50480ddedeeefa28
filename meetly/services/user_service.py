import re
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetly.core.config import settings
from meetly.core.exceptions import UserNotFound
from meetly.models.user import User, UserCreate, UserPublic
from meetly.services.availability_service import create_default_availability
from meetly.services.slot_engine import resolve_timezone


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> User:
    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFound
    return user


async def _generate_username(session: AsyncSession, name: str) -> str:
    clean = re.sub(r"[^a-z0-9]", "", name.lower()) or "user"
    username = f"{clean}{uuid4().hex[:4]}"
    while (await session.execute(select(User.id).where(User.username == username))).first():
        username = f"{clean}{uuid4().hex[:4]}"
    return username


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    """Create a host with a generated username and the default weekly availability."""
    timezone = data.timezone or settings.default_timezone
    resolve_timezone(timezone)
    user = User(
        email=data.email,
        name=data.name,
        username=await _generate_username(session, data.name),
        timezone=timezone,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    await create_default_availability(session, user.id)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        name=user.name,
        username=user.username,
        timezone=user.timezone,
    )
