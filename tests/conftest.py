import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import meetly.models  # noqa: E402,F401
from meetly.models.event import EventCreate, LocationType  # noqa: E402
from meetly.models.user import UserCreate  # noqa: E402
from meetly.services.event_service import create_event  # noqa: E402
from meetly.services.user_service import create_user  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def engine(anyio_backend):
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker, anyio_backend):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def host(session, anyio_backend):
    user = await create_user(session, UserCreate(email="host@example.com", name="Ada Host", timezone="UTC"))
    await session.commit()
    return user


@pytest.fixture
async def event(session, host, anyio_backend):
    ev = await create_event(
        session,
        host.id,
        EventCreate(title="Intro Call", duration=30, location_type=LocationType.OTHER),
    )
    await session.commit()
    return ev


@pytest.fixture
def next_monday() -> date:
    """A Monday at least a week ahead, so default working hours are bookable."""
    today = date.today()
    return today + timedelta(days=7 + (7 - today.weekday()) % 7)
