from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from meetly.core.config import settings


def to_async_url(database_url: str) -> str:
    """Map a sync PostgreSQL URL onto asyncpg.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so those are
    stripped and SSL is enabled via connect_args instead.
    """
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres", "postgresql+asyncpg"):
        return database_url
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse(("postgresql+asyncpg", parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


async_database_url = to_async_url(settings.database_url)

_engine_kwargs: dict[str, Any] = {"echo": settings.env == "development", "pool_pre_ping": True}
if async_database_url.startswith("postgresql+asyncpg"):
    _engine_kwargs.update(pool_size=5, max_overflow=10, connect_args={"ssl": settings.env == "production"})

engine = create_async_engine(async_database_url, **_engine_kwargs)


def serialize_sqlite_writes(sqlite_engine: AsyncEngine) -> None:
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    SQLite has no row locks; taking the write lock up front serializes booking
    transactions the way SELECT ... FOR UPDATE on the host row does on PostgreSQL.
    """

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


if async_database_url.startswith("sqlite") and ":memory:" not in async_database_url:
    serialize_sqlite_writes(engine)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
