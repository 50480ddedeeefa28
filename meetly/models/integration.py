from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Integration(SQLModel, table=True):
    """Google Calendar credentials stored by the OAuth connect flow."""

    __tablename__ = "integrations"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    provider: str = "GOOGLE"
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = Field(default=None, sa_type=DateTime())
    calendar_id: str = "primary"
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
