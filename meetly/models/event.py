import enum
from datetime import UTC, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class LocationType(str, enum.Enum):
    GOOGLE_MEET_AND_CALENDAR = "GOOGLE_MEET_AND_CALENDAR"
    PHYSICAL = "PHYSICAL"
    OTHER = "OTHER"


class EventType(SQLModel, table=True):
    __tablename__ = "events"
    __table_args__ = (UniqueConstraint("user_id", "slug", name="uq_events_user_slug"),)
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    title: str
    description: str | None = None
    duration: int = 30
    slug: str = Field(index=True)
    is_private: bool = False
    location_type: LocationType = LocationType.OTHER
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class EventCreate(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    duration: int = Field(gt=0, le=24 * 60)
    location_type: LocationType


class EventUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    duration: int | None = Field(default=None, gt=0, le=24 * 60)
    location_type: LocationType | None = None


class EventPublic(SQLModel):
    id: int
    title: str
    description: str | None = None
    duration: int
    slug: str
    is_private: bool
    location_type: LocationType
    created_at: datetime
    updated_at: datetime
