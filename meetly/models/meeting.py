import enum
from datetime import UTC, datetime

from pydantic import EmailStr
from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class MeetingStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"


class MeetingFilter(str, enum.Enum):
    UPCOMING = "UPCOMING"
    PAST = "PAST"
    CANCELLED = "CANCELLED"


class Meeting(SQLModel, table=True):
    __tablename__ = "meetings"
    __table_args__ = (
        # at most one active meeting per host start instant
        Index(
            "uq_meetings_host_active_start",
            "host_id",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'SCHEDULED'"),
            sqlite_where=text("status = 'SCHEDULED'"),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    host_id: int = Field(foreign_key="users.id", index=True)
    event_id: int = Field(foreign_key="events.id", index=True)
    guest_name: str
    guest_email: str
    additional_info: str | None = None
    start_time: datetime = Field(sa_type=DateTime(), index=True)
    end_time: datetime = Field(sa_type=DateTime())
    status: MeetingStatus = MeetingStatus.SCHEDULED
    meet_link: str | None = None
    calendar_event_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class MeetingCreate(SQLModel):
    start_time: datetime
    guest_name: str = Field(min_length=1, max_length=200)
    guest_email: EmailStr
    additional_info: str | None = None


class MeetingPublic(SQLModel):
    id: int
    event_id: int
    guest_name: str
    guest_email: str
    additional_info: str | None = None
    start_time: datetime
    end_time: datetime
    status: MeetingStatus
    meet_link: str | None = None
    created_at: datetime
