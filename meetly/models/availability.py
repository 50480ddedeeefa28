import enum
from datetime import time

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class DayOfWeek(str, enum.Enum):
    # Declaration order matches date.weekday()
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class Availability(SQLModel, table=True):
    __tablename__ = "availabilities"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    time_gap: int = 30


class DayAvailability(SQLModel, table=True):
    __tablename__ = "day_availabilities"
    __table_args__ = (UniqueConstraint("availability_id", "day", name="uq_day_availabilities_day"),)
    id: int | None = Field(default=None, primary_key=True)
    availability_id: int = Field(foreign_key="availabilities.id", index=True)
    day: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool = True


class DayAvailabilityPublic(SQLModel):
    day: DayOfWeek
    start_time: time
    end_time: time
    is_available: bool


class AvailabilityPublic(SQLModel):
    time_gap: int
    timezone: str
    days: list[DayAvailabilityPublic]
