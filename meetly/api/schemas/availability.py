from pydantic import BaseModel, Field, field_validator

from meetly.models.availability import DayAvailabilityPublic, DayOfWeek


class UpdateAvailabilityRequest(BaseModel):
    """The full week; partial updates are not accepted."""

    time_gap: int = Field(gt=0, le=24 * 60)
    timezone: str | None = None
    days: list[DayAvailabilityPublic]

    @field_validator("days")
    @classmethod
    def _whole_week(cls, days: list[DayAvailabilityPublic]) -> list[DayAvailabilityPublic]:
        if sorted(d.day.value for d in days) != sorted(d.value for d in DayOfWeek) or len(days) != 7:
            raise ValueError("days must list every weekday exactly once")
        for d in days:
            if d.start_time > d.end_time:
                raise ValueError(f"{d.day.value}: start_time must not be after end_time")
        return days
