from meetly.models.user import User, UserCreate, UserPublic
from meetly.models.availability import (
    Availability,
    AvailabilityPublic,
    DayAvailability,
    DayAvailabilityPublic,
    DayOfWeek,
)
from meetly.models.event import EventCreate, EventPublic, EventType, EventUpdate, LocationType
from meetly.models.meeting import Meeting, MeetingCreate, MeetingFilter, MeetingPublic, MeetingStatus
from meetly.models.integration import Integration

__all__ = [
    "User",
    "UserCreate",
    "UserPublic",
    "Availability",
    "AvailabilityPublic",
    "DayAvailability",
    "DayAvailabilityPublic",
    "DayOfWeek",
    "EventCreate",
    "EventPublic",
    "EventType",
    "EventUpdate",
    "LocationType",
    "Meeting",
    "MeetingCreate",
    "MeetingFilter",
    "MeetingPublic",
    "MeetingStatus",
    "Integration",
]
