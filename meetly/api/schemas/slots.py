from datetime import date, datetime

from pydantic import BaseModel

from meetly.models.event import EventPublic
from meetly.models.user import UserPublic


class SlotInfo(BaseModel):
    start: datetime
    end: datetime


class AvailableSlotsResponse(BaseModel):
    timezone: str
    start_date: date
    end_date: date
    slots: list[SlotInfo]


class PublicEventsResponse(BaseModel):
    user: UserPublic
    events: list[EventPublic]


class PublicEventResponse(BaseModel):
    user: UserPublic
    event: EventPublic
