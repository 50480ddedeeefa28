from datetime import datetime

from pydantic import BaseModel

from meetly.models.meeting import MeetingCreate


class HostMeetingCreate(MeetingCreate):
    event_id: int


class RescheduleRequest(BaseModel):
    start_time: datetime
