from starlette import status


class SchedulingError(Exception):
    """Base for expected, caller-facing scheduling conditions.

    Subclasses set `status_code`, a machine-readable `code` and a default `detail`.
    The API layer turns these into `{"detail": ..., "code": ...}` responses.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "SCHEDULING_ERROR"
    detail: str = "Scheduling error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidRange(SchedulingError):
    status_code = 422
    code = "INVALID_RANGE"
    detail = "The requested date range is empty, inverted or too long."


class SlotUnavailable(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "SLOT_UNAVAILABLE"
    detail = "This time is no longer available, please choose another slot."


class InvalidDuration(SchedulingError):
    status_code = 422
    code = "INVALID_DURATION"
    detail = "Event duration must be a positive number of minutes."


class TimezoneResolutionFailure(SchedulingError):
    status_code = 422
    code = "INVALID_TIMEZONE"
    detail = "Unknown timezone."


class UserNotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"
    detail = "User not found"


class EventTypeNotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "EVENT_NOT_FOUND"
    detail = "Event not found"


class EventTypeHasBookings(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "EVENT_HAS_BOOKINGS"
    detail = "Event has bookings and cannot be deleted. Make it private instead."


class MeetingNotFound(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "MEETING_NOT_FOUND"
    detail = "Meeting not found"


class MeetingNotScheduled(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    code = "MEETING_NOT_SCHEDULED"
    detail = "Meeting is cancelled"
