"""Availability engine: turns a host's weekly hours into bookable slots.

Everything here is a pure function of its inputs. Instants are handled as aware
datetimes; all arithmetic happens in UTC and each day's window is derived from the
wall-clock rule and that calendar date's offset, so DST transitions shift the
instants but never the wall-clock boundaries.
"""
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from meetly.core.exceptions import (
    InvalidDuration,
    InvalidRange,
    SlotUnavailable,
    TimezoneResolutionFailure,
)

MAX_RANGE_DAYS = 60


@dataclass(frozen=True)
class DayRule:
    is_available: bool
    start_time: time
    end_time: time


@dataclass(frozen=True)
class WeeklyRule:
    """Slot granularity plus one DayRule per weekday, Monday first."""

    time_gap_minutes: int
    days: tuple[DayRule, ...]

    def __post_init__(self) -> None:
        if len(self.days) != 7:
            raise ValueError("WeeklyRule needs exactly seven day rules")
        if self.time_gap_minutes <= 0:
            raise ValueError("time_gap_minutes must be positive")

    def for_date(self, d: date) -> DayRule:
        return self.days[d.weekday()]


@dataclass(frozen=True, order=True)
class BookedInterval:
    start: datetime
    end: datetime

    def overlaps(self, start: datetime, end: datetime) -> bool:
        # half-open [start, end)
        return start < self.end and self.start < end


@dataclass(frozen=True, order=True)
class BookableSlot:
    start: datetime
    end: datetime


def resolve_timezone(name: str | ZoneInfo | None) -> ZoneInfo:
    if isinstance(name, ZoneInfo):
        return name
    if not name:
        raise TimezoneResolutionFailure("Timezone is required")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise TimezoneResolutionFailure(f"Unknown timezone: {name}") from e


def check_duration(duration_minutes: int | None) -> int:
    if duration_minutes is None or isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidDuration
    if duration_minutes <= 0:
        raise InvalidDuration
    return duration_minutes


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def day_window(rule: WeeklyRule, d: date, host_tz: ZoneInfo) -> tuple[datetime, datetime] | None:
    """Absolute [start, end) of the host's working hours on date `d`, or None."""
    day = rule.for_date(d)
    if not day.is_available:
        return None
    start = datetime.combine(d, day.start_time, tzinfo=host_tz).astimezone(UTC)
    end = datetime.combine(d, day.end_time, tzinfo=host_tz).astimezone(UTC)
    if end <= start:
        return None
    return start, end


def candidate_slots(
    rule: WeeklyRule, duration_minutes: int, d: date, host_tz: ZoneInfo
) -> Iterator[BookableSlot]:
    window = day_window(rule, d, host_tz)
    if window is None:
        return
    day_start, day_end = window
    gap = timedelta(minutes=rule.time_gap_minutes)
    duration = timedelta(minutes=duration_minutes)
    start = day_start
    while start + duration <= day_end:
        yield BookableSlot(start, start + duration)
        start += gap


def _is_free(slot: BookableSlot, meetings: Sequence[BookedInterval]) -> bool:
    return not any(m.overlaps(slot.start, slot.end) for m in meetings)


def _normalize_meetings(existing_meetings: Iterable[BookedInterval]) -> tuple[BookedInterval, ...]:
    return tuple(sorted(BookedInterval(as_utc(m.start), as_utc(m.end)) for m in existing_meetings))


@dataclass(frozen=True)
class AvailableSlots:
    """Lazy, restartable view over the bookable slots for a query.

    Iterating twice recomputes from the same captured inputs and yields the same
    ordered slots.
    """

    rule: WeeklyRule
    duration_minutes: int
    range_start: date
    range_end: date
    host_tz: ZoneInfo
    display_tz: ZoneInfo
    meetings: tuple[BookedInterval, ...]
    earliest_start: datetime
    window_start: datetime = field(init=False)
    window_end: datetime = field(init=False)

    def __post_init__(self) -> None:
        # range dates are calendar days in the display timezone
        start = datetime.combine(self.range_start, time.min, tzinfo=self.display_tz).astimezone(UTC)
        end = datetime.combine(self.range_end + timedelta(days=1), time.min, tzinfo=self.display_tz).astimezone(UTC)
        object.__setattr__(self, "window_start", start)
        object.__setattr__(self, "window_end", end)

    def _host_days(self) -> Iterator[date]:
        d = self.window_start.astimezone(self.host_tz).date()
        last = self.window_end.astimezone(self.host_tz).date()
        while d <= last:
            yield d
            d += timedelta(days=1)

    def __iter__(self) -> Iterator[BookableSlot]:
        for d in self._host_days():
            for slot in candidate_slots(self.rule, self.duration_minutes, d, self.host_tz):
                if not self.window_start <= slot.start < self.window_end:
                    continue
                if slot.start < self.earliest_start:
                    continue
                if not _is_free(slot, self.meetings):
                    continue
                yield BookableSlot(slot.start.astimezone(self.display_tz), slot.end.astimezone(self.display_tz))

    def to_list(self) -> list[BookableSlot]:
        return list(self)


def list_available_slots(
    rule: WeeklyRule,
    duration_minutes: int,
    range_start: date,
    range_end: date,
    host_timezone: str | ZoneInfo,
    display_timezone: str | ZoneInfo,
    existing_meetings: Iterable[BookedInterval],
    *,
    now: datetime | None = None,
    min_notice_minutes: int = 0,
    max_range_days: int = MAX_RANGE_DAYS,
) -> AvailableSlots:
    """Bookable slots between two inclusive dates, in ascending start order.

    Inputs are validated here, before any iteration, so caller errors surface at
    call time. `existing_meetings` should hold the host's non-cancelled meetings.
    """
    duration_minutes = check_duration(duration_minutes)
    host_tz = resolve_timezone(host_timezone)
    display_tz = resolve_timezone(display_timezone)
    if range_end < range_start:
        raise InvalidRange("End date is before start date")
    if (range_end - range_start).days + 1 > max_range_days:
        raise InvalidRange(f"Date range may span at most {max_range_days} days")

    now = as_utc(now) if now is not None else datetime.now(UTC)
    return AvailableSlots(
        rule=rule,
        duration_minutes=duration_minutes,
        range_start=range_start,
        range_end=range_end,
        host_tz=host_tz,
        display_tz=display_tz,
        meetings=_normalize_meetings(existing_meetings),
        earliest_start=now + timedelta(minutes=max(min_notice_minutes, 0)),
    )


def validate_and_reserve(
    rule: WeeklyRule,
    duration_minutes: int,
    requested_start: datetime,
    host_timezone: str | ZoneInfo,
    existing_meetings: Iterable[BookedInterval],
    *,
    now: datetime | None = None,
    min_notice_minutes: int = 0,
) -> BookableSlot:
    """Confirm that `requested_start` is still a free slot boundary.

    Regenerates the candidates of the host day containing the requested start and
    checks it against the given meetings snapshot. Returns the slot in UTC or raises
    SlotUnavailable.
    """
    duration_minutes = check_duration(duration_minutes)
    host_tz = resolve_timezone(host_timezone)
    requested = as_utc(requested_start)
    now = as_utc(now) if now is not None else datetime.now(UTC)

    if requested < now + timedelta(minutes=max(min_notice_minutes, 0)):
        raise SlotUnavailable("This time is in the past or too soon to book.")

    host_day = requested.astimezone(host_tz).date()
    slot = next(
        (s for s in candidate_slots(rule, duration_minutes, host_day, host_tz) if s.start == requested),
        None,
    )
    if slot is None:
        raise SlotUnavailable("This time is outside the host's available hours.")

    if not _is_free(slot, _normalize_meetings(existing_meetings)):
        raise SlotUnavailable
    return slot
