from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from meetly.core.exceptions import InvalidDuration, InvalidRange, SlotUnavailable, TimezoneResolutionFailure
from meetly.services.slot_engine import (
    BookableSlot,
    BookedInterval,
    DayRule,
    WeeklyRule,
    list_available_slots,
    resolve_timezone,
    validate_and_reserve,
)

MONDAY = date(2025, 3, 10)
NOW = datetime(2025, 1, 1, tzinfo=UTC)
OFF = DayRule(False, time(9, 0), time(17, 0))


def utc(d: date, hour: int, minute: int = 0) -> datetime:
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=UTC)


def monday_only(start: time = time(9, 0), end: time = time(10, 0), gap: int = 30) -> WeeklyRule:
    return WeeklyRule(gap, (DayRule(True, start, end),) + (OFF,) * 6)


def every_day(start: time = time(9, 0), end: time = time(17, 0), gap: int = 30) -> WeeklyRule:
    return WeeklyRule(gap, (DayRule(True, start, end),) * 7)


def slots(rule, duration, start, end, host="UTC", display="UTC", meetings=(), **kwargs) -> list[BookableSlot]:
    kwargs.setdefault("now", NOW)
    return list(list_available_slots(rule, duration, start, end, host, display, meetings, **kwargs))


def test__monday_window_splits_into_two_slots() -> None:
    assert slots(monday_only(), 30, MONDAY, MONDAY) == [
        BookableSlot(utc(MONDAY, 9), utc(MONDAY, 9, 30)),
        BookableSlot(utc(MONDAY, 9, 30), utc(MONDAY, 10)),
    ]


def test__booked_slot_is_excluded() -> None:
    meetings = [BookedInterval(utc(MONDAY, 9), utc(MONDAY, 9, 30))]
    assert slots(monday_only(), 30, MONDAY, MONDAY, meetings=meetings) == [
        BookableSlot(utc(MONDAY, 9, 30), utc(MONDAY, 10)),
    ]


def test__trailing_partial_slot_is_dropped() -> None:
    assert slots(monday_only(), 45, MONDAY, MONDAY) == [BookableSlot(utc(MONDAY, 9), utc(MONDAY, 9, 45))]


@pytest.mark.parametrize(
    "gap,duration",
    [(30, 30), (15, 45), (30, 60), (60, 30), (20, 50)],
)
def test__partition_stays_inside_window(gap: int, duration: int) -> None:
    rule = every_day(time(8, 0), time(12, 10), gap)
    result = slots(rule, duration, MONDAY, MONDAY)
    window_start, window_end = utc(MONDAY, 8), utc(MONDAY, 12, 10)
    assert result
    for s in result:
        assert window_start <= s.start and s.end <= window_end
        assert s.end - s.start == timedelta(minutes=duration)
        assert (s.start - window_start) % timedelta(minutes=gap) == timedelta(0)
    starts = [s.start for s in result]
    assert starts == sorted(set(starts))
    # contiguous on the gap grid
    assert all(b - a == timedelta(minutes=gap) for a, b in zip(starts, starts[1:]))


def test__no_slot_overlaps_a_meeting() -> None:
    meetings = [
        BookedInterval(utc(MONDAY, 10, 10), utc(MONDAY, 10, 50)),
        BookedInterval(utc(MONDAY, 13), utc(MONDAY, 14, 30)),
        BookedInterval(utc(MONDAY, 16, 45), utc(MONDAY, 18)),
    ]
    result = slots(every_day(gap=15), 30, MONDAY, MONDAY, meetings=meetings)
    assert result
    for s in result:
        for m in meetings:
            assert not (s.start < m.end and m.start < s.end)
    assert BookableSlot(utc(MONDAY, 10, 45), utc(MONDAY, 11, 15)) not in result
    # touching a meeting boundary is not an overlap
    assert BookableSlot(utc(MONDAY, 14, 30), utc(MONDAY, 15)) in result
    assert BookableSlot(utc(MONDAY, 12, 30), utc(MONDAY, 13)) in result


def test__listing_is_restartable_and_idempotent() -> None:
    meetings = [BookedInterval(utc(MONDAY, 11), utc(MONDAY, 12))]
    listing = list_available_slots(every_day(), 30, MONDAY, MONDAY + timedelta(days=2), "UTC", "UTC", meetings, now=NOW)
    first, second = list(listing), list(listing)
    assert first == second
    assert first == slots(every_day(), 30, MONDAY, MONDAY + timedelta(days=2), meetings=meetings)


def test__unavailable_day_yields_nothing() -> None:
    tuesday = MONDAY + timedelta(days=1)
    meetings = [BookedInterval(utc(tuesday, 9), utc(tuesday, 10))]
    assert slots(monday_only(), 30, tuesday, tuesday, meetings=meetings) == []
    assert slots(monday_only(), 30, tuesday, tuesday) == []


def test__degenerate_window_yields_nothing() -> None:
    assert slots(monday_only(time(9, 0), time(9, 0)), 30, MONDAY, MONDAY) == []


@pytest.mark.parametrize(
    "days,tz",
    [
        ((date(2025, 3, 8), date(2025, 3, 10)), "America/New_York"),  # spring forward on 9 March
        ((date(2025, 11, 1), date(2025, 11, 3)), "America/New_York"),  # fall back on 2 November
        ((date(2025, 3, 29), date(2025, 3, 31)), "Europe/Berlin"),
        ((date(2025, 10, 25), date(2025, 10, 27)), "Europe/Berlin"),
    ],
)
def test__dst_keeps_wall_clock_boundaries(days: tuple[date, date], tz: str) -> None:
    zone = ZoneInfo(tz)
    result = slots(every_day(gap=60), 60, days[0], days[1], host=tz, display=tz)
    by_day: dict[date, list[BookableSlot]] = {}
    for s in result:
        by_day.setdefault(s.start.date(), []).append(s)

    assert sorted(by_day) == [days[0], days[0] + timedelta(days=1), days[1]]
    offsets = set()
    for d, day_slots in by_day.items():
        assert len(day_slots) == 8
        assert day_slots[0].start.astimezone(zone).time() == time(9, 0)
        assert day_slots[-1].end.astimezone(zone).time() == time(17, 0)
        offsets.add(day_slots[0].start.utcoffset())
    # the instant offset moved across the transition
    assert len(offsets) == 2


def test__slots_are_shown_in_display_timezone() -> None:
    result = slots(monday_only(), 30, MONDAY, MONDAY, display="Asia/Tokyo")
    tokyo = ZoneInfo("Asia/Tokyo")
    assert [(s.start.tzinfo, s.start.hour, s.start.minute) for s in result] == [(tokyo, 18, 0), (tokyo, 18, 30)]
    assert result[0].start == utc(MONDAY, 9)


def test__range_dates_follow_display_timezone() -> None:
    # Monday 09:00 UTC is still Sunday evening in Honolulu
    sunday = MONDAY - timedelta(days=1)
    assert len(slots(monday_only(), 30, sunday, sunday, display="Pacific/Honolulu")) == 2
    assert slots(monday_only(), 30, MONDAY, MONDAY, display="Pacific/Honolulu") == []


def test__past_slots_are_dropped() -> None:
    now = utc(MONDAY, 9, 15)
    assert slots(monday_only(), 30, MONDAY, MONDAY, now=now) == [BookableSlot(utc(MONDAY, 9, 30), utc(MONDAY, 10))]


def test__minimum_notice_is_applied() -> None:
    now = utc(MONDAY, 8)
    assert len(slots(monday_only(), 30, MONDAY, MONDAY, now=now)) == 2
    assert slots(monday_only(), 30, MONDAY, MONDAY, now=now, min_notice_minutes=75) == [
        BookableSlot(utc(MONDAY, 9, 30), utc(MONDAY, 10)),
    ]


@pytest.mark.parametrize(
    "start,end,max_days",
    [
        (MONDAY, MONDAY - timedelta(days=1), 60),
        (MONDAY, MONDAY + timedelta(days=60), 60),
        (MONDAY, MONDAY + timedelta(days=7), 7),
    ],
)
def test__invalid_range(start: date, end: date, max_days: int) -> None:
    with pytest.raises(InvalidRange):
        list_available_slots(every_day(), 30, start, end, "UTC", "UTC", [], now=NOW, max_range_days=max_days)


def test__full_range_is_accepted() -> None:
    result = slots(every_day(), 30, MONDAY, MONDAY + timedelta(days=59))
    assert len(result) == 60 * 16


@pytest.mark.parametrize("duration", [0, -30, None])
def test__invalid_duration(duration) -> None:
    with pytest.raises(InvalidDuration):
        list_available_slots(every_day(), duration, MONDAY, MONDAY, "UTC", "UTC", [], now=NOW)
    with pytest.raises(InvalidDuration):
        validate_and_reserve(every_day(), duration, utc(MONDAY, 9), "UTC", [], now=NOW)


@pytest.mark.parametrize("tz", ["Mars/Olympus_Mons", "", "../etc/passwd", None, "Europe", "America"])
def test__unknown_timezone(tz) -> None:
    with pytest.raises(TimezoneResolutionFailure):
        resolve_timezone(tz)
    with pytest.raises(TimezoneResolutionFailure):
        list_available_slots(every_day(), 30, MONDAY, MONDAY, "UTC", tz, [], now=NOW)


def test__validate_accepts_free_boundary() -> None:
    slot = validate_and_reserve(monday_only(), 30, utc(MONDAY, 9, 30), "UTC", [], now=NOW)
    assert slot == BookableSlot(utc(MONDAY, 9, 30), utc(MONDAY, 10))


def test__validate_accepts_offset_aware_request() -> None:
    berlin = datetime(2025, 3, 10, 10, 0, tzinfo=ZoneInfo("Europe/Berlin"))
    assert validate_and_reserve(monday_only(), 30, berlin, "UTC", [], now=NOW).start == utc(MONDAY, 9)


def test__validate_uses_host_day_in_host_timezone() -> None:
    # 09:00 in New York on Monday is 13:00 UTC (EDT)
    slot = validate_and_reserve(monday_only(), 30, utc(MONDAY, 13), "America/New_York", [], now=NOW)
    assert slot.end == utc(MONDAY, 13, 30)


@pytest.mark.parametrize(
    "requested",
    [
        utc(MONDAY, 9, 10),  # not on the gap grid
        utc(MONDAY, 10),  # window end
        utc(MONDAY, 8, 30),  # before hours
        utc(MONDAY + timedelta(days=1), 9),  # unavailable day
    ],
)
def test__validate_rejects_non_slots(requested: datetime) -> None:
    with pytest.raises(SlotUnavailable):
        validate_and_reserve(monday_only(), 30, requested, "UTC", [], now=NOW)


def test__validate_rejects_past_start() -> None:
    with pytest.raises(SlotUnavailable):
        validate_and_reserve(monday_only(), 30, utc(MONDAY, 9), "UTC", [], now=utc(MONDAY, 9, 1))


def test__validate_rejects_conflict() -> None:
    meetings = [BookedInterval(utc(MONDAY, 9, 15), utc(MONDAY, 9, 45))]
    with pytest.raises(SlotUnavailable):
        validate_and_reserve(monday_only(), 30, utc(MONDAY, 9, 30), "UTC", meetings, now=NOW)


def test__naive_request_is_treated_as_utc() -> None:
    slot = validate_and_reserve(monday_only(), 30, datetime(2025, 3, 10, 9, 0), "UTC", [], now=NOW)
    assert slot.start == utc(MONDAY, 9)


def test__second_booking_against_fresh_snapshot_fails() -> None:
    rule = monday_only()
    first = validate_and_reserve(rule, 30, utc(MONDAY, 9), "UTC", [], now=NOW)
    snapshot = [BookedInterval(first.start, first.end)]
    with pytest.raises(SlotUnavailable):
        validate_and_reserve(rule, 30, utc(MONDAY, 9), "UTC", snapshot, now=NOW)


def test__weekly_rule_needs_seven_days() -> None:
    with pytest.raises(ValueError):
        WeeklyRule(30, (OFF,) * 6)
    with pytest.raises(ValueError):
        WeeklyRule(0, (OFF,) * 7)
