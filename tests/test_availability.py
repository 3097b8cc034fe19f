"""Tests for the availability engine."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from timebox.core.availability import (
    DateRange,
    Slot,
    WorkingHoursPolicy,
    busy_window,
    find_available_slots,
)
from timebox.core.intervals import Interval, clamp, merge, overlaps, subtract
from timebox.errors import InvalidInput

UTC = timezone.utc


# Fixtures
@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def policy():
    return WorkingHoursPolicy(start=time(9, 0), end=time(17, 0), timezone="UTC")


@pytest.fixture
def long_ago():
    return datetime(2025, 1, 1, tzinfo=UTC)


@pytest.fixture
def at(today):
    """Factory for datetimes on the test day."""
    def _at(hour: int, minute: int = 0, day: date | None = None) -> datetime:
        return datetime.combine(day or today, time(hour, minute), tzinfo=UTC)
    return _at


@pytest.fixture
def busy(at):
    def _busy(h1, m1, h2, m2, day=None) -> Interval:
        return Interval(at(h1, m1, day), at(h2, m2, day))
    return _busy


def spans(slots: list[Slot]) -> list[tuple[str, str, int]]:
    return [(s.start.strftime("%H:%M"), s.end.strftime("%H:%M"), s.duration) for s in slots]


class TestWorkingHoursPolicy:
    def test_window(self, policy, today, at):
        window = policy.window(today)
        assert window.start == at(9)
        assert window.end == at(17)

    def test_window_uses_policy_timezone(self, today):
        policy = WorkingHoursPolicy(time(9), time(17), "America/Toronto")
        window = policy.window(today)
        assert window.start.tzinfo == ZoneInfo("America/Toronto")
        assert window.start.astimezone(UTC).hour == 14

    def test_from_strings(self):
        policy = WorkingHoursPolicy.from_strings("08:30-16:00", "UTC", default_session_length=90)
        assert policy.start == time(8, 30)
        assert policy.end == time(16, 0)
        assert policy.default_session_length == 90

    def test_from_strings_invalid(self):
        with pytest.raises(InvalidInput):
            WorkingHoursPolicy.from_strings("nine to five")

    def test_rejects_inverted_hours(self):
        with pytest.raises(InvalidInput):
            WorkingHoursPolicy(time(17), time(9))

    def test_rejects_max_above_240(self):
        with pytest.raises(InvalidInput):
            WorkingHoursPolicy(time(9), time(17), max_session_length=300)


class TestDateRange:
    def test_days_inclusive(self, today):
        days = list(DateRange(today, today + timedelta(days=2)).days())
        assert days == [today, today + timedelta(days=1), today + timedelta(days=2)]

    def test_single_day(self, today):
        assert list(DateRange(today, today).days()) == [today]

    def test_rejects_reversed(self, today):
        with pytest.raises(InvalidInput):
            DateRange(today, today - timedelta(days=1))

    def test_next_days(self, today):
        r = DateRange.next_days(7, today)
        assert r.start == today
        assert r.end == today + timedelta(days=6)

    def test_busy_window(self, policy, today, at):
        window = busy_window(policy, DateRange(today, today + timedelta(days=1)))
        assert window.start == at(9)
        assert window.end == at(17, day=today + timedelta(days=1))


class TestFindAvailableSlots:
    def test_single_busy_period(self, policy, today, busy, long_ago):
        slots = find_available_slots(
            [busy(10, 0, 10, 30)], policy, DateRange(today, today), 30, now=long_ago
        )
        assert spans(slots) == [("09:00", "10:00", 60), ("10:30", "17:00", 390)]

    def test_no_busy_periods(self, policy, today, long_ago):
        slots = find_available_slots([], policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "17:00", 480)]

    def test_overlapping_busy_periods(self, policy, today, busy, long_ago):
        periods = [busy(10, 0, 12, 0), busy(11, 0, 11, 30), busy(11, 45, 13, 0)]
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "10:00", 60), ("13:00", "17:00", 240)]

    def test_contained_busy_does_not_reopen_time(self, policy, today, busy, long_ago):
        # The short meeting ends before the long one: the cursor must not move back
        periods = [busy(10, 0, 14, 0), busy(10, 30, 11, 0)]
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "10:00", 60), ("14:00", "17:00", 180)]

    def test_unsorted_busy_periods(self, policy, today, busy, long_ago):
        periods = [busy(15, 0, 16, 0), busy(10, 0, 11, 0)]
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "10:00", 60), ("11:00", "15:00", 240), ("16:00", "17:00", 60)]

    def test_busy_covers_whole_day(self, policy, today, busy, long_ago):
        slots = find_available_slots(
            [busy(8, 0, 18, 0)], policy, DateRange(today, today), 30, now=long_ago
        )
        assert slots == []

    def test_busy_straddling_day_start(self, policy, today, busy, long_ago):
        slots = find_available_slots(
            [busy(8, 0, 9, 30)], policy, DateRange(today, today), 30, now=long_ago
        )
        assert spans(slots) == [("09:30", "17:00", 450)]

    def test_busy_straddling_day_end(self, policy, today, busy, long_ago):
        slots = find_available_slots(
            [busy(16, 0, 19, 0)], policy, DateRange(today, today), 30, now=long_ago
        )
        assert spans(slots) == [("09:00", "16:00", 420)]

    def test_short_gaps_dropped(self, policy, today, busy, long_ago):
        periods = [busy(10, 0, 10, 30), busy(10, 50, 11, 0)]
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "10:00", 60), ("11:00", "17:00", 360)]

    def test_gap_exactly_min_duration_kept(self, policy, today, busy, long_ago):
        periods = [busy(9, 30, 16, 30)]
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "09:30", 30), ("16:30", "17:00", 30)]

    def test_multiple_days_chronological(self, policy, today, busy, long_ago):
        tomorrow = today + timedelta(days=1)
        periods = [busy(9, 0, 12, 0, day=tomorrow), busy(13, 0, 17, 0, day=today)]
        slots = find_available_slots(
            periods, policy, DateRange(today, tomorrow), 30, now=long_ago
        )
        assert [(s.start.date(), s.start.hour, s.end.hour) for s in slots] == [
            (today, 9, 13),
            (tomorrow, 12, 17),
        ]

    def test_elapsed_day_skipped(self, policy, today, at):
        tomorrow = today + timedelta(days=1)
        slots = find_available_slots([], policy, DateRange(today, tomorrow), 30, now=at(18))
        assert len(slots) == 1
        assert slots[0].start == at(9, day=tomorrow)

    def test_partially_elapsed_day_starts_now(self, policy, today, at):
        now = at(12, 15) + timedelta(seconds=30)
        slots = find_available_slots([], policy, DateRange(today, today), 30, now=now)
        assert spans(slots) == [("12:16", "17:00", 284)]

    def test_busy_before_now_ignored(self, policy, today, busy, at):
        slots = find_available_slots(
            [busy(10, 0, 11, 0)], policy, DateRange(today, today), 30, now=at(12)
        )
        assert spans(slots) == [("12:00", "17:00", 300)]

    def test_busy_in_other_timezone(self, policy, today, long_ago):
        toronto = ZoneInfo("America/Toronto")
        # 05:00-06:00 in Toronto is 10:00-11:00 UTC in January
        meeting = Interval(
            datetime.combine(today, time(5), tzinfo=toronto),
            datetime.combine(today, time(6), tzinfo=toronto),
        )
        slots = find_available_slots([meeting], policy, DateRange(today, today), 30, now=long_ago)
        assert spans(slots) == [("09:00", "10:00", 60), ("11:00", "17:00", 360)]

    def test_slot_ids_unique(self, policy, today, busy, long_ago):
        periods = [busy(10, 0, 11, 0), busy(12, 0, 13, 0)]
        slots = find_available_slots(
            periods, policy, DateRange(today, today + timedelta(days=3)), 30, now=long_ago
        )
        assert len({s.id for s in slots}) == len(slots)

    def test_labels(self, policy, today, busy, long_ago):
        slots = find_available_slots(
            [busy(10, 0, 13, 30)], policy, DateRange(today, today), 30, now=long_ago
        )
        assert slots[0].date_label == "Wed, Jan 15"
        assert slots[0].time_label == "9:00 AM - 10:00 AM"
        assert slots[1].time_label == "1:30 PM - 5:00 PM"


class TestSlotProperties:
    """Properties that must hold for any busy list."""

    @pytest.fixture
    def periods(self, busy):
        return [
            busy(8, 0, 9, 10),
            busy(9, 30, 9, 45),
            busy(10, 0, 11, 0),
            busy(10, 30, 12, 0),
            busy(12, 20, 12, 40),
            busy(14, 0, 14, 5),
            busy(16, 45, 18, 0),
        ]

    def test_slots_are_free_ordered_and_long_enough(self, policy, today, periods, long_ago):
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        assert slots
        for slot in slots:
            assert slot.interval.minutes() >= 30
            assert not any(overlaps(slot.interval, b) for b in periods)
        for a, b in zip(slots, slots[1:]):
            assert a.end <= b.start

    def test_slots_busy_and_short_gaps_cover_window(self, policy, today, periods, long_ago):
        window = policy.window(today)
        slots = find_available_slots(periods, policy, DateRange(today, today), 30, now=long_ago)
        gaps = subtract(window, periods)
        short_gaps = [g for g in gaps if g.minutes() < 30]
        busy_in_window = merge([c for c in (clamp(b, window) for b in periods) if c])

        assert [s.interval for s in slots] == [g for g in gaps if g.minutes() >= 30]
        covered = sum(
            (i.end - i.start for i in [s.interval for s in slots] + short_gaps + busy_in_window),
            timedelta(),
        )
        assert covered == window.end - window.start
