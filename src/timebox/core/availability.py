"""Pure availability logic - finds free slots between busy periods. No I/O."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo

from timebox.errors import InvalidInput

from .intervals import Interval

MAX_SESSION_LENGTH = 240


@dataclass(frozen=True)
class WorkingHoursPolicy:
    """The daily working window and session-length defaults."""

    start: time
    end: time
    timezone: str = "UTC"
    default_session_length: int = 120
    min_session_length: int = 30
    max_session_length: int = MAX_SESSION_LENGTH

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInput(f"Working hours must end after they start: {self.start}-{self.end}")
        if not 0 < self.max_session_length <= MAX_SESSION_LENGTH:
            raise InvalidInput(f"Maximum session length must be 1-{MAX_SESSION_LENGTH} minutes")
        if not 0 < self.min_session_length <= self.max_session_length:
            raise InvalidInput("Minimum session length must be positive and not above the maximum")
        if not self.min_session_length <= self.default_session_length <= self.max_session_length:
            raise InvalidInput(
                f"Default session length must be {self.min_session_length}-{self.max_session_length} minutes"
            )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def window(self, day: date) -> Interval:
        """The working-hours interval for a calendar day, in the policy timezone."""
        return Interval(
            datetime.combine(day, self.start, tzinfo=self.tz),
            datetime.combine(day, self.end, tzinfo=self.tz),
        )

    @classmethod
    def from_strings(cls, work_hours: str, timezone: str = "UTC", **kwargs) -> "WorkingHoursPolicy":
        """Build a policy from a "HH:MM-HH:MM" string."""
        try:
            start_str, end_str = work_hours.split("-")
            start = time.fromisoformat(start_str.strip())
            end = time.fromisoformat(end_str.strip())
        except ValueError:
            raise InvalidInput(f"Invalid working hours: {work_hours!r} (expected HH:MM-HH:MM)")
        return cls(start=start, end=end, timezone=timezone, **kwargs)


@dataclass(frozen=True)
class DateRange:
    """An inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidInput(f"Date range ends before it starts: {self.start} > {self.end}")

    def days(self) -> Iterator[date]:
        d = self.start
        while d <= self.end:
            yield d
            d += timedelta(days=1)

    @classmethod
    def next_days(cls, days: int, today: date | None = None) -> "DateRange":
        """The range covering today and the following days-1 days."""
        today = today or date.today()
        return cls(today, today + timedelta(days=max(days, 1) - 1))


@dataclass(frozen=True)
class Slot:
    """
    A free interval available for booking.

    The id is unique per computation only; recomputing availability hands
    out new ids.
    """

    interval: Interval
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    @property
    def duration(self) -> int:
        return self.interval.duration_minutes()

    @property
    def date_label(self) -> str:
        return format_date(self.start)

    @property
    def time_label(self) -> str:
        return f"{format_clock(self.start)} - {format_clock(self.end)}"

    def format(self) -> str:
        return f"{self.date_label} {self.time_label} ({self.duration} min)"


def format_date(dt: datetime | date) -> str:
    """E.g. "Wed, Jan 15"."""
    return f"{dt.strftime('%a, %b')} {dt.day}"


def format_clock(dt: datetime) -> str:
    """E.g. "9:00 AM"."""
    return dt.strftime("%I:%M %p").lstrip("0")


def _ceil_minute(dt: datetime) -> datetime:
    if dt.second or dt.microsecond:
        return dt.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return dt


def busy_window(policy: WorkingHoursPolicy, date_range: DateRange) -> Interval:
    """The span to ask the calendar for busy periods covering date_range."""
    return Interval(policy.window(date_range.start).start, policy.window(date_range.end).end)


def find_available_slots(
    busy_periods: list[Interval],
    policy: WorkingHoursPolicy,
    date_range: DateRange,
    min_duration_minutes: int = 30,
    now: datetime | None = None,
) -> list[Slot]:
    """
    Find free slots between busy periods during working hours.

    Pure function - no I/O.

    Args:
        busy_periods: Occupied intervals (a snapshot, any order, may overlap)
        policy: Working hours applied to every day in the range
        date_range: Days to search, inclusive
        min_duration_minutes: Gaps shorter than this are not reported
        now: Current time; days that have already ended are skipped and the
            current day starts at the next whole minute. Defaults to the
            wall clock in the policy timezone.

    Returns:
        Slots in chronological order across the whole range
    """
    now = now or datetime.now(policy.tz)
    slots = []

    for day in date_range.days():
        window = policy.window(day)
        if now >= window.end:
            continue

        day_start = max(window.start, _ceil_minute(now))
        day_end = window.end
        if day_start >= day_end:
            continue

        day_busy = sorted(
            (b for b in busy_periods if b.start < day_end and b.end > day_start),
            key=lambda b: b.start,
        )

        cursor = day_start
        for busy in day_busy:
            if busy.start > cursor:
                gap = Interval(cursor, busy.start)
                if gap.minutes() >= min_duration_minutes:
                    slots.append(Slot(gap))
            # Never move backwards: overlapping busy periods must not reopen time
            cursor = max(cursor, busy.end)

        if cursor < day_end:
            gap = Interval(cursor, day_end)
            if gap.minutes() >= min_duration_minutes:
                slots.append(Slot(gap))

    return slots
