"""Pure interval arithmetic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime

from timebox.errors import InvalidInput


@dataclass(frozen=True)
class Interval:
    """A half-open time interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInput(f"Interval must end after it starts: {self.start} >= {self.end}")

    def minutes(self) -> float:
        """Exact length in minutes, fractions included."""
        return (self.end - self.start).total_seconds() / 60

    def whole_minutes(self) -> int:
        """Length truncated to whole minutes."""
        return int(self.minutes())

    def duration_minutes(self) -> int:
        """Length rounded to the nearest minute, for reporting."""
        return round(self.minutes())

    def contains(self, dt: datetime) -> bool:
        return self.start <= dt < self.end

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def format(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')} ({self.duration_minutes()} min)"


def overlaps(a: Interval, b: Interval) -> bool:
    """True when a and b share any instant. Touching intervals do not overlap."""
    return a.start < b.end and b.start < a.end


def duration_minutes(a: Interval) -> int:
    return a.duration_minutes()


def clamp(a: Interval, bounds: Interval) -> Interval | None:
    """Clip a to bounds. Returns None if nothing is left."""
    start = max(a.start, bounds.start)
    end = min(a.end, bounds.end)
    if start >= end:
        return None
    return Interval(start, end)


def merge(intervals: list[Interval]) -> list[Interval]:
    """
    Merge overlapping or touching intervals.

    Returns a sorted, non-overlapping list.
    """
    merged: list[Interval] = []
    for iv in sorted(intervals, key=lambda i: i.start):
        if merged and iv.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, iv.end))
        else:
            merged.append(iv)
    return merged


def subtract(a: Interval, busy: list[Interval]) -> list[Interval]:
    """
    Remove every busy interval from a.

    Busy intervals are clamped to a's bounds first. The result is in
    ascending start order, never overlapping, never zero-length.
    """
    clipped = [c for c in (clamp(b, a) for b in busy) if c is not None]

    free = []
    cursor = a.start
    for b in merge(clipped):
        if b.start > cursor:
            free.append(Interval(cursor, b.start))
        cursor = max(cursor, b.end)

    if cursor < a.end:
        free.append(Interval(cursor, a.end))
    return free
