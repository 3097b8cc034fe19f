"""Calendar events as read back from the external calendar."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CalendarEvent:
    """An event on the external calendar. All-day events start at local midnight."""

    event_id: str
    title: str
    start: datetime
    end: datetime | None
    all_day: bool = False
    location: str = ""

    def format_time(self) -> str:
        if self.all_day:
            return "All day"
        if self.end is None:
            return self.start.strftime("%H:%M")
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"

    def duration_minutes(self) -> int | None:
        """Event duration in minutes, or None if no end time."""
        if not self.end:
            return None
        return int((self.end - self.start).total_seconds() / 60)

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat() if self.end else None,
            "all_day": self.all_day,
            "location": self.location,
        }


def sort_events(events: list[CalendarEvent]) -> list[CalendarEvent]:
    """All-day events first within a day, then by start time."""
    return sorted(events, key=lambda e: (e.start.date(), not e.all_day, e.start))
