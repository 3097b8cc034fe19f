"""Work sessions - the booked or proposed pieces of a task."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .intervals import Interval


class SessionStatus(Enum):
    PROPOSED = "proposed"
    SCHEDULED = "scheduled"


@dataclass
class Session:
    """A portion of a task's duration, bound to at most one calendar event."""

    session_id: str
    interval: Interval
    status: SessionStatus = SessionStatus.PROPOSED
    calendar_event_id: str | None = None

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    @property
    def duration(self) -> int:
        return self.interval.duration_minutes()

    def format(self) -> str:
        return self.interval.format()

    @classmethod
    def proposed(cls, interval: Interval) -> "Session":
        return cls(session_id=str(uuid.uuid4()), interval=interval)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration,
            "status": self.status.value,
            "calendar_event_id": self.calendar_event_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            session_id=data["session_id"],
            interval=Interval(
                datetime.fromisoformat(data["start"]),
                datetime.fromisoformat(data["end"]),
            ),
            status=SessionStatus(data.get("status", "scheduled")),
            calendar_event_id=data.get("calendar_event_id"),
        )
