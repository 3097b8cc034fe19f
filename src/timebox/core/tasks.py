"""Pure task domain logic and the scheduling state machine - no I/O dependencies."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from timebox.errors import InvalidInput, NotFound

from .sessions import Session


class TaskStatus(Enum):
    BACKLOG = "backlog"
    PARTIAL = "partial"
    SCHEDULED = "scheduled"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def compute_status(sessions: list[Session], estimated_duration: int) -> TaskStatus:
    """
    Status as a function of the booked sessions.

    Pure function - no I/O. Booking more than the estimate still counts as
    scheduled.
    """
    booked = sum(s.duration for s in sessions)
    if booked <= 0:
        return TaskStatus.BACKLOG
    if booked >= estimated_duration:
        return TaskStatus.SCHEDULED
    return TaskStatus.PARTIAL


@dataclass
class Task:
    """A unit of work with an estimated duration, split into sessions."""

    id: str
    name: str
    estimated_duration: int
    session_preference: int | None = None
    sessions: list[Session] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        _check_estimate(self.estimated_duration)

    @property
    def status(self) -> TaskStatus:
        return compute_status(self.sessions, self.estimated_duration)

    @property
    def scheduled_minutes(self) -> int:
        return sum(s.duration for s in self.sessions)

    @property
    def remaining_minutes(self) -> int:
        """Minutes still to book. Never negative."""
        return max(self.estimated_duration - self.scheduled_minutes, 0)

    @classmethod
    def new(cls, name: str, estimated_duration: int, session_preference: int | None = None) -> "Task":
        """Create a backlog task with a fresh id."""
        if not name or not name.strip():
            raise InvalidInput("Task name is required")
        return cls(
            id=str(uuid.uuid4()),
            name=name.strip(),
            estimated_duration=estimated_duration,
            session_preference=session_preference,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "estimated_duration": self.estimated_duration,
            "session_preference": self.session_preference,
            # Written for readers of the file; recomputed on load
            "status": self.status.value,
            "sessions": [s.to_dict() for s in self.sessions],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        return cls(
            id=data["id"],
            name=data["name"],
            estimated_duration=int(data["estimated_duration"]),
            session_preference=data.get("session_preference"),
            sessions=[Session.from_dict(s) for s in data.get("sessions", [])],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )


def _check_estimate(minutes: int) -> None:
    if minutes <= 0:
        raise InvalidInput(f"Estimated duration must be positive, got {minutes}")


def add_sessions(task: Task, new_sessions: list[Session]) -> Task:
    """Append sessions to a task."""
    task.sessions.extend(new_sessions)
    task.updated_at = _now()
    return task


def find_session(task: Task, session_id: str) -> Session:
    for s in task.sessions:
        if s.session_id == session_id:
            return s
    raise NotFound(f"Session {session_id} not found on task {task.id}")


def remove_session(task: Task, session_id: str) -> Session:
    """Remove a session from a task and return it."""
    session = find_session(task, session_id)
    task.sessions.remove(session)
    task.updated_at = _now()
    return session


# Marks an argument that was not passed, where None is a real value.
UNSET = object()


def update_details(
    task: Task,
    name: str | None = None,
    estimated_duration: int | None = None,
    session_preference=UNSET,
) -> Task:
    """Rename or re-estimate a task. Status follows from the sessions."""
    if name is not None:
        if not name.strip():
            raise InvalidInput("Task name is required")
        task.name = name.strip()
    if estimated_duration is not None:
        _check_estimate(estimated_duration)
        task.estimated_duration = estimated_duration
    if session_preference is not UNSET:
        task.session_preference = session_preference
    task.updated_at = _now()
    return task


def filter_by_status(tasks: list[Task], status: TaskStatus) -> list[Task]:
    return [t for t in tasks if t.status == status]
