"""Pure session allocation - splits a task across free slots. No I/O."""

from dataclasses import dataclass
from datetime import timedelta

from timebox.errors import InvalidInput

from .availability import MAX_SESSION_LENGTH
from .intervals import Interval
from .sessions import Session
from .tasks import Task


@dataclass
class Allocation:
    """Result of splitting a task's duration across candidate slots."""

    sessions: list[Session]
    total_allocated: int
    remaining: int
    fully_covered: bool


def allocate(
    task: Task,
    candidate_slots: list,
    session_length_cap: int,
    min_session_minutes: int = 30,
    duration: int | None = None,
) -> Allocation:
    """
    Greedily cover a task's duration with one session per slot.

    Pure function - no I/O.

    Slots are consumed in the order given; the caller decides whether that
    is chronological or hand-picked. Each slot yields at most one session
    starting at the slot's start. A slot whose usable length falls below
    min_session_minutes is skipped.

    Args:
        task: The task to cover
        candidate_slots: Anything with start/end datetimes (Slot, Interval)
        session_length_cap: Longest session to produce, in minutes
        min_session_minutes: Shortest session to produce, in minutes
        duration: Minutes to cover (defaults to the task's estimate)

    Returns:
        Allocation with proposed sessions; total_allocated + remaining always
        equals the duration being covered
    """
    if not 0 < session_length_cap <= MAX_SESSION_LENGTH:
        raise InvalidInput(f"Session length must be 1-{MAX_SESSION_LENGTH} minutes, got {session_length_cap}")
    if min_session_minutes <= 0:
        raise InvalidInput(f"Minimum session length must be positive, got {min_session_minutes}")

    target = task.estimated_duration if duration is None else duration
    remaining = target
    sessions = []

    for slot in candidate_slots:
        if remaining <= 0:
            break

        available = Interval(slot.start, slot.end).whole_minutes()
        usable = min(available, session_length_cap, remaining)
        if usable < min_session_minutes:
            continue

        sessions.append(Session.proposed(Interval(slot.start, slot.start + timedelta(minutes=usable))))
        remaining -= usable

    return Allocation(
        sessions=sessions,
        total_allocated=target - remaining,
        remaining=remaining,
        fully_covered=remaining <= 0,
    )
