"""Functional core - pure scheduling logic with no I/O."""

from .intervals import Interval, overlaps, subtract, duration_minutes, merge, clamp
from .availability import (
    MAX_SESSION_LENGTH,
    WorkingHoursPolicy,
    DateRange,
    Slot,
    find_available_slots,
    busy_window,
)
from .sessions import Session, SessionStatus
from .tasks import (
    Task,
    TaskStatus,
    compute_status,
    add_sessions,
    remove_session,
    find_session,
    update_details,
    UNSET,
    filter_by_status,
)
from .allocator import Allocation, allocate
from .events import CalendarEvent, sort_events

__all__ = [
    # Intervals
    "Interval",
    "overlaps",
    "subtract",
    "duration_minutes",
    "merge",
    "clamp",
    # Availability
    "MAX_SESSION_LENGTH",
    "WorkingHoursPolicy",
    "DateRange",
    "Slot",
    "find_available_slots",
    "busy_window",
    # Sessions
    "Session",
    "SessionStatus",
    # Tasks
    "Task",
    "TaskStatus",
    "compute_status",
    "add_sessions",
    "remove_session",
    "find_session",
    "update_details",
    "UNSET",
    "filter_by_status",
    # Allocation
    "Allocation",
    "allocate",
    # Events
    "CalendarEvent",
    "sort_events",
]
