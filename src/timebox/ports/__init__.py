"""Ports - interfaces/protocols for external dependencies."""

from .calendar_provider import CalendarProvider
from .preferences_store import PreferencesStore
from .task_store import TaskStore

__all__ = [
    "CalendarProvider",
    "PreferencesStore",
    "TaskStore",
]
