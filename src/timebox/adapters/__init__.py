"""Adapters - I/O implementations of ports."""

from .google_calendar import GoogleCalendarAdapter
from .file_task_store import FileTaskStore
from .config_preferences import ConfigPreferencesStore

__all__ = [
    "GoogleCalendarAdapter",
    "FileTaskStore",
    "ConfigPreferencesStore",
]
