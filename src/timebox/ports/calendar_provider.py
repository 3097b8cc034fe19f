"""Calendar provider interface."""

from datetime import datetime
from typing import Protocol

from timebox.core.events import CalendarEvent
from timebox.core.intervals import Interval


class CalendarProvider(Protocol):
    """
    Interface to the external calendar that holds the real bookings.

    Failures are reported as Unauthenticated, ExternalServiceError or
    EventNotFound from timebox.errors.
    """

    def is_authenticated(self) -> bool:
        """Whether a usable credential is available."""
        ...

    def list_busy_periods(self, time_min: datetime, time_max: datetime) -> list[Interval]:
        """Busy intervals between time_min and time_max."""
        ...

    def list_events(self, time_min: datetime, time_max: datetime, timezone: str) -> list[CalendarEvent]:
        """Events between time_min and time_max, ordered by start. All-day dates are read in timezone."""
        ...

    def create_event(self, summary: str, interval: Interval, timezone: str) -> str:
        """Create an event and return its external id."""
        ...

    def delete_event(self, event_id: str) -> None:
        """Delete an event by external id."""
        ...
