"""Preferences store interface."""

from typing import Protocol

from timebox.core.availability import WorkingHoursPolicy


class PreferencesStore(Protocol):
    """Interface for reading the user's scheduling preferences."""

    def get_working_hours_policy(self) -> WorkingHoursPolicy:
        """Working hours plus default, minimum and maximum session lengths."""
        ...
