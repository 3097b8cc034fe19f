"""Preferences store backed by the timebox.conf file."""

from timebox.config import Config, load_config
from timebox.core.availability import WorkingHoursPolicy


class ConfigPreferencesStore:
    """Implements PreferencesStore protocol from a Config."""

    def __init__(self, config: Config | None = None):
        self.config = config or load_config()

    def get_working_hours_policy(self) -> WorkingHoursPolicy:
        return self.config.policy()
