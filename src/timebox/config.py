"""Configuration management for timebox."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from timebox.core.availability import WorkingHoursPolicy

logger = logging.getLogger(__name__)

TIMEBOX_HOME = Path(os.environ.get("TIMEBOX_HOME", Path.home() / "timebox"))
CONFIG_FILE = TIMEBOX_HOME / "config" / "timebox.conf"
DATA_DIR = TIMEBOX_HOME / "data"
TOKEN_DIR = TIMEBOX_HOME / "config" / "google"


@dataclass
class Config:
    """timebox configuration."""

    timezone: str = "UTC"
    work_hours: str = "09:00-17:00"
    default_session_length: int = 120
    min_session_length: int = 30
    max_session_length: int = 240
    google_client_secret_file: str = ""
    google_token_dir: str = str(TOKEN_DIR)
    calendar_id: str = "primary"
    # Seconds to wait for any single calendar call
    calendar_timeout: float = 30.0
    data_dir: str = str(DATA_DIR)

    def policy(self) -> WorkingHoursPolicy:
        """The working-hours policy described by this config."""
        return WorkingHoursPolicy.from_strings(
            self.work_hours,
            self.timezone,
            default_session_length=self.default_session_length,
            min_session_length=self.min_session_length,
            max_session_length=self.max_session_length,
        )


def _parse_number(key: str, value: str, cast, fallback):
    try:
        return cast(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {key.upper()} value: {value!r}")
        return fallback


def load_config(path: Path | None = None) -> Config:
    """Load configuration from timebox.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value[:1] in ('"', "'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "timezone":
                config.timezone = value
            case "work_hours":
                config.work_hours = value
            case "default_session_length":
                config.default_session_length = _parse_number(key, value, int, config.default_session_length)
            case "min_session_length":
                config.min_session_length = _parse_number(key, value, int, config.min_session_length)
            case "max_session_length":
                config.max_session_length = _parse_number(key, value, int, config.max_session_length)
            case "google_client_secret_file":
                config.google_client_secret_file = value
            case "google_token_dir":
                config.google_token_dir = value
            case "calendar_id":
                config.calendar_id = value
            case "calendar_timeout":
                config.calendar_timeout = _parse_number(key, value, float, config.calendar_timeout)
            case "data_dir":
                config.data_dir = value
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config
