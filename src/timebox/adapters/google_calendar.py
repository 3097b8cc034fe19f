"""Google Calendar API adapter."""

import logging
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from timebox.core.events import CalendarEvent
from timebox.core.intervals import Interval
from timebox.errors import EventNotFound, ExternalServiceError, Unauthenticated

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]

# "Blueberry" in the Google Calendar palette
SESSION_COLOR_ID = "9"


class GoogleCalendarAdapter:
    """
    Reads busy time from and books sessions into a Google Calendar.

    Implements CalendarProvider protocol. One adapter per account: the
    credential lives in <token_dir>/token.json, or is passed in directly.
    """

    def __init__(
        self,
        token_dir: str,
        calendar_id: str = "primary",
        client_secret_file: str = "",
        label: str | None = None,
        credentials=None,
    ):
        self.token_dir = token_dir
        self.calendar_id = calendar_id
        self.client_secret_file = client_secret_file
        self.label = label or Path(token_dir).name
        self._credentials = credentials
        self._token_path = Path(token_dir).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        if self._credentials is not None:
            return self._credentials

        from google.auth.exceptions import RefreshError, TransportError
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            logger.warning(f"No token.json for {self.label} - run 'timebox auth'")
            return None

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
                self._token_path.write_text(creds.to_json())
                self._token_path.chmod(0o600)
            except (RefreshError, TransportError) as e:
                logger.warning(f"Failed to refresh token for {self.label}: {e}")
                return None

        self._credentials = creds
        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        if not creds:
            raise Unauthenticated(f"Google Calendar is not connected for {self.label}. Run 'timebox auth'.")
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def _execute(self, request, what: str):
        """Run an API request, translating failures into timebox errors."""
        import httplib2
        from google.auth.exceptions import RefreshError, TransportError
        from googleapiclient.errors import HttpError

        try:
            return request.execute()
        except HttpError as e:
            status = e.resp.status
            if status == 401:
                raise Unauthenticated(f"Google Calendar rejected the credential for {self.label}. Run 'timebox auth'.")
            if status in (404, 410):
                raise EventNotFound(f"{what}: event not found")
            raise ExternalServiceError(f"{what} failed (HTTP {status})")
        except RefreshError as e:
            raise Unauthenticated(f"Google Calendar token for {self.label} could not be refreshed: {e}")
        except (TransportError, httplib2.HttpLib2Error, OSError) as e:
            raise ExternalServiceError(f"{what} failed: {e}")

    def is_authenticated(self) -> bool:
        creds = self._get_credentials()
        return bool(creds) and creds.valid

    def authenticate(self) -> bool:
        """Run OAuth flow for this account. Returns True on success."""
        from google_auth_oauthlib.flow import InstalledAppFlow

        if not self.client_secret_file:
            logger.error("No client secret file configured")
            return False

        secret_path = Path(self.client_secret_file).expanduser()
        if not secret_path.exists():
            logger.error(f"Client secret file not found: {secret_path}")
            return False

        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0)

        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        self._token_path.chmod(0o600)
        self._credentials = creds
        return True

    def logout(self) -> bool:
        """Forget the stored credential. Returns False if there was none."""
        self._credentials = None
        if not self._token_path.exists():
            return False
        self._token_path.unlink()
        logger.info(f"Removed Google Calendar token for {self.label}")
        return True

    def list_busy_periods(self, time_min: datetime, time_max: datetime) -> list[Interval]:
        """Busy intervals from the freebusy endpoint."""
        service = self._build_service()
        request = service.freebusy().query(
            body={
                "timeMin": time_min.isoformat(),
                "timeMax": time_max.isoformat(),
                "items": [{"id": self.calendar_id}],
            }
        )
        result = self._execute(request, "Free/busy query")

        calendar = result.get("calendars", {}).get(self.calendar_id)
        if not calendar:
            return []
        for err in calendar.get("errors", []):
            logger.warning(f"Free/busy error for {self.calendar_id}: {err.get('reason')}")

        busy = []
        for item in calendar.get("busy", []):
            start = datetime.fromisoformat(item["start"])
            end = datetime.fromisoformat(item["end"])
            if start < end:
                busy.append(Interval(start, end))
        return busy

    def list_events(self, time_min: datetime, time_max: datetime, timezone: str) -> list[CalendarEvent]:
        """Events in the window, recurring events expanded, ordered by start."""
        service = self._build_service()
        tz = ZoneInfo(timezone)

        events = []
        page_token = None
        while True:
            request = service.events().list(
                calendarId=self.calendar_id,
                timeMin=time_min.isoformat(),
                timeMax=time_max.isoformat(),
                singleEvents=True,
                orderBy="startTime",
                timeZone=timezone,
                pageToken=page_token,
            )
            result = self._execute(request, "Event listing")

            for item in result.get("items", []):
                start_raw = item.get("start", {})
                end_raw = item.get("end", {})

                if "date" in start_raw:
                    # All-day event - local midnight so it sorts with timed events
                    start_dt = datetime.fromisoformat(start_raw["date"]).replace(tzinfo=tz)
                    end_dt = datetime.fromisoformat(end_raw["date"]).replace(tzinfo=tz) if "date" in end_raw else None
                    all_day = True
                elif "dateTime" in start_raw:
                    start_dt = datetime.fromisoformat(start_raw["dateTime"])
                    end_dt = datetime.fromisoformat(end_raw["dateTime"]) if "dateTime" in end_raw else None
                    all_day = False
                else:
                    continue

                events.append(
                    CalendarEvent(
                        event_id=item.get("id", ""),
                        title=item.get("summary", "Untitled"),
                        start=start_dt,
                        end=end_dt,
                        all_day=all_day,
                        location=item.get("location", ""),
                    )
                )

            page_token = result.get("nextPageToken")
            if not page_token:
                return events

    def create_event(self, summary: str, interval: Interval, timezone: str) -> str:
        """Insert an event for a work session and return its id."""
        service = self._build_service()
        request = service.events().insert(
            calendarId=self.calendar_id,
            body={
                "summary": summary,
                "description": "Scheduled task session",
                "start": {"dateTime": interval.start.isoformat(), "timeZone": timezone},
                "end": {"dateTime": interval.end.isoformat(), "timeZone": timezone},
                "colorId": SESSION_COLOR_ID,
            },
        )
        event = self._execute(request, "Event creation")
        logger.debug(f"Created event {event['id']} for {summary!r} at {interval.format()}")
        return event["id"]

    def delete_event(self, event_id: str) -> None:
        service = self._build_service()
        request = service.events().delete(calendarId=self.calendar_id, eventId=event_id)
        self._execute(request, f"Deleting event {event_id}")
