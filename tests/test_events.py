"""Tests for calendar events read back from the calendar."""

from datetime import datetime, timedelta, timezone

from timebox.core.events import CalendarEvent, sort_events

UTC = timezone.utc
START = datetime(2025, 1, 15, 9, 0, tzinfo=UTC)


class TestCalendarEvent:
    def test_format_time(self):
        event = CalendarEvent("e1", "Standup", START, START + timedelta(minutes=15))
        assert event.format_time() == "09:00-09:15"

    def test_format_time_without_end(self):
        assert CalendarEvent("e1", "Reminder", START, None).format_time() == "09:00"

    def test_all_day(self):
        event = CalendarEvent("e1", "Holiday", START.replace(hour=0), None, all_day=True)
        assert event.format_time() == "All day"
        assert event.duration_minutes() is None

    def test_to_dict(self):
        event = CalendarEvent("e1", "Standup", START, START + timedelta(minutes=15), location="Room 4")
        assert event.to_dict() == {
            "id": "e1",
            "title": "Standup",
            "start": "2025-01-15T09:00:00+00:00",
            "end": "2025-01-15T09:15:00+00:00",
            "all_day": False,
            "location": "Room 4",
        }


def test_sort_events_groups_days():
    next_day = CalendarEvent("e3", "Review", START + timedelta(days=1), None)
    late = CalendarEvent("e2", "Lunch", START + timedelta(hours=3), None)
    holiday = CalendarEvent("e1", "Holiday", START.replace(hour=0), None, all_day=True)
    early = CalendarEvent("e0", "Standup", START, None)

    assert [e.event_id for e in sort_events([next_day, late, holiday, early])] == ["e1", "e0", "e2", "e3"]
