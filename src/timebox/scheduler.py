"""Scheduling use cases - coordinates the core, the stores and the calendar.

The calendar to talk to is passed into every call that needs it.
"""

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from .core.allocator import Allocation, allocate
from .core.availability import DateRange, Slot, WorkingHoursPolicy, busy_window, find_available_slots
from .core.events import CalendarEvent, sort_events
from .core.intervals import Interval
from .core.sessions import Session, SessionStatus
from .core.tasks import (
    UNSET,
    Task,
    TaskStatus,
    add_sessions,
    filter_by_status,
    find_session,
    remove_session,
    update_details,
)
from .errors import (
    EventNotFound,
    ExternalServiceError,
    InvalidInput,
    PartialFailure,
    TimeboxError,
    Unauthenticated,
)
from .ports import CalendarProvider, PreferencesStore, TaskStore

logger = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    task: Task
    sessions_created: int
    total_scheduled: int
    remaining_duration: int


@dataclass
class UnscheduleResult:
    task: Task
    remaining_duration: int


class TaskLocks:
    """One lock per task id, so reads and writes of a task's sessions never interleave."""

    def __init__(self):
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, task_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(task_id, threading.Lock())

    @contextmanager
    def hold(self, task_id: str):
        with self.get(task_id):
            yield

    def discard(self, task_id: str) -> None:
        """Forget the lock of a deleted task. Holders of the old lock keep it."""
        with self._guard:
            self._locks.pop(task_id, None)

    def __len__(self) -> int:
        return len(self._locks)


class Scheduler:
    """
    Books and cancels task sessions against an external calendar.

    Booking is a loop of independent steps, not a transaction: each session
    is saved as soon as its event exists, and a later failure leaves earlier
    sessions in place.
    """

    def __init__(
        self,
        tasks: TaskStore,
        preferences: PreferencesStore,
        timeout: float = 30.0,
        max_workers: int = 4,
    ):
        self.tasks = tasks
        self.preferences = preferences
        self.timeout = timeout
        self.locks = TaskLocks()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="timebox-calendar")

    def close(self) -> None:
        self._pool.shutdown(wait=False)

    def __enter__(self) -> "Scheduler":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ============== Calendar calls ==============

    def _call(self, fn, *args):
        """Run a calendar call, giving up after self.timeout seconds."""
        future = self._pool.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeoutError:
            future.cancel()
            raise ExternalServiceError(f"Calendar did not respond within {self.timeout:g}s")

    def _require_auth(self, calendar: CalendarProvider) -> None:
        if not self._call(calendar.is_authenticated):
            raise Unauthenticated("Not connected to a calendar. Run 'timebox auth' first.")

    def _cancel_event(self, calendar: CalendarProvider, event_id: str) -> None:
        """Delete an external event; failures are logged, never raised."""
        try:
            self._call(calendar.delete_event, event_id)
            logger.info(f"Deleted calendar event {event_id}")
        except EventNotFound:
            logger.info(f"Calendar event {event_id} was already gone")
        except TimeboxError as e:
            logger.warning(f"Could not delete calendar event {event_id}, leaving it orphaned: {e}")

    # ============== Helpers ==============

    @staticmethod
    def _session_length(requested: int | None, task: Task | None, policy: WorkingHoursPolicy) -> int:
        length = requested
        if length is None:
            length = (task.session_preference if task else None) or policy.default_session_length
        if not 0 < length <= policy.max_session_length:
            raise InvalidInput(f"Session length must be 1-{policy.max_session_length} minutes, got {length}")
        return length

    @staticmethod
    def _booking(slot, session_length: int) -> tuple[str, Interval]:
        """The session id and interval to book for one chosen slot."""
        end = min(slot.end, slot.start + timedelta(minutes=session_length))
        interval = Interval(slot.start, end)
        return getattr(slot, "session_id", None) or str(uuid.uuid4()), interval

    @staticmethod
    def _schedule_result(task: Task, created: int) -> ScheduleResult:
        return ScheduleResult(
            task=task,
            sessions_created=created,
            total_scheduled=task.scheduled_minutes,
            remaining_duration=task.remaining_minutes,
        )

    # ============== Tasks ==============

    def create_task(self, name: str, estimated_duration: int, session_preference: int | None = None) -> Task:
        if session_preference is not None:
            self._session_length(session_preference, None, self.preferences.get_working_hours_policy())
        task = Task.new(name, estimated_duration, session_preference)
        self.tasks.save(task)
        logger.info(f"Created task {task.id} ({task.name!r}, {task.estimated_duration} min)")
        return task

    def get_task(self, task_id: str) -> Task:
        return self.tasks.load(task_id)

    def list_tasks(self, status: TaskStatus | None = None) -> list[Task]:
        tasks = self.tasks.list()
        if status is not None:
            tasks = filter_by_status(tasks, status)
        return tasks

    def update_task(
        self,
        task_id: str,
        name: str | None = None,
        estimated_duration: int | None = None,
        session_preference=UNSET,
    ) -> Task:
        """Rename, re-estimate or change the session preference of a task."""
        with self.locks.hold(task_id):
            task = self.tasks.load(task_id)
            if session_preference is not UNSET and session_preference is not None:
                self._session_length(session_preference, None, self.preferences.get_working_hours_policy())
            update_details(
                task,
                name=name,
                estimated_duration=estimated_duration,
                session_preference=session_preference,
            )
            return self.tasks.save(task)

    def delete_task(self, calendar: CalendarProvider, task_id: str) -> Task:
        """Delete a task, cancelling the calendar events of its sessions first."""
        with self.locks.hold(task_id):
            task = self.tasks.load(task_id)
            event_ids = [s.calendar_event_id for s in task.sessions if s.calendar_event_id]
            if event_ids:
                self._require_auth(calendar)
            for event_id in event_ids:
                self._cancel_event(calendar, event_id)
            self.tasks.delete(task_id)
            self.locks.discard(task_id)
        logger.info(f"Deleted task {task_id} and {len(event_ids)} calendar event(s)")
        return task

    # ============== Availability ==============

    def find_slots(
        self,
        calendar: CalendarProvider,
        date_range: DateRange,
        min_duration: int | None = None,
        now: datetime | None = None,
    ) -> list[Slot]:
        """Free slots in date_range according to the calendar's busy periods."""
        policy = self.preferences.get_working_hours_policy()
        if min_duration is None:
            min_duration = policy.min_session_length
        elif min_duration <= 0:
            raise InvalidInput(f"Minimum slot length must be positive, got {min_duration}")
        window = busy_window(policy, date_range)
        busy = self._call(calendar.list_busy_periods, window.start, window.end)
        return find_available_slots(
            busy,
            policy,
            date_range,
            min_duration_minutes=min_duration,
            now=now,
        )

    def list_events(self, calendar: CalendarProvider, date_range: DateRange) -> list[CalendarEvent]:
        """Everything on the calendar for the days in date_range, in the policy's timezone."""
        policy = self.preferences.get_working_hours_policy()
        tz = policy.tz
        time_min = datetime.combine(date_range.start, time.min, tzinfo=tz)
        time_max = datetime.combine(date_range.end + timedelta(days=1), time.min, tzinfo=tz)
        events = self._call(calendar.list_events, time_min, time_max, policy.timezone)
        return sort_events(events)

    def propose_schedule(
        self,
        calendar: CalendarProvider,
        task_id: str,
        date_range: DateRange,
        session_length: int | None = None,
        now: datetime | None = None,
    ) -> Allocation:
        """Preview sessions covering what is left of a task. Books nothing."""
        task = self.tasks.load(task_id)
        policy = self.preferences.get_working_hours_policy()
        length = self._session_length(session_length, task, policy)
        slots = self.find_slots(calendar, date_range, now=now)
        return allocate(
            task,
            slots,
            length,
            min_session_minutes=policy.min_session_length,
            duration=task.remaining_minutes,
        )

    # ============== Booking ==============

    def schedule_task(
        self,
        calendar: CalendarProvider,
        task_id: str,
        chosen_slots: list,
        session_preference: int | None = None,
    ) -> ScheduleResult:
        """
        Book one calendar event and session per chosen slot, in the order given.

        Slots longer than the session length are shortened to it. The slots
        are not re-checked against the calendar before booking.

        Raises:
            NotFound: the task does not exist
            InvalidInput: no slots, or a bad session length
            Unauthenticated: no usable calendar credential
            ExternalServiceError: the first booking failed (any provider error
                from the first booking propagates as is); nothing changed
            PartialFailure: a later booking failed; earlier ones are kept
        """
        if not chosen_slots:
            raise InvalidInput("At least one slot is required")

        policy = self.preferences.get_working_hours_policy()

        with self.locks.hold(task_id):
            task = self.tasks.load(task_id)
            session_length = self._session_length(session_preference, task, policy)
            bookings = [self._booking(slot, session_length) for slot in chosen_slots]
            self._require_auth(calendar)

            created = 0
            for session_id, interval in bookings:
                try:
                    event_id = self._call(calendar.create_event, task.name, interval, policy.timezone)
                except TimeboxError as e:
                    if created == 0:
                        raise
                    logger.warning(f"Stopped booking {task.id} after {created} of {len(bookings)} sessions: {e}")
                    raise PartialFailure(
                        f"Booked {created} of {len(bookings)} sessions for {task.name!r}: {e}",
                        sessions_created=created,
                        result=self._schedule_result(task, created),
                    ) from e

                session = Session(
                    session_id=session_id,
                    interval=interval,
                    status=SessionStatus.SCHEDULED,
                    calendar_event_id=event_id,
                )
                task.session_preference = session_length
                add_sessions(task, [session])
                self.tasks.save(task)
                created += 1
                logger.info(f"Booked session {session_id} for task {task.id} at {interval.format()}")

            return self._schedule_result(task, created)

    def unschedule_session(self, calendar: CalendarProvider, task_id: str, session_id: str) -> UnscheduleResult:
        """
        Remove a session and its calendar event.

        The session is removed even when the event cannot be deleted; the
        calendar may keep an orphaned event.
        """
        with self.locks.hold(task_id):
            task = self.tasks.load(task_id)
            session = find_session(task, session_id)
            self._require_auth(calendar)

            if session.calendar_event_id:
                self._cancel_event(calendar, session.calendar_event_id)

            remove_session(task, session_id)
            self.tasks.save(task)
            logger.info(f"Unscheduled session {session_id} from task {task.id}")
            return UnscheduleResult(task=task, remaining_duration=task.remaining_minutes)
