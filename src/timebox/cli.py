"""timebox CLI - turn task estimates into calendar time."""

import json
import logging
import sys

import click

from .adapters import ConfigPreferencesStore, FileTaskStore, GoogleCalendarAdapter
from .config import Config, load_config
from .core.availability import DateRange
from .core.tasks import UNSET, Task, TaskStatus
from .errors import PartialFailure, TimeboxError
from .scheduler import Scheduler


def _scheduler(config: Config) -> Scheduler:
    return Scheduler(
        FileTaskStore(config.data_dir),
        ConfigPreferencesStore(config),
        timeout=config.calendar_timeout,
    )


def _calendar(config: Config) -> GoogleCalendarAdapter:
    return GoogleCalendarAdapter(
        token_dir=config.google_token_dir,
        calendar_id=config.calendar_id,
        client_secret_file=config.google_client_secret_file,
    )


def _fail(e: TimeboxError) -> None:
    click.echo(f"Error: {e.message}", err=True)
    if isinstance(e, PartialFailure):
        click.echo(f"{e.sessions_created} session(s) were booked before the failure.", err=True)
    sys.exit(1)


def _show_task(task: Task) -> None:
    click.echo(
        f"{task.id}  [{task.status.value:9}] {task.name} "
        f"({task.scheduled_minutes}/{task.estimated_duration} min)"
    )
    for s in task.sessions:
        click.echo(f"    {s.session_id}  {s.start.strftime('%a %m/%d')} {s.format()}")


@click.group()
@click.version_option(package_name="timebox")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, debug: bool):
    """timebox - schedule task estimates into free calendar time."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )
    ctx.obj = load_config()


@main.command()
@click.option("--status", "show_status", is_flag=True, help="Show whether a calendar is connected")
@click.option("--logout", is_flag=True, help="Remove the stored token")
@click.pass_obj
def auth(config: Config, show_status: bool, logout: bool):
    """Authenticate with Google Calendar."""
    adapter = _calendar(config)
    if show_status:
        if adapter.is_authenticated():
            click.echo(f"Authenticated ({adapter.label})")
        else:
            click.echo("Not authenticated. Run 'timebox auth'.")
        return

    if logout:
        if adapter.logout():
            click.echo("Logged out.")
        else:
            click.echo("No stored token.")
        return

    if not config.google_client_secret_file:
        click.echo("GOOGLE_CLIENT_SECRET_FILE not set in timebox.conf", err=True)
        sys.exit(1)

    if adapter.authenticate():
        click.echo(f"Token saved to {adapter._token_path}")
    else:
        click.echo("Authentication failed", err=True)
        sys.exit(1)


@main.command()
@click.argument("name")
@click.argument("minutes", type=int)
@click.option("--session", "session_length", type=int, default=None, help="Preferred session length in minutes")
@click.pass_obj
def add(config: Config, name: str, minutes: int, session_length: int | None):
    """Add a task to the backlog."""
    with _scheduler(config) as scheduler:
        try:
            task = scheduler.create_task(name, minutes, session_length)
        except TimeboxError as e:
            _fail(e)
    click.echo(f"Added {task.id} ({task.name}, {task.estimated_duration} min)")


@main.command("list")
@click.option("--status", type=click.Choice([s.value for s in TaskStatus]), default=None)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def list_tasks(config: Config, status: str | None, as_json: bool):
    """List tasks."""
    with _scheduler(config) as scheduler:
        tasks = scheduler.list_tasks(TaskStatus(status) if status else None)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in tasks], indent=2))
        return

    if not tasks:
        click.echo("No tasks.")
        return
    for task in tasks:
        _show_task(task)


@main.command()
@click.argument("task_id")
@click.option("--name", default=None)
@click.option("--minutes", type=int, default=None, help="New estimate in minutes")
@click.option("--session", "session_length", type=int, default=None, help="Preferred session length in minutes")
@click.pass_obj
def edit(config: Config, task_id: str, name: str | None, minutes: int | None, session_length: int | None):
    """Rename or re-estimate a task."""
    with _scheduler(config) as scheduler:
        try:
            task = scheduler.update_task(
                task_id,
                name=name,
                estimated_duration=minutes,
                session_preference=UNSET if session_length is None else session_length,
            )
        except TimeboxError as e:
            _fail(e)
    _show_task(task)


@main.command()
@click.argument("task_id")
@click.pass_obj
def rm(config: Config, task_id: str):
    """Delete a task and cancel its calendar events."""
    with _scheduler(config) as scheduler:
        try:
            task = scheduler.delete_task(_calendar(config), task_id)
        except TimeboxError as e:
            _fail(e)
    click.echo(f"Deleted {task.name}")


@main.command()
@click.option("--days", default=7, show_default=True, help="Number of days to search")
@click.option("--min", "min_duration", type=int, default=None, help="Shortest slot in minutes")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def slots(config: Config, days: int, min_duration: int | None, as_json: bool):
    """Show free time in the coming days."""
    with _scheduler(config) as scheduler:
        try:
            free = scheduler.find_slots(_calendar(config), DateRange.next_days(days), min_duration)
        except TimeboxError as e:
            _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": s.id,
                        "start": s.start.isoformat(),
                        "end": s.end.isoformat(),
                        "duration": s.duration,
                        "date": s.date_label,
                        "time": s.time_label,
                    }
                    for s in free
                ],
                indent=2,
            )
        )
        return

    if not free:
        click.echo("No free slots.")
        return
    for slot in free:
        click.echo(f"  {slot.format()}")


@main.command()
@click.option("--days", default=1, show_default=True, help="Number of days to show, starting today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def events(config: Config, days: int, as_json: bool):
    """Show calendar events."""
    with _scheduler(config) as scheduler:
        try:
            found = scheduler.list_events(_calendar(config), DateRange.next_days(days))
        except TimeboxError as e:
            _fail(e)

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in found], indent=2))
        return

    if not found:
        click.echo("No events today." if days == 1 else "No events.")
        return

    current_date = None
    for event in found:
        event_date = event.start.date()
        if event_date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {event_date.strftime('%A, %B %d')}")
            current_date = event_date

        loc = f" @ {event.location}" if event.location else ""
        click.echo(f"  {event.format_time():11} {event.title}{loc}")


@main.command()
@click.argument("task_id")
@click.option("--days", default=14, show_default=True, help="Number of days to search")
@click.option("--session", "session_length", type=int, default=None, help="Session length in minutes")
@click.option("--yes", is_flag=True, help="Book without asking")
@click.pass_obj
def plan(config: Config, task_id: str, days: int, session_length: int | None, yes: bool):
    """Propose sessions for a task, then book them."""
    calendar = _calendar(config)
    with _scheduler(config) as scheduler:
        try:
            allocation = scheduler.propose_schedule(calendar, task_id, DateRange.next_days(days), session_length)
        except TimeboxError as e:
            _fail(e)

        if not allocation.sessions:
            click.echo("No free time found for this task.")
            return

        for s in allocation.sessions:
            click.echo(f"  {s.start.strftime('%a %m/%d')} {s.format()}")
        if not allocation.fully_covered:
            click.echo(f"{allocation.remaining} min still unplaced.")

        if not yes and not click.confirm(f"Book {len(allocation.sessions)} session(s)?"):
            return

        try:
            result = scheduler.schedule_task(calendar, task_id, allocation.sessions, session_length)
        except TimeboxError as e:
            _fail(e)

    click.echo(
        f"Booked {result.sessions_created} session(s); "
        f"{result.total_scheduled} min scheduled, {result.remaining_duration} min remaining."
    )


@main.command()
@click.argument("task_id")
@click.argument("session_id")
@click.pass_obj
def unschedule(config: Config, task_id: str, session_id: str):
    """Cancel one session of a task."""
    with _scheduler(config) as scheduler:
        try:
            result = scheduler.unschedule_session(_calendar(config), task_id, session_id)
        except TimeboxError as e:
            _fail(e)
    click.echo(f"Removed session; {result.remaining_duration} min of {result.task.name} left to schedule.")
