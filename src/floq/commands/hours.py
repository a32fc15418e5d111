"""``floq hours`` -- record hours and show what has been recorded.

Typical workflow::

    floq hours track PRJ1001                       # 7.5 hours today
    floq hours track PRJ1001 --hours 4 --date 2024-03-01
    floq hours history                             # this work week
    floq hours history --from 2024-02-26 --to 2024-03-10
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

import typer

from floq.exceptions import InvalidUsageError
from floq.output import info, print_table, success

hours_app = typer.Typer(no_args_is_help=True)

_DATE_FORMATS = ["%Y-%m-%d"]


def _as_date(value: Optional[dt.datetime]) -> Optional[dt.date]:
    return value.date() if value is not None else None


@hours_app.command("track")
def track_command(
    project: str = typer.Argument(help="Project id, see `floq projects`."),
    date: Optional[dt.datetime] = typer.Option(
        None, "--date", "-d", formats=_DATE_FORMATS, help="Day to record hours on. Defaults to today."
    ),
    hours: float = typer.Option(7.5, "--hours", "-t", help="Total hours for the day on this project."),
) -> None:
    """Set the hours on a project for one day.

    Only the difference from what is already recorded is sent, so running
    the same command twice records the hours once.
    """
    from floq.client import FloqClient
    from floq.commands import resolve_user
    from floq.timestamps import format_hours, hours_to_minutes

    day = _as_date(date) or dt.date.today()
    minutes = hours_to_minutes(hours)

    user, settings = resolve_user()
    with FloqClient.from_user(user, settings) as client:
        current = client.get_minutes_on_project(project, day)
        difference = minutes - current
        if difference == 0:
            info(f"No change: {format_hours(minutes)} is already recorded on {project} for {day.isoformat()}.")
            return
        client.add_timestamp(project, day, difference)

    success(f"Recorded {format_hours(minutes)} on {project} for {day.isoformat()}.")


@hours_app.command("history")
def history_command(
    date: Optional[dt.datetime] = typer.Option(
        None, "--date", "-d", formats=_DATE_FORMATS, help="Show a single day."
    ),
    from_date: Optional[dt.datetime] = typer.Option(
        None, "--from", formats=_DATE_FORMATS, help="First day of the period (needs --to)."
    ),
    to_date: Optional[dt.datetime] = typer.Option(
        None, "--to", formats=_DATE_FORMATS, help="Last day of the period (needs --from)."
    ),
) -> None:
    """Show recorded hours per project per day.

    Defaults to Monday through Friday of the current week. Weekend days
    only get a column when something is recorded on them.
    """
    from floq.client import FloqClient
    from floq.commands import resolve_user
    from floq.timestamps import (
        column_title,
        current_workweek,
        format_hours,
        group_by_project,
        history_columns,
    )

    if date is not None and (from_date is not None or to_date is not None):
        raise InvalidUsageError("--date cannot be combined with --from/--to.")
    if (from_date is None) != (to_date is None):
        raise InvalidUsageError("--from and --to must be given together.")

    if date is not None:
        start = end = date.date()
    elif from_date is not None and to_date is not None:
        start, end = from_date.date(), to_date.date()
        if end < start:
            raise InvalidUsageError("--to must not be before --from.")
    else:
        start, end = current_workweek(dt.date.today())

    user, settings = resolve_user()
    with FloqClient.from_user(user, settings) as client:
        timestamps = client.get_timestamps_for_period(start, end)

    projects = group_by_project(timestamps)
    days = [start] if start == end else history_columns(start, end, projects)

    headers = ["PROJECT"] + [column_title(day) for day in days]
    rows = [
        [project.project_id]
        + [
            format_hours(minutes) if (minutes := project.minutes_on(day)) is not None else ""
            for day in days
        ]
        for project in projects
    ]
    print_table(headers, rows)
