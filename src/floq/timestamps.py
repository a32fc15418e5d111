"""Hours formatting, week arithmetic and grouping of recorded time."""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from floq.exceptions import InvalidUsageError
from floq.models import ProjectTimestamp, ProjectTimestamps

DEFAULT_HOURS = 7.5


def format_hours(minutes: int) -> str:
    """Render minutes as hours with one truncated decimal: ``450 -> "7.5t"``."""
    sign = "-" if minutes < 0 else ""
    hours, rest = divmod(abs(minutes), 60)
    return f"{sign}{hours}.{rest // 6}t"


def hours_to_minutes(hours: float) -> int:
    if hours < 0:
        raise InvalidUsageError(f"Hours cannot be negative: {hours}")
    return round(hours * 60)


def week_start(day: dt.date) -> dt.date:
    """Monday of *day*'s week."""
    return day - dt.timedelta(days=day.weekday())


def week_end(day: dt.date) -> dt.date:
    """Sunday of *day*'s week."""
    return week_start(day) + dt.timedelta(days=6)


def current_workweek(today: dt.date) -> tuple[dt.date, dt.date]:
    """Monday and Friday of *today*'s week."""
    monday = week_start(today)
    return monday, monday + dt.timedelta(days=4)


def iter_days(start: dt.date, end: dt.date) -> Iterable[dt.date]:
    day = start
    while day <= end:
        yield day
        day += dt.timedelta(days=1)


def group_by_project(timestamps: Iterable[ProjectTimestamp]) -> list[ProjectTimestamps]:
    """Fold per-day rows into one record per project, sorted by project id.

    Minutes for the same project and day are summed.
    """
    grouped: dict[str, ProjectTimestamps] = {}
    for ts in timestamps:
        entry = grouped.get(ts.project_id)
        if entry is None:
            entry = ProjectTimestamps(
                project_id=ts.project_id,
                project_name=ts.project_name,
                customer_name=ts.customer_name,
            )
            grouped[ts.project_id] = entry
        entry.timestamps[ts.date] = entry.timestamps.get(ts.date, 0) + ts.minutes
    return [grouped[key] for key in sorted(grouped)]


def history_columns(start: dt.date, end: dt.date, projects: list[ProjectTimestamps]) -> list[dt.date]:
    """Days to show as columns: weekdays always, weekend days only when something is recorded."""
    recorded = {day for project in projects for day in project.timestamps}
    return [day for day in iter_days(start, end) if day.weekday() < 5 or day in recorded]


def column_title(day: dt.date) -> str:
    return day.strftime("%Y-%m-%d (%a)")
