"""Tests for hours formatting and week arithmetic."""

from __future__ import annotations

import datetime as dt

import pytest

from floq.exceptions import InvalidUsageError
from floq.models import ProjectTimestamp
from floq.timestamps import (
    column_title,
    current_workweek,
    format_hours,
    group_by_project,
    history_columns,
    hours_to_minutes,
    week_end,
    week_start,
)

WEDNESDAY = dt.date(2024, 3, 6)


def _ts(project_id: str, day: dt.date, minutes: int) -> ProjectTimestamp:
    return ProjectTimestamp(
        project_id=project_id,
        project_name=f"Project {project_id}",
        customer_name="Blank",
        date=day,
        minutes=minutes,
    )


class TestFormatHours:
    @pytest.mark.parametrize(
        "minutes, expected",
        [(450, "7.5t"), (60, "1.0t"), (0, "0.0t"), (100, "1.6t"), (5, "0.0t"), (-90, "-1.5t")],
    )
    def test_format(self, minutes: int, expected: str) -> None:
        assert format_hours(minutes) == expected


class TestHoursToMinutes:
    def test_default_day(self) -> None:
        assert hours_to_minutes(7.5) == 450

    def test_rounds(self) -> None:
        assert hours_to_minutes(0.33) == 20

    def test_negative_rejected(self) -> None:
        with pytest.raises(InvalidUsageError):
            hours_to_minutes(-1)


class TestWeeks:
    def test_week_bounds(self) -> None:
        assert week_start(WEDNESDAY) == dt.date(2024, 3, 4)
        assert week_end(WEDNESDAY) == dt.date(2024, 3, 10)

    def test_sunday_belongs_to_its_week(self) -> None:
        assert week_start(dt.date(2024, 3, 10)) == dt.date(2024, 3, 4)

    def test_current_workweek(self) -> None:
        assert current_workweek(WEDNESDAY) == (dt.date(2024, 3, 4), dt.date(2024, 3, 8))

    def test_column_title(self) -> None:
        assert column_title(WEDNESDAY) == "2024-03-06 (Wed)"


class TestGrouping:
    def test_groups_and_sorts(self) -> None:
        monday, tuesday = dt.date(2024, 3, 4), dt.date(2024, 3, 5)
        grouped = group_by_project(
            [_ts("PRJ2", monday, 60), _ts("PRJ1", monday, 450), _ts("PRJ1", tuesday, 30)]
        )
        assert [p.project_id for p in grouped] == ["PRJ1", "PRJ2"]
        assert grouped[0].minutes_on(monday) == 450
        assert grouped[0].minutes_on(tuesday) == 30
        assert grouped[1].minutes_on(tuesday) is None

    def test_same_day_is_summed(self) -> None:
        grouped = group_by_project([_ts("PRJ1", WEDNESDAY, 60), _ts("PRJ1", WEDNESDAY, 30)])
        assert grouped[0].minutes_on(WEDNESDAY) == 90


class TestHistoryColumns:
    def test_weekend_skipped_without_entries(self) -> None:
        start, end = dt.date(2024, 3, 4), dt.date(2024, 3, 10)
        grouped = group_by_project([_ts("PRJ1", WEDNESDAY, 60)])
        days = history_columns(start, end, grouped)
        assert days == [dt.date(2024, 3, d) for d in range(4, 9)]

    def test_weekend_kept_with_entries(self) -> None:
        start, end = dt.date(2024, 3, 4), dt.date(2024, 3, 10)
        grouped = group_by_project([_ts("PRJ1", dt.date(2024, 3, 9), 60)])
        days = history_columns(start, end, grouped)
        assert dt.date(2024, 3, 9) in days
        assert dt.date(2024, 3, 10) not in days
