# -*- coding: utf-8 -*-
"""Tests for the plain-text tables."""
from datetime import datetime, timezone

from due_dates.models import DueDateException
from exceptions_server.formatting import format_datetime, format_exceptions


def test_format_datetime_in_course_time_zone() -> None:
    due = datetime(2024, 3, 11, 3, 59, tzinfo=timezone.utc)

    assert format_datetime(due) == "Mon 3/11 3:59 AM"
    assert format_datetime(due, "America/New_York") == "Sun 3/10 11:59 PM"
    assert format_datetime(datetime(2024, 3, 11, 3, 59), "America/New_York") == "Sun 3/10 11:59 PM"
    assert format_datetime(None, "America/New_York") == "—"


def test_format_exceptions_shows_creation_in_course_time_zone() -> None:
    grant = DueDateException(
        id=1, assignment_id=1, hours=24, assignment_group_id=50,
        created_at=datetime(2024, 4, 9, 16, 30, tzinfo=timezone.utc),
    )

    table = format_exceptions([grant], {}, "America/Los_Angeles")

    assert "Tue 4/9 9:30 AM" in table
    assert "group 50" in table
