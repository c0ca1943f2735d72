# -*- coding: utf-8 -*-
"""Tests for the due-date exceptions MCP tools."""
import typing as t
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from exceptions_server import server
from exceptions_server.store import store
from services.shared.models import CourseSnapshot, snapshot_to_course


@pytest.fixture(autouse=True)
def loaded_store(course_data: dict[str, t.Any]) -> None:
    """Load the sample course into the process-wide store used by the tools."""
    store.load_course(**snapshot_to_course(CourseSnapshot.model_validate(course_data)))
    yield
    store.reset()


@pytest.mark.asyncio
async def test_tools_are_registered() -> None:
    tools = await server.mcp.get_tools()

    assert {
        "create_due_date_exception",
        "delete_due_date_exception",
        "list_due_date_exceptions",
        "get_effective_due_date",
        "get_remaining_tokens",
        "use_late_token",
        "gift_late_tokens",
        "show_due_date_exceptions",
        "show_roster_tokens",
    } <= set(tools)


def test_create_and_compute() -> None:
    created = server._create_due_date_exception(1, 24, "prof", student_id="alice", note="Illness")

    breakdown = server._get_effective_due_date(1, "alice")

    assert created.id == 1
    assert breakdown.due_date == datetime(2024, 4, 11, 23, 59, tzinfo=timezone.utc)
    assert breakdown.totals.total_hours == 24


def test_create_rejects_invalid_minutes() -> None:
    with pytest.raises(ValidationError):
        server._create_due_date_exception(1, 0, "prof", minutes=60, student_id="alice")


def test_create_requires_a_target() -> None:
    with pytest.raises(ValidationError):
        server._create_due_date_exception(1, 24, "prof")


def test_create_for_unknown_assignment() -> None:
    with pytest.raises(KeyError):
        server._create_due_date_exception(99, 24, "prof", student_id="alice")


def test_staff_grants_may_overdraw_tokens() -> None:
    server._create_due_date_exception(1, 72, "prof", tokens_consumed=3, student_id="carol")

    assert server._get_remaining_tokens("carol").remaining == -1


def test_delete_and_list() -> None:
    first = server._create_due_date_exception(1, 24, "prof", student_id="alice")
    second = server._create_due_date_exception(3, 0, "prof", minutes=15, assignment_group_id=50)

    server._delete_due_date_exception(first.id)

    assert server._list_due_date_exceptions() == [second]
    assert server._list_due_date_exceptions(assignment_group_id=50) == [second]
    assert server._list_due_date_exceptions(student_id="alice") == []


def test_gift_then_show_roster_tokens() -> None:
    server._gift_late_tokens(1, "bob", 2, "prof")

    assert server._get_remaining_tokens("bob").remaining == 4
    table = server._show_roster_tokens()
    assert "LATE TOKENS" in table
    assert "Bob Brown" in table
    assert "Each student receives 2 late tokens" in table


def test_show_due_date_exceptions() -> None:
    assert server._show_due_date_exceptions() == "📅 No due date exceptions found."

    server._create_due_date_exception(1, 1, "prof", minutes=30, student_id="alice", note="Power outage")
    server._create_due_date_exception(3, 24, "prof", assignment_group_id=50)

    table = server._show_due_date_exceptions()
    assert "Alice Adams" in table
    assert "group 50" in table
    assert "Power outage" in table
    assert "Total: 2 exception(s)" in table
    assert "Total: 1 exception(s)" in server._show_due_date_exceptions(assignment_id=3)


def test_use_late_token_uses_store_clock() -> None:
    saved = server._use_late_token(3, "carol", now=datetime(2024, 4, 15, tzinfo=timezone.utc))

    assert saved.student_id == "carol"
    assert server._get_effective_due_date(3, "carol").due_date == datetime(2024, 4, 21, 23, 59, tzinfo=timezone.utc)
