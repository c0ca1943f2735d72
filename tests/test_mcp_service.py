# -*- coding: utf-8 -*-
"""Tests for the HTTP-backed MCP wrapper, run against the service in-process."""
import typing as t
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from due_dates.models import DueDateBreakdown, DueDateException
from exceptions_server import server
from mcp_wrappers.due_dates import mcp_service
from services.due_date_service.app import app
from services.shared.models import CourseSnapshot


@pytest.fixture(autouse=True)
def in_process_service(monkeypatch: pytest.MonkeyPatch, course_data: dict[str, t.Any]) -> None:
    """Route the wrapper's HTTP calls to the FastAPI app and load the sample course."""
    monkeypatch.setattr(mcp_service, "_http_client", lambda: TestClient(app))
    mcp_service._load_course(CourseSnapshot.model_validate(course_data))


def test_create_exception_round_trips_to_dataclass() -> None:
    created = mcp_service._create_due_date_exception(1, 24, "prof", student_id="alice", note="Illness")

    assert isinstance(created, DueDateException)
    assert created.id == 1
    assert created.note == "Illness"
    assert mcp_service._list_due_date_exceptions(assignment_id=1) == [created]
    assert mcp_service._list_due_date_exceptions(assignment_id=2) == []


def test_effective_due_date() -> None:
    mcp_service._create_due_date_exception(2, 0, "prof", minutes=30, student_id="alice")

    breakdown = mcp_service._get_effective_due_date(2, "alice")

    assert isinstance(breakdown, DueDateBreakdown)
    assert breakdown.due_date == datetime(2024, 4, 8, 15, 30, tzinfo=timezone.utc)
    assert breakdown.totals.total_minutes == 30


def test_tokens_and_gifts() -> None:
    mcp_service._gift_late_tokens(1, "carol", 1, "prof")

    entry = mcp_service._get_remaining_tokens("carol")

    assert (entry.used, entry.gifted, entry.remaining) == (0, 1, 3)


def test_delete_and_show() -> None:
    created = mcp_service._create_due_date_exception(1, 24, "prof", student_id="bob")

    assert "Bob Brown" in mcp_service._show_due_date_exceptions(assignment_id=1)
    assert mcp_service._delete_due_date_exception(created.id) == created
    assert mcp_service._show_due_date_exceptions() == "📅 No due date exceptions found."


def test_service_errors_become_runtime_errors() -> None:
    with pytest.raises(RuntimeError) as exc_info:
        mcp_service._get_effective_due_date(99, "alice")
    assert "404" in str(exc_info.value)

    with pytest.raises(RuntimeError) as exc_info:
        mcp_service._use_late_token(1, "alice")
    assert "409" in str(exc_info.value)


def test_show_roster_tokens() -> None:
    mcp_service._create_due_date_exception(3, 24, "prof", assignment_group_id=50, tokens_consumed=1)

    table = mcp_service._show_roster_tokens()

    assert table.startswith("🎟️ LATE TOKENS")
    assert "Alice Adams" in table and "Bob Brown" in table and "Carol Chen" in table


@pytest.mark.asyncio
async def test_tools_match_local_server() -> None:
    tools = set(await mcp_service.mcp.get_tools())

    assert tools == set(await server.mcp.get_tools()) | {"load_course"}
