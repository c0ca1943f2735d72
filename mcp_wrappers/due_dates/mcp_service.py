"""
MCP wrapper for the due date service.

This module keeps the tool signatures of exceptions_server/server.py but
makes HTTP calls to the distributed due date service, and adds a load_course
tool for seeding that service with a course. It converts between the
dataclass models used by the MCP interface and the Pydantic models used
on the wire.
"""
from __future__ import annotations

import typing as t

import httpx
from fastmcp import FastMCP

from due_dates.config import DUE_DATE_SERVICE_TIMEOUT, DUE_DATE_SERVICE_URL
from due_dates.models import DueDateBreakdown, DueDateException, ExceptionTotals, TokenLedgerEntry
from services.shared.models import (
    CourseSnapshot,
    CreateDueDateExceptionRequest,
    DueDateException as PydanticDueDateException,
    EffectiveDueDateResponse,
    GiftTokensRequest,
    ShowDueDateExceptionsResponse,
    ShowRosterTokensResponse,
    TokenBalanceResponse,
    UseLateTokenRequest,
    exception_from_pydantic,
)


mcp = FastMCP("DueDateMCPWrapper")


def _http_client() -> httpx.Client:
    return httpx.Client(base_url=DUE_DATE_SERVICE_URL, timeout=DUE_DATE_SERVICE_TIMEOUT)


def _request(method: str, path: str, **kwargs: t.Any) -> t.Any:
    """Calls the due date service and returns the decoded JSON body.

    Raises:
        RuntimeError: On timeouts, error responses or connection problems
    """
    try:
        with _http_client() as client:
            response = client.request(method, path, **kwargs)
            response.raise_for_status()
        return response.json()

    except httpx.TimeoutException:
        raise RuntimeError(f"Due date service call {method} {path} timed out after {DUE_DATE_SERVICE_TIMEOUT} seconds")
    except httpx.HTTPStatusError as e:
        raise RuntimeError(f"HTTP error from due date service: {e.response.status_code} {e.response.text}")
    except Exception as e:
        raise RuntimeError(f"Error calling due date service: {str(e)}")


def _exception(data: dict[str, t.Any]) -> DueDateException:
    return exception_from_pydantic(PydanticDueDateException(**data))


def _ledger_entry(data: dict[str, t.Any]) -> TokenLedgerEntry:
    balance = TokenBalanceResponse(**data)
    return TokenLedgerEntry(
        student_id=balance.student_id,
        used=balance.used,
        gifted=balance.gifted,
        remaining=balance.remaining,
    )


def _load_course(snapshot: CourseSnapshot) -> dict[str, t.Any]:
    """Replace the service's course data with a snapshot."""
    return _request("POST", "/course", json=snapshot.model_dump(mode="json"))


def _create_due_date_exception(
        assignment_id: int,
        hours: int,
        creator_id: str,
        minutes: int = 0,
        tokens_consumed: int = 0,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
        note: str = "",
) -> DueDateException:
    """
    Grant an extension to a student or a group.

    This maintains the exact same signature as the local MCP tool
    but makes an HTTP call to the distributed due date service.
    """
    request = CreateDueDateExceptionRequest(
        assignment_id=assignment_id,
        student_id=student_id,
        assignment_group_id=assignment_group_id,
        hours=hours,
        minutes=minutes,
        tokens_consumed=tokens_consumed,
        creator_id=creator_id,
        note=note,
    )
    return _exception(_request("POST", "/exceptions", json=request.model_dump(mode="json")))


def _delete_due_date_exception(exception_id: int) -> DueDateException:
    return _exception(_request("DELETE", f"/exceptions/{exception_id}"))


def _list_due_date_exceptions(
        assignment_id: t.Optional[int] = None,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
) -> list[DueDateException]:
    params = {
        key: value
        for key, value in {
            "assignment_id": assignment_id,
            "student_id": student_id,
            "assignment_group_id": assignment_group_id,
        }.items()
        if value is not None
    }
    return [_exception(item) for item in _request("GET", "/exceptions", params=params)]


def _get_effective_due_date(assignment_id: int, student_id: str) -> DueDateBreakdown:
    """
    Compute a student's effective due date remotely.

    The response is converted back to the dataclass format used locally.
    """
    data = _request("GET", f"/assignments/{assignment_id}/due-date", params={"student_id": student_id})
    response = EffectiveDueDateResponse(**data)
    return DueDateBreakdown(
        original_due_date=response.original_due_date,
        lab_due_date=response.lab_due_date,
        due_date=response.due_date,
        totals=ExceptionTotals(**response.totals.model_dump()),
        has_lab_scheduling=response.has_lab_scheduling,
        lab_section_id=response.lab_section_id,
    )


def _get_remaining_tokens(student_id: str) -> TokenLedgerEntry:
    return _ledger_entry(_request("GET", f"/students/{student_id}/tokens"))


def _use_late_token(assignment_id: int, student_id: str) -> DueDateException:
    request = UseLateTokenRequest(student_id=student_id)
    return _exception(_request("POST", f"/assignments/{assignment_id}/late-token", json=request.model_dump()))


def _gift_late_tokens(
        assignment_id: int, student_id: str, tokens: int, creator_id: str, note: str = ""
) -> DueDateException:
    request = GiftTokensRequest(student_id=student_id, tokens=tokens, creator_id=creator_id, note=note)
    return _exception(_request("POST", f"/assignments/{assignment_id}/gift-tokens", json=request.model_dump()))


def _show_due_date_exceptions(assignment_id: t.Optional[int] = None) -> str:
    params = {"assignment_id": assignment_id} if assignment_id is not None else {}
    result = ShowDueDateExceptionsResponse(**_request("GET", "/exceptions/formatted", params=params))
    return result.formatted_exceptions


def _show_roster_tokens() -> str:
    return ShowRosterTokensResponse(**_request("GET", "/roster/tokens/formatted")).formatted_tokens


# MCP tool wrappers that call the raw functions
@mcp.tool()
def load_course(snapshot: CourseSnapshot) -> dict[str, t.Any]:
    """Replaces the due date service's course data with a snapshot.

    The snapshot holds assignments, lab sections and meetings, the roster,
    assignment groups, existing exceptions and the per-student token allowance.
    Returns counts of what was loaded.
    """
    return _load_course(snapshot)


@mcp.tool()
def create_due_date_exception(
        assignment_id: int,
        hours: int,
        creator_id: str,
        minutes: int = 0,
        tokens_consumed: int = 0,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
        note: str = "",
) -> DueDateException:
    """Grants extra time on an assignment to a student or an assignment group."""
    return _create_due_date_exception(
        assignment_id, hours, creator_id, minutes, tokens_consumed, student_id, assignment_group_id, note
    )


@mcp.tool()
def delete_due_date_exception(exception_id: int) -> DueDateException:
    """Deletes a due-date exception permanently."""
    return _delete_due_date_exception(exception_id)


@mcp.tool()
def list_due_date_exceptions(
        assignment_id: t.Optional[int] = None,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
) -> list[DueDateException]:
    """Lists due-date exceptions, oldest first, optionally filtered."""
    return _list_due_date_exceptions(assignment_id, student_id, assignment_group_id)


@mcp.tool()
def get_effective_due_date(assignment_id: int, student_id: str) -> DueDateBreakdown:
    """Computes a student's due date after lab scheduling and all extensions."""
    return _get_effective_due_date(assignment_id, student_id)


@mcp.tool()
def get_remaining_tokens(student_id: str) -> TokenLedgerEntry:
    """Shows how many late tokens a student has used, been gifted and has left."""
    return _get_remaining_tokens(student_id)


@mcp.tool()
def use_late_token(assignment_id: int, student_id: str) -> DueDateException:
    """Spends one of a student's late tokens for a fixed extension."""
    return _use_late_token(assignment_id, student_id)


@mcp.tool()
def gift_late_tokens(
        assignment_id: int, student_id: str, tokens: int, creator_id: str, note: str = ""
) -> DueDateException:
    """Gives late tokens back to a student without extending any due date."""
    return _gift_late_tokens(assignment_id, student_id, tokens, creator_id, note)


@mcp.tool()
def show_due_date_exceptions(assignment_id: t.Optional[int] = None) -> str:
    """Displays due-date exceptions in a formatted table."""
    return _show_due_date_exceptions(assignment_id)


@mcp.tool()
def show_roster_tokens() -> str:
    """Displays late token usage for every student in a formatted table."""
    return _show_roster_tokens()


if __name__ == "__main__":
    mcp.run()
