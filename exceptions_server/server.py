# -*- coding: utf-8 -*-
"""MCP tools for due-date exceptions and late tokens."""
from __future__ import annotations

import typing as t
from datetime import datetime

from fastmcp import FastMCP

from due_dates.models import DueDateBreakdown, DueDateException, TokenLedgerEntry
from due_dates.tokens import gift_tokens
from exceptions_server.formatting import format_exceptions, format_roster_tokens
from exceptions_server.store import store
from services.shared.models import CreateDueDateExceptionRequest

mcp = FastMCP("DueDateExceptionsServer")


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
    # Same input rules as the REST endpoint; raises pydantic.ValidationError
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
    store.get_assignment(assignment_id)
    return store.add_exception(DueDateException(id=0, **request.model_dump()))


def _delete_due_date_exception(exception_id: int) -> DueDateException:
    return store.delete_exception(exception_id)


def _list_due_date_exceptions(
        assignment_id: t.Optional[int] = None,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
) -> list[DueDateException]:
    return store.list_exceptions(assignment_id, student_id, assignment_group_id)


def _get_effective_due_date(assignment_id: int, student_id: str) -> DueDateBreakdown:
    return store.due_date_for(assignment_id, student_id)


def _get_remaining_tokens(student_id: str) -> TokenLedgerEntry:
    return store.token_ledger([student_id])[0]


def _use_late_token(assignment_id: int, student_id: str, now: t.Optional[datetime] = None) -> DueDateException:
    return store.use_late_token(assignment_id, student_id, now=now)


def _gift_late_tokens(
        assignment_id: int, student_id: str, tokens: int, creator_id: str, note: str = ""
) -> DueDateException:
    store.get_assignment(assignment_id)
    return store.add_exception(gift_tokens(assignment_id, student_id, tokens, creator_id, note))


def _show_due_date_exceptions(assignment_id: t.Optional[int] = None) -> str:
    return format_exceptions(store.list_exceptions(assignment_id=assignment_id), store.roster, store.time_zone)


def _show_roster_tokens() -> str:
    return format_roster_tokens(store.token_ledger(), store.roster, store.late_tokens_per_student)


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
    """Grants extra time on an assignment to a student or an assignment group.

    Extensions are cumulative: every exception for a student adds to their
    due date. Tokens consumed are recorded but the student's balance is not
    checked, so staff can always grant an extension.

    :param assignment_id: The assignment to extend.
    :param hours: Hours of extra time (0 or more).
    :param creator_id: Profile id of the staff member granting the extension.
    :param minutes: Extra minutes, 0-59.
    :param tokens_consumed: Late tokens charged to the student (0 for a free extension).
    :param student_id: Target student; give this or assignment_group_id.
    :param assignment_group_id: Target group; give this or student_id.
    :param note: Free-text note shown to staff.
    :return: The saved DueDateException.
    """
    return _create_due_date_exception(
        assignment_id, hours, creator_id, minutes, tokens_consumed, student_id, assignment_group_id, note
    )


@mcp.tool()
def delete_due_date_exception(exception_id: int) -> DueDateException:
    """Deletes a due-date exception permanently.

    :param exception_id: Id of the exception.
    :return: The deleted DueDateException.
    """
    return _delete_due_date_exception(exception_id)


@mcp.tool()
def list_due_date_exceptions(
        assignment_id: t.Optional[int] = None,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
) -> list[DueDateException]:
    """Lists due-date exceptions, oldest first, optionally filtered.

    :return: A list of DueDateException objects.
    """
    return _list_due_date_exceptions(assignment_id, student_id, assignment_group_id)


@mcp.tool()
def get_effective_due_date(assignment_id: int, student_id: str) -> DueDateBreakdown:
    """Computes a student's due date after lab scheduling and all extensions.

    :param assignment_id: The assignment.
    :param student_id: The student.
    :return: The original, lab-based and final due dates with extension totals.
    """
    return _get_effective_due_date(assignment_id, student_id)


@mcp.tool()
def get_remaining_tokens(student_id: str) -> TokenLedgerEntry:
    """Shows how many late tokens a student has used, been gifted and has left.

    The remaining count can be negative when staff charged more tokens than
    the student had.
    """
    return _get_remaining_tokens(student_id)


@mcp.tool()
def use_late_token(assignment_id: int, student_id: str) -> DueDateException:
    """Spends one of a student's late tokens for a fixed extension.

    Fails if the class allows no late tokens, the student has none left, the
    assignment's token cap is reached, or the student's due date has passed.
    """
    return _use_late_token(assignment_id, student_id)


@mcp.tool()
def gift_late_tokens(
        assignment_id: int, student_id: str, tokens: int, creator_id: str, note: str = ""
) -> DueDateException:
    """Gives late tokens back to a student without extending any due date."""
    return _gift_late_tokens(assignment_id, student_id, tokens, creator_id, note)


@mcp.tool()
def show_due_date_exceptions(assignment_id: t.Optional[int] = None) -> str:
    """Displays due-date exceptions in a formatted table.

    :param assignment_id: Only show exceptions for this assignment (optional).
    :return: Formatted table string, or a message if there are none.
    """
    return _show_due_date_exceptions(assignment_id)


@mcp.tool()
def show_roster_tokens() -> str:
    """Displays late token usage for every student in the class."""
    return _show_roster_tokens()


if __name__ == "__main__":
    mcp.run()
