"""Late token accounting.

Balances here are advisory for staff: nothing stops an instructor from
granting an exception that drives a student's balance below zero. The only
enforced path is a student spending a token on their own behalf.
"""
from __future__ import annotations

import typing as t
from collections import defaultdict
from datetime import datetime
from enum import Enum

from due_dates.config import LATE_TOKEN_HOURS
from due_dates.errors import LateTokenError
from due_dates.lab_schedule import as_instant
from due_dates.models import Assignment, DueDateException, TokenLedgerEntry


class LateTokenStatus(Enum):
    """Whether a student may spend a late token on an assignment."""
    ELIGIBLE = "ELIGIBLE"
    NO_LATE_SUBMISSIONS = "NO_LATE_SUBMISSIONS"
    NO_TOKENS_REMAINING = "NO_TOKENS_REMAINING"
    ASSIGNMENT_CAP_REACHED = "ASSIGNMENT_CAP_REACHED"
    DUE_DATE_PASSED = "DUE_DATE_PASSED"


STATUS_MESSAGES = {
    LateTokenStatus.ELIGIBLE: "A late token can be used on this assignment.",
    LateTokenStatus.NO_LATE_SUBMISSIONS: "No late submissions allowed.",
    LateTokenStatus.NO_TOKENS_REMAINING: "You have no remaining late tokens.",
    LateTokenStatus.ASSIGNMENT_CAP_REACHED: "You may not extend the due date for this assignment any further.",
    LateTokenStatus.DUE_DATE_PASSED: "Firm date: you have passed the due date.",
}


def remaining_tokens(class_allowance: int, consumed: int) -> int:
    """Tokens left out of ``class_allowance``. May be negative."""
    return class_allowance - consumed


def tokens_applied_to_assignment(grants: t.Iterable[DueDateException], assignment_id: int) -> int:
    """Net tokens consumed by ``grants`` on one assignment."""
    return sum(grant.tokens_consumed for grant in grants if grant.assignment_id == assignment_id)


def late_token_eligibility(
        assignment: Assignment,
        class_allowance: int,
        student_grants: t.Iterable[DueDateException],
        effective_due_date: datetime,
        now: datetime,
) -> LateTokenStatus:
    """Decides whether a student may spend one more late token.

    :param assignment: The assignment the token would extend.
    :param class_allowance: Tokens each student gets for the whole class.
    :param student_grants: Every exception attributable to the student, on any assignment.
    :param effective_due_date: The student's current due date for the assignment.
    :param now: Current instant.
    """
    grants = list(student_grants)
    if class_allowance == 0:
        return LateTokenStatus.NO_LATE_SUBMISSIONS

    consumed = sum(grant.tokens_consumed for grant in grants)
    if remaining_tokens(class_allowance, consumed) <= 0:
        return LateTokenStatus.NO_TOKENS_REMAINING

    if tokens_applied_to_assignment(grants, assignment.id) >= assignment.max_late_tokens:
        return LateTokenStatus.ASSIGNMENT_CAP_REACHED

    if as_instant(effective_due_date) < as_instant(now):
        return LateTokenStatus.DUE_DATE_PASSED

    return LateTokenStatus.ELIGIBLE


def consume_late_token(
        assignment: Assignment,
        student_id: str,
        class_allowance: int,
        student_grants: t.Iterable[DueDateException],
        effective_due_date: datetime,
        now: datetime,
        assignment_group_id: t.Optional[int] = None,
) -> DueDateException:
    """Builds the exception recording one spent late token.

    The exception targets the student's group when they have one for this
    assignment, otherwise the student. It is not saved here; its ``id`` is 0.

    :raises LateTokenError: If the student may not spend a token right now.
    """
    status = late_token_eligibility(assignment, class_allowance, student_grants, effective_due_date, now)
    if status is not LateTokenStatus.ELIGIBLE:
        raise LateTokenError(status, STATUS_MESSAGES[status])

    return DueDateException(
        id=0,
        assignment_id=assignment.id,
        hours=LATE_TOKEN_HOURS,
        minutes=0,
        tokens_consumed=1,
        student_id=None if assignment_group_id is not None else student_id,
        assignment_group_id=assignment_group_id,
        creator_id=student_id,
        note="Late token",
        created_at=now,
    )


def gift_tokens(
        assignment_id: int,
        student_id: str,
        tokens: int,
        creator_id: str,
        note: str = "",
        now: t.Optional[datetime] = None,
) -> DueDateException:
    """Builds a zero-length exception that gives ``tokens`` back to a student.

    :raises ValueError: If ``tokens`` is not positive.
    """
    if tokens <= 0:
        raise ValueError(f"Number of tokens to gift must be positive, got {tokens}")
    return DueDateException(
        id=0,
        assignment_id=assignment_id,
        hours=0,
        minutes=0,
        tokens_consumed=-tokens,
        student_id=student_id,
        creator_id=creator_id,
        note=note or f"Gifted {tokens} late token(s)",
        created_at=now,
    )


def roster_token_summary(
        student_ids: t.Iterable[str],
        grants: t.Iterable[DueDateException],
        group_members: t.Mapping[int, t.Iterable[str]],
        class_allowance: int,
) -> list[TokenLedgerEntry]:
    """Token usage per student for the whole class.

    Direct exceptions count for their student, group exceptions count for
    every member of the group.

    :param student_ids: Students to report on, in output order.
    :param grants: All exceptions in the class.
    :param group_members: Assignment group id -> member student ids.
    :param class_allowance: Tokens each student gets for the whole class.
    """
    used: dict[str, int] = defaultdict(int)
    gifted: dict[str, int] = defaultdict(int)

    for grant in grants:
        if grant.student_id is not None:
            targets: t.Iterable[str] = [grant.student_id]
        elif grant.assignment_group_id is not None:
            targets = group_members.get(grant.assignment_group_id, ())
        else:
            continue
        for student_id in targets:
            if grant.tokens_consumed > 0:
                used[student_id] += grant.tokens_consumed
            elif grant.tokens_consumed < 0:
                gifted[student_id] += -grant.tokens_consumed

    return [
        TokenLedgerEntry(
            student_id=student_id,
            used=used[student_id],
            gifted=gifted[student_id],
            remaining=remaining_tokens(class_allowance + gifted[student_id], used[student_id]),
        )
        for student_id in student_ids
    ]
