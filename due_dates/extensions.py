# -*- coding: utf-8 -*-
"""Summing due-date exceptions."""
from __future__ import annotations

import typing as t
from functools import reduce

from due_dates.models import DueDateException, ExceptionTotals


def _add(totals: ExceptionTotals, grant: DueDateException) -> ExceptionTotals:
    return ExceptionTotals(
        total_hours=totals.total_hours + grant.hours,
        total_minutes=totals.total_minutes + grant.minutes,
        total_tokens_consumed=totals.total_tokens_consumed + grant.tokens_consumed,
    )


def aggregate_exceptions(grants: t.Iterable[DueDateException]) -> ExceptionTotals:
    """Sums hours, minutes and tokens across ``grants``.

    Values are added as-is: minutes are not carried into hours and negative
    values are not clamped. The caller decides which grants are relevant.

    :param grants: Exceptions for a single target.
    :return: The totals; all zero for an empty list.
    """
    return reduce(_add, grants, ExceptionTotals())


def select_relevant_exceptions(
        grants: t.Iterable[DueDateException],
        assignment_id: int,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
) -> list[DueDateException]:
    """Picks the exceptions that apply to one student on one assignment.

    A grant applies if it targets the student directly or targets the
    student's group for this assignment. Both kinds are kept when both exist.

    :param grants: Exceptions from any number of assignments and targets.
    :param assignment_id: The assignment of interest.
    :param student_id: The student, if any.
    :param assignment_group_id: The student's group for this assignment, if any.
    :return: Matching exceptions in their original order.
    """
    relevant = []
    for grant in grants:
        if grant.assignment_id != assignment_id:
            continue
        if student_id is not None and grant.student_id == student_id:
            relevant.append(grant)
        elif assignment_group_id is not None and grant.assignment_group_id == assignment_group_id:
            relevant.append(grant)
    return relevant


def format_extension(hours: int, minutes: int) -> str:
    """Formats an extension for display, carrying minutes into hours.

    >>> format_extension(0, 90)
    '1h 30m'
    """
    total = hours * 60 + minutes
    sign = "-" if total < 0 else ""
    whole_hours, rest = divmod(abs(total), 60)
    if rest == 0:
        return f"{sign}{whole_hours}h"
    if whole_hours == 0:
        return f"{sign}{rest}m"
    return f"{sign}{whole_hours}h {rest}m"
