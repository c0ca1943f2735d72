"""Effective due date for one student on one assignment.

The effective due date is the lab-resolved base date plus every relevant
extension. Instructor views and student views both go through
``compute_effective_due_date`` so they always agree.
"""
from __future__ import annotations

import typing as t
from datetime import datetime, timedelta

from due_dates.errors import MissingDueDateError
from due_dates.extensions import aggregate_exceptions
from due_dates.lab_schedule import LabMeetingLookup, as_instant, resolve_effective_base_due_date
from due_dates.models import Assignment, DueDateBreakdown, DueDateException, ExceptionTotals


def apply_extensions(base: datetime, totals: ExceptionTotals) -> datetime:
    """Adds the extension totals to ``base`` as fixed durations."""
    return as_instant(base) + timedelta(hours=totals.total_hours) + timedelta(minutes=totals.total_minutes)


def compute_effective_due_date(
        assignment: Assignment,
        student_id: str,
        grants: t.Iterable[DueDateException],
        lab_lookup: LabMeetingLookup,
) -> datetime:
    """Final due date for a student.

    :param assignment: The assignment; its ``due_date`` is required.
    :param student_id: The student the date is computed for.
    :param grants: Exceptions already filtered to this student and their group.
    :param lab_lookup: Finds the student's latest lab meeting before an instant.
    :return: An aware UTC datetime.
    :raises MissingDueDateError: If the assignment has no due date.
    """
    return describe_due_date(assignment, student_id, grants, lab_lookup).due_date


def describe_due_date(
        assignment: Assignment,
        student_id: str,
        grants: t.Iterable[DueDateException],
        lab_lookup: LabMeetingLookup,
        lab_section_id: t.Optional[int] = None,
) -> DueDateBreakdown:
    """Same as ``compute_effective_due_date`` but keeps the intermediate values."""
    if assignment.due_date is None:
        raise MissingDueDateError(assignment.id)

    base = resolve_effective_base_due_date(assignment, student_id, lab_lookup)
    totals = aggregate_exceptions(grants)

    return DueDateBreakdown(
        original_due_date=assignment.due_date,
        lab_due_date=base,
        due_date=apply_extensions(base, totals),
        totals=totals,
        has_lab_scheduling=assignment.has_lab_scheduling,
        lab_section_id=lab_section_id,
    )
