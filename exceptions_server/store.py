# -*- coding: utf-8 -*-
"""In-memory course data and due-date exceptions.

In a real deployment this would be replaced with the course database; the
rest of the code only talks to ``CourseStore``.
"""
from __future__ import annotations

import logging
import threading
import typing as t
from dataclasses import replace
from datetime import datetime, timezone

from due_dates.calculator import describe_due_date
from due_dates.config import DEFAULT_TIME_ZONE
from due_dates.extensions import select_relevant_exceptions
from due_dates.lab_schedule import LabSchedule, as_instant
from due_dates.models import (Assignment, DueDateBreakdown, DueDateException, LabSection, LabSectionMeeting,
                              TokenLedgerEntry)
from due_dates.tokens import consume_late_token, roster_token_summary

logger = logging.getLogger(__name__)

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class CourseStore:
    """Holds one course's assignments, lab sections, roster and exceptions."""

    def __init__(self) -> None:
        # Reentrant so compound operations can hold it across nested store calls
        self._lock = threading.RLock()
        self.reset()

    def reset(self) -> None:
        """Forget everything."""
        with self._lock:
            self._clear()

    def _clear(self) -> None:
        # Callers hold the lock
        self.class_id: t.Optional[int] = None
        self.time_zone = DEFAULT_TIME_ZONE
        self.late_tokens_per_student = 0
        self.assignments: dict[int, Assignment] = {}
        self.lab_sections: list[LabSection] = []
        self.lab_section_meetings: list[LabSectionMeeting] = []
        self.roster: dict[str, str] = {}  # student id -> display name
        self.student_sections: dict[str, int] = {}
        self.group_assignments: dict[int, int] = {}  # group id -> assignment id
        self.group_members: dict[int, set[str]] = {}
        self.exceptions: list[DueDateException] = []
        self._next_id = 1

    def load_course(
            self,
            assignments: t.Iterable[Assignment],
            lab_sections: t.Iterable[LabSection] = (),
            lab_section_meetings: t.Iterable[LabSectionMeeting] = (),
            roster: t.Optional[t.Mapping[str, str]] = None,
            student_sections: t.Optional[t.Mapping[str, int]] = None,
            groups: t.Optional[t.Mapping[int, tuple[int, t.Iterable[str]]]] = None,
            exceptions: t.Iterable[DueDateException] = (),
            late_tokens_per_student: int = 0,
            time_zone: str = DEFAULT_TIME_ZONE,
            class_id: t.Optional[int] = None,
    ) -> None:
        """Replaces the course data.

        :param groups: Assignment group id -> (assignment id, member student ids).
        """
        with self._lock:
            self._clear()
            self.class_id = class_id
            self.time_zone = time_zone
            self.late_tokens_per_student = late_tokens_per_student
            self.assignments = {assignment.id: assignment for assignment in assignments}
            self.lab_sections = list(lab_sections)
            self.lab_section_meetings = list(lab_section_meetings)
            self.roster = dict(roster or {})
            self.student_sections = dict(student_sections or {})
            for group_id, (assignment_id, members) in (groups or {}).items():
                self.group_assignments[group_id] = assignment_id
                self.group_members[group_id] = set(members)
            for grant in exceptions:
                if grant.created_at is not None:
                    grant = replace(grant, created_at=as_instant(grant.created_at))
                self.exceptions.append(grant)
                self._next_id = max(self._next_id, grant.id + 1)

        logger.info(
            "Loaded course %s: %d assignment(s), %d student(s), %d exception(s)",
            class_id, len(self.assignments), len(self.roster), len(self.exceptions),
        )

    def get_assignment(self, assignment_id: int) -> Assignment:
        """Looks up an assignment.

        :raises KeyError: If there is no such assignment.
        """
        try:
            return self.assignments[assignment_id]
        except KeyError:
            raise KeyError(f"Assignment {assignment_id} not found") from None

    def group_for(self, assignment_id: int, student_id: str) -> t.Optional[int]:
        """The student's assignment group for this assignment, if any."""
        for group_id, group_assignment in self.group_assignments.items():
            if group_assignment == assignment_id and student_id in self.group_members.get(group_id, set()):
                return group_id
        return None

    def add_exception(self, grant: DueDateException) -> DueDateException:
        """Saves a new exception, assigning its id and creation time.

        :return: The saved exception.
        """
        with self._lock:
            saved = replace(
                grant,
                id=self._next_id,
                created_at=as_instant(grant.created_at) if grant.created_at else datetime.now(timezone.utc),
            )
            self._next_id += 1
            self.exceptions.append(saved)

        logger.info(
            "Created due date exception %s on assignment %s (%sh %sm, %s token(s)) by %s",
            saved.id, saved.assignment_id, saved.hours, saved.minutes, saved.tokens_consumed, saved.creator_id,
        )
        return saved

    def delete_exception(self, exception_id: int) -> DueDateException:
        """Removes an exception.

        :raises KeyError: If there is no such exception.
        """
        with self._lock:
            for index, grant in enumerate(self.exceptions):
                if grant.id == exception_id:
                    del self.exceptions[index]
                    break
            else:
                raise KeyError(f"Due date exception {exception_id} not found")

        logger.info("Deleted due date exception %s", exception_id)
        return grant

    def list_exceptions(
            self,
            assignment_id: t.Optional[int] = None,
            student_id: t.Optional[str] = None,
            assignment_group_id: t.Optional[int] = None,
    ) -> list[DueDateException]:
        """Exceptions matching every given filter, oldest first."""
        with self._lock:
            grants = list(self.exceptions)
        if assignment_id is not None:
            grants = [g for g in grants if g.assignment_id == assignment_id]
        if student_id is not None:
            grants = [g for g in grants if g.student_id == student_id]
        if assignment_group_id is not None:
            grants = [g for g in grants if g.assignment_group_id == assignment_group_id]
        return sorted(grants, key=lambda g: (as_instant(g.created_at or _NEVER), g.id))

    def exceptions_for_student(self, student_id: str) -> list[DueDateException]:
        """Every exception that applies to a student, directly or through a group."""
        groups = {group_id for group_id, members in self.group_members.items() if student_id in members}
        return [
            grant for grant in self.list_exceptions()
            if grant.student_id == student_id
            or (grant.student_id is None and grant.assignment_group_id in groups)
        ]

    def lab_schedule(self) -> LabSchedule:
        """Lab meeting lookup over the current course data."""
        return LabSchedule(
            self.lab_sections, self.lab_section_meetings, self.student_sections, time_zone=self.time_zone
        )

    def due_date_for(self, assignment_id: int, student_id: str) -> DueDateBreakdown:
        """Effective due date of one student on one assignment.

        :raises KeyError: If the assignment does not exist.
        :raises MissingDueDateError: If the assignment has no due date.
        """
        assignment = self.get_assignment(assignment_id)
        grants = select_relevant_exceptions(
            self.list_exceptions(assignment_id=assignment_id),
            assignment_id,
            student_id=student_id,
            assignment_group_id=self.group_for(assignment_id, student_id),
        )
        schedule = self.lab_schedule()
        return describe_due_date(
            assignment, student_id, grants, schedule, lab_section_id=schedule.section_for(student_id)
        )

    def token_ledger(self, student_ids: t.Optional[t.Iterable[str]] = None) -> list[TokenLedgerEntry]:
        """Late token usage per student; defaults to the whole roster sorted by id."""
        if student_ids is None:
            student_ids = sorted(self.roster)
        return roster_token_summary(
            student_ids, self.list_exceptions(), self.group_members, self.late_tokens_per_student
        )

    def use_late_token(
            self, assignment_id: int, student_id: str, now: t.Optional[datetime] = None
    ) -> DueDateException:
        """Spends one of the student's late tokens on an assignment.

        :raises KeyError: If the assignment does not exist.
        :raises LateTokenError: If the student may not spend a token.
        """
        now = now or datetime.now(timezone.utc)
        # Eligibility check and insert are one atomic step
        with self._lock:
            grant = consume_late_token(
                self.get_assignment(assignment_id),
                student_id,
                self.late_tokens_per_student,
                self.exceptions_for_student(student_id),
                self.due_date_for(assignment_id, student_id).due_date,
                now,
                assignment_group_id=self.group_for(assignment_id, student_id),
            )
            return self.add_exception(grant)


# Process-wide store used by the MCP server
store = CourseStore()
