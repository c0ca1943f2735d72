"""
Shared Pydantic models for REST API serialization.

This module contains Pydantic equivalents of the dataclass models in
``due_dates.models``, the course snapshot format, and the request/response
bodies of the due date service, plus conversions between the two worlds.
"""
from __future__ import annotations

import typing as t
from dataclasses import asdict
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from due_dates import models as dc
from due_dates.config import DEFAULT_TIME_ZONE


class Assignment(BaseModel):
    """An assignment with the fields needed to resolve its due date."""
    id: int
    title: str = ""
    class_id: t.Optional[int] = None
    due_date: t.Optional[datetime] = None
    minutes_due_after_lab: t.Optional[int] = Field(default=None, ge=0)
    max_late_tokens: int = Field(default=0, ge=0)


class LabSection(BaseModel):
    """A recurring lab section."""
    id: int
    name: str = ""
    day_of_week: str = ""
    start_time: str = ""  # "HH:MM" local
    end_time: str = ""    # "HH:MM" local
    meeting_location: str = ""


class LabSectionMeeting(BaseModel):
    """One dated meeting of a lab section."""
    id: int
    lab_section_id: int
    meeting_date: date
    cancelled: bool = False


class RosterEntry(BaseModel):
    """A student in the class."""
    student_id: str
    name: str = ""
    lab_section_id: t.Optional[int] = None


class AssignmentGroup(BaseModel):
    """A group of students submitting together for one assignment."""
    id: int
    assignment_id: int
    members: list[str] = Field(default_factory=list)


class DueDateException(BaseModel):
    """A stored due-date exception."""
    id: int
    assignment_id: int
    student_id: t.Optional[str] = None
    assignment_group_id: t.Optional[int] = None
    hours: int
    minutes: int = 0
    tokens_consumed: int = 0
    creator_id: str = ""
    note: str = ""
    created_at: t.Optional[datetime] = None


class CourseSnapshot(BaseModel):
    """Everything the due date service needs to know about one course."""
    class_id: t.Optional[int] = None
    time_zone: str = DEFAULT_TIME_ZONE
    late_tokens_per_student: int = Field(default=0, ge=0)
    assignments: list[Assignment] = Field(default_factory=list)
    lab_sections: list[LabSection] = Field(default_factory=list)
    lab_section_meetings: list[LabSectionMeeting] = Field(default_factory=list)
    roster: list[RosterEntry] = Field(default_factory=list)
    assignment_groups: list[AssignmentGroup] = Field(default_factory=list)
    due_date_exceptions: list[DueDateException] = Field(default_factory=list)


# Request/Response Models for API endpoints
class CreateDueDateExceptionRequest(BaseModel):
    """Request model for granting an extension. Input form rules apply here."""
    assignment_id: int
    student_id: t.Optional[str] = None
    assignment_group_id: t.Optional[int] = None
    hours: int = Field(ge=0)
    minutes: int = Field(default=0, ge=0, le=59)
    tokens_consumed: int = Field(default=0, ge=0)
    creator_id: str
    note: str = ""

    @model_validator(mode="after")
    def _check_target(self) -> "CreateDueDateExceptionRequest":
        if self.student_id is None and self.assignment_group_id is None:
            raise ValueError("Either student_id or assignment_group_id is required")
        return self


class UseLateTokenRequest(BaseModel):
    """Request model for a student spending one late token."""
    student_id: str


class GiftTokensRequest(BaseModel):
    """Request model for gifting late tokens to a student."""
    student_id: str
    tokens: int = Field(gt=0)
    creator_id: str
    note: str = ""


class ExceptionTotals(BaseModel):
    """Raw sums over a student's exceptions."""
    total_hours: int = 0
    total_minutes: int = 0
    total_tokens_consumed: int = 0


class EffectiveDueDateResponse(BaseModel):
    """Response model for a student's effective due date."""
    assignment_id: int
    student_id: str
    original_due_date: datetime
    lab_due_date: datetime
    due_date: datetime
    has_lab_scheduling: bool
    lab_section_id: t.Optional[int] = None
    totals: ExceptionTotals


class TokenBalanceResponse(BaseModel):
    """Response model for a student's late token balance."""
    student_id: str
    allowance: int
    used: int
    gifted: int
    remaining: int


class RosterTokensResponse(BaseModel):
    """Response model for the per-student token table."""
    late_tokens_per_student: int
    students: list[TokenBalanceResponse]


class ShowDueDateExceptionsResponse(BaseModel):
    """Response model for formatted exceptions display."""
    formatted_exceptions: str


class ShowRosterTokensResponse(BaseModel):
    """Response model for formatted late token display."""
    formatted_tokens: str


def snapshot_to_course(snapshot: CourseSnapshot) -> dict[str, t.Any]:
    """Converts a snapshot to keyword arguments for ``CourseStore.load_course``."""
    return {
        "class_id": snapshot.class_id,
        "time_zone": snapshot.time_zone,
        "late_tokens_per_student": snapshot.late_tokens_per_student,
        "assignments": [dc.Assignment(**a.model_dump()) for a in snapshot.assignments],
        "lab_sections": [dc.LabSection(**s.model_dump()) for s in snapshot.lab_sections],
        "lab_section_meetings": [dc.LabSectionMeeting(**m.model_dump()) for m in snapshot.lab_section_meetings],
        "roster": {entry.student_id: entry.name for entry in snapshot.roster},
        "student_sections": {
            entry.student_id: entry.lab_section_id
            for entry in snapshot.roster
            if entry.lab_section_id is not None
        },
        "groups": {group.id: (group.assignment_id, group.members) for group in snapshot.assignment_groups},
        "exceptions": [exception_from_pydantic(e) for e in snapshot.due_date_exceptions],
    }


def exception_from_pydantic(exception: DueDateException) -> dc.DueDateException:
    return dc.DueDateException(**exception.model_dump())


def exception_to_pydantic(exception: dc.DueDateException) -> DueDateException:
    return DueDateException(**asdict(exception))


def breakdown_to_response(
        assignment_id: int, student_id: str, breakdown: dc.DueDateBreakdown
) -> EffectiveDueDateResponse:
    return EffectiveDueDateResponse(
        assignment_id=assignment_id,
        student_id=student_id,
        original_due_date=breakdown.original_due_date,
        lab_due_date=breakdown.lab_due_date,
        due_date=breakdown.due_date,
        has_lab_scheduling=breakdown.has_lab_scheduling,
        lab_section_id=breakdown.lab_section_id,
        totals=ExceptionTotals(**asdict(breakdown.totals)),
    )
