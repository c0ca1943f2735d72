"""
Data models for due dates, lab sections and due-date exceptions.

This module contains the dataclasses shared by the lab schedule resolver,
the extension aggregator, the due date calculator and the token guard.
All datetimes are timezone-aware.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
import typing as t


@dataclass
class Assignment:
    """An assignment as far as due-date resolution is concerned."""
    id: int
    due_date: t.Optional[datetime]
    minutes_due_after_lab: t.Optional[int] = None
    max_late_tokens: int = 0
    class_id: t.Optional[int] = None
    title: str = ""

    @property
    def has_lab_scheduling(self) -> bool:
        return self.minutes_due_after_lab is not None


@dataclass
class LabSection:
    """
    A recurring lab section, e.g.:
    - "Lab 03, Tue 14:00-15:40"
    """
    id: int
    name: str = ""
    day_of_week: str = ""
    start_time: str = ""  # "HH:MM" local wall clock
    end_time: str = ""    # "HH:MM" local wall clock
    meeting_location: str = ""


@dataclass
class LabSectionMeeting:
    """One dated meeting of a lab section."""
    id: int
    lab_section_id: int
    meeting_date: date
    cancelled: bool = False


@dataclass
class DueDateException:
    """
    A staff-created (or token-funded) extension for a student or a group.

    Negative ``tokens_consumed`` records tokens gifted to the student.
    """
    id: int
    assignment_id: int
    hours: int
    minutes: int = 0
    tokens_consumed: int = 0
    student_id: t.Optional[str] = None
    assignment_group_id: t.Optional[int] = None
    creator_id: str = ""
    note: str = ""
    created_at: t.Optional[datetime] = None


@dataclass(frozen=True)
class ExceptionTotals:
    """Raw sums over a list of exceptions. Minutes are never carried into hours."""
    total_hours: int = 0
    total_minutes: int = 0
    total_tokens_consumed: int = 0


@dataclass
class DueDateBreakdown:
    """Effective due date for one student plus the values it was built from."""
    original_due_date: datetime
    lab_due_date: datetime
    due_date: datetime
    totals: ExceptionTotals = field(default_factory=ExceptionTotals)
    has_lab_scheduling: bool = False
    lab_section_id: t.Optional[int] = None


@dataclass
class TokenLedgerEntry:
    """Late token usage for one student across the whole class."""
    student_id: str
    used: int = 0
    gifted: int = 0
    remaining: int = 0
