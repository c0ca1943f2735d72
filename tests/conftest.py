# -*- coding: utf-8 -*-
"""Shared fixtures: a small course with one lab section and one group."""
import copy
import typing as t

import pytest

from exceptions_server.store import CourseStore
from services.shared.models import CourseSnapshot, snapshot_to_course

COURSE: dict[str, t.Any] = {
    "class_id": 1,
    "time_zone": "UTC",
    "late_tokens_per_student": 2,
    "assignments": [
        {"id": 1, "title": "HW1", "due_date": "2024-04-10T23:59:00Z", "max_late_tokens": 2},
        {"id": 2, "title": "Lab 5", "due_date": "2024-04-10T23:59:00Z", "minutes_due_after_lab": 60,
         "max_late_tokens": 1},
        {"id": 3, "title": "Project", "due_date": "2024-04-20T23:59:00Z", "max_late_tokens": 2},
        {"id": 4, "title": "Draft", "due_date": None},
    ],
    "lab_sections": [
        {"id": 10, "name": "Lab A", "day_of_week": "monday", "start_time": "14:00", "end_time": "15:40"},
    ],
    "lab_section_meetings": [
        {"id": 100, "lab_section_id": 10, "meeting_date": "2024-04-01"},
        {"id": 101, "lab_section_id": 10, "meeting_date": "2024-04-08"},
        {"id": 102, "lab_section_id": 10, "meeting_date": "2024-04-09", "cancelled": True},
        {"id": 103, "lab_section_id": 10, "meeting_date": "2024-04-15"},
    ],
    "roster": [
        {"student_id": "alice", "name": "Alice Adams", "lab_section_id": 10},
        {"student_id": "bob", "name": "Bob Brown", "lab_section_id": 10},
        {"student_id": "carol", "name": "Carol Chen"},
    ],
    "assignment_groups": [
        {"id": 50, "assignment_id": 3, "members": ["alice", "bob"]},
    ],
    "due_date_exceptions": [],
}


@pytest.fixture
def course_data() -> dict[str, t.Any]:
    """A fresh copy of the sample course snapshot as plain JSON data."""
    return copy.deepcopy(COURSE)


@pytest.fixture
def course_store(course_data: dict[str, t.Any]) -> CourseStore:
    """A CourseStore loaded with the sample course."""
    store = CourseStore()
    store.load_course(**snapshot_to_course(CourseSnapshot.model_validate(course_data)))
    return store
