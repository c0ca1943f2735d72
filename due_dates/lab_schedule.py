"""Lab-based due dates.

An assignment with ``minutes_due_after_lab`` set is due a fixed number of
minutes after the student's most recent lab meeting before the nominal due
date. Finding that meeting is delegated to a lookup callable so the resolver
can be used without loading the whole course.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from due_dates.config import DEFAULT_TIME_ZONE
from due_dates.errors import MissingDueDateError
from due_dates.models import Assignment, LabSection, LabSectionMeeting

logger = logging.getLogger(__name__)

# (student_id, before) -> start instant of the latest lab meeting strictly before `before`
LabMeetingLookup = t.Callable[[str, datetime], t.Optional[datetime]]


def as_instant(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def no_lab_meetings(student_id: str, before: datetime) -> t.Optional[datetime]:
    """Lookup for courses without lab sections."""
    return None


class LabSchedule:
    """In-memory lab meeting lookup built from a course's lab sections.

    :param sections: Lab sections of the course.
    :param meetings: Dated meetings of those sections.
    :param student_sections: Student id -> lab section id.
    :param time_zone: IANA zone the section start times are expressed in.
    """

    def __init__(
            self,
            sections: t.Iterable[LabSection],
            meetings: t.Iterable[LabSectionMeeting],
            student_sections: t.Mapping[str, int],
            time_zone: str = DEFAULT_TIME_ZONE,
    ) -> None:
        self.sections = {section.id: section for section in sections}
        self.meetings = list(meetings)
        self.student_sections = dict(student_sections)
        self.zone = ZoneInfo(time_zone)

    def section_for(self, student_id: str) -> t.Optional[int]:
        """Lab section id of a student, or None if they are not in one."""
        return self.student_sections.get(student_id)

    def meeting_start(self, section: LabSection, meeting: LabSectionMeeting) -> t.Optional[datetime]:
        """Start instant (UTC) of one meeting, or None if the section has no start time."""
        if not section.start_time:
            return None
        local_start = datetime.combine(
            meeting.meeting_date, time.fromisoformat(section.start_time), tzinfo=self.zone
        )
        return local_start.astimezone(timezone.utc)

    def most_recent_meeting_before(self, student_id: str, before: datetime) -> t.Optional[datetime]:
        """Start instant of the student's latest non-cancelled meeting strictly before ``before``."""
        section_id = self.section_for(student_id)
        if section_id is None:
            return None

        section = self.sections.get(section_id)
        if section is None:
            logger.warning("Student %s is enrolled in unknown lab section %s", student_id, section_id)
            return None

        cutoff = as_instant(before)
        starts = []
        for meeting in self.meetings:
            if meeting.lab_section_id != section_id or meeting.cancelled:
                continue
            start = self.meeting_start(section, meeting)
            if start is not None and start < cutoff:
                starts.append(start)

        return max(starts) if starts else None

    __call__ = most_recent_meeting_before


def resolve_effective_base_due_date(
        assignment: Assignment,
        student_id: str,
        lab_lookup: LabMeetingLookup,
) -> datetime:
    """Due date for one student before any extensions are applied.

    :param assignment: The assignment; its ``due_date`` is required.
    :param student_id: The student the date is resolved for.
    :param lab_lookup: Finds the student's latest lab meeting before a given instant.
    :return: The nominal due date, or the lab meeting start plus the lab offset.
    :raises MissingDueDateError: If the assignment has no due date.
    """
    if assignment.due_date is None:
        raise MissingDueDateError(assignment.id)

    if assignment.minutes_due_after_lab is None:
        return assignment.due_date

    meeting_start = lab_lookup(student_id, assignment.due_date)
    if meeting_start is None:
        logger.debug(
            "No lab meeting before %s for student %s, using nominal due date of assignment %s",
            assignment.due_date.isoformat(), student_id, assignment.id,
        )
        return assignment.due_date

    return as_instant(meeting_start) + timedelta(minutes=assignment.minutes_due_after_lab)
