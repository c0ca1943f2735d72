# -*- coding: utf-8 -*-
"""Plain-text tables for exceptions and token balances."""
from __future__ import annotations

import typing as t
from datetime import datetime
from zoneinfo import ZoneInfo

from due_dates.extensions import format_extension
from due_dates.lab_schedule import as_instant
from due_dates.models import DueDateException, TokenLedgerEntry


def format_datetime(value: t.Optional[datetime], time_zone: t.Optional[str] = None) -> str:
    """Formats a datetime into a concise readable format, e.g. 'Mon 1/15 2:30 PM'.

    :param time_zone: IANA zone to show the wall clock in; naive values are taken as UTC.
    """
    if value is None:
        return "—"
    if time_zone:
        value = as_instant(value).astimezone(ZoneInfo(time_zone))
    return value.strftime("%a %-m/%-d %-I:%M %p")


def _target(grant: DueDateException, roster: t.Mapping[str, str]) -> str:
    if grant.student_id is not None:
        return roster.get(grant.student_id) or grant.student_id
    return f"group {grant.assignment_group_id}"


def format_exceptions(
        grants: list[DueDateException], roster: t.Mapping[str, str], time_zone: t.Optional[str] = None
) -> str:
    """Formats due-date exceptions as a clean table, in the order given."""
    if not grants:
        return "📅 No due date exceptions found."

    lines = []
    lines.append("📅 DUE DATE EXCEPTIONS")
    lines.append("=" * 110)
    lines.append(
        f"{'#':<5} {'Assignment':<11} {'Student/Group':<22} {'Extension':<11} {'Tokens':<7} "
        f"{'Created':<18} {'Note':<30}"
    )
    lines.append("-" * 110)

    for grant in grants:
        target = _target(grant, roster)[:21]
        note = grant.note[:29] if grant.note else "—"
        lines.append(
            f"{grant.id:<5} {grant.assignment_id:<11} {target:<22} "
            f"{format_extension(grant.hours, grant.minutes):<11} {grant.tokens_consumed:<7} "
            f"{format_datetime(grant.created_at, time_zone):<18} {note:<30}"
        )

    lines.append("=" * 110)
    lines.append(f"Total: {len(grants)} exception(s)")
    return "\n".join(lines)


def format_roster_tokens(
        entries: list[TokenLedgerEntry], roster: t.Mapping[str, str], allowance: int
) -> str:
    """Formats per-student late token usage as a clean table."""
    header = f"Each student receives {allowance} late token{'s' if allowance != 1 else ''}"
    if not entries:
        return f"🎟️ {header}. No students found."

    lines = []
    lines.append("🎟️ LATE TOKENS")
    lines.append(header)
    lines.append("=" * 80)
    lines.append(f"{'Student':<40} {'Used':<8} {'Gifted':<8} {'Remaining':<10}")
    lines.append("-" * 80)

    for entry in entries:
        name = (roster.get(entry.student_id) or entry.student_id)[:39]
        lines.append(f"{name:<40} {entry.used:<8} {entry.gifted:<8} {entry.remaining:<10}")

    lines.append("=" * 80)
    return "\n".join(lines)
