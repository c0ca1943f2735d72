# -*- coding: utf-8 -*-
"""Tests for summing and selecting due-date exceptions."""
import itertools

from due_dates.extensions import aggregate_exceptions, format_extension, select_relevant_exceptions
from due_dates.models import DueDateException, ExceptionTotals


def grant(id: int, hours: int = 0, minutes: int = 0, tokens: int = 0, **kwargs) -> DueDateException:
    kwargs.setdefault("assignment_id", 1)
    kwargs.setdefault("student_id", "alice")
    return DueDateException(id=id, hours=hours, minutes=minutes, tokens_consumed=tokens, **kwargs)


def test_empty_list_gives_zero_totals() -> None:
    assert aggregate_exceptions([]) == ExceptionTotals(0, 0, 0)


def test_minutes_are_not_carried_into_hours() -> None:
    totals = aggregate_exceptions([grant(1, minutes=45), grant(2, minutes=45)])

    assert totals.total_minutes == 90
    assert totals.total_hours == 0


def test_hours_minutes_and_tokens_are_summed() -> None:
    totals = aggregate_exceptions([grant(1, hours=24, tokens=1), grant(2, hours=2, minutes=30), grant(3, hours=24, tokens=1)])

    assert totals == ExceptionTotals(total_hours=50, total_minutes=30, total_tokens_consumed=2)


def test_order_does_not_matter() -> None:
    grants = [grant(1, hours=24, tokens=1), grant(2, minutes=90), grant(3, hours=3, minutes=15, tokens=-1)]
    expected = aggregate_exceptions(grants)

    for permutation in itertools.permutations(grants):
        assert aggregate_exceptions(list(permutation)) == expected


def test_negative_values_are_summed_as_is() -> None:
    totals = aggregate_exceptions([grant(1, hours=5), grant(2, hours=-8, minutes=-10, tokens=-2)])

    assert totals == ExceptionTotals(total_hours=-3, total_minutes=-10, total_tokens_consumed=-2)


def test_aggregate_accepts_any_iterable() -> None:
    totals = aggregate_exceptions(g for g in [grant(1, hours=1), grant(2, hours=2)])

    assert totals.total_hours == 3


def test_select_student_grants_for_assignment() -> None:
    grants = [
        grant(1, hours=1),
        grant(2, hours=2, student_id="bob"),
        grant(3, hours=3, assignment_id=2),
    ]

    assert [g.id for g in select_relevant_exceptions(grants, 1, student_id="alice")] == [1]


def test_select_keeps_both_student_and_group_grants() -> None:
    grants = [
        grant(1, hours=24),
        grant(2, hours=12, student_id=None, assignment_group_id=50),
        grant(3, hours=6, student_id=None, assignment_group_id=51),
    ]

    relevant = select_relevant_exceptions(grants, 1, student_id="alice", assignment_group_id=50)

    assert [g.id for g in relevant] == [1, 2]
    assert aggregate_exceptions(relevant).total_hours == 36


def test_select_without_targets_matches_nothing() -> None:
    assert select_relevant_exceptions([grant(1, hours=1)], 1) == []


def test_format_extension_normalizes_for_display() -> None:
    assert format_extension(0, 90) == "1h 30m"
    assert format_extension(24, 0) == "24h"
    assert format_extension(0, 30) == "30m"
    assert format_extension(0, 0) == "0h"
    assert format_extension(-1, -30) == "-1h 30m"
