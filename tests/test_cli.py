# -*- coding: utf-8 -*-
"""Tests for the due dates command line report."""
import json
import typing as t
from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.console import Console

from due_dates_cli import run as cli_run
from due_dates_cli.run import main


@pytest.fixture
def snapshot_file(tmp_path: Path, course_data: dict[str, t.Any]) -> Path:
    course_data["due_date_exceptions"] = [
        {"id": 7, "assignment_id": 1, "student_id": "alice", "hours": 24, "creator_id": "prof",
         "created_at": "2024-04-09T12:00:00Z"},
    ]
    path = tmp_path / "course.json"
    path.write_text(json.dumps(course_data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep rich from wrapping table cells."""
    monkeypatch.setattr(cli_run, "console", Console(width=200))


def run(*args: str) -> t.Any:
    return CliRunner().invoke(main, list(args))


def test_report_lists_due_dates(snapshot_file: Path) -> None:
    result = run(str(snapshot_file), "--student", "alice", "--assignment", "1", "--now", "2024-04-09T00:00:00+00:00")

    assert result.exit_code == 0, result.output
    assert "Effective Due Dates" in result.output
    assert "Alice Adams" in result.output
    assert "24h" in result.output


def test_report_marks_undated_assignments(snapshot_file: Path) -> None:
    result = run(str(snapshot_file), "--assignment", "4")

    assert result.exit_code == 0, result.output
    assert "could not compute due date" in result.output


def test_roster_tokens(snapshot_file: Path) -> None:
    result = run(str(snapshot_file), "--roster")

    assert result.exit_code == 0, result.output
    assert "Late Tokens" in result.output
    assert "Carol Chen" in result.output


def test_unknown_assignment(snapshot_file: Path) -> None:
    result = run(str(snapshot_file), "--assignment", "99")

    assert result.exit_code == 1


def test_invalid_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    assert run(str(path)).exit_code == 1


def test_invalid_now(snapshot_file: Path) -> None:
    result = run(str(snapshot_file), "--now", "yesterday")

    assert result.exit_code == 2
