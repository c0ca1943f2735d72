# -*- coding: utf-8 -*-
"""Command line report of effective due dates and late tokens for a course."""
import json
import logging
import typing as t
from dataclasses import asdict
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.json import JSON
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from due_dates.config import LOG_LEVEL
from due_dates.errors import MissingDueDateError
from due_dates.extensions import format_extension
from due_dates.tokens import STATUS_MESSAGES, LateTokenStatus, late_token_eligibility
from due_dates_cli.utils import load_snapshot, truncate
from exceptions_server.formatting import format_datetime
from exceptions_server.store import CourseStore
from services.shared.models import snapshot_to_course

console = Console()
logger = logging.getLogger("due_dates_cli")


def configure_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def create_due_date_table(
        store: CourseStore,
        student_ids: list[str],
        assignment_ids: list[int],
        now: datetime,
        verbose: bool,
) -> Table:
    """Create a table with one row per (student, assignment)."""
    table = Table(title="📅 Effective Due Dates", show_header=True, header_style="bold magenta")
    table.add_column("Student", style="white")
    table.add_column("Assignment", style="cyan")
    table.add_column("Original", style="dim")
    table.add_column("Lab-based", style="dim")
    table.add_column("Extension", style="yellow")
    table.add_column("Tokens", justify="right")
    table.add_column("Due", style="bold green")
    table.add_column("Late token", style="white")

    for student_id in student_ids:
        student_name = store.roster.get(student_id) or student_id
        for assignment_id in assignment_ids:
            assignment = store.get_assignment(assignment_id)
            try:
                breakdown = store.due_date_for(assignment_id, student_id)
            except MissingDueDateError as e:
                logger.error("Could not compute due date: %s", e)
                table.add_row(truncate(student_name), truncate(assignment.title or str(assignment.id)),
                              "—", "—", "—", "—", "[red]could not compute due date[/red]", "—")
                continue

            status = late_token_eligibility(
                assignment,
                store.late_tokens_per_student,
                store.exceptions_for_student(student_id),
                breakdown.due_date,
                now,
            )
            status_style = "green" if status is LateTokenStatus.ELIGIBLE else "dim"

            table.add_row(
                truncate(student_name),
                truncate(assignment.title or str(assignment.id)),
                format_datetime(breakdown.original_due_date, store.time_zone),
                format_datetime(breakdown.lab_due_date, store.time_zone) if breakdown.has_lab_scheduling else "—",
                format_extension(breakdown.totals.total_hours, breakdown.totals.total_minutes),
                str(breakdown.totals.total_tokens_consumed),
                format_datetime(breakdown.due_date, store.time_zone),
                f"[{status_style}]{STATUS_MESSAGES[status]}[/{status_style}]",
            )

            if verbose:
                console.print(Panel(JSON(json.dumps(asdict(breakdown), default=str)),
                                    title=f"{student_id} / {assignment_id}", border_style="dim"))

    return table


def create_roster_table(store: CourseStore) -> Table:
    """Create a table of late token balances for the roster."""
    allowance = store.late_tokens_per_student
    table = Table(
        title=f"🎟️ Late Tokens ({allowance} per student)", show_header=True, header_style="bold magenta"
    )
    table.add_column("Student", style="white")
    table.add_column("Used", justify="right")
    table.add_column("Gifted", justify="right")
    table.add_column("Remaining", justify="right")

    for entry in store.token_ledger():
        remaining_style = "red" if entry.remaining < 0 else "green"
        table.add_row(
            store.roster.get(entry.student_id) or entry.student_id,
            str(entry.used),
            str(entry.gifted),
            f"[{remaining_style}]{entry.remaining}[/{remaining_style}]",
        )
    return table


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--student", "-s", "students", multiple=True, help="Only show this student (repeatable).")
@click.option("--assignment", "-a", "assignments", multiple=True, type=int,
              help="Only show this assignment (repeatable).")
@click.option("--roster", is_flag=True, help="Also show late token balances for the whole roster.")
@click.option("--now", "now_str", default=None, help="Evaluate late tokens as of this ISO timestamp.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
def main(
        snapshot: str,
        students: tuple[str, ...],
        assignments: tuple[int, ...],
        roster: bool,
        now_str: t.Optional[str],
        verbose: bool,
) -> None:
    """Show effective due dates and late tokens for a course.

    SNAPSHOT: Path to a course snapshot JSON file.
    """
    configure_logging(verbose)

    store = CourseStore()
    store.load_course(**snapshot_to_course(load_snapshot(snapshot)))

    try:
        now = datetime.fromisoformat(now_str) if now_str else datetime.now(timezone.utc)
    except ValueError:
        raise click.BadParameter(f"'{now_str}' is not an ISO timestamp", param_hint="--now")

    student_ids = list(students) or sorted(store.roster)
    assignment_ids = list(assignments) or sorted(store.assignments)

    unknown = [a for a in assignment_ids if a not in store.assignments]
    if unknown:
        console.print(f"[red]Error:[/red] Unknown assignment(s): {unknown}")
        raise SystemExit(1)

    console.print(
        Panel.fit(
            f"[bold blue]📚 Due Date Report[/bold blue]\n"
            f"[bold]{len(student_ids)}[/bold] student(s), [bold]{len(assignment_ids)}[/bold] assignment(s), "
            f"[bold]{len(store.exceptions)}[/bold] exception(s)",
            border_style="blue",
        )
    )

    console.print(create_due_date_table(store, student_ids, assignment_ids, now, verbose))

    if roster:
        console.print("\n", create_roster_table(store))


if __name__ == "__main__":
    main()
