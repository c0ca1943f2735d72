"""Utility functions for the due dates CLI."""
import json
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console

from services.shared.models import CourseSnapshot

console = Console(stderr=True)


def load_snapshot(path_str: str) -> CourseSnapshot:
    """Load a course snapshot from a JSON file.

    Args:
        path_str: Path to the snapshot file

    Returns:
        The validated CourseSnapshot

    Raises:
        SystemExit: If the file is missing, not JSON, or not a valid snapshot
    """
    path = Path(path_str)
    if not path.is_file():
        console.print(f"[red]Error:[/red] Snapshot '{path_str}' does not exist.")
        raise SystemExit(1)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return CourseSnapshot.model_validate(data)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Snapshot '{path_str}' is not valid JSON: {e}")
        raise SystemExit(1)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Snapshot '{path_str}' is not a valid course snapshot:\n{e}")
        raise SystemExit(1)


def truncate(text: str, max_length: int = 30) -> str:
    """Truncate text to max_length characters, adding ellipsis if needed."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."
