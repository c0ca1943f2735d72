"""Exceptions raised by due-date resolution and late-token handling."""


class MissingDueDateError(ValueError):
    """The assignment has no nominal due date, so nothing can be computed."""

    def __init__(self, assignment_id: object) -> None:
        super().__init__(f"Assignment {assignment_id} has no due date")
        self.assignment_id = assignment_id


class LateTokenError(RuntimeError):
    """A student tried to spend a late token they are not allowed to spend."""

    def __init__(self, status: object, message: str) -> None:
        super().__init__(message)
        self.status = status
