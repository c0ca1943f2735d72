"""
FastAPI service for due-date exceptions and late tokens.

This service exposes the same operations as exceptions_server/server.py as
REST API endpoints. All operations are fast, in-memory computations.
"""
from __future__ import annotations

import logging
import typing as t
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from due_dates.config import LOG_LEVEL
from due_dates.errors import LateTokenError, MissingDueDateError
from due_dates.models import DueDateException as DataclassDueDateException
from due_dates.tokens import gift_tokens
from exceptions_server.formatting import format_exceptions, format_roster_tokens
from exceptions_server.store import CourseStore
from services.shared.models import (
    CourseSnapshot,
    CreateDueDateExceptionRequest,
    DueDateException,
    EffectiveDueDateResponse,
    GiftTokensRequest,
    RosterTokensResponse,
    ShowDueDateExceptionsResponse,
    ShowRosterTokensResponse,
    TokenBalanceResponse,
    UseLateTokenRequest,
    breakdown_to_response,
    exception_to_pydantic,
    snapshot_to_course,
)

logger = logging.getLogger(__name__)

# In-memory course data
# In a distributed system, this would be replaced with the course database
store = CourseStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    logging.getLogger().setLevel(LOG_LEVEL)
    yield


app = FastAPI(
    title="Due Date Service",
    description="REST API for due-date exceptions, lab-based due dates and late tokens",
    version="1.0.0",
    lifespan=lifespan,
)


def _balance(student_id: str) -> TokenBalanceResponse:
    entry = store.token_ledger([student_id])[0]
    return TokenBalanceResponse(
        student_id=entry.student_id,
        allowance=store.late_tokens_per_student,
        used=entry.used,
        gifted=entry.gifted,
        remaining=entry.remaining,
    )


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "due-date-service"}


@app.post("/course")
async def load_course(snapshot: CourseSnapshot) -> dict[str, t.Any]:
    """Replace the course data with a snapshot."""
    store.load_course(**snapshot_to_course(snapshot))
    return {
        "class_id": store.class_id,
        "assignments": len(store.assignments),
        "students": len(store.roster),
        "due_date_exceptions": len(store.exceptions),
    }


@app.post("/exceptions", response_model=DueDateException)
async def create_due_date_exception(request: CreateDueDateExceptionRequest) -> DueDateException:
    """
    Grant an extension to a student or a group.

    The student's token balance is not checked: staff may always override.
    """
    if request.assignment_id not in store.assignments:
        raise HTTPException(status_code=404, detail=f"Assignment {request.assignment_id} not found")
    saved = store.add_exception(DataclassDueDateException(id=0, **request.model_dump()))
    return exception_to_pydantic(saved)


@app.delete("/exceptions/{exception_id}", response_model=DueDateException)
async def delete_due_date_exception(exception_id: int) -> DueDateException:
    """Delete an exception permanently."""
    try:
        return exception_to_pydantic(store.delete_exception(exception_id))
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))


@app.get("/exceptions", response_model=list[DueDateException])
async def list_due_date_exceptions(
        assignment_id: t.Optional[int] = None,
        student_id: t.Optional[str] = None,
        assignment_group_id: t.Optional[int] = None,
) -> list[DueDateException]:
    """List exceptions, oldest first."""
    grants = store.list_exceptions(assignment_id, student_id, assignment_group_id)
    return [exception_to_pydantic(grant) for grant in grants]


@app.get("/exceptions/formatted", response_model=ShowDueDateExceptionsResponse)
async def show_due_date_exceptions(assignment_id: t.Optional[int] = None) -> ShowDueDateExceptionsResponse:
    """Exceptions as a formatted table."""
    grants = store.list_exceptions(assignment_id=assignment_id)
    return ShowDueDateExceptionsResponse(
        formatted_exceptions=format_exceptions(grants, store.roster, store.time_zone)
    )


@app.get("/assignments/{assignment_id}/due-date", response_model=EffectiveDueDateResponse)
async def get_effective_due_date(assignment_id: int, student_id: str) -> EffectiveDueDateResponse:
    """A student's due date after lab scheduling and all extensions."""
    try:
        breakdown = store.due_date_for(assignment_id, student_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    except MissingDueDateError as e:
        logger.warning("Could not compute due date: %s", e)
        raise HTTPException(status_code=422, detail=f"Could not compute due date: {e}")
    return breakdown_to_response(assignment_id, student_id, breakdown)


@app.post("/assignments/{assignment_id}/late-token", response_model=DueDateException)
async def use_late_token(assignment_id: int, request: UseLateTokenRequest) -> DueDateException:
    """Spend one of the student's late tokens on this assignment."""
    try:
        saved = store.use_late_token(assignment_id, request.student_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    except MissingDueDateError as e:
        raise HTTPException(status_code=422, detail=f"Could not compute due date: {e}")
    except LateTokenError as e:
        raise HTTPException(status_code=409, detail={"status": e.status.value, "message": str(e)})
    return exception_to_pydantic(saved)


@app.post("/assignments/{assignment_id}/gift-tokens", response_model=DueDateException)
async def gift_late_tokens(assignment_id: int, request: GiftTokensRequest) -> DueDateException:
    """Give late tokens back to a student."""
    if assignment_id not in store.assignments:
        raise HTTPException(status_code=404, detail=f"Assignment {assignment_id} not found")
    grant = gift_tokens(assignment_id, request.student_id, request.tokens, request.creator_id, request.note)
    return exception_to_pydantic(store.add_exception(grant))


@app.get("/students/{student_id}/tokens", response_model=TokenBalanceResponse)
async def get_remaining_tokens(student_id: str) -> TokenBalanceResponse:
    """A student's late token balance. May be negative."""
    return _balance(student_id)


@app.get("/roster/tokens", response_model=RosterTokensResponse)
async def get_roster_tokens() -> RosterTokensResponse:
    """Late token balances for the whole roster."""
    return RosterTokensResponse(
        late_tokens_per_student=store.late_tokens_per_student,
        students=[_balance(student_id) for student_id in sorted(store.roster)],
    )


@app.get("/roster/tokens/formatted", response_model=ShowRosterTokensResponse)
async def show_roster_tokens() -> ShowRosterTokensResponse:
    """Late token balances as a formatted table."""
    return ShowRosterTokensResponse(
        formatted_tokens=format_roster_tokens(store.token_ledger(), store.roster, store.late_tokens_per_student)
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)
