"""Task completion endpoints.

Provides the REST API for toggling completion of task occurrences and for
reading the completion ledger.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from api.dependencies import CompletionLedgerDep
from api.models import CompletionListResponse
from models.calendar_event import Completion, CompletionToggle

router = APIRouter(
    prefix="/completions",
    tags=["completions"],
)


# Request Models


class ToggleCompletionRequest(BaseModel):
    """Request to flip a task occurrence between done and not done.

    Args:
        event_id: Task event id.
        member_id: Member the completion belongs to.
        occurrence_date: Occurrence being marked.
    """

    event_id: str = Field(description="Task event id")
    member_id: str = Field(description="Member id")
    occurrence_date: date = Field(description="Occurrence date")


# Response Models


class CompletionStatusResponse(BaseModel):
    """Completion state of one task occurrence.

    Args:
        event_id: Task event id.
        member_id: Member queried.
        occurrence_date: Occurrence date.
        completed: Whether the member completed it.
        completed_by_anyone: Whether any member completed it.
    """

    event_id: str
    member_id: str
    occurrence_date: date
    completed: bool
    completed_by_anyone: bool


# Route Handlers


@router.post("/toggle", response_model=CompletionToggle)
def toggle_completion(request: ToggleCompletionRequest, ledger: CompletionLedgerDep):
    """Toggle a completion.

    Toggling is total: it never fails because the occurrence is already
    in the target state.

    Args:
        request: The (event, member, date) triple.
        ledger: Completion ledger dependency.

    Returns:
        The new state and the task's reward points.

    Raises:
        EventNotFoundError: If the event does not exist.
        EventValidationError: If the event is not a task or the date is not
            one of its occurrences.
    """
    return ledger.toggle(request.event_id, request.member_id, request.occurrence_date)


@router.get("/status", response_model=CompletionStatusResponse)
def get_completion_status(
    ledger: CompletionLedgerDep,
    event_id: str = Query(description="Task event id"),
    member_id: str = Query(description="Member id"),
    occurrence_date: date = Query(description="Occurrence date"),
):
    """Check whether a task occurrence is done."""
    return CompletionStatusResponse(
        event_id=event_id,
        member_id=member_id,
        occurrence_date=occurrence_date,
        completed=ledger.is_complete(event_id, member_id, occurrence_date),
        completed_by_anyone=ledger.is_complete_for_anyone(event_id, occurrence_date),
    )


@router.get("/members/{member_id}", response_model=CompletionListResponse)
def list_member_completions(member_id: str, ledger: CompletionLedgerDep):
    """List every completion recorded for a member."""
    completions = ledger.list_completions(member_id)
    return CompletionListResponse(completions=completions, count=len(completions))


@router.get("/events/{event_id}", response_model=CompletionListResponse)
def list_event_completions(
    event_id: str,
    ledger: CompletionLedgerDep,
    occurrence_date: Optional[date] = Query(
        default=None, description="Restrict to one occurrence"
    ),
):
    """List completions of a task, optionally for a single occurrence.

    Raises:
        EventNotFoundError: If the event does not exist.
    """
    if occurrence_date is not None:
        completions = ledger.list_completions_for_event_and_date(event_id, occurrence_date)
    else:
        completions = ledger.list_completions_for_event(event_id)
    return CompletionListResponse(completions=completions, count=len(completions))


@router.get("/{completion_id}", response_model=Completion)
def get_completion(completion_id: str, ledger: CompletionLedgerDep):
    """Get one completion by id.

    Raises:
        CompletionNotFoundError: If the completion does not exist.
    """
    return ledger.get_completion(completion_id)
