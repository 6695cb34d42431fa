"""Calendar endpoints.

Provides the REST API for listing occurrences and for creating, updating
and deleting events, including scoped edits of recurring series.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query, Response, status
from pydantic import Field

from api.dependencies import OccurrenceQueryDep, ScopeEditorDep
from api.models import EventListResponse, ExceptionListResponse, OccurrenceListResponse
from api.utils import require_window
from models.calendar_event import CalendarEvent, EventPatch, NewEvent
from models.scope_editor import EditScope

router = APIRouter(
    prefix="/calendar",
    tags=["calendar"],
)


# Request Models


class CreateEventRequest(NewEvent):
    """Request to create a new event.

    Same fields as NewEvent: family_id, created_by, title, description,
    location, start, end, all_day, category_id, participant_ids, recurrence,
    is_task, is_required and reward_points.
    """


class UpdateEventRequest(EventPatch):
    """Request to update an event.

    Args:
        scope: For recurring events - which occurrences to affect.
        occurrence_date: Target occurrence for "this" and
            "this_and_following".

    Every other field is optional and applied only when present.
    """

    scope: Optional[EditScope] = Field(
        default=None, description="Recurrence scope for the edit"
    )
    occurrence_date: Optional[date] = Field(
        default=None, description="Occurrence the scoped edit targets"
    )

    def to_patch(self) -> EventPatch:
        """Extract the field changes as an EventPatch."""
        changes = self.model_dump(
            exclude_unset=True, exclude={"scope", "occurrence_date"}
        )
        return EventPatch.model_validate(changes)


# Route Handlers


@router.get("/occurrences", response_model=OccurrenceListResponse)
def list_occurrences(
    query: OccurrenceQueryDep,
    family_id: str = Query(description="Family whose calendar is listed"),
    start: date = Query(description="First date of the window"),
    end: date = Query(description="Last date of the window"),
):
    """List effective occurrences in a date window.

    Args:
        query: Range query dependency.
        family_id: Family whose events are listed.
        start: First date of the window (inclusive).
        end: Last date of the window (inclusive).

    Returns:
        Deduplicated occurrences ordered by start time.
    """
    require_window(start, end)
    occurrences = query.list_occurrences(family_id, start, end)
    return OccurrenceListResponse(
        family_id=family_id,
        start=start,
        end=end,
        occurrences=occurrences,
        count=len(occurrences),
    )


@router.get("/tasks", response_model=OccurrenceListResponse)
def list_tasks(
    query: OccurrenceQueryDep,
    family_id: str = Query(description="Family whose tasks are listed"),
    member_id: str = Query(description="Member whose completion state is shown"),
    start: date = Query(description="First date of the window"),
    end: date = Query(description="Last date of the window"),
    participating_only: bool = Query(
        default=False, description="Only tasks the member takes part in"
    ),
):
    """List task occurrences decorated with completion flags.

    Returns:
        Task occurrences with ``completed`` and ``completed_by_anyone`` set.
    """
    require_window(start, end)
    tasks = query.list_tasks_with_completion(
        family_id, member_id, start, end, participating_only=participating_only
    )
    return OccurrenceListResponse(
        family_id=family_id,
        start=start,
        end=end,
        occurrences=tasks,
        count=len(tasks),
    )


@router.post(
    "/events",
    response_model=CalendarEvent,
    status_code=status.HTTP_201_CREATED,
)
def create_event(request: CreateEventRequest, editor: ScopeEditorDep):
    """Create a new event.

    Args:
        request: Event fields.
        editor: Event editor dependency.

    Returns:
        The stored event.

    Raises:
        EventValidationError: If the fields break a write invariant.
    """
    return editor.create_event(NewEvent.model_validate(request.model_dump()))


@router.get("/events/{event_id}", response_model=CalendarEvent)
def get_event(event_id: str, editor: ScopeEditorDep):
    """Get one event by id.

    Raises:
        EventNotFoundError: If the event does not exist.
    """
    return editor.get_event(event_id)


@router.get("/events/{event_id}/exceptions", response_model=ExceptionListResponse)
def list_event_exceptions(event_id: str, editor: ScopeEditorDep):
    """List the per-date exceptions of a recurring event."""
    exceptions = editor.list_exceptions(event_id)
    return ExceptionListResponse(
        event_id=event_id, exceptions=exceptions, count=len(exceptions)
    )


@router.patch("/events/{event_id}", response_model=EventListResponse)
def update_event(event_id: str, request: UpdateEventRequest, editor: ScopeEditorDep):
    """Update an event.

    For recurring events, ``scope`` selects whether the change applies to
    one occurrence, to the occurrence and all later ones, or to the whole
    series.

    Args:
        event_id: Event to update.
        request: Scope, target occurrence and field changes.
        editor: Event editor dependency.

    Returns:
        Events created or changed by the edit.

    Raises:
        EventNotFoundError: If the event does not exist.
        ScopeConflictError: If the occurrence date is not part of the series.
    """
    events = editor.update_event(
        event_id,
        request.to_patch(),
        scope=request.scope,
        occurrence_date=request.occurrence_date,
    )
    return EventListResponse(events=events, count=len(events))


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    editor: ScopeEditorDep,
    scope: Optional[EditScope] = Query(default=None, description="Recurrence scope"),
    occurrence_date: Optional[date] = Query(
        default=None, description="Occurrence the scoped delete targets"
    ),
):
    """Delete an event, one occurrence, or an occurrence and all later ones.

    Raises:
        EventNotFoundError: If the event does not exist.
        ScopeConflictError: If the occurrence date is not part of the series.
    """
    editor.delete_event(event_id, scope=scope, occurrence_date=occurrence_date)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
