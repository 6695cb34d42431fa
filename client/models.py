"""Client response models for the household calendar API client.

These mirror the JSON the server returns. They are defined independently of
the server-side models so the client can be used without the server package.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

__all__ = [
    "CalendarEvent",
    "Completion",
    "CompletionList",
    "CompletionStatus",
    "CompletionToggle",
    "EditScope",
    "EventException",
    "EventList",
    "ExceptionList",
    "HealthResponse",
    "Occurrence",
    "OccurrenceList",
]


EditScope = Literal["this", "this_and_following", "all"]


class CalendarEvent(BaseModel):
    """A stored event (master or override).

    Attributes:
        id: Event id.
        family_id: Owning family.
        title: Event title.
        start: Start timestamp.
        end: End timestamp, if any.
        all_day: Whether the event is all-day.
        recurrence: Recurrence rule as sent by the server.
        parent_event_id: Master event id if this is an override.
    """

    id: str
    family_id: str
    created_by: str | None = None
    title: str
    description: str | None = None
    location: str | None = None
    start: datetime
    end: datetime | None = None
    all_day: bool = False
    category_id: str | None = None
    participant_ids: list[str] = Field(default_factory=list)
    recurrence: dict[str, Any] = Field(default_factory=dict)
    is_task: bool = False
    is_required: bool = True
    reward_points: int | None = None
    parent_event_id: str | None = None
    created_at: datetime
    updated_at: datetime

    def is_recurring(self) -> bool:
        return self.recurrence.get("kind", "none") != "none"


class Occurrence(BaseModel):
    """One effective instance of an event on a calendar date."""

    event_id: str
    occurrence_date: date
    family_id: str
    title: str
    description: str | None = None
    location: str | None = None
    start: datetime
    end: datetime | None = None
    all_day: bool = False
    category_id: str | None = None
    participant_ids: list[str] = Field(default_factory=list)
    span_dates: list[date] = Field(default_factory=list)
    is_recurring: bool = False
    override_event_id: str | None = None
    is_task: bool = False
    is_required: bool = True
    reward_points: int | None = None
    created_at: datetime
    completed: bool | None = None
    completed_by_anyone: bool | None = None

    @property
    def key(self) -> tuple[str, date]:
        return (self.event_id, self.occurrence_date)


class EventException(BaseModel):
    """Per-date exception of a recurring event.

    Attributes:
        id: Exception id.
        event_id: Master event id.
        occurrence_date: Date the exception applies to.
        modified_event: Override event, or None for a deleted occurrence.
    """

    id: str
    event_id: str
    occurrence_date: date
    modified_event: CalendarEvent | None = None
    created_at: datetime


class Completion(BaseModel):
    """A member's completion of one task occurrence."""

    id: str
    event_id: str
    member_id: str
    occurrence_date: date
    completed_at: datetime


class CompletionToggle(BaseModel):
    """Response model for a completion toggle.

    Attributes:
        completed: State after the toggle.
        reward_points: Points the task is worth per completion.
    """

    event_id: str
    member_id: str
    occurrence_date: date
    completed: bool
    reward_points: int | None = None


class CompletionStatus(BaseModel):
    """Response model for a completion status check."""

    event_id: str
    member_id: str
    occurrence_date: date
    completed: bool
    completed_by_anyone: bool


class OccurrenceList(BaseModel):
    """Response model for occurrence and task listings."""

    family_id: str
    start: date
    end: date
    occurrences: list[Occurrence]
    count: int


class EventList(BaseModel):
    """Response model for events touched by an update."""

    events: list[CalendarEvent]
    count: int


class ExceptionList(BaseModel):
    event_id: str
    exceptions: list[EventException]
    count: int


class CompletionList(BaseModel):
    completions: list[Completion]
    count: int


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status string (e.g., "healthy").
    """

    status: str = Field(..., description="Health status")
