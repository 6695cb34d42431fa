"""Shared request and response models for API endpoints.

This module contains response envelopes reused by several route modules.
Route-specific request models live next to their handlers.
"""

from datetime import date

from pydantic import BaseModel, Field

from models.calendar_event import CalendarEvent, Completion, EventException, Occurrence


class OccurrenceListResponse(BaseModel):
    """Occurrences of a family inside a date window.

    Attributes:
        family_id: Family the occurrences belong to.
        start: First date of the window (inclusive).
        end: Last date of the window (inclusive).
        occurrences: Effective occurrences in display order.
        count: Number of occurrences returned.
    """

    family_id: str
    start: date
    end: date
    occurrences: list[Occurrence]
    count: int


class EventListResponse(BaseModel):
    """Events created or modified by a write.

    Attributes:
        events: The affected events.
        count: Number of events.
    """

    events: list[CalendarEvent]
    count: int


class ExceptionListResponse(BaseModel):
    """Per-date exceptions of a master event."""

    event_id: str
    exceptions: list[EventException]
    count: int


class CompletionListResponse(BaseModel):
    """Completion rows matching a query.

    Attributes:
        completions: Matching completions, oldest occurrence first.
        count: Number of completions.
    """

    completions: list[Completion]
    count: int


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error category.
        detail: Human-readable error message.
    """

    error: str = Field(description="Error category")
    detail: str = Field(description="Human-readable message")
