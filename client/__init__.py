"""Household calendar API client library.

A typed Python client for the household calendar REST API, with both
synchronous and asynchronous interfaces.

Example:
    Synchronous usage::

        from client import HouseholdClient

        with HouseholdClient(base_url="http://localhost:8000") as client:
            week = client.calendar.list_occurrences(
                "fam-1", date(2024, 1, 1), date(2024, 1, 7)
            )

    Asynchronous usage::

        from client import AsyncHouseholdClient

        async with AsyncHouseholdClient() as client:
            await client.completions.toggle(event_id, "kid-1", date(2024, 1, 1))

Exports:
    HouseholdClient: Synchronous client.
    AsyncHouseholdClient: Asynchronous client.
    RollingFeed: Paged, deduplicated occurrence feed.

    Exceptions:
        HouseholdClientError: Base exception for all client errors.
        ConnectionError: Failed to connect to the server.
        TimeoutError: Request timed out.
        APIError: Server returned an error response.
        BadRequestError: Business rule violated (HTTP 400).
        ValidationError: Request validation failed (HTTP 422).
        NotFoundError: Resource not found (HTTP 404).
        ConflictError: Scope conflict (HTTP 409).
        ServerError: Server-side error (HTTP 5xx).
"""

from client._calendar import AsyncCalendarClient, CalendarClient
from client._completions import AsyncCompletionsClient, CompletionsClient
from client.client import AsyncHouseholdClient, HouseholdClient
from client.exceptions import (
    APIError,
    BadRequestError,
    ConflictError,
    ConnectionError,
    HouseholdClientError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from client.models import (
    CalendarEvent,
    Completion,
    CompletionList,
    CompletionStatus,
    CompletionToggle,
    EditScope,
    EventException,
    EventList,
    ExceptionList,
    HealthResponse,
    Occurrence,
    OccurrenceList,
)
from client.rolling import FeedFilter, RollingFeed

__all__ = [
    # Main clients
    "HouseholdClient",
    "AsyncHouseholdClient",
    # Sub-clients
    "CalendarClient",
    "AsyncCalendarClient",
    "CompletionsClient",
    "AsyncCompletionsClient",
    # Rolling feed
    "FeedFilter",
    "RollingFeed",
    # Exceptions
    "HouseholdClientError",
    "ConnectionError",
    "TimeoutError",
    "APIError",
    "BadRequestError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ServerError",
    # Models
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
