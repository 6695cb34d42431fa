"""Domain errors raised by the calendar core.

The API layer maps each of these onto an HTTP status in api/exceptions.py.
"""

from datetime import date
from typing import Optional


class HouseholdError(Exception):
    """Base class for all calendar core errors."""


class EventValidationError(HouseholdError, ValueError):
    """Raised when event fields or a recurrence rule are malformed.

    Args:
        message: Description of the rejected input.
        field: Name of the offending field, when known.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class EventNotFoundError(HouseholdError):
    """Raised when an event id does not exist.

    Args:
        event_id: The id that was looked up.
    """

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event '{event_id}' not found")


class CompletionNotFoundError(HouseholdError):
    """Raised when a completion id does not exist.

    Args:
        completion_id: The id that was looked up.
    """

    def __init__(self, completion_id: str):
        self.completion_id = completion_id
        super().__init__(f"Completion '{completion_id}' not found")


class ScopeConflictError(HouseholdError):
    """Raised when a scoped edit targets a date outside the series.

    Args:
        event_id: The recurring master event.
        occurrence_date: The requested target date.
        message: Optional override for the default message.
    """

    def __init__(
        self,
        event_id: str,
        occurrence_date: date,
        message: Optional[str] = None,
    ):
        self.event_id = event_id
        self.occurrence_date = occurrence_date
        self.message = message or (
            f"{occurrence_date.isoformat()} is not an occurrence of event '{event_id}'"
        )
        super().__init__(self.message)
