"""Household calendar domain models.

This package contains the recurrence expander, span calculator, exception
resolution and range query, the scoped editor for recurring events and the
task completion ledger. The value types re-exported here have no storage
dependencies; import the services from their own modules.
"""

from models.calendar_event import (
    CalendarEvent,
    Completion,
    CompletionToggle,
    EventException,
    EventPatch,
    NewEvent,
    Occurrence,
)
from models.errors import (
    CompletionNotFoundError,
    EventNotFoundError,
    EventValidationError,
    HouseholdError,
    ScopeConflictError,
)
from models.recurrence import (
    EXPANSION_SAFETY_CAP,
    EndsAfterCount,
    EndsOnDate,
    NeverEnds,
    RecurrenceKind,
    RecurrenceRule,
)

__all__ = [
    "CalendarEvent",
    "Completion",
    "CompletionToggle",
    "EventException",
    "EventPatch",
    "NewEvent",
    "Occurrence",
    "CompletionNotFoundError",
    "EventNotFoundError",
    "EventValidationError",
    "HouseholdError",
    "ScopeConflictError",
    "EXPANSION_SAFETY_CAP",
    "EndsAfterCount",
    "EndsOnDate",
    "NeverEnds",
    "RecurrenceKind",
    "RecurrenceRule",
]
