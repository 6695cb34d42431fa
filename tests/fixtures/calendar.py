"""Fixtures for the calendar core: database, services and event factories."""

from datetime import date, datetime
from typing import Any

import pytest

from models.calendar_event import NewEvent
from models.completion_ledger import CompletionLedger
from models.occurrences import OccurrenceRangeQuery
from models.recurrence import (
    EndsAfterCount,
    EndsOnDate,
    NeverEnds,
    RecurrenceKind,
    RecurrenceRule,
)
from models.scope_editor import ScopeEditor
from storage.database import Database

FAMILY_ID = "family-1"
OTHER_FAMILY_ID = "family-2"
PARENT_ID = "member-parent"
CHILD_ID = "member-child"


def create_rule(
    kind: RecurrenceKind | str = RecurrenceKind.NONE,
    interval: int = 1,
    count: int | None = None,
    until: date | None = None,
) -> RecurrenceRule:
    """Create a RecurrenceRule from flat arguments.

    Args:
        kind: Repetition unit.
        interval: Units between occurrences.
        count: Ends after this many occurrences, if given.
        until: Ends on this date, if given.

    Returns:
        RecurrenceRule instance ready for testing.
    """
    if count is not None:
        end: Any = EndsAfterCount(count=count)
    elif until is not None:
        end = EndsOnDate(until=until)
    else:
        end = NeverEnds()
    return RecurrenceRule(kind=RecurrenceKind(kind), interval=interval, end=end)


def create_new_event(
    title: str = "Test Event",
    start: datetime | None = None,
    end: datetime | None = None,
    family_id: str = FAMILY_ID,
    recurrence: RecurrenceRule | None = None,
    **kwargs,
) -> NewEvent:
    """Create a NewEvent with sensible defaults.

    Args:
        title: Event title.
        start: Event start (defaults to 2024-01-01 09:00).
        end: Event end (defaults to one hour after start for timed events).
        family_id: Owning family.
        recurrence: Recurrence rule (defaults to a one-off event).
        **kwargs: Additional fields to override.

    Returns:
        NewEvent instance ready for testing.
    """
    start = start or datetime(2024, 1, 1, 9, 0)
    return NewEvent(
        title=title,
        start=start,
        end=end,
        family_id=family_id,
        created_by=PARENT_ID,
        recurrence=recurrence or RecurrenceRule(),
        **kwargs,
    )


@pytest.fixture
def database():
    """Provide a fresh in-memory database with the schema created.

    Yields:
        A Database bound to a private SQLite in-memory store.
    """
    db = Database("sqlite://")
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def query(database):
    """Provide an OccurrenceRangeQuery over the test database."""
    return OccurrenceRangeQuery(database)


@pytest.fixture
def editor(database):
    """Provide a ScopeEditor over the test database."""
    return ScopeEditor(database)


@pytest.fixture
def ledger(database):
    """Provide a CompletionLedger over the test database."""
    return CompletionLedger(database)


@pytest.fixture
def weekly_task(editor):
    """A weekly chore on Mondays at 18:00, three occurrences long.

    Occurs on 2024-01-01, 2024-01-08 and 2024-01-15.
    """
    return editor.create_event(
        create_new_event(
            title="Take out trash",
            start=datetime(2024, 1, 1, 18, 0),
            end=datetime(2024, 1, 1, 18, 30),
            recurrence=create_rule(RecurrenceKind.WEEKLY, count=3),
            is_task=True,
            reward_points=5,
            participant_ids=[CHILD_ID],
        )
    )


@pytest.fixture
def daily_event(editor):
    """A daily 07:30 breakfast that never ends, starting 2024-01-01."""
    return editor.create_event(
        create_new_event(
            title="Breakfast",
            start=datetime(2024, 1, 1, 7, 30),
            end=datetime(2024, 1, 1, 8, 0),
            recurrence=create_rule(RecurrenceKind.DAILY),
        )
    )
