"""Per-member, per-date completion facts for task events.

A row for (event, member, occurrence date) means the member finished that
occurrence; absence means it is still open. Toggling deletes an existing row
or inserts a new one inside one transaction. The storage-level unique
constraint settles concurrent inserts for the same triple: the losing writer
rolls back, retries, and then sees the row the winner inserted.
"""

import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from models.calendar_event import CalendarEvent, Completion, CompletionToggle, new_id
from models.errors import EventValidationError
from models.recurrence import is_series_date
from models.span import compute_span
from storage.database import Database
from storage.repository import (
    completion_from_row,
    event_from_row,
    find_completion,
    get_completion_row,
    get_event_row,
    list_completion_rows,
    tombstoned_dates,
)
from storage.schema import CompletionRow

logger = logging.getLogger(__name__)


class CompletionLedger:
    """Store of task completions with idempotent toggle semantics.

    The ledger does not decide who may toggle whose row; callers enforce
    that policy before invoking it.

    Args:
        database: Database holding events and completions.
    """

    def __init__(self, database: Database):
        self.database = database

    def is_complete(self, event_id: str, member_id: str, occurrence_date: date) -> bool:
        """Check whether a member completed a task occurrence.

        Args:
            event_id: Task event id.
            member_id: Member id.
            occurrence_date: Occurrence date.

        Returns:
            True if a completion row exists for the triple.
        """
        with self.database.session() as session:
            return find_completion(session, event_id, member_id, occurrence_date) is not None

    def is_complete_for_anyone(self, event_id: str, occurrence_date: date) -> bool:
        """Check whether any member completed a shared task occurrence."""
        with self.database.session() as session:
            rows = list_completion_rows(
                session, event_id=event_id, occurrence_date=occurrence_date
            )
            return len(rows) > 0

    def toggle(
        self, event_id: str, member_id: str, occurrence_date: date
    ) -> CompletionToggle:
        """Flip the completion state of a task occurrence for a member.

        Args:
            event_id: Task event id.
            member_id: Member id.
            occurrence_date: Occurrence date.

        Returns:
            The new state together with the task's reward points.

        Raises:
            EventNotFoundError: If the event does not exist.
            EventValidationError: If the event is not a task or the date is
                not one of its occurrences.
        """
        try:
            return self._toggle_once(event_id, member_id, occurrence_date)
        except IntegrityError:
            # A concurrent toggle inserted the same row first.
            logger.warning(
                f"Concurrent completion insert for ({event_id}, {member_id}, "
                f"{occurrence_date}); retrying"
            )
        return self._toggle_once(event_id, member_id, occurrence_date)

    def _toggle_once(
        self, event_id: str, member_id: str, occurrence_date: date
    ) -> CompletionToggle:
        with self.database.transaction() as session:
            event = event_from_row(get_event_row(session, event_id))
            self._validate_target(event, occurrence_date, tombstoned_dates(session, event_id))

            existing = find_completion(session, event_id, member_id, occurrence_date)
            if existing is not None:
                session.delete(existing)
                completed = False
            else:
                session.add(
                    CompletionRow(
                        id=new_id(),
                        event_id=event_id,
                        member_id=member_id,
                        occurrence_date=occurrence_date,
                        completed_at=datetime.now(),
                    )
                )
                session.flush()
                completed = True

        logger.info(
            f"Task {event_id} on {occurrence_date} marked "
            f"{'done' if completed else 'not done'} for member {member_id}"
        )
        return CompletionToggle(
            event_id=event_id,
            member_id=member_id,
            occurrence_date=occurrence_date,
            completed=completed,
            reward_points=event.reward_points,
        )

    @staticmethod
    def _validate_target(
        event: CalendarEvent, occurrence_date: date, tombstones: set[date]
    ) -> None:
        """Check that a completion can be recorded for this occurrence."""
        if not event.is_task:
            raise EventValidationError(
                f"Event '{event.id}' is not a task", field="event_id"
            )

        start_date = event.start.date()
        if event.is_recurring():
            valid = (
                is_series_date(event.recurrence, start_date, occurrence_date)
                and occurrence_date not in tombstones
            )
        else:
            end_date = event.end.date() if event.end is not None else None
            valid = occurrence_date in compute_span(start_date, end_date, event.all_day)

        if not valid:
            raise EventValidationError(
                f"{occurrence_date.isoformat()} is not an occurrence of task '{event.id}'",
                field="occurrence_date",
            )

    def get_completion(self, completion_id: str) -> Completion:
        """Load one completion.

        Raises:
            CompletionNotFoundError: If the completion does not exist.
        """
        with self.database.session() as session:
            return completion_from_row(get_completion_row(session, completion_id))

    def list_completions(self, member_id: str) -> list[Completion]:
        """All completions recorded for a member, oldest occurrence first."""
        with self.database.session() as session:
            rows = list_completion_rows(session, member_id=member_id)
            return [completion_from_row(row) for row in rows]

    def list_completions_for_event(self, event_id: str) -> list[Completion]:
        """All completions of a task across dates and members.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        with self.database.session() as session:
            get_event_row(session, event_id)
            rows = list_completion_rows(session, event_id=event_id)
            return [completion_from_row(row) for row in rows]

    def list_completions_for_event_and_date(
        self, event_id: str, occurrence_date: date
    ) -> list[Completion]:
        """Completions of one task occurrence, one per member who finished it.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        with self.database.session() as session:
            get_event_row(session, event_id)
            rows = list_completion_rows(
                session, event_id=event_id, occurrence_date=occurrence_date
            )
            return [completion_from_row(row) for row in rows]
