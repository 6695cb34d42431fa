"""Write path for events, including scoped edits of recurring series.

A recurring series relative to a target date D is either untouched, has an
exception at D, or is split at D. Edits and deletes move it between those
states according to their scope:

- THIS: create or replace the exception at D (override or tombstone).
- THIS_AND_FOLLOWING: end the master on D - 1 and, for edits, start a new
  series at D.
- ALL: mutate or delete the master itself.
"""

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from models.calendar_event import (
    CalendarEvent,
    EventException,
    EventPatch,
    NewEvent,
    apply_task_defaults,
    default_end_time,
    merge_fields,
    new_id,
    validate_event_fields,
)
from models.errors import EventValidationError, ScopeConflictError
from models.recurrence import (
    EndsAfterCount,
    EndsOnDate,
    RecurrenceRule,
    is_series_date,
    occurrence_index,
)
from storage.database import Database
from storage.repository import (
    copy_event_to_row,
    delete_completions_from,
    delete_event_tree,
    event_from_row,
    exceptions_by_event,
    find_exception,
    find_exception_for_override,
    get_event_row,
    insert_event,
    move_completions_from,
    remove_exception,
    remove_exceptions_from,
    tombstoned_dates,
)
from storage.schema import EventExceptionRow, EventRow

logger = logging.getLogger(__name__)


class EditScope(str, Enum):
    """Breadth of an edit or delete on a recurring event."""

    THIS = "this"
    THIS_AND_FOLLOWING = "this_and_following"
    ALL = "all"


class ScopeEditor:
    """Creates, updates and deletes events.

    Args:
        database: Database holding events, exceptions and completions.
    """

    def __init__(self, database: Database):
        self.database = database

    # ------------------------------------------------------------------
    # Plain operations
    # ------------------------------------------------------------------

    def create_event(self, new_event: NewEvent) -> CalendarEvent:
        """Store a new master event.

        Tasks without reward points get the default amount, and timed events
        without an end last one hour.

        Args:
            new_event: Fields of the event to create.

        Returns:
            The stored event.

        Raises:
            EventValidationError: If the fields break a write invariant.
        """
        fields = apply_task_defaults(new_event.editable_fields())
        if fields["end"] is None and not fields["all_day"]:
            fields["end"] = default_end_time(fields["start"])

        now = datetime.now()
        event = CalendarEvent(
            family_id=new_event.family_id,
            created_by=new_event.created_by,
            created_at=now,
            updated_at=now,
            **fields,
        )
        validate_event_fields(event)

        with self.database.transaction() as session:
            insert_event(session, event)

        logger.info(
            f"Created event {event.id} '{event.title}' for family {event.family_id} "
            f"(recurrence={event.recurrence.kind.value})"
        )
        return event

    def get_event(self, event_id: str) -> CalendarEvent:
        """Load one event.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        with self.database.session() as session:
            return event_from_row(get_event_row(session, event_id))

    def list_exceptions(self, event_id: str) -> list[EventException]:
        """List the per-date exceptions of a master event.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        with self.database.session() as session:
            get_event_row(session, event_id)
            return exceptions_by_event(session, [event_id]).get(event_id, [])

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_event(
        self,
        event_id: str,
        patch: EventPatch,
        scope: Optional[EditScope] = None,
        occurrence_date: Optional[date] = None,
    ) -> list[CalendarEvent]:
        """Apply a patch, honouring the scope for recurring events.

        Without a scope, or for one-off and override events, the patch is
        applied to the event itself.

        Args:
            event_id: Event to update.
            patch: Fields to change.
            scope: Breadth of the edit for recurring events.
            occurrence_date: Target occurrence for THIS and
                THIS_AND_FOLLOWING.

        Returns:
            Events created or changed: the override for THIS, the truncated
            master and the new series for a THIS_AND_FOLLOWING split, the
            master otherwise.

        Raises:
            EventNotFoundError: If the event does not exist.
            EventValidationError: If the result breaks a write invariant or
                a scoped edit lacks its occurrence date.
            ScopeConflictError: If the occurrence date is not part of the
                series.
        """
        with self.database.transaction() as session:
            row = get_event_row(session, event_id)
            event = event_from_row(row)

            if scope is None or not event.is_recurring() or event.is_override():
                result = [self._apply_patch(row, event, patch)]
            else:
                result = self._handle_recurring_update(
                    session, row, event, patch, scope, occurrence_date
                )

        logger.info(
            f"Updated event {event_id} (scope={scope.value if scope else None}, "
            f"date={occurrence_date}); {len(result)} event(s) written"
        )
        return result

    def _handle_recurring_update(
        self,
        session: Session,
        row: EventRow,
        master: CalendarEvent,
        patch: EventPatch,
        scope: EditScope,
        occurrence_date: Optional[date],
    ) -> list[CalendarEvent]:
        if scope == EditScope.ALL:
            return [self._apply_patch(row, master, patch)]

        day = self._require_date(scope, occurrence_date)
        if scope == EditScope.THIS:
            self._require_series_date(master, day)
            return [self._create_modified_occurrence(session, master, patch, day)]

        self._require_effective_date(session, master, day)
        if day == master.start.date():
            return [self._apply_patch(row, master, patch)]
        return self._split_recurring_event(session, row, master, patch, day)

    def _apply_patch(
        self, row: EventRow, event: CalendarEvent, patch: EventPatch
    ) -> CalendarEvent:
        """Patch an event in place."""
        fields = apply_task_defaults(merge_fields(event, patch))
        updated = CalendarEvent(
            id=event.id,
            family_id=event.family_id,
            created_by=event.created_by,
            parent_event_id=event.parent_event_id,
            created_at=event.created_at,
            updated_at=datetime.now(),
            **fields,
        )
        validate_event_fields(updated)
        copy_event_to_row(updated, row)
        return updated

    def _create_modified_occurrence(
        self,
        session: Session,
        master: CalendarEvent,
        patch: EventPatch,
        day: date,
    ) -> CalendarEvent:
        """Replace the occurrence on ``day`` with an override event."""
        self._clear_exception(session, master.id, day)

        now = datetime.now()
        fields = apply_task_defaults(
            merge_fields(master, patch, start=datetime.combine(day, master.start.time()))
        )
        fields["recurrence"] = RecurrenceRule()
        override = CalendarEvent(
            family_id=master.family_id,
            created_by=master.created_by,
            parent_event_id=master.id,
            created_at=now,
            updated_at=now,
            **fields,
        )
        validate_event_fields(override)

        override_row = insert_event(session, override)
        session.add(
            EventExceptionRow(
                id=new_id(),
                event_id=master.id,
                occurrence_date=day,
                modified_event=override_row,
                created_at=now,
            )
        )
        return override

    def _split_recurring_event(
        self,
        session: Session,
        row: EventRow,
        master: CalendarEvent,
        patch: EventPatch,
        day: date,
    ) -> list[CalendarEvent]:
        """End the master before ``day`` and start a new series on ``day``.

        An after-count end carries over as the number of occurrences the
        original series still had left. Completions from ``day`` on follow
        the new series.
        """
        index = occurrence_index(master.recurrence, master.start.date(), day)
        truncated = self._truncate_series(session, row, master, day)

        now = datetime.now()
        fields = apply_task_defaults(
            merge_fields(master, patch, start=datetime.combine(day, master.start.time()))
        )
        if "recurrence" not in patch.changes():
            fields["recurrence"] = self._following_rule(
                master.recurrence, index, master.start.day
            )
        successor = CalendarEvent(
            family_id=master.family_id,
            created_by=master.created_by,
            created_at=now,
            updated_at=now,
            **fields,
        )
        validate_event_fields(successor)
        insert_event(session, successor)
        session.flush()

        moved = move_completions_from(session, master.id, successor.id, day)
        logger.info(
            f"Split event {master.id} at {day}: new series {successor.id}, "
            f"{moved} completion(s) moved"
        )
        return [truncated, successor]

    @staticmethod
    def _following_rule(
        rule: RecurrenceRule, index: Optional[int], anchor_day: int
    ) -> RecurrenceRule:
        """Rule for the part of a series starting at position ``index``.

        The new series keeps aiming for the original day of month, so a split
        on a clamped date does not shift the later occurrences.
        """
        update: dict = {"month_day": rule.month_day or anchor_day}
        if rule.count is not None and index is not None:
            update["end"] = EndsAfterCount(count=rule.count - index)
        return rule.model_copy(update=update)

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete_event(
        self,
        event_id: str,
        scope: Optional[EditScope] = None,
        occurrence_date: Optional[date] = None,
    ) -> None:
        """Delete an event, or part of a recurring series.

        Deleting an override event directly turns its exception into a
        tombstone, so the occurrence stays removed.

        Args:
            event_id: Event to delete.
            scope: Breadth of the delete for recurring events.
            occurrence_date: Target occurrence for THIS and
                THIS_AND_FOLLOWING.

        Raises:
            EventNotFoundError: If the event does not exist.
            EventValidationError: If a scoped delete lacks its occurrence date.
            ScopeConflictError: If the occurrence date is not part of the
                series.
        """
        with self.database.transaction() as session:
            row = get_event_row(session, event_id)
            event = event_from_row(row)

            if event.is_override():
                self._delete_override(session, row)
            elif scope is None or scope == EditScope.ALL or not event.is_recurring():
                delete_event_tree(session, row)
            else:
                self._handle_recurring_delete(session, row, event, scope, occurrence_date)

        logger.info(
            f"Deleted event {event_id} (scope={scope.value if scope else None}, "
            f"date={occurrence_date})"
        )

    def _handle_recurring_delete(
        self,
        session: Session,
        row: EventRow,
        master: CalendarEvent,
        scope: EditScope,
        occurrence_date: Optional[date],
    ) -> None:
        day = self._require_date(scope, occurrence_date)

        if scope == EditScope.THIS:
            self._require_series_date(master, day)
            self._clear_exception(session, master.id, day)
            session.add(
                EventExceptionRow(
                    id=new_id(),
                    event_id=master.id,
                    occurrence_date=day,
                    modified_event=None,
                    created_at=datetime.now(),
                )
            )
            delete_completions_from(session, master.id, day, last_date=day)
            return

        self._require_effective_date(session, master, day)
        if day == master.start.date():
            delete_event_tree(session, row)
            return
        self._truncate_series(session, row, master, day)
        removed = delete_completions_from(session, master.id, day)
        logger.debug(f"Removed {removed} completion(s) of {master.id} from {day}")

    def _delete_override(self, session: Session, row: EventRow) -> None:
        exception = find_exception_for_override(session, row.id)
        if exception is not None:
            exception.modified_event = None
        session.delete(row)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _truncate_series(
        self, session: Session, row: EventRow, master: CalendarEvent, day: date
    ) -> CalendarEvent:
        """End a series on the day before ``day`` and drop its later exceptions."""
        truncated = master.model_copy(
            update={
                "recurrence": master.recurrence.model_copy(
                    update={"end": EndsOnDate(until=day - timedelta(days=1))}
                ),
                "updated_at": datetime.now(),
            }
        )
        copy_event_to_row(truncated, row)
        orphaned = remove_exceptions_from(session, row, day)
        session.flush()
        if orphaned:
            logger.debug(f"Removed {orphaned} orphaned exception(s) of {master.id}")
        return truncated

    @staticmethod
    def _clear_exception(session: Session, event_id: str, day: date) -> None:
        """Remove any exception (and override) already present on ``day``."""
        existing = find_exception(session, event_id, day)
        if existing is not None:
            remove_exception(session, existing)
            session.flush()

    @staticmethod
    def _require_date(scope: EditScope, occurrence_date: Optional[date]) -> date:
        if occurrence_date is None:
            raise EventValidationError(
                f"occurrence_date is required for scope '{scope.value}'",
                field="occurrence_date",
            )
        return occurrence_date

    @staticmethod
    def _require_series_date(master: CalendarEvent, day: date) -> None:
        if not is_series_date(master.recurrence, master.start.date(), day):
            raise ScopeConflictError(master.id, day)

    @staticmethod
    def _require_effective_date(
        session: Session, master: CalendarEvent, day: date
    ) -> None:
        """Reject dates outside the series or suppressed by a tombstone."""
        if not is_series_date(master.recurrence, master.start.date(), day):
            raise ScopeConflictError(master.id, day)
        if day in tombstoned_dates(session, master.id):
            raise ScopeConflictError(
                master.id,
                day,
                message=f"Occurrence {day.isoformat()} of event '{master.id}' was deleted",
            )
