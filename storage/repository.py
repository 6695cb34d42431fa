"""Row-level operations and conversions between rows and domain models.

Every function takes an open ``Session``; callers own the transaction.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.orm import Session, selectinload

from models.calendar_event import CalendarEvent, Completion, EventException
from models.errors import CompletionNotFoundError, EventNotFoundError
from models.recurrence import (
    EndsAfterCount,
    EndsOnDate,
    NeverEnds,
    RecurrenceKind,
    RecurrenceRule,
)
from storage.schema import CompletionRow, EventExceptionRow, EventRow

logger = logging.getLogger(__name__)


# ============================================================================
# CONVERSIONS
# ============================================================================


def rule_from_row(row: EventRow) -> RecurrenceRule:
    """Rebuild the nested recurrence rule from its flat columns.

    Stored rows are trusted as written, so the rule is constructed without
    re-validation; a legacy non-positive interval then reaches the expander,
    which bounds it.
    """
    if row.recurrence_end_type == "on_date" and row.recurrence_until is not None:
        end = EndsOnDate(until=row.recurrence_until)
    elif row.recurrence_end_type == "after_count" and row.recurrence_count:
        end = EndsAfterCount(count=row.recurrence_count)
    else:
        end = NeverEnds()
    return RecurrenceRule.model_construct(
        kind=RecurrenceKind(row.recurrence_kind),
        interval=row.recurrence_interval,
        end=end,
        month_day=row.recurrence_month_day,
    )


def event_from_row(row: EventRow) -> CalendarEvent:
    """Convert an event row into a CalendarEvent."""
    return CalendarEvent(
        id=row.id,
        family_id=row.family_id,
        parent_event_id=row.parent_event_id,
        title=row.title,
        description=row.description,
        location=row.location,
        start=row.start_at,
        end=row.end_at,
        all_day=row.all_day,
        category_id=row.category_id,
        participant_ids=list(row.participant_ids or []),
        created_by=row.created_by,
        recurrence=rule_from_row(row),
        is_task=row.is_task,
        is_required=row.is_required,
        reward_points=row.reward_points,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def copy_event_to_row(event: CalendarEvent, row: EventRow) -> EventRow:
    """Write every CalendarEvent field onto a row.

    Args:
        event: Source event.
        row: Row to update in place.

    Returns:
        The same row.
    """
    rule = event.recurrence
    row.id = event.id
    row.family_id = event.family_id
    row.parent_event_id = event.parent_event_id
    row.title = event.title
    row.description = event.description
    row.location = event.location
    row.start_at = event.start
    row.end_at = event.end
    row.all_day = event.all_day
    row.category_id = event.category_id
    row.participant_ids = list(event.participant_ids)
    row.created_by = event.created_by
    row.recurrence_kind = rule.kind.value
    row.recurrence_interval = rule.interval
    row.recurrence_end_type = rule.end.type
    row.recurrence_until = rule.until
    row.recurrence_count = rule.count
    row.recurrence_month_day = rule.month_day
    row.is_task = event.is_task
    row.is_required = event.is_required
    row.reward_points = event.reward_points
    row.created_at = event.created_at
    row.updated_at = event.updated_at
    return row


def exception_from_row(row: EventExceptionRow) -> EventException:
    """Convert an exception row, including its override event if any."""
    modified = event_from_row(row.modified_event) if row.modified_event else None
    return EventException(
        id=row.id,
        event_id=row.event_id,
        occurrence_date=row.occurrence_date,
        modified_event=modified,
        created_at=row.created_at,
    )


def completion_from_row(row: CompletionRow) -> Completion:
    """Convert a completion row."""
    return Completion(
        id=row.id,
        event_id=row.event_id,
        member_id=row.member_id,
        occurrence_date=row.occurrence_date,
        completed_at=row.completed_at,
    )


# ============================================================================
# EVENT OPERATIONS
# ============================================================================


def insert_event(session: Session, event: CalendarEvent) -> EventRow:
    """Add a new event row to the session."""
    row = copy_event_to_row(event, EventRow())
    session.add(row)
    return row


def get_event_row(session: Session, event_id: str) -> EventRow:
    """Load an event row by id.

    Raises:
        EventNotFoundError: If no event has this id.
    """
    row = session.get(EventRow, event_id)
    if row is None:
        raise EventNotFoundError(event_id)
    return row


def delete_event_tree(session: Session, row: EventRow) -> None:
    """Delete an event with its exceptions, overrides and completions."""
    logger.debug(
        f"Deleting event {row.id} with {len(row.exceptions)} exceptions "
        f"and {len(row.completions)} completions"
    )
    session.delete(row)
    session.flush()


def list_candidate_rows(
    session: Session,
    family_id: str,
    window_from: date,
    window_to: date,
) -> list[EventRow]:
    """Master events of a family that could intersect a date window.

    This is a coarse prefilter: one-off events entirely before the window
    and anything starting after it are skipped in SQL; the exact test is
    made after expansion.
    """
    from_dt = datetime.combine(window_from, time.min)
    to_dt = datetime.combine(window_to + timedelta(days=1), time.min)
    stmt = (
        select(EventRow)
        .where(
            EventRow.family_id == family_id,
            EventRow.parent_event_id.is_(None),
            EventRow.start_at < to_dt,
            or_(
                EventRow.recurrence_kind != RecurrenceKind.NONE.value,
                EventRow.start_at >= from_dt,
                and_(EventRow.end_at.is_not(None), EventRow.end_at >= from_dt),
            ),
        )
        .order_by(EventRow.start_at, EventRow.created_at, EventRow.id)
    )
    return list(session.scalars(stmt))


# ============================================================================
# EXCEPTION OPERATIONS
# ============================================================================


def exceptions_by_event(
    session: Session, event_ids: Iterable[str]
) -> dict[str, list[EventException]]:
    """Batch-load the exceptions of several master events.

    Returns:
        Mapping of master event id to its exceptions, ordered by date.
    """
    ids = list(event_ids)
    grouped: dict[str, list[EventException]] = defaultdict(list)
    if not ids:
        return grouped
    stmt = (
        select(EventExceptionRow)
        .where(EventExceptionRow.event_id.in_(ids))
        .options(selectinload(EventExceptionRow.modified_event))
        .order_by(EventExceptionRow.occurrence_date)
    )
    for row in session.scalars(stmt):
        grouped[row.event_id].append(exception_from_row(row))
    return grouped


def find_exception(
    session: Session, event_id: str, occurrence_date: date
) -> Optional[EventExceptionRow]:
    """Return the exception of a master on a date, if there is one."""
    stmt = select(EventExceptionRow).where(
        EventExceptionRow.event_id == event_id,
        EventExceptionRow.occurrence_date == occurrence_date,
    )
    return session.scalars(stmt).first()


def remove_exception(session: Session, row: EventExceptionRow) -> None:
    """Delete an exception together with its override event."""
    override = row.modified_event
    session.delete(row)
    if override is not None:
        session.delete(override)


def remove_exceptions_from(
    session: Session, master: EventRow, first_date: date
) -> int:
    """Delete a master's exceptions dated on or after ``first_date``.

    Returns:
        Number of exceptions removed.
    """
    doomed = [exc for exc in master.exceptions if exc.occurrence_date >= first_date]
    for exc in doomed:
        remove_exception(session, exc)
    return len(doomed)


def find_exception_for_override(
    session: Session, override_id: str
) -> Optional[EventExceptionRow]:
    """Return the exception that points at an override event."""
    stmt = select(EventExceptionRow).where(
        EventExceptionRow.modified_event_id == override_id
    )
    return session.scalars(stmt).first()


def tombstoned_dates(session: Session, event_id: str) -> set[date]:
    """Dates suppressed by tombstone exceptions of a master."""
    stmt = select(EventExceptionRow.occurrence_date).where(
        EventExceptionRow.event_id == event_id,
        EventExceptionRow.modified_event_id.is_(None),
    )
    return set(session.scalars(stmt))


# ============================================================================
# COMPLETION OPERATIONS
# ============================================================================


def find_completion(
    session: Session, event_id: str, member_id: str, occurrence_date: date
) -> Optional[CompletionRow]:
    """Return the completion row for a triple, if it exists."""
    stmt = select(CompletionRow).where(
        CompletionRow.event_id == event_id,
        CompletionRow.member_id == member_id,
        CompletionRow.occurrence_date == occurrence_date,
    )
    return session.scalars(stmt).first()


def get_completion_row(session: Session, completion_id: str) -> CompletionRow:
    """Load a completion row by id.

    Raises:
        CompletionNotFoundError: If no completion has this id.
    """
    row = session.get(CompletionRow, completion_id)
    if row is None:
        raise CompletionNotFoundError(completion_id)
    return row


def list_completion_rows(
    session: Session,
    event_id: Optional[str] = None,
    member_id: Optional[str] = None,
    occurrence_date: Optional[date] = None,
    event_ids: Optional[Iterable[str]] = None,
    window: Optional[tuple[date, date]] = None,
) -> list[CompletionRow]:
    """Query completions by any combination of filters.

    Results are ordered by occurrence date, then completion time.
    """
    stmt = select(CompletionRow)
    if event_id is not None:
        stmt = stmt.where(CompletionRow.event_id == event_id)
    if member_id is not None:
        stmt = stmt.where(CompletionRow.member_id == member_id)
    if occurrence_date is not None:
        stmt = stmt.where(CompletionRow.occurrence_date == occurrence_date)
    if event_ids is not None:
        stmt = stmt.where(CompletionRow.event_id.in_(list(event_ids)))
    if window is not None:
        stmt = stmt.where(
            CompletionRow.occurrence_date >= window[0],
            CompletionRow.occurrence_date <= window[1],
        )
    stmt = stmt.order_by(
        CompletionRow.occurrence_date, CompletionRow.completed_at, CompletionRow.id
    )
    return list(session.scalars(stmt))


def move_completions_from(
    session: Session, source_id: str, target_id: str, first_date: date
) -> int:
    """Re-point completions dated on or after ``first_date`` to another event.

    Returns:
        Number of completions moved.
    """
    rows = session.scalars(
        select(CompletionRow).where(
            CompletionRow.event_id == source_id,
            CompletionRow.occurrence_date >= first_date,
        )
    ).all()
    for row in rows:
        row.event_id = target_id
    return len(rows)


def delete_completions_from(
    session: Session,
    event_id: str,
    first_date: date,
    last_date: Optional[date] = None,
) -> int:
    """Delete completions of an event dated from ``first_date`` onwards.

    Args:
        session: Open session.
        event_id: Event whose completions are deleted.
        first_date: First date affected (inclusive).
        last_date: Last date affected (inclusive); open-ended when None.

    Returns:
        Number of completions deleted.
    """
    stmt = delete(CompletionRow).where(
        CompletionRow.event_id == event_id,
        CompletionRow.occurrence_date >= first_date,
    )
    if last_date is not None:
        stmt = stmt.where(CompletionRow.occurrence_date <= last_date)
    result = session.execute(stmt.execution_options(synchronize_session="fetch"))
    return result.rowcount or 0
