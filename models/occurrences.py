"""Occurrence resolution and the range query read path.

``OccurrenceRangeQuery.list_occurrences`` is the single read entry point for
every calendar view. It expands each candidate master event, applies the
event's per-date exceptions and returns one deduplicated, time-ordered list.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from typing import Optional

from models.calendar_event import CalendarEvent, EventException, Occurrence
from models.recurrence import EXPANSION_SAFETY_CAP, expand_recurrence
from models.span import compute_span, span_length
from storage.database import Database
from storage.repository import (
    event_from_row,
    exceptions_by_event,
    list_candidate_rows,
    list_completion_rows,
)

logger = logging.getLogger(__name__)


def build_occurrence(
    master: CalendarEvent,
    occurrence_date: date,
    source: Optional[CalendarEvent] = None,
    cap: int = EXPANSION_SAFETY_CAP,
) -> Occurrence:
    """Create the occurrence of a master event on one date.

    Without ``source`` the master's fields are used, with its start moved
    onto ``occurrence_date`` and its duration preserved. With ``source``
    (an override event) that event's fields are used verbatim.

    Args:
        master: The series' master event.
        occurrence_date: Date of the occurrence in the series.
        source: Override event replacing the master's fields.
        cap: Safety cap for the span computation.

    Returns:
        The resulting occurrence.
    """
    if source is None:
        start = datetime.combine(occurrence_date, master.start.time())
        end = start + master.duration if master.end is not None else None
        fields = master
    else:
        start = source.start
        end = source.end
        fields = source

    span_end = end.date() if end is not None else None
    return Occurrence(
        event_id=master.id,
        occurrence_date=occurrence_date,
        family_id=master.family_id,
        title=fields.title,
        description=fields.description,
        location=fields.location,
        start=start,
        end=end,
        all_day=fields.all_day,
        category_id=fields.category_id,
        participant_ids=list(fields.participant_ids),
        span_dates=compute_span(start.date(), span_end, fields.all_day, cap),
        is_recurring=master.is_recurring(),
        override_event_id=source.id if source is not None else None,
        is_task=fields.is_task,
        is_required=fields.is_required,
        reward_points=fields.reward_points,
        created_at=master.created_at,
    )


def resolve_exceptions(
    master: CalendarEvent,
    dates: Iterable[date],
    exceptions: Iterable[EventException],
    cap: int = EXPANSION_SAFETY_CAP,
) -> list[Occurrence]:
    """Turn a master's occurrence dates into effective occurrences.

    Exceptions apply by exact date only: a tombstone drops its date, an
    override substitutes its fields while keeping the occurrence date, and
    every other date carries the master's fields.

    Args:
        master: The series' master event.
        dates: Occurrence dates produced by expansion.
        exceptions: Exceptions belonging to ``master``.
        cap: Safety cap for span computations.

    Returns:
        Occurrences in the order of ``dates``.
    """
    by_date = {exc.occurrence_date: exc for exc in exceptions}
    occurrences = []
    for day in dates:
        exc = by_date.get(day)
        if exc is None:
            occurrences.append(build_occurrence(master, day, cap=cap))
        elif not exc.is_tombstone:
            occurrences.append(
                build_occurrence(master, day, source=exc.modified_event, cap=cap)
            )
    return occurrences


def effective_start(occurrence: Occurrence) -> datetime:
    """Sort key time of an occurrence.

    Continuation days of a multi-day all-day event sort at the start of
    their day.
    """
    if occurrence.start.date() == occurrence.occurrence_date:
        return occurrence.start
    if occurrence.is_recurring or occurrence.is_modified:
        return occurrence.start
    return datetime.combine(occurrence.occurrence_date, time.min)


def sort_occurrences(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    """Order by effective start, then event creation, then id and date."""
    return sorted(
        occurrences,
        key=lambda occ: (
            effective_start(occ),
            occ.created_at,
            occ.event_id,
            occ.occurrence_date,
        ),
    )


def dedupe_occurrences(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    """Drop repeated (event id, occurrence date) keys, keeping the first."""
    seen: set[tuple[str, date]] = set()
    unique = []
    for occurrence in occurrences:
        if occurrence.key in seen:
            continue
        seen.add(occurrence.key)
        unique.append(occurrence)
    return unique


def expand_event(
    master: CalendarEvent,
    exceptions: Iterable[EventException],
    window_from: date,
    window_to: date,
    cap: int = EXPANSION_SAFETY_CAP,
) -> list[Occurrence]:
    """Effective occurrences of one master event that touch a window.

    Recurring events yield one occurrence per series date; the window is
    widened backwards by the event's span so a multi-day instance that
    began before ``window_from`` is still returned. One-off all-day events
    yield one occurrence per spanned date inside the window. Other one-off
    events yield their start date.

    Args:
        master: Master event to expand.
        exceptions: The master's exceptions.
        window_from: First date of the window (inclusive).
        window_to: Last date of the window (inclusive).
        cap: Safety cap on enumerated dates.

    Returns:
        Occurrences in date order.
    """
    start_date = master.start.date()
    end_date = master.end.date() if master.end is not None else None

    if master.is_recurring():
        reach = span_length(start_date, end_date, master.all_day)
        dates = expand_recurrence(
            master.recurrence,
            start_date,
            window_from - timedelta(days=reach),
            window_to,
            cap,
        )
        return resolve_exceptions(master, dates, exceptions, cap)

    if master.all_day:
        dates = [
            day
            for day in compute_span(start_date, end_date, True, cap)
            if window_from <= day <= window_to
        ]
        # One-off events carry no exceptions; every spanned day shows the master.
        return [_span_day(master, day, cap) for day in dates]

    if window_from <= start_date <= window_to:
        return [build_occurrence(master, start_date, cap=cap)]
    return []


def _span_day(master: CalendarEvent, day: date, cap: int) -> Occurrence:
    occurrence = build_occurrence(master, master.start.date(), cap=cap)
    return occurrence.model_copy(update={"occurrence_date": day})


def _could_intersect(master: CalendarEvent, window_from: date) -> bool:
    """Exact end-of-range test applied after the SQL prefilter."""
    start_date = master.start.date()
    end_date = master.end.date() if master.end is not None else None
    reach = span_length(start_date, end_date, master.all_day)
    if master.is_recurring():
        until = master.recurrence.until
        return until is None or until + timedelta(days=reach) >= window_from
    return start_date + timedelta(days=reach) >= window_from


class OccurrenceRangeQuery:
    """Read path producing effective occurrences for a family and window.

    Args:
        database: Database to read events and exceptions from.
        cap: Safety cap on dates enumerated per event.
    """

    def __init__(self, database: Database, cap: int = EXPANSION_SAFETY_CAP):
        self.database = database
        self.cap = cap

    def list_occurrences(
        self, family_id: str, window_from: date, window_to: date
    ) -> list[Occurrence]:
        """List every effective occurrence of a family inside a window.

        Safe to call repeatedly with overlapping windows: each occurrence is
        identified by (event id, occurrence date).

        Args:
            family_id: Owning family.
            window_from: First date of the window (inclusive).
            window_to: Last date of the window (inclusive).

        Returns:
            Deduplicated occurrences sorted by effective start, then event
            creation time.
        """
        if window_to < window_from:
            return []

        with self.database.session() as session:
            masters = [
                event_from_row(row)
                for row in list_candidate_rows(session, family_id, window_from, window_to)
            ]
            masters = [m for m in masters if _could_intersect(m, window_from)]
            exceptions = exceptions_by_event(
                session, [m.id for m in masters if m.is_recurring()]
            )

        occurrences = []
        for master in masters:
            occurrences.extend(
                expand_event(
                    master, exceptions.get(master.id, []), window_from, window_to, self.cap
                )
            )

        logger.debug(
            f"Family {family_id}: {len(masters)} candidate events produced "
            f"{len(occurrences)} occurrences for {window_from}..{window_to}"
        )
        return sort_occurrences(dedupe_occurrences(occurrences))

    def list_tasks_with_completion(
        self,
        family_id: str,
        member_id: str,
        window_from: date,
        window_to: date,
        participating_only: bool = False,
    ) -> list[Occurrence]:
        """Task occurrences decorated with completion state.

        ``completed`` reflects ``member_id``'s own ledger row and
        ``completed_by_anyone`` reflects any member's row.

        Args:
            family_id: Owning family.
            member_id: Member whose completion state is reported.
            window_from: First date of the window (inclusive).
            window_to: Last date of the window (inclusive).
            participating_only: Keep only tasks listing ``member_id`` as a
                participant, or tasks with no participants at all.

        Returns:
            Decorated task occurrences in query order.
        """
        tasks = [
            occ
            for occ in self.list_occurrences(family_id, window_from, window_to)
            if occ.is_task
        ]
        if participating_only:
            tasks = [
                occ
                for occ in tasks
                if not occ.participant_ids or member_id in occ.participant_ids
            ]
        if not tasks:
            return []

        with self.database.session() as session:
            rows = list_completion_rows(
                session,
                event_ids={occ.event_id for occ in tasks},
                window=(
                    min(occ.occurrence_date for occ in tasks),
                    max(occ.occurrence_date for occ in tasks),
                ),
            )

        mine = {(row.event_id, row.occurrence_date) for row in rows if row.member_id == member_id}
        anyone = {(row.event_id, row.occurrence_date) for row in rows}
        return [
            occ.model_copy(
                update={
                    "completed": occ.key in mine,
                    "completed_by_anyone": occ.key in anyone,
                }
            )
            for occ in tasks
        ]
