"""Recurrence rules and date expansion.

A rule is a nested choice: a kind (none, daily, weekly, monthly, yearly) with
a positive interval, plus an end condition that is itself one of never,
on a date, or after a number of occurrences.

Occurrence ``k`` of a series is always computed from the series anchor
(``start + k * interval`` units) rather than from the previous occurrence, so
a monthly series anchored on the 31st yields the 30th in April and returns to
the 31st in May. ``relativedelta`` clamps overflowing days to the last day of
the target month.

A series that begins on a clamped date (the 29th of February for a series
that belongs on the 31st) carries the day it aims for in ``month_day``.
"""

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Hard upper bound on dates produced by a single expansion or span.
EXPANSION_SAFETY_CAP = 365


class RecurrenceKind(str, Enum):
    """Repetition unit of a recurrence rule."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class NeverEnds(BaseModel):
    """End condition for a series that repeats indefinitely."""

    type: Literal["never"] = "never"


class EndsOnDate(BaseModel):
    """End condition for a series whose last possible date is ``until``.

    Args:
        until: Last date (inclusive) on which the series may occur.
    """

    type: Literal["on_date"] = "on_date"
    until: date = Field(description="Last date the series may occur on")


class EndsAfterCount(BaseModel):
    """End condition for a series with a fixed number of occurrences.

    Args:
        count: Number of occurrences, counted from the series start.
    """

    type: Literal["after_count"] = "after_count"
    count: int = Field(ge=1, description="Total number of occurrences")


RecurrenceEnd = Annotated[
    Union[NeverEnds, EndsOnDate, EndsAfterCount],
    Field(discriminator="type"),
]


class RecurrenceRule(BaseModel):
    """Fixed-interval recurrence rule.

    Args:
        kind: Repetition unit, or NONE for a one-off event.
        interval: Number of units between occurrences (>= 1).
        end: When the series stops.
        month_day: Day of month a monthly or yearly series aims for when
            its start date was clamped short of it.
    """

    kind: RecurrenceKind = Field(
        default=RecurrenceKind.NONE, description="Repetition unit"
    )
    interval: int = Field(default=1, ge=1, description="Units between occurrences")
    end: RecurrenceEnd = Field(
        default_factory=NeverEnds, description="Series end condition"
    )
    month_day: Optional[int] = Field(
        default=None, ge=1, le=31, description="Target day of month"
    )

    def is_recurring(self) -> bool:
        """Check if the rule produces more than a single occurrence.

        Returns:
            True for any kind other than NONE.
        """
        return self.kind != RecurrenceKind.NONE

    @property
    def until(self) -> Optional[date]:
        """Last allowed date when the rule ends on a date, else None."""
        return self.end.until if isinstance(self.end, EndsOnDate) else None

    @property
    def count(self) -> Optional[int]:
        """Occurrence count when the rule ends after a count, else None."""
        return self.end.count if isinstance(self.end, EndsAfterCount) else None


def nth_occurrence(rule: RecurrenceRule, start: date, index: int) -> Optional[date]:
    """Compute the ``index``-th candidate date of a series.

    Args:
        rule: The series rule.
        start: Date of the series' first occurrence.
        index: Zero-based position in the series.

    Returns:
        The candidate date, or None if it falls outside the supported
        calendar range.
    """
    step = index * rule.interval
    try:
        if rule.kind == RecurrenceKind.DAILY:
            return start + timedelta(days=step)
        if rule.kind == RecurrenceKind.WEEKLY:
            return start + timedelta(weeks=step)
        if rule.kind == RecurrenceKind.MONTHLY:
            return start + relativedelta(months=step, day=rule.month_day)
        if rule.kind == RecurrenceKind.YEARLY:
            return start + relativedelta(years=step, day=rule.month_day)
    except (OverflowError, ValueError):
        logger.debug(f"Occurrence {index} of series from {start} is out of range")
        return None
    return start if index == 0 else None


def anchored_rule(rule: RecurrenceRule, start: date) -> RecurrenceRule:
    """Drop a ``month_day`` that the series start does not land on.

    A month day is only kept for monthly and yearly series whose start is
    that day clamped to the start's month, and is dropped when it equals the
    start's own day.

    Args:
        rule: The series rule.
        start: Date of the series' first occurrence.

    Returns:
        ``rule`` itself, or a copy without the month day.
    """
    if rule.month_day is None:
        return rule
    keeps = (
        rule.kind in (RecurrenceKind.MONTHLY, RecurrenceKind.YEARLY)
        and rule.month_day != start.day
        and start + relativedelta(day=rule.month_day) == start
    )
    return rule if keeps else rule.model_copy(update={"month_day": None})


def _first_index(rule: RecurrenceRule, start: date, window_from: date) -> int:
    """Lowest series index whose date can be on or after ``window_from``.

    Day and week units are exact. Month and year units round down, because
    day clamping can pull a candidate before the same month's window start;
    the caller steps past any such candidate.
    """
    if window_from <= start or rule.interval < 1:
        return 0
    if rule.kind == RecurrenceKind.DAILY:
        days = (window_from - start).days
        return -(-days // rule.interval)
    if rule.kind == RecurrenceKind.WEEKLY:
        days = (window_from - start).days
        return -(-days // (7 * rule.interval))
    if rule.kind == RecurrenceKind.MONTHLY:
        months = (window_from.year - start.year) * 12 + window_from.month - start.month
        return max(0, months // rule.interval)
    if rule.kind == RecurrenceKind.YEARLY:
        return max(0, (window_from.year - start.year) // rule.interval)
    return 0


def expand_recurrence(
    rule: RecurrenceRule,
    start: date,
    window_from: date,
    window_to: date,
    cap: int = EXPANSION_SAFETY_CAP,
) -> list[date]:
    """Enumerate the dates on which a series occurs inside a window.

    Expansion stops at whichever comes first: a candidate after
    ``window_to``, the rule's own end condition, or ``cap`` emitted dates.
    Hitting the cap is logged and the bounded prefix is returned.

    Args:
        rule: The series rule.
        start: Date of the series' first occurrence.
        window_from: First date of the query window (inclusive).
        window_to: Last date of the query window (inclusive).
        cap: Maximum number of dates to return.

    Returns:
        Ordered, duplicate-free dates within the window.
    """
    if window_to < window_from:
        return []

    if not rule.is_recurring():
        return [start] if window_from <= start <= window_to else []

    if rule.interval < 1:
        logger.warning(
            f"Recurrence rule with non-positive interval {rule.interval}; "
            f"expansion is bounded by the iteration guard"
        )

    until = rule.until
    count = rule.count
    dates: list[date] = []
    last: Optional[date] = None
    index = _first_index(rule, start, window_from)
    max_iterations = 2 * cap + 2

    for _ in range(max_iterations):
        if count is not None and index >= count:
            break
        candidate = nth_occurrence(rule, start, index)
        if candidate is None or candidate > window_to:
            break
        if until is not None and candidate > until:
            break
        index += 1

        if candidate < window_from or (last is not None and candidate <= last):
            continue
        if len(dates) >= cap:
            logger.warning(
                f"Recurrence expansion from {start} truncated at {cap} dates "
                f"(window {window_from}..{window_to})"
            )
            break
        dates.append(candidate)
        last = candidate
    else:
        logger.warning(
            f"Recurrence expansion from {start} stopped after {max_iterations} "
            f"iterations"
        )

    return dates


def occurrence_index(rule: RecurrenceRule, start: date, day: date) -> Optional[int]:
    """Position of ``day`` in the series, ignoring the end condition.

    Args:
        rule: The series rule.
        start: Date of the series' first occurrence.
        day: Date to locate.

    Returns:
        Zero-based index, or None if the rule never lands on ``day``.
    """
    if day < start:
        return None
    if not rule.is_recurring():
        return 0 if day == start else None
    if rule.interval < 1:
        return 0 if day == start else None

    index = _first_index(rule, start, day)
    candidate = nth_occurrence(rule, start, index)
    while candidate is not None and candidate < day:
        index += 1
        candidate = nth_occurrence(rule, start, index)
    return index if candidate == day else None


def is_series_date(rule: RecurrenceRule, start: date, day: date) -> bool:
    """Check whether a series produces an occurrence on ``day``.

    Args:
        rule: The series rule.
        start: Date of the series' first occurrence.
        day: Date to test.

    Returns:
        True if ``day`` is on the rule's step and within its end condition.
    """
    index = occurrence_index(rule, start, day)
    if index is None:
        return False
    if rule.count is not None and index >= rule.count:
        return False
    if rule.until is not None and day > rule.until:
        return False
    return True
