"""Calendar-day span of an event."""

import logging
from datetime import date, timedelta
from typing import Optional

from models.recurrence import EXPANSION_SAFETY_CAP

logger = logging.getLogger(__name__)


def compute_span(
    start: date,
    end: Optional[date],
    all_day: bool,
    cap: int = EXPANSION_SAFETY_CAP,
) -> list[date]:
    """Return the inclusive list of dates an event occupies on a day grid.

    Timed events occupy only their start date. All-day events occupy every
    date from start through end; a missing end, or an end before the start,
    degrades to the start date alone. Long spans are cut at ``cap`` dates.

    Args:
        start: First date of the event.
        end: Last date of the event, if any.
        all_day: Whether the event is an all-day event.
        cap: Maximum number of dates to return.

    Returns:
        Ordered list of dates, always containing ``start``.
    """
    if not all_day or end is None or end <= start:
        if all_day and end is not None and end < start:
            logger.debug(f"All-day span ends ({end}) before it starts ({start})")
        return [start]

    length = (end - start).days + 1
    if length > cap:
        logger.warning(f"All-day span {start}..{end} truncated at {cap} dates")
        length = cap
    return [start + timedelta(days=offset) for offset in range(length)]


def span_length(start: date, end: Optional[date], all_day: bool) -> int:
    """Number of extra days an event reaches past its start date.

    Args:
        start: First date of the event.
        end: Last date of the event, if any.
        all_day: Whether the event is an all-day event.

    Returns:
        Zero for single-day or timed events.
    """
    if not all_day or end is None or end <= start:
        return 0
    return (end - start).days
