"""Utility functions shared by route handlers."""

from datetime import date

from models.errors import EventValidationError

# Widest window a single occurrence query may request.
MAX_QUERY_WINDOW_DAYS = 3660


def require_window(start: date, end: date) -> None:
    """Validate a query date window.

    Args:
        start: First date of the window (inclusive).
        end: Last date of the window (inclusive).

    Raises:
        EventValidationError: If the window is inverted or too wide.
    """
    if end < start:
        raise EventValidationError(
            f"Window end {end.isoformat()} is before start {start.isoformat()}",
            field="end",
        )
    if (end - start).days > MAX_QUERY_WINDOW_DAYS:
        raise EventValidationError(
            f"Window may span at most {MAX_QUERY_WINDOW_DAYS} days", field="end"
        )
