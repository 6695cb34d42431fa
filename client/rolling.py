"""Rolling occurrence feed for scrolling views.

RollingFeed pages forward through a family's occurrences a window at a time.
It is meant to be driven from a single asyncio task, e.g. a UI's scroll
handler: repeated triggers are collapsed, responses that belong to an older
filter are dropped, and items are kept unique and sorted.
"""

import logging
import time
from collections.abc import Callable
from datetime import date, datetime, timedelta
from datetime import time as dt_time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from client.client import AsyncHouseholdClient
from client.models import CompletionStatus, Occurrence

logger = logging.getLogger(__name__)

DEFAULT_PAGE_DAYS = 30
DEFAULT_DEBOUNCE_SECONDS = 0.3


class FeedFilter(BaseModel):
    """What the feed shows.

    Args:
        family_id: Family whose calendar is paged.
        member_id: Only events this member takes part in, or that list no
            participants. Required for tasks, whose completion flags are
            per member.
        tasks_only: Only task occurrences.
    """

    model_config = ConfigDict(frozen=True)

    family_id: str = Field(min_length=1)
    member_id: str | None = None
    tasks_only: bool = False

    @model_validator(mode="after")
    def validate_task_member(self) -> "FeedFilter":
        if self.tasks_only and self.member_id is None:
            raise ValueError("A task feed needs a member_id")
        return self


def _sort_key(item: Occurrence) -> tuple:
    start = item.start
    if item.occurrence_date != start.date():
        start = datetime.combine(item.occurrence_date, dt_time.min)
    return (start, item.created_at, item.event_id, item.occurrence_date)


class RollingFeed:
    """Forward-paging, deduplicated view over occurrences.

    Attributes:
        filter: Current filter.
        page_days: Days added to the window per load.
        debounce_seconds: Minimum spacing between accepted load triggers.
        window_start: First date of the loaded window.
        window_end: Last date loaded so far, or None before the first load.
    """

    def __init__(
        self,
        client: AsyncHouseholdClient,
        feed_filter: FeedFilter,
        start: date,
        page_days: int = DEFAULT_PAGE_DAYS,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if page_days < 1:
            raise ValueError(f"page_days must be at least 1, got {page_days}")
        self._client = client
        self._clock = clock
        self.filter = feed_filter
        self.page_days = page_days
        self.debounce_seconds = debounce_seconds
        self.window_start = start
        self.window_end: date | None = None
        self._items: dict[tuple[str, date], Occurrence] = {}
        self._loading = False
        self._generation = 0
        self._last_trigger: float | None = None

    @property
    def items(self) -> list[Occurrence]:
        """Loaded occurrences in display order."""
        return sorted(self._items.values(), key=_sort_key)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def set_filter(self, feed_filter: FeedFilter, start: date | None = None) -> None:
        """Switch to a new filter and clear everything loaded so far.

        A load still in flight for the previous filter is discarded when it
        arrives.
        """
        self.filter = feed_filter
        if start is not None:
            self.window_start = start
        self.window_end = None
        self._items.clear()
        self._generation += 1
        self._loading = False
        self._last_trigger = None

    async def load_more(self) -> bool:
        """Load the next page of occurrences.

        Returns:
            True if a page was fetched and merged, False if the trigger was
            collapsed into an earlier one or the response was discarded.
        """
        now = self._clock()
        if self._loading:
            logger.debug("Feed load skipped: a load is already in flight")
            return False
        if (
            self._last_trigger is not None
            and now - self._last_trigger < self.debounce_seconds
        ):
            logger.debug("Feed load skipped: debounced")
            return False
        self._last_trigger = now

        generation = self._generation
        feed_filter = self.filter
        page_start = (
            self.window_start
            if self.window_end is None
            else self.window_end + timedelta(days=1)
        )
        page_end = page_start + timedelta(days=self.page_days - 1)

        self._loading = True
        try:
            fetched = await self._fetch(feed_filter, page_start, page_end)
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation or feed_filter != self.filter:
            logger.debug(
                f"Discarding feed page {page_start}..{page_end}: filter changed"
            )
            return False

        for item in fetched:
            self._items[item.key] = item
        self.window_end = page_end
        return True

    async def _fetch(
        self, feed_filter: FeedFilter, page_start: date, page_end: date
    ) -> list[Occurrence]:
        if feed_filter.tasks_only:
            page = await self._client.calendar.list_tasks(
                feed_filter.family_id,
                feed_filter.member_id,
                page_start,
                page_end,
                participating_only=True,
            )
            return page.occurrences

        page = await self._client.calendar.list_occurrences(
            feed_filter.family_id, page_start, page_end
        )
        items = page.occurrences
        if feed_filter.member_id is not None:
            items = [
                i
                for i in items
                if not i.participant_ids or feed_filter.member_id in i.participant_ids
            ]
        return items

    async def toggle(self, item: Occurrence, member_id: str) -> CompletionStatus:
        """Toggle a task occurrence and refresh it from the ledger.

        The toggle response is not trusted on its own: the status is read
        back so concurrent toggles by other members are reflected.

        Args:
            item: Task occurrence to toggle.
            member_id: Member the completion belongs to.

        Returns:
            The completion status after the toggle.
        """
        await self._client.completions.toggle(item.event_id, member_id, item.occurrence_date)
        status = await self._client.completions.status(
            item.event_id, member_id, item.occurrence_date
        )
        if item.key in self._items:
            self._items[item.key] = self._items[item.key].model_copy(
                update={
                    "completed": status.completed,
                    "completed_by_anyone": status.completed_by_anyone,
                }
            )
        return status
