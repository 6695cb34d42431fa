"""Completion sub-client for the household calendar API.

This module provides CompletionsClient and AsyncCompletionsClient for the
completion ledger endpoints (/completions/*).

This is an internal module. Import from `client` instead.
"""

from datetime import date

from client._base import AsyncBaseClient, BaseClient, json_body
from client.models import (
    Completion,
    CompletionList,
    CompletionStatus,
    CompletionToggle,
)


def _target(event_id: str, member_id: str, occurrence_date: date) -> dict:
    """Identify one member's completion of one occurrence."""
    return {"event_id": event_id, "member_id": member_id, "occurrence_date": occurrence_date}


class CompletionsClient(BaseClient):
    """Synchronous client for completion endpoints (/completions/*).

    Example:
        with HouseholdClient() as client:
            result = client.completions.toggle(event.id, "kid-1", date(2024, 1, 8))
            print(result.completed, result.reward_points)
    """

    _BASE_PATH = "/completions"

    def toggle(
        self, event_id: str, member_id: str, occurrence_date: date
    ) -> CompletionToggle:
        """Flip a task occurrence between done and not done.

        Args:
            event_id: Task event id (the master id for recurring tasks).
            member_id: Member the completion belongs to.
            occurrence_date: Occurrence being marked.

        Returns:
            The new state and the task's reward points.

        Raises:
            NotFoundError: If the event does not exist.
            BadRequestError: If the event is not a task or the date is not
                one of its occurrences.
        """
        return self._call(
            "POST",
            CompletionToggle,
            "toggle",
            json=json_body(_target(event_id, member_id, occurrence_date)),
        )

    def status(
        self, event_id: str, member_id: str, occurrence_date: date
    ) -> CompletionStatus:
        return self._call(
            "GET",
            CompletionStatus,
            "status",
            params=_target(event_id, member_id, occurrence_date),
        )

    def list_for_member(self, member_id: str) -> CompletionList:
        """List every completion a member has recorded."""
        return self._call("GET", CompletionList, "members", member_id)

    def list_for_event(
        self, event_id: str, occurrence_date: date | None = None
    ) -> CompletionList:
        """List completions of a task, optionally for one occurrence.

        Raises:
            NotFoundError: If the event does not exist.
        """
        return self._call(
            "GET",
            CompletionList,
            "events",
            event_id,
            params={"occurrence_date": occurrence_date},
        )

    def get(self, completion_id: str) -> Completion:
        return self._call("GET", Completion, completion_id)


class AsyncCompletionsClient(AsyncBaseClient):
    """Asynchronous client for completion endpoints (/completions/*)."""

    _BASE_PATH = "/completions"

    async def toggle(
        self, event_id: str, member_id: str, occurrence_date: date
    ) -> CompletionToggle:
        """Flip a task occurrence between done and not done.

        Raises:
            NotFoundError: If the event does not exist.
            BadRequestError: If the event is not a task or the date is not
                one of its occurrences.
        """
        return await self._call(
            "POST",
            CompletionToggle,
            "toggle",
            json=json_body(_target(event_id, member_id, occurrence_date)),
        )

    async def status(
        self, event_id: str, member_id: str, occurrence_date: date
    ) -> CompletionStatus:
        return await self._call(
            "GET",
            CompletionStatus,
            "status",
            params=_target(event_id, member_id, occurrence_date),
        )

    async def list_for_member(self, member_id: str) -> CompletionList:
        return await self._call("GET", CompletionList, "members", member_id)

    async def list_for_event(
        self, event_id: str, occurrence_date: date | None = None
    ) -> CompletionList:
        return await self._call(
            "GET",
            CompletionList,
            "events",
            event_id,
            params={"occurrence_date": occurrence_date},
        )

    async def get(self, completion_id: str) -> Completion:
        return await self._call("GET", Completion, completion_id)
