"""Calendar sub-client for the household calendar API.

This module provides CalendarClient and AsyncCalendarClient for the
calendar endpoints (/calendar/*): occurrence listing and event editing.

This is an internal module. Import from `client` instead.
"""

from datetime import date, datetime
from typing import Any

from client._base import AsyncBaseClient, BaseClient, json_body
from client.models import (
    CalendarEvent,
    EditScope,
    EventList,
    ExceptionList,
    OccurrenceList,
)


def _update_payload(
    scope: EditScope | None,
    occurrence_date: date | None,
    clear_end: bool,
    fields: dict[str, Any],
) -> dict[str, Any]:
    payload = json_body({**fields, "scope": scope, "occurrence_date": occurrence_date})
    if clear_end:
        payload["end"] = None
    return payload


def _occurrence_params(
    family_id: str, start: date, end: date, **extra: Any
) -> dict[str, Any]:
    return {"family_id": family_id, "start": start, "end": end, **extra}


# Synchronous CalendarClient


class CalendarClient(BaseClient):
    """Synchronous client for calendar endpoints (/calendar/*).

    Example:
        with HouseholdClient() as client:
            event = client.calendar.create(
                family_id="fam-1",
                title="Take out trash",
                start=datetime(2024, 1, 1, 19, 0),
                recurrence={"kind": "weekly", "interval": 1},
                is_task=True,
            )
            week = client.calendar.list_occurrences(
                "fam-1", date(2024, 1, 1), date(2024, 1, 7)
            )
    """

    _BASE_PATH = "/calendar"

    def list_occurrences(self, family_id: str, start: date, end: date) -> OccurrenceList:
        """List effective occurrences in an inclusive date window.

        Args:
            family_id: Family whose calendar is listed.
            start: First date of the window.
            end: Last date of the window.

        Returns:
            Occurrences ordered by start time.

        Raises:
            BadRequestError: If the window is reversed or too wide.
            APIError: If the request fails.
        """
        return self._call(
            "GET", OccurrenceList, "occurrences", params=_occurrence_params(family_id, start, end)
        )

    def list_tasks(
        self,
        family_id: str,
        member_id: str,
        start: date,
        end: date,
        participating_only: bool = False,
    ) -> OccurrenceList:
        """List task occurrences with the member's completion flags."""
        return self._call(
            "GET",
            OccurrenceList,
            "tasks",
            params=_occurrence_params(
                family_id,
                start,
                end,
                member_id=member_id,
                participating_only=participating_only,
            ),
        )

    def create(
        self,
        family_id: str,
        title: str,
        start: datetime,
        end: datetime | None = None,
        all_day: bool = False,
        description: str | None = None,
        location: str | None = None,
        category_id: str | None = None,
        participant_ids: list[str] | None = None,
        recurrence: dict[str, Any] | None = None,
        is_task: bool = False,
        is_required: bool = True,
        reward_points: int | None = None,
        created_by: str | None = None,
    ) -> CalendarEvent:
        """Create a new event.

        Args:
            family_id: Owning family.
            title: Event title.
            start: Start timestamp.
            end: End timestamp. Timed events default to one hour.
            all_day: Whether the event is all-day.
            description: Event description.
            location: Event location.
            category_id: Category reference.
            participant_ids: Participating member ids.
            recurrence: Rule such as ``{"kind": "weekly", "interval": 1,
                "end": {"type": "after_count", "count": 3}}``.
            is_task: Whether the event is a chore.
            is_required: Whether the chore is mandatory.
            reward_points: Points per completion (tasks only).
            created_by: Creating member.

        Returns:
            The stored event.

        Raises:
            BadRequestError: If the fields break a write rule.
            ValidationError: If the payload is malformed.
        """
        payload = json_body(
            {
                "family_id": family_id,
                "title": title,
                "start": start,
                "end": end,
                "all_day": all_day,
                "description": description,
                "location": location,
                "category_id": category_id,
                "participant_ids": participant_ids,
                "recurrence": recurrence,
                "is_task": is_task,
                "is_required": is_required,
                "reward_points": reward_points,
                "created_by": created_by,
            }
        )
        return self._call("POST", CalendarEvent, "events", json=payload)

    def get(self, event_id: str) -> CalendarEvent:
        return self._call("GET", CalendarEvent, "events", event_id)

    def list_exceptions(self, event_id: str) -> ExceptionList:
        return self._call("GET", ExceptionList, "events", event_id, "exceptions")

    def update(
        self,
        event_id: str,
        scope: EditScope | None = None,
        occurrence_date: date | None = None,
        title: str | None = None,
        description: str | None = None,
        location: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        clear_end: bool = False,
        all_day: bool | None = None,
        category_id: str | None = None,
        participant_ids: list[str] | None = None,
        recurrence: dict[str, Any] | None = None,
        is_task: bool | None = None,
        is_required: bool | None = None,
        reward_points: int | None = None,
    ) -> EventList:
        """Update an event, optionally scoped to part of a series.

        Only arguments that are not None are sent.

        Args:
            event_id: Event to update.
            scope: "this", "this_and_following" or "all" for recurring
                events. Omit for one-off events.
            occurrence_date: Occurrence the scoped edit targets.
            clear_end: Send an explicit null end.

        Returns:
            The events created or changed by the edit.

        Raises:
            NotFoundError: If the event does not exist.
            ConflictError: If the occurrence is not part of the series.
        """
        payload = _update_payload(
            scope,
            occurrence_date,
            clear_end,
            {
                "title": title,
                "description": description,
                "location": location,
                "start": start,
                "end": end,
                "all_day": all_day,
                "category_id": category_id,
                "participant_ids": participant_ids,
                "recurrence": recurrence,
                "is_task": is_task,
                "is_required": is_required,
                "reward_points": reward_points,
            },
        )
        return self._call("PATCH", EventList, "events", event_id, json=payload)

    def delete(
        self,
        event_id: str,
        scope: EditScope | None = None,
        occurrence_date: date | None = None,
    ) -> None:
        """Delete an event, one occurrence, or an occurrence and all later ones.

        Raises:
            NotFoundError: If the event does not exist.
            ConflictError: If the occurrence is not part of the series.
        """
        self._call(
            "DELETE",
            None,
            "events",
            event_id,
            params={"scope": scope, "occurrence_date": occurrence_date},
        )


# Asynchronous AsyncCalendarClient


class AsyncCalendarClient(AsyncBaseClient):
    """Asynchronous client for calendar endpoints (/calendar/*).

    Example:
        async with AsyncHouseholdClient() as client:
            week = await client.calendar.list_occurrences(
                "fam-1", date(2024, 1, 1), date(2024, 1, 7)
            )
    """

    _BASE_PATH = "/calendar"

    async def list_occurrences(
        self, family_id: str, start: date, end: date
    ) -> OccurrenceList:
        """List effective occurrences in an inclusive date window.

        Raises:
            BadRequestError: If the window is reversed or too wide.
            APIError: If the request fails.
        """
        return await self._call(
            "GET", OccurrenceList, "occurrences", params=_occurrence_params(family_id, start, end)
        )

    async def list_tasks(
        self,
        family_id: str,
        member_id: str,
        start: date,
        end: date,
        participating_only: bool = False,
    ) -> OccurrenceList:
        return await self._call(
            "GET",
            OccurrenceList,
            "tasks",
            params=_occurrence_params(
                family_id,
                start,
                end,
                member_id=member_id,
                participating_only=participating_only,
            ),
        )

    async def create(
        self,
        family_id: str,
        title: str,
        start: datetime,
        end: datetime | None = None,
        all_day: bool = False,
        description: str | None = None,
        location: str | None = None,
        category_id: str | None = None,
        participant_ids: list[str] | None = None,
        recurrence: dict[str, Any] | None = None,
        is_task: bool = False,
        is_required: bool = True,
        reward_points: int | None = None,
        created_by: str | None = None,
    ) -> CalendarEvent:
        """Create a new event. See CalendarClient.create for arguments."""
        payload = json_body(
            {
                "family_id": family_id,
                "title": title,
                "start": start,
                "end": end,
                "all_day": all_day,
                "description": description,
                "location": location,
                "category_id": category_id,
                "participant_ids": participant_ids,
                "recurrence": recurrence,
                "is_task": is_task,
                "is_required": is_required,
                "reward_points": reward_points,
                "created_by": created_by,
            }
        )
        return await self._call("POST", CalendarEvent, "events", json=payload)

    async def get(self, event_id: str) -> CalendarEvent:
        return await self._call("GET", CalendarEvent, "events", event_id)

    async def list_exceptions(self, event_id: str) -> ExceptionList:
        return await self._call("GET", ExceptionList, "events", event_id, "exceptions")

    async def update(
        self,
        event_id: str,
        scope: EditScope | None = None,
        occurrence_date: date | None = None,
        title: str | None = None,
        description: str | None = None,
        location: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        clear_end: bool = False,
        all_day: bool | None = None,
        category_id: str | None = None,
        participant_ids: list[str] | None = None,
        recurrence: dict[str, Any] | None = None,
        is_task: bool | None = None,
        is_required: bool | None = None,
        reward_points: int | None = None,
    ) -> EventList:
        """Update an event. See CalendarClient.update for arguments."""
        payload = _update_payload(
            scope,
            occurrence_date,
            clear_end,
            {
                "title": title,
                "description": description,
                "location": location,
                "start": start,
                "end": end,
                "all_day": all_day,
                "category_id": category_id,
                "participant_ids": participant_ids,
                "recurrence": recurrence,
                "is_task": is_task,
                "is_required": is_required,
                "reward_points": reward_points,
            },
        )
        return await self._call("PATCH", EventList, "events", event_id, json=payload)

    async def delete(
        self,
        event_id: str,
        scope: EditScope | None = None,
        occurrence_date: date | None = None,
    ) -> None:
        await self._call(
            "DELETE",
            None,
            "events",
            event_id,
            params={"scope": scope, "occurrence_date": occurrence_date},
        )
