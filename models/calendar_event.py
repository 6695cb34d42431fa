"""Calendar event, exception, occurrence and completion models."""

from datetime import date, datetime, timedelta
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from models.errors import EventValidationError
from models.recurrence import RecurrenceRule, anchored_rule

# Reward points assigned to a task created without an explicit value.
DEFAULT_TASK_REWARD_POINTS = 1


def wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    """Drop timezone info, keeping the wall-clock reading.

    Args:
        value: A naive or aware datetime.

    Returns:
        The naive datetime, or None.
    """
    if value is None:
        return None
    return value.replace(tzinfo=None)


def default_end_time(start: datetime) -> datetime:
    """Default end for a new timed event: one hour after its start.

    Crossing midnight rolls the date forward, so the default end is never
    earlier than the start.

    Args:
        start: Event start.

    Returns:
        Start plus one hour.
    """
    return start + timedelta(hours=1)


def new_id() -> str:
    """Generate a new record identifier."""
    return str(uuid4())


class EventFields(BaseModel):
    """User-editable fields shared by master, override and new events.

    Args:
        title: Event title.
        description: Free-form description.
        location: Where the event takes place.
        start: Start timestamp (wall clock).
        end: End timestamp (wall clock), if any.
        all_day: Whether the event is an all-day event.
        category_id: Category reference owned by the category collaborator.
        participant_ids: Family members taking part.
        recurrence: Recurrence rule; kind NONE for one-off events.
        is_task: Whether the event doubles as a chore.
        is_required: Whether the chore is mandatory.
        reward_points: Points granted per completion (tasks only).
    """

    title: str = Field(min_length=1, description="Event title")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")
    start: datetime = Field(description="Start timestamp")
    end: Optional[datetime] = Field(default=None, description="End timestamp")
    all_day: bool = Field(default=False, description="Is all-day event")
    category_id: Optional[str] = Field(default=None, description="Category reference")
    participant_ids: list[str] = Field(
        default_factory=list, description="Participating member ids"
    )
    recurrence: RecurrenceRule = Field(
        default_factory=RecurrenceRule, description="Recurrence rule"
    )
    is_task: bool = Field(default=False, description="Event is a chore")
    is_required: bool = Field(default=True, description="Chore is mandatory")
    reward_points: Optional[int] = Field(
        default=None, ge=0, description="Points per completion"
    )

    @field_validator("start", "end")
    @classmethod
    def validate_wall_clock(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Store timestamps as naive wall-clock values."""
        return wall_clock(value)

    @model_validator(mode="after")
    def anchor_recurrence(self) -> "EventFields":
        """Keep the rule's month day only while the start lands on it."""
        self.recurrence = anchored_rule(self.recurrence, self.start.date())
        return self

    @property
    def duration(self) -> Optional[timedelta]:
        """Time between start and end, or None for open-ended events."""
        if self.end is None:
            return None
        return self.end - self.start

    def is_recurring(self) -> bool:
        """Check if this event has a repeating recurrence rule.

        Returns:
            True if the rule kind is not NONE.
        """
        return self.recurrence.is_recurring()

    def editable_fields(self) -> dict[str, Any]:
        """Return the editable fields as a plain dict."""
        return self.model_dump(include=set(EventFields.model_fields))


class NewEvent(EventFields):
    """Request payload for creating an event.

    Args:
        family_id: Owning family.
        created_by: Member who created the event.
    """

    family_id: str = Field(min_length=1, description="Owning family id")
    created_by: Optional[str] = Field(default=None, description="Creator member id")


class CalendarEvent(EventFields):
    """A stored event.

    Master events define a series; override events hold the substitute
    fields of one modified occurrence and point at their master through
    ``parent_event_id``. Override events are never expanded.
    """

    id: str = Field(default_factory=new_id, description="Event id")
    family_id: str = Field(description="Owning family id")
    created_by: Optional[str] = Field(default=None, description="Creator member id")
    parent_event_id: Optional[str] = Field(
        default=None, description="Master event if this is an override"
    )
    created_at: datetime = Field(
        default_factory=datetime.now, description="When event was created"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now, description="When event was last modified"
    )

    def is_override(self) -> bool:
        """Check if this event holds the fields of a modified occurrence.

        Returns:
            True if the event belongs to a master series.
        """
        return self.parent_event_id is not None


class EventPatch(BaseModel):
    """Partial update of event fields.

    Only fields explicitly present in the payload are applied, so ``end``
    can be cleared by sending null.
    """

    title: Optional[str] = Field(default=None, min_length=1, description="Event title")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")
    start: Optional[datetime] = Field(default=None, description="Start timestamp")
    end: Optional[datetime] = Field(default=None, description="End timestamp")
    all_day: Optional[bool] = Field(default=None, description="Is all-day event")
    category_id: Optional[str] = Field(default=None, description="Category reference")
    participant_ids: Optional[list[str]] = Field(
        default=None, description="Participating member ids"
    )
    recurrence: Optional[RecurrenceRule] = Field(
        default=None, description="Recurrence rule"
    )
    is_task: Optional[bool] = Field(default=None, description="Event is a chore")
    is_required: Optional[bool] = Field(default=None, description="Chore is mandatory")
    reward_points: Optional[int] = Field(
        default=None, ge=0, description="Points per completion"
    )

    @field_validator("start", "end")
    @classmethod
    def validate_wall_clock(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Store timestamps as naive wall-clock values."""
        return wall_clock(value)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set in this patch."""
        changes = self.model_dump(exclude_unset=True)
        # Explicit nulls on non-nullable fields mean "leave unchanged".
        for required in ("title", "start", "all_day", "is_task", "is_required"):
            if required in changes and changes[required] is None:
                del changes[required]
        if "participant_ids" in changes and changes["participant_ids"] is None:
            changes["participant_ids"] = []
        if "recurrence" in changes and changes["recurrence"] is None:
            changes["recurrence"] = RecurrenceRule().model_dump()
        return changes


def merge_fields(
    base: EventFields,
    patch: EventPatch,
    start: Optional[datetime] = None,
) -> dict[str, Any]:
    """Combine an event's fields with a patch.

    When the patch moves the start but gives no end, the event's duration is
    kept. ``start`` supplies a start to use when the patch has none.

    Args:
        base: Event whose fields are the defaults.
        patch: Fields to override.
        start: Start to use when the patch leaves it unset.

    Returns:
        A dict of editable fields ready for model validation.
    """
    fields = base.editable_fields()
    changes = patch.changes()
    fields.update(changes)

    if "start" not in changes and start is not None:
        fields["start"] = start
    if "end" not in changes and base.end is not None and fields["start"] != base.start:
        fields["end"] = fields["start"] + base.duration

    if not fields["is_task"]:
        if changes.get("reward_points") is not None:
            raise EventValidationError(
                "Reward points are only allowed on tasks", field="reward_points"
            )
        fields["reward_points"] = None
    return fields


def validate_event_fields(fields: EventFields) -> None:
    """Check cross-field invariants enforced at the write boundary.

    Args:
        fields: Fields about to be stored.

    Raises:
        EventValidationError: If the end precedes the start, the recurrence
            end date precedes the start date, or reward points are set on a
            non-task event.
    """
    if fields.end is not None and fields.end < fields.start:
        raise EventValidationError(
            f"Event end {fields.end.isoformat()} is before start "
            f"{fields.start.isoformat()}",
            field="end",
        )
    until = fields.recurrence.until
    if until is not None and until < fields.start.date():
        raise EventValidationError(
            f"Recurrence end date {until.isoformat()} is before the start date",
            field="recurrence",
        )
    if fields.reward_points is not None and not fields.is_task:
        raise EventValidationError(
            "Reward points are only allowed on tasks", field="reward_points"
        )


def apply_task_defaults(fields: dict[str, Any]) -> dict[str, Any]:
    """Fill in the reward points of a task that has none."""
    if fields.get("is_task") and fields.get("reward_points") is None:
        fields["reward_points"] = DEFAULT_TASK_REWARD_POINTS
    return fields


class EventException(BaseModel):
    """Per-date override anchored to a master event.

    An exception without a modified event is a tombstone: the occurrence on
    that date is suppressed.

    Args:
        id: Exception id.
        event_id: Master event id.
        occurrence_date: Date of the overridden occurrence.
        modified_event: Override fields, or None for a tombstone.
        created_at: When the exception was created.
    """

    id: str = Field(default_factory=new_id, description="Exception id")
    event_id: str = Field(description="Master event id")
    occurrence_date: date = Field(description="Overridden occurrence date")
    modified_event: Optional[CalendarEvent] = Field(
        default=None, description="Override event, None for a tombstone"
    )
    created_at: datetime = Field(
        default_factory=datetime.now, description="When exception was created"
    )

    @property
    def is_tombstone(self) -> bool:
        """True when the exception suppresses its occurrence."""
        return self.modified_event is None


class Occurrence(BaseModel):
    """One effective instance of an event on a calendar date.

    ``event_id`` is always the master event's id; together with
    ``occurrence_date`` it identifies the occurrence for exceptions and
    completions.
    """

    event_id: str
    occurrence_date: date
    family_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start: datetime
    end: Optional[datetime] = None
    all_day: bool = False
    category_id: Optional[str] = None
    participant_ids: list[str] = Field(default_factory=list)
    span_dates: list[date] = Field(default_factory=list)
    is_recurring: bool = False
    override_event_id: Optional[str] = None
    is_task: bool = False
    is_required: bool = True
    reward_points: Optional[int] = None
    created_at: datetime
    completed: Optional[bool] = None
    completed_by_anyone: Optional[bool] = None

    @property
    def key(self) -> tuple[str, date]:
        """Identity used to deduplicate occurrences."""
        return (self.event_id, self.occurrence_date)

    @property
    def is_modified(self) -> bool:
        """True when override fields replaced the master fields."""
        return self.override_event_id is not None


class Completion(BaseModel):
    """A member's completion of one task occurrence.

    Args:
        id: Completion id.
        event_id: Task event id.
        member_id: Member who completed the task.
        occurrence_date: Occurrence the completion marks.
        completed_at: When the task was marked done.
    """

    id: str = Field(default_factory=new_id, description="Completion id")
    event_id: str = Field(description="Task event id")
    member_id: str = Field(description="Completing member id")
    occurrence_date: date = Field(description="Completed occurrence date")
    completed_at: datetime = Field(
        default_factory=datetime.now, description="When it was marked done"
    )


class CompletionToggle(BaseModel):
    """Result of toggling a completion.

    ``reward_points`` lets the reward collaborator credit or debit the member
    without knowing anything about recurrence.
    """

    event_id: str
    member_id: str
    occurrence_date: date
    completed: bool
    reward_points: Optional[int] = None
