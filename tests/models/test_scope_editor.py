"""Tests for the event write path in models/scope_editor.py.

The tests verify:

1. Creation defaults and write-boundary validation
2. Unscoped updates of one-off and override events
3. Scoped updates of recurring events (THIS, THIS_AND_FOLLOWING, ALL)
4. Scoped deletes and their effect on exceptions and completions
5. The weekly three-occurrence split scenario end to end
"""

from datetime import date, datetime, timedelta

import pytest

from models.calendar_event import DEFAULT_TASK_REWARD_POINTS, EventPatch
from models.errors import EventNotFoundError, EventValidationError, ScopeConflictError
from models.recurrence import EndsAfterCount, EndsOnDate, RecurrenceKind
from models.scope_editor import EditScope
from tests.fixtures.calendar import (
    CHILD_ID,
    FAMILY_ID,
    create_new_event,
    create_rule,
)


def dates_of(query, first=date(2024, 1, 1), last=date(2024, 2, 1)):
    return [o.occurrence_date for o in query.list_occurrences(FAMILY_ID, first, last)]


class TestCreateEvent:
    """Tests for ScopeEditor.create_event."""

    def test_timed_event_defaults_to_one_hour(self, editor):
        event = editor.create_event(create_new_event(start=datetime(2024, 1, 1, 9, 0)))

        assert event.end == datetime(2024, 1, 1, 10, 0)

    def test_default_end_rolls_past_midnight(self, editor):
        """Test that a late event's default end lands on the next day."""
        event = editor.create_event(create_new_event(start=datetime(2024, 1, 1, 23, 30)))

        assert event.end == datetime(2024, 1, 2, 0, 30)
        assert event.end > event.start

    def test_all_day_event_keeps_missing_end(self, editor):
        event = editor.create_event(
            create_new_event(start=datetime(2024, 1, 1), all_day=True)
        )

        assert event.end is None

    def test_task_gets_default_reward(self, editor):
        event = editor.create_event(create_new_event(is_task=True))

        assert event.reward_points == DEFAULT_TASK_REWARD_POINTS
        assert event.is_required is True

    def test_reward_points_on_non_task_rejected(self, editor):
        with pytest.raises(EventValidationError) as exc_info:
            editor.create_event(create_new_event(reward_points=3))

        assert exc_info.value.field == "reward_points"

    def test_end_before_start_rejected(self, editor):
        with pytest.raises(EventValidationError) as exc_info:
            editor.create_event(
                create_new_event(
                    start=datetime(2024, 1, 2, 9, 0), end=datetime(2024, 1, 1, 9, 0)
                )
            )

        assert exc_info.value.field == "end"

    def test_until_before_start_rejected(self, editor):
        with pytest.raises(EventValidationError):
            editor.create_event(
                create_new_event(
                    recurrence=create_rule(RecurrenceKind.DAILY, until=date(2023, 12, 1))
                )
            )

    def test_event_is_persisted(self, editor):
        created = editor.create_event(create_new_event(participant_ids=[CHILD_ID]))

        loaded = editor.get_event(created.id)

        assert loaded.title == created.title
        assert loaded.participant_ids == [CHILD_ID]
        assert loaded.recurrence == created.recurrence

    def test_get_unknown_event(self, editor):
        with pytest.raises(EventNotFoundError):
            editor.get_event("missing")


class TestUnscopedUpdate:
    """Tests for updates that are applied to the event itself."""

    def test_update_one_off_event(self, editor):
        event = editor.create_event(create_new_event())

        [updated] = editor.update_event(event.id, EventPatch(title="Renamed"))

        assert updated.title == "Renamed"
        assert editor.get_event(event.id).title == "Renamed"

    def test_moving_start_keeps_duration(self, editor):
        """Test that a new start without a new end keeps the event's length."""
        event = editor.create_event(
            create_new_event(
                start=datetime(2024, 1, 1, 9, 0), end=datetime(2024, 1, 1, 11, 0)
            )
        )

        [updated] = editor.update_event(
            event.id, EventPatch(start=datetime(2024, 1, 3, 14, 0))
        )

        assert updated.end == datetime(2024, 1, 3, 16, 0)

    def test_explicit_null_end_clears_it(self, editor):
        event = editor.create_event(create_new_event())

        [updated] = editor.update_event(event.id, EventPatch.model_validate({"end": None}))

        assert updated.end is None

    def test_scope_ignored_for_one_off_event(self, editor):
        event = editor.create_event(create_new_event())

        [updated] = editor.update_event(
            event.id, EventPatch(title="Still one"), scope=EditScope.THIS
        )

        assert updated.id == event.id
        assert updated.title == "Still one"

    def test_turning_off_task_clears_reward(self, editor, weekly_task):
        [updated] = editor.update_event(
            weekly_task.id, EventPatch(is_task=False), scope=EditScope.ALL
        )

        assert updated.is_task is False
        assert updated.reward_points is None

    def test_reward_points_on_non_task_patch_rejected(self, editor):
        event = editor.create_event(create_new_event())

        with pytest.raises(EventValidationError):
            editor.update_event(event.id, EventPatch(reward_points=2))

    def test_update_unknown_event(self, editor):
        with pytest.raises(EventNotFoundError):
            editor.update_event("missing", EventPatch(title="x"))


class TestScopedUpdate:
    """Tests for THIS, THIS_AND_FOLLOWING and ALL updates."""

    def test_all_changes_every_occurrence(self, editor, query, weekly_task):
        editor.update_event(weekly_task.id, EventPatch(title="Bins"), scope=EditScope.ALL)

        titles = {o.title for o in query.list_occurrences(FAMILY_ID, date(2024, 1, 1), date(2024, 1, 31))}

        assert titles == {"Bins"}

    def test_this_creates_override(self, editor, query, weekly_task):
        [override] = editor.update_event(
            weekly_task.id,
            EventPatch(title="Bins (late)", start=datetime(2024, 1, 8, 20, 0)),
            scope=EditScope.THIS,
            occurrence_date=date(2024, 1, 8),
        )

        exceptions = editor.list_exceptions(weekly_task.id)

        assert override.parent_event_id == weekly_task.id
        assert override.is_recurring() is False
        assert override.end == datetime(2024, 1, 8, 20, 30)
        assert len(exceptions) == 1
        assert exceptions[0].occurrence_date == date(2024, 1, 8)
        assert exceptions[0].modified_event.id == override.id
        assert dates_of(query) == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]

    def test_this_twice_replaces_exception(self, editor, query, weekly_task):
        """Test that at most one exception exists per date."""
        for title in ("First", "Second"):
            editor.update_event(
                weekly_task.id,
                EventPatch(title=title),
                scope=EditScope.THIS,
                occurrence_date=date(2024, 1, 8),
            )

        exceptions = editor.list_exceptions(weekly_task.id)
        occurrence = [
            o for o in query.list_occurrences(FAMILY_ID, date(2024, 1, 8), date(2024, 1, 8))
        ]

        assert len(exceptions) == 1
        assert [o.title for o in occurrence] == ["Second"]

    def test_this_on_non_series_date_conflicts(self, editor, weekly_task):
        with pytest.raises(ScopeConflictError):
            editor.update_event(
                weekly_task.id,
                EventPatch(title="x"),
                scope=EditScope.THIS,
                occurrence_date=date(2024, 1, 9),
            )

    def test_this_past_count_conflicts(self, editor, weekly_task):
        with pytest.raises(ScopeConflictError):
            editor.update_event(
                weekly_task.id,
                EventPatch(title="x"),
                scope=EditScope.THIS,
                occurrence_date=date(2024, 1, 22),
            )

    def test_scoped_update_needs_date(self, editor, weekly_task):
        with pytest.raises(EventValidationError) as exc_info:
            editor.update_event(
                weekly_task.id, EventPatch(title="x"), scope=EditScope.THIS_AND_FOLLOWING
            )

        assert exc_info.value.field == "occurrence_date"

    def test_following_from_first_date_edits_in_place(self, editor, weekly_task):
        result = editor.update_event(
            weekly_task.id,
            EventPatch(title="Whole series"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 1),
        )

        assert [e.id for e in result] == [weekly_task.id]
        assert result[0].title == "Whole series"

    def test_following_on_deleted_date_conflicts(self, editor, weekly_task):
        editor.delete_event(
            weekly_task.id, scope=EditScope.THIS, occurrence_date=date(2024, 1, 8)
        )

        with pytest.raises(ScopeConflictError):
            editor.update_event(
                weekly_task.id,
                EventPatch(title="x"),
                scope=EditScope.THIS_AND_FOLLOWING,
                occurrence_date=date(2024, 1, 8),
            )

    def test_split_moves_later_completions(self, editor, ledger, weekly_task):
        """Test that completions from the split date follow the new series."""
        ledger.toggle(weekly_task.id, CHILD_ID, date(2024, 1, 1))
        ledger.toggle(weekly_task.id, CHILD_ID, date(2024, 1, 15))

        _, successor = editor.update_event(
            weekly_task.id,
            EventPatch(title="New rota"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 8),
        )

        assert ledger.is_complete(weekly_task.id, CHILD_ID, date(2024, 1, 1))
        assert not ledger.is_complete(weekly_task.id, CHILD_ID, date(2024, 1, 15))
        assert ledger.is_complete(successor.id, CHILD_ID, date(2024, 1, 15))

    def test_split_drops_later_exceptions(self, editor, weekly_task):
        editor.update_event(
            weekly_task.id,
            EventPatch(title="Override"),
            scope=EditScope.THIS,
            occurrence_date=date(2024, 1, 15),
        )

        editor.update_event(
            weekly_task.id,
            EventPatch(title="New rota"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 8),
        )

        assert editor.list_exceptions(weekly_task.id) == []

    def test_split_keeps_never_ending_rule(self, editor, query, daily_event):
        truncated, successor = editor.update_event(
            daily_event.id,
            EventPatch(location="Kitchen"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 10),
        )

        occurrences = query.list_occurrences(FAMILY_ID, date(2024, 1, 1), date(2024, 1, 31))

        assert truncated.recurrence.until == date(2024, 1, 9)
        assert successor.recurrence.until is None
        assert len(occurrences) == 31
        assert {o.location for o in occurrences if o.occurrence_date >= date(2024, 1, 10)} == {
            "Kitchen"
        }


class TestWeeklySplitScenario:
    """The three-occurrence weekly series split on its second date."""

    @pytest.fixture
    def series(self, editor):
        return editor.create_event(
            create_new_event(
                title="Guitar",
                start=datetime(2024, 1, 1, 9, 0),
                end=datetime(2024, 1, 1, 10, 0),
                recurrence=create_rule(RecurrenceKind.WEEKLY, count=3),
            )
        )

    def test_series_before_edit(self, query, series):
        assert dates_of(query) == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]

    def test_split_at_second_occurrence(self, editor, query, series):
        """Test the split moves 01-08 onwards to 10:00 and keeps the count."""
        truncated, successor = editor.update_event(
            series.id,
            EventPatch(start=datetime(2024, 1, 8, 10, 0)),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 8),
        )

        assert truncated.id == series.id
        assert truncated.recurrence.end == EndsOnDate(until=date(2024, 1, 7))
        assert successor.start == datetime(2024, 1, 8, 10, 0)
        assert successor.end == datetime(2024, 1, 8, 11, 0)
        assert successor.recurrence.kind == RecurrenceKind.WEEKLY
        assert successor.recurrence.end == EndsAfterCount(count=2)

        occurrences = query.list_occurrences(FAMILY_ID, date(2024, 1, 1), date(2024, 2, 1))
        by_event = {}
        for occ in occurrences:
            by_event.setdefault(occ.event_id, []).append(occ)

        assert [o.occurrence_date for o in by_event[series.id]] == [date(2024, 1, 1)]
        assert [o.start for o in by_event[successor.id]] == [
            datetime(2024, 1, 8, 10, 0),
            datetime(2024, 1, 15, 10, 0),
        ]

    def test_split_preserves_coverage(self, editor, query, series):
        """Test that the date set is unchanged by a field-only split."""
        before = dates_of(query)

        editor.update_event(
            series.id,
            EventPatch(title="Guitar with Sam"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 8),
        )

        assert dates_of(query) == before

    def test_split_on_clamped_month_end_preserves_coverage(self, editor, query):
        """Test that a split on Feb 29 of a series on the 31st keeps later month ends."""
        rent = editor.create_event(
            create_new_event(
                title="Pay rent",
                start=datetime(2024, 1, 31, 9, 0),
                recurrence=create_rule(RecurrenceKind.MONTHLY, count=4),
            )
        )
        window = (date(2024, 1, 1), date(2024, 6, 30))
        before = dates_of(query, *window)

        _, successor = editor.update_event(
            rent.id,
            EventPatch(title="Pay rent to new landlord"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 2, 29),
        )

        assert before == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]
        assert dates_of(query, *window) == before
        assert successor.recurrence.month_day == 31
        assert successor.recurrence.count == 3
        assert editor.get_event(successor.id).recurrence.month_day == 31

    def test_split_on_common_year_keeps_leap_day(self, editor, query):
        birthday = editor.create_event(
            create_new_event(
                title="Leap birthday",
                start=datetime(2024, 2, 29, 9, 0),
                recurrence=create_rule(RecurrenceKind.YEARLY),
            )
        )

        editor.update_event(
            birthday.id,
            EventPatch(location="Grandma's"),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2025, 2, 28),
        )

        assert dates_of(query, date(2024, 1, 1), date(2028, 12, 31)) == [
            date(2024, 2, 29),
            date(2025, 2, 28),
            date(2026, 2, 28),
            date(2027, 2, 28),
            date(2028, 2, 29),
        ]

    def test_split_moved_start_drops_month_day(self, editor):
        rent = editor.create_event(
            create_new_event(
                title="Pay rent",
                start=datetime(2024, 1, 31, 9, 0),
                recurrence=create_rule(RecurrenceKind.MONTHLY),
            )
        )

        _, successor = editor.update_event(
            rent.id,
            EventPatch(start=datetime(2024, 2, 15, 9, 0)),
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 2, 29),
        )

        assert successor.start == datetime(2024, 2, 15, 9, 0)
        assert successor.recurrence.month_day is None


class TestDeleteEvent:
    """Tests for ScopeEditor.delete_event."""

    def test_delete_one_off(self, editor):
        event = editor.create_event(create_new_event())

        editor.delete_event(event.id)

        with pytest.raises(EventNotFoundError):
            editor.get_event(event.id)

    def test_delete_this_creates_tombstone(self, editor, query, ledger, weekly_task):
        ledger.toggle(weekly_task.id, CHILD_ID, date(2024, 1, 8))

        editor.delete_event(
            weekly_task.id, scope=EditScope.THIS, occurrence_date=date(2024, 1, 8)
        )

        exceptions = editor.list_exceptions(weekly_task.id)

        assert dates_of(query) == [date(2024, 1, 1), date(2024, 1, 15)]
        assert len(exceptions) == 1
        assert exceptions[0].is_tombstone
        assert ledger.list_completions_for_event_and_date(weekly_task.id, date(2024, 1, 8)) == []

    def test_delete_this_replaces_override(self, editor, query, weekly_task):
        editor.update_event(
            weekly_task.id,
            EventPatch(title="Moved"),
            scope=EditScope.THIS,
            occurrence_date=date(2024, 1, 8),
        )

        editor.delete_event(
            weekly_task.id, scope=EditScope.THIS, occurrence_date=date(2024, 1, 8)
        )

        [exception] = editor.list_exceptions(weekly_task.id)
        assert exception.is_tombstone
        assert date(2024, 1, 8) not in dates_of(query)

    def test_delete_following(self, editor, query, ledger, weekly_task):
        ledger.toggle(weekly_task.id, CHILD_ID, date(2024, 1, 1))
        ledger.toggle(weekly_task.id, CHILD_ID, date(2024, 1, 15))

        editor.delete_event(
            weekly_task.id,
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 8),
        )

        remaining = [c.occurrence_date for c in ledger.list_completions(CHILD_ID)]

        assert dates_of(query) == [date(2024, 1, 1)]
        assert editor.get_event(weekly_task.id).recurrence.until == date(2024, 1, 7)
        assert remaining == [date(2024, 1, 1)]

    def test_delete_following_from_start_deletes_series(self, editor, weekly_task):
        editor.delete_event(
            weekly_task.id,
            scope=EditScope.THIS_AND_FOLLOWING,
            occurrence_date=date(2024, 1, 1),
        )

        with pytest.raises(EventNotFoundError):
            editor.get_event(weekly_task.id)

    def test_delete_all_cascades(self, editor, query, ledger, weekly_task):
        [override] = editor.update_event(
            weekly_task.id,
            EventPatch(title="Moved"),
            scope=EditScope.THIS,
            occurrence_date=date(2024, 1, 8),
        )
        ledger.toggle(weekly_task.id, CHILD_ID, date(2024, 1, 1))

        editor.delete_event(weekly_task.id, scope=EditScope.ALL)

        assert dates_of(query) == []
        assert ledger.list_completions(CHILD_ID) == []
        with pytest.raises(EventNotFoundError):
            editor.get_event(override.id)

    def test_delete_this_on_non_series_date(self, editor, weekly_task):
        with pytest.raises(ScopeConflictError):
            editor.delete_event(
                weekly_task.id, scope=EditScope.THIS, occurrence_date=date(2024, 1, 3)
            )

    def test_deleting_override_leaves_tombstone(self, editor, query, weekly_task):
        """Test that removing an override event keeps its date suppressed."""
        [override] = editor.update_event(
            weekly_task.id,
            EventPatch(title="Moved"),
            scope=EditScope.THIS,
            occurrence_date=date(2024, 1, 8),
        )

        editor.delete_event(override.id)

        [exception] = editor.list_exceptions(weekly_task.id)
        assert exception.is_tombstone
        assert dates_of(query) == [date(2024, 1, 1), date(2024, 1, 15)]

    def test_update_override_directly(self, editor, query, weekly_task):
        [override] = editor.update_event(
            weekly_task.id,
            EventPatch(title="Moved"),
            scope=EditScope.THIS,
            occurrence_date=date(2024, 1, 8),
        )

        editor.update_event(
            override.id, EventPatch(start=override.start + timedelta(hours=1))
        )

        [occurrence] = query.list_occurrences(FAMILY_ID, date(2024, 1, 8), date(2024, 1, 8))
        assert occurrence.start == datetime(2024, 1, 8, 19, 0)
        assert occurrence.title == "Moved"

    def test_delete_unknown_event(self, editor):
        with pytest.raises(EventNotFoundError):
            editor.delete_event("missing")
