"""Integration tests for the completion endpoints.

This module tests:
- POST /completions/toggle - Toggle a task occurrence
- GET /completions/status - Completion state of one occurrence
- GET /completions/members/{member_id} - Ledger by member
- GET /completions/events/{event_id} - Ledger by task (and date)
- GET /completions/{completion_id} - Single ledger row
"""

import pytest

from tests.fixtures.api import event_payload


@pytest.fixture
def task_id(api_client):
    """Create a weekly three-occurrence chore worth 5 points."""
    response = api_client.post(
        "/calendar/events",
        json=event_payload(
            title="Feed the cat",
            is_task=True,
            reward_points=5,
            recurrence={"kind": "weekly", "end": {"type": "after_count", "count": 3}},
        ),
    )
    return response.json()["id"]


def toggle(client, event_id, member_id="member-child", occurrence_date="2024-01-08"):
    return client.post(
        "/completions/toggle",
        json={
            "event_id": event_id,
            "member_id": member_id,
            "occurrence_date": occurrence_date,
        },
    )


class TestToggle:
    """Tests for POST /completions/toggle."""

    def test_first_toggle_completes(self, api_client, task_id):
        response = toggle(api_client, task_id)

        assert response.status_code == 200
        data = response.json()
        assert data["completed"] is True
        assert data["reward_points"] == 5
        assert data["occurrence_date"] == "2024-01-08"

    def test_second_toggle_reverts(self, api_client, task_id):
        toggle(api_client, task_id)
        response = toggle(api_client, task_id)

        assert response.json()["completed"] is False
        listing = api_client.get(f"/completions/events/{task_id}").json()
        assert listing["count"] == 0

    def test_non_task(self, api_client):
        event_id = api_client.post("/calendar/events", json=event_payload()).json()["id"]

        response = toggle(api_client, event_id, occurrence_date="2024-01-01")

        assert response.status_code == 400
        assert response.json()["field"] == "event_id"

    def test_date_not_in_series(self, api_client, task_id):
        response = toggle(api_client, task_id, occurrence_date="2024-01-09")

        assert response.status_code == 400
        assert response.json()["field"] == "occurrence_date"

    def test_unknown_event(self, api_client):
        response = toggle(api_client, "missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Event Not Found"

    def test_malformed_date(self, api_client, task_id):
        response = toggle(api_client, task_id, occurrence_date="next tuesday")

        assert response.status_code == 422


class TestStatus:
    """Tests for GET /completions/status."""

    def test_status(self, api_client, task_id):
        toggle(api_client, task_id, member_id="member-parent")

        response = api_client.get(
            "/completions/status",
            params={
                "event_id": task_id,
                "member_id": "member-child",
                "occurrence_date": "2024-01-08",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["completed"] is False
        assert data["completed_by_anyone"] is True


class TestListings:
    """Tests for the ledger read endpoints."""

    def test_member_listing(self, api_client, task_id):
        toggle(api_client, task_id, occurrence_date="2024-01-15")
        toggle(api_client, task_id, occurrence_date="2024-01-01")
        toggle(api_client, task_id, member_id="member-parent")

        data = api_client.get("/completions/members/member-child").json()

        assert data["count"] == 2
        assert [c["occurrence_date"] for c in data["completions"]] == [
            "2024-01-01",
            "2024-01-15",
        ]

    def test_event_listing_by_date(self, api_client, task_id):
        toggle(api_client, task_id)
        toggle(api_client, task_id, member_id="member-parent")
        toggle(api_client, task_id, occurrence_date="2024-01-15")

        response = api_client.get(
            f"/completions/events/{task_id}", params={"occurrence_date": "2024-01-08"}
        )

        assert response.status_code == 200
        members = {c["member_id"] for c in response.json()["completions"]}
        assert members == {"member-child", "member-parent"}

    def test_event_listing_unknown(self, api_client):
        assert api_client.get("/completions/events/missing").status_code == 404

    def test_get_completion(self, api_client, task_id):
        toggle(api_client, task_id)
        [completion] = api_client.get("/completions/members/member-child").json()["completions"]

        response = api_client.get(f"/completions/{completion['id']}")

        assert response.status_code == 200
        assert response.json()["event_id"] == task_id

    def test_get_unknown_completion(self, api_client):
        response = api_client.get("/completions/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Completion Not Found"


class TestCompletionsFollowEdits:
    """Tests for how scoped writes carry completions."""

    def test_split_moves_later_completions(self, api_client, task_id):
        toggle(api_client, task_id, occurrence_date="2024-01-01")
        toggle(api_client, task_id, occurrence_date="2024-01-15")

        events = api_client.patch(
            f"/calendar/events/{task_id}",
            json={
                "title": "Feed the cats",
                "scope": "this_and_following",
                "occurrence_date": "2024-01-08",
            },
        ).json()["events"]
        successor_id = events[1]["id"]

        original = api_client.get(f"/completions/events/{task_id}").json()
        moved = api_client.get(f"/completions/events/{successor_id}").json()
        assert [c["occurrence_date"] for c in original["completions"]] == ["2024-01-01"]
        assert [c["occurrence_date"] for c in moved["completions"]] == ["2024-01-15"]

    def test_delete_this_removes_completions_on_that_date(self, api_client, task_id):
        toggle(api_client, task_id)

        api_client.delete(
            f"/calendar/events/{task_id}",
            params={"scope": "this", "occurrence_date": "2024-01-08"},
        )

        assert api_client.get("/completions/members/member-child").json()["count"] == 0
