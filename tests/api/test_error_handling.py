"""Tests for application-wide error handling and service endpoints."""

from fastapi.testclient import TestClient

from api.dependencies import get_database, get_scope_editor
from main import app


class FailingEditor:
    """Editor stand-in whose every read blows up."""

    def get_event(self, event_id):
        raise RuntimeError("disk on fire")


class TestServiceEndpoints:
    """Tests for / and /health."""

    def test_root(self, api_client):
        response = api_client.get("/")

        assert response.status_code == 200
        assert response.json()["docs_url"] == "/docs"

    def test_health(self, api_client):
        assert api_client.get("/health").json() == {"status": "healthy"}


class TestErrorResponses:
    """Tests for the JSON error envelope."""

    def test_malformed_json(self, api_client):
        response = api_client.post(
            "/calendar/events",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    def test_unexpected_error_is_hidden(self, database):
        app.dependency_overrides[get_database] = lambda: database
        app.dependency_overrides[get_scope_editor] = lambda: FailingEditor()
        try:
            client = TestClient(app, raise_server_exceptions=False)
            response = client.get("/calendar/events/anything")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal Server Error"
        assert "disk on fire" not in data["detail"]
        assert data["type"] == "RuntimeError"

    def test_uninitialized_database(self):
        """Test that requests before startup fail cleanly with a 500."""
        app.dependency_overrides.clear()
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/calendar/events/anything")

        assert response.status_code == 500
        assert response.json()["type"] == "RuntimeError"
