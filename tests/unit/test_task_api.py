"""Tests for the task REST API."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from src.core.document_store import DatabaseError
from src.interface.task_router import get_now


PACIFIC = timezone(timedelta(hours=-7))
NOW = datetime(2024, 3, 15, 10, 0, tzinfo=PACIFIC)


@pytest.fixture
def pinned_clock(client: TestClient):
    """Serve /api/stats as if the server clock read NOW in a zone west of UTC."""
    client.app.dependency_overrides[get_now] = lambda: NOW
    yield NOW
    client.app.dependency_overrides.clear()


@pytest.mark.unit
def test_health(client: TestClient) -> None:
    """Test that health endpoint reports the API as running."""
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "OK", "message": "Task tracker API is running"}


@pytest.mark.unit
class TestListTasksEndpoint:
    """GET /api/tasks."""

    def test_empty(self, client: TestClient) -> None:
        response = client.get("/api/tasks")

        assert response.status_code == 200
        assert response.json() == []

    def test_newest_first(self, client: TestClient, sample_task_payload) -> None:
        first = client.post("/api/tasks", json={**sample_task_payload, "title": "A"}).json()
        second = client.post("/api/tasks", json={**sample_task_payload, "title": "B"}).json()

        response = client.get("/api/tasks")

        assert [task["id"] for task in response.json()] == [second["id"], first["id"]]

    def test_date_query_parameter_does_not_filter(self, client: TestClient, sample_task_payload) -> None:
        client.post("/api/tasks", json={**sample_task_payload, "date": "2024-03-15"})
        client.post("/api/tasks", json={**sample_task_payload, "date": "2024-05-01"})

        response = client.get("/api/tasks", params={"date": "2024-03-15"})

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_store_error_is_500(self, client: TestClient, in_memory_store) -> None:
        in_memory_store.failures["list_documents"] = DatabaseError("unavailable")

        response = client.get("/api/tasks")

        assert response.status_code == 500
        assert response.json() == {"message": "unavailable"}


@pytest.mark.unit
class TestCreateTaskEndpoint:
    """POST /api/tasks."""

    def test_created(self, client: TestClient, sample_task_payload) -> None:
        response = client.post("/api/tasks", json=sample_task_payload)

        assert response.status_code == 201
        task = response.json()
        assert task["id"]
        assert task["title"] == "Write report"
        assert task["priority"] == "high"
        assert task["category"] == "work"
        assert task["completed"] is False
        assert task["date"] == "2024-03-15T00:00:00.000Z"
        assert task["createdAt"].endswith("Z")

    def test_minimal_payload_gets_defaults(self, client: TestClient) -> None:
        response = client.post("/api/tasks", json={"title": "Call mom", "date": "2024-03-15"})

        assert response.status_code == 201
        task = response.json()
        assert task["completed"] is False
        assert task["priority"] == "medium"

    def test_accepts_browser_iso_timestamp(self, client: TestClient) -> None:
        response = client.post("/api/tasks", json={"title": "Call mom", "date": "2024-03-15T00:00:00.000Z"})

        assert response.status_code == 201
        assert response.json()["date"][:10] == "2024-03-15"

    @pytest.mark.parametrize("missing", ["title", "date"])
    def test_missing_required_field_is_400(self, client: TestClient, sample_task_payload, missing) -> None:
        del sample_task_payload[missing]

        response = client.post("/api/tasks", json=sample_task_payload)

        assert response.status_code == 400
        assert missing in response.json()["message"]

    def test_malformed_date_is_400(self, client: TestClient, sample_task_payload) -> None:
        response = client.post("/api/tasks", json={**sample_task_payload, "date": "someday"})

        assert response.status_code == 400
        assert "Invalid date" in response.json()["message"]

    def test_unknown_priority_is_400(self, client: TestClient, sample_task_payload) -> None:
        response = client.post("/api/tasks", json={**sample_task_payload, "priority": "urgent"})

        assert response.status_code == 400
        assert "priority" in response.json()["message"]

    def test_unknown_field_is_400(self, client: TestClient, sample_task_payload, in_memory_store) -> None:
        response = client.post("/api/tasks", json={**sample_task_payload, "owner": "someone"})

        assert response.status_code == 400
        assert in_memory_store.count("tasks") == 0

    def test_invalid_json_is_400(self, client: TestClient) -> None:
        response = client.post("/api/tasks", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert set(response.json()) == {"message"}

    def test_store_error_is_400(self, client: TestClient, in_memory_store, sample_task_payload) -> None:
        in_memory_store.failures["add_document"] = DatabaseError("write rejected")

        response = client.post("/api/tasks", json=sample_task_payload)

        assert response.status_code == 400
        assert response.json() == {"message": "write rejected"}

    def test_unexpected_error_hides_details(self, client: TestClient, sample_task_payload) -> None:
        with patch(
            "src.services.task_service.create_task", AsyncMock(side_effect=RuntimeError("secret internals"))
        ):
            response = client.post("/api/tasks", json=sample_task_payload)

        assert response.status_code == 400
        assert response.json() == {"message": "Failed to create task"}


@pytest.mark.unit
class TestUpdateTaskEndpoint:
    """PUT /api/tasks/{id}."""

    def test_updated(self, client: TestClient, sample_task_payload) -> None:
        task = client.post("/api/tasks", json=sample_task_payload).json()

        response = client.put(f"/api/tasks/{task['id']}", json={"completed": True, "date": "2024-04-01"})

        assert response.status_code == 200
        updated = response.json()
        assert updated["completed"] is True
        assert updated["date"] == "2024-04-01T00:00:00.000Z"
        assert updated["title"] == task["title"]
        assert updated["createdAt"] == task["createdAt"]

    def test_missing_is_404(self, client: TestClient, sample_task_payload) -> None:
        other = client.post("/api/tasks", json=sample_task_payload).json()

        response = client.put("/api/tasks/missing", json={"title": "Changed"})

        assert response.status_code == 404
        assert response.json() == {"message": "Task not found"}
        assert client.get("/api/tasks").json() == [other]

    def test_body_validated_before_existence_check(self, client: TestClient) -> None:
        invalid = client.put("/api/tasks/missing", json={"priority": "urgent"})
        valid = client.put("/api/tasks/missing", json={"priority": "low"})

        assert invalid.status_code == 400
        assert "priority" in invalid.json()["message"]
        assert valid.status_code == 404

    def test_immutable_field_is_400(self, client: TestClient, sample_task_payload) -> None:
        task = client.post("/api/tasks", json=sample_task_payload).json()

        response = client.put(f"/api/tasks/{task['id']}", json={"createdAt": "2020-01-01"})

        assert response.status_code == 400

    def test_store_error_is_400(self, client: TestClient, in_memory_store, sample_task_payload) -> None:
        task = client.post("/api/tasks", json=sample_task_payload).json()
        in_memory_store.failures["update_document"] = DatabaseError("write rejected")

        response = client.put(f"/api/tasks/{task['id']}", json={"completed": True})

        assert response.status_code == 400
        assert response.json() == {"message": "write rejected"}


@pytest.mark.unit
class TestDeleteTaskEndpoint:
    """DELETE /api/tasks/{id}."""

    def test_deleted_then_404(self, client: TestClient, sample_task_payload) -> None:
        task = client.post("/api/tasks", json=sample_task_payload).json()

        first = client.delete(f"/api/tasks/{task['id']}")
        second = client.delete(f"/api/tasks/{task['id']}")

        assert first.status_code == 200
        assert first.json() == {"message": "Task deleted successfully"}
        assert second.status_code == 404
        assert second.json() == {"message": "Task not found"}

    def test_store_error_is_500(self, client: TestClient, in_memory_store, sample_task_payload) -> None:
        task = client.post("/api/tasks", json=sample_task_payload).json()
        in_memory_store.failures["delete_document"] = DatabaseError("unavailable")

        response = client.delete(f"/api/tasks/{task['id']}")

        assert response.status_code == 500
        assert response.json() == {"message": "unavailable"}


@pytest.mark.unit
class TestStatsEndpoint:
    """GET /api/stats."""

    def test_empty(self, client: TestClient) -> None:
        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {"totalTasks": 0, "completedTasks": 0, "todayTasks": 0, "completionRate": 0}

    def test_counts(self, client: TestClient, seed_task, pinned_clock) -> None:
        seed_task(date=pinned_clock, completed=True)
        seed_task(date=pinned_clock - timedelta(days=1))
        seed_task(date=pinned_clock + timedelta(days=2))
        seed_task(date=pinned_clock - timedelta(days=3))

        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {"totalTasks": 4, "completedTasks": 1, "todayTasks": 1, "completionRate": 25.0}

    def test_store_error_is_500(self, client: TestClient, in_memory_store) -> None:
        in_memory_store.failures["list_documents"] = DatabaseError("unavailable")

        response = client.get("/api/stats")

        assert response.status_code == 500
        assert response.json() == {"message": "unavailable"}

    def test_date_only_task_falls_on_previous_local_day_west_of_utc(self, client: TestClient, pinned_clock) -> None:
        # "2024-03-15" is stored as UTC midnight, which is 17:00 on the 14th at UTC-7
        client.post("/api/tasks", json={"title": "Date only", "date": "2024-03-15"})
        client.post("/api/tasks", json={"title": "Local noon", "date": "2024-03-15T12:00:00-07:00"})

        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json()["totalTasks"] == 2
        assert response.json()["todayTasks"] == 1


@pytest.mark.unit
class TestCors:
    """Cross-origin access for the browser client."""

    def test_simple_request_allows_any_origin(self, client: TestClient) -> None:
        response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight(self, client: TestClient) -> None:
        response = client.options(
            "/api/tasks",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "PUT",
                "Access-Control-Request-Headers": "content-type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "PUT" in response.headers["access-control-allow-methods"]
