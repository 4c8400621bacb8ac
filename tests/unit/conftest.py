"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.main import create_app
from tests.unit.mocks import InMemoryDocumentStore


TASKS = "tasks"


@pytest.fixture
def in_memory_store() -> InMemoryDocumentStore:
    """Provides a fresh InMemoryDocumentStore for each test."""
    return InMemoryDocumentStore()


@pytest.fixture
def client(in_memory_store: InMemoryDocumentStore) -> TestClient:
    """Test client for an app wired to the in-memory store.

    The lifespan is not entered, so no credentials or logging setup are needed.
    """
    return TestClient(create_app(store=in_memory_store))


@pytest.fixture
def seed_task(in_memory_store: InMemoryDocumentStore):
    """Insert a stored task document directly and return its id."""

    def _seed(
        *,
        title: str = "Seeded task",
        date: datetime | None = None,
        created_at: datetime | None = None,
        **fields: Any,
    ) -> str:
        data = {
            "title": title,
            "date": date or datetime(2024, 3, 15, tzinfo=UTC),
            "createdAt": created_at or datetime.now(UTC),
            "priority": "medium",
            "completed": False,
            **fields,
        }
        return in_memory_store.seed(TASKS, data)

    return _seed


@pytest.fixture
def sample_task_payload() -> dict[str, Any]:
    """Returns a create payload like the one the browser client sends."""
    return {
        "title": "Write report",
        "description": "Quarterly summary",
        "date": "2024-03-15",
        "priority": "high",
        "category": "work",
    }
