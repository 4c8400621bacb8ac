"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from src.core.config import Settings


def test_defaults(monkeypatch) -> None:
    """Test defaults match the documented service behaviour."""
    for name in ("PORT", "STORE_BACKEND", "TASKS_COLLECTION"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 5000
    assert settings.store_backend == "firestore"
    assert settings.tasks_collection == "tasks"


def test_port_read_from_environment(monkeypatch) -> None:
    """Test PORT environment variable is honoured."""
    monkeypatch.setenv("PORT", "8080")

    assert Settings(_env_file=None).port == 8080


def test_unknown_store_backend_rejected() -> None:
    """Test only supported document store backends are accepted."""
    with pytest.raises(ValidationError, match="store_backend"):
        Settings(_env_file=None, store_backend="mongodb")


def test_cors_origins_parsed_from_json(monkeypatch) -> None:
    """Test CORS_ORIGINS accepts a JSON list."""
    monkeypatch.setenv("CORS_ORIGINS", '["http://localhost:5173"]')

    assert Settings(_env_file=None).cors_origins == ["http://localhost:5173"]


def test_require_credential_with_valid_value() -> None:
    """Test require_credential returns value when credential is set."""
    settings = Settings(_env_file=None, firebase_project_id="demo")

    assert settings.require_credential("firebase_project_id", "Firebase project") == "demo"


@pytest.mark.parametrize("value", [None, ""])
def test_require_credential_missing_raises_error(value) -> None:
    """Test require_credential raises ValueError naming the environment variable."""
    settings = Settings(_env_file=None, firebase_project_id=value)

    with pytest.raises(ValueError, match="Firebase project credential not configured. Set FIREBASE_PROJECT_ID"):
        settings.require_credential("firebase_project_id", "Firebase project")
