"""Configuration management for the task tracker API."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Interface the HTTP server binds to")  # noqa: S104
    port: int = Field(default=5000, description="HTTP server port")
    environment: str = Field(default="development", description="Deployment environment name")
    cors_origins: list[str] = Field(default=["*"], description="Origins allowed to call the API from a browser")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Document Store Configuration
    store_backend: Literal["firestore", "sqlite"] = Field(
        default="firestore", description="Document store backend (firestore, or sqlite for local development)"
    )
    sqlite_db_path: str = Field(default="./data/tasks.db", description="SQLite file used by the sqlite backend")
    tasks_collection: str = Field(default="tasks", description="Collection holding task documents")

    # Firebase Credentials (exactly one source is used, see firestore_client.resolve_credentials)
    google_application_credentials: str | None = Field(
        default=None, description="Path to a credentials file for application default credentials"
    )
    firebase_service_account: str | None = Field(default=None, description="Service account JSON blob")
    firebase_project_id: str | None = Field(default=None, description="Firebase project ID")
    firebase_client_email: str | None = Field(default=None, description="Service account client email")
    firebase_private_key: str | None = Field(default=None, description="Service account private key (PEM)")
    firebase_private_key_id: str | None = Field(default=None, description="Service account private key ID")
    firebase_client_id: str | None = Field(default=None, description="Service account client ID")
    firebase_client_cert_url: str | None = Field(default=None, description="Service account x509 cert URL")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_CREATED: int = 201
    HTTP_BAD_REQUEST: int = 400
    HTTP_NOT_FOUND: int = 404
    HTTP_SERVER_ERROR: int = 500

    # Task stats
    COMPLETION_RATE_DIGITS: int = 1  # Decimal places in completionRate

    # Health check
    HEALTH_MESSAGE: str = "Task tracker API is running"

    # Document ids generated by the sqlite backend
    DOCUMENT_ID_BYTES: int = 15  # 15 random bytes -> 20 url-safe characters


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
