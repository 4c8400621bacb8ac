"""Document store contract shared by every backend, and the read-side shaping step."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Protocol


class DatabaseError(Exception):
    """Base exception for document store failures."""


class RecordNotFoundError(DatabaseError):
    """Raised when a document does not exist (or vanished before a conditional write)."""


@dataclass
class StoredDocument:
    """A document as returned by a backend.

    Temporal fields hold store-native values (``datetime`` objects), never text.
    """

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class DocumentStore(Protocol):
    """Async CRUD + ordered listing over named collections."""

    async def add_document(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        """Persist a new document under a store-assigned id and return it as stored."""
        ...

    async def get_document(self, collection: str, document_id: str) -> StoredDocument | None:
        """Return the document, or None if it does not exist."""
        ...

    async def update_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document.

        Raises:
            RecordNotFoundError: If the document does not exist at write time
        """
        ...

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Permanently remove an existing document.

        Raises:
            RecordNotFoundError: If the document does not exist at write time
        """
        ...

    async def list_documents(
        self,
        collection: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[StoredDocument]:
        """Return every document in the collection, optionally ordered by one field."""
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        ...


def to_iso_timestamp(value: datetime | date) -> str:
    """Render a temporal value as ISO-8601 text.

    Datetimes are normalised to UTC with millisecond precision and a "Z" suffix
    (naive values are taken to be UTC already); plain dates stay YYYY-MM-DD.
    """
    if not isinstance(value, datetime):
        return value.isoformat()
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    utc_value = datetime.fromtimestamp(value.timestamp(), tz=UTC)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _shape_value(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return to_iso_timestamp(value)
    if isinstance(value, dict):
        return {key: _shape_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_shape_value(item) for item in value]
    return value


def shape_document(document: StoredDocument) -> dict[str, Any]:
    """Convert a stored document into its client-facing mapping.

    Every temporal value becomes ISO-8601 text and the document id is injected under ``id``.
    Non-temporal fields pass through unchanged.
    """
    shaped = {key: _shape_value(value) for key, value in document.data.items() if key != "id"}
    return {"id": document.id, **shaped}
