"""SQLite document store backend for local development.

Each collection is a table of (id, data) rows where ``data`` is the document as JSON.
Datetimes are written as tagged objects so they read back as timezone-aware
``datetime`` values, matching what a managed document store hands back.
"""

import asyncio
import json
import logging
import re
import secrets
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import constants
from src.core.document_store import DatabaseError, RecordNotFoundError, StoredDocument


logger = logging.getLogger(__name__)

_DATETIME_TAG = "__datetime__"


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.astimezone()
        return {_DATETIME_TAG: value.astimezone(UTC).isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_object(obj: dict[str, Any]) -> Any:
    if set(obj) == {_DATETIME_TAG}:
        return datetime.fromisoformat(obj[_DATETIME_TAG])
    return obj


def encode_document(data: dict[str, Any]) -> str:
    """Serialize a document to JSON, tagging datetimes."""
    return json.dumps(data, default=_encode_value)


def decode_document(raw: str) -> dict[str, Any]:
    """Deserialize a JSON document, restoring tagged datetimes."""
    return json.loads(raw, object_hook=_decode_object)


def generate_document_id() -> str:
    """Random 20-character url-safe document id."""
    return secrets.token_urlsafe(constants.DOCUMENT_ID_BYTES)


class SQLiteDocumentStore:
    """DocumentStore backed by a single SQLite file via aiosqlite."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path).resolve()
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._tables: set[str] = set()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or lazily open the shared connection."""
        if self._conn is not None:
            return self._conn

        async with self._lock:
            # Double-check after acquiring lock
            if self._conn is not None:
                return self._conn

            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(str(self._db_path))
            await conn.execute("PRAGMA journal_mode = WAL")
            self._conn = conn

            logger.info("Created new SQLite connection", extra={"db_path": str(self._db_path)})
            return conn

    async def _ensure_table(self, conn: aiosqlite.Connection, collection: str) -> None:
        _validate_collection_name(collection)
        if collection in self._tables:
            return
        await conn.execute(
            f"CREATE TABLE IF NOT EXISTS {collection} (id TEXT PRIMARY KEY, data TEXT NOT NULL)"  # noqa: S608 - collection is validated
        )
        await conn.commit()
        self._tables.add(collection)

    async def add_document(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        try:
            conn = await self._get_connection()
            await self._ensure_table(conn, collection)

            document_id = generate_document_id()
            query = f"INSERT INTO {collection} (id, data) VALUES (?, ?)"  # noqa: S608 - collection is validated
            async with self._write_lock:
                await conn.execute(query, (document_id, encode_document(data)))
                await conn.commit()
        except Exception as e:
            logger.error("add_document_failed", extra={"collection": collection, "error": str(e)})
            raise DatabaseError(f"Failed to create document in {collection}: {e}") from e

        logger.info("Created document", extra={"collection": collection, "document_id": document_id})
        document = await self.get_document(collection, document_id)
        if document is None:
            raise DatabaseError(f"Document {document_id} vanished from {collection} right after insert")
        return document

    async def get_document(self, collection: str, document_id: str) -> StoredDocument | None:
        try:
            conn = await self._get_connection()
            await self._ensure_table(conn, collection)

            query = f"SELECT data FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, (document_id,))
            row = await cursor.fetchone()
        except Exception as e:
            logger.error(
                "get_document_failed", extra={"collection": collection, "document_id": document_id, "error": str(e)}
            )
            raise DatabaseError(f"Failed to get document from {collection}: {e}") from e

        if row is None:
            return None
        return StoredDocument(id=document_id, data=decode_document(row[0]))

    async def update_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        if not data:
            return

        try:
            conn = await self._get_connection()
            await self._ensure_table(conn, collection)

            # Read-merge-write must not interleave with a delete on the shared connection
            async with self._write_lock:
                cursor = await conn.execute(
                    f"SELECT data FROM {collection} WHERE id = ?",  # noqa: S608 - collection is validated
                    (document_id,),
                )
                row = await cursor.fetchone()
                if row is None:
                    raise RecordNotFoundError(f"Document not found in {collection}: {document_id}")

                merged = {**decode_document(row[0]), **data}
                await conn.execute(
                    f"UPDATE {collection} SET data = ? WHERE id = ?",  # noqa: S608 - collection is validated
                    (encode_document(merged), document_id),
                )
                await conn.commit()
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "update_document_failed",
                extra={"collection": collection, "document_id": document_id, "error": str(e)},
            )
            raise DatabaseError(f"Failed to update document in {collection}: {e}") from e

        logger.info("Updated document", extra={"collection": collection, "document_id": document_id})

    async def delete_document(self, collection: str, document_id: str) -> None:
        try:
            conn = await self._get_connection()
            await self._ensure_table(conn, collection)

            query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
            async with self._write_lock:
                cursor = await conn.execute(query, (document_id,))
                await conn.commit()
        except Exception as e:
            logger.error(
                "delete_document_failed",
                extra={"collection": collection, "document_id": document_id, "error": str(e)},
            )
            raise DatabaseError(f"Failed to delete document from {collection}: {e}") from e

        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Document not found in {collection}: {document_id}")

        logger.info("Deleted document", extra={"collection": collection, "document_id": document_id})

    async def list_documents(
        self,
        collection: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[StoredDocument]:
        try:
            conn = await self._get_connection()
            await self._ensure_table(conn, collection)

            query = f"SELECT rowid, id, data FROM {collection} ORDER BY rowid"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query)
            rows = await cursor.fetchall()

            documents = [(rowid, StoredDocument(id=doc_id, data=decode_document(raw))) for rowid, doc_id, raw in rows]
            if order_by:
                # Documents without the ordering field are left out, as Firestore does
                documents = [row for row in documents if row[1].data.get(order_by) is not None]
                documents.sort(key=lambda row: (row[1].data[order_by], row[0]), reverse=descending)
        except Exception as e:
            logger.error("list_documents_failed", extra={"collection": collection, "error": str(e)})
            raise DatabaseError(f"Failed to list documents from {collection}: {e}") from e

        logger.info("Listed documents", extra={"collection": collection, "count": len(documents)})
        return [document for _, document in documents]

    async def close(self) -> None:
        """Close the SQLite connection if one is open."""
        if self._conn is None:
            return

        try:
            await self._conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(self._db_path)})
        except Exception as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e)})
        finally:
            self._conn = None
            self._tables.clear()
