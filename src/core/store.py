"""Composition of the configured document store backend."""

import logging

from src.core.config import Settings
from src.core.db_client import SQLiteDocumentStore
from src.core.document_store import DocumentStore
from src.core.firestore_client import FirestoreDocumentStore


logger = logging.getLogger(__name__)


def build_store(config: Settings) -> DocumentStore:
    """Construct the document store selected by STORE_BACKEND.

    Called once at startup; the result is shared by every request handler.

    Raises:
        CredentialsError: If the firestore backend is selected and no credentials are configured
    """
    if config.store_backend == "sqlite":
        logger.info("Using SQLite document store", extra={"db_path": config.sqlite_db_path})
        return SQLiteDocumentStore(config.sqlite_db_path)

    logger.info("Using Firestore document store")
    return FirestoreDocumentStore.from_settings(config)
