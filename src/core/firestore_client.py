"""Cloud Firestore document store backend built on firebase-admin."""

import json
import logging
import os
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.api_core import exceptions as gcp_exceptions

from src.core.config import Settings
from src.core.document_store import DatabaseError, RecordNotFoundError, StoredDocument


logger = logging.getLogger(__name__)

_SERVICE_ACCOUNT_DEFAULTS = {
    "type": "service_account",
    "auth_uri": "https://accounts.google.com/o/oauth2/auth",
    "token_uri": "https://oauth2.googleapis.com/token",
    "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
    "universe_domain": "googleapis.com",
}

_MISSING_CREDENTIALS_MESSAGE = (
    "Missing Firebase credentials. Set GOOGLE_APPLICATION_CREDENTIALS, or provide FIREBASE_SERVICE_ACCOUNT (JSON), "
    "or provide FIREBASE_PROJECT_ID, FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY."
)


class CredentialsError(ValueError):
    """Raised when no usable Firebase credential source is configured."""


def _restore_newlines(private_key: str) -> str:
    """Turn literal "\\n" sequences (common in env vars) back into newlines."""
    return private_key.replace("\\n", "\n")


def _certificate(service_account: dict[str, Any], source: str) -> credentials.Certificate:
    try:
        return credentials.Certificate(service_account)
    except ValueError as e:
        raise CredentialsError(f"Invalid service account credentials from {source}: {e}") from e


def resolve_credentials(config: Settings) -> tuple[credentials.Base, str]:
    """Pick exactly one credential source, in priority order.

    1. GOOGLE_APPLICATION_CREDENTIALS -> application default credentials
    2. FIREBASE_SERVICE_ACCOUNT -> a whole service account JSON blob
    3. FIREBASE_PROJECT_ID + FIREBASE_CLIENT_EMAIL + FIREBASE_PRIVATE_KEY -> discrete fields

    Returns:
        The credential and a label naming the source used

    Raises:
        CredentialsError: If no source is configured or the configured one is unusable
    """
    if config.google_application_credentials:
        # google.auth only reads the process environment, not .env
        os.environ.setdefault("GOOGLE_APPLICATION_CREDENTIALS", config.google_application_credentials)
        return credentials.ApplicationDefault(), "application_default"

    if config.firebase_service_account:
        try:
            service_account = json.loads(config.firebase_service_account)
        except json.JSONDecodeError as e:
            raise CredentialsError("FIREBASE_SERVICE_ACCOUNT env var is not valid JSON") from e

        if not isinstance(service_account, dict) or not isinstance(service_account.get("project_id"), str):
            raise CredentialsError(
                'Service account JSON (FIREBASE_SERVICE_ACCOUNT) must contain a string "project_id" property'
            )

        if isinstance(service_account.get("private_key"), str):
            service_account["private_key"] = _restore_newlines(service_account["private_key"])

        return _certificate(service_account, "FIREBASE_SERVICE_ACCOUNT"), "service_account_json"

    if config.firebase_project_id or config.firebase_client_email or config.firebase_private_key:
        try:
            project_id = config.require_credential("firebase_project_id", "Firebase project ID")
            client_email = config.require_credential("firebase_client_email", "Firebase client email")
            private_key = config.require_credential("firebase_private_key", "Firebase private key")
        except ValueError as e:
            raise CredentialsError(str(e)) from e

        service_account = {
            **_SERVICE_ACCOUNT_DEFAULTS,
            "project_id": project_id,
            "private_key_id": config.firebase_private_key_id,
            "private_key": _restore_newlines(private_key),
            "client_email": client_email,
            "client_id": config.firebase_client_id,
            "client_x509_cert_url": config.firebase_client_cert_url,
        }
        return _certificate(service_account, "FIREBASE_* variables"), "service_account_fields"

    raise CredentialsError(_MISSING_CREDENTIALS_MESSAGE)


class FirestoreDocumentStore:
    """DocumentStore backed by Cloud Firestore's async client.

    Updates and deletes carry an ``exists`` precondition, so a document removed
    after the caller's existence check surfaces as RecordNotFoundError instead of
    being recreated or silently skipped.
    """

    def __init__(self, client: Any, *, app: firebase_admin.App | None = None) -> None:
        self._client = client
        self._app = app

    @classmethod
    def from_settings(cls, config: Settings, *, app_name: str = "task-tracker") -> "FirestoreDocumentStore":
        """Authenticate against Firebase and open an async Firestore client.

        Raises:
            CredentialsError: If credentials cannot be resolved
        """
        credential, source = resolve_credentials(config)
        options = {"projectId": config.firebase_project_id} if config.firebase_project_id else None
        app = firebase_admin.initialize_app(credential, options, name=app_name)
        logger.info("Firebase Admin initialized", extra={"credential_source": source, "app": app_name})
        return cls(firestore_async.client(app), app=app)

    async def add_document(self, collection: str, data: dict[str, Any]) -> StoredDocument:
        try:
            _, reference = await self._client.collection(collection).add(data)
            snapshot = await reference.get()
        except (gcp_exceptions.GoogleAPICallError, TypeError, ValueError) as e:
            logger.error("add_document_failed", extra={"collection": collection, "error": str(e)})
            raise DatabaseError(f"Failed to create document in {collection}: {e}") from e

        logger.info("Created document", extra={"collection": collection, "document_id": snapshot.id})
        return StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})

    async def get_document(self, collection: str, document_id: str) -> StoredDocument | None:
        try:
            snapshot = await self._client.collection(collection).document(document_id).get()
        except (gcp_exceptions.GoogleAPICallError, ValueError) as e:
            logger.error(
                "get_document_failed", extra={"collection": collection, "document_id": document_id, "error": str(e)}
            )
            raise DatabaseError(f"Failed to get document from {collection}: {e}") from e

        if not snapshot.exists:
            return None
        return StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})

    async def update_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        reference = self._client.collection(collection).document(document_id)
        try:
            await reference.update(data, option=self._client.write_option(exists=True))
        except (gcp_exceptions.NotFound, gcp_exceptions.FailedPrecondition) as e:
            raise RecordNotFoundError(f"Document not found in {collection}: {document_id}") from e
        except (gcp_exceptions.GoogleAPICallError, TypeError, ValueError) as e:
            logger.error(
                "update_document_failed",
                extra={"collection": collection, "document_id": document_id, "error": str(e)},
            )
            raise DatabaseError(f"Failed to update document in {collection}: {e}") from e

        logger.info("Updated document", extra={"collection": collection, "document_id": document_id})

    async def delete_document(self, collection: str, document_id: str) -> None:
        reference = self._client.collection(collection).document(document_id)
        try:
            await reference.delete(option=self._client.write_option(exists=True))
        except (gcp_exceptions.NotFound, gcp_exceptions.FailedPrecondition) as e:
            raise RecordNotFoundError(f"Document not found in {collection}: {document_id}") from e
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error(
                "delete_document_failed",
                extra={"collection": collection, "document_id": document_id, "error": str(e)},
            )
            raise DatabaseError(f"Failed to delete document from {collection}: {e}") from e

        logger.info("Deleted document", extra={"collection": collection, "document_id": document_id})

    async def list_documents(
        self,
        collection: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[StoredDocument]:
        query = self._client.collection(collection)
        if order_by:
            query = query.order_by(order_by, direction="DESCENDING" if descending else "ASCENDING")

        try:
            documents = [
                StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {}) async for snapshot in query.stream()
            ]
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error("list_documents_failed", extra={"collection": collection, "error": str(e)})
            raise DatabaseError(f"Failed to list documents from {collection}: {e}") from e

        logger.info("Listed documents", extra={"collection": collection, "count": len(documents)})
        return documents

    async def close(self) -> None:
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None
