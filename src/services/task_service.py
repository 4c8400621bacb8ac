"""Task service: CRUD over the tasks collection."""

import logging
from datetime import UTC, datetime
from typing import Any

from src.core.config import settings
from src.core.document_store import DatabaseError, DocumentStore, RecordNotFoundError, shape_document
from src.core.errors import TaskNotFoundError, TaskStoreError
from src.core.logging import span
from src.domain.task import TaskCreate, TaskUpdate


logger = logging.getLogger(__name__)


async def list_tasks(*, store: DocumentStore, collection: str = settings.tasks_collection) -> list[dict[str, Any]]:
    """List every task, most recently created first.

    Date filtering is left to the caller.

    Returns:
        Shaped task documents (empty list when there are none)

    Raises:
        TaskStoreError: If the store cannot be read
    """
    with span("task_service.list_tasks"):
        try:
            documents = await store.list_documents(collection, order_by="createdAt", descending=True)
        except DatabaseError as e:
            raise TaskStoreError(str(e)) from e

        return [shape_document(document) for document in documents]


async def create_task(
    *,
    store: DocumentStore,
    payload: TaskCreate,
    collection: str = settings.tasks_collection,
) -> dict[str, Any]:
    """Create a task, stamping createdAt with the current time.

    Args:
        store: Document store handle
        payload: Validated create payload (title and date already checked)
        collection: Collection to write to

    Returns:
        The shaped task as stored, including its new id

    Raises:
        TaskStoreError: If the store rejects the write (reported as a client error)
    """
    with span("task_service.create_task"):
        task_data = payload.model_dump(exclude_none=True)
        task_data["createdAt"] = datetime.now(UTC)
        task_data["completed"] = payload.completed

        try:
            document = await store.add_document(collection, task_data)
        except DatabaseError as e:
            raise TaskStoreError(str(e), write_path=True) from e

        logger.info("Created task", extra={"task_id": document.id, "title": payload.title})
        return shape_document(document)


async def update_task(
    *,
    store: DocumentStore,
    task_id: str,
    payload: TaskUpdate,
    collection: str = settings.tasks_collection,
) -> dict[str, Any]:
    """Overwrite the fields the client sent on an existing task.

    Existence is checked before writing; the write itself is conditional on the
    document still existing, so a concurrent delete yields TaskNotFoundError.

    Raises:
        TaskNotFoundError: If no task has this id
        TaskStoreError: If the store rejects the write (reported as a client error)
    """
    with span("task_service.update_task"):
        try:
            existing = await store.get_document(collection, task_id)
            if existing is None:
                raise TaskNotFoundError(task_id)

            update_data = payload.model_dump(exclude_unset=True)
            if not update_data:
                return shape_document(existing)

            await store.update_document(collection, task_id, update_data)
            updated = await store.get_document(collection, task_id)
        except RecordNotFoundError as e:
            raise TaskNotFoundError(task_id) from e
        except DatabaseError as e:
            raise TaskStoreError(str(e), write_path=True) from e

        if updated is None:
            raise TaskNotFoundError(task_id)

        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(update_data)})
        return shape_document(updated)


async def delete_task(*, store: DocumentStore, task_id: str, collection: str = settings.tasks_collection) -> None:
    """Permanently delete a task.

    Raises:
        TaskNotFoundError: If no task has this id
        TaskStoreError: If the store fails
    """
    with span("task_service.delete_task"):
        try:
            existing = await store.get_document(collection, task_id)
            if existing is None:
                raise TaskNotFoundError(task_id)

            await store.delete_document(collection, task_id)
        except RecordNotFoundError as e:
            raise TaskNotFoundError(task_id) from e
        except DatabaseError as e:
            raise TaskStoreError(str(e)) from e

        logger.info("Deleted task", extra={"task_id": task_id})
