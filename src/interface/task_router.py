"""REST API for tasks and task statistics."""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.config import constants
from src.core.document_store import DocumentStore
from src.core.errors import ErrorResponse, TaskError, TaskValidationError, format_validation_errors
from src.domain.task import TaskCreate, TaskUpdate
from src.services import stats_service, task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tasks"])


def get_store(request: Request) -> DocumentStore:
    """Return the document store composed at startup."""
    return request.app.state.store


def get_now() -> datetime:
    """Current server-local time, the reference for the stats "today" window."""
    return datetime.now().astimezone()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def _task_error_response(error: TaskError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_response().model_dump())


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing input as 400 with a flat message."""
    error = TaskValidationError(format_validation_errors(list(exc.errors())))
    logger.warning("request_validation_failed", extra={"path": request.url.path, "error": error.message})
    return _task_error_response(error)


@router.get("/tasks")
async def get_tasks(
    date: str | None = Query(default=None, description="Day the client is viewing; filtering happens client-side"),
    store: DocumentStore = Depends(get_store),
) -> JSONResponse:
    """List all tasks, newest first."""
    try:
        tasks = await task_service.list_tasks(store=store)
    except TaskError as e:
        logger.error("list_tasks_failed", extra={"error": e.message})
        return _task_error_response(e)
    except Exception:
        logger.exception("list_tasks_unexpected_error")
        return _error_response(constants.HTTP_SERVER_ERROR, "Failed to fetch tasks")

    logger.info("Fetched tasks", extra={"count": len(tasks), "date": date})
    return JSONResponse(status_code=constants.HTTP_OK, content=tasks)


@router.post("/tasks")
async def post_task(payload: TaskCreate, store: DocumentStore = Depends(get_store)) -> JSONResponse:
    """Create a task."""
    try:
        task = await task_service.create_task(store=store, payload=payload)
    except TaskError as e:
        logger.error("create_task_failed", extra={"error": e.message})
        return _task_error_response(e)
    except Exception:
        logger.exception("create_task_unexpected_error")
        return _error_response(constants.HTTP_BAD_REQUEST, "Failed to create task")

    return JSONResponse(status_code=constants.HTTP_CREATED, content=task)


@router.put("/tasks/{task_id}")
async def put_task(task_id: str, payload: TaskUpdate, store: DocumentStore = Depends(get_store)) -> JSONResponse:
    """Update the given fields of a task."""
    try:
        task = await task_service.update_task(store=store, task_id=task_id, payload=payload)
    except TaskError as e:
        logger.error("update_task_failed", extra={"task_id": task_id, "error": e.message})
        return _task_error_response(e)
    except Exception:
        logger.exception("update_task_unexpected_error", extra={"task_id": task_id})
        return _error_response(constants.HTTP_BAD_REQUEST, "Failed to update task")

    return JSONResponse(status_code=constants.HTTP_OK, content=task)


@router.delete("/tasks/{task_id}")
async def remove_task(task_id: str, store: DocumentStore = Depends(get_store)) -> JSONResponse:
    """Delete a task permanently."""
    try:
        await task_service.delete_task(store=store, task_id=task_id)
    except TaskError as e:
        logger.error("delete_task_failed", extra={"task_id": task_id, "error": e.message})
        return _task_error_response(e)
    except Exception:
        logger.exception("delete_task_unexpected_error", extra={"task_id": task_id})
        return _error_response(constants.HTTP_SERVER_ERROR, "Failed to delete task")

    return JSONResponse(status_code=constants.HTTP_OK, content={"message": "Task deleted successfully"})


@router.get("/stats")
async def get_stats(
    store: DocumentStore = Depends(get_store), now: datetime = Depends(get_now)
) -> JSONResponse:
    """Completion statistics over all tasks."""
    try:
        stats = await stats_service.get_stats(store=store, now=now)
    except TaskError as e:
        logger.error("get_stats_failed", extra={"error": e.message})
        return _task_error_response(e)
    except Exception:
        logger.exception("get_stats_unexpected_error")
        return _error_response(constants.HTTP_SERVER_ERROR, "Failed to fetch stats")

    return JSONResponse(status_code=constants.HTTP_OK, content=stats.model_dump())


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "OK", "message": constants.HEALTH_MESSAGE}
