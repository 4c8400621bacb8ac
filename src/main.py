"""Task tracker - REST API for dated personal tasks and completion statistics."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.core.config import settings
from src.core.document_store import DocumentStore
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.store import build_store
from src.interface.task_router import request_validation_error_handler, router as task_router


logger = logging.getLogger(__name__)


async def open_document_store() -> DocumentStore:
    """Resolve credentials and build the document store, exiting the process on failure.

    A store that cannot be authenticated against is a configuration error, not a
    runtime fault, so startup stops here with exit code 1.
    """
    logger.info("startup_validation_begin", extra={"backend": settings.store_backend})

    try:
        store = build_store(settings)
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    except Exception as e:
        logger.error("startup_validation_unexpected_error", extra={"error": str(e)})
        print(f"\n❌ Unexpected error during startup validation: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    logger.info("startup_validation_complete", extra={"stage": "credentials", "status": "ok"})
    return store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()

    owns_store = app.state.store is None
    if owns_store:
        app.state.store = await open_document_store()
    logger.info("Document store ready")

    yield

    if owns_store:
        await app.state.store.close()
        app.state.store = None


def create_app(store: DocumentStore | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        store: Document store to serve from; built from settings at startup when omitted
    """
    app = FastAPI(
        title="task-tracker",
        description="Personal task tracking API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore[arg-type]

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)

    app.include_router(task_router)
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run("src.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
