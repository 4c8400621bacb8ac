"""Logging and observability configuration using Pydantic Logfire.

All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Nothing is shipped unless LOGFIRE_TOKEN is set; standard logging still goes to the console.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="task-tracker",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(level=logging.INFO, handlers=[logfire.LogfireLoggingHandler()])

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("task_service.create_task"):
            # Your service logic here
            pass
    """
    return logfire.span(name)
