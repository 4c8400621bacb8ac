"""Error taxonomy for task operations and its mapping to HTTP responses."""

from pydantic import BaseModel

from src.core.config import constants


class ErrorResponse(BaseModel):
    """Body of every error response."""

    message: str


class TaskError(Exception):
    """Base class for task operation failures.

    The message is client-safe: it is returned verbatim in the response body.
    """

    status_code: int = constants.HTTP_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> ErrorResponse:
        """Build the response body for this error."""
        return ErrorResponse(message=self.message)


class TaskValidationError(TaskError):
    """Missing or malformed input."""

    status_code = constants.HTTP_BAD_REQUEST


class TaskNotFoundError(TaskError):
    """Identifier does not resolve to an existing task."""

    status_code = constants.HTTP_NOT_FOUND

    def __init__(self, task_id: str, message: str = "Task not found") -> None:
        super().__init__(message)
        self.task_id = task_id


class TaskStoreError(TaskError):
    """Underlying persistence failure.

    Write-path failures on create/update are reported as 400 since their cause is
    usually malformed input that the store rejected.
    """

    def __init__(self, message: str, *, write_path: bool = False) -> None:
        super().__init__(message)
        self.status_code = constants.HTTP_BAD_REQUEST if write_path else constants.HTTP_SERVER_ERROR


def format_validation_errors(errors: list[dict]) -> str:
    """Flatten pydantic/FastAPI validation errors into a single readable message.

    Each error becomes "<field>: <reason>"; errors are joined with "; ".
    """
    parts = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        reason = error.get("msg", "Invalid value")
        parts.append(f"{field}: {reason}" if field else reason)
    return "; ".join(parts) or "Invalid request"
