"""Task domain models and enums."""

import re
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TaskPriority(StrEnum):
    """How urgent a task is."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def coerce_task_date(value: Any) -> datetime:
    """Coerce a client-supplied task date to a timezone-aware timestamp.

    - "YYYY-MM-DD" (or a ``date``) means midnight UTC of that day
    - Full ISO-8601 timestamps keep their offset; "Z" is accepted
    - Naive timestamps are taken to be in the server's local time zone

    Raises:
        ValueError: If the value is not a recognisable date or timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif isinstance(value, str):
        text = value.strip()
        if _DATE_ONLY.match(text):
            try:
                day = date.fromisoformat(text)
            except ValueError as e:
                raise ValueError(f"Invalid date: {value!r}") from e
            return datetime(day.year, day.month, day.day, tzinfo=UTC)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid date: {value!r}") from e
    else:
        raise ValueError(f"Invalid date: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


class _TaskFields(BaseModel):
    """Fields a client may set on a task."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    @field_validator("title", check_fields=False)
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Reject blank titles."""
        if v is not None and not v.strip():
            msg = "Title must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def validate_date(cls, v: Any) -> datetime | None:
        """Coerce the task date to a timestamp."""
        if v is None:
            return None
        return coerce_task_date(v)


class TaskCreate(_TaskFields):
    """Payload for creating a task."""

    title: str = Field(..., description="Task title")
    date: datetime = Field(..., description="Day the task is intended for")
    description: str | None = Field(default=None, description="Detailed task description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, validate_default=True, description="Task priority")
    category: str | None = Field(default=None, description="Free-text label")
    completed: bool = Field(default=False, description="Whether the task is done")


class TaskUpdate(_TaskFields):
    """Partial update payload; only fields the client sent are written."""

    title: str | None = Field(default=None, description="Task title")
    date: datetime | None = Field(default=None, description="Day the task is intended for")
    description: str | None = Field(default=None, description="Detailed task description")
    priority: TaskPriority | None = Field(default=None, description="Task priority")
    category: str | None = Field(default=None, description="Free-text label")
    completed: bool | None = Field(default=None, description="Whether the task is done")

    @field_validator("title", "date", "priority", "completed")
    @classmethod
    def reject_explicit_null(cls, v: Any) -> Any:
        """Required-at-creation fields cannot be cleared."""
        if v is None:
            msg = "Field cannot be null"
            raise ValueError(msg)
        return v


class TaskStats(BaseModel):
    """Aggregate completion statistics over all tasks."""

    totalTasks: int = Field(..., description="Number of tasks")  # noqa: N815
    completedTasks: int = Field(..., description="Number of completed tasks")  # noqa: N815
    todayTasks: int = Field(..., description="Tasks dated within today's local calendar day")  # noqa: N815
    completionRate: float = Field(..., description="Completed percentage, one decimal place")  # noqa: N815
