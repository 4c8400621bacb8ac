"""Statistics service for task completion metrics.

Key Concepts:
- Today: the server's local calendar day, [midnight, next midnight).
- Completion rate: completed / total * 100 rounded to one decimal place, 0.0 with no tasks.
"""

import logging
from datetime import UTC, datetime, time, timedelta
from typing import Any

from src.core.config import constants, settings
from src.core.document_store import DatabaseError, DocumentStore
from src.core.errors import TaskStoreError
from src.core.logging import span
from src.domain.task import TaskStats, coerce_task_date


logger = logging.getLogger(__name__)


def local_day_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the [start, end) bounds of the calendar day containing ``now``.

    ``now`` defaults to the current server-local time; naive values are taken as local.
    """
    current = now or datetime.now()
    if current.tzinfo is None:
        current = current.astimezone()
    start = datetime.combine(current.date(), time.min, tzinfo=current.tzinfo)
    return start, start + timedelta(days=1)


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            return coerce_task_date(value)
        except ValueError:
            return None
    return None


def completion_rate(completed: int, total: int) -> float:
    """Percentage of completed tasks, one decimal place."""
    if total == 0:
        return 0.0
    return round(completed / total * 100, constants.COMPLETION_RATE_DIGITS)


def compute_stats(documents: list[dict[str, Any]], *, now: datetime | None = None) -> TaskStats:
    """Aggregate task documents into completion statistics in a single pass."""
    start, end = local_day_window(now)

    total = 0
    completed = 0
    today = 0
    for data in documents:
        total += 1
        if data.get("completed") is True:
            completed += 1
        task_date = _as_datetime(data.get("date"))
        if task_date is not None and start <= task_date < end:
            today += 1

    return TaskStats(
        totalTasks=total,
        completedTasks=completed,
        todayTasks=today,
        completionRate=completion_rate(completed, total),
    )


async def get_stats(
    *,
    store: DocumentStore,
    now: datetime | None = None,
    collection: str = settings.tasks_collection,
) -> TaskStats:
    """Scan every task and compute completion statistics.

    Raises:
        TaskStoreError: If the store cannot be read
    """
    with span("stats_service.get_stats"):
        try:
            documents = await store.list_documents(collection)
        except DatabaseError as e:
            raise TaskStoreError(str(e)) from e

        stats = compute_stats([document.data for document in documents], now=now)
        logger.debug("Computed task stats", extra=stats.model_dump())
        return stats
