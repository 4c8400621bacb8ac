"""Domain models and DTOs."""

from src.domain.task import TaskCreate, TaskPriority, TaskStats, TaskUpdate, coerce_task_date


__all__ = [
    "TaskCreate",
    "TaskPriority",
    "TaskStats",
    "TaskUpdate",
    "coerce_task_date",
]
