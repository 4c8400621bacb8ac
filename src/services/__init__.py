from src.services import stats_service, task_service


__all__ = [
    "stats_service",
    "task_service",
]
