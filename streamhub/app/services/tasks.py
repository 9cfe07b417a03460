"""Application wiring for the task list."""
from __future__ import annotations

from functools import lru_cache

from ..tasks import PostgresTaskRepository, TaskService


@lru_cache(maxsize=1)
def get_task_service() -> TaskService:
    return TaskService(repository=PostgresTaskRepository())


__all__ = ["get_task_service"]
