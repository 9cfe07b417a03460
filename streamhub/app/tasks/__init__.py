"""Per-user task list."""

from .repository import PostgresTaskRepository, TaskRepository
from .service import TaskService

__all__ = ["PostgresTaskRepository", "TaskRepository", "TaskService"]
