"""Owner-scoped task list operations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence
from uuid import uuid4

from ..catalog.models import Task
from .repository import TASK_COLUMNS, TaskRepository

logger = logging.getLogger("tasks")


@dataclass
class TaskService:
    repository: TaskRepository

    def list_tasks(self, user_id: str) -> Sequence[Task]:
        return self.repository.list_tasks(user_id)

    def add_task(self, user_id: str, title: str, description: str = "") -> Task:
        task = Task(id=str(uuid4()), user_id=user_id, title=title, description=description or "")
        return self.repository.insert_task(task)

    def update_task(self, user_id: str, task_id: str, updates: Mapping[str, Any]) -> Task:
        self._owned_task(user_id, task_id)
        changes = {key: value for key, value in updates.items() if key in TASK_COLUMNS}
        if "title" in changes:
            title = str(changes["title"] or "").strip()
            if not title:
                raise ValueError("title must not be empty")
            changes["title"] = title
        if not changes:
            raise ValueError("No changes provided")
        updated = self.repository.update_task(task_id, changes)
        if updated is None:
            raise LookupError("Task not found")
        return updated

    def delete_task(self, user_id: str, task_id: str) -> None:
        self._owned_task(user_id, task_id)
        if not self.repository.delete_task(task_id):
            raise LookupError("Task not found")
        logger.info("Deleted task %s for user=%s", task_id, user_id)

    def _owned_task(self, user_id: str, task_id: str) -> Task:
        task = self.repository.get_task(task_id)
        if task is None:
            raise LookupError("Task not found")
        if task.user_id != user_id:
            raise PermissionError("Only the owner can modify this task")
        return task


__all__ = ["TaskService"]
