"""Persistence for per-user tasks."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..catalog.models import Task
from ..db import PostgresRepository, build_update

TASK_COLUMNS = ("title", "description", "completed")


class TaskRepository(Protocol):
    def list_tasks(self, user_id: str) -> Sequence[Task]:
        ...

    def get_task(self, task_id: str) -> Optional[Task]:
        ...

    def insert_task(self, task: Task) -> Task:
        ...

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        ...

    def delete_task(self, task_id: str) -> bool:
        ...


def _row_to_task(row: Mapping[str, Any]) -> Task:
    return Task(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=row["title"],
        description=row.get("description") or "",
        completed=bool(row.get("completed")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresTaskRepository(PostgresRepository):
    def list_tasks(self, user_id: str) -> Sequence[Task]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM tasks WHERE user_id = %s ORDER BY created_at DESC",
                (user_id,),
            )
            return [_row_to_task(row) for row in cursor.fetchall() or []]

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM tasks WHERE id = %s", (task_id,))
            row = cursor.fetchone()
            return _row_to_task(row) if row else None

    def insert_task(self, task: Task) -> Task:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO tasks (id, user_id, title, description, completed)
                VALUES (%(id)s, %(user_id)s, %(title)s, %(description)s, %(completed)s)
                RETURNING *
                """,
                task.model_dump(exclude={"created_at", "updated_at"}),
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist task")
            return _row_to_task(row)

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        statement, params = build_update("tasks", changes, task_id, allowed=TASK_COLUMNS, touch_updated_at=True)
        with self._cursor() as cursor:
            cursor.execute(statement, params)
            row = cursor.fetchone()
            return _row_to_task(row) if row else None

    def delete_task(self, task_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM tasks WHERE id = %s", (task_id,))
            return cursor.rowcount > 0


__all__ = ["PostgresTaskRepository", "TASK_COLUMNS", "TaskRepository"]
