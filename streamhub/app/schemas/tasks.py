"""API schemas for the task list."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..catalog.models import Task


class TaskOut(BaseModel):
    id: str
    title: str
    description: str = ""
    completed: bool = False
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskListResponse(BaseModel):
    items: List[TaskOut]


class TaskCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""


class TaskUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None


__all__ = ["TaskCreateRequest", "TaskListResponse", "TaskOut", "TaskUpdateRequest"]
