"""API routes for the signed-in user's task list."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..schemas.tasks import TaskCreateRequest, TaskListResponse, TaskOut, TaskUpdateRequest
from ..services.tasks import get_task_service
from .dependencies import get_session_user

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
def list_tasks(*, current_user=Depends(get_session_user)) -> TaskListResponse:
    tasks = get_task_service().list_tasks(current_user.id)
    return TaskListResponse(items=[TaskOut.from_task(task) for task in tasks])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreateRequest, *, current_user=Depends(get_session_user)) -> TaskOut:
    try:
        task = get_task_service().add_task(current_user.id, payload.title, payload.description)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return TaskOut.from_task(task)


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    payload: TaskUpdateRequest,
    *,
    current_user=Depends(get_session_user),
) -> TaskOut:
    try:
        task = get_task_service().update_task(
            current_user.id,
            task_id,
            payload.model_dump(exclude_none=True),
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return TaskOut.from_task(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: str, *, current_user=Depends(get_session_user)) -> Response:
    try:
        get_task_service().delete_task(current_user.id, task_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
