"""API routes for administrators managing users, channels and content."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..schemas.accounts import UserOut
from ..schemas.catalog import (
    ChannelCreateRequest,
    ChannelListResponse,
    ChannelOut,
    ChannelUpdateRequest,
    ContentCreateRequest,
    ContentListResponse,
    ContentOut,
    ContentUpdateRequest,
    UserUpdateRequest,
)
from ..services.catalog import get_catalog_service
from .dependencies import get_session_user

router = APIRouter(prefix="/api/admin", tags=["admin"])


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/users", response_model=List[UserOut])
def list_users(*, current_user=Depends(get_session_user)) -> List[UserOut]:
    with _translate_errors():
        users = get_catalog_service().list_users(current_user)
    return [UserOut.from_user(user) for user in users]


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    *,
    current_user=Depends(get_session_user),
) -> UserOut:
    with _translate_errors():
        user = get_catalog_service().update_user(current_user, user_id, payload.model_dump(exclude_none=True))
    return UserOut.from_user(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, *, current_user=Depends(get_session_user)) -> Response:
    with _translate_errors():
        get_catalog_service().delete_user(current_user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/channels", response_model=ChannelListResponse)
def list_channels(*, current_user=Depends(get_session_user)) -> ChannelListResponse:
    with _translate_errors():
        channels = get_catalog_service().list_channels(current_user)
    return ChannelListResponse(items=[ChannelOut.from_channel(channel) for channel in channels])


@router.post("/channels", response_model=ChannelOut, status_code=status.HTTP_201_CREATED)
def create_channel(payload: ChannelCreateRequest, *, current_user=Depends(get_session_user)) -> ChannelOut:
    with _translate_errors():
        channel = get_catalog_service().create_channel(current_user, payload.model_dump(exclude_none=True))
    return ChannelOut.from_channel(channel)


@router.patch("/channels/{channel_id}", response_model=ChannelOut)
def update_channel(
    channel_id: str,
    payload: ChannelUpdateRequest,
    *,
    current_user=Depends(get_session_user),
) -> ChannelOut:
    with _translate_errors():
        channel = get_catalog_service().update_channel(
            current_user,
            channel_id,
            payload.model_dump(exclude_none=True),
        )
    return ChannelOut.from_channel(channel)


@router.delete("/channels/{channel_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_channel(channel_id: str, *, current_user=Depends(get_session_user)) -> Response:
    with _translate_errors():
        get_catalog_service().delete_channel(current_user, channel_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/content", response_model=ContentListResponse)
def list_content(*, current_user=Depends(get_session_user)) -> ContentListResponse:
    with _translate_errors():
        items = get_catalog_service().list_content(current_user)
    return ContentListResponse(items=[ContentOut.from_content(item) for item in items])


@router.post("/content", response_model=ContentOut, status_code=status.HTTP_201_CREATED)
def create_content(payload: ContentCreateRequest, *, current_user=Depends(get_session_user)) -> ContentOut:
    with _translate_errors():
        item = get_catalog_service().create_content(current_user, payload.model_dump(exclude_none=True))
    return ContentOut.from_content(item)


@router.patch("/content/{content_id}", response_model=ContentOut)
def update_content(
    content_id: str,
    payload: ContentUpdateRequest,
    *,
    current_user=Depends(get_session_user),
) -> ContentOut:
    with _translate_errors():
        item = get_catalog_service().update_content(
            current_user,
            content_id,
            payload.model_dump(exclude_none=True),
        )
    return ContentOut.from_content(item)


@router.delete("/content/{content_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_content(content_id: str, *, current_user=Depends(get_session_user)) -> Response:
    with _translate_errors():
        get_catalog_service().delete_content(current_user, content_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
