"""API routes for subscription balance and credit-metered watch actions."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..errors import NoActiveSubscription
from ..schemas.catalog import SubscriptionOut
from ..schemas.watch import WatchResponse
from ..services.entitlements import get_watch_service
from .dependencies import get_session_user

router = APIRouter(prefix="/api", tags=["watch"])


@router.get("/subscription", response_model=SubscriptionOut)
def read_subscription(*, current_user=Depends(get_session_user)) -> SubscriptionOut:
    subscription = get_watch_service().balance(current_user)
    if subscription is None:
        raise NoActiveSubscription(current_user.id)
    return SubscriptionOut.from_subscription(subscription)


@router.post("/watch/channels/{channel_id}", response_model=WatchResponse)
def watch_channel(
    channel_id: str,
    *,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    current_user=Depends(get_session_user),
) -> WatchResponse:
    try:
        result = get_watch_service().watch_channel(current_user, channel_id, request_id=idempotency_key)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return WatchResponse.from_result(result)


@router.post("/watch/content/{content_id}", response_model=WatchResponse)
def watch_content(
    content_id: str,
    *,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    current_user=Depends(get_session_user),
) -> WatchResponse:
    try:
        result = get_watch_service().watch_content(current_user, content_id, request_id=idempotency_key)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return WatchResponse.from_result(result)


__all__ = ["router"]
