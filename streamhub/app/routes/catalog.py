"""API routes for browsing live channels and on-demand content."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..catalog.service import BrowseTab
from ..schemas.catalog import ChannelListResponse, ChannelOut, ContentListResponse, ContentOut
from ..services.catalog import get_catalog_service
from .dependencies import get_session_user

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/channels", response_model=ChannelListResponse)
def list_channels(
    *,
    search: Optional[str] = Query(default=None),
    current_user=Depends(get_session_user),
) -> ChannelListResponse:
    channels = get_catalog_service().browse_channels(search)
    return ChannelListResponse(items=[ChannelOut.from_channel(channel) for channel in channels])


@router.get("/content", response_model=ContentListResponse)
def list_content(
    *,
    tab: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    current_user=Depends(get_session_user),
) -> ContentListResponse:
    try:
        browse_tab = BrowseTab(tab) if tab else None
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown tab: {tab}") from exc
    items = get_catalog_service().browse_content(browse_tab, search)
    return ContentListResponse(items=[ContentOut.from_content(item) for item in items])


__all__ = ["router"]
