"""Service layer for catalog browsing and the administrative back-office."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence
from uuid import uuid4

from .models import Channel, ContentItem, ContentType, User
from .repository import CHANNEL_COLUMNS, CONTENT_COLUMNS, USER_COLUMNS, CatalogRepository

logger = logging.getLogger("catalog")


class BrowseTab(str, Enum):
    """Storefront tabs; the movie and series tabs narrow content by type."""

    CHANNELS = "channels"
    MOVIES = "movies"
    SERIES = "series"


_TAB_CONTENT_TYPES = {
    BrowseTab.MOVIES: ContentType.MOVIE,
    BrowseTab.SERIES: ContentType.SERIES,
}


def _matches(text: str, search: Optional[str]) -> bool:
    if not search or not search.strip():
        return True
    return search.strip().lower() in text.lower()


def _pick(changes: Mapping[str, Any], allowed: Sequence[str]) -> Dict[str, Any]:
    return {key: value for key, value in changes.items() if key in allowed}


@dataclass
class CatalogService:
    """Coordinates catalog reads for subscribers and CRUD for administrators."""

    repository: CatalogRepository

    def browse_channels(self, search: Optional[str] = None) -> Sequence[Channel]:
        channels = self.repository.list_channels(active_only=True)
        return [channel for channel in channels if _matches(channel.name, search)]

    def browse_content(
        self,
        tab: Optional[BrowseTab] = None,
        search: Optional[str] = None,
    ) -> Sequence[ContentItem]:
        content_type = _TAB_CONTENT_TYPES.get(tab) if tab else None
        items = self.repository.list_content(active_only=True, content_type=content_type)
        return [item for item in items if _matches(item.title, search)]

    def list_users(self, actor: User) -> Sequence[User]:
        _require_admin(actor)
        return self.repository.list_users()

    def update_user(self, actor: User, user_id: str, changes: Mapping[str, Any]) -> User:
        _require_admin(actor)
        updated = self.repository.update_user(user_id, _pick(changes, USER_COLUMNS))
        if updated is None:
            raise LookupError("User not found")
        logger.info("Admin %s updated user %s fields=%s", actor.id, user_id, sorted(changes))
        return updated

    def delete_user(self, actor: User, user_id: str) -> None:
        _require_admin(actor)
        if actor.id == user_id:
            raise ValueError("Administrators cannot delete their own account")
        if not self.repository.delete_user(user_id):
            raise LookupError("User not found")
        logger.info("Admin %s deleted user %s", actor.id, user_id)

    def list_channels(self, actor: User) -> Sequence[Channel]:
        _require_admin(actor)
        return self.repository.list_channels()

    def create_channel(self, actor: User, fields: Mapping[str, Any]) -> Channel:
        _require_admin(actor)
        data = _pick(fields, CHANNEL_COLUMNS)
        data.setdefault("credits_cost", 0)
        channel = Channel(
            id=str(uuid4()),
            organization_id=fields.get("organization_id") or _require_organization(actor),
            **data,
        )
        stored = self.repository.insert_channel(channel)
        logger.info("Admin %s created channel %s", actor.id, stored.id)
        return stored

    def update_channel(self, actor: User, channel_id: str, changes: Mapping[str, Any]) -> Channel:
        _require_admin(actor)
        updated = self.repository.update_channel(channel_id, _pick(changes, CHANNEL_COLUMNS))
        if updated is None:
            raise LookupError("Channel not found")
        return updated

    def delete_channel(self, actor: User, channel_id: str) -> None:
        _require_admin(actor)
        if not self.repository.delete_channel(channel_id):
            raise LookupError("Channel not found")
        logger.info("Admin %s deleted channel %s", actor.id, channel_id)

    def list_content(self, actor: User) -> Sequence[ContentItem]:
        _require_admin(actor)
        return self.repository.list_content()

    def create_content(self, actor: User, fields: Mapping[str, Any]) -> ContentItem:
        _require_admin(actor)
        data = _pick(fields, CONTENT_COLUMNS)
        data.setdefault("credits_cost", 0)
        content = ContentItem(
            id=str(uuid4()),
            organization_id=fields.get("organization_id") or _require_organization(actor),
            **data,
        )
        stored = self.repository.insert_content(content)
        logger.info("Admin %s created content %s", actor.id, stored.id)
        return stored

    def update_content(self, actor: User, content_id: str, changes: Mapping[str, Any]) -> ContentItem:
        _require_admin(actor)
        updated = self.repository.update_content(content_id, _pick(changes, CONTENT_COLUMNS))
        if updated is None:
            raise LookupError("Content not found")
        return updated

    def delete_content(self, actor: User, content_id: str) -> None:
        _require_admin(actor)
        if not self.repository.delete_content(content_id):
            raise LookupError("Content not found")
        logger.info("Admin %s deleted content %s", actor.id, content_id)


def _require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise PermissionError("Administrator privileges are required")


def _require_organization(actor: User) -> str:
    if not actor.organization_id:
        raise ValueError("organization_id is required")
    return actor.organization_id


__all__ = ["BrowseTab", "CatalogService"]
