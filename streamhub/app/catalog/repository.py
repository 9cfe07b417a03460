"""Persistence layer for catalog entries and user profiles."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..db import PostgresRepository, build_update
from .models import Channel, ContentItem, ContentType, User, UserSubscription

CHANNEL_COLUMNS = ("name", "stream_url", "logo_url", "category", "credits_cost", "is_active", "display_order")
CONTENT_COLUMNS = ("title", "type", "description", "poster_url", "category", "credits_cost", "is_active")
USER_COLUMNS = ("email", "full_name", "organization_id", "is_admin", "avatar_url")


class CatalogRepository(Protocol):
    """Data access for channels, content and user profiles."""

    def list_channels(self, *, active_only: bool = False) -> Sequence[Channel]:
        ...

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        ...

    def insert_channel(self, channel: Channel) -> Channel:
        ...

    def update_channel(self, channel_id: str, changes: Mapping[str, Any]) -> Optional[Channel]:
        ...

    def delete_channel(self, channel_id: str) -> bool:
        ...

    def list_content(
        self,
        *,
        active_only: bool = False,
        content_type: Optional[ContentType] = None,
    ) -> Sequence[ContentItem]:
        ...

    def get_content(self, content_id: str) -> Optional[ContentItem]:
        ...

    def insert_content(self, content: ContentItem) -> ContentItem:
        ...

    def update_content(self, content_id: str, changes: Mapping[str, Any]) -> Optional[ContentItem]:
        ...

    def delete_content(self, content_id: str) -> bool:
        ...

    def list_users(self) -> Sequence[User]:
        ...

    def get_user(self, user_id: str) -> Optional[User]:
        ...

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        ...

    def delete_user(self, user_id: str) -> bool:
        ...

    def get_active_subscription(self, user_id: str) -> Optional[UserSubscription]:
        ...


def _row_to_channel(row: Mapping[str, Any]) -> Channel:
    return Channel(
        id=str(row["id"]),
        organization_id=str(row["organization_id"]),
        name=row["name"],
        stream_url=row.get("stream_url") or "",
        logo_url=row.get("logo_url") or "",
        category=row.get("category") or "",
        credits_cost=int(row.get("credits_cost") or 0),
        is_active=bool(row.get("is_active", True)),
        display_order=int(row.get("display_order") or 0),
        created_at=row["created_at"],
    )


def _row_to_content(row: Mapping[str, Any]) -> ContentItem:
    return ContentItem(
        id=str(row["id"]),
        organization_id=str(row["organization_id"]),
        title=row["title"],
        type=ContentType(row["type"]),
        description=row.get("description") or "",
        poster_url=row.get("poster_url") or "",
        category=row.get("category") or "",
        credits_cost=int(row.get("credits_cost") or 0),
        is_active=bool(row.get("is_active", True)),
        created_at=row["created_at"],
    )


def row_to_user(row: Mapping[str, Any]) -> User:
    organization_id = row.get("organization_id")
    return User(
        id=str(row["id"]),
        email=row["email"],
        full_name=row.get("full_name") or "",
        organization_id=str(organization_id) if organization_id else None,
        is_admin=bool(row.get("is_admin")),
        avatar_url=row.get("avatar_url"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_subscription(row: Mapping[str, Any]) -> UserSubscription:
    return UserSubscription(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        plan_id=str(row["plan_id"]),
        organization_id=str(row["organization_id"]),
        status=row["status"],
        current_credits=int(row["current_credits"]),
        monthly_credits_limit=int(row["monthly_credits_limit"]),
        monthly_credits_used=int(row.get("monthly_credits_used") or 0),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _enum_values(changes: Mapping[str, Any]) -> dict:
    return {key: getattr(value, "value", value) for key, value in changes.items()}


class PostgresCatalogRepository(PostgresRepository):
    """Concrete repository reading and writing catalog tables in PostgreSQL."""

    def list_channels(self, *, active_only: bool = False) -> Sequence[Channel]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT *
                FROM channels
                WHERE (%s = FALSE OR is_active)
                ORDER BY display_order ASC, created_at ASC
                """,
                (active_only,),
            )
            return [_row_to_channel(row) for row in cursor.fetchall() or []]

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM channels WHERE id = %s LIMIT 1", (channel_id,))
            row = cursor.fetchone()
            return _row_to_channel(row) if row else None

    def insert_channel(self, channel: Channel) -> Channel:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO channels (
                    id, organization_id, name, stream_url, logo_url, category,
                    credits_cost, is_active, display_order
                )
                VALUES (%(id)s, %(organization_id)s, %(name)s, %(stream_url)s, %(logo_url)s,
                        %(category)s, %(credits_cost)s, %(is_active)s, %(display_order)s)
                RETURNING *
                """,
                channel.model_dump(exclude={"created_at"}),
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist channel")
            return _row_to_channel(row)

    def update_channel(self, channel_id: str, changes: Mapping[str, Any]) -> Optional[Channel]:
        statement, params = build_update("channels", _enum_values(changes), channel_id, allowed=CHANNEL_COLUMNS)
        with self._cursor() as cursor:
            cursor.execute(statement, params)
            row = cursor.fetchone()
            return _row_to_channel(row) if row else None

    def delete_channel(self, channel_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM channels WHERE id = %s", (channel_id,))
            return cursor.rowcount > 0

    def list_content(
        self,
        *,
        active_only: bool = False,
        content_type: Optional[ContentType] = None,
    ) -> Sequence[ContentItem]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT *
                FROM content
                WHERE (%(active_only)s = FALSE OR is_active)
                  AND (%(content_type)s::text IS NULL OR type = %(content_type)s)
                ORDER BY created_at DESC
                """,
                {
                    "active_only": active_only,
                    "content_type": content_type.value if content_type else None,
                },
            )
            return [_row_to_content(row) for row in cursor.fetchall() or []]

    def get_content(self, content_id: str) -> Optional[ContentItem]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM content WHERE id = %s LIMIT 1", (content_id,))
            row = cursor.fetchone()
            return _row_to_content(row) if row else None

    def insert_content(self, content: ContentItem) -> ContentItem:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO content (
                    id, organization_id, title, type, description, poster_url,
                    category, credits_cost, is_active
                )
                VALUES (%(id)s, %(organization_id)s, %(title)s, %(type)s, %(description)s,
                        %(poster_url)s, %(category)s, %(credits_cost)s, %(is_active)s)
                RETURNING *
                """,
                content.model_dump(mode="json", exclude={"created_at"}),
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist content")
            return _row_to_content(row)

    def update_content(self, content_id: str, changes: Mapping[str, Any]) -> Optional[ContentItem]:
        statement, params = build_update("content", _enum_values(changes), content_id, allowed=CONTENT_COLUMNS)
        with self._cursor() as cursor:
            cursor.execute(statement, params)
            row = cursor.fetchone()
            return _row_to_content(row) if row else None

    def delete_content(self, content_id: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM content WHERE id = %s", (content_id,))
            return cursor.rowcount > 0

    def list_users(self) -> Sequence[User]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM users ORDER BY created_at ASC")
            return [row_to_user(row) for row in cursor.fetchall() or []]

    def get_user(self, user_id: str) -> Optional[User]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM users WHERE id = %s LIMIT 1", (user_id,))
            row = cursor.fetchone()
            return row_to_user(row) if row else None

    def update_user(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        statement, params = build_update(
            "users", changes, user_id, allowed=USER_COLUMNS, touch_updated_at=True
        )
        with self._cursor() as cursor:
            cursor.execute(statement, params)
            row = cursor.fetchone()
            return row_to_user(row) if row else None

    def delete_user(self, user_id: str) -> bool:
        with self._cursor() as cursor:
            # users, subscriptions and tasks cascade from the identity row.
            cursor.execute("DELETE FROM auth_identities WHERE id = %s", (user_id,))
            return cursor.rowcount > 0

    def get_active_subscription(self, user_id: str) -> Optional[UserSubscription]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT *
                FROM user_subscriptions
                WHERE user_id = %s AND status = 'active'
                LIMIT 1
                """,
                (user_id,),
            )
            row = cursor.fetchone()
            return row_to_subscription(row) if row else None


__all__ = ["CatalogRepository", "PostgresCatalogRepository", "row_to_subscription", "row_to_user"]
