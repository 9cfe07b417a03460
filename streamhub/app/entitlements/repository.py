"""Persistence for credit balances and watch history."""
from __future__ import annotations

from typing import Any, ContextManager, Mapping, Optional, Protocol

import psycopg2.errors

from ..catalog.models import UserSubscription, WatchHistory
from ..catalog.repository import row_to_subscription
from ..db import PostgresRepository


class DuplicateWatchRequest(Exception):
    """A history row with the same ``(user_id, request_id)`` already exists."""

    def __init__(self, user_id: str, request_id: str) -> None:
        super().__init__(f"watch request {request_id!r} already recorded for user {user_id}")
        self.user_id = user_id
        self.request_id = request_id


class WatchLedger(Protocol):
    """Store operations the watch service relies on.

    ``debit_credits`` must be a single conditional update: it applies only
    when the subscription is active and holds at least ``amount`` credits,
    and returns ``None`` otherwise.

    Calls made inside ``atomic()`` commit together when ``transactional`` is
    true. Stores without transactions run the block as-is and the service
    compensates a failed history append with ``refund_credits``.
    """

    transactional: bool

    def atomic(self) -> ContextManager[None]:
        ...

    def get_active_subscription(self, user_id: str) -> Optional[UserSubscription]:
        ...

    def get_subscription(self, subscription_id: str) -> Optional[UserSubscription]:
        ...

    def debit_credits(
        self,
        subscription_id: str,
        amount: int,
        *,
        count_monthly_usage: bool,
    ) -> Optional[UserSubscription]:
        ...

    def refund_credits(
        self,
        subscription_id: str,
        amount: int,
        *,
        count_monthly_usage: bool,
    ) -> Optional[UserSubscription]:
        ...

    def append_watch_history(self, entry: WatchHistory) -> WatchHistory:
        ...

    def find_watch_by_request(self, user_id: str, request_id: str) -> Optional[WatchHistory]:
        ...


def _row_to_watch(row: Mapping[str, Any]) -> WatchHistory:
    return WatchHistory(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        channel_id=str(row["channel_id"]) if row.get("channel_id") else None,
        content_id=str(row["content_id"]) if row.get("content_id") else None,
        credits_spent=int(row["credits_spent"]),
        request_id=row.get("request_id"),
        watched_at=row["watched_at"],
    )


class PostgresWatchLedger(PostgresRepository):
    """Watch ledger backed by ``user_subscriptions`` and ``watch_history``."""

    transactional = True

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

    def get_subscription(self, subscription_id: str) -> Optional[UserSubscription]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM user_subscriptions WHERE id = %s LIMIT 1", (subscription_id,))
            row = cursor.fetchone()
            return row_to_subscription(row) if row else None

    def debit_credits(
        self,
        subscription_id: str,
        amount: int,
        *,
        count_monthly_usage: bool,
    ) -> Optional[UserSubscription]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE user_subscriptions
                SET current_credits = current_credits - %(amount)s,
                    monthly_credits_used = monthly_credits_used
                        + CASE WHEN %(count_monthly)s THEN %(amount)s ELSE 0 END,
                    updated_at = NOW()
                WHERE id = %(subscription_id)s
                  AND status = 'active'
                  AND current_credits >= %(amount)s
                RETURNING *
                """,
                {
                    "amount": amount,
                    "count_monthly": count_monthly_usage,
                    "subscription_id": subscription_id,
                },
            )
            row = cursor.fetchone()
            return row_to_subscription(row) if row else None

    def refund_credits(
        self,
        subscription_id: str,
        amount: int,
        *,
        count_monthly_usage: bool,
    ) -> Optional[UserSubscription]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE user_subscriptions
                SET current_credits = LEAST(monthly_credits_limit, current_credits + %(amount)s),
                    monthly_credits_used = GREATEST(
                        0,
                        monthly_credits_used - CASE WHEN %(count_monthly)s THEN %(amount)s ELSE 0 END
                    ),
                    updated_at = NOW()
                WHERE id = %(subscription_id)s
                RETURNING *
                """,
                {
                    "amount": amount,
                    "count_monthly": count_monthly_usage,
                    "subscription_id": subscription_id,
                },
            )
            row = cursor.fetchone()
            return row_to_subscription(row) if row else None

    def append_watch_history(self, entry: WatchHistory) -> WatchHistory:
        try:
            with self._cursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO watch_history (
                        user_id, channel_id, content_id, credits_spent, request_id, watched_at
                    )
                    VALUES (%(user_id)s, %(channel_id)s, %(content_id)s, %(credits_spent)s,
                            %(request_id)s, %(watched_at)s)
                    RETURNING *
                    """,
                    entry.model_dump(exclude={"id"}),
                )
                row = cursor.fetchone()
        except psycopg2.errors.UniqueViolation as exc:
            if entry.request_id:
                raise DuplicateWatchRequest(entry.user_id, entry.request_id) from exc
            raise
        if not row:
            raise RuntimeError("Failed to persist watch history")
        return _row_to_watch(row)

    def find_watch_by_request(self, user_id: str, request_id: str) -> Optional[WatchHistory]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT *
                FROM watch_history
                WHERE user_id = %s AND request_id = %s
                LIMIT 1
                """,
                (user_id, request_id),
            )
            row = cursor.fetchone()
            return _row_to_watch(row) if row else None


__all__ = ["DuplicateWatchRequest", "PostgresWatchLedger", "WatchLedger"]
