"""Idempotent persistence operations used when provisioning a new account."""
from __future__ import annotations

from decimal import Decimal
from typing import Any, ContextManager, Dict, Mapping, Optional, Protocol, Sequence

from ..catalog.models import Organization, SubscriptionPlan, User, UserSubscription
from ..catalog.repository import row_to_subscription, row_to_user
from ..db import PostgresRepository


class ProvisioningRepository(Protocol):
    """Create-if-absent operations keyed by natural keys.

    Every ``ensure_*`` call returns the stored row, whether it was created by
    this call or already existed, so retries never duplicate records.
    """

    def atomic(self) -> ContextManager[None]:
        ...

    def ensure_organization(self, organization: Organization) -> Organization:
        ...

    def ensure_plans(
        self,
        organization_id: str,
        plans: Sequence[SubscriptionPlan],
    ) -> Dict[str, SubscriptionPlan]:
        ...

    def ensure_user(self, user: User) -> User:
        ...

    def ensure_subscription(self, subscription: UserSubscription) -> UserSubscription:
        ...


def _row_to_organization(row: Mapping[str, Any]) -> Organization:
    return Organization(
        id=str(row["id"]),
        name=row["name"],
        slug=row["slug"],
        description=row.get("description") or "",
        logo_url=row.get("logo_url") or "",
        created_at=row["created_at"],
    )


def _row_to_plan(row: Mapping[str, Any]) -> SubscriptionPlan:
    return SubscriptionPlan(
        id=str(row["id"]),
        organization_id=str(row["organization_id"]),
        name=row["name"],
        max_credits=int(row["max_credits"]),
        price_monthly=Decimal(row["price_monthly"]),
    )


class PostgresProvisioningRepository(PostgresRepository):
    """Provisioning repository using ``INSERT ... ON CONFLICT DO NOTHING`` upserts."""

    def ensure_organization(self, organization: Organization) -> Organization:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO organizations (id, name, slug, description, logo_url)
                VALUES (%(id)s, %(name)s, %(slug)s, %(description)s, %(logo_url)s)
                ON CONFLICT (slug) DO NOTHING
                RETURNING *
                """,
                organization.model_dump(exclude={"created_at"}),
            )
            row = cursor.fetchone()
            if row is None:
                cursor.execute("SELECT * FROM organizations WHERE slug = %s LIMIT 1", (organization.slug,))
                row = cursor.fetchone()
            if row is None:
                raise RuntimeError(f"Organization {organization.slug!r} could not be resolved")
            return _row_to_organization(row)

    def ensure_plans(
        self,
        organization_id: str,
        plans: Sequence[SubscriptionPlan],
    ) -> Dict[str, SubscriptionPlan]:
        with self._cursor() as cursor:
            for plan in plans:
                cursor.execute(
                    """
                    INSERT INTO subscription_plans (id, organization_id, name, max_credits, price_monthly)
                    VALUES (%(id)s, %(organization_id)s, %(name)s, %(max_credits)s, %(price_monthly)s)
                    ON CONFLICT (organization_id, name) DO NOTHING
                    """,
                    plan.model_dump(),
                )
            cursor.execute(
                "SELECT * FROM subscription_plans WHERE organization_id = %s",
                (organization_id,),
            )
            return {row["name"]: _row_to_plan(row) for row in cursor.fetchall() or []}

    def ensure_user(self, user: User) -> User:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO users (id, email, full_name, organization_id, is_admin, avatar_url)
                VALUES (%(id)s, %(email)s, %(full_name)s, %(organization_id)s, %(is_admin)s, %(avatar_url)s)
                ON CONFLICT (id) DO NOTHING
                RETURNING *
                """,
                user.model_dump(exclude={"created_at", "updated_at"}),
            )
            row = cursor.fetchone()
            if row is None:
                cursor.execute("SELECT * FROM users WHERE id = %s LIMIT 1", (user.id,))
                row = cursor.fetchone()
            if row is None:
                raise RuntimeError(f"User {user.id} could not be resolved")
            return row_to_user(row)

    def ensure_subscription(self, subscription: UserSubscription) -> UserSubscription:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO user_subscriptions (
                    id, user_id, plan_id, organization_id, status,
                    current_credits, monthly_credits_limit, monthly_credits_used
                )
                VALUES (%(id)s, %(user_id)s, %(plan_id)s, %(organization_id)s, %(status)s,
                        %(current_credits)s, %(monthly_credits_limit)s, %(monthly_credits_used)s)
                ON CONFLICT (user_id) WHERE status = 'active' DO NOTHING
                RETURNING *
                """,
                subscription.model_dump(mode="json", exclude={"created_at", "updated_at"}),
            )
            row = cursor.fetchone()
            if row is None:
                row = self._active_subscription_row(cursor, subscription.user_id)
            if row is None:
                raise RuntimeError(f"Subscription for user {subscription.user_id} could not be resolved")
            return row_to_subscription(row)

    @staticmethod
    def _active_subscription_row(cursor, user_id: str) -> Optional[Mapping[str, Any]]:
        cursor.execute(
            "SELECT * FROM user_subscriptions WHERE user_id = %s AND status = 'active' LIMIT 1",
            (user_id,),
        )
        return cursor.fetchone()


__all__ = ["PostgresProvisioningRepository", "ProvisioningRepository"]
