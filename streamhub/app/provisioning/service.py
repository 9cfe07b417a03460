"""Bootstrap the organization, plan tiers, profile and subscription for a new account."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union
from uuid import uuid4

from ..accounts.models import Identity
from ..catalog.models import Organization, PlanKey, SubscriptionPlan, User, UserSubscription
from ..catalog.plans import PlanDefinition, all_plan_definitions, get_plan_definition
from ..errors import ProvisioningFailed
from .models import ProvisioningResult
from .repository import ProvisioningRepository

logger = logging.getLogger("provisioning")

DEFAULT_ORGANIZATION_DESCRIPTION = "Default organization"


def _resolve_plan(plan_key: Union[PlanKey, str]) -> PlanDefinition:
    try:
        key = PlanKey(plan_key)
        return get_plan_definition(key)
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown plan key: {plan_key}") from exc


@dataclass
class ProvisioningService:
    """Runs the keyed, create-if-absent steps that make an identity usable.

    Each step returns the stored row, so calling this twice for the same
    identity or organization slug converges on the same records.
    """

    repository: ProvisioningRepository
    default_organization_slug: str = "default"
    default_organization_name: str = "StreamHub Default"

    def provision_new_user(
        self,
        identity: Identity,
        organization_slug: Optional[str] = None,
        plan_key: Union[PlanKey, str] = PlanKey.FREE,
    ) -> ProvisioningResult:
        definition = _resolve_plan(plan_key)
        slug = (organization_slug or self.default_organization_slug).strip().lower()
        if not slug:
            raise ValueError("Organization slug must not be empty")

        try:
            with self.repository.atomic():
                organization = self.repository.ensure_organization(self._new_organization(slug))
                plans = self.repository.ensure_plans(
                    organization.id,
                    [
                        SubscriptionPlan(
                            id=str(uuid4()),
                            organization_id=organization.id,
                            name=tier.name,
                            max_credits=tier.max_credits,
                            price_monthly=tier.price_monthly,
                        )
                        for tier in all_plan_definitions()
                    ],
                )
                plan = plans.get(definition.name)
                if plan is None:
                    raise ProvisioningFailed(f"Plan {definition.name!r} is missing for organization {slug!r}")

                user = self.repository.ensure_user(
                    User(
                        id=identity.id,
                        email=identity.email,
                        full_name=identity.full_name,
                        organization_id=organization.id,
                    )
                )
                subscription = self.repository.ensure_subscription(
                    UserSubscription(
                        id=str(uuid4()),
                        user_id=user.id,
                        plan_id=plan.id,
                        organization_id=organization.id,
                        current_credits=plan.max_credits,
                        monthly_credits_limit=plan.max_credits,
                    )
                )
        except ProvisioningFailed:
            logger.error("Provisioning failed for identity %s (organization=%s)", identity.id, slug)
            raise
        except Exception as exc:
            logger.exception("Provisioning failed for identity %s (organization=%s)", identity.id, slug)
            raise ProvisioningFailed() from exc

        logger.info(
            "Provisioned user=%s organization=%s plan=%s credits=%s",
            user.id,
            organization.slug,
            plan.name,
            subscription.current_credits,
        )
        return ProvisioningResult(
            organization=organization,
            plans=plans,
            user=user,
            subscription=subscription,
        )

    def _new_organization(self, slug: str) -> Organization:
        if slug == self.default_organization_slug.strip().lower():
            return Organization(
                id=str(uuid4()),
                name=self.default_organization_name,
                slug=slug,
                description=DEFAULT_ORGANIZATION_DESCRIPTION,
            )
        name = " ".join(part.capitalize() for part in re.split(r"[-_\s]+", slug) if part)
        return Organization(id=str(uuid4()), name=name or slug, slug=slug)


__all__ = ["DEFAULT_ORGANIZATION_DESCRIPTION", "ProvisioningService"]
