"""Result type returned after provisioning a new account."""
from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict

from ..catalog.models import Organization, SubscriptionPlan, User, UserSubscription


class ProvisioningResult(BaseModel):
    """Stored records a freshly provisioned account is bound to."""

    organization: Organization
    plans: Dict[str, SubscriptionPlan]
    user: User
    subscription: UserSubscription

    model_config = ConfigDict(frozen=True)

    @property
    def plan(self) -> SubscriptionPlan:
        for plan in self.plans.values():
            if plan.id == self.subscription.plan_id:
                return plan
        raise LookupError(f"Plan {self.subscription.plan_id} not provisioned")


__all__ = ["ProvisioningResult"]
