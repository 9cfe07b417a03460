"""Static catalog of the subscription tiers provisioned per organization."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Tuple

from .models import PlanKey


@dataclass(frozen=True)
class PlanDefinition:
    """Describes a subscription tier and its monthly credit allotment."""

    key: PlanKey
    name: str
    max_credits: int
    price_monthly: Decimal


PLAN_CATALOG: Dict[PlanKey, PlanDefinition] = {
    PlanKey.FREE: PlanDefinition(
        key=PlanKey.FREE,
        name="Free",
        max_credits=10,
        price_monthly=Decimal("0.00"),
    ),
    PlanKey.BASIC: PlanDefinition(
        key=PlanKey.BASIC,
        name="Basic",
        max_credits=50,
        price_monthly=Decimal("9.90"),
    ),
    PlanKey.PREMIUM: PlanDefinition(
        key=PlanKey.PREMIUM,
        name="Premium",
        max_credits=200,
        price_monthly=Decimal("29.90"),
    ),
}


def get_plan_definition(plan_key: PlanKey) -> PlanDefinition:
    """Return a plan definition, raising if unsupported."""

    try:
        return PLAN_CATALOG[plan_key]
    except KeyError as exc:
        raise KeyError(f"Unknown plan key: {plan_key}") from exc


def all_plan_definitions() -> Tuple[PlanDefinition, ...]:
    return tuple(PLAN_CATALOG.values())
