"""Catalog domain models, plan tiers and services."""

from .models import (
    Channel,
    ContentItem,
    ContentType,
    Organization,
    PlanKey,
    SubscriptionPlan,
    SubscriptionStatus,
    Task,
    User,
    UserSubscription,
    WatchableItem,
    WatchHistory,
    WatchTargetKind,
)
from .plans import PLAN_CATALOG, PlanDefinition, all_plan_definitions, get_plan_definition
from .repository import CatalogRepository, PostgresCatalogRepository
from .service import BrowseTab, CatalogService

__all__ = [
    "PLAN_CATALOG",
    "BrowseTab",
    "CatalogRepository",
    "CatalogService",
    "Channel",
    "ContentItem",
    "ContentType",
    "Organization",
    "PlanDefinition",
    "PlanKey",
    "PostgresCatalogRepository",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "Task",
    "User",
    "UserSubscription",
    "WatchHistory",
    "WatchTargetKind",
    "WatchableItem",
    "all_plan_definitions",
    "get_plan_definition",
]
