"""Domain models for the streaming catalog and its subscribers."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlanKey(str, Enum):
    """Canonical identifiers for the subscription tiers offered at sign-up."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class SubscriptionStatus(str, Enum):
    """Lifecycle state for a user subscription."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class ContentType(str, Enum):
    """Kinds of on-demand content."""

    MOVIE = "movie"
    SERIES = "series"


class WatchTargetKind(str, Enum):
    """Catalog collections a watch action can target."""

    CHANNEL = "channel"
    CONTENT = "content"


class Organization(BaseModel):
    """Tenant owning plans, channels and content."""

    id: str
    name: str
    slug: str
    description: str = ""
    logo_url: str = ""
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class User(BaseModel):
    """Profile row mirroring an account directory identity."""

    id: str
    email: str
    full_name: str = ""
    organization_id: Optional[str] = None
    is_admin: bool = False
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class SubscriptionPlan(BaseModel):
    """A credit tier stored for an organization."""

    id: str
    organization_id: str
    name: str
    max_credits: int = Field(ge=0)
    price_monthly: Decimal = Field(default=Decimal("0"), ge=0)

    model_config = ConfigDict(frozen=True)


class UserSubscription(BaseModel):
    """Credit balance a user draws from when watching."""

    id: str
    user_id: str
    plan_id: str
    organization_id: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    current_credits: int = Field(ge=0)
    monthly_credits_limit: int = Field(ge=0)
    monthly_credits_used: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    def can_afford(self, cost: int) -> bool:
        return self.current_credits >= cost


class Channel(BaseModel):
    """Live channel entry."""

    id: str
    organization_id: str
    name: str
    stream_url: str = ""
    logo_url: str = ""
    category: str = ""
    credits_cost: int = Field(default=0, ge=0)
    is_active: bool = True
    display_order: int = 0
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class ContentItem(BaseModel):
    """Movie or series entry."""

    id: str
    organization_id: str
    title: str
    type: ContentType = ContentType.MOVIE
    description: str = ""
    poster_url: str = ""
    category: str = ""
    credits_cost: int = Field(default=0, ge=0)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class WatchableItem(BaseModel):
    """Normalized view of the channel or content item being watched."""

    kind: WatchTargetKind
    id: str
    credits_cost: int = Field(ge=0)
    name: str = ""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_channel(cls, channel: Channel) -> "WatchableItem":
        return cls(
            kind=WatchTargetKind.CHANNEL,
            id=channel.id,
            credits_cost=channel.credits_cost,
            name=channel.name,
        )

    @classmethod
    def from_content(cls, content: ContentItem) -> "WatchableItem":
        return cls(
            kind=WatchTargetKind.CONTENT,
            id=content.id,
            credits_cost=content.credits_cost,
            name=content.title,
        )


class WatchHistory(BaseModel):
    """Append-only record of a successful watch."""

    id: Optional[str] = None
    user_id: str
    channel_id: Optional[str] = None
    content_id: Optional[str] = None
    credits_spent: int = Field(ge=0)
    request_id: Optional[str] = None
    watched_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "WatchHistory":
        if (self.channel_id is None) == (self.content_id is None):
            raise ValueError("watch history must reference exactly one of channel_id or content_id")
        return self

    @classmethod
    def for_item(
        cls,
        user_id: str,
        item: WatchableItem,
        *,
        request_id: Optional[str] = None,
    ) -> "WatchHistory":
        return cls(
            user_id=user_id,
            channel_id=item.id if item.kind == WatchTargetKind.CHANNEL else None,
            content_id=item.id if item.kind == WatchTargetKind.CONTENT else None,
            credits_spent=item.credits_cost,
            request_id=request_id,
        )


class Task(BaseModel):
    """Personal to-do entry kept alongside the catalog."""

    id: str
    user_id: str
    title: str
    description: str = ""
    completed: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be empty")
        return stripped
