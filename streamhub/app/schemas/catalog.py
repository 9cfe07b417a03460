"""API schemas for catalog browsing, subscriptions and admin management."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..catalog.models import Channel, ContentItem, ContentType, SubscriptionStatus, UserSubscription


class ChannelOut(BaseModel):
    id: str
    organization_id: str = Field(alias="organizationId")
    name: str
    stream_url: str = Field(alias="streamUrl", default="")
    logo_url: str = Field(alias="logoUrl", default="")
    category: str = ""
    credits_cost: int = Field(alias="creditsCost")
    is_active: bool = Field(alias="isActive")
    display_order: int = Field(alias="displayOrder", default=0)
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_channel(cls, channel: Channel) -> "ChannelOut":
        return cls(**channel.model_dump())


class ContentOut(BaseModel):
    id: str
    organization_id: str = Field(alias="organizationId")
    title: str
    type: ContentType
    description: str = ""
    poster_url: str = Field(alias="posterUrl", default="")
    category: str = ""
    credits_cost: int = Field(alias="creditsCost")
    is_active: bool = Field(alias="isActive")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_content(cls, content: ContentItem) -> "ContentOut":
        return cls(**content.model_dump())


class ChannelListResponse(BaseModel):
    items: List[ChannelOut]


class ContentListResponse(BaseModel):
    items: List[ContentOut]


class SubscriptionOut(BaseModel):
    id: str
    plan_id: str = Field(alias="planId")
    status: SubscriptionStatus
    current_credits: int = Field(alias="currentCredits")
    monthly_credits_limit: int = Field(alias="monthlyCreditsLimit")
    monthly_credits_used: int = Field(alias="monthlyCreditsUsed")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_subscription(cls, subscription: UserSubscription) -> "SubscriptionOut":
        return cls(
            id=subscription.id,
            plan_id=subscription.plan_id,
            status=subscription.status,
            current_credits=subscription.current_credits,
            monthly_credits_limit=subscription.monthly_credits_limit,
            monthly_credits_used=subscription.monthly_credits_used,
        )


class ChannelCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    organization_id: Optional[str] = Field(alias="organizationId", default=None)
    stream_url: str = Field(alias="streamUrl", default="")
    logo_url: str = Field(alias="logoUrl", default="")
    category: str = ""
    credits_cost: int = Field(alias="creditsCost", default=0, ge=0)
    is_active: bool = Field(alias="isActive", default=True)
    display_order: int = Field(alias="displayOrder", default=0)

    model_config = ConfigDict(populate_by_name=True)


class ChannelUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    stream_url: Optional[str] = Field(alias="streamUrl", default=None)
    logo_url: Optional[str] = Field(alias="logoUrl", default=None)
    category: Optional[str] = None
    credits_cost: Optional[int] = Field(alias="creditsCost", default=None, ge=0)
    is_active: Optional[bool] = Field(alias="isActive", default=None)
    display_order: Optional[int] = Field(alias="displayOrder", default=None)

    model_config = ConfigDict(populate_by_name=True)


class ContentCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    type: ContentType = ContentType.MOVIE
    organization_id: Optional[str] = Field(alias="organizationId", default=None)
    description: str = ""
    poster_url: str = Field(alias="posterUrl", default="")
    category: str = ""
    credits_cost: int = Field(alias="creditsCost", default=0, ge=0)
    is_active: bool = Field(alias="isActive", default=True)

    model_config = ConfigDict(populate_by_name=True)


class ContentUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    type: Optional[ContentType] = None
    description: Optional[str] = None
    poster_url: Optional[str] = Field(alias="posterUrl", default=None)
    category: Optional[str] = None
    credits_cost: Optional[int] = Field(alias="creditsCost", default=None, ge=0)
    is_active: Optional[bool] = Field(alias="isActive", default=None)

    model_config = ConfigDict(populate_by_name=True)


class UserUpdateRequest(BaseModel):
    full_name: Optional[str] = Field(alias="fullName", default=None)
    is_admin: Optional[bool] = Field(alias="isAdmin", default=None)
    avatar_url: Optional[str] = Field(alias="avatarUrl", default=None)
    organization_id: Optional[str] = Field(alias="organizationId", default=None)

    model_config = ConfigDict(populate_by_name=True)


__all__ = [
    "ChannelCreateRequest",
    "ChannelListResponse",
    "ChannelOut",
    "ChannelUpdateRequest",
    "ContentCreateRequest",
    "ContentListResponse",
    "ContentOut",
    "ContentUpdateRequest",
    "SubscriptionOut",
    "UserUpdateRequest",
]
