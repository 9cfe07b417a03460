"""API schemas for authentication endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..catalog.models import PlanKey, User
from .catalog import SubscriptionOut


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str = Field(alias="fullName", default="")
    plan_key: PlanKey = Field(alias="planKey", default=PlanKey.FREE)

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str = Field(alias="fullName", default="")
    organization_id: Optional[str] = Field(alias="organizationId", default=None)
    is_admin: bool = Field(alias="isAdmin", default=False)
    avatar_url: Optional[str] = Field(alias="avatarUrl", default=None)
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            organization_id=user.organization_id,
            is_admin=user.is_admin,
            avatar_url=user.avatar_url,
            created_at=user.created_at,
        )


class RegisterResponse(BaseModel):
    user: UserOut
    subscription: SubscriptionOut
    plan_name: str = Field(alias="planName")

    model_config = ConfigDict(populate_by_name=True)


__all__ = ["LoginRequest", "RegisterRequest", "RegisterResponse", "UserOut"]
