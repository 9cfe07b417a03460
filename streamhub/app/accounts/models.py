"""Typed representations of account identities and sessions."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """An authenticated account as issued by the account directory.

    ``pending_plan`` holds the plan chosen at sign-up until provisioning for
    the identity has completed.
    """

    id: str
    email: str
    full_name: str = ""
    pending_plan: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


class Session(BaseModel):
    """A signed session token bound to an identity."""

    identity: Identity
    token: str
    expires_at: datetime

    model_config = ConfigDict(frozen=True)


class SessionEventType(str, Enum):
    """Notifications fired by the account directory."""

    SIGNED_UP = "signed_up"
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


class SessionEvent(BaseModel):
    """Session-change notification delivered to directory listeners."""

    event_type: SessionEventType
    identity_id: str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


__all__ = ["Identity", "Session", "SessionEvent", "SessionEventType"]
