"""API schemas for watch actions."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..entitlements.models import WatchResult


class WatchResponse(BaseModel):
    history_id: Optional[str] = Field(alias="historyId", default=None)
    channel_id: Optional[str] = Field(alias="channelId", default=None)
    content_id: Optional[str] = Field(alias="contentId", default=None)
    credits_spent: int = Field(alias="creditsSpent")
    balance: int
    watched_at: datetime = Field(alias="watchedAt")
    replayed: bool = False

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_result(cls, result: WatchResult) -> "WatchResponse":
        history = result.history
        return cls(
            history_id=history.id,
            channel_id=history.channel_id,
            content_id=history.content_id,
            credits_spent=history.credits_spent,
            balance=result.balance,
            watched_at=history.watched_at,
            replayed=result.replayed,
        )


__all__ = ["WatchResponse"]
