"""Result types returned by the watch service."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..catalog.models import UserSubscription, WatchHistory


class WatchResult(BaseModel):
    """Outcome of a permitted watch: the history row and the debited subscription."""

    history: WatchHistory
    subscription: UserSubscription
    replayed: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def balance(self) -> int:
        return self.subscription.current_credits


__all__ = ["WatchResult"]
