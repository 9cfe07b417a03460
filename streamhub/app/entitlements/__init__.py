"""Credit-metered watch entitlements."""

from .models import WatchResult
from .repository import DuplicateWatchRequest, PostgresWatchLedger, WatchLedger
from .service import WatchService

__all__ = [
    "DuplicateWatchRequest",
    "PostgresWatchLedger",
    "WatchLedger",
    "WatchResult",
    "WatchService",
]
