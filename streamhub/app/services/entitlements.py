"""Application wiring for the watch entitlement service."""
from __future__ import annotations

from functools import lru_cache

from ..entitlements import PostgresWatchLedger, WatchService
from .catalog import get_catalog_repository


@lru_cache(maxsize=1)
def get_watch_service() -> WatchService:
    return WatchService(ledger=PostgresWatchLedger(), catalog=get_catalog_repository())


__all__ = ["get_watch_service"]
