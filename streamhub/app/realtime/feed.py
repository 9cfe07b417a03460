"""In-process change feed delivering row-level change events to subscribers."""
from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("realtime")


class ChangeAction(str, Enum):
    """Row-level operations reported by the store."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """A single row change on a catalog table."""

    table: str
    action: ChangeAction
    record: Dict[str, Any] = Field(default_factory=dict)
    old_record: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    def matches(self, filters: Mapping[str, Any]) -> bool:
        """Return whether the new or old row satisfies every equality filter."""

        if not filters:
            return True
        for row in (self.record, self.old_record):
            if row and all(str(row.get(key)) == str(value) for key, value in filters.items()):
                return True
        return False


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by :meth:`ChangeFeed.subscribe`; closing it unsubscribes."""

    def __init__(self, feed: "ChangeFeed", subscription_id: int, table: str) -> None:
        self._feed = feed
        self.id = subscription_id
        self.table = table
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self.id)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class _Listener:
    __slots__ = ("table", "filters", "callback")

    def __init__(self, table: str, filters: Dict[str, Any], callback: ChangeCallback) -> None:
        self.table = table
        self.filters = filters
        self.callback = callback


class ChangeFeed:
    """Thread-safe fan-out of change events scoped by table and filter."""

    def __init__(self) -> None:
        self._listeners: Dict[int, _Listener] = {}
        self._ids = itertools.count(1)
        self._lock = Lock()

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        *,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Subscription:
        with self._lock:
            subscription_id = next(self._ids)
            self._listeners[subscription_id] = _Listener(table, dict(filters or {}), callback)
        logger.debug("Subscribed %s to %s filters=%s", subscription_id, table, filters)
        return Subscription(self, subscription_id, table)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver ``event`` to matching subscribers, returning the delivery count."""

        with self._lock:
            targets: List[_Listener] = [
                listener
                for listener in self._listeners.values()
                if listener.table == event.table and event.matches(listener.filters)
            ]

        delivered = 0
        for listener in targets:
            try:
                listener.callback(event)
                delivered += 1
            except Exception:
                logger.exception("Change subscriber failed for %s %s", event.table, event.action.value)
        return delivered

    def subscriber_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            if table is None:
                return len(self._listeners)
            return sum(1 for listener in self._listeners.values() if listener.table == table)

    def _remove(self, subscription_id: int) -> None:
        with self._lock:
            self._listeners.pop(subscription_id, None)
        logger.debug("Unsubscribed %s", subscription_id)
