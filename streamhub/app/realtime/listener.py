"""Bridge PostgreSQL LISTEN/NOTIFY payloads onto the in-process change feed."""
from __future__ import annotations

import json
import logging
import select
from threading import Event, Lock, Thread
from typing import Any, Callable, Optional

import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT

from .feed import ChangeAction, ChangeEvent, ChangeFeed

logger = logging.getLogger("realtime")


def decode_notification(payload: str) -> Optional[ChangeEvent]:
    """Decode the JSON payload emitted by the ``streamhub_notify_change`` trigger."""

    try:
        data = json.loads(payload)
        return ChangeEvent(
            table=str(data["table"]),
            action=ChangeAction(str(data["action"]).upper()),
            record=data.get("record") or {},
            old_record=data.get("old_record") or {},
        )
    except (ValueError, KeyError, TypeError):
        logger.warning("Ignoring malformed change notification: %.200s", payload)
        return None


class PgNotifyListener(Thread):
    """Background thread LISTENing on a channel and publishing change events."""

    def __init__(
        self,
        feed: ChangeFeed,
        connect: Callable[[], Any],
        *,
        channel: str,
        poll_interval: float = 1.0,
        reconnect_delay: float = 5.0,
    ) -> None:
        super().__init__(daemon=True, name=f"pg-listen-{channel}")
        self._feed = feed
        self._connect = connect
        self._channel = channel
        self._poll_interval = max(0.1, poll_interval)
        self._reconnect_delay = max(0.5, reconnect_delay)
        self._stop_event = Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:  # pragma: no cover - thread execution
        while not self._stop_event.is_set():
            try:
                self._listen()
            except psycopg2.Error:
                logger.exception("Change listener lost its connection on %s", self._channel)
                if self._stop_event.wait(self._reconnect_delay):
                    break

    def _listen(self) -> None:  # pragma: no cover - requires a live database
        conn = self._connect()
        try:
            conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
            with conn.cursor() as cursor:
                cursor.execute(sql.SQL("LISTEN {}").format(sql.Identifier(self._channel)))
            logger.info("Listening for change notifications on %s", self._channel)
            while not self._stop_event.is_set():
                readable, _, _ = select.select([conn], [], [], self._poll_interval)
                if not readable:
                    continue
                conn.poll()
                while conn.notifies:
                    notification = conn.notifies.pop(0)
                    event = decode_notification(notification.payload)
                    if event is not None:
                        self._feed.publish(event)
        finally:
            conn.close()


_listener_lock = Lock()
_listener: Optional[PgNotifyListener] = None


def start_change_listener(feed: ChangeFeed, connect: Callable[[], Any], *, channel: str) -> None:
    global _listener
    with _listener_lock:
        if _listener is not None:
            return
        _listener = PgNotifyListener(feed, connect, channel=channel)
        _listener.start()
        logger.info("Change listener started on %s", channel)


def stop_change_listener() -> None:
    global _listener
    with _listener_lock:
        if _listener is None:
            return
        _listener.stop()
        _listener.join(timeout=2.0)
        _listener = None
        logger.info("Change listener stopped")
