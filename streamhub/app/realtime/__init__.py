"""Row-level change notification for live-refreshing clients."""

from .feed import ChangeAction, ChangeCallback, ChangeEvent, ChangeFeed, Subscription
from .listener import PgNotifyListener, decode_notification, start_change_listener, stop_change_listener

__all__ = [
    "ChangeAction",
    "ChangeCallback",
    "ChangeEvent",
    "ChangeFeed",
    "PgNotifyListener",
    "Subscription",
    "decode_notification",
    "start_change_listener",
    "stop_change_listener",
]
