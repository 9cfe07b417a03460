"""Identities, sessions and the sign-up flow."""

from .directory import AccountDirectory, PostgresAccountDirectory, SessionEventBus
from .models import Identity, Session, SessionEvent, SessionEventType
from .service import AccountService, normalize_email
from .tokens import SessionTokenCodec

__all__ = [
    "AccountDirectory",
    "AccountService",
    "Identity",
    "PostgresAccountDirectory",
    "Session",
    "SessionEvent",
    "SessionEventBus",
    "SessionEventType",
    "SessionTokenCodec",
    "normalize_email",
]
