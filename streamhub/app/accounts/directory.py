"""Account directory: credential storage, sessions and session-change events."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Mapping, Optional, Protocol
from uuid import uuid4

from passlib.hash import bcrypt
from psycopg2.extensions import connection as PgConnection

from ..db import PostgresRepository
from ..errors import AuthError
from .models import Identity, Session, SessionEvent, SessionEventType
from .tokens import SessionTokenCodec

logger = logging.getLogger("accounts")

SessionListener = Callable[[SessionEvent], None]


class AccountDirectory(Protocol):
    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str = "",
        pending_plan: Optional[str] = None,
    ) -> Identity:
        ...

    def resume_sign_up(self, email: str, password: str) -> Optional[Identity]:
        ...

    def mark_provisioned(self, identity_id: str) -> None:
        ...

    def sign_in(self, email: str, password: str) -> Session:
        ...

    def sign_out(self, token: str) -> None:
        ...

    def get_current_session(self, token: Optional[str]) -> Optional[Session]:
        ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        ...


class SessionEventBus:
    """Listener registry shared by directory implementations."""

    def __init__(self) -> None:
        self._listeners: List[SessionListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event_type: SessionEventType, identity_id: str) -> None:
        event = SessionEvent(event_type=event_type, identity_id=identity_id)
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed for %s", event_type.value)


def _row_to_identity(row: Mapping[str, Any]) -> Identity:
    return Identity(
        id=str(row["id"]),
        email=row["email"],
        full_name=row.get("full_name") or "",
        pending_plan=row.get("pending_plan"),
        created_at=row["created_at"],
    )


class PostgresAccountDirectory(PostgresRepository):
    """Stores bcrypt credential hashes in ``auth_identities`` and issues JWT sessions."""

    def __init__(self, tokens: SessionTokenCodec, *, conn: Optional[PgConnection] = None) -> None:
        super().__init__(conn=conn)
        self._tokens = tokens
        self._events = SessionEventBus()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        return self._events.subscribe(listener)

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str = "",
        pending_plan: Optional[str] = None,
    ) -> Identity:
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO auth_identities (id, email, full_name, password_hash, pending_plan)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT DO NOTHING
                RETURNING id, email, full_name, pending_plan, created_at
                """,
                (str(uuid4()), email, full_name, bcrypt.hash(password), pending_plan),
            )
            row = cursor.fetchone()
        if row is None:
            raise AuthError("An account with this email already exists.", status_code=400)
        identity = _row_to_identity(row)
        self._events.emit(SessionEventType.SIGNED_UP, identity.id)
        return identity

    def resume_sign_up(self, email: str, password: str) -> Optional[Identity]:
        """Return the identity when its sign-up stopped before provisioning finished."""

        row = self._find_by_email(email)
        if not row or not row.get("pending_plan") or not bcrypt.verify(password, row["password_hash"]):
            return None
        return _row_to_identity(row)

    def mark_provisioned(self, identity_id: str) -> None:
        with self._cursor() as cursor:
            cursor.execute("UPDATE auth_identities SET pending_plan = NULL WHERE id = %s", (identity_id,))

    def sign_in(self, email: str, password: str) -> Session:
        row = self._find_by_email(email)
        if not row or not bcrypt.verify(password, row["password_hash"]):
            raise AuthError("Invalid email or password.")
        identity = _row_to_identity(row)
        token, expires_at = self._tokens.issue(identity.id)
        self._events.emit(SessionEventType.SIGNED_IN, identity.id)
        return Session(identity=identity, token=token, expires_at=expires_at)

    def _find_by_email(self, email: str) -> Optional[Mapping[str, Any]]:
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, email, full_name, password_hash, pending_plan, created_at
                FROM auth_identities
                WHERE LOWER(email) = LOWER(%s)
                """,
                (email.strip(),),
            )
            return cursor.fetchone()

    def sign_out(self, token: str) -> None:
        decoded = self._tokens.decode(token) if token else None
        if decoded is None:
            return
        self._events.emit(SessionEventType.SIGNED_OUT, decoded[0])

    def get_current_session(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        decoded = self._tokens.decode(token)
        if decoded is None:
            return None
        subject, expires_at = decoded
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id, email, full_name, pending_plan, created_at FROM auth_identities WHERE id = %s",
                (subject,),
            )
            row = cursor.fetchone()
        if row is None:
            return None
        return Session(identity=_row_to_identity(row), token=token, expires_at=expires_at)


__all__ = [
    "AccountDirectory",
    "PostgresAccountDirectory",
    "SessionEventBus",
    "SessionListener",
]
