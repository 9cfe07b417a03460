"""Signed session tokens."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import JWTError, jwt

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionTokenCodec:
    secret_key: str
    exp_minutes: int = 60 * 24 * 7
    algorithm: str = JWT_ALGORITHM

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.exp_minutes)

    def issue(self, subject: str, *, now: Optional[datetime] = None) -> Tuple[str, datetime]:
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + self.ttl
        payload = {"sub": subject, "exp": expires_at}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm), expires_at

    def decode(self, token: str) -> Optional[Tuple[str, datetime]]:
        """Return ``(subject, expires_at)`` or ``None`` for invalid or expired tokens."""

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        subject = payload.get("sub")
        if not subject:
            return None
        expires_at = datetime.fromtimestamp(int(payload.get("exp", 0)), tz=timezone.utc)
        return str(subject), expires_at


__all__ = ["JWT_ALGORITHM", "SessionTokenCodec"]
