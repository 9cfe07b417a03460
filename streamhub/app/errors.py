"""Error taxonomy shared by the account, entitlement and provisioning layers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


@dataclass(eq=False)
class StreamHubError(Exception):
    """Represents a domain failure that can be surfaced to API callers."""

    code: str
    message: str
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        base_detail: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            base_detail.update(self.detail)
        object.__setattr__(self, "_payload", base_detail)
        super().__init__(self.message)

    @property
    def payload(self) -> Mapping[str, Any]:
        """Serialized representation suitable for JSON responses."""

        return self._payload

    def to_http_exception(self) -> HTTPException:
        """Convert the domain error into a FastAPI HTTPException."""

        return HTTPException(status_code=self.status_code, detail=dict(self.payload))


class AuthError(StreamHubError):
    """Sign-in or sign-up was rejected by the account directory."""

    def __init__(self, message: str, *, status_code: int = status.HTTP_401_UNAUTHORIZED) -> None:
        super().__init__(code="auth_failed", message=message, status_code=status_code)


class InsufficientCredits(StreamHubError):
    """The subscription balance does not cover the item's cost."""

    def __init__(self, *, balance: int, required: int) -> None:
        super().__init__(
            code="insufficient_credits",
            message="Not enough credits to watch this item.",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={"balance": balance, "required": required},
        )
        self.balance = balance
        self.required = required


class NoActiveSubscription(StreamHubError):
    """The user has no active subscription to draw credits from."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        super().__init__(
            code="no_active_subscription",
            message="An active subscription is required to watch this item.",
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"user_id": user_id} if user_id else None,
        )


class ProvisioningFailed(StreamHubError):
    """Sign-up could not establish organization, plans, user and subscription."""

    def __init__(self, message: str = "Unable to finish setting up the account.") -> None:
        super().__init__(code="provisioning_failed", message=message)


class StoreUnavailable(StreamHubError):
    """The persistence layer rejected a write or could not be reached."""

    def __init__(self, message: str = "The catalog store is temporarily unavailable.") -> None:
        super().__init__(
            code="store_unavailable",
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


__all__ = [
    "AuthError",
    "InsufficientCredits",
    "NoActiveSubscription",
    "ProvisioningFailed",
    "StoreUnavailable",
    "StreamHubError",
]
