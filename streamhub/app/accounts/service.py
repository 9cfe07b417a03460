"""Sign-up, sign-in and session resolution on top of the account directory."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from email_validator import EmailNotValidError, validate_email

from ..catalog.models import PlanKey, User
from ..catalog.repository import CatalogRepository
from ..errors import AuthError
from .directory import AccountDirectory
from .models import Identity, Session

if TYPE_CHECKING:  # pragma: no cover
    from ..provisioning.models import ProvisioningResult
    from ..provisioning.service import ProvisioningService

logger = logging.getLogger("accounts")

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise AuthError(str(exc), status_code=400) from exc
    return result.normalized.lower()


@dataclass
class AccountService:
    directory: AccountDirectory
    provisioning: ProvisioningService
    users: CatalogRepository

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str = "",
        plan_key: Union[PlanKey, str] = PlanKey.FREE,
    ) -> ProvisioningResult:
        """Create the identity and provision its profile and subscription."""

        normalized = normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
                status_code=400,
            )
        try:
            plan = PlanKey(plan_key)
        except ValueError as exc:
            raise AuthError(f"Unknown plan: {plan_key}", status_code=400) from exc

        try:
            identity = self.directory.sign_up(
                normalized,
                password,
                (full_name or "").strip(),
                pending_plan=plan.value,
            )
        except AuthError:
            identity = self.directory.resume_sign_up(normalized, password)
            if identity is None:
                raise
            logger.warning("Resuming interrupted sign-up for identity %s", identity.id)
        else:
            logger.info("Identity %s created; provisioning plan=%s", identity.id, plan.value)
        return self._provision(identity)

    def sign_in(self, email: str, password: str) -> Session:
        """Open a session, finishing provisioning for identities whose sign-up was interrupted."""

        if not email or not password:
            raise AuthError("Email and password are required.", status_code=400)
        session = self.directory.sign_in(email.strip().lower(), password)
        if self.users.get_user(session.identity.id) is None:
            if not session.identity.pending_plan:
                logger.warning("Identity %s has no profile and no pending sign-up", session.identity.id)
                raise AuthError("This account is no longer available.")
            logger.warning("Identity %s has no profile; resuming provisioning", session.identity.id)
            self._provision(session.identity)
        return session

    def sign_out(self, token: Optional[str]) -> None:
        if token:
            self.directory.sign_out(token)

    def current_user(self, token: Optional[str]) -> Optional[User]:
        session = self.directory.get_current_session(token)
        if session is None:
            return None
        user = self.users.get_user(session.identity.id)
        if user is None:
            logger.warning("Session for identity %s has no profile row", session.identity.id)
        return user

    def _provision(self, identity: Identity) -> ProvisioningResult:
        result = self.provisioning.provision_new_user(identity, plan_key=identity.pending_plan or PlanKey.FREE)
        self.directory.mark_provisioned(identity.id)
        return result


__all__ = ["MIN_PASSWORD_LENGTH", "AccountService", "normalize_email"]
