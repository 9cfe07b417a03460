"""Application wiring for accounts and provisioning."""
from __future__ import annotations

import logging
from functools import lru_cache

from ..accounts import AccountService, PostgresAccountDirectory, SessionEvent, SessionTokenCodec
from ..provisioning import PostgresProvisioningRepository, ProvisioningService
from .catalog import get_catalog_repository

try:  # pragma: no cover - resolve context when imported from FastAPI app
    from streamhub import app_context
except ModuleNotFoundError as exc:  # pragma: no cover
    if exc.name != "streamhub":
        raise
    from ... import app_context  # type: ignore[no-redef]

logger = logging.getLogger("accounts")


class LoggingSessionListener:
    """Records session changes to the application logger."""

    def __call__(self, event: SessionEvent) -> None:
        logger.info("Session event %s identity=%s", event.event_type.value, event.identity_id)


@lru_cache(maxsize=1)
def get_token_codec() -> SessionTokenCodec:
    config = app_context.get_config()
    return SessionTokenCodec(secret_key=config.jwt_secret_key, exp_minutes=config.jwt_exp_minutes)


@lru_cache(maxsize=1)
def get_provisioning_service() -> ProvisioningService:
    config = app_context.get_config()
    return ProvisioningService(
        repository=PostgresProvisioningRepository(),
        default_organization_slug=config.default_organization_slug,
        default_organization_name=config.default_organization_name,
    )


@lru_cache(maxsize=1)
def get_account_service() -> AccountService:
    directory = PostgresAccountDirectory(get_token_codec())
    directory.subscribe(LoggingSessionListener())
    return AccountService(
        directory=directory,
        provisioning=get_provisioning_service(),
        users=get_catalog_repository(),
    )


__all__ = [
    "LoggingSessionListener",
    "get_account_service",
    "get_provisioning_service",
    "get_token_codec",
]
