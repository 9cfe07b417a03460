"""Application configuration helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple
import os


@dataclass(frozen=True)
class AppConfig:
    """Runtime configuration for the StreamHub API."""

    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    db_connect_timeout: int
    jwt_secret_key: str
    jwt_exp_minutes: int
    session_cookie_name: str
    session_cookie_secure: bool
    cors_origins: Tuple[str, ...]
    default_organization_slug: str
    default_organization_name: str
    realtime_enabled: bool
    realtime_channel: str

    def db_settings(self) -> Dict[str, object]:
        """Keyword arguments accepted by ``psycopg2.connect``."""

        return {
            "host": self.db_host,
            "port": self.db_port,
            "dbname": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
            "connect_timeout": self.db_connect_timeout,
        }


def _to_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _parse_connect_timeout(raw_value: Optional[str]) -> int:
    if raw_value is None or raw_value == "":
        return 5
    try:
        timeout = float(raw_value)
    except ValueError as exc:
        raise ValueError("DB_CONNECT_TIMEOUT must be a number") from exc
    if timeout < 0:
        raise ValueError("DB_CONNECT_TIMEOUT must be non-negative")
    return int(math.ceil(timeout))


def _split_origins(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ("http://localhost:5173",)
    return tuple(origin.strip().rstrip("/") for origin in value.split(",") if origin.strip())


def load_app_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load :class:`AppConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    slug = (env_mapping.get("DEFAULT_ORGANIZATION_SLUG") or "default").strip().lower() or "default"

    return AppConfig(
        db_host=env_mapping.get("DB_HOST", "127.0.0.1"),
        db_port=_to_int(env_mapping.get("DB_PORT"), default=5432),
        db_name=env_mapping.get("DB_NAME", "streamhub"),
        db_user=env_mapping.get("DB_USER", "streamhub"),
        db_password=env_mapping.get("DB_PASSWORD", "streamhub"),
        db_connect_timeout=_parse_connect_timeout(env_mapping.get("DB_CONNECT_TIMEOUT")),
        jwt_secret_key=env_mapping.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        jwt_exp_minutes=max(1, _to_int(env_mapping.get("JWT_EXP_MINUTES"), default=60 * 24 * 7)),
        session_cookie_name=env_mapping.get("SESSION_COOKIE_NAME", "session"),
        session_cookie_secure=_to_bool(env_mapping.get("SESSION_COOKIE_SECURE"), default=False),
        cors_origins=_split_origins(env_mapping.get("CORS_ORIGINS")),
        default_organization_slug=slug,
        default_organization_name=env_mapping.get("DEFAULT_ORGANIZATION_NAME", "StreamHub Default"),
        realtime_enabled=_to_bool(env_mapping.get("REALTIME_ENABLED"), default=True),
        realtime_channel=env_mapping.get("REALTIME_CHANNEL", "streamhub_changes"),
    )
