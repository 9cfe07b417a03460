from __future__ import annotations

import pytest

from streamhub.app.db import build_update
from streamhub.config import load_app_config


def test_defaults_without_environment():
    config = load_app_config({})

    assert config.db_port == 5432
    assert config.db_connect_timeout == 5
    assert config.jwt_exp_minutes == 60 * 24 * 7
    assert config.session_cookie_secure is False
    assert config.cors_origins == ("http://localhost:5173",)
    assert config.default_organization_slug == "default"
    assert config.default_organization_name == "StreamHub Default"
    assert config.realtime_enabled is True
    assert config.realtime_channel == "streamhub_changes"


def test_environment_overrides():
    config = load_app_config(
        {
            "DB_HOST": "db.internal",
            "DB_PORT": "6543",
            "DB_CONNECT_TIMEOUT": "2.5",
            "SESSION_COOKIE_SECURE": "yes",
            "CORS_ORIGINS": "https://watch.example.com/, https://admin.example.com",
            "DEFAULT_ORGANIZATION_SLUG": " Acme ",
            "REALTIME_ENABLED": "off",
        }
    )

    assert config.db_settings()["host"] == "db.internal"
    assert config.db_settings()["port"] == 6543
    assert config.db_connect_timeout == 3
    assert config.session_cookie_secure is True
    assert config.cors_origins == ("https://watch.example.com", "https://admin.example.com")
    assert config.default_organization_slug == "acme"
    assert config.realtime_enabled is False


@pytest.mark.parametrize("env", [{"DB_PORT": "five"}, {"DB_CONNECT_TIMEOUT": "-1"}, {"DB_CONNECT_TIMEOUT": "x"}])
def test_invalid_numbers_raise(env):
    with pytest.raises(ValueError):
        load_app_config(env)


def test_build_update_keeps_only_whitelisted_columns():
    _, params = build_update(
        "channels",
        {"name": "Cinema", "id": "other", "credits_cost": 3},
        "ch-1",
        allowed=("name", "credits_cost"),
    )

    assert params == {"name": "Cinema", "credits_cost": 3, "__key": "ch-1"}

    with pytest.raises(ValueError):
        build_update("channels", {"id": "other"}, "ch-1", allowed=("name",))
