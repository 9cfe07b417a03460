from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from streamhub import main
from streamhub.app.errors import StoreUnavailable


def test_healthz():
    assert main.healthz() == {"ok": True}


def test_get_current_user_requires_session_cookie():
    with pytest.raises(HTTPException) as excinfo:
        main.get_current_user(session_token=None)

    assert excinfo.value.status_code == 401


def test_get_current_user_rejects_unknown_session(monkeypatch):
    monkeypatch.setattr(main, "get_account_service", lambda: SimpleNamespace(current_user=lambda token: None))

    with pytest.raises(HTTPException) as excinfo:
        main.get_current_user(session_token="expired")

    assert excinfo.value.status_code == 401


def test_domain_errors_render_their_payload():
    request = SimpleNamespace(method="POST", url=SimpleNamespace(path="/api/watch/channels/ch-1"))

    response = asyncio.run(main.handle_streamhub_error(request, StoreUnavailable()))

    assert response.status_code == 503
    assert json.loads(response.body)["detail"]["error"] == "store_unavailable"


def test_routers_are_registered():
    paths = {route.path for route in main.app.routes}

    assert "/api/auth/register" in paths
    assert "/api/watch/channels/{channel_id}" in paths
    assert "/api/admin/content/{content_id}" in paths
    assert "/api/tasks" in paths
    assert "/api/realtime/{table}" in paths
