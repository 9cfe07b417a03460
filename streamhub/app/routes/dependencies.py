"""Dependencies shared by the API routers."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from fastapi import Depends, Request

try:  # pragma: no cover - resolve context when imported from FastAPI app
    from streamhub import app_context
except ModuleNotFoundError as exc:  # pragma: no cover
    if exc.name != "streamhub":
        raise
    from ... import app_context  # type: ignore[no-redef]


def get_app_config() -> Any:
    return app_context.get_config()


def session_token_from(cookies: Mapping[str, str]) -> Optional[str]:
    return cookies.get(get_app_config().session_cookie_name)


def read_session_token(request: Request) -> Optional[str]:
    return session_token_from(request.cookies)


def get_session_user(session_token: Optional[str] = Depends(read_session_token)) -> Any:
    return app_context.get_current_user(session_token=session_token)


__all__ = ["get_app_config", "get_session_user", "read_session_token", "session_token_from"]
