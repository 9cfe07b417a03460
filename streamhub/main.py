import logging
import sys
from pathlib import Path
from typing import Optional

import psycopg2
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

_project_root = Path(__file__).resolve().parents[1]
if str(_project_root) not in sys.path:
    sys.path.append(str(_project_root))

try:
    from streamhub import app_context
    from streamhub.config import load_app_config
    from streamhub.app.catalog.models import User
    from streamhub.app.errors import StreamHubError
    from streamhub.app.realtime import ChangeFeed, start_change_listener, stop_change_listener
    from streamhub.app.routes import accounts as account_routes
    from streamhub.app.routes import admin as admin_routes
    from streamhub.app.routes import catalog as catalog_routes
    from streamhub.app.routes import realtime as realtime_routes
    from streamhub.app.routes import tasks as task_routes
    from streamhub.app.routes import watch as watch_routes
    from streamhub.app.services.accounts import get_account_service
except ModuleNotFoundError as exc:
    if exc.name != "streamhub":
        raise
    import app_context  # type: ignore[no-redef]
    from config import load_app_config  # type: ignore[no-redef]
    from app.catalog.models import User  # type: ignore[no-redef]
    from app.errors import StreamHubError  # type: ignore[no-redef]
    from app.realtime import (  # type: ignore[no-redef]
        ChangeFeed,
        start_change_listener,
        stop_change_listener,
    )
    from app.routes import accounts as account_routes  # type: ignore[no-redef]
    from app.routes import admin as admin_routes  # type: ignore[no-redef]
    from app.routes import catalog as catalog_routes  # type: ignore[no-redef]
    from app.routes import realtime as realtime_routes  # type: ignore[no-redef]
    from app.routes import tasks as task_routes  # type: ignore[no-redef]
    from app.routes import watch as watch_routes  # type: ignore[no-redef]
    from app.services.accounts import get_account_service  # type: ignore[no-redef]


load_dotenv()

CONFIG = load_app_config()

logger = logging.getLogger("streamhub")

change_feed = ChangeFeed()


def get_conn():
    return psycopg2.connect(**CONFIG.db_settings())


def get_current_user(session_token: Optional[str] = None) -> User:
    if not session_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = get_account_service().current_user(session_token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


app_context.configure(
    get_conn=get_conn,
    get_current_user=get_current_user,
    change_feed=change_feed,
    config=CONFIG,
)

app = FastAPI(title="StreamHub API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CONFIG.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(account_routes.router)
app.include_router(catalog_routes.router)
app.include_router(watch_routes.router)
app.include_router(admin_routes.router)
app.include_router(task_routes.router)
app.include_router(realtime_routes.router)


@app.exception_handler(StreamHubError)
async def handle_streamhub_error(request: Request, exc: StreamHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content={"detail": dict(exc.payload)})


@app.on_event("startup")
def _start_change_listener() -> None:
    if not CONFIG.realtime_enabled:
        logger.info("Realtime change listener disabled")
        return
    start_change_listener(change_feed, get_conn, channel=CONFIG.realtime_channel)


@app.on_event("shutdown")
def _stop_change_listener() -> None:
    stop_change_listener()


@app.get("/api/healthz")
def healthz():
    return {"ok": True}
