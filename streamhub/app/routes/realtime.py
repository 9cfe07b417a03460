"""WebSocket endpoint streaming row changes from the change feed."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from ..realtime import ChangeEvent

try:  # pragma: no cover - resolve context when imported from FastAPI app
    from streamhub import app_context
except ModuleNotFoundError as exc:  # pragma: no cover
    if exc.name != "streamhub":
        raise
    from ... import app_context  # type: ignore[no-redef]

from .dependencies import session_token_from

logger = logging.getLogger("realtime")

router = APIRouter(prefix="/api/realtime", tags=["realtime"])

USER_SCOPED_TABLES = frozenset({"tasks", "user_subscriptions", "watch_history"})
SHARED_TABLES = frozenset({"channels", "content"})


def subscription_filters(table: str, user: Any) -> Optional[Dict[str, Any]]:
    """Return the equality filter for ``table``, or ``None`` when it is not streamable."""

    if table in USER_SCOPED_TABLES:
        return {"user_id": str(user.id)}
    if table in SHARED_TABLES:
        return {}
    return None


def _resolve_user(token: Optional[str]) -> Optional[Any]:
    if not token:
        return None
    try:
        return app_context.get_current_user(session_token=token)
    except Exception:
        logger.info("Rejected realtime connection with an invalid session")
        return None


@router.websocket("/{table}")
async def stream_changes(websocket: WebSocket, table: str) -> None:
    user = await run_in_threadpool(_resolve_user, session_token_from(websocket.cookies))
    filters = subscription_filters(table, user) if user is not None else None
    if filters is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()

    def enqueue(event: ChangeEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    async def forward() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))

    with app_context.get_change_feed().subscribe(table, enqueue, filters=filters):
        sender = asyncio.create_task(forward())
        try:
            while True:
                message = await websocket.receive_text()
                if message == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            logger.debug("Realtime client for %s disconnected (user=%s)", table, user.id)
        finally:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender


__all__ = ["SHARED_TABLES", "USER_SCOPED_TABLES", "router", "subscription_filters"]
