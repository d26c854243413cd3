"""
WebSocket endpoint for realtime todo lists.

Accepts connections at /ws/{backend}-todolist. The socket subscribes to the
signed-in user's list and receives {"type": "todos", "todos": [...]} on
connect and after every change. The subscription is disposed when the
socket closes, however it closes.

Client messages:
  {"type": "refresh", "hide_done": bool}  -> one "todos" message, filtered
  {"type": "ping"}                        -> {"type": "pong"}
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from backend.auth import email_from_websocket
from backend.models.todo import Todo
from backend.stores import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

# Close codes sent before the handshake completes
_CLOSE_UNAUTHORIZED = 4401
_CLOSE_UNAVAILABLE = 4503


def _todos_message(todos: list[Todo]) -> str:
    return json.dumps({"type": "todos", "todos": [t.model_dump(mode="json") for t in todos]})


@router.websocket("/ws/{backend}-todolist")
async def todolist_websocket(websocket: WebSocket, backend: str) -> None:
    """
    Realtime todo list for one backend.

    Protocol:
    - Server → Client: {"type": "todos", "todos": [...]}
    - Client → Server: {"type": "refresh", "hide_done": bool} or {"type": "ping"}
    """
    email = email_from_websocket(websocket)
    if email is None:
        await websocket.close(code=_CLOSE_UNAUTHORIZED)
        return

    backends = getattr(websocket.app.state, "backends", None)
    try:
        if backends is None:
            raise HTTPException(status_code=503, detail="Backends not initialized.")
        store = backends.get(backend)
    except HTTPException as e:
        logger.info("ws: refusing %s-todolist for %s: %s", backend, email, e.detail)
        await websocket.close(code=_CLOSE_UNAVAILABLE)
        return

    await websocket.accept()
    logger.info("ws: %s-todolist connected for %s", backend, email)

    async def push(todos: list[Todo]) -> None:
        await websocket.send_text(_todos_message(todos))

    dispose = store.subscribe(email, push)
    try:
        await push(await store.list(email))

        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": "error", "error": "Invalid JSON"}))
                continue

            msg_type = msg.get("type") if isinstance(msg, dict) else None
            if msg_type == "refresh":
                todos = await store.list(email, hide_done=bool(msg.get("hide_done")))
                await websocket.send_text(_todos_message(todos))
            elif msg_type == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
            else:
                await websocket.send_text(json.dumps({"type": "error", "error": f"Unknown message type: {msg_type}"}))

    except WebSocketDisconnect:
        logger.info("ws: %s-todolist disconnected for %s", backend, email)
    except StoreError as e:
        logger.error("ws: %s backend failed for %s: %s", backend, email, e)
        await websocket.close(code=1011)
    finally:
        dispose()
