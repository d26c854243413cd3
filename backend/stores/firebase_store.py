"""
Firebase Realtime Database todo store (REST API over httpx).

Todos live at `todos/<escaped email>/<push id>` as
{"title": str, "due_by": ISO string, "done": bool}.

Subscriptions also open the database's server-sent event stream for the
owner's path, so changes made by other clients reach the listeners too.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from typing import Any

import httpx

from backend.models.todo import Todo
from backend.stores.base import Disposer, Listener, StoreError, TodoNotFound, TodoStore
from engine.kernel.todos import escape_email_key, parse_due_by, snapshot_to_list

logger = logging.getLogger(__name__)

# Events on the stream that mean the data changed
_DATA_EVENTS = {"put", "patch"}
# Events after which the server closes the stream
_FINAL_EVENTS = {"cancel", "auth_revoked"}
# The server sends keep-alive events every 30 seconds
_STREAM_TIMEOUT = httpx.Timeout(30.0, read=90.0)


class FirebaseTodoStore(TodoStore):
    """Todos in a Firebase Realtime Database, one subtree per owner."""

    name = "firebase"

    def __init__(
        self,
        base_url: str,
        auth_token: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        stream: bool = True,
        reconnect_delay: float = 5.0,
    ) -> None:
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.client = client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)
        self.stream = stream
        self.reconnect_delay = reconnect_delay
        self._watchers: dict[str, asyncio.Task] = {}

    # -- Storage -------------------------------------------------------------

    async def list(self, email: str, hide_done: bool = False) -> list[Todo]:
        value = await self._request("GET", self._url(email))
        return [Todo(**row) for row in snapshot_to_list(value, hide_done)]

    async def create(self, email: str, title: str, due_by: date) -> Todo:
        body = {"title": title, "due_by": due_by.isoformat(), "done": False}
        created = await self._request("POST", self._url(email), body)
        todo = Todo(id=created["name"], title=title, due_by=due_by, done=False)
        logger.info("firebase: created todo %s for %s", todo.id, email)
        await self._notify(email)
        return todo

    async def toggle(self, email: str, todo_id: str) -> Todo:
        todo = await self._get(email, todo_id)
        updated = todo.model_copy(update={"done": not todo.done})
        await self._request("PATCH", self._url(email, todo_id), {"done": updated.done})
        await self._notify(email)
        return updated

    async def delete(self, email: str, todo_id: str) -> Todo:
        todo = await self._get(email, todo_id)
        await self._request("DELETE", self._url(email, todo_id))
        logger.info("firebase: deleted todo %s for %s", todo_id, email)
        await self._notify(email)
        return todo

    async def close(self) -> None:
        for task in self._watchers.values():
            task.cancel()
        self._watchers.clear()
        await self.client.aclose()

    # -- Realtime ------------------------------------------------------------

    def subscribe(self, email: str, listener: Listener) -> Disposer:
        dispose_listener = super().subscribe(email, listener)
        watcher = self._watchers.get(email)
        if self.stream and (watcher is None or watcher.done()):
            self._watchers[email] = asyncio.create_task(self._watch(email))

        def dispose() -> None:
            dispose_listener()
            if self.listener_count(email) == 0:
                task = self._watchers.pop(email, None)
                if task is not None:
                    task.cancel()
                    logger.debug("firebase: stopped watching %s", email)

        return dispose

    async def _watch(self, email: str) -> None:
        """Follow the owner's event stream until cancelled, reconnecting after failures."""
        while True:
            try:
                async for event, data in self._events(email):
                    if event in _DATA_EVENTS:
                        await self._notify(email)
                    elif event in _FINAL_EVENTS:
                        logger.warning("firebase: stream for %s ended by server (%s): %s", email, event, data)
                        return
            except (httpx.HTTPError, StoreError, json.JSONDecodeError) as e:
                logger.warning("firebase: stream for %s failed: %s", email, e)
            await asyncio.sleep(self.reconnect_delay)

    async def _events(self, email: str):
        """Yield (event, data) pairs from the server-sent event stream."""
        async with self.client.stream(
            "GET",
            self._url(email),
            params=self._params(),
            headers={"Accept": "text/event-stream"},
            timeout=_STREAM_TIMEOUT,
            follow_redirects=True,
        ) as response:
            response.raise_for_status()

            event_type = None
            async for line in response.aiter_lines():
                line = line.strip()

                if not line:
                    continue

                if line.startswith("event:"):
                    event_type = line[6:].strip()
                elif line.startswith("data:") and event_type:
                    raw = line[5:].strip()
                    yield event_type, json.loads(raw) if raw and raw != "null" else None

    # -- Internal helpers ----------------------------------------------------

    def _url(self, email: str, todo_id: str | None = None) -> str:
        path = f"todos/{escape_email_key(email)}"
        if todo_id is not None:
            path += f"/{todo_id}"
        return f"{self.base_url}/{path}.json"

    def _params(self) -> dict[str, str]:
        return {"auth": self.auth_token} if self.auth_token else {}

    async def _get(self, email: str, todo_id: str) -> Todo:
        if escape_email_key(todo_id) != todo_id or not todo_id:
            raise TodoNotFound(todo_id)
        value = await self._request("GET", self._url(email, todo_id))
        if not isinstance(value, dict):
            raise TodoNotFound(todo_id)
        return Todo(
            id=todo_id,
            title=value.get("title", ""),
            due_by=parse_due_by(value.get("due_by")),
            done=bool(value.get("done", False)),
        )

    async def _request(self, method: str, url: str, body: dict[str, Any] | None = None) -> Any:
        try:
            response = await self.client.request(method, url, params=self._params(), json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("firebase: %s %s failed: %s", method, url.removeprefix(self.base_url), e)
            raise StoreError(str(e)) from e
        return response.json() if response.content else None
