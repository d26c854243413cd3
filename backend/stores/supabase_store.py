"""
Supabase todo store (supabase-py).

The client is synchronous, so every query runs in a worker thread.
Table `todo(id, title, due_by, done, created_by)`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from backend.models.todo import Todo
from backend.stores.base import StoreError, TodoNotFound, TodoStore, sort_todos

logger = logging.getLogger(__name__)

TABLE = "todo"
COLUMNS = "id,title,due_by,done"


def _check_id(todo_id: str) -> str:
    """Ids are integers; anything else cannot match a row."""
    try:
        int(todo_id)
    except ValueError as e:
        raise TodoNotFound(todo_id) from e
    return todo_id


def _row_to_todo(row: dict[str, Any]) -> Todo:
    return Todo(
        id=str(row["id"]),
        title=row.get("title") or "",
        due_by=(row.get("due_by") or "")[:10] or None,
        done=bool(row.get("done")),
    )


class SupabaseTodoStore(TodoStore):
    """Todos in a Supabase table, matched on created_by."""

    name = "supabase"

    def __init__(self, client: Client) -> None:
        super().__init__()
        self.client = client

    @classmethod
    def connect(cls, url: str, key: str) -> SupabaseTodoStore:
        return cls(create_client(url, key))

    async def list(self, email: str, hide_done: bool = False) -> list[Todo]:
        match: dict[str, Any] = {"created_by": email}
        if hide_done:
            match["done"] = False

        def query():
            return self.client.table(TABLE).select(COLUMNS).match(match).execute()

        result = await self._run("list", query)
        return sort_todos([_row_to_todo(row) for row in result.data or []])

    async def create(self, email: str, title: str, due_by: date) -> Todo:
        row = {"title": title, "due_by": due_by.isoformat(), "done": False, "created_by": email}

        def query():
            return self.client.table(TABLE).insert([row]).execute()

        result = await self._run("create", query)
        if not result.data:
            raise StoreError("insert returned no row")
        todo = _row_to_todo(result.data[0])
        logger.info("supabase: created todo %s for %s", todo.id, email)
        await self._notify(email)
        return todo

    async def toggle(self, email: str, todo_id: str) -> Todo:
        current = await self._get(email, todo_id)

        def query():
            return (
                self.client.table(TABLE)
                .update({"done": not current.done})
                .match({"id": todo_id, "created_by": email})
                .execute()
            )

        result = await self._run("toggle", query)
        if not result.data:
            raise TodoNotFound(todo_id)
        await self._notify(email)
        return _row_to_todo(result.data[0])

    async def delete(self, email: str, todo_id: str) -> Todo:
        _check_id(todo_id)

        def query():
            return self.client.table(TABLE).delete().match({"id": todo_id, "created_by": email}).execute()

        result = await self._run("delete", query)
        if not result.data:
            raise TodoNotFound(todo_id)
        logger.info("supabase: deleted todo %s for %s", todo_id, email)
        await self._notify(email)
        return _row_to_todo(result.data[0])

    async def _get(self, email: str, todo_id: str) -> Todo:
        _check_id(todo_id)

        def query():
            return (
                self.client.table(TABLE)
                .select(COLUMNS)
                .match({"id": todo_id, "created_by": email})
                .limit(1)
                .execute()
            )

        result = await self._run("get", query)
        if not result.data:
            raise TodoNotFound(todo_id)
        return _row_to_todo(result.data[0])

    async def _run(self, action: str, query):
        try:
            return await asyncio.to_thread(query)
        except (APIError, httpx.HTTPError) as e:
            logger.error("supabase: %s failed: %s", action, e)
            raise StoreError(str(e)) from e
