"""
Postgres todo store (asyncpg).

Serves both the "postgres" and the "neon" todo lists: same schema, different
DSN. All SQL for the todos table lives here.
"""

from __future__ import annotations

import logging
from datetime import date

import asyncpg

from backend.db import close_pool, init_pool, transaction
from backend.models.todo import Todo
from backend.stores.base import StoreError, TodoNotFound, TodoStore

logger = logging.getLogger(__name__)


def _row_to_todo(row: asyncpg.Record) -> Todo:
    """Convert a database row to a Todo model."""
    return Todo(
        id=str(row["id"]),
        title=row["title"],
        due_by=row["due_by"],
        done=row["done"],
    )


def _parse_id(todo_id: str) -> int:
    try:
        return int(todo_id)
    except ValueError as e:
        raise TodoNotFound(todo_id) from e


class PostgresTodoStore(TodoStore):
    """Todos in the `todos` table, scoped by created_by."""

    def __init__(self, pool: asyncpg.Pool | None = None, name: str = "postgres") -> None:
        super().__init__()
        self.pool = pool
        self.name = name

    @classmethod
    async def connect(cls, dsn: str, name: str = "postgres") -> PostgresTodoStore:
        """Create the pool and the store around it."""
        return cls(await init_pool(dsn), name=name)

    async def close(self) -> None:
        await close_pool(self.pool)
        self.pool = None

    async def list(self, email: str, hide_done: bool = False) -> list[Todo]:
        query = "SELECT id, title, due_by, done FROM todos WHERE created_by = $1"
        if hide_done:
            query += " AND NOT done"
        query += " ORDER BY due_by NULLS LAST, id"

        try:
            async with transaction(self.pool) as conn:
                rows = await conn.fetch(query, email)
        except asyncpg.PostgresError as e:
            logger.error("%s: list failed for %s: %s", self.name, email, e)
            raise StoreError(str(e)) from e
        return [_row_to_todo(row) for row in rows]

    async def create(self, email: str, title: str, due_by: date) -> Todo:
        try:
            async with transaction(self.pool) as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO todos (title, due_by, created_by)
                    VALUES ($1, $2, $3)
                    RETURNING id, title, due_by, done
                    """,
                    title,
                    due_by,
                    email,
                )
        except asyncpg.PostgresError as e:
            logger.error("%s: create failed for %s: %s", self.name, email, e)
            raise StoreError(str(e)) from e

        todo = _row_to_todo(row)
        logger.info("%s: created todo %s for %s", self.name, todo.id, email)
        await self._notify(email)
        return todo

    async def toggle(self, email: str, todo_id: str) -> Todo:
        row = await self._write(
            """
            UPDATE todos SET done = NOT done
            WHERE id = $1 AND created_by = $2
            RETURNING id, title, due_by, done
            """,
            email,
            todo_id,
        )
        await self._notify(email)
        return _row_to_todo(row)

    async def delete(self, email: str, todo_id: str) -> Todo:
        row = await self._write(
            """
            DELETE FROM todos
            WHERE id = $1 AND created_by = $2
            RETURNING id, title, due_by, done
            """,
            email,
            todo_id,
        )
        logger.info("%s: deleted todo %s for %s", self.name, todo_id, email)
        await self._notify(email)
        return _row_to_todo(row)

    async def _write(self, query: str, email: str, todo_id: str) -> asyncpg.Record:
        """Run a single-row write keyed by (id, created_by). Raises TodoNotFound on no match."""
        key = _parse_id(todo_id)
        try:
            async with transaction(self.pool) as conn:
                row = await conn.fetchrow(query, key, email)
        except asyncpg.PostgresError as e:
            logger.error("%s: write failed for todo %s: %s", self.name, todo_id, e)
            raise StoreError(str(e)) from e
        if row is None:
            raise TodoNotFound(todo_id)
        return row
