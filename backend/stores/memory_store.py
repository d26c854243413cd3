"""In-process todo store. Used by the tests and for local development."""

from __future__ import annotations

import asyncio
import itertools
from datetime import date

from backend.models.todo import Todo
from backend.stores.base import TodoNotFound, TodoStore, sort_todos


class MemoryTodoStore(TodoStore):
    """Todos in a dict keyed by owner email, then todo id."""

    name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._todos: dict[str, dict[str, Todo]] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def list(self, email: str, hide_done: bool = False) -> list[Todo]:
        todos = self._todos.get(email, {}).values()
        return sort_todos([t for t in todos if not (hide_done and t.done)])

    async def create(self, email: str, title: str, due_by: date) -> Todo:
        async with self._lock:
            todo = Todo(id=str(next(self._ids)), title=title, due_by=due_by, done=False)
            self._todos.setdefault(email, {})[todo.id] = todo
        await self._notify(email)
        return todo

    async def toggle(self, email: str, todo_id: str) -> Todo:
        async with self._lock:
            todo = self._get(email, todo_id)
            updated = todo.model_copy(update={"done": not todo.done})
            self._todos[email][todo_id] = updated
        await self._notify(email)
        return updated

    async def delete(self, email: str, todo_id: str) -> Todo:
        async with self._lock:
            todo = self._get(email, todo_id)
            del self._todos[email][todo_id]
        await self._notify(email)
        return todo

    def _get(self, email: str, todo_id: str) -> Todo:
        todo = self._todos.get(email, {}).get(todo_id)
        if todo is None:
            raise TodoNotFound(todo_id)
        return todo
