"""
TodoStore contract.

Every backend stores todos per owner email and supports a realtime
subscription: subscribe() registers a listener for one email and returns a
disposer. Listeners receive the owner's full todo list after every write
made through the store. Calling the disposer more than once is harmless.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import date

from backend.models.todo import Todo

logger = logging.getLogger(__name__)

Listener = Callable[[list[Todo]], Awaitable[None]]
Disposer = Callable[[], None]


class TodoNotFound(Exception):
    """The todo does not exist or belongs to someone else."""

    def __init__(self, todo_id: str) -> None:
        self.todo_id = todo_id
        super().__init__(f"Todo {todo_id} not found")


class StoreError(Exception):
    """The backend could not be reached or rejected the request."""


class TodoStore(ABC):
    """Async todo storage for one backend."""

    name: str = "todos"

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    # -- Storage -------------------------------------------------------------

    @abstractmethod
    async def list(self, email: str, hide_done: bool = False) -> list[Todo]:
        """The owner's todos ordered by due date. Done ones dropped when hide_done."""

    @abstractmethod
    async def create(self, email: str, title: str, due_by: date) -> Todo:
        """Add a todo. New todos are not done."""

    @abstractmethod
    async def toggle(self, email: str, todo_id: str) -> Todo:
        """Flip done and return the updated todo. Raises TodoNotFound."""

    @abstractmethod
    async def delete(self, email: str, todo_id: str) -> Todo:
        """Remove a todo and return it as it was. Raises TodoNotFound."""

    async def close(self) -> None:
        """Release backend resources."""

    # -- Realtime ------------------------------------------------------------

    def subscribe(self, email: str, listener: Listener) -> Disposer:
        """Register a listener for one owner's list. Returns its disposer."""
        self._listeners.setdefault(email, []).append(listener)
        logger.debug("%s: subscribed %s (%d listeners)", self.name, email, len(self._listeners[email]))

        def dispose() -> None:
            listeners = self._listeners.get(email, [])
            if listener in listeners:
                listeners.remove(listener)
                logger.debug("%s: unsubscribed %s", self.name, email)
            if not listeners:
                self._listeners.pop(email, None)

        return dispose

    def listener_count(self, email: str) -> int:
        return len(self._listeners.get(email, []))

    async def _notify(self, email: str) -> None:
        """Push the current list to every listener of `email`."""
        listeners = list(self._listeners.get(email, []))
        if not listeners:
            return
        try:
            todos = await self.list(email)
        except StoreError as e:
            # The write already committed; only the push is skipped.
            logger.warning("%s: could not re-read %s after a write: %s", self.name, email, e)
            return
        for listener in listeners:
            try:
                await listener(todos)
            except Exception as e:
                # One broken socket must not stop the others.
                logger.warning("%s: listener failed for %s: %s", self.name, email, e)


def sort_todos(todos: list[Todo]) -> list[Todo]:
    return sorted(todos, key=lambda t: (t.due_by or date.max, t.id))
