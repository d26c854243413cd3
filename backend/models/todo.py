"""Todo models shared by every todo list backend."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class Todo(BaseModel):
    """One row of a todo list. `id` is the backend's key as a string."""

    id: str
    title: str
    due_by: date | None = None
    done: bool = False


class CreateTodoRequest(BaseModel):
    """What the "New Todo" form posts."""

    model_config = ConfigDict(extra="forbid")

    title: str
    due_by: date


class TodoListResponse(BaseModel):
    """GET /api/{backend}/todos. `html` is set when the table fragment was asked for."""

    todos: list[Todo]
    html: str | None = None


class TodoActionResponse(BaseModel):
    """What create, toggle and delete return: the affected todo and the toast text."""

    todo: Todo
    toast: str
