"""
Todo list routes, one page and one REST surface per backend.

  GET    /{backend}-todolist
  GET    /api/{backend}/todos?hide_done=&format=
  POST   /api/{backend}/todos
  POST   /api/{backend}/todos/{todo_id}/toggle
  DELETE /api/{backend}/todos/{todo_id}?confirm=true

Every route requires a signed-in user; todos are scoped to the session email.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import HTMLResponse

from backend.auth import get_current_email
from backend.backends import Backends, get_backends
from backend.models.todo import CreateTodoRequest, Todo, TodoActionResponse, TodoListResponse
from backend.stores import StoreError, TodoNotFound, TodoStore
from engine.kernel.renderer import render_page, render_todos
from engine.kernel.todos import toggle_toast, validate_new_todo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["todos"])

CONFIRM_TEXT = "Are you sure?"

_TITLES = {
    "firebase": "Firebase Todo List",
    "neon": "Todo List",
    "postgres": "Todo List",
    "supabase": "Supabase Todo List",
}


def get_store(backend: str, backends: Annotated[Backends, Depends(get_backends)]) -> TodoStore:
    """FastAPI dependency: the store named by the {backend} path parameter."""
    return backends.get(backend)


def _store_failed(backend: str, e: StoreError) -> HTTPException:
    logger.error("todos: %s backend failed: %s", backend, e)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"The {backend} backend is unavailable. Please try again.",
    )


def _not_found(e: TodoNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Todo '{e.todo_id}' not found.")


def _table(backend: str, todos: list[Todo], hide_done: bool) -> str:
    rows = [t.model_dump() for t in todos]
    return render_todos(rows, backend, hide_done=hide_done, title=_TITLES.get(backend, "Todo List"))


@router.get("/{backend}-todolist", response_class=HTMLResponse)
async def todolist_page(
    backend: str,
    store: Annotated[TodoStore, Depends(get_store)],
    email: Annotated[str, Depends(get_current_email)],
) -> Response:
    """Serve the todo page for one backend."""
    try:
        todos = await store.list(email)
    except StoreError as e:
        raise _store_failed(backend, e) from e

    body = f'<div id="content">\n{_table(backend, todos, hide_done=False)}\n</div>'
    return HTMLResponse(render_page(_TITLES.get(backend, "Todo List"), body, script="todos"))


@router.get("/api/{backend}/todos", response_model=TodoListResponse)
async def list_todos(
    backend: str,
    store: Annotated[TodoStore, Depends(get_store)],
    email: Annotated[str, Depends(get_current_email)],
    hide_done: bool = False,
    format: Literal["json", "html"] = "json",
) -> TodoListResponse:
    """List the signed-in user's todos. format=html adds the rendered table."""
    try:
        todos = await store.list(email, hide_done=hide_done)
    except StoreError as e:
        raise _store_failed(backend, e) from e

    html = _table(backend, todos, hide_done) if format == "html" else None
    return TodoListResponse(todos=todos, html=html)


@router.post("/api/{backend}/todos", status_code=201, response_model=TodoActionResponse)
async def create_todo(
    backend: str,
    req: CreateTodoRequest,
    store: Annotated[TodoStore, Depends(get_store)],
    email: Annotated[str, Depends(get_current_email)],
) -> TodoActionResponse:
    """Add a todo. The title must not be blank and the due date not in the past."""
    errors = validate_new_todo(req.title, req.due_by, date.today())
    if errors:
        raise HTTPException(status_code=422, detail="; ".join(errors))

    try:
        todo = await store.create(email, req.title.strip(), req.due_by)
    except StoreError as e:
        raise _store_failed(backend, e) from e
    return TodoActionResponse(todo=todo, toast="Added new todo")


@router.post("/api/{backend}/todos/{todo_id}/toggle", response_model=TodoActionResponse)
async def toggle_todo(
    backend: str,
    todo_id: str,
    store: Annotated[TodoStore, Depends(get_store)],
    email: Annotated[str, Depends(get_current_email)],
) -> TodoActionResponse:
    """Flip a todo between done and not done."""
    try:
        todo = await store.toggle(email, todo_id)
    except TodoNotFound as e:
        raise _not_found(e) from e
    except StoreError as e:
        raise _store_failed(backend, e) from e

    # toast reflects the state before the toggle
    return TodoActionResponse(todo=todo, toast=toggle_toast({"done": not todo.done}))


@router.delete("/api/{backend}/todos/{todo_id}", response_model=TodoActionResponse)
async def delete_todo(
    backend: str,
    todo_id: str,
    store: Annotated[TodoStore, Depends(get_store)],
    email: Annotated[str, Depends(get_current_email)],
    confirm: bool = False,
) -> TodoActionResponse:
    """Delete a todo. Requires confirm=true; without it the confirmation text comes back as a 409."""
    if not confirm:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFIRM_TEXT)

    try:
        todo = await store.delete(email, todo_id)
    except TodoNotFound as e:
        raise _not_found(e) from e
    except StoreError as e:
        raise _store_failed(backend, e) from e
    return TodoActionResponse(todo=todo, toast="Deleted")
