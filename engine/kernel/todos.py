"""
Pagekit Kernel - Todo list helpers

Pure helpers shared by the Firebase, Neon, Postgres and Supabase todo pages.
Row shaping, labels, and validation of a new todo. No IO.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from engine.kernel.types import FIREBASE_KEY_PATTERN

EMPTY_MESSAGE = "No Pending Todos.  Use 'New Todo' to add some."


def escape_email_key(email: str) -> str:
    """Make an email usable as a Firebase key ('.', '#', '$', '/', '[' and ']' are not allowed)."""
    return FIREBASE_KEY_PATTERN.sub("_", email)


def parse_due_by(value: Any) -> date | None:
    """
    Accept a date, a datetime, or an ISO string ("2026-03-01" or
    "2026-03-01T00:00:00.000Z"). Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def snapshot_to_list(value: dict[str, Any] | None, hide_done: bool = False) -> list[dict[str, Any]]:
    """
    Convert a realtime-database object ({id: todo} or None) into table rows.

    Each row gets its key as `id` and `due_by` as a date. Done todos are
    dropped when hide_done is set. Rows are ordered by due date, then id.
    """
    rows: list[dict[str, Any]] = []
    for todo_id, todo in (value or {}).items():
        if not isinstance(todo, dict):
            continue
        row = {
            "id": todo_id,
            "title": todo.get("title", ""),
            "due_by": parse_due_by(todo.get("due_by")),
            "done": bool(todo.get("done", False)),
        }
        if hide_done and row["done"]:
            continue
        rows.append(row)
    rows.sort(key=lambda r: (r["due_by"] or date.max, r["id"]))
    return rows


def filter_done(rows: list[dict[str, Any]], hide_done: bool) -> list[dict[str, Any]]:
    if not hide_done:
        return rows
    return [r for r in rows if not r.get("done")]


def toggle_label(todo: dict[str, Any] | None) -> str:
    if todo is None:
        return "Toggle"
    return "Mark as Todo" if todo.get("done") else "Mark as Done"


def toggle_toast(todo: dict[str, Any]) -> str:
    """Message after a toggle. `todo` is the row as it was before the toggle."""
    return "Marked as todo" if todo.get("done") else "Marked as done"


def default_due_by(today: date) -> date:
    return today + timedelta(days=1)


def validate_new_todo(title: Any, due_by: Any, today: date) -> list[str]:
    """
    Validate the "New Todo" form.
    Returns a list of error strings. Empty list = valid.
    """
    errors: list[str] = []
    if not isinstance(title, str) or not title.strip():
        errors.append("title is required")

    due = parse_due_by(due_by)
    if due is None:
        errors.append("due_by must be a date")
    elif due < today:
        errors.append("due_by cannot be in the past")

    return errors
