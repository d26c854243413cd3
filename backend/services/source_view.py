"""Source listing for each seven GUIs task: the reducer handlers behind it."""

from __future__ import annotations

import inspect

from engine.kernel.reducer import TASK_HANDLERS


def task_source(task: str) -> str:
    """Concatenated source of the handlers for a task. KeyError for an unknown task."""
    handlers = TASK_HANDLERS[task]
    return "\n\n".join(inspect.getsource(h).rstrip() for h in handlers)


def count_sloc(source: str) -> int:
    """Lines that are neither blank nor comments."""
    return sum(1 for line in source.splitlines() if line.strip() and not line.strip().startswith("#"))
