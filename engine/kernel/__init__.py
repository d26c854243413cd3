"""
Pagekit Kernel - the pure engine.

Four components:
  cells     - formula evaluator: compute(address, sheet), recompute(raw, previous)
  reducer   - (snapshot, event) -> snapshot for the seven GUIs (pure, deterministic)
  todos     - row shaping and validation shared by the todo-list demos
  renderer  - snapshot -> HTML fragment (chevron templates)
"""

from engine.kernel.cells import compute, evaluate, recompute
from engine.kernel.reducer import empty_state, reduce, replay
from engine.kernel.renderer import render_page, render_task, render_todos
from engine.kernel.types import CellError, Recomputation, ReduceResult

__all__ = [
    "compute",
    "evaluate",
    "recompute",
    "reduce",
    "replay",
    "empty_state",
    "render_page",
    "render_task",
    "render_todos",
    "CellError",
    "Recomputation",
    "ReduceResult",
]
