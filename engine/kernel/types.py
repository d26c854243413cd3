"""
Pagekit Kernel - Shared Types

Constants, patterns and small data classes used across cells, reducer,
todos and renderer. These are the contracts that bind the kernel together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

COLUMNS = "ABCDEFGHIJ"
ROWS = range(1, 10)

# Deepest reference chain a single top-level evaluation may follow.
MAX_DEPTH = 256


def grid_addresses() -> list[str]:
    """All addresses of the cells grid in row-major order (A1, B1, ... J9)."""
    return [f"{col}{row}" for row in ROWS for col in COLUMNS]


GRID_ADDRESSES: frozenset[str] = frozenset(grid_addresses())

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

# A token that starts like a cell address is treated as a reference.
REFERENCE_PATTERN = re.compile(r"[A-J]+\d+")
# Exactly one binary operation between two operands.
FORMULA_PATTERN = re.compile(r"=\s*([A-J]*\d+)\s*([-+*/])\s*([A-J]*\d+)\s*")
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# ---------------------------------------------------------------------------
# Cell errors
# ---------------------------------------------------------------------------

CELL_ERROR_KINDS: set[str] = {
    "CYCLIC",
    "NAN",
    "FORMULA",
    "BAD",
    "DIV_BY_0",
    "DEPTH",
}

# Computed cell value: a number, None for an empty cell, or an error marker.
CellValue = float | str | None


class CellError(Exception):
    """
    A per-cell evaluation failure.

    `kind` is one of CELL_ERROR_KINDS. BAD errors carry the operand token
    that resolved to a non-number. `marker` is what the grid displays.
    """

    def __init__(self, kind: str, token: str | None = None) -> None:
        if kind not in CELL_ERROR_KINDS:
            raise ValueError(f"Unknown cell error kind: {kind}")
        self.kind = kind
        self.token = token
        super().__init__(self.marker)

    @property
    def marker(self) -> str:
        if self.kind == "BAD":
            return f"!BAD_{self.token}"
        if self.kind == "NAN":
            return "!NaN"
        return f"!{self.kind}"


def is_error_marker(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("!")


@dataclass
class Recomputation:
    """Result of recomputing a whole raw sheet."""

    computed: dict[str, CellValue]
    changed: bool


# ---------------------------------------------------------------------------
# Seven GUIs
# ---------------------------------------------------------------------------

TASKS: tuple[str, ...] = (
    "Counter",
    "Temperature",
    "Booking",
    "Timer",
    "Crud",
    "Circles",
    "Cells",
)

BOOKING_MODES: set[str] = {"one_way", "return"}

TIMER_MAX_DURATION = 60.0
CIRCLE_DEFAULT_RADIUS = 50.0
CIRCLE_MIN_RADIUS = 10.0
CIRCLE_MAX_RADIUS = 100.0
CANVAS_WIDTH = 400
CANVAS_HEIGHT = 300


class ReduceResult:
    """
    Result of applying one event to a snapshot.
    Never throws, always returns one of these.
    """

    __slots__ = ("snapshot", "accepted", "reason", "signal")

    def __init__(
        self,
        snapshot: dict[str, Any],
        accepted: bool,
        reason: str | None = None,
        signal: dict[str, Any] | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.accepted = accepted
        self.reason = reason
        self.signal = signal  # confirm text, toast, recompute flags

    def __repr__(self) -> str:  # pragma: no cover
        if self.accepted:
            return "ReduceResult(accepted=True)"
        return f"ReduceResult(accepted=False, reason={self.reason!r})"


# ---------------------------------------------------------------------------
# Todo lists
# ---------------------------------------------------------------------------

TODO_BACKENDS: tuple[str, ...] = ("firebase", "neon", "postgres", "supabase")

# Characters Firebase does not allow in a key.
FIREBASE_KEY_PATTERN = re.compile(r"[.#$/\[\]]")
