"""
Pagekit Kernel - Formula Evaluator

Pure functions over a raw sheet (address -> raw text):

  compute(address, sheet)    -> float | None, raises CellError
  evaluate(address, sheet)   -> float | None | error marker
  recompute(raw, previous)   -> Recomputation(computed, changed)

A raw value is empty, a literal number, or a formula of exactly one binary
operation: "=A1+B2", "=A1 * 3", "=10/C4". Operands are literals or
references. References are resolved with an explicit stack so a long
acyclic chain fails with DEPTH instead of exhausting the interpreter stack.

No IO. Deterministic: the same sheet always yields the same values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from engine.kernel.types import (
    FORMULA_PATTERN,
    MAX_DEPTH,
    NUMBER_PATTERN,
    REFERENCE_PATTERN,
    CellError,
    CellValue,
    Recomputation,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute(address: str, sheet: Mapping[str, str], *, max_depth: int = MAX_DEPTH) -> float | None:
    """
    Resolve the value of one cell.

    Returns None when the cell has no raw value. Raises CellError for
    CYCLIC, NAN, FORMULA, BAD, DIV_BY_0 and DEPTH failures.

    The visited set lives for this call only and is shared by every
    reference followed from `address`, so a cell may be resolved at most
    once per top-level call. "=A1+A1" is therefore CYCLIC.
    """
    visited: set[str] = set()
    root = _enter(address, sheet, visited)
    if root is None:
        return None

    stack: list[_Frame] = [root]
    while True:
        frame = stack[-1]
        token = frame.pending()

        if token is not None:
            if is_reference(token):
                if token in visited:
                    raise CellError("CYCLIC")
                if len(stack) >= max_depth:
                    raise CellError("DEPTH")
                child = _enter(token, sheet, visited)
                if child is None:
                    # An empty cell has no numeric value to offer as an operand.
                    raise CellError("NAN")
                stack.append(child)
            else:
                frame.values.append(parse_number(token))
            continue

        value = frame.result()
        stack.pop()
        if not stack:
            return value
        stack[-1].values.append(value)


def evaluate(address: str, sheet: Mapping[str, str], *, max_depth: int = MAX_DEPTH) -> CellValue:
    """Like compute(), but a failure comes back as its error marker."""
    try:
        return compute(address, sheet, max_depth=max_depth)
    except CellError as e:
        return e.marker


def recompute(
    raw: Mapping[str, str],
    previous: Mapping[str, CellValue] | None = None,
    *,
    max_depth: int = MAX_DEPTH,
) -> Recomputation:
    """
    Recompute every address of `raw` independently and compare the result
    with `previous` so the caller can skip a refresh when nothing moved.
    """
    previous = previous or {}
    computed: dict[str, CellValue] = {}
    for address, value in raw.items():
        computed[address] = evaluate(address, raw, max_depth=max_depth) if value else None

    changed = any(not same_value(previous.get(a), v) for a, v in computed.items())
    if not changed:
        changed = any(v is not None and a not in computed for a, v in previous.items())

    return Recomputation(computed=computed, changed=changed)


def is_reference(token: str) -> bool:
    """True when the token starts like a cell address (column letters then digits)."""
    return REFERENCE_PATTERN.match(token) is not None


def parse_number(text: str) -> float:
    """Parse a literal number. Anything else is a NAN failure."""
    stripped = text.strip()
    if not NUMBER_PATTERN.fullmatch(stripped):
        raise CellError("NAN")
    return float(stripped)


def same_value(a: CellValue, b: CellValue) -> bool:
    """Equality for computed values, where NaN equals NaN."""
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return a == b


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


@dataclass
class _Frame:
    """One cell being resolved: its operand tokens and the values found so far."""

    address: str
    operands: list[str]
    op: str | None = None
    values: list[float] = field(default_factory=list)

    def pending(self) -> str | None:
        if len(self.values) < len(self.operands):
            return self.operands[len(self.values)]
        return None

    def result(self) -> float:
        if self.op is None:
            return self.values[0]

        for token, value in zip(self.operands, self.values):
            if math.isnan(value):
                raise CellError("BAD", token)

        a, b = self.values
        return _apply(self.op, a, b)


def _enter(address: str, sheet: Mapping[str, str], visited: set[str]) -> _Frame | None:
    """Mark a cell visited and turn its raw text into a frame. None for an empty cell."""
    visited.add(address)
    raw = sheet.get(address)
    if not raw:
        return None

    if raw.startswith("="):
        m = FORMULA_PATTERN.fullmatch(raw)
        if m is None:
            raise CellError("FORMULA")
        a, op, b = m.groups()
        return _Frame(address=address, operands=[a, b], op=op)

    return _Frame(address=address, operands=[raw])


def _apply(op: str, a: float, b: float) -> float:
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if b == 0:
        raise CellError("DIV_BY_0")
    return a / b
