"""
Pagekit Kernel - Seven GUIs Reducer

Pure function: (snapshot, event) -> ReduceResult
No side effects. No IO. No clock. Deterministic.

Every task of the showcase keeps its state in one slice of the snapshot.
The page handler passes the whole snapshot in by value and stores the
returned snapshot; nothing is captured between calls.

Events are plain dicts: {"t": "counter.increment", "p": {...}}.
Anything time dependent (timer start, booking "today") arrives in the payload.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

from engine.kernel.cells import recompute
from engine.kernel.types import (
    BOOKING_MODES,
    CIRCLE_DEFAULT_RADIUS,
    CIRCLE_MAX_RADIUS,
    CIRCLE_MIN_RADIUS,
    GRID_ADDRESSES,
    MAX_DEPTH,
    TASKS,
    TIMER_MAX_DURATION,
    ReduceResult,
)

# ---------------------------------------------------------------------------
# Snapshot structure
# ---------------------------------------------------------------------------

DEFAULT_PEOPLE: list[dict[str, str]] = [
    {"name": "Hans", "surname": "Emil"},
    {"name": "Max", "surname": "Mustermann"},
    {"name": "Roman", "surname": "Tisch"},
]


def empty_state() -> dict[str, Any]:
    """
    The initial snapshot for a fresh session.

    Snapshot = {
        "task":        active tab,
        "counter":     {value},
        "temperature": {celsius, fahrenheit},
        "booking":     {mode, departure, return},   dates as ISO strings
        "timer":       {start, duration},           start in epoch seconds
        "crud":        {people, filter, selected, fields},
        "circles":     {circles, selected, radius, undo, redo},
        "cells":       {raw, computed},
        "_sequence":   int,
    }
    """
    return {
        "task": TASKS[0],
        "counter": {"value": 0},
        "temperature": {"celsius": 100.0, "fahrenheit": 212.0},
        "booking": {"mode": "one_way", "departure": None, "return": None},
        "timer": {"start": None, "duration": 30.0},
        "crud": {
            "people": copy.deepcopy(DEFAULT_PEOPLE),
            "filter": "",
            "selected": None,
            "fields": {"name": "", "surname": ""},
        },
        "circles": {
            "circles": [],
            "selected": None,
            "radius": None,
            "undo": [],
            "redo": [],
        },
        "cells": {"raw": {}, "computed": {}},
        "_sequence": 0,
    }


def reduce(snapshot: dict[str, Any], event: dict[str, Any], *, max_depth: int = MAX_DEPTH) -> ReduceResult:
    """
    Apply one event to the snapshot.

    The input snapshot is never modified. A rejected event returns the
    original snapshot with accepted=False and a "CODE: message" reason.
    """
    event_type = event.get("t")
    handler = _HANDLERS.get(event_type) if isinstance(event_type, str) else None
    if handler is None:
        return _reject(snapshot, f"UNKNOWN_EVENT: {event_type}")

    payload = event.get("p") or {}
    if not isinstance(payload, dict):
        return _reject(snapshot, "INVALID_PAYLOAD: payload must be an object")

    snap = copy.deepcopy(snapshot)
    if event_type.startswith("cells."):
        result = handler(snap, payload, max_depth)
    else:
        result = handler(snap, payload)

    if not result.accepted:
        return _reject(snapshot, result.reason or "REJECTED")
    result.snapshot["_sequence"] = result.snapshot.get("_sequence", 0) + 1
    return result


def replay(events: list[dict[str, Any]]) -> dict[str, Any]:
    """Rebuild a snapshot by reducing over events, skipping rejected ones."""
    snapshot = empty_state()
    for event in events:
        result = reduce(snapshot, event)
        if result.accepted:
            snapshot = result.snapshot
    return snapshot


# ---------------------------------------------------------------------------
# Derived values (used by the renderer and the page routes)
# ---------------------------------------------------------------------------


def round_half_up(n: float, places: int = 1) -> float:
    """Round like a calculator does: halves go up, not to even."""
    x = 10**places
    return math.floor(n * x + 0.5) / x


def timer_elapsed(timer: dict[str, Any], now: float) -> float:
    """Seconds since start, capped at the duration."""
    start = timer.get("start")
    if start is None:
        return 0.0
    return round_half_up(min(timer["duration"], max(0.0, now - start)), 1)


def visible_people(crud: dict[str, Any]) -> list[tuple[int, dict[str, str]]]:
    """(index, person) pairs whose surname starts with the filter prefix."""
    prefix = crud.get("filter", "").lower()
    return [(i, p) for i, p in enumerate(crud["people"]) if p["surname"].lower().startswith(prefix)]


def booking_defaults(today: date) -> tuple[date, date]:
    """Default departure a week out, return three days after."""
    departure = today + timedelta(days=7)
    return departure, departure + timedelta(days=3)


def booking_ready(booking: dict[str, Any], today: date) -> bool:
    departure = _parse_date(booking.get("departure"))
    if departure is None or departure < today:
        return False
    if booking["mode"] == "one_way":
        return True
    ret = _parse_date(booking.get("return"))
    return ret is not None and ret >= departure


def format_booking_date(d: date) -> str:
    return f"{d.month}/{d.day}/{d.year}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reject(snap: dict, reason: str) -> ReduceResult:
    return ReduceResult(snapshot=snap, accepted=False, reason=reason)


def _ok(snap: dict, signal: dict[str, Any] | None = None) -> ReduceResult:
    return ReduceResult(snapshot=snap, accepted=True, signal=signal)


def _number(value: Any) -> float | None:
    """A JSON number, excluding booleans. None for anything else."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def _parse_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _today(p: dict) -> date | None:
    return _parse_date(p.get("today"))


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def _handle_nav_select(snap: dict, p: dict) -> ReduceResult:
    task = p.get("task")
    if task not in TASKS:
        return _reject(snap, f"UNKNOWN_TASK: {task}")
    snap["task"] = task
    return _ok(snap)


# ---------------------------------------------------------------------------
# Counter
# ---------------------------------------------------------------------------


def _handle_counter_increment(snap: dict, p: dict) -> ReduceResult:
    snap["counter"]["value"] += 1
    return _ok(snap)


# ---------------------------------------------------------------------------
# Temperature converter
# ---------------------------------------------------------------------------


def _handle_temperature_celsius(snap: dict, p: dict) -> ReduceResult:
    value = _number(p.get("value"))
    if value is None:
        return _reject(snap, "INVALID_VALUE: celsius must be a number")
    temp = snap["temperature"]
    if value != temp["celsius"]:
        temp["celsius"] = value
        temp["fahrenheit"] = round_half_up(value * (9 / 5) + 32, 1)
    return _ok(snap)


def _handle_temperature_fahrenheit(snap: dict, p: dict) -> ReduceResult:
    value = _number(p.get("value"))
    if value is None:
        return _reject(snap, "INVALID_VALUE: fahrenheit must be a number")
    temp = snap["temperature"]
    if value != temp["fahrenheit"]:
        temp["fahrenheit"] = value
        temp["celsius"] = round_half_up((value - 32) * (5 / 9), 1)
    return _ok(snap)


# ---------------------------------------------------------------------------
# Flight booker
# ---------------------------------------------------------------------------


def _handle_booking_defaults(snap: dict, p: dict) -> ReduceResult:
    today = _today(p)
    if today is None:
        return _reject(snap, "INVALID_DATE: 'today' is required")
    booking = snap["booking"]
    departure, ret = booking_defaults(today)
    if booking["departure"] is None:
        booking["departure"] = departure.isoformat()
    if booking["return"] is None:
        dep = _parse_date(booking["departure"])
        booking["return"] = (dep + timedelta(days=3) if dep else ret).isoformat()
    return _ok(snap)


def _handle_booking_mode(snap: dict, p: dict) -> ReduceResult:
    mode = p.get("mode")
    if mode not in BOOKING_MODES:
        return _reject(snap, f"INVALID_MODE: {mode}")
    snap["booking"]["mode"] = mode
    return _ok(snap)


def _handle_booking_departure(snap: dict, p: dict) -> ReduceResult:
    departure = _parse_date(p.get("date"))
    if departure is None:
        return _reject(snap, "INVALID_DATE: departure must be an ISO date")
    today = _today(p)
    if today is not None and departure < today:
        return _reject(snap, "DATE_OUT_OF_RANGE: departure is in the past")
    snap["booking"]["departure"] = departure.isoformat()
    return _ok(snap)


def _handle_booking_return(snap: dict, p: dict) -> ReduceResult:
    booking = snap["booking"]
    if booking["mode"] == "one_way":
        return _reject(snap, "DISABLED: return date is not used for one-way flights")
    ret = _parse_date(p.get("date"))
    if ret is None:
        return _reject(snap, "INVALID_DATE: return must be an ISO date")
    departure = _parse_date(booking["departure"])
    if departure is not None and ret < departure:
        return _reject(snap, "DATE_OUT_OF_RANGE: return is before departure")
    booking["return"] = ret.isoformat()
    return _ok(snap)


def _handle_booking_book(snap: dict, p: dict) -> ReduceResult:
    today = _today(p)
    if today is None:
        return _reject(snap, "INVALID_DATE: 'today' is required")
    booking = snap["booking"]
    if not booking_ready(booking, today):
        return _reject(snap, "NOT_READY: booking dates are incomplete or out of range")

    departure = format_booking_date(date.fromisoformat(booking["departure"]))
    if booking["mode"] == "one_way":
        text = f"Book {departure}?"
    else:
        text = f"Book {departure} - {format_booking_date(date.fromisoformat(booking['return']))}?"
    return _ok(snap, signal={"confirm": text})


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


def _handle_timer_duration(snap: dict, p: dict) -> ReduceResult:
    value = _number(p.get("value"))
    if value is None or not 0 <= value <= TIMER_MAX_DURATION:
        return _reject(snap, f"INVALID_VALUE: duration must be between 0 and {TIMER_MAX_DURATION:g}")
    snap["timer"]["duration"] = value
    return _ok(snap)


def _handle_timer_reset(snap: dict, p: dict) -> ReduceResult:
    now = _number(p.get("now"))
    if now is None:
        return _reject(snap, "INVALID_VALUE: 'now' is required")
    snap["timer"]["start"] = now
    return _ok(snap)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def _fields_ready(fields: dict[str, str]) -> bool:
    return bool(fields.get("name", "").strip()) and bool(fields.get("surname", "").strip())


def _handle_crud_filter(snap: dict, p: dict) -> ReduceResult:
    prefix = p.get("prefix", "")
    if not isinstance(prefix, str):
        return _reject(snap, "INVALID_VALUE: prefix must be a string")
    crud = snap["crud"]
    crud["filter"] = prefix
    if crud["selected"] is not None and crud["selected"] not in [i for i, _ in visible_people(crud)]:
        crud["selected"] = None
    return _ok(snap)


def _handle_crud_select(snap: dict, p: dict) -> ReduceResult:
    crud = snap["crud"]
    index = p.get("index")
    if index is None:
        crud["selected"] = None
        return _ok(snap)

    rows = visible_people(crud)
    if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(rows):
        return _reject(snap, f"INVALID_SELECTION: {index}")
    full_index, person = rows[index]
    crud["selected"] = full_index
    crud["fields"] = dict(person)
    return _ok(snap)


def _handle_crud_set_fields(snap: dict, p: dict) -> ReduceResult:
    fields = snap["crud"]["fields"]
    for key in ("name", "surname"):
        if key in p:
            if not isinstance(p[key], str):
                return _reject(snap, f"INVALID_VALUE: {key} must be a string")
            fields[key] = p[key]
    return _ok(snap)


def _handle_crud_create(snap: dict, p: dict) -> ReduceResult:
    crud = snap["crud"]
    if not _fields_ready(crud["fields"]):
        return _reject(snap, "NOT_READY: name and surname are required")
    crud["people"].append({"name": crud["fields"]["name"], "surname": crud["fields"]["surname"]})
    crud["fields"] = {"name": "", "surname": ""}
    return _ok(snap)


def _handle_crud_update(snap: dict, p: dict) -> ReduceResult:
    crud = snap["crud"]
    if crud["selected"] is None:
        return _reject(snap, "NO_SELECTION: select a person to update")
    if not _fields_ready(crud["fields"]):
        return _reject(snap, "NOT_READY: name and surname are required")
    crud["people"][crud["selected"]] = {"name": crud["fields"]["name"], "surname": crud["fields"]["surname"]}
    return _ok(snap)


def _handle_crud_delete(snap: dict, p: dict) -> ReduceResult:
    crud = snap["crud"]
    if crud["selected"] is None:
        return _reject(snap, "NO_SELECTION: select a person to delete")
    del crud["people"][crud["selected"]]
    crud["selected"] = None
    crud["fields"] = {"name": "", "surname": ""}
    return _ok(snap)


# ---------------------------------------------------------------------------
# Circle drawer
# ---------------------------------------------------------------------------


def _history_entry(circles: dict) -> dict[str, Any]:
    return {"circles": copy.deepcopy(circles["circles"]), "selected": circles["selected"]}


def _handle_circles_click(snap: dict, p: dict) -> ReduceResult:
    x, y = _number(p.get("x")), _number(p.get("y"))
    if x is None or y is None:
        return _reject(snap, "INVALID_VALUE: click needs numeric x and y")
    state = snap["circles"]

    if p.get("shift"):
        distances = [(math.hypot(c["x"] - x, c["y"] - y), i) for i, c in enumerate(state["circles"])]
        hits = sorted((d, i) for d, i in distances if d < state["circles"][i]["r"])
        if hits:
            closest = hits[0][1]
            state["selected"] = closest
            state["radius"] = state["circles"][closest]["r"]
        else:
            state["selected"] = None
            state["radius"] = None
        return _ok(snap)

    if state["selected"] is not None:
        state["selected"] = None
        state["radius"] = None
        return _ok(snap)

    state["undo"].append({"circles": copy.deepcopy(state["circles"]), "selected": None})
    state["circles"].append({"x": x, "y": y, "r": CIRCLE_DEFAULT_RADIUS})
    state["redo"] = []
    return _ok(snap)


def _handle_circles_adjust(snap: dict, p: dict) -> ReduceResult:
    state = snap["circles"]
    if state["selected"] is None:
        return _reject(snap, "NO_SELECTION: select a circle first")
    r = _number(p.get("r"))
    if r is None or not CIRCLE_MIN_RADIUS <= r <= CIRCLE_MAX_RADIUS:
        return _reject(snap, f"INVALID_VALUE: radius must be between {CIRCLE_MIN_RADIUS:g} and {CIRCLE_MAX_RADIUS:g}")
    state["radius"] = r
    return _ok(snap)


def _handle_circles_done(snap: dict, p: dict) -> ReduceResult:
    state = snap["circles"]
    selected = state["selected"]
    if selected is None:
        return _reject(snap, "NO_SELECTION: select a circle first")
    state["undo"].append({"circles": copy.deepcopy(state["circles"]), "selected": None})
    if state["radius"] is not None:
        state["circles"][selected]["r"] = state["radius"]
    state["selected"] = None
    state["radius"] = None
    state["redo"] = []
    return _ok(snap)


def _handle_circles_undo(snap: dict, p: dict) -> ReduceResult:
    state = snap["circles"]
    if not state["undo"]:
        return _reject(snap, "EMPTY_HISTORY: nothing to undo")
    previous = state["undo"].pop()
    state["redo"].insert(0, _history_entry(state))
    state["circles"] = previous["circles"]
    state["selected"] = previous["selected"]
    state["radius"] = None
    return _ok(snap)


def _handle_circles_redo(snap: dict, p: dict) -> ReduceResult:
    state = snap["circles"]
    if not state["redo"]:
        return _reject(snap, "EMPTY_HISTORY: nothing to redo")
    following = state["redo"].pop(0)
    state["undo"].append(_history_entry(state))
    state["circles"] = following["circles"]
    state["selected"] = following["selected"]
    state["radius"] = None
    return _ok(snap)


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


def _apply_cell_edits(snap: dict, edits: dict[str, Any], max_depth: int) -> ReduceResult:
    for address, value in edits.items():
        if address not in GRID_ADDRESSES:
            return _reject(snap, f"INVALID_ADDRESS: {address}")
        if not isinstance(value, str):
            return _reject(snap, f"INVALID_VALUE: {address} must be text")

    cells = snap["cells"]
    cells["raw"].update(edits)
    result = recompute(cells["raw"], cells["computed"], max_depth=max_depth)
    if result.changed:
        cells["computed"] = result.computed
    return _ok(snap, signal={"changed": result.changed})


def _handle_cells_set(snap: dict, p: dict, max_depth: int) -> ReduceResult:
    address = p.get("address")
    if not isinstance(address, str):
        return _reject(snap, "INVALID_ADDRESS: address is required")
    return _apply_cell_edits(snap, {address: p.get("value", "")}, max_depth)


def _handle_cells_set_many(snap: dict, p: dict, max_depth: int) -> ReduceResult:
    edits = p.get("cells")
    if not isinstance(edits, dict):
        return _reject(snap, "INVALID_PAYLOAD: cells must be an object")
    return _apply_cell_edits(snap, edits, max_depth)


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[str, Callable[..., ReduceResult]] = {
    "nav.select": _handle_nav_select,
    "counter.increment": _handle_counter_increment,
    "temperature.set_celsius": _handle_temperature_celsius,
    "temperature.set_fahrenheit": _handle_temperature_fahrenheit,
    "booking.defaults": _handle_booking_defaults,
    "booking.set_mode": _handle_booking_mode,
    "booking.set_departure": _handle_booking_departure,
    "booking.set_return": _handle_booking_return,
    "booking.book": _handle_booking_book,
    "timer.set_duration": _handle_timer_duration,
    "timer.reset": _handle_timer_reset,
    "crud.filter": _handle_crud_filter,
    "crud.select": _handle_crud_select,
    "crud.set_fields": _handle_crud_set_fields,
    "crud.create": _handle_crud_create,
    "crud.update": _handle_crud_update,
    "crud.delete": _handle_crud_delete,
    "circles.click": _handle_circles_click,
    "circles.adjust": _handle_circles_adjust,
    "circles.done": _handle_circles_done,
    "circles.undo": _handle_circles_undo,
    "circles.redo": _handle_circles_redo,
    "cells.set": _handle_cells_set,
    "cells.set_many": _handle_cells_set_many,
}

# Handlers grouped by task, for the source listing shown under each demo.
TASK_HANDLERS: dict[str, list[Callable[..., ReduceResult]]] = {
    task: [h for t, h in _HANDLERS.items() if t.split(".")[0] == task.lower()] for task in TASKS
}
