"""
Pagekit Kernel - Renderer

Pure function: (snapshot, options) -> HTML fragment.
No IO. Deterministic: same input, same output.

The server owns the UI. Every widget is rendered here with a `data-event`
attribute holding the event it sends back ({"t": ..., "p": ...}). The page
script posts that event, the reducer produces a new snapshot and the task
fragment is re-rendered from it.

Templates are mustache (chevron). Values are escaped by chevron unless a
template uses triple braces for an already-rendered fragment.
"""

from __future__ import annotations

import json
import math
from datetime import date
from typing import Any

import chevron

from engine.kernel.reducer import (
    booking_defaults,
    booking_ready,
    timer_elapsed,
    visible_people,
)
from engine.kernel.todos import EMPTY_MESSAGE, default_due_by, filter_done, parse_due_by, toggle_label
from engine.kernel.types import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    CIRCLE_MAX_RADIUS,
    CIRCLE_MIN_RADIUS,
    COLUMNS,
    ROWS,
    TASKS,
    TIMER_MAX_DURATION,
    CellValue,
    is_error_marker,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_page(title: str, body: str, *, script: str | None = "guis") -> str:
    """
    Wrap a rendered body in a complete HTML document.

    `script` picks the page behaviour: "guis" posts widget events, "todos"
    drives a todo table over its REST routes and websocket, None adds nothing.
    """
    return chevron.render(
        _PAGE_TEMPLATE,
        {"title": title, "body": body, "script": _SCRIPTS.get(script, "") if script else ""},
    )


def render_nav(active: str) -> str:
    tabs = [{"task": t, "active": t == active, "event": _event("nav.select", task=t)} for t in TASKS]
    return chevron.render(_NAV_TEMPLATE, {"tabs": tabs})


def render_task(snapshot: dict[str, Any], *, now: float = 0.0, today: date | None = None) -> str:
    """
    Render the active task of a seven GUIs snapshot.

    `now` (epoch seconds) drives the timer, `today` the booking defaults
    and limits. Both come from the caller so rendering stays pure.
    """
    today = today or date.today()
    task = snapshot.get("task", TASKS[0])
    renderer = _TASK_RENDERERS.get(task)
    if renderer is None:
        return ""
    return chevron.render(_TASK_TEMPLATE, {"task": task, "content": renderer(snapshot, now, today)})


def render_todos(
    todos: list[dict[str, Any]],
    backend: str,
    *,
    selected_id: str | None = None,
    hide_done: bool = False,
    title: str = "Todo List",
    today: date | None = None,
) -> str:
    """Render a todo table with its toggle / delete / new buttons."""
    today = today or date.today()
    todos = filter_done(todos, hide_done)
    selected = next((t for t in todos if str(t["id"]) == str(selected_id)), None)
    rows = [
        {
            "id": t["id"],
            "title": t["title"],
            "due_by": format_date_short(t.get("due_by")),
            "done": bool(t.get("done")),
            "selected": selected is t,
        }
        for t in todos
    ]
    return chevron.render(
        _TODOS_TEMPLATE,
        {
            "title": title,
            "backend": backend,
            "rows": rows,
            "empty": EMPTY_MESSAGE if not rows else "",
            "hide_done": hide_done,
            "toggle_label": toggle_label(selected),
            "disabled": selected is None,
            "default_due_by": default_due_by(today).isoformat(),
        },
    )


def format_value(value: CellValue) -> str:
    """
    Display text for a computed cell: error markers as-is, whole numbers
    without a trailing ".0", and JavaScript-style names for non-finite values.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def format_date_short(value: Any) -> str:
    value = parse_due_by(value)
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


# ---------------------------------------------------------------------------
# Task renderers
# ---------------------------------------------------------------------------


def _event(t: str, **p: Any) -> str:
    return json.dumps({"t": t, "p": p}, sort_keys=True)


def _render_counter(snapshot: dict, now: float, today: date) -> str:
    return chevron.render(
        _COUNTER_TEMPLATE,
        {"value": snapshot["counter"]["value"], "event": _event("counter.increment")},
    )


def _render_temperature(snapshot: dict, now: float, today: date) -> str:
    temp = snapshot["temperature"]
    return chevron.render(
        _TEMPERATURE_TEMPLATE,
        {
            "celsius": format_value(temp["celsius"]),
            "fahrenheit": format_value(temp["fahrenheit"]),
            "celsius_event": _event("temperature.set_celsius"),
            "fahrenheit_event": _event("temperature.set_fahrenheit"),
        },
    )


def _render_booking(snapshot: dict, now: float, today: date) -> str:
    booking = snapshot["booking"]
    default_dep, default_ret = booking_defaults(today)
    one_way = booking["mode"] == "one_way"
    return chevron.render(
        _BOOKING_TEMPLATE,
        {
            "one_way": one_way,
            "today": today.isoformat(),
            "departure": booking["departure"] or default_dep.isoformat(),
            "return": booking["return"] or default_ret.isoformat(),
            "return_min": booking["departure"] or today.isoformat(),
            "mode_events": [
                {"value": "one_way", "label": "One-Way Flight", "checked": one_way},
                {"value": "return", "label": "Return Flight", "checked": not one_way},
            ],
            "book_disabled": not booking_ready(booking, today),
            "book_event": _event("booking.book"),
        },
    )


def _render_timer(snapshot: dict, now: float, today: date) -> str:
    timer = snapshot["timer"]
    elapsed = timer_elapsed(timer, now)
    return chevron.render(
        _TIMER_TEMPLATE,
        {
            "elapsed": f"{elapsed:.1f}",
            "duration": format_value(timer["duration"]),
            "max": format_value(TIMER_MAX_DURATION),
            "reset_event": _event("timer.reset"),
        },
    )


def _render_crud(snapshot: dict, now: float, today: date) -> str:
    crud = snapshot["crud"]
    rows = [
        {
            "name": person["name"],
            "surname": person["surname"],
            "selected": index == crud["selected"],
            "event": _event("crud.select", index=position),
        }
        for position, (index, person) in enumerate(visible_people(crud))
    ]
    fields_ready = bool(crud["fields"]["name"].strip() and crud["fields"]["surname"].strip())
    return chevron.render(
        _CRUD_TEMPLATE,
        {
            "filter": crud["filter"],
            "rows": rows,
            "name": crud["fields"]["name"],
            "surname": crud["fields"]["surname"],
            "create_disabled": not fields_ready,
            "update_disabled": crud["selected"] is None or not fields_ready,
            "delete_disabled": crud["selected"] is None,
        },
    )


def _render_circles(snapshot: dict, now: float, today: date) -> str:
    state = snapshot["circles"]
    circles = []
    for i, c in enumerate(state["circles"]):
        selected = i == state["selected"]
        r = state["radius"] if selected and state["radius"] is not None else c["r"]
        circles.append({"x": format_value(c["x"]), "y": format_value(c["y"]), "r": format_value(r), "selected": selected})
    return chevron.render(
        _CIRCLES_TEMPLATE,
        {
            "width": CANVAS_WIDTH,
            "height": CANVAS_HEIGHT,
            "circles": circles,
            "has_selection": state["selected"] is not None,
            "radius": format_value(state["radius"]) if state["radius"] is not None else "",
            "min_radius": format_value(CIRCLE_MIN_RADIUS),
            "max_radius": format_value(CIRCLE_MAX_RADIUS),
            "undo_disabled": not state["undo"],
            "redo_disabled": not state["redo"],
        },
    )


def _render_cells(snapshot: dict, now: float, today: date) -> str:
    raw = snapshot["cells"]["raw"]
    computed = snapshot["cells"]["computed"]
    rows = []
    for row in ROWS:
        cells = []
        for col in COLUMNS:
            address = f"{col}{row}"
            shown = format_value(computed.get(address))
            text = raw.get(address, "")
            cells.append(
                {
                    "address": address,
                    "raw": text,
                    # show the result only where it differs from what was typed
                    "label": shown if shown and shown != text else "",
                    "error": is_error_marker(computed.get(address)),
                }
            )
        rows.append({"row": row, "cells": cells})
    return chevron.render(_CELLS_TEMPLATE, {"columns": list(COLUMNS), "rows": rows})


_TASK_RENDERERS = {
    "Counter": _render_counter,
    "Temperature": _render_temperature,
    "Booking": _render_booking,
    "Timer": _render_timer,
    "Crud": _render_crud,
    "Circles": _render_circles,
    "Cells": _render_cells,
}

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{title}}</title>
<style>
body { font-family: Inter, system-ui, sans-serif; margin: 2rem; color: #1a1a1a; background: #fafaf9; }
nav a { margin-right: 1rem; } nav a.active { font-weight: 600; }
table.cells td { padding: 0; } table.cells input { width: 6rem; }
.label { display: block; font-size: .75rem; color: #4a5568; min-height: 1em; }
.error .label { color: #c53030; }
tr.selected { background: #edf2f7; }
.toast { position: fixed; bottom: 1rem; right: 1rem; background: #2d3748; color: #fff; padding: .5rem 1rem; }
</style>
</head>
<body>
{{{body}}}
{{{script}}}
</body>
</html>
"""

_PAGE_SCRIPT = """<script>
async function sendEvent(el, extra) {
  const event = JSON.parse(el.dataset.event);
  Object.assign(event.p, extra || {});
  const res = await fetch(el.dataset.endpoint || "/api/seven-guis/events", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify(event),
  });
  const data = await res.json();
  if (data.html) document.getElementById("content").innerHTML = data.html;
  if (data.confirm && !window.confirm(data.confirm)) return;
  if (data.toast) showToast(data.toast);
}
function showToast(text) {
  const t = document.createElement("div");
  t.className = "toast"; t.textContent = text; document.body.appendChild(t);
  setTimeout(() => t.remove(), 2000);
}
document.addEventListener("click", (e) => {
  const el = e.target.closest("[data-event]");
  if (!el || el.tagName === "INPUT") return;
  e.preventDefault();
  const extra = el.tagName === "svg" ? {x: e.offsetX, y: e.offsetY, shift: e.shiftKey} : {};
  sendEvent(el, extra);
});
document.addEventListener("change", (e) => {
  const el = e.target.closest("[data-event]");
  if (!el) return;
  const v = el.type === "number" || el.type === "range" ? Number(el.value) : el.value;
  sendEvent(el, {[el.dataset.field || "value"]: v});
});
setInterval(async () => {
  if (!document.querySelector("[data-tick]")) return;
  const res = await fetch("/api/seven-guis/fragment");
  const data = await res.json();
  if (data.html) document.getElementById("content").innerHTML = data.html;
}, 250);
</script>"""

_NAV_TEMPLATE = """<nav>
{{#tabs}}<a href="?task={{task}}" data-event="{{event}}"{{#active}} class="active"{{/active}}>{{task}}</a>
{{/tabs}}</nav>"""

_TASK_TEMPLATE = """<section class="task" data-task="{{task}}">
<h4>{{task}}</h4>
{{{content}}}
</section>"""

_COUNTER_TEMPLATE = """<input id="counter" type="number" value="{{value}}" readonly>
<button id="increment" data-event="{{event}}">Count</button>"""

_TEMPERATURE_TEMPLATE = """<label>Celsius <input id="inC" type="number" step="0.1" value="{{celsius}}" \
data-event="{{celsius_event}}"></label>
<label>Fahrenheit <input id="inF" type="number" step="0.1" value="{{fahrenheit}}" \
data-event="{{fahrenheit_event}}"></label>"""

_BOOKING_TEMPLATE = """<fieldset id="mode">
{{#mode_events}}<label><input type="radio" name="mode" value="{{value}}"{{#checked}} checked{{/checked}} \
data-event='{"t": "booking.set_mode", "p": {}}' data-field="mode"> {{label}}</label>
{{/mode_events}}</fieldset>
<label>Departure <input id="departure" type="date" min="{{today}}" value="{{departure}}" \
data-event='{"t": "booking.set_departure", "p": {}}' data-field="date"></label>
<label>Return <input id="return" type="date" min="{{return_min}}" value="{{return}}" \
data-event='{"t": "booking.set_return", "p": {}}' data-field="date"{{#one_way}} disabled{{/one_way}}></label>
<button id="book" data-event="{{book_event}}"{{#book_disabled}} disabled{{/book_disabled}}>Book</button>"""

_TIMER_TEMPLATE = """<label>Elapsed <progress id="progress" data-tick value="{{elapsed}}" max="{{duration}}"></progress></label>
<span id="seconds">{{elapsed}}s / {{duration}}</span>
<label>Duration <input id="range" type="range" min="0" max="{{max}}" value="{{duration}}" \
data-event='{"t": "timer.set_duration", "p": {}}'></label>
<button id="reset" data-event="{{reset_event}}">Reset</button>"""

_CRUD_TEMPLATE = """<label>Filter prefix <input id="filter" value="{{filter}}" \
data-event='{"t": "crud.filter", "p": {}}' data-field="prefix"></label>
<table id="list">
<thead><tr><th>name</th><th>surname</th></tr></thead>
<tbody>
{{#rows}}<tr data-event="{{event}}"{{#selected}} class="selected"{{/selected}}><td>{{name}}</td><td>{{surname}}</td></tr>
{{/rows}}</tbody>
</table>
<div id="fields">
<label>Name <input id="name" value="{{name}}" required \
data-event='{"t": "crud.set_fields", "p": {}}' data-field="name"></label>
<label>Surname <input id="surname" value="{{surname}}" required \
data-event='{"t": "crud.set_fields", "p": {}}' data-field="surname"></label>
</div>
<button id="create" data-event='{"t": "crud.create", "p": {}}'{{#create_disabled}} disabled{{/create_disabled}}>Create</button>
<button id="update" data-event='{"t": "crud.update", "p": {}}'{{#update_disabled}} disabled{{/update_disabled}}>Update</button>
<button id="delete" data-event='{"t": "crud.delete", "p": {}}'{{#delete_disabled}} disabled{{/delete_disabled}}>Delete</button>"""

_CIRCLES_TEMPLATE = """<p>Click to place a circle.  SHIFT + click to select.</p>
<svg id="canvas" width="{{width}}" height="{{height}}" data-event='{"t": "circles.click", "p": {}}' \
style="border: 1px solid #ccc">
{{#circles}}<circle cx="{{x}}" cy="{{y}}" r="{{r}}" stroke="black" \
fill="{{#selected}}rgba(0,0,0,0.5){{/selected}}{{^selected}}none{{/selected}}"/>
{{/circles}}</svg>
{{#has_selection}}<label>Adjust Radius <input id="radius" type="range" min="{{min_radius}}" max="{{max_radius}}" \
value="{{radius}}" data-event='{"t": "circles.adjust", "p": {}}' data-field="r"></label>
<button id="done" data-event='{"t": "circles.done", "p": {}}'>Done</button>{{/has_selection}}
<button id="undo" data-event='{"t": "circles.undo", "p": {}}'{{#undo_disabled}} disabled{{/undo_disabled}}>Undo</button>
<button id="redo" data-event='{"t": "circles.redo", "p": {}}'{{#redo_disabled}} disabled{{/redo_disabled}}>Redo</button>"""

_CELLS_TEMPLATE = """<p>Cells can contain numbers (eg: 5.4) or simple formulas (eg: "=A1 + B1")</p>
<table class="cells">
<thead><tr><th></th>{{#columns}}<th>{{.}}</th>{{/columns}}</tr></thead>
<tbody>
{{#rows}}<tr><th>{{row}}</th>{{#cells}}<td{{#error}} class="error"{{/error}}><span class="label">{{label}}</span>\
<input id="{{address}}" value="{{raw}}" data-event='{"t": "cells.set", "p": {"address": "{{address}}"}}'></td>{{/cells}}</tr>
{{/rows}}</tbody>
</table>"""

_TODOS_TEMPLATE = """<h1>{{title}}</h1>
<label><input id="hide_done" type="checkbox"{{#hide_done}} checked{{/hide_done}}> Hide Completed Todos</label>
<table id="todos" data-backend="{{backend}}">
<thead><tr><th>Todo</th><th>Due By</th><th>Done</th></tr></thead>
<tbody>
{{#rows}}<tr data-id="{{id}}" data-done="{{done}}"{{#selected}} class="selected"{{/selected}}><td>{{title}}</td>\
<td>{{due_by}}</td><td>{{#done}}&#10003;{{/done}}</td></tr>
{{/rows}}</tbody>
</table>
{{#empty}}<p class="empty">{{empty}}</p>{{/empty}}
<button id="toggle"{{#disabled}} disabled{{/disabled}}>{{toggle_label}}</button>
<button id="delete"{{#disabled}} disabled{{/disabled}}>Delete</button>
<form id="new-todo">
<input name="title" placeholder="Todo" required>
<input name="due_by" type="date" value="{{default_due_by}}" required>
<button id="add" type="submit">New Todo</button>
</form>"""

_TODOS_SCRIPT = """<script>
const table = () => document.getElementById("todos");
const api = () => "/api/" + table().dataset.backend + "/todos";
let selectedId = null;
function showToast(text) {
  const t = document.createElement("div");
  t.className = "toast"; t.textContent = text; document.body.appendChild(t);
  setTimeout(() => t.remove(), 2000);
}
function refresh(html) {
  document.getElementById("content").innerHTML = html;
  const row = selectedId && document.querySelector(`tr[data-id="${selectedId}"]`);
  if (row) select(row); else selectedId = null;
}
function select(row) {
  document.querySelectorAll("#todos tr.selected").forEach((r) => r.classList.remove("selected"));
  row.classList.add("selected");
  selectedId = row.dataset.id;
  const toggle = document.getElementById("toggle");
  toggle.disabled = false; document.getElementById("delete").disabled = false;
  toggle.textContent = row.dataset.done === "True" ? "Mark as Todo" : "Mark as Done";
}
async function call(method, url, body) {
  const res = await fetch(url, {method, headers: {"Content-Type": "application/json"},
    body: body ? JSON.stringify(body) : undefined});
  const data = await res.json();
  if (!res.ok) { showToast(data.detail || "Request failed"); return null; }
  return data;
}
const hideDone = () => document.getElementById("hide_done").checked;
const socket = new WebSocket(location.origin.replace(/^http/, "ws") + "/ws" + location.pathname);
socket.onmessage = (m) => {
  const data = JSON.parse(m.data);
  if (data.type === "todos") call("GET", api() + "?format=html&hide_done=" + hideDone())
    .then((d) => d && refresh(d.html));
};
document.addEventListener("click", async (e) => {
  const row = e.target.closest("#todos tbody tr");
  if (row) { select(row); return; }
  if (e.target.id === "toggle" && selectedId) {
    const data = await call("POST", `${api()}/${selectedId}/toggle`);
    if (data) showToast(data.toast);
  }
  if (e.target.id === "delete" && selectedId && window.confirm("Are you sure?")) {
    const data = await call("DELETE", `${api()}/${selectedId}?confirm=true`);
    if (data) { selectedId = null; showToast(data.toast); }
  }
});
document.addEventListener("change", async (e) => {
  if (e.target.id !== "hide_done") return;
  const data = await call("GET", api() + "?format=html&hide_done=" + hideDone());
  if (data) refresh(data.html);
});
document.addEventListener("submit", async (e) => {
  if (e.target.id !== "new-todo") return;
  e.preventDefault();
  const form = new FormData(e.target);
  const data = await call("POST", api(), {title: form.get("title"), due_by: form.get("due_by")});
  if (data) showToast("Todo added");
});
</script>"""

_SCRIPTS = {"guis": _PAGE_SCRIPT, "todos": _TODOS_SCRIPT}
