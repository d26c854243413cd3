"""
Renderer -- task fragments, todo tables and value formatting

Covers:
  - Every task renders inside its section with its widgets
  - Widgets carry the event they send back
  - Cells grid labels and error styling
  - Todo table rows, empty message and toggle label
  - Escaping of user text
  - Value and date formatting
  - Determinism
"""

from datetime import date

import pytest

from engine.kernel.reducer import empty_state, reduce
from engine.kernel.renderer import (
    format_date_short,
    format_value,
    render_nav,
    render_page,
    render_task,
    render_todos,
)
from engine.kernel.todos import EMPTY_MESSAGE

TODAY = date(2026, 10, 19)


def with_task(task, *events):
    snap = empty_state()
    snap["task"] = task
    for t, p in events:
        result = reduce(snap, {"t": t, "p": p})
        assert result.accepted, result.reason
        snap = result.snapshot
    return snap


def render(snap, **kwargs):
    kwargs.setdefault("today", TODAY)
    return render_task(snap, **kwargs)


# ============================================================================
# Page shell
# ============================================================================


class TestPage:
    def test_document(self):
        html = render_page("7 GUIs", "<div id='content'></div>")
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>7 GUIs</title>" in html
        assert "<div id='content'></div>" in html
        assert "sendEvent" in html

    def test_todo_script(self):
        html = render_page("Todos", "", script="todos")
        assert "new WebSocket" in html
        assert "sendEvent" not in html

    def test_no_script(self):
        assert "<script>" not in render_page("Plain", "", script=None)

    def test_title_escaped(self):
        assert "<title>a &lt;b&gt;</title>" in render_page("a <b>", "")

    def test_nav_marks_active(self):
        html = render_nav("Cells")
        assert 'class="active">Cells</a>' in html
        assert html.count('class="active"') == 1
        assert "Counter" in html


# ============================================================================
# Tasks
# ============================================================================


class TestTasks:
    @pytest.mark.parametrize("task", ["Counter", "Temperature", "Booking", "Timer", "Crud", "Circles", "Cells"])
    def test_section_wrapper(self, task):
        html = render(with_task(task))
        assert f'data-task="{task}"' in html
        assert f"<h4>{task}</h4>" in html

    def test_unknown_task_renders_nothing(self):
        snap = empty_state()
        snap["task"] = "Spreadsheet"
        assert render(snap) == ""

    def test_counter(self):
        html = render(with_task("Counter", ("counter.increment", {}), ("counter.increment", {})))
        assert 'value="2"' in html
        assert "counter.increment" in html

    def test_temperature(self):
        html = render(with_task("Temperature", ("temperature.set_celsius", {"value": 37.5})))
        assert 'value="37.5"' in html
        assert 'value="99.5"' in html
        assert "Fahrenheit" in html

    def test_booking_defaults_and_disabled(self):
        html = render(with_task("Booking"))
        assert 'value="2026-10-26"' in html
        assert 'value="2026-10-29"' in html
        # one-way: return input disabled; no dates chosen: Book disabled
        assert 'data-field="date" disabled>' in html
        assert 'id="book"' in html and "disabled>Book" in html

    def test_booking_ready(self):
        snap = with_task(
            "Booking",
            ("booking.defaults", {"today": TODAY.isoformat()}),
            ("booking.set_mode", {"mode": "return"}),
        )
        html = render(snap)
        assert "disabled>Book" not in html
        assert 'data-field="date" disabled>' not in html

    def test_timer_elapsed(self):
        snap = with_task("Timer", ("timer.reset", {"now": 1000.0}))
        html = render(snap, now=1012.34)
        assert "12.3s / 30" in html
        assert 'max="60"' in html

    def test_crud_rows_and_buttons(self):
        snap = with_task("Crud", ("crud.filter", {"prefix": "M"}), ("crud.select", {"index": 0}))
        html = render(snap)
        assert "Mustermann" in html
        assert "Tisch" not in html
        assert 'class="selected"' in html
        assert 'id="delete"' in html
        assert "crud.delete\", \"p\": {}}'>Delete" in html

    def test_crud_nothing_selected(self):
        html = render(with_task("Crud"))
        assert "disabled>Update" in html
        assert "disabled>Delete" in html
        assert "disabled>Create" in html

    def test_circles(self):
        snap = with_task("Circles", ("circles.click", {"x": 100, "y": 80}))
        html = render(snap)
        assert '<circle cx="100" cy="80" r="50"' in html
        assert 'fill="none"' in html
        assert "disabled>Redo" in html
        assert "disabled>Undo" not in html

    def test_circles_selection_shows_pending_radius(self):
        snap = with_task(
            "Circles",
            ("circles.click", {"x": 100, "y": 80}),
            ("circles.click", {"x": 100, "y": 80, "shift": True}),
            ("circles.adjust", {"r": 30}),
        )
        html = render(snap)
        assert 'r="30"' in html
        assert 'id="radius"' in html
        assert "rgba(0,0,0,0.5)" in html


# ============================================================================
# Cells grid
# ============================================================================


class TestCellsGrid:
    def test_grid_shape(self):
        html = render(with_task("Cells"))
        assert html.count("<input id=") == 90
        assert 'id="A1"' in html and 'id="J9"' in html
        assert 'id="A10"' not in html

    def test_label_shows_computed_result(self):
        snap = with_task(
            "Cells",
            ("cells.set_many", {"cells": {"A1": "2", "B1": "3", "C1": "=A1+B1"}}),
        )
        html = render(snap)
        assert '<span class="label">5</span><input id="C1" value="=A1+B1"' in html
        # a literal shows no label since it reads the same
        assert '<span class="label"></span><input id="A1" value="2"' in html

    def test_error_cell_styled(self):
        snap = with_task("Cells", ("cells.set", {"address": "B2", "value": "=B2+1"}))
        html = render(snap)
        assert '<td class="error"><span class="label">!CYCLIC</span><input id="B2"' in html

    def test_raw_text_escaped(self):
        snap = with_task("Cells", ("cells.set", {"address": "A1", "value": '<b>"x"</b>'}))
        html = render(snap)
        assert "&lt;b&gt;&quot;x&quot;&lt;/b&gt;" in html
        assert "<b>" not in html

    def test_edit_event_carries_address(self):
        html = render(with_task("Cells"))
        assert """data-event='{"t": "cells.set", "p": {"address": "D7"}}'""" in html


# ============================================================================
# Todo tables
# ============================================================================


class TestTodos:
    TODOS = [
        {"id": "a", "title": "Buy milk", "due_by": date(2026, 10, 20), "done": False},
        {"id": "b", "title": "Write <report>", "due_by": date(2026, 11, 2), "done": True},
    ]

    def test_rows(self):
        html = render_todos(self.TODOS, "supabase", today=TODAY)
        assert 'data-backend="supabase"' in html
        assert "Buy milk" in html
        assert "Oct 20, 2026" in html
        assert "Write &lt;report&gt;" in html
        assert html.count("&#10003;") == 1
        assert EMPTY_MESSAGE not in html

    def test_empty_message(self):
        html = render_todos([], "neon", today=TODAY)
        assert EMPTY_MESSAGE in html

    def test_hide_done(self):
        html = render_todos(self.TODOS, "neon", hide_done=True, today=TODAY)
        assert "Write" not in html
        assert "checked" in html

    def test_hide_done_with_only_done_rows(self):
        html = render_todos([self.TODOS[1]], "neon", hide_done=True, today=TODAY)
        assert EMPTY_MESSAGE in html

    @pytest.mark.parametrize(
        "selected_id,label",
        [(None, "Toggle"), ("a", "Mark as Done"), ("b", "Mark as Todo")],
    )
    def test_toggle_label(self, selected_id, label):
        html = render_todos(self.TODOS, "firebase", selected_id=selected_id, today=TODAY)
        assert f">{label}</button>" in html

    def test_buttons_disabled_without_selection(self):
        html = render_todos(self.TODOS, "firebase", today=TODAY)
        assert '<button id="toggle" disabled>' in html
        assert '<button id="delete" disabled>' in html

    def test_default_due_date_is_tomorrow(self):
        html = render_todos([], "postgres", today=TODAY)
        assert 'value="2026-10-20"' in html

    def test_integer_ids(self):
        todos = [{"id": 7, "title": "Seven", "due_by": "2026-10-21", "done": False}]
        html = render_todos(todos, "postgres", selected_id="7", today=TODAY)
        assert 'data-id="7" data-done="False" class="selected"' in html
        assert "Oct 21, 2026" in html


# ============================================================================
# Formatting
# ============================================================================


class TestFormatting:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ""),
            (5.0, "5"),
            (-3.0, "-3"),
            (2.5, "2.5"),
            (0.1 + 0.2, "0.30000000000000004"),
            (float("nan"), "NaN"),
            (float("inf"), "Infinity"),
            (float("-inf"), "-Infinity"),
            ("!DIV_BY_0", "!DIV_BY_0"),
        ],
    )
    def test_format_value(self, value, expected):
        assert format_value(value) == expected

    def test_format_date_short(self):
        assert format_date_short(date(2026, 3, 1)) == "Mar 1, 2026"
        assert format_date_short("2026-03-01T00:00:00.000Z") == "Mar 1, 2026"
        assert format_date_short(None) == ""


# ============================================================================
# Determinism
# ============================================================================


class TestDeterminism:
    def test_same_snapshot_same_html(self):
        snap = with_task("Cells", ("cells.set_many", {"cells": {"A1": "1", "A2": "=A1/0"}}))
        assert render(snap) == render(snap)

    def test_render_does_not_mutate(self):
        snap = with_task("Circles", ("circles.click", {"x": 10, "y": 10}))
        before = repr(snap)
        render(snap)
        assert repr(snap) == before
