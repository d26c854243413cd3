"""
Todo list helpers -- row shaping, labels and validation.

Covers:
  - Firebase key escaping of emails
  - Realtime-database snapshot -> sorted rows
  - Hide-completed filtering
  - Toggle label and toast text
  - New todo validation
"""

from datetime import date, datetime

import pytest

from engine.kernel.todos import (
    default_due_by,
    escape_email_key,
    filter_done,
    parse_due_by,
    snapshot_to_list,
    toggle_label,
    toggle_toast,
    validate_new_todo,
)

TODAY = date(2026, 10, 19)


class TestEmailKey:
    def test_dots_replaced(self):
        assert escape_email_key("ada.lovelace@example.com") == "ada_lovelace@example_com"

    def test_all_forbidden_characters(self):
        assert escape_email_key("a.b#c$d/e[f]g") == "a_b_c_d_e_f_g"

    def test_plain_key_unchanged(self):
        assert escape_email_key("ada@example") == "ada@example"


class TestParseDueBy:
    @pytest.mark.parametrize(
        "value",
        [
            date(2026, 3, 1),
            datetime(2026, 3, 1, 12, 30),
            "2026-03-01",
            "2026-03-01T00:00:00.000Z",
        ],
    )
    def test_accepted_forms(self, value):
        assert parse_due_by(value) == date(2026, 3, 1)

    @pytest.mark.parametrize("value", [None, "", "tomorrow", 20260301, "2026-13-01"])
    def test_rejected_forms(self, value):
        assert parse_due_by(value) is None


class TestSnapshotToList:
    def test_none_is_empty(self):
        assert snapshot_to_list(None) == []

    def test_rows_sorted_by_due_date(self):
        value = {
            "k2": {"title": "Later", "due_by": "2026-11-01", "done": False},
            "k1": {"title": "Sooner", "due_by": "2026-10-20", "done": True},
            "k3": {"title": "Undated", "done": False},
        }
        rows = snapshot_to_list(value)
        assert [r["id"] for r in rows] == ["k1", "k2", "k3"]
        assert rows[0] == {"id": "k1", "title": "Sooner", "due_by": date(2026, 10, 20), "done": True}
        assert rows[2]["due_by"] is None

    def test_hide_done(self):
        value = {
            "k1": {"title": "Done", "due_by": "2026-10-20", "done": True},
            "k2": {"title": "Open", "due_by": "2026-10-21", "done": False},
        }
        assert [r["id"] for r in snapshot_to_list(value, hide_done=True)] == ["k2"]

    def test_skips_non_objects(self):
        assert snapshot_to_list({"k1": "junk", "k2": {"title": "Ok"}})[0]["id"] == "k2"


class TestFilterDone:
    ROWS = [{"id": 1, "done": True}, {"id": 2, "done": False}]

    def test_show_all(self):
        assert filter_done(self.ROWS, False) == self.ROWS

    def test_hide_done(self):
        assert filter_done(self.ROWS, True) == [{"id": 2, "done": False}]


class TestLabels:
    def test_toggle_label(self):
        assert toggle_label(None) == "Toggle"
        assert toggle_label({"done": False}) == "Mark as Done"
        assert toggle_label({"done": True}) == "Mark as Todo"

    def test_toggle_toast_uses_previous_state(self):
        assert toggle_toast({"done": False}) == "Marked as done"
        assert toggle_toast({"done": True}) == "Marked as todo"


class TestValidation:
    def test_valid(self):
        assert validate_new_todo("Buy milk", "2026-10-20", TODAY) == []

    def test_today_is_allowed(self):
        assert validate_new_todo("Buy milk", TODAY, TODAY) == []

    def test_blank_title(self):
        assert validate_new_todo("   ", "2026-10-20", TODAY) == ["title is required"]

    def test_missing_date(self):
        assert validate_new_todo("Buy milk", None, TODAY) == ["due_by must be a date"]

    def test_past_date(self):
        assert validate_new_todo("Buy milk", "2026-10-18", TODAY) == ["due_by cannot be in the past"]

    def test_all_errors(self):
        assert validate_new_todo(None, "nope", TODAY) == ["title is required", "due_by must be a date"]

    def test_default_due_by(self):
        assert default_due_by(TODAY) == date(2026, 10, 20)
