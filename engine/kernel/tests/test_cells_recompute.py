"""
Formula Evaluator -- sheet-level recomputation

recompute(raw, previous) evaluates every address independently and reports
whether anything moved, so the page only refreshes when it has to.

Covers:
  - Successes, failures and empty cells side by side
  - Errors stay per-cell and never abort the pass
  - changed flag against the previous computed sheet
  - NaN results compare equal to themselves
  - Order independence
"""

import math

from engine.kernel.cells import recompute


class TestRecompute:
    def test_mixed_sheet(self):
        raw = {
            "A1": "5",
            "B1": "0",
            "C1": "=A1/B1",
            "D1": "",
            "E1": "=A1*2",
            "F1": "=F1+1",
            "G1": "=1+2+3",
            "H1": "oops",
        }
        result = recompute(raw)
        assert result.computed == {
            "A1": 5.0,
            "B1": 0.0,
            "C1": "!DIV_BY_0",
            "D1": None,
            "E1": 10.0,
            "F1": "!CYCLIC",
            "G1": "!FORMULA",
            "H1": "!NaN",
        }
        assert result.changed is True

    def test_mutual_cycle_marks_both(self):
        result = recompute({"A1": "=B1+1", "B1": "=A1+1"})
        assert result.computed == {"A1": "!CYCLIC", "B1": "!CYCLIC"}

    def test_empty_cell_referenced(self):
        result = recompute({"A1": "", "B1": "=A1+1"})
        assert result.computed == {"A1": None, "B1": "!NaN"}

    def test_unchanged_against_previous(self):
        raw = {"A1": "2", "B1": "3", "C1": "=A1+B1"}
        first = recompute(raw)
        second = recompute(raw, first.computed)
        assert second.changed is False
        assert second.computed == first.computed

    def test_changed_when_a_value_moves(self):
        first = recompute({"A1": "2", "B1": "=A1+1"})
        second = recompute({"A1": "5", "B1": "=A1+1"}, first.computed)
        assert second.changed is True
        assert second.computed["B1"] == 6.0

    def test_changed_when_error_kind_moves(self):
        first = recompute({"A1": "=1/0"})
        second = recompute({"A1": "=1+"}, first.computed)
        assert second.changed is True
        assert second.computed["A1"] == "!FORMULA"

    def test_raw_edit_with_same_value_is_unchanged(self):
        first = recompute({"A1": "5"})
        second = recompute({"A1": "5.0"}, first.computed)
        assert second.changed is False

    def test_cleared_cell_is_a_change(self):
        first = recompute({"A1": "5"})
        second = recompute({"A1": ""}, first.computed)
        assert second.changed is True
        assert second.computed["A1"] is None

    def test_dropped_address_is_a_change(self):
        first = recompute({"A1": "5", "B1": "6"})
        second = recompute({"A1": "5"}, first.computed)
        assert second.changed is True

    def test_nan_result_does_not_loop(self):
        raw = {"A1": "1e400", "B1": "1e400", "C1": "=A1-B1"}
        first = recompute(raw)
        assert math.isnan(first.computed["C1"])
        second = recompute(raw, first.computed)
        assert second.changed is False

    def test_order_does_not_matter(self):
        raw = {"C1": "=A1+B1", "A1": "2", "B1": "=A1*4", "D1": "=C1-B1"}
        reordered = dict(reversed(list(raw.items())))
        assert recompute(raw).computed == recompute(reordered).computed

    def test_repeat_is_stable(self):
        raw = {"A1": "1", "B1": "=A1+1", "C1": "=B1+1", "D1": "=D1+1"}
        assert recompute(raw).computed == recompute(raw).computed

    def test_depth_limit_passes_through(self):
        raw = {"A1": "1", "A2": "=A1+1", "A3": "=A2+1", "A4": "=A3+1"}
        result = recompute(raw, max_depth=2)
        assert result.computed["A2"] == 2.0
        assert result.computed["A4"] == "!DEPTH"

    def test_empty_sheet(self):
        result = recompute({})
        assert result.computed == {}
        assert result.changed is False
