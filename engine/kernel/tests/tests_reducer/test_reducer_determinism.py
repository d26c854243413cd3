"""
Seven GUIs Reducer -- Determinism Tests

The reducer is a pure, deterministic function: same events in, same
snapshot out, every single time. Anything time dependent arrives in the
payload, so replaying an event log reproduces the page exactly.

Covers:
  - N-times replay identity
  - Incremental vs. full replay equivalence
  - Rejected events leave no trace
  - Empty state is deterministic
  - Replay subset for time-travel
"""

import copy
import json

from engine.kernel.reducer import empty_state, reduce, replay

# ============================================================================
# Helpers
# ============================================================================


def snapshot_json(snapshot):
    """Canonical JSON with sorted keys. NaN serializes as NaN, which is fine for comparison."""
    return json.dumps(snapshot, sort_keys=True)


def build_incremental(events):
    snapshot = empty_state()
    for event in events:
        result = reduce(snapshot, event)
        if result.accepted:
            snapshot = result.snapshot
    return snapshot


def ev(t, **p):
    return {"t": t, "p": p}


EVENTS = [
    ev("counter.increment"),
    ev("counter.increment"),
    ev("nav.select", task="Temperature"),
    ev("temperature.set_celsius", value=-40),
    ev("temperature.set_fahrenheit", value=98.6),
    ev("nav.select", task="Booking"),
    ev("booking.defaults", today="2026-10-19"),
    ev("booking.set_mode", mode="return"),
    ev("booking.set_return", date="2026-11-02"),
    ev("booking.set_return", date="2026-10-01"),  # rejected: before departure
    ev("timer.set_duration", value=45),
    ev("timer.reset", now=1_760_000_000.0),
    ev("crud.set_fields", name="Ada", surname="Lovelace"),
    ev("crud.create"),
    ev("crud.filter", prefix="L"),
    ev("crud.select", index=0),
    ev("crud.set_fields", name="Augusta"),
    ev("crud.update"),
    ev("circles.click", x=50, y=60),
    ev("circles.click", x=200, y=150),
    ev("circles.click", x=200, y=150, shift=True),
    ev("circles.adjust", r=75),
    ev("circles.done"),
    ev("circles.undo"),
    ev("circles.redo"),
    ev("cells.set", address="A1", value="3"),
    ev("cells.set", address="B1", value="=A1*A1"),
    ev("cells.set", address="C1", value="=A1/0"),
    ev("cells.set_many", cells={"D1": "=E1+1", "E1": "=D1+1", "F1": "2.5"}),
    ev("cells.set", address="Z1", value="1"),  # rejected: outside grid
    ev("unknown.event"),  # rejected
]


# ============================================================================
# Replay identity
# ============================================================================


class TestReplayIdentity:
    def test_replay_100_times(self):
        expected = snapshot_json(replay(EVENTS))
        for _ in range(100):
            assert snapshot_json(replay(EVENTS)) == expected

    def test_incremental_matches_replay(self):
        assert snapshot_json(build_incremental(EVENTS)) == snapshot_json(replay(EVENTS))

    def test_final_state(self):
        snap = replay(EVENTS)
        assert snap["counter"]["value"] == 2
        assert snap["temperature"] == {"celsius": 37.0, "fahrenheit": 98.6}
        assert snap["booking"]["return"] == "2026-11-02"
        assert snap["crud"]["people"][-1] == {"name": "Augusta", "surname": "Lovelace"}
        assert snap["circles"]["circles"][1]["r"] == 75.0
        assert snap["cells"]["computed"]["B1"] == "!CYCLIC"
        assert snap["cells"]["computed"]["C1"] == "!DIV_BY_0"
        assert snap["cells"]["computed"]["D1"] == "!CYCLIC"
        assert snap["cells"]["computed"]["F1"] == 2.5

    def test_sequence_counts_accepted_events(self):
        assert replay(EVENTS)["_sequence"] == len(EVENTS) - 3


# ============================================================================
# Purity
# ============================================================================


class TestPurity:
    def test_empty_state_is_fresh(self):
        a = empty_state()
        a["crud"]["people"].clear()
        assert len(empty_state()["crud"]["people"]) == 3

    def test_empty_state_deterministic(self):
        assert snapshot_json(empty_state()) == snapshot_json(empty_state())

    def test_events_not_mutated(self):
        events = copy.deepcopy(EVENTS)
        replay(events)
        assert events == EVENTS

    def test_rejected_event_is_noop(self):
        snap = replay(EVENTS)
        before = snapshot_json(snap)
        result = reduce(snap, ev("crud.update"))
        assert not result.accepted
        assert snapshot_json(snap) == before

    def test_replay_prefix_matches_history(self):
        snapshots = []
        snapshot = empty_state()
        for event in EVENTS:
            result = reduce(snapshot, event)
            if result.accepted:
                snapshot = result.snapshot
            snapshots.append(snapshot_json(snapshot))

        for i in (0, 5, 12, len(EVENTS) - 1):
            assert snapshot_json(replay(EVENTS[: i + 1])) == snapshots[i]
