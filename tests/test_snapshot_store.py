from __future__ import annotations

from pathlib import Path

import pytest

from pywificell._constants import (
    KEY_CURRENT_ACTION_PREFIX,
    KEY_CURRENT_CELL,
    KEY_INFLIGHT_TRANSITION,
    KEY_NETWORK_REGISTRY,
    KEY_STATE,
)
from pywificell.exceptions import SnapshotError
from pywificell.kvstore import JsonFileKeyValueStore, MemoryKeyValueStore
from pywificell.models.context import InflightTransition, StateContext
from pywificell.models.state import RadioState, State, StateAction, StateEvent
from pywificell.state.machine import StateMachine
from pywificell.state.networks import NetworkRegistry
from pywificell.state.store import SnapshotStore, decode_cell, encode_cell


def _snapshots(store: MemoryKeyValueStore | None = None) -> tuple[SnapshotStore, NetworkRegistry]:
    store = store if store is not None else MemoryKeyValueStore()
    networks = NetworkRegistry(store)
    return SnapshotStore(store, networks), networks


def _context() -> StateContext:
    context = StateContext(
        cell_id=11,
        area_code=7,
        operator_id="21401",
        current_network="home",
        pending_data_restore=True,
        inflight=InflightTransition(origin=RadioState.DISC, target=RadioState.CON),
    )
    context.set_action_enabled(StateAction.OFF, False)
    return context


def test_cell_encoding() -> None:
    assert encode_cell(11, 7) == "11_7"
    assert decode_cell("11_7") == (11, 7)

    with pytest.raises(SnapshotError) as exc_info:
        decode_cell("11-7")
    assert exc_info.value.key == KEY_CURRENT_CELL

    with pytest.raises(SnapshotError):
        decode_cell("a_b")


def test_empty_store_has_no_snapshot() -> None:
    snapshots, _ = _snapshots()

    assert snapshots.load() is None


def test_round_trip_restores_state_and_context() -> None:
    snapshots, networks = _snapshots()
    networks.add_association("home", (11, 7))
    networks.add_association("office", (11, 7))

    snapshots.save(State.from_name("IN_CON"), _context())
    loaded = snapshots.load()

    assert loaded is not None
    state, context = loaded
    assert state == State.from_name("IN_CON")
    assert context.cell == (11, 7)
    assert context.nearby_networks == 2
    assert context.is_action_enabled(StateAction.ON) is True
    assert context.is_action_enabled(StateAction.OFF) is False
    assert context.current_network == "home"
    assert context.pending_data_restore is True
    assert context.inflight == InflightTransition(origin=RadioState.DISC, target=RadioState.CON)
    # The operator is not persisted.
    assert context.operator_id is None


def test_reloaded_machine_behaves_like_original() -> None:
    snapshots, _ = _snapshots()
    original = StateMachine.from_state(State.from_name("IN_DISC"))
    snapshots.save(original.current_state, _context())

    loaded = snapshots.load()
    assert loaded is not None
    restored = StateMachine.from_state(loaded[0])

    for event in (StateEvent.CON, StateEvent.OUT, StateEvent.INIT):
        assert restored.transition(event) == original.transition(event)
        assert restored.current_state == original.current_state


def test_defaults_are_not_persisted() -> None:
    store = MemoryKeyValueStore()
    snapshots, _ = _snapshots(store)

    snapshots.save(State.from_name("OUT_OFF"), StateContext())

    assert store.as_dict() == {KEY_STATE: "OUT_OFF"}


def test_saving_none_clears_snapshot() -> None:
    store = MemoryKeyValueStore()
    snapshots, networks = _snapshots(store)
    networks.add_association("home", (11, 7))
    snapshots.save(State.from_name("IN_CON"), _context())

    snapshots.save(None, None)

    assert snapshots.load() is None
    # Network preferences survive a cleared snapshot.
    assert set(store.keys()) == {KEY_NETWORK_REGISTRY}


def test_malformed_state_means_no_snapshot() -> None:
    snapshots, _ = _snapshots(MemoryKeyValueStore({KEY_STATE: "SOMEWHERE_CON", KEY_CURRENT_CELL: "11_7"}))

    assert snapshots.load() is None


def test_malformed_fields_fall_back_to_defaults() -> None:
    store = MemoryKeyValueStore(
        {
            KEY_STATE: "IN_OFF",
            KEY_CURRENT_CELL: "eleven_7",
            KEY_CURRENT_ACTION_PREFIX + "ON": "no",
            KEY_INFLIGHT_TRANSITION: "DISC-CON",
        }
    )
    snapshots, _ = _snapshots(store)

    loaded = snapshots.load()

    assert loaded is not None
    state, context = loaded
    assert state == State.from_name("IN_OFF")
    assert context.cell_known is False
    assert context.is_action_enabled(StateAction.ON) is True
    assert context.inflight is None


def test_json_store_survives_reopen(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JsonFileKeyValueStore(path)
    snapshots, _ = _snapshots(store)
    snapshots.save(State.from_name("UNK_DISC"), _context())

    reopened, _ = _snapshots(JsonFileKeyValueStore(path))
    loaded = reopened.load()

    assert loaded is not None
    assert loaded[0] == State.from_name("UNK_DISC")
    assert loaded[1].current_network == "home"


def test_json_store_ignores_unreadable_file(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileKeyValueStore(path)

    assert list(store.keys()) == []
    store.set(KEY_STATE, "IN_CON")
    assert JsonFileKeyValueStore(path).get(KEY_STATE) == "IN_CON"
