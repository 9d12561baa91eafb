from __future__ import annotations

import pytest

from pywificell.models.state import LocationState, RadioState, State, StateAction, StateEvent
from pywificell.state.machine import StateMachine, general_actions, radio_actions, transition


def _s(name: str) -> State:
    return State.from_name(name)


def test_transition_is_total_over_states_and_events() -> None:
    states = set(State.all())
    assert len(states) == 9

    for state in states:
        for event in StateEvent:
            next_state, plan = transition(state, event)
            assert next_state in states
            assert StateAction.NONE not in plan


def test_transition_is_deterministic() -> None:
    for state in State.all():
        for event in StateEvent:
            assert transition(state, event) == transition(state, event)


def test_init_twice_yields_same_plan_and_keeps_state() -> None:
    for state in State.all():
        machine = StateMachine.from_state(state)
        first = machine.transition(StateEvent.INIT)
        second = machine.transition(StateEvent.INIT)
        assert first == second
        assert machine.current_state == state


def test_event_substitutes_only_its_own_axis() -> None:
    assert _s("IN_CON").transition(StateEvent.OUT) == _s("OUT_CON")
    assert _s("IN_CON").transition(StateEvent.OFF) == _s("IN_OFF")
    assert _s("UNK_DISC").transition(StateEvent.INIT) == _s("UNK_DISC")


def test_connecting_while_off_outside_range_adds_network() -> None:
    next_state, plan = transition(_s("OUT_OFF"), StateEvent.CON)

    assert next_state == _s("OUT_CON")
    assert general_actions(_s("OUT_OFF"), StateEvent.CON) == [StateAction.ADD]
    # Connecting also suspends mobile data.
    assert plan == [StateAction.ADD, StateAction.DATA_OFF]


def test_leaving_range_while_connected_adds_network() -> None:
    next_state, plan = transition(_s("IN_CON"), StateEvent.OUT)

    assert next_state == _s("OUT_CON")
    assert plan == [StateAction.ADD]


def test_bootstrap_in_unknown_region_while_off_requests_on() -> None:
    next_state, plan = transition(_s("UNK_OFF"), StateEvent.INIT)

    assert next_state == _s("UNK_OFF")
    assert plan == [StateAction.ON]


def test_turning_off_while_disconnected_cancels_deferred_off() -> None:
    next_state, plan = transition(_s("IN_DISC"), StateEvent.OFF)

    assert next_state == _s("IN_OFF")
    assert plan == [StateAction.CANCEL_DEFERRED_OFF]


def test_general_actions_come_before_radio_actions() -> None:
    _, plan = transition(_s("IN_DISC"), StateEvent.CON)

    assert plan == [StateAction.ADD, StateAction.CANCEL_DEFERRED_OFF, StateAction.DATA_OFF]


@pytest.mark.parametrize(
    ("state", "event", "expected"),
    [
        ("IN_CON", StateEvent.DISC, [StateAction.CREATE_DEFERRED_OFF, StateAction.DATA_RESTORE]),
        ("OUT_CON", StateEvent.OFF, [StateAction.DATA_RESTORE]),
        ("UNK_CON", StateEvent.INIT, [StateAction.DATA_OFF]),
        ("OUT_DISC", StateEvent.INIT, [StateAction.DATA_RESTORE]),
        ("UNK_OFF", StateEvent.CON, [StateAction.DATA_OFF]),
        ("IN_OFF", StateEvent.DISC, []),
    ],
)
def test_radio_rules_depend_on_radio_axis_only(state: str, event: StateEvent, expected: list[StateAction]) -> None:
    assert radio_actions(_s(state), event) == expected


@pytest.mark.parametrize(
    ("state", "event", "expected"),
    [
        ("IN_DISC", StateEvent.OUT, [StateAction.OFF]),
        ("UNK_DISC", StateEvent.OUT, [StateAction.OFF]),
        ("OUT_OFF", StateEvent.IN, [StateAction.ON]),
        ("UNK_OFF", StateEvent.IN, [StateAction.ON]),
        ("IN_OFF", StateEvent.INIT, [StateAction.ON]),
        ("OUT_DISC", StateEvent.INIT, [StateAction.OFF]),
        ("OUT_CON", StateEvent.INIT, [StateAction.ADD]),
        ("IN_CON", StateEvent.IN, []),
    ],
)
def test_general_rules(state: str, event: StateEvent, expected: list[StateAction]) -> None:
    assert general_actions(_s(state), event) == expected


def test_machine_from_observation_defaults_missing_location_to_unknown() -> None:
    machine = StateMachine.from_observation(None, RadioState.CON)

    assert machine.current_state == State(location=LocationState.UNK, radio=RadioState.CON)
    assert machine.last_event is None
    assert machine.next_actions == []


def test_machine_accepts_events_as_axis_values() -> None:
    machine = StateMachine.from_observation(StateEvent.IN, StateEvent.OFF)

    assert machine.current_state == _s("IN_OFF")


def test_machine_transition_commits_state_and_event_together() -> None:
    machine = StateMachine.from_state(_s("IN_CON"))

    plan = machine.transition(StateEvent.OUT)

    snapshot = machine.snapshot
    assert snapshot.state == _s("OUT_CON")
    assert snapshot.last_event is StateEvent.OUT
    assert plan == machine.next_actions == [StateAction.ADD]


def test_state_names_round_trip_and_reject_garbage() -> None:
    for state in State.all():
        assert State.from_name(state.name) == state
        assert str(state) == state.name

    with pytest.raises(ValueError):
        State.from_name("NOWHERE_CON")
    with pytest.raises(ValueError):
        State.from_name("INCON")
    with pytest.raises(ValueError):
        State.of(StateEvent.CON, StateEvent.IN)
