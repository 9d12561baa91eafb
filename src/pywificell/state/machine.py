"""Finite state machine deciding which actions follow each observation.

:func:`transition` is pure: ``(state, event) -> (next_state, plan)``.
:class:`StateMachine` wraps it with the current state and the last event
processed.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from pywificell.models.state import (
    ActionPlan,
    LocationState,
    RadioState,
    State,
    StateAction,
    StateEvent,
)

_logger = logging.getLogger(__name__)

_IN, _OUT, _UNK = LocationState.IN, LocationState.OUT, LocationState.UNK
_CON, _DISC, _OFF = RadioState.CON, RadioState.DISC, RadioState.OFF

# Keyed by the pre-transition state and the event.
_GENERAL_RULES: dict[tuple[LocationState, RadioState, StateEvent], tuple[StateAction, ...]] = {
    (_IN, _CON, StateEvent.OUT): (StateAction.ADD,),
    (_IN, _DISC, StateEvent.OUT): (StateAction.OFF,),
    (_IN, _DISC, StateEvent.CON): (StateAction.ADD,),
    (_IN, _OFF, StateEvent.INIT): (StateAction.ON,),
    (_IN, _OFF, StateEvent.CON): (StateAction.ADD,),
    (_OUT, _CON, StateEvent.INIT): (StateAction.ADD,),
    (_OUT, _DISC, StateEvent.INIT): (StateAction.OFF,),
    (_OUT, _DISC, StateEvent.CON): (StateAction.ADD,),
    (_OUT, _OFF, StateEvent.CON): (StateAction.ADD,),
    (_OUT, _OFF, StateEvent.IN): (StateAction.ON,),
    # Filtered later unless unknown locations may activate the radio.
    (_OUT, _OFF, StateEvent.UNK): (StateAction.ON,),
    (_UNK, _CON, StateEvent.OUT): (StateAction.ADD,),
    (_UNK, _DISC, StateEvent.OUT): (StateAction.OFF,),
    (_UNK, _OFF, StateEvent.IN): (StateAction.ON,),
    (_UNK, _OFF, StateEvent.INIT): (StateAction.ON,),
}

# Deferred off and mobile data handling, keyed by the pre-transition radio axis only.
_RADIO_RULES: dict[tuple[RadioState, StateEvent], tuple[StateAction, ...]] = {
    (_CON, StateEvent.DISC): (StateAction.CREATE_DEFERRED_OFF, StateAction.DATA_RESTORE),
    (_CON, StateEvent.OFF): (StateAction.DATA_RESTORE,),
    (_CON, StateEvent.INIT): (StateAction.DATA_OFF,),
    (_DISC, StateEvent.CON): (StateAction.CANCEL_DEFERRED_OFF, StateAction.DATA_OFF),
    (_DISC, StateEvent.OFF): (StateAction.CANCEL_DEFERRED_OFF,),
    (_DISC, StateEvent.INIT): (StateAction.DATA_RESTORE,),
    (_OFF, StateEvent.CON): (StateAction.DATA_OFF,),
}


def general_actions(state: State, event: StateEvent) -> ActionPlan:
    """Actions driven by both axes; empty for unmatched combinations."""
    return list(_GENERAL_RULES.get((state.location, state.radio, event), ()))


def radio_actions(state: State, event: StateEvent) -> ActionPlan:
    """Actions driven by the radio axis alone; empty for unmatched combinations."""
    return list(_RADIO_RULES.get((state.radio, event), ()))


def transition(state: State, event: StateEvent) -> tuple[State, ActionPlan]:
    """Return the next state and the ordered raw action plan for *event*.

    Total over all states and events: never raises, never emits ``NONE``.
    """
    next_state = state.transition(event)
    plan = general_actions(state, event)
    plan.extend(radio_actions(state, event))
    return next_state, plan


class MachineSnapshot(NamedTuple):
    state: State
    last_event: StateEvent | None


class StateMachine:
    """Holds the current state and applies :func:`transition` to it.

    The current state and the last event are replaced together so no
    observer sees one updated without the other.
    """

    def __init__(self, state: State) -> None:
        self._snapshot = MachineSnapshot(state, None)
        self._next_actions: ActionPlan = []

    @classmethod
    def from_observation(
        cls,
        location: LocationState | StateEvent | None,
        radio: RadioState | StateEvent,
    ) -> StateMachine:
        """Initialize from raw observed axes; an absent location is ``UNK``."""
        machine = cls(State.of(location, radio))
        _logger.debug("Initial state (observed): %s", machine.current_state)
        return machine

    @classmethod
    def from_state(cls, state: State) -> StateMachine:
        """Initialize from a previously persisted state."""
        machine = cls(state)
        _logger.debug("Initial state (loaded): %s", machine.current_state)
        return machine

    @property
    def current_state(self) -> State:
        return self._snapshot.state

    @property
    def last_event(self) -> StateEvent | None:
        """Last event delivered, or ``None`` right after initialization."""
        return self._snapshot.last_event

    @property
    def snapshot(self) -> MachineSnapshot:
        return self._snapshot

    @property
    def next_actions(self) -> ActionPlan:
        """Raw plan produced by the most recent transition."""
        return list(self._next_actions)

    def transition(self, event: StateEvent) -> ActionPlan:
        """Apply *event*, commit the next state and return the raw plan."""
        current = self._snapshot.state
        next_state, plan = transition(current, event)
        _logger.debug("Event: %s; State: %s-->%s; Actions: %s", event, current, next_state, plan)
        self._snapshot = MachineSnapshot(next_state, event)
        self._next_actions = plan
        return list(plan)
