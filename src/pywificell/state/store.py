"""Persistence of the machine state and its context.

Every key is optional.  A missing or malformed value falls back to its
default; a missing or malformed state means there is no snapshot at all
and the orchestrator re-bootstraps from live observation.
"""

from __future__ import annotations

import logging

from pywificell._constants import (
    CELL_UNKNOWN,
    KEY_CURRENT_ACTION_PREFIX,
    KEY_CURRENT_CELL,
    KEY_CURRENT_NETWORK,
    KEY_INFLIGHT_TRANSITION,
    KEY_PENDING_DATA_RESTORE,
    KEY_SEPARATOR,
    KEY_STATE,
)
from pywificell.exceptions import SnapshotError
from pywificell.kvstore import KeyValueStore
from pywificell.models.context import InflightTransition, StateContext
from pywificell.models.state import State, StateAction
from pywificell.state.networks import NetworkRegistry

_logger = logging.getLogger(__name__)

_PERSISTED_ACTIONS = (StateAction.ON, StateAction.OFF)


def encode_cell(cell_id: int, area_code: int) -> str:
    return f"{cell_id}{KEY_SEPARATOR}{area_code}"


def decode_cell(value: str) -> tuple[int, int]:
    parts = value.split(KEY_SEPARATOR)
    if len(parts) != 2:
        raise SnapshotError(f"malformed cell {value!r}", key=KEY_CURRENT_CELL)
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise SnapshotError(f"malformed cell {value!r}", key=KEY_CURRENT_CELL) from exc


class SnapshotStore:
    """Reads and writes the persisted ``State`` + ``StateContext``."""

    def __init__(self, store: KeyValueStore, networks: NetworkRegistry) -> None:
        self._store = store
        self._networks = networks

    def load_state(self) -> State | None:
        value = self._store.get(KEY_STATE)
        if value is None:
            return None
        try:
            return State.from_name(str(value))
        except ValueError:
            _logger.warning("Discarding malformed persisted state %r", value)
            return None

    def load(self) -> tuple[State, StateContext] | None:
        """Return the persisted snapshot, or ``None`` when there is none."""
        state = self.load_state()
        if state is None:
            return None

        context = StateContext()

        cell_value = self._store.get(KEY_CURRENT_CELL)
        if cell_value is not None:
            try:
                context.cell_id, context.area_code = decode_cell(str(cell_value))
            except SnapshotError:
                _logger.warning("Discarding malformed persisted cell %r", cell_value)
        context.nearby_networks = len(self._networks.networks_by_cell(context.cell))

        for action in _PERSISTED_ACTIONS:
            value = self._store.get(KEY_CURRENT_ACTION_PREFIX + action.value)
            if isinstance(value, bool):
                context.set_action_enabled(action, value)

        network = self._store.get(KEY_CURRENT_NETWORK)
        context.current_network = str(network) if network is not None else None
        context.pending_data_restore = self._store.get(KEY_PENDING_DATA_RESTORE) is True

        inflight = self._store.get(KEY_INFLIGHT_TRANSITION)
        if inflight is not None:
            try:
                context.inflight = InflightTransition.from_persisted(str(inflight))
            except ValueError:
                _logger.warning("Discarding malformed persisted in-flight transition %r", inflight)

        _logger.debug("Loaded snapshot state=%s context=%s", state, context)
        return state, context

    def save(self, state: State | None, context: StateContext | None) -> None:
        """Persist *state* and *context*; ``None`` clears the snapshot."""
        if state is not None:
            self._store.set(KEY_STATE, state.name)
        else:
            self._store.delete(KEY_STATE)

        ctx = context if context is not None else StateContext()

        if ctx.cell_id != CELL_UNKNOWN and ctx.area_code != CELL_UNKNOWN:
            self._store.set(KEY_CURRENT_CELL, encode_cell(ctx.cell_id, ctx.area_code))
        else:
            self._store.delete(KEY_CURRENT_CELL)

        for action in _PERSISTED_ACTIONS:
            key = KEY_CURRENT_ACTION_PREFIX + action.value
            if ctx.is_action_enabled(action):
                self._store.delete(key)
            else:
                self._store.set(key, False)

        if ctx.current_network is not None:
            self._store.set(KEY_CURRENT_NETWORK, ctx.current_network)
        else:
            self._store.delete(KEY_CURRENT_NETWORK)

        if ctx.pending_data_restore:
            self._store.set(KEY_PENDING_DATA_RESTORE, True)
        else:
            self._store.delete(KEY_PENDING_DATA_RESTORE)

        if ctx.inflight is not None:
            self._store.set(KEY_INFLIGHT_TRANSITION, ctx.inflight.to_persisted())
        else:
            self._store.delete(KEY_INFLIGHT_TRANSITION)
