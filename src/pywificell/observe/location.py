"""Location axis observation.

Resolves cell tower identifiers into ``IN``/``OUT``/``UNK`` against the
network registry and refreshes the location part of the context.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pywificell._constants import CELL_UNKNOWN
from pywificell.models.context import StateContext
from pywificell.models.signals import LocationObservation
from pywificell.models.state import StateAction, StateEvent
from pywificell.state.networks import NetworkRegistry

_logger = logging.getLogger(__name__)


class CellSensor(Protocol):
    def current_location(self) -> LocationObservation | None:
        """Live read of the serving cell; ``None`` when there is no fix."""
        ...


class LocationResolver:
    """Turns a location observation into a location-axis event."""

    def __init__(self, networks: NetworkRegistry, sensor: CellSensor) -> None:
        self._networks = networks
        self._sensor = sensor

    def read(self, observation: LocationObservation | None = None) -> LocationObservation:
        """Return *observation*, or a live sensor read when it lacks cell identifiers."""
        if observation is not None and observation.complete:
            return observation
        live = self._sensor.current_location()
        _logger.debug("Location obtained from sensor: %s", live)
        return live if live is not None else LocationObservation()

    def resolve(self, context: StateContext, observation: LocationObservation | None = None) -> StateEvent | None:
        """Resolve the location axis and update *context*.

        Returns ``None`` for a spurious fix (no cell but an operator),
        which is discarded without touching the context.
        """
        location = self.read(observation)
        cid = location.cell_id if location.cell_id is not None else CELL_UNKNOWN
        lac = location.area_code if location.area_code is not None else CELL_UNKNOWN
        operator = location.operator_id

        result: StateEvent | None = None
        num_networks = 0

        if cid > CELL_UNKNOWN and lac > CELL_UNKNOWN:
            cell = (cid, lac)
            networks = self._networks.networks_by_cell(cell) if self._networks.cell_enabled(cell) else set()
            num_networks = self._networks.count_enabled(networks)
            if num_networks > 0:
                result = StateEvent.IN
                # Auto on/off apply in this cell when any of its networks enables them.
                context.set_action_enabled(StateAction.ON, self._networks.any_action_enabled(StateAction.ON, networks))
                context.set_action_enabled(StateAction.OFF, self._networks.any_action_enabled(StateAction.OFF, networks))
            else:
                context.set_action_enabled(StateAction.ON, True)
                result = StateEvent.OUT

        elif not operator:
            result = StateEvent.UNK

        if result is None:
            _logger.debug("Operator %s without cell; spurious location discarded", operator)
            return None

        context.cell_id = cid
        context.area_code = lac
        context.operator_id = operator
        context.nearby_networks = num_networks
        _logger.debug("Location [%s, %s, %s] resolved to %s (%d networks)", lac, cid, operator, result, num_networks)
        return result
