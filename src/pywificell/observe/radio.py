"""Radio axis observation and radio commands.

Classifies raw driver observations into ``CON``/``DISC``/``OFF``, applies
the in-flight reconciler and issues enable/disable/connect commands.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pywificell._constants import hotspot_active
from pywificell.models.context import StateContext
from pywificell.models.signals import RadioObservation
from pywificell.models.state import RadioState
from pywificell.state.reconciler import WifiTransitionReconciler

_logger = logging.getLogger(__name__)


class RadioDriver(Protocol):
    """Effector and sensor for the managed radio.

    Commands raise :class:`~pywificell.exceptions.RadioCommandError`
    when the driver rejects them.
    """

    def observe(self) -> RadioObservation: ...

    def set_enabled(self, enabled: bool) -> None: ...

    def disconnect(self) -> None: ...

    def connect(self, network_id: str) -> bool:
        """Request association to a configured network; ``False`` if it is not configured."""
        ...

    def hotspot_state(self) -> int | None: ...


def classify(observation: RadioObservation) -> RadioState:
    """Raw radio state of a driver observation."""
    if observation.enabled and observation.connected:
        return RadioState.CON if observation.network_id is not None else RadioState.DISC
    if observation.enabled:
        return RadioState.DISC
    return RadioState.OFF


class RadioStateManager:
    def __init__(self, driver: RadioDriver, reconciler: WifiTransitionReconciler | None = None) -> None:
        self._driver = driver
        self._reconciler = reconciler or WifiTransitionReconciler()

    def observe(self, context: StateContext, observation: RadioObservation | None = None) -> RadioState:
        """Return the effective radio state and refresh ``context.current_network``."""
        raw = observation if observation is not None else self._driver.observe()
        observed = classify(raw)
        _logger.debug("Radio observation enabled=%s connected=%s network=%s", raw.enabled, raw.connected, raw.network_id)
        effective = self._reconciler.reconcile(context, observed)
        context.current_network = raw.network_id if effective is RadioState.CON else None
        return effective

    def _hotspot_active(self, observation: RadioObservation) -> bool:
        if observation.hotspot_state is not None:
            return hotspot_active(observation.hotspot_state)
        return hotspot_active(self._driver.hotspot_state())

    def set_state(self, context: StateContext, target: RadioState) -> bool:
        """Drive the radio towards *target*; returns whether a command was issued.

        The current state is read fresh from the driver, bypassing any
        in-flight prediction.
        """
        raw = self._driver.observe()
        current = classify(raw)
        if current is target:
            return False

        issued = False
        if target is RadioState.OFF:
            _logger.debug("Disabling radio")
            self._driver.set_enabled(False)
            issued = True

        if current is RadioState.OFF:
            _logger.debug("Enabling radio")
            self._driver.set_enabled(True)
            issued = True

        if current is RadioState.CON and target is RadioState.DISC:
            _logger.debug("Disconnecting current network")
            self._driver.disconnect()
            issued = True

        if target is RadioState.CON and context.current_network is not None:
            if self._driver.connect(context.current_network):
                _logger.debug("Reconnecting network %s", context.current_network)
                issued = True

        if issued:
            self._reconciler.record(context, current, target, external_override=self._hotspot_active(raw))
        return issued
