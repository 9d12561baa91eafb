"""Optimistic tracking of a requested radio change.

Toggling the radio or reassociating to a network is not instantaneous.
Until the hardware confirms the change, the observed raw state still
shows the origin; the reconciler substitutes the requested target so the
orchestrator does not react to its own pending change.

The prediction lives in :attr:`StateContext.inflight`.  It is a single
slot: recording a new prediction overwrites the previous one, and any
observation that disagrees with the origin clears it.
"""

from __future__ import annotations

import logging

from pywificell.models.context import InflightTransition, StateContext
from pywificell.models.state import RadioState

_logger = logging.getLogger(__name__)


class WifiTransitionReconciler:
    def record(
        self,
        context: StateContext,
        origin: RadioState,
        target: RadioState,
        *,
        external_override: bool = False,
    ) -> bool:
        """Remember a requested ``origin --> target`` change.

        Nothing is recorded while an externally imposed radio mode (such as
        a hotspot) is active: the user may cancel the change outside this
        system, so the actual state must be trusted immediately.  Returns
        whether a prediction was recorded.
        """
        if external_override:
            _logger.debug("External radio override active; not tracking %s-->%s", origin, target)
            return False
        context.inflight = InflightTransition(origin=origin, target=target)
        _logger.debug("In-flight radio transition: %s-->%s", origin, target)
        return True

    def reconcile(self, context: StateContext, observed: RadioState) -> RadioState:
        """Return the effective radio state for a fresh raw observation."""
        inflight = context.inflight
        if inflight is None:
            return observed
        if observed != inflight.origin:
            _logger.debug("Clearing in-flight radio transition %s-->%s (observed %s)", inflight.origin, inflight.target, observed)
            context.inflight = None
            return observed
        _logger.debug("Returning in-flight target radio state %s", inflight.target)
        return inflight.target

    def clear(self, context: StateContext) -> None:
        context.inflight = None
