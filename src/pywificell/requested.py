"""Resolution of timer-raised requested actions.

A requested action is mapped to a :class:`StateAction` from the state at
delivery time, not at schedule time.
"""

from __future__ import annotations

import logging

from pywificell.models.state import LocationState, RadioState, RequestedAction, State, StateAction

_logger = logging.getLogger(__name__)


def resolve_requested_action(requested: RequestedAction | None, state: State) -> StateAction:
    """Return the action a requested action stands for in *state*.

    - ``SCHEDULED_OFF`` / ``DEFERRED_OFF``: ``OFF`` unless the radio is already off.
    - ``SCHEDULED_ON``: ``ON`` only inside a known region with the radio off.
    """
    result = StateAction.NONE

    if requested in (RequestedAction.SCHEDULED_OFF, RequestedAction.DEFERRED_OFF):
        if state.radio is not RadioState.OFF:
            result = StateAction.OFF

    elif requested is RequestedAction.SCHEDULED_ON:
        if state.location is LocationState.IN and state.radio is RadioState.OFF:
            result = StateAction.ON

    _logger.debug("Requested action %s in state %s resolved to %s", requested, state, result)
    return result
