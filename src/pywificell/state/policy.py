"""Policy filter gating raw transition output against user configuration.

This module intentionally performs *no* side effects: it only decides,
per action, whether the action is enabled in the current state and
context.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Iterable

from pywificell.config import WifiCellConfig
from pywificell.models.context import StateContext
from pywificell.models.state import ActionPlan, LocationState, State, StateAction
from pywificell.state.networks import NetworkRegistry

_logger = logging.getLogger(__name__)


def _minutes(value: dt.time) -> int:
    return value.hour * 60 + value.minute


def outside_quiet_hours(now: dt.time, begin: dt.time, end: dt.time) -> bool:
    """Whether *now* lies outside the ``[begin, end)`` window.

    A window whose end is before its beginning wraps past midnight.  A
    window with equal bounds is empty.
    """
    current, start, stop = _minutes(now), _minutes(begin), _minutes(end)
    if stop >= start:
        return current < start or current >= stop
    return current < start and current >= stop


def _local_now() -> dt.datetime:
    return dt.datetime.now()


class ActionValidator:
    """Decides whether each action of a plan is allowed.

    Suppression is action-local: dropping one action never affects the
    others, and plan order is preserved.
    """

    def __init__(
        self,
        config: WifiCellConfig,
        networks: NetworkRegistry,
        *,
        clock: Callable[[], dt.datetime] = _local_now,
    ) -> None:
        self._config = config
        self._networks = networks
        self._clock = clock

    def is_enabled(self, action: StateAction, state: State, context: StateContext) -> bool:
        config = self._config
        enabled = True

        if action is StateAction.NONE:
            return False

        if action is StateAction.ON:
            if config.quiet_hours_enabled:
                enabled = outside_quiet_hours(self._clock().time(), config.quiet_hours_begin, config.quiet_hours_end)
            if state.location is LocationState.UNK:
                enabled = enabled and config.unknown_location_activates
            # Shares the per-cell aggregate check with OFF.
            enabled = enabled and context.is_action_enabled(action)

        elif action is StateAction.OFF:
            enabled = context.is_action_enabled(action)

        elif action is StateAction.ADD:
            network = context.current_network
            known = self._networks.is_known(network)
            enabled = (not known and config.add_new_networks) or (
                known and self._networks.action_enabled(StateAction.ADD, network)
            )
            # An unknown cell is never associated.
            enabled = enabled and context.cell_known

        elif action in (StateAction.CREATE_DEFERRED_OFF, StateAction.CANCEL_DEFERRED_OFF):
            enabled = config.off_after_disconnect_timeout != 0

        elif action is StateAction.DATA_OFF:
            network = context.current_network
            enabled = config.mobile_data_managed and (
                not self._networks.is_known(network) or self._networks.network_enabled(network)
            )

        elif action is StateAction.DATA_RESTORE:
            enabled = config.mobile_data_managed

        return enabled

    def validate(self, action: StateAction, state: State, context: StateContext) -> StateAction:
        """Return *action* when enabled, ``NONE`` otherwise."""
        if self.is_enabled(action, state, context):
            return action
        _logger.debug("Action %s suppressed in state %s", action, state)
        return StateAction.NONE

    def validate_plan(self, actions: Iterable[StateAction], state: State, context: StateContext) -> ActionPlan:
        """Drop suppressed actions from *actions*, keeping order."""
        return [action for action in actions if self.validate(action, state, context) is not StateAction.NONE]
