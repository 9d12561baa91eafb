"""Secondary data bearer (mobile data) management.

Suspending mobile data is a platform capability that is not always
available.  It is modeled as a capability with two variants: a supported
one wrapping the platform hooks and :class:`UnsupportedMobileData`, for
which every request is a logged no-op.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pywificell.models.context import StateContext
from pywificell.models.state import StateAction

_logger = logging.getLogger(__name__)


class MobileDataCapability(Protocol):
    @property
    def supported(self) -> bool: ...

    def is_enabled(self) -> bool: ...

    def set_enabled(self, enabled: bool) -> None:
        """Raises :class:`~pywificell.exceptions.MobileDataError` on failure."""
        ...


class UnsupportedMobileData:
    """Capability variant for platforms that cannot toggle mobile data."""

    @property
    def supported(self) -> bool:
        return False

    def is_enabled(self) -> bool:
        return False

    def set_enabled(self, enabled: bool) -> None:
        _logger.debug("Mobile data control unsupported; ignoring set_enabled(%s)", enabled)


class MobileDataManager:
    """Suspends and restores mobile data around radio connections.

    Only a suspension made by this system is remembered (in
    ``context.pending_data_restore``) and later restored.
    """

    def __init__(self, capability: MobileDataCapability | None = None) -> None:
        self._capability = capability or UnsupportedMobileData()

    @property
    def supported(self) -> bool:
        return self._capability.supported

    def apply(self, context: StateContext, action: StateAction) -> bool:
        """Execute ``DATA_OFF`` or ``DATA_RESTORE``; returns whether it was handled."""
        if action not in (StateAction.DATA_OFF, StateAction.DATA_RESTORE):
            return False
        if not self._capability.supported:
            _logger.debug("Mobile data control unsupported; %s skipped", action)
            return False

        if action is StateAction.DATA_RESTORE:
            if context.pending_data_restore:
                if not self._capability.is_enabled():
                    self._capability.set_enabled(True)
                    _logger.debug("Mobile data restored")
                context.pending_data_restore = False
            return True

        if self._capability.is_enabled():
            self._capability.set_enabled(False)
            # Only a suspension done here is restored later.
            context.pending_data_restore = True
            _logger.debug("Mobile data suspended")
        return True
