"""Timer-driven requested actions.

:class:`DeferredActionScheduler` turns one-shot and repeating timers into
signals delivered back to the orchestrator.  The timer facility itself is
an external collaborator behind :class:`TimerFacility`;
:class:`AsyncioTimerFacility` implements it on an asyncio event loop.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections.abc import Callable
from typing import Any, Protocol

from pywificell._constants import EXPLICIT_ACTION_REQ, LOCATION_REFRESH_REQ
from pywificell.models.signals import Signal
from pywificell.models.state import RequestedAction

_logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]

#: Rolls an occurrence of a daily request over to the next day.
INTERVAL_DAY = dt.timedelta(days=1)

# A timer firing slightly early must not be re-armed for the same occurrence.
_REARM_GUARD = dt.timedelta(minutes=1)


class TimerFacility(Protocol):
    """Schedules callbacks under stable keys.

    Scheduling a key again replaces the earlier timer.  Cancelling an
    unknown or already fired key is a no-op.
    """

    def schedule_once(self, key: str, when: dt.datetime, callback: TimerCallback) -> None: ...

    def schedule_repeating(
        self, key: str, first: dt.datetime, interval: dt.timedelta, callback: TimerCallback
    ) -> None: ...

    def cancel(self, key: str) -> None: ...


def _local_now() -> dt.datetime:
    return dt.datetime.now()


def next_occurrence(time_of_day: dt.time, now: dt.datetime) -> dt.datetime:
    """Next datetime at *time_of_day*, today when still ahead, tomorrow otherwise."""
    candidate = now.replace(hour=time_of_day.hour, minute=time_of_day.minute, second=0, microsecond=0)
    if candidate < now:
        candidate += INTERVAL_DAY
    return candidate


class AsyncioTimerFacility:
    """Timer facility backed by ``loop.call_later``.

    Must be created and used from the thread running *loop*.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._handles: dict[str, asyncio.TimerHandle] = {}

    @staticmethod
    def _delay(when: dt.datetime) -> float:
        now = dt.datetime.now(when.tzinfo)
        return max(0.0, (when - now).total_seconds())

    def schedule_once(self, key: str, when: dt.datetime, callback: TimerCallback) -> None:
        self.cancel(key)
        self._handles[key] = self._loop.call_later(self._delay(when), self._fire_once, key, callback)
        _logger.debug("Timer set: key=%s at=%s", key, when)

    def schedule_repeating(
        self, key: str, first: dt.datetime, interval: dt.timedelta, callback: TimerCallback
    ) -> None:
        self.cancel(key)
        self._handles[key] = self._loop.call_later(
            self._delay(first), self._fire_repeating, key, interval, callback
        )
        _logger.debug("Repeating timer set: key=%s first=%s interval=%s", key, first, interval)

    def cancel(self, key: str) -> None:
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()
            _logger.debug("Timer canceled: key=%s", key)

    def pending(self, key: str) -> bool:
        return key in self._handles

    def close(self) -> None:
        for key in list(self._handles):
            self.cancel(key)

    def _fire_once(self, key: str, callback: TimerCallback) -> None:
        self._handles.pop(key, None)
        self._run(key, callback)

    def _fire_repeating(self, key: str, interval: dt.timedelta, callback: TimerCallback) -> None:
        self._handles[key] = self._loop.call_later(
            interval.total_seconds(), self._fire_repeating, key, interval, callback
        )
        self._run(key, callback)

    @staticmethod
    def _run(key: str, callback: TimerCallback) -> None:
        try:
            callback()
        except Exception:
            _logger.warning("Timer callback failed key=%s", key, exc_info=True)


class DeferredActionScheduler:
    """Schedules requested actions and location refreshes on a timer facility.

    Each fired timer calls *dispatch* with the matching :class:`Signal`.
    """

    def __init__(
        self,
        timers: TimerFacility,
        dispatch: Callable[[Signal], Any],
        *,
        clock: Callable[[], dt.datetime] = _local_now,
    ) -> None:
        self._timers = timers
        self._dispatch = dispatch
        self._clock = clock

    @staticmethod
    def request_key(action: RequestedAction) -> str:
        """Stable identifier of the timer raising *action*."""
        return EXPLICIT_ACTION_REQ + action.value

    def _requested_callback(self, action: RequestedAction) -> TimerCallback:
        def _fire() -> None:
            _logger.debug("Requested action fired: %s", action)
            self._dispatch(Signal.requested(action))

        return _fire

    def schedule_deferred_off(self, timeout_seconds: int) -> dt.datetime:
        """Schedule a one-shot ``DEFERRED_OFF`` *timeout_seconds* from now."""
        when = self._clock() + dt.timedelta(seconds=timeout_seconds)
        self._timers.schedule_once(
            self.request_key(RequestedAction.DEFERRED_OFF),
            when,
            self._requested_callback(RequestedAction.DEFERRED_OFF),
        )
        return when

    def cancel_deferred_off(self) -> None:
        self._timers.cancel(self.request_key(RequestedAction.DEFERRED_OFF))

    def schedule_daily(self, action: RequestedAction, time_of_day: dt.time) -> dt.datetime:
        """Schedule *action* every day at *time_of_day*; returns the first occurrence.

        Each occurrence is a one-shot timer armed from the wall clock when
        the previous one fires, so clock changes (daylight saving, suspend)
        do not shift the following days.
        """
        key = self.request_key(action)
        dispatch = self._requested_callback(action)

        def _fire() -> None:
            # Re-armed first so a failing dispatch does not end the series.
            self._timers.schedule_once(key, next_occurrence(time_of_day, self._clock() + _REARM_GUARD), _fire)
            dispatch()

        first = next_occurrence(time_of_day, self._clock())
        self._timers.schedule_once(key, first, _fire)
        return first

    def cancel_requested(self, action: RequestedAction) -> None:
        self._timers.cancel(self.request_key(action))

    def schedule_location_refresh(self, interval_minutes: int) -> None:
        """Re-read the cell location every *interval_minutes*."""
        interval = dt.timedelta(minutes=interval_minutes)

        def _fire() -> None:
            self._dispatch(Signal.location_change())

        self._timers.schedule_repeating(
            LOCATION_REFRESH_REQ,
            self._clock() + interval,
            interval,
            _fire,
        )

    def cancel_location_refresh(self) -> None:
        self._timers.cancel(LOCATION_REFRESH_REQ)
