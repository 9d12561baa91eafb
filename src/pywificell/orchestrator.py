"""Top-level sequencer of the automation engine.

Each external :class:`~pywificell.models.signals.Signal` is one
invocation: it is resolved into one or two state machine transitions,
the raw plan is filtered by the :class:`ActionValidator`, the surviving
actions are executed in order, and the state and context are persisted
before one audit record is written.

Usage::

    with Orchestrator(config, store=store, radio=driver, cells=sensor, timers=timers) as engine:
        engine.handle(Signal.bootstrap())
        engine.handle(Signal.radio_change({"connected": True, "enabled": True, "networkId": "home"}))
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from pywificell.audit import AuditTrail
from pywificell.config import WifiCellConfig
from pywificell.exceptions import EffectorError, SignalError
from pywificell.kvstore import KeyValueStore
from pywificell.models.audit import ActivityRecord
from pywificell.models.context import StateContext
from pywificell.models.signals import LocationObservation, RadioObservation, Signal, SignalKind, parse_signal
from pywificell.models.state import (
    ActionPlan,
    RadioState,
    RequestedAction,
    State,
    StateAction,
    StateEvent,
)
from pywificell.observe.location import CellSensor, LocationResolver
from pywificell.observe.mobile_data import MobileDataCapability, MobileDataManager
from pywificell.observe.radio import RadioDriver, RadioStateManager
from pywificell.requested import resolve_requested_action
from pywificell.scheduler import DeferredActionScheduler, TimerFacility
from pywificell.state.machine import StateMachine
from pywificell.state.networks import NetworkRegistry
from pywificell.state.policy import ActionValidator
from pywificell.state.reconciler import WifiTransitionReconciler
from pywificell.state.store import SnapshotStore

_logger = logging.getLogger(__name__)

#: Called for each executed ``ON``/``OFF``/``ADD`` with the action, its
#: cause (requested action or the axis state that triggered it), the
#: invocation timestamp and a copy of the context.  Callbacks run once the
#: invocation has finished and the engine lock is released, so they may
#: deliver further signals.
ActionCallback = Callable[[StateAction, str, dt.datetime, StateContext], None]

# At most one action is recorded per invocation, in this priority.
_RECORD_PRIORITY = (StateAction.ON, StateAction.OFF, StateAction.ADD)
_NOTIFIED_ACTIONS = frozenset(_RECORD_PRIORITY)


def _local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


def recorded_action(executed: ActionPlan) -> StateAction | None:
    """The single action an audit record keeps for *executed*, if any."""
    for action in _RECORD_PRIORITY:
        if action in executed:
            return action
    return None


class InvocationResult(BaseModel):
    """Summary of one processed signal."""

    model_config = ConfigDict(frozen=True)

    kind: SignalKind
    initial_state: State
    final_state: State
    planned: tuple[StateAction, ...] = ()
    executed: tuple[StateAction, ...] = ()
    recorded_action: StateAction | None = None
    requested_action: RequestedAction | None = None


class Orchestrator:
    """Owns the state machine and its context and processes signals one at a time."""

    def __init__(
        self,
        config: WifiCellConfig,
        *,
        store: KeyValueStore,
        radio: RadioDriver,
        cells: CellSensor,
        timers: TimerFacility,
        mobile_data: MobileDataCapability | None = None,
        audit: AuditTrail | None = None,
        on_action: ActionCallback | None = None,
        clock: Callable[[], dt.datetime] = _local_now,
    ) -> None:
        self._config = config
        self._clock = clock
        self._networks = NetworkRegistry(store)
        self._snapshots = SnapshotStore(store, self._networks)
        self._validator = ActionValidator(config, self._networks, clock=clock)
        self._reconciler = WifiTransitionReconciler()
        self._location = LocationResolver(self._networks, cells)
        self._radio = RadioStateManager(radio, self._reconciler)
        self._mobile_data = MobileDataManager(mobile_data)
        self._scheduler = DeferredActionScheduler(timers, self.handle, clock=clock)
        self._audit = audit if config.audit_enabled else None
        self._on_action = on_action

        self._lock = threading.Lock()
        self._machine: StateMachine | None = None
        self._context: StateContext | None = None
        self._followups: deque[Signal] = deque()
        self._notifications: list[tuple[StateAction, str, dt.datetime, StateContext]] = []
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> Orchestrator:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Arm the periodic location refresh and the quiet-hours timers.

        The caller delivers :meth:`Signal.bootstrap` once started.
        """
        with self._lock:
            self._scheduler.schedule_location_refresh(self._config.refresh_interval)
            if self._config.quiet_hours_scheduled:
                self._scheduler.schedule_daily(RequestedAction.SCHEDULED_OFF, self._config.quiet_hours_begin)
                self._scheduler.schedule_daily(RequestedAction.SCHEDULED_ON, self._config.quiet_hours_end)
            else:
                self._scheduler.cancel_requested(RequestedAction.SCHEDULED_OFF)
                self._scheduler.cancel_requested(RequestedAction.SCHEDULED_ON)
            self._started = True
            _logger.debug("Orchestrator started")

    def stop(self) -> None:
        """Cancel every timer and persist an empty snapshot."""
        with self._lock:
            self._scheduler.cancel_location_refresh()
            self._scheduler.cancel_requested(RequestedAction.SCHEDULED_OFF)
            self._scheduler.cancel_requested(RequestedAction.SCHEDULED_ON)
            self._scheduler.cancel_deferred_off()
            self._snapshots.save(None, None)
            self._machine = None
            self._context = None
            self._followups.clear()
            self._notifications.clear()
            self._started = False
            _logger.debug("Orchestrator stopped")

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def networks(self) -> NetworkRegistry:
        return self._networks

    @property
    def scheduler(self) -> DeferredActionScheduler:
        return self._scheduler

    @property
    def current_state(self) -> State | None:
        """State after the last invocation, ``None`` before the first one."""
        machine = self._machine
        return machine.current_state if machine is not None else None

    @property
    def context(self) -> StateContext | None:
        """Copy of the current context."""
        context = self._context
        return context.model_copy(deep=True) if context is not None else None

    # ------------------------------------------------------------------
    # Signal entry points
    # ------------------------------------------------------------------

    def handle_payload(self, payload: Mapping[str, Any]) -> InvocationResult | None:
        """Validate a raw signal payload and process it.

        Malformed payloads are logged and discarded without a transition.
        """
        try:
            signal = parse_signal(payload)
        except SignalError:
            _logger.warning("Discarding malformed signal %r", payload, exc_info=True)
            return None
        return self.handle(signal)

    def handle(self, signal: Signal) -> InvocationResult | None:
        """Process one signal; returns ``None`` when nothing was processed.

        Any failure is logged and abandons the invocation; the engine stays
        usable for the next signal.
        """
        with self._lock:
            result = self._guarded_invoke(signal, followup=False)
            while self._followups:
                self._guarded_invoke(self._followups.popleft(), followup=True)
            notifications, self._notifications = self._notifications, []

        for action, cause, now, context in notifications:
            self._notify(action, cause, now, context)
        return result

    def _guarded_invoke(self, signal: Signal, *, followup: bool) -> InvocationResult | None:
        try:
            return self._invoke(signal, followup=followup)
        except Exception:
            _logger.exception("Invocation for %s signal failed", signal.kind)
            # Drop unsaved transitions; the next signal reloads the last snapshot.
            self._machine = None
            self._context = None
            return None

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> tuple[StateMachine, StateContext]:
        """Return the machine and context, restoring or bootstrapping them lazily."""
        if self._machine is not None and self._context is not None:
            return self._machine, self._context

        loaded = self._snapshots.load()
        if loaded is not None:
            state, context = loaded
            machine = StateMachine.from_state(state)
        else:
            context = StateContext()
            location = self._location.resolve(context)
            radio = self._radio.observe(context)
            machine = StateMachine.from_observation(location, radio)

        self._machine, self._context = machine, context
        return machine, context

    def _validated(self, plan: ActionPlan, machine: StateMachine, context: StateContext) -> ActionPlan:
        # Each transition's plan is checked against the state it led to.
        return self._validator.validate_plan(plan, machine.current_state, context)

    def _location_step(
        self, machine: StateMachine, context: StateContext, observation: LocationObservation | None
    ) -> ActionPlan:
        event = self._location.resolve(context, observation)
        if event is None:
            return []
        return self._validated(machine.transition(event), machine, context)

    def _radio_step(
        self, machine: StateMachine, context: StateContext, observation: RadioObservation | None
    ) -> ActionPlan:
        radio = self._radio.observe(context, observation)
        return self._validated(machine.transition(StateEvent.of(radio)), machine, context)

    def _invoke(self, signal: Signal, *, followup: bool) -> InvocationResult | None:
        kind = signal.signal_kind
        if kind is None:
            _logger.debug("Ignoring unrecognized signal kind %r", signal.kind)
            return None

        if kind is SignalKind.RESTART:
            # Rebuild from the persisted snapshot, or from live observation.
            self._machine = None
            self._context = None

        machine, context = self._ensure_loaded()
        initial = machine.current_state
        now = self._clock()
        requested = signal.requested_action if kind is SignalKind.REQUESTED_ACTION else None

        plan: ActionPlan = []
        if kind is SignalKind.BOOTSTRAP:
            plan += self._validated(machine.transition(StateEvent.INIT), machine, context)
        elif kind is SignalKind.LOCATION_CHANGE:
            plan += self._radio_step(machine, context, signal.radio)
            plan += self._location_step(machine, context, signal.location)
        elif kind is SignalKind.RADIO_CHANGE:
            plan += self._location_step(machine, context, signal.location)
            plan += self._radio_step(machine, context, signal.radio)
        elif kind is SignalKind.REQUESTED_ACTION:
            plan += self._location_step(machine, context, signal.location)
            action = resolve_requested_action(requested, machine.current_state)
            plan += self._validated([action] if action is not StateAction.NONE else [], machine, context)

        final = machine.current_state
        _logger.debug("Signal %s: %s-->%s; validated plan %s", kind, initial, final, plan)

        executed: ActionPlan = []
        for action in plan:
            if self._perform(action, context, requested, now, followup=followup):
                executed.append(action)

        self._snapshots.save(final, context)

        recorded = recorded_action(executed)
        self._record_activity(now, final, recorded, requested, context)

        return InvocationResult(
            kind=kind,
            initial_state=initial,
            final_state=final,
            planned=tuple(plan),
            executed=tuple(executed),
            recorded_action=recorded,
            requested_action=requested,
        )

    # ------------------------------------------------------------------
    # Action execution
    # ------------------------------------------------------------------

    def _perform(
        self,
        action: StateAction,
        context: StateContext,
        requested: RequestedAction | None,
        now: dt.datetime,
        *,
        followup: bool,
    ) -> bool:
        """Execute one action; returns whether it counts as executed."""
        try:
            executed = self._execute(action, context, followup=followup)
        except EffectorError as exc:
            _logger.warning("Action %s failed (%s): %s", action, exc.command or "-", exc, exc_info=True)
            return False

        if executed and action in _NOTIFIED_ACTIONS and self._on_action is not None:
            self._notifications.append(
                (action, self._cause(action, requested), now, context.model_copy(deep=True))
            )
        return executed

    def _execute(self, action: StateAction, context: StateContext, *, followup: bool) -> bool:
        if action is StateAction.ON:
            self._radio.set_state(context, RadioState.DISC)
            return True

        if action is StateAction.OFF:
            self._radio.set_state(context, RadioState.OFF)
            return True

        if action is StateAction.ADD:
            network = context.current_network
            if network is None or not context.cell_known:
                return False
            if not self._networks.add_association(network, context.cell):
                return False
            _logger.debug("Associated network %s with cell %s", network, context.cell)
            # Associations changed; the location axis must be re-resolved.
            if not followup:
                self._followups.append(Signal.location_change())
            return True

        if action is StateAction.CREATE_DEFERRED_OFF:
            self._scheduler.schedule_deferred_off(self._config.off_after_disconnect_timeout)
            return True

        if action is StateAction.CANCEL_DEFERRED_OFF:
            self._scheduler.cancel_deferred_off()
            return True

        if action in (StateAction.DATA_OFF, StateAction.DATA_RESTORE):
            return self._mobile_data.apply(context, action)

        return False

    def _cause(self, action: StateAction, requested: RequestedAction | None) -> str:
        state = self._machine.current_state if self._machine is not None else None
        if action is StateAction.ADD:
            return state.radio.value if state is not None else ""
        if requested is not None:
            return requested.value
        return state.location.value if state is not None else ""

    def _notify(self, action: StateAction, cause: str, now: dt.datetime, context: StateContext) -> None:
        if self._on_action is None:
            return
        try:
            self._on_action(action, cause, now, context)
        except Exception:
            _logger.debug("on_action callback failed", exc_info=True)

    def _record_activity(
        self,
        now: dt.datetime,
        final: State,
        action: StateAction | None,
        requested: RequestedAction | None,
        context: StateContext,
    ) -> None:
        if self._audit is None:
            return
        record = ActivityRecord(
            timestamp=now,
            state=final,
            action=action,
            requested_action=requested,
            payload=(
                context.nearby_networks,
                context.current_network,
                self._config.off_after_disconnect_timeout,
            ),
        )
        try:
            self._audit.write(record)
        except OSError:
            _logger.warning("Unable to write audit record", exc_info=True)
