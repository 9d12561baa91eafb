"""pywificell - Cell-location driven Wi-Fi radio automation engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pywificell")
except PackageNotFoundError:
    __version__ = "0+local"

from pywificell.audit import AuditTrail
from pywificell.config import WifiCellConfig
from pywificell.exceptions import (
    EffectorError,
    MobileDataError,
    RadioCommandError,
    SignalError,
    SnapshotError,
    WifiCellConfigError,
    WifiCellError,
)
from pywificell.kvstore import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from pywificell.models import (
    ActivityRecord,
    InflightTransition,
    LocationObservation,
    LocationState,
    RadioObservation,
    RadioState,
    RequestedAction,
    Signal,
    SignalKind,
    State,
    StateAction,
    StateContext,
    StateEvent,
)
from pywificell.orchestrator import InvocationResult, Orchestrator
from pywificell.scheduler import AsyncioTimerFacility, DeferredActionScheduler, TimerFacility
from pywificell.state.machine import StateMachine
from pywificell.state.policy import ActionValidator
from pywificell.state.reconciler import WifiTransitionReconciler

__all__ = [
    "__version__",
    "ActionValidator",
    "ActivityRecord",
    "AsyncioTimerFacility",
    "AuditTrail",
    "DeferredActionScheduler",
    "EffectorError",
    "InflightTransition",
    "InvocationResult",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LocationObservation",
    "LocationState",
    "MemoryKeyValueStore",
    "MobileDataError",
    "Orchestrator",
    "RadioCommandError",
    "RadioObservation",
    "RadioState",
    "RequestedAction",
    "Signal",
    "SignalError",
    "SignalKind",
    "SnapshotError",
    "State",
    "StateAction",
    "StateContext",
    "StateEvent",
    "StateMachine",
    "TimerFacility",
    "WifiCellConfig",
    "WifiCellConfigError",
    "WifiCellError",
    "WifiTransitionReconciler",
]
