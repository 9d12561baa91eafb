"""Typed models for pywificell."""

from pywificell.models.audit import ActivityRecord
from pywificell.models.context import InflightTransition, StateContext
from pywificell.models.signals import LocationObservation, RadioObservation, Signal, SignalKind, parse_signal
from pywificell.models.state import (
    ActionPlan,
    LocationState,
    RadioState,
    RequestedAction,
    State,
    StateAction,
    StateAxis,
    StateEvent,
)

__all__ = [
    "ActionPlan",
    "ActivityRecord",
    "InflightTransition",
    "LocationObservation",
    "LocationState",
    "RadioObservation",
    "RadioState",
    "RequestedAction",
    "Signal",
    "SignalKind",
    "State",
    "StateAction",
    "StateAxis",
    "StateContext",
    "StateEvent",
    "parse_signal",
]
