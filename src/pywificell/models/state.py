"""State machine value types.

The logical state is a pair of two small closed enums: the location axis
(:class:`LocationState`) and the radio axis (:class:`RadioState`).  Every
pair is one of exactly nine legal values and :class:`State` rejects
anything else at construction time.
"""

from __future__ import annotations

import enum
import itertools
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

# ------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------


class LocationState(enum.StrEnum):
    """Whether the device is inside, outside or in an undetermined known-network region."""

    IN = "IN"
    OUT = "OUT"
    UNK = "UNK"


class RadioState(enum.StrEnum):
    """Whether the managed radio is connected, enabled but disconnected, or disabled."""

    CON = "CON"
    DISC = "DISC"
    OFF = "OFF"


class StateAxis(enum.StrEnum):
    LOCATION = "location"
    RADIO = "radio"


class StateEvent(enum.StrEnum):
    """Events the state machine can handle.

    ``INIT`` is the synthetic bootstrap event and belongs to no axis.
    """

    INIT = "INIT"
    IN = "IN"
    OUT = "OUT"
    UNK = "UNK"
    CON = "CON"
    DISC = "DISC"
    OFF = "OFF"

    @property
    def axis(self) -> StateAxis | None:
        if self in _LOCATION_EVENTS:
            return StateAxis.LOCATION
        if self in _RADIO_EVENTS:
            return StateAxis.RADIO
        return None

    @classmethod
    def of(cls, value: LocationState | RadioState) -> StateEvent:
        """Return the observation event matching an axis value."""
        return cls(value.value)


_LOCATION_EVENTS = frozenset({StateEvent.IN, StateEvent.OUT, StateEvent.UNK})
_RADIO_EVENTS = frozenset({StateEvent.CON, StateEvent.DISC, StateEvent.OFF})


class StateAction(enum.StrEnum):
    """Side-effecting actions fired after a state change."""

    NONE = "NONE"
    ADD = "ADD"
    ON = "ON"
    OFF = "OFF"
    CREATE_DEFERRED_OFF = "CREATE_DEFERRED_OFF"
    CANCEL_DEFERRED_OFF = "CANCEL_DEFERRED_OFF"
    DATA_OFF = "DATA_OFF"
    DATA_RESTORE = "DATA_RESTORE"

    @property
    def deactivable(self) -> bool:
        """Whether users can disable this action per network."""
        return self in (StateAction.ADD, StateAction.ON, StateAction.OFF)


#: Ordered sequence of actions produced by transitions.
ActionPlan = list[StateAction]


class RequestedAction(enum.StrEnum):
    """Synthetic events raised by timers rather than by live observation."""

    SCHEDULED_OFF = "SCHEDULED_OFF"
    SCHEDULED_ON = "SCHEDULED_ON"
    DEFERRED_OFF = "DEFERRED_OFF"


# ------------------------------------------------------------------
# State
# ------------------------------------------------------------------


class State(BaseModel):
    """Immutable (location, radio) pair."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    location: LocationState
    radio: RadioState

    @classmethod
    def of(cls, location: Any, radio: Any) -> State:
        """Validated constructor accepting axis enums, events or their names.

        An absent location defaults to ``UNK``.  Raises :class:`ValueError`
        for values that do not belong to the matching axis.
        """
        if location is None:
            location = LocationState.UNK
        if isinstance(location, enum.Enum):
            location = location.value
        if isinstance(radio, enum.Enum):
            radio = radio.value
        try:
            return cls(location=location, radio=radio)
        except ValidationError as exc:
            raise ValueError(f"no state exists for location={location!s} radio={radio!s}") from exc

    @classmethod
    def from_name(cls, name: str) -> State:
        """Parse a persisted state name such as ``"IN_CON"``."""
        location, sep, radio = name.strip().partition("_")
        if not sep:
            raise ValueError(f"malformed state name {name!r}")
        return cls.of(location, radio)

    @classmethod
    def all(cls) -> tuple[State, ...]:
        """All nine legal states."""
        return tuple(cls(location=loc, radio=rad) for loc, rad in itertools.product(LocationState, RadioState))

    @property
    def name(self) -> str:
        return f"{self.location}_{self.radio}"

    def transition(self, event: StateEvent) -> State:
        """Return the state reached by substituting the axis *event* belongs to."""
        axis = event.axis
        if axis is StateAxis.LOCATION:
            return State(location=LocationState(event.value), radio=self.radio)
        if axis is StateAxis.RADIO:
            return State(location=self.location, radio=RadioState(event.value))
        return self

    def __str__(self) -> str:
        return self.name
