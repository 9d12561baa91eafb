"""Observation and signal payloads consumed by the orchestrator.

Sensors and timers produce these; the shapes follow the camelCase keys
used by the platform (``cellId``, ``areaCode``, ``operatorId``,
``networkId``).
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator

from pywificell.exceptions import SignalError
from pywificell.models._base import WifiCellModel
from pywificell.models.state import RequestedAction


class LocationObservation(WifiCellModel):
    """Cell tower identifiers reported by the cell sensor."""

    cell_id: int | None = None
    area_code: int | None = None
    operator_id: str | None = None

    @property
    def complete(self) -> bool:
        """Whether the observation carries both cell identifiers.

        Incomplete observations are replaced by a live sensor read.
        """
        return self.cell_id is not None and self.area_code is not None


class RadioObservation(WifiCellModel):
    """Connectivity state reported by the radio driver."""

    connected: bool
    enabled: bool
    network_id: str | None = None
    hotspot_state: int | None = Field(default=None, description="Raw access point state, if reported")

    @field_validator("network_id")
    @classmethod
    def _strip_quotes(cls, value: str | None) -> str | None:
        # Some drivers report SSIDs wrapped in double quotes.
        if value is None:
            return None
        cleaned = value.replace('"', "")
        return cleaned or None


class SignalKind(enum.StrEnum):
    BOOTSTRAP = "bootstrap"
    LOCATION_CHANGE = "location_change"
    RADIO_CHANGE = "radio_change"
    REQUESTED_ACTION = "requested_action"
    RESTART = "restart"


class Signal(WifiCellModel):
    """One external signal, processed as one orchestrator invocation.

    ``kind`` is kept as a plain string so unrecognized kinds can be
    logged and ignored rather than rejected.
    """

    kind: str
    location: LocationObservation | None = None
    radio: RadioObservation | None = None
    requested_action: RequestedAction | None = None

    @model_validator(mode="after")
    def _check_required(self) -> Signal:
        if self.kind == SignalKind.REQUESTED_ACTION and self.requested_action is None:
            raise ValueError("requested action signal requires 'requestedAction'")
        return self

    @classmethod
    def bootstrap(cls) -> Signal:
        return cls(kind=SignalKind.BOOTSTRAP)

    @classmethod
    def location_change(cls, location: LocationObservation | dict[str, Any] | None = None) -> Signal:
        return cls(kind=SignalKind.LOCATION_CHANGE, location=location)

    @classmethod
    def radio_change(cls, radio: RadioObservation | dict[str, Any] | None = None) -> Signal:
        return cls(kind=SignalKind.RADIO_CHANGE, radio=radio)

    @classmethod
    def requested(cls, action: RequestedAction) -> Signal:
        return cls(kind=SignalKind.REQUESTED_ACTION, requested_action=action)

    @property
    def signal_kind(self) -> SignalKind | None:
        """The recognized kind, or ``None`` for unknown kinds."""
        try:
            return SignalKind(self.kind)
        except ValueError:
            return None


def parse_signal(payload: Mapping[str, Any]) -> Signal:
    """Validate a raw signal payload.

    Raises :class:`~pywificell.exceptions.SignalError` when required
    fields are missing or malformed.
    """
    try:
        return Signal.model_validate(payload)
    except ValidationError as exc:
        raise SignalError(f"malformed signal: {exc.error_count()} validation error(s)") from exc
