"""Audit trail activity record."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, ValidationError

from pywificell.models.state import RequestedAction, State, StateAction

_logger = logging.getLogger(__name__)

_FIELD_SEPARATOR = "|"
_NULL = ""
_FIXED_FIELDS = 4

# ``$`` escapes itself and the separator inside payload fields.
_ESCAPES = {"$": "$$", "|": "$/"}
_UNESCAPES = {"$": "$", "/": "|"}
_ESCAPE_RE = re.compile(r"[$|]")
_UNESCAPE_RE = re.compile(r"\$([$/])")

#: Nearby network count, current network, disconnect timeout (seconds).
ActivityPayload = tuple[int, str | None, int]


def _encode_payload_field(value: int | str | None) -> str:
    if value is None:
        return _NULL
    return _ESCAPE_RE.sub(lambda match: _ESCAPES[match.group()], str(value))


def _decode_payload_field(value: str) -> str | None:
    # Typed by position when the record is validated.
    if value == _NULL:
        return None
    return _UNESCAPE_RE.sub(lambda match: _UNESCAPES[match.group(1)], value)


class ActivityRecord(BaseModel):
    """One audit entry summarizing an orchestrator invocation.

    Serialized as one ``|``-separated line: epoch milliseconds, final
    state, recorded action, requested action, then the payload fields.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime
    state: State | None = None
    action: StateAction | None = None
    requested_action: RequestedAction | None = None
    payload: ActivityPayload = (0, None, 0)

    def to_line(self) -> str:
        fields = [
            str(int(self.timestamp.timestamp() * 1000)),
            self.state.name if self.state is not None else _NULL,
            self.action.value if self.action is not None else _NULL,
            self.requested_action.value if self.requested_action is not None else _NULL,
        ]
        fields.extend(_encode_payload_field(value) for value in self.payload)
        return _FIELD_SEPARATOR.join(fields) + _FIELD_SEPARATOR

    @classmethod
    def parse_line(cls, line: str) -> ActivityRecord | None:
        """Parse a line written by :meth:`to_line`; ``None`` when unparsable."""
        fields = line.rstrip("\r\n").split(_FIELD_SEPARATOR)
        if fields and fields[-1] == _NULL:
            fields = fields[:-1]
        if len(fields) < _FIXED_FIELDS:
            return None
        try:
            return cls(
                timestamp=datetime.fromtimestamp(int(fields[0]) / 1000, tz=UTC),
                state=State.from_name(fields[1]) if fields[1] else None,
                action=StateAction(fields[2]) if fields[2] else None,
                requested_action=RequestedAction(fields[3]) if fields[3] else None,
                payload=tuple(_decode_payload_field(value) for value in fields[_FIXED_FIELDS:]),
            )
        except (ValueError, ValidationError):
            _logger.debug("Skipping unparsable activity record: %r", line)
            return None
