"""Per-process working memory shared by one orchestrator invocation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pywificell._constants import CELL_UNKNOWN, TRANSITION_SEPARATOR
from pywificell.models.state import RadioState, StateAction


class InflightTransition(BaseModel):
    """Optimistic prediction of a requested radio change not yet confirmed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    origin: RadioState
    target: RadioState

    def to_persisted(self) -> str:
        return f"{self.origin}{TRANSITION_SEPARATOR}{self.target}"

    @classmethod
    def from_persisted(cls, value: str) -> InflightTransition:
        """Parse ``"ORIGIN:TARGET"``; raises ``ValueError`` when malformed."""
        origin, sep, target = value.partition(TRANSITION_SEPARATOR)
        if not sep:
            raise ValueError(f"malformed in-flight transition {value!r}")
        return cls(origin=RadioState(origin), target=RadioState(target))


class StateContext(BaseModel):
    """Mutable context derived from observations.

    Only the orchestrator mutates it, once per external signal, and it is
    persisted at the end of every invocation.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    cell_id: int = CELL_UNKNOWN
    area_code: int = CELL_UNKNOWN
    operator_id: str | None = None
    nearby_networks: int = 0
    action_enabled: dict[StateAction, bool] = Field(default_factory=dict)
    current_network: str | None = None
    pending_data_restore: bool = False
    inflight: InflightTransition | None = None

    @property
    def cell(self) -> tuple[int, int]:
        return (self.cell_id, self.area_code)

    @property
    def cell_known(self) -> bool:
        return self.cell_id > CELL_UNKNOWN and self.area_code > CELL_UNKNOWN

    def is_action_enabled(self, action: StateAction) -> bool:
        """Aggregate per-cell flag for ``ON``/``OFF``; absent means enabled."""
        return self.action_enabled.get(action, True)

    def set_action_enabled(self, action: StateAction, value: bool) -> None:
        self.action_enabled[action] = value
