"""Persistent registry of known networks and their cell associations."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pywificell._constants import CELL_UNKNOWN, KEY_NETWORK_REGISTRY
from pywificell.kvstore import KeyValueStore
from pywificell.models.state import StateAction

_logger = logging.getLogger(__name__)

Cell = tuple[int, int]


class NetworkRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cells: list[Cell] = Field(default_factory=list)
    # Only disabled actions are stored; absent means enabled.
    actions: dict[StateAction, bool] = Field(default_factory=dict)


class RegistryDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    networks: dict[str, NetworkRecord] = Field(default_factory=dict)
    disabled_cells: list[Cell] = Field(default_factory=list)


class NetworkRegistry:
    """Known networks, the cells where they were seen and per-network preferences.

    The registry is stored as one document under a single key of the
    backing :class:`~pywificell.kvstore.KeyValueStore`.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def _load(self) -> RegistryDocument:
        raw = self._store.get(KEY_NETWORK_REGISTRY)
        if raw is None:
            return RegistryDocument()
        try:
            return RegistryDocument.model_validate(raw)
        except ValidationError:
            _logger.warning("Network registry is malformed; starting empty", exc_info=True)
            return RegistryDocument()

    def _save(self, document: RegistryDocument) -> None:
        self._store.set(KEY_NETWORK_REGISTRY, document.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Networks and associations
    # ------------------------------------------------------------------

    def is_known(self, network: str | None) -> bool:
        return network is not None and network in self._load().networks

    def known_networks(self) -> set[str]:
        return set(self._load().networks)

    def add_association(self, network: str, cell: Cell) -> bool:
        """Associate *network* with *cell*; returns ``True`` if the association is new."""
        document = self._load()
        record = document.networks.setdefault(network, NetworkRecord())
        if cell in record.cells:
            return False
        record.cells.append(cell)
        self._save(document)
        _logger.debug("Associated network=%s with cell=%s", network, cell)
        return True

    def remove_association(self, network: str, cell: Cell) -> None:
        document = self._load()
        record = document.networks.get(network)
        if record is None or cell not in record.cells:
            return
        record.cells.remove(cell)
        # The enabled mark goes away with the last network bound to the cell.
        if not _networks_by_cell(document, cell) and cell in document.disabled_cells:
            document.disabled_cells.remove(cell)
        self._save(document)

    def remove_network(self, network: str) -> None:
        """Forget *network* with all its associations and preferences."""
        document = self._load()
        record = document.networks.pop(network, None)
        if record is None:
            return
        for cell in record.cells:
            if not _networks_by_cell(document, cell) and cell in document.disabled_cells:
                document.disabled_cells.remove(cell)
        self._save(document)

    def networks_by_cell(self, cell: Cell) -> set[str]:
        return _networks_by_cell(self._load(), cell)

    def cells_by_network(self, network: str) -> list[Cell]:
        record = self._load().networks.get(network)
        return list(record.cells) if record is not None else []

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def action_enabled(self, action: StateAction, network: str | None) -> bool:
        """Whether *action* is enabled for *network*; non-deactivable actions always are."""
        if network is None or not action.deactivable:
            return True
        record = self._load().networks.get(network)
        if record is None:
            return True
        return record.actions.get(action, True)

    def any_action_enabled(self, action: StateAction, networks: Iterable[str]) -> bool:
        """Whether any of *networks* enables *action*; ``True`` for no networks."""
        networks = list(networks)
        if not networks:
            return True
        return any(self.action_enabled(action, network) for network in networks)

    def set_action_enabled(self, action: StateAction, network: str, value: bool) -> None:
        document = self._load()
        record = document.networks.setdefault(network, NetworkRecord())
        if value:
            record.actions.pop(action, None)
        else:
            record.actions[action] = False
        self._save(document)

    def network_enabled(self, network: str | None) -> bool:
        """Whether any deactivable action is enabled for *network*."""
        return any(self.action_enabled(action, network) for action in StateAction if action.deactivable)

    def set_network_enabled(self, network: str, value: bool) -> None:
        for action in StateAction:
            if action.deactivable:
                self.set_action_enabled(action, network, value)

    def count_enabled(self, networks: Iterable[str]) -> int:
        return sum(1 for network in networks if self.network_enabled(network))

    def cell_enabled(self, cell: Cell) -> bool:
        """Whether *cell* takes part in location resolution; the unknown cell never does."""
        if cell[0] == CELL_UNKNOWN or cell[1] == CELL_UNKNOWN:
            return False
        return cell not in self._load().disabled_cells

    def set_cell_enabled(self, cell: Cell, enabled: bool) -> None:
        document = self._load()
        if enabled and cell in document.disabled_cells:
            document.disabled_cells.remove(cell)
        elif not enabled and cell not in document.disabled_cells:
            document.disabled_cells.append(cell)
        else:
            return
        self._save(document)


def _networks_by_cell(document: RegistryDocument, cell: Cell) -> set[str]:
    return {network for network, record in document.networks.items() if cell in record.cells}
