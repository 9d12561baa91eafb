"""Custom exception hierarchy for pywificell."""

from __future__ import annotations


class WifiCellError(Exception):
    """Base exception for all pywificell errors."""


class WifiCellConfigError(WifiCellError):
    """Invalid or missing configuration."""


class SnapshotError(WifiCellError):
    """A persisted value could not be decoded.

    Callers treat the value as absent; the orchestrator re-bootstraps
    from live observation when the state itself is unreadable.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class SignalError(WifiCellError):
    """An external signal is missing required fields."""


class EffectorError(WifiCellError):
    """An external effector rejected a command."""

    def __init__(self, message: str, *, command: str = "") -> None:
        self.command = command
        super().__init__(message)


class RadioCommandError(EffectorError):
    """The radio driver rejected an enable/disable/connect command."""


class MobileDataError(EffectorError):
    """The secondary data bearer could not be suspended or restored."""
