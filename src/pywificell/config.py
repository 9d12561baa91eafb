"""Engine configuration for pywificell."""

from __future__ import annotations

import dataclasses
import datetime as dt
import os
from typing import Any

from pywificell.exceptions import WifiCellConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_time_of_day(value: str | dt.time) -> dt.time:
    """Parse an ``"HH:MM"`` string into a :class:`datetime.time`.

    Raises :class:`WifiCellConfigError` for malformed values.
    """
    if isinstance(value, dt.time):
        return value
    parts = value.strip().split(":")
    if len(parts) != 2:
        raise WifiCellConfigError(f"time of day must be HH:MM, got {value!r}")
    try:
        return dt.time(int(parts[0]), int(parts[1]))
    except ValueError as exc:
        raise WifiCellConfigError(f"time of day must be HH:MM, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class WifiCellConfig:
    """Engine configuration.

    Parameters
    ----------
    add_new_networks : bool
        Automatically associate networks never seen before with the
        current cell when connecting to them.
    unknown_location_activates : bool
        Allow turning the radio on while the location axis is ``UNK``.
    quiet_hours_enabled : bool
        Enable the daily do-not-disturb window.  While it is active the
        radio is never turned on; it is turned off at its beginning and
        back on at its end.
    quiet_hours_begin : datetime.time
        Beginning of the do-not-disturb window (inclusive).
    quiet_hours_end : datetime.time
        End of the do-not-disturb window (exclusive).  May be earlier than
        the beginning, in which case the window wraps past midnight.
    off_after_disconnect_timeout : int
        Seconds to wait after a disconnection before turning the radio
        off.  ``0`` disables deferred off.
    mobile_data_managed : bool
        Suspend the mobile data bearer while connected to a network.
    refresh_interval : int
        Minutes between periodic location refreshes.
    audit_enabled : bool
        Write one audit record per invocation.
    audit_max_files : int
        Number of daily audit files kept.
    """

    add_new_networks: bool = True
    unknown_location_activates: bool = False
    quiet_hours_enabled: bool = False
    quiet_hours_begin: dt.time = dt.time(0, 0)
    quiet_hours_end: dt.time = dt.time(7, 0)
    off_after_disconnect_timeout: int = 0
    mobile_data_managed: bool = False
    refresh_interval: int = 15
    audit_enabled: bool = True
    audit_max_files: int = 3

    def __post_init__(self) -> None:
        if self.off_after_disconnect_timeout < 0:
            raise WifiCellConfigError("off_after_disconnect_timeout must not be negative")
        if self.refresh_interval <= 0:
            raise WifiCellConfigError("refresh_interval must be positive")
        if self.audit_max_files <= 0:
            raise WifiCellConfigError("audit_max_files must be positive")

    @property
    def quiet_hours_scheduled(self) -> bool:
        """Whether daily scheduled off/on requests apply."""
        return self.quiet_hours_enabled and self.quiet_hours_begin != self.quiet_hours_end

    @classmethod
    def from_env(cls, **overrides: Any) -> WifiCellConfig:
        """Create configuration from environment variables.

        Reads optional ``WIFICELL_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        WifiCellConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_BOOL_MAP = {
            "WIFICELL_ADD_NEW_NETWORKS": ("add_new_networks", True),
            "WIFICELL_UNKNOWN_LOCATION_ACTIVATES": ("unknown_location_activates", False),
            "WIFICELL_QUIET_HOURS_ENABLED": ("quiet_hours_enabled", False),
            "WIFICELL_MOBILE_DATA_MANAGED": ("mobile_data_managed", False),
            "WIFICELL_AUDIT_ENABLED": ("audit_enabled", True),
        }
        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        _ENV_TIME_MAP = {
            "WIFICELL_QUIET_HOURS_BEGIN": "quiet_hours_begin",
            "WIFICELL_QUIET_HOURS_END": "quiet_hours_end",
        }
        for env_key, field_name in _ENV_TIME_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = parse_time_of_day(val)

        _ENV_INT_MAP = {
            "WIFICELL_OFF_AFTER_DISCONNECT_TIMEOUT": "off_after_disconnect_timeout",
            "WIFICELL_REFRESH_INTERVAL": "refresh_interval",
            "WIFICELL_AUDIT_MAX_FILES": "audit_max_files",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = int(val)
                except ValueError as exc:
                    raise WifiCellConfigError(f"{env_key} must be an integer, got {val!r}") from exc

        # Time overrides may be given as "HH:MM" strings
        for field_name in ("quiet_hours_begin", "quiet_hours_end"):
            if field_name in overrides:
                overrides[field_name] = parse_time_of_day(overrides[field_name])

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
