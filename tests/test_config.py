from __future__ import annotations

import datetime as dt

import pytest

from pywificell.config import WifiCellConfig, parse_time_of_day
from pywificell.exceptions import WifiCellConfigError


def test_defaults() -> None:
    config = WifiCellConfig()

    assert config.add_new_networks is True
    assert config.unknown_location_activates is False
    assert config.off_after_disconnect_timeout == 0
    assert config.refresh_interval == 15
    assert config.audit_max_files == 3
    assert config.quiet_hours_scheduled is False


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIFICELL_ADD_NEW_NETWORKS", "no")
    monkeypatch.setenv("WIFICELL_QUIET_HOURS_ENABLED", "1")
    monkeypatch.setenv("WIFICELL_QUIET_HOURS_BEGIN", "23:30")
    monkeypatch.setenv("WIFICELL_QUIET_HOURS_END", "06:45")
    monkeypatch.setenv("WIFICELL_OFF_AFTER_DISCONNECT_TIMEOUT", "120")

    config = WifiCellConfig.from_env()

    assert config.add_new_networks is False
    assert config.quiet_hours_enabled is True
    assert config.quiet_hours_begin == dt.time(23, 30)
    assert config.quiet_hours_end == dt.time(6, 45)
    assert config.off_after_disconnect_timeout == 120
    assert config.quiet_hours_scheduled is True


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIFICELL_MOBILE_DATA_MANAGED", "true")
    monkeypatch.setenv("WIFICELL_REFRESH_INTERVAL", "5")

    config = WifiCellConfig.from_env(mobile_data_managed=False, refresh_interval=30, quiet_hours_begin="01:15")

    assert config.mobile_data_managed is False
    assert config.refresh_interval == 30
    assert config.quiet_hours_begin == dt.time(1, 15)


def test_unrecognized_boolean_keeps_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIFICELL_AUDIT_ENABLED", "maybe")

    assert WifiCellConfig.from_env().audit_enabled is True


def test_invalid_integer_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIFICELL_REFRESH_INTERVAL", "often")

    with pytest.raises(WifiCellConfigError, match="WIFICELL_REFRESH_INTERVAL"):
        WifiCellConfig.from_env()


def test_invalid_values_raise() -> None:
    with pytest.raises(WifiCellConfigError):
        WifiCellConfig(off_after_disconnect_timeout=-1)
    with pytest.raises(WifiCellConfigError):
        WifiCellConfig(refresh_interval=0)
    with pytest.raises(WifiCellConfigError):
        WifiCellConfig(audit_max_files=0)


@pytest.mark.parametrize("value", ["7", "07:00:00", "25:00", "aa:bb"])
def test_parse_time_of_day_rejects_malformed(value: str) -> None:
    with pytest.raises(WifiCellConfigError):
        parse_time_of_day(value)


def test_equal_quiet_hours_bounds_are_not_scheduled() -> None:
    config = WifiCellConfig(quiet_hours_enabled=True, quiet_hours_begin=dt.time(8, 0), quiet_hours_end=dt.time(8, 0))

    assert config.quiet_hours_scheduled is False
