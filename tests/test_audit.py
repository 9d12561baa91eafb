from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from pywificell.audit import AuditTrail
from pywificell.models.audit import ActivityRecord
from pywificell.models.state import RequestedAction, State, StateAction


def _ts(day: int, hour: int = 12) -> dt.datetime:
    return dt.datetime(2026, 3, day, hour, 0, tzinfo=dt.UTC)


def _record(day: int, hour: int = 12, **values: object) -> ActivityRecord:
    defaults: dict[str, object] = {
        "timestamp": _ts(day, hour),
        "state": State.from_name("IN_CON"),
        "action": StateAction.ADD,
        "payload": (2, "home", 0),
    }
    defaults.update(values)
    return ActivityRecord(**defaults)


def test_record_line_format() -> None:
    record = _record(2, requested_action=RequestedAction.DEFERRED_OFF, payload=(1, "a|b", 0))

    line = record.to_line()

    assert line == f"{int(_ts(2).timestamp() * 1000)}|IN_CON|ADD|DEFERRED_OFF|1|a$/b|0|"


def test_record_line_parses_back() -> None:
    record = _record(2, action=None, payload=(3, "home", 60))

    parsed = ActivityRecord.parse_line(record.to_line() + "\n")

    assert parsed == record


@pytest.mark.parametrize("network", ["1234", "cafe$wifi", "a|b", "$/", "a$$|b", None])
def test_payload_network_keeps_its_value(network: str | None) -> None:
    record = _record(2, payload=(1, network, 0))

    parsed = ActivityRecord.parse_line(record.to_line())

    assert parsed is not None
    assert parsed.payload == (1, network, 0)
    assert type(parsed.payload[1]) is type(network)


def test_wrong_payload_field_count_is_unparsable() -> None:
    assert ActivityRecord.parse_line("1000|IN_CON|ADD||1|home|") is None


def test_unparsable_lines() -> None:
    assert ActivityRecord.parse_line("garbage") is None
    assert ActivityRecord.parse_line("123|NOWHERE_CON|ADD||") is None
    assert ActivityRecord.parse_line("abc|IN_CON|ADD||") is None


def test_write_appends_to_daily_file(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path)

    path = trail.write(_record(2, 10))
    trail.write(_record(2, 11))

    assert path == trail.path_for(_ts(2, 10).astimezone().date())
    assert path.name.startswith("activity.2026030")
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_read_records_newest_first_with_limit(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path)
    for day in (2, 4, 6):
        trail.write(_record(day, 11, action=StateAction.ON))
        trail.write(_record(day, 13, action=StateAction.OFF))

    records = trail.read_records()

    assert [r.timestamp for r in records] == [_ts(d, h) for d in (6, 4, 2) for h in (13, 11)]
    assert len(trail.read_records(limit=3)) == 3


def test_old_files_are_pruned(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path, max_files=2)
    for day in (2, 4, 6, 8):
        trail.write(_record(day))

    files = trail.files()

    assert len(files) == 2
    assert files[0] == trail.path_for(_ts(8).astimezone().date())
    assert [r.timestamp for r in trail.read_records()] == [_ts(8), _ts(6)]


def test_unparsable_lines_are_skipped(tmp_path: Path) -> None:
    trail = AuditTrail(tmp_path)
    path = trail.write(_record(2))
    with path.open("a", encoding="utf-8") as fh:
        fh.write("not a record\n\n")

    assert len(trail.read_records()) == 1


def test_missing_directory_has_no_records(tmp_path: Path) -> None:
    assert AuditTrail(tmp_path / "missing").read_records() == []


def test_max_files_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        AuditTrail(tmp_path, max_files=0)
