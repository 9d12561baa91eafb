"""File-backed audit trail of orchestrator invocations.

One file per day named ``activity.YYYYMMDD.log``, one
:class:`~pywificell.models.audit.ActivityRecord` line per invocation.
Only the newest ``max_files`` days are retained.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from pathlib import Path

from pywificell.models.audit import ActivityRecord

_logger = logging.getLogger(__name__)

_FILE_PREFIX = "activity."
_FILE_SUFFIX = ".log"
_FILE_PATTERN = re.compile(r"^activity\.(\d{8})\.log$")


class AuditTrail:
    def __init__(self, directory: str | Path, *, max_files: int = 3) -> None:
        if max_files < 1:
            raise ValueError("max_files must be >= 1")
        self._directory = Path(directory)
        self._max_files = max_files

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, day: dt.date) -> Path:
        return self._directory / f"{_FILE_PREFIX}{day:%Y%m%d}{_FILE_SUFFIX}"

    def files(self) -> list[Path]:
        """Audit files present on disk, newest first."""
        if not self._directory.is_dir():
            return []
        found = [path for path in self._directory.iterdir() if _FILE_PATTERN.match(path.name)]
        return sorted(found, key=lambda path: path.name, reverse=True)

    def write(self, record: ActivityRecord) -> Path:
        """Append *record* to the file of its (local) day and prune old files."""
        day = record.timestamp.astimezone().date()
        path = self.path_for(day)
        self._directory.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(record.to_line() + "\n")
        _logger.debug("Activity recorded in %s: %s", path.name, record)
        self._prune()
        return path

    def _prune(self) -> None:
        for stale in self.files()[self._max_files :]:
            _logger.debug("Removing old audit file %s", stale.name)
            stale.unlink(missing_ok=True)

    def read_records(self, limit: int | None = None) -> list[ActivityRecord]:
        """Return recorded activity newest first, skipping unparsable lines."""
        records: list[ActivityRecord] = []
        for path in self.files():
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError:
                _logger.warning("Unable to read audit file %s", path, exc_info=True)
                continue
            for line in reversed(lines):
                if not line.strip():
                    continue
                record = ActivityRecord.parse_line(line)
                if record is None:
                    continue
                records.append(record)
                if limit is not None and len(records) >= limit:
                    return records
        return records
