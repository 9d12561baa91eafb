#!/usr/bin/env python3
"""Replay a sequence of signals against a simulated device.

Useful to see which plan each observation produces without touching a
real radio.  The input is a JSON array of steps; each step is an object
with any of:

``device``
    Changes applied to the simulated device before the signal, e.g.
    ``{"cell": {"cellId": 11, "areaCode": 7}, "radio": {"enabled": true,
    "connected": true, "networkId": "home"}, "mobileData": true}``.
``signal``
    A signal payload such as ``{"kind": "radio_change"}``.
``fire``
    A timer key to fire, e.g. ``"explicit_action_req_DEFERRED_OFF"``.

Usage
-----
::

    python scripts/replay_signals.py steps.json
    python scripts/replay_signals.py steps.json --store state.json --deferred-off 60 -v

Configuration is read from ``WIFICELL_*`` environment variables; the
options below override them.
"""

from __future__ import annotations

import argparse
import datetime as dt
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pywificell import (  # noqa: E402
    AuditTrail,
    JsonFileKeyValueStore,
    LocationObservation,
    MemoryKeyValueStore,
    Orchestrator,
    RadioObservation,
    WifiCellConfig,
)
from pywificell.scheduler import TimerCallback  # noqa: E402

# ── simulated device ─────────────────────────────────────────


class SimulatedRadio:
    """Radio whose commands take effect immediately."""

    def __init__(self) -> None:
        self.enabled = False
        self.connected = False
        self.network_id: str | None = None
        self.last_network: str | None = None

    def update(self, values: dict[str, Any]) -> None:
        observation = RadioObservation.model_validate({**self.observe().model_dump(by_alias=True), **values})
        self.enabled = observation.enabled
        self.connected = observation.connected
        self.network_id = observation.network_id
        if observation.network_id is not None:
            self.last_network = observation.network_id

    def observe(self) -> RadioObservation:
        return RadioObservation(enabled=self.enabled, connected=self.connected, network_id=self.network_id)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if not enabled:
            self.connected = False
            self.network_id = None

    def disconnect(self) -> None:
        self.connected = False
        self.network_id = None

    def connect(self, network_id: str) -> bool:
        if network_id != self.last_network:
            return False
        self.connected = True
        self.network_id = network_id
        return True

    def hotspot_state(self) -> int | None:
        return None


class SimulatedCells:
    def __init__(self) -> None:
        self.location: LocationObservation | None = None

    def current_location(self) -> LocationObservation | None:
        return self.location


class SimulatedMobileData:
    def __init__(self) -> None:
        self.enabled = True

    @property
    def supported(self) -> bool:
        return True

    def is_enabled(self) -> bool:
        return self.enabled

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled


class ManualTimers:
    """Timer facility that only fires on request."""

    def __init__(self) -> None:
        self.pending: dict[str, tuple[dt.datetime, TimerCallback]] = {}
        self.repeating: set[str] = set()

    def schedule_once(self, key: str, when: dt.datetime, callback: TimerCallback) -> None:
        self.pending[key] = (when, callback)
        self.repeating.discard(key)

    def schedule_repeating(
        self, key: str, first: dt.datetime, interval: dt.timedelta, callback: TimerCallback
    ) -> None:
        self.pending[key] = (first, callback)
        self.repeating.add(key)

    def cancel(self, key: str) -> None:
        self.pending.pop(key, None)
        self.repeating.discard(key)

    def fire(self, key: str) -> bool:
        entry = self.pending.get(key)
        if entry is None:
            return False
        if key not in self.repeating:
            del self.pending[key]
        entry[1]()
        return True


# ── replay ───────────────────────────────────────────────────


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay wificell signals against a simulated device")
    parser.add_argument("steps", type=Path, help="JSON file with the steps to replay")
    parser.add_argument("--store", type=Path, default=None, help="Persist state to this JSON file")
    parser.add_argument("--audit-dir", type=Path, default=None, help="Write audit files to this directory")
    parser.add_argument("--deferred-off", type=int, default=None, help="Off-after-disconnect timeout (seconds)")
    parser.add_argument("--mobile-data", action="store_true", help="Manage the mobile data bearer")
    parser.add_argument("--unknown-activates", action="store_true", help="Turn on in unknown locations")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def _build_config(args: argparse.Namespace) -> WifiCellConfig:
    overrides: dict[str, Any] = {}
    if args.deferred_off is not None:
        overrides["off_after_disconnect_timeout"] = args.deferred_off
    if args.mobile_data:
        overrides["mobile_data_managed"] = True
    if args.unknown_activates:
        overrides["unknown_location_activates"] = True
    return WifiCellConfig.from_env(**overrides)


def _apply_device(step: dict[str, Any], radio: SimulatedRadio, cells: SimulatedCells, data: SimulatedMobileData) -> None:
    device = step.get("device") or {}
    if "cell" in device:
        cells.location = LocationObservation.model_validate(device["cell"]) if device["cell"] else None
    if "radio" in device:
        radio.update(device["radio"])
    if "mobileData" in device:
        data.enabled = bool(device["mobileData"])


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        steps = json.loads(args.steps.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"Cannot read {args.steps}: {exc}", file=sys.stderr)
        return 2
    if not isinstance(steps, list):
        print("Steps file must contain a JSON array", file=sys.stderr)
        return 2

    config = _build_config(args)
    store = JsonFileKeyValueStore(args.store) if args.store else MemoryKeyValueStore()
    audit = AuditTrail(args.audit_dir, max_files=config.audit_max_files) if args.audit_dir else None
    radio, cells, data, timers = SimulatedRadio(), SimulatedCells(), SimulatedMobileData(), ManualTimers()

    engine = Orchestrator(
        config,
        store=store,
        radio=radio,
        cells=cells,
        timers=timers,
        mobile_data=data,
        audit=audit,
        on_action=lambda action, cause, when, context: print(f"  -> {action} ({cause}) at {when:%H:%M:%S}"),
    )

    with engine:
        for index, step in enumerate(steps):
            if not isinstance(step, dict):
                print(f"[{index}] skipped: not an object", file=sys.stderr)
                continue
            _apply_device(step, radio, cells, data)

            if "fire" in step:
                if not timers.fire(str(step["fire"])):
                    print(f"[{index}] no pending timer {step['fire']!r}")
                print(f"[{index}] fired {step['fire']}: state={engine.current_state}")

            if "signal" in step:
                result = engine.handle_payload(step["signal"])
                if result is None:
                    print(f"[{index}] signal discarded")
                else:
                    print(f"[{index}] {result.model_dump_json()}")

        print(f"Final state: {engine.current_state}; pending timers: {sorted(timers.pending)}")

    if audit is not None:
        for record in audit.read_records(limit=10):
            print(record.to_line())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
