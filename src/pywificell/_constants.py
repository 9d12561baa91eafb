"""Internal constants shared across the library."""

#: Cell id / area code value reported when the location is not known.
CELL_UNKNOWN = 0

# ------------------------------------------------------------------
# Persisted snapshot keys
# ------------------------------------------------------------------

KEY_STATE = "state"
KEY_CURRENT_CELL = "current_cell"
KEY_CURRENT_ACTION_PREFIX = "current_action_"
KEY_CURRENT_NETWORK = "current_network"
KEY_PENDING_DATA_RESTORE = "pending_mobile_data_action"
KEY_INFLIGHT_TRANSITION = "inflight_radio_transition"
KEY_NETWORK_REGISTRY = "network_registry"

#: Separator used by compound persisted values (``"cid_lac"``).
KEY_SEPARATOR = "_"

#: Separator between origin and target of a persisted in-flight transition.
TRANSITION_SEPARATOR = ":"

# ------------------------------------------------------------------
# Timer request keys
# ------------------------------------------------------------------

#: Prefix of the stable identifier used for requested-action timers.
EXPLICIT_ACTION_REQ = "explicit_action_req_"

#: Timer key of the periodic location refresh.
LOCATION_REFRESH_REQ = "location_refresh"

# ------------------------------------------------------------------
# Hotspot (access point) mode states as reported by the radio driver
# ------------------------------------------------------------------

_AP_STATE_ENABLING = 2
_AP_STATE_ENABLED = 3
_AP_STATE_LEGACY_OFFSET = 10


def hotspot_active(ap_state: int | None) -> bool:
    """Return ``True`` when a raw access-point state means the hotspot is (becoming) active.

    Some drivers report the legacy values shifted by ``10``.
    """
    if ap_state is None:
        return False
    value = ap_state - _AP_STATE_LEGACY_OFFSET if ap_state > _AP_STATE_LEGACY_OFFSET else ap_state
    return value in (_AP_STATE_ENABLING, _AP_STATE_ENABLED)
