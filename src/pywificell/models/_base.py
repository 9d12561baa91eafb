"""Base model for observation and signal payloads.

Every inbound payload model inherits from :class:`WifiCellModel` which
provides:

* ``alias_generator=to_camel`` so camelCase sensor keys (``cellId``,
  ``networkId``) map automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips sentinel values
  (``""``, ``"--"``, NaN) so the field default is used.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Sentinel strings sensors use for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan"})


def clean_values(values: dict[str, Any]) -> dict[str, Any]:
    """Drop ``None`` and sentinel values from a raw payload dict."""
    cleaned: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, str) and value.strip() in _SENTINELS:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        cleaned[key] = value
    return cleaned


class WifiCellModel(BaseModel):
    """Base for inbound observation and signal models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _clean_sentinels(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return clean_values(values)
