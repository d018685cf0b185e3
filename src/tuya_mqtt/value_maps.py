"""Per-property translation of human vocabulary into Tuya DPS codes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

__all__ = [
    "PROPERTY_MAPPINGS",
    "MappingKind",
    "PropertyIndex",
    "PropertyMapping",
    "map_value",
    "property_mapping",
]


class PropertyIndex(StrEnum):
    """DPS indices that get their command value rewritten."""

    POWER = "1"
    NUMERIC_4 = "4"
    MODE = "5"
    NUMERIC_6 = "6"
    FAN_SPEED = "8"
    SWITCH_16 = "16"
    SWITCH_17 = "17"

    @classmethod
    def lookup(cls, index: str | None) -> PropertyIndex | None:
        if index is None:
            return None
        try:
            return cls(str(index))
        except ValueError:
            return None


class MappingKind(StrEnum):
    BOOLEAN = "boolean"
    # free-form numeric properties: the token is sent as-is
    VERBATIM = "verbatim"
    TABLE = "table"


@dataclass(frozen=True)
class PropertyMapping:
    kind: MappingKind
    table: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def map(self, token: str) -> Any:
        """Return the device code for ``token``, or the token itself when unmapped."""
        if self.kind is MappingKind.VERBATIM:
            return token
        return self.table.get(token, token)


_BOOLEAN = PropertyMapping(MappingKind.BOOLEAN, MappingProxyType({"on": True, "off": False}))
_VERBATIM = PropertyMapping(MappingKind.VERBATIM)

PROPERTY_MAPPINGS: Mapping[PropertyIndex, PropertyMapping] = MappingProxyType(
    {
        PropertyIndex.POWER: _BOOLEAN,
        PropertyIndex.SWITCH_16: _BOOLEAN,
        PropertyIndex.SWITCH_17: _BOOLEAN,
        PropertyIndex.NUMERIC_4: _VERBATIM,
        PropertyIndex.NUMERIC_6: _VERBATIM,
        PropertyIndex.MODE: PropertyMapping(
            MappingKind.TABLE,
            MappingProxyType({"cool": "3", "dry": "2", "fan_only": "4"}),
        ),
        PropertyIndex.FAN_SPEED: PropertyMapping(
            MappingKind.TABLE,
            MappingProxyType({"auto": "0", "low": "1", "medium": "2", "high": "3"}),
        ),
    },
)


def property_mapping(index: str | None) -> PropertyMapping | None:
    """Return the mapping for a DPS index, or None when the index has no table."""
    member = PropertyIndex.lookup(index)
    if member is None:
        return None
    return PROPERTY_MAPPINGS[member]


def map_value(index: str | None, token: str) -> Any:
    """Translate ``token`` for ``index``; unmapped tokens and unknown indices return the token."""
    mapping = property_mapping(index)
    if mapping is None:
        return token
    return mapping.map(token)
