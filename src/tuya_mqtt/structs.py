"""Core data structures and typing protocols for the Tuya MQTT bridge."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from tuya_mqtt.const import TOGGLE_DIRECTIVE

if TYPE_CHECKING:
    from tuya_mqtt.bridge import BridgeController

__all__ = [
    "ActionKind",
    "BooleanSet",
    "ConnectionState",
    "DataHandler",
    "DecodedTopic",
    "DeviceReference",
    "DeviceSnapshot",
    "GlobalObject",
    "NormalizedCommand",
    "PassThroughJson",
    "RawSet",
    "Toggle",
    "TuyaDeviceProtocol",
]

type DeviceSnapshot = dict[str, Any]


@dataclass(frozen=True)
class DeviceReference:
    """Identity of one controllable device as carried in a topic.

    Equality and hashing only consider ``(id, key, address)``.
    """

    id: str | None
    key: str | None
    address: str | None
    type_prefix: str | None = field(default=None, compare=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.id) and bool(self.key) and bool(self.address)


class ActionKind(StrEnum):
    """Action literal found in segment 4 of a command topic."""

    COMMAND = "command"
    COLOR = "color"

    @classmethod
    def from_segment(cls, segment: str | None) -> ActionKind | None:
        """Return the matching action, or None for an absent or unknown segment."""
        if segment is None:
            return None
        try:
            return cls(segment)
        except ValueError:
            return None


@dataclass(frozen=True)
class DecodedTopic:
    device: DeviceReference
    action: ActionKind | None
    action_segment: str | None
    dps_index: str | None = None
    dps_token: str | None = None

    @property
    def is_dps(self) -> bool:
        return bool(self.dps_index)


@dataclass(frozen=True)
class PassThroughJson:
    """A payload that was already valid JSON; forwarded to the device as-is."""

    value: Any

    def as_payload(self) -> Any:
        return self.value


@dataclass(frozen=True)
class BooleanSet:
    set: bool
    dps: str | None = None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"set": self.set}
        if self.dps is not None:
            payload["dps"] = self.dps
        return payload


@dataclass(frozen=True)
class RawSet:
    """A DPS set whose value is a device code or the verbatim token."""

    set: str
    dps: str

    def as_payload(self) -> dict[str, Any]:
        return {"set": self.set, "dps": self.dps}


@dataclass(frozen=True)
class Toggle:
    def as_payload(self) -> str:
        return TOGGLE_DIRECTIVE


type NormalizedCommand = PassThroughJson | BooleanSet | RawSet | Toggle


class ConnectionState(StrEnum):
    """Lifecycle of the broker connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    INTERRUPTED = "interrupted"


class TuyaDeviceProtocol(Protocol):
    """Protocol for a device handle returned by the registry."""

    reference: DeviceReference

    @property
    def id(self) -> str: ...

    @property
    def type(self) -> str | None: ...

    async def set(self, command: NormalizedCommand) -> Any: ...

    async def switch(self, command: Toggle) -> Any: ...

    async def set_color(self, color: str) -> Any: ...

    async def disconnect(self) -> None: ...


type DataHandler = Callable[[TuyaDeviceProtocol, DeviceSnapshot], Awaitable[None]]


class GlobalObject:
    """Singleton holding process-level handles needed by signal handling."""

    bridge: BridgeController | None = None
    loop: asyncio.AbstractEventLoop | None = None

    _instance: GlobalObject | None = None

    def __new__(cls, *_args: Any, **_kwargs: Any) -> GlobalObject:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
