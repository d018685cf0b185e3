"""Exception hierarchy for the Tuya MQTT bridge."""

from __future__ import annotations

__all__ = [
    "CommandParseError",
    "ConfigError",
    "DeviceError",
    "TuyaMqttError",
]


class TuyaMqttError(Exception):
    """Base class for all bridge errors."""


class ConfigError(TuyaMqttError):
    """Raised when the configuration file is missing or invalid."""


class CommandParseError(TuyaMqttError):
    """Raised when a command token looked like JSON but could not be parsed."""

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"Unable to parse command {token!r}: {reason}")
        self.token: str = token
        self.reason: str = reason


class DeviceError(TuyaMqttError):
    """Raised when a device rejects a command or returns an error payload."""

    def __init__(self, device_id: str, message: str) -> None:
        super().__init__(f"[{device_id}] {message}")
        self.device_id: str = device_id
