"""Tuya device collaborator: async device handles and the registry that owns them."""

from .color import parse_color
from .registry import DATA_EVENT, DeviceRegistry
from .tuya_device import TuyaDevice

__all__ = ["DATA_EVENT", "DeviceRegistry", "TuyaDevice", "parse_color"]
