"""
Shared fixtures for unit tests.

This module provides reusable fixtures for testing the Tuya MQTT bridge components.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tuya_mqtt.config import BridgeConfig
from tuya_mqtt.structs import DeviceReference


@pytest.fixture
def bridge_config():
    """Minimal valid configuration pointing at a local broker."""
    return BridgeConfig(host="localhost")


@pytest.fixture
def device_reference():
    """A complete device reference as carried in a command topic."""
    return DeviceReference(id="bf1234", key="abcdkey", address="192.168.1.50")


@pytest.fixture
def mock_mqtt_client():
    """
    Mock MQTTClient for testing publishers.

    Connected, rooted at ``tuya/`` and with a publish that always succeeds.
    """
    client = MagicMock()
    client.lp = "mqtt:"
    client.topic = "tuya/"
    client.is_connected = True
    client.publish = AsyncMock(return_value=True)
    return client


@pytest.fixture
def mock_device(device_reference):
    """
    Mock TuyaDevice for testing routing and the bridge.

    Returns a MagicMock with the async device operations as AsyncMocks.
    """
    device = MagicMock()
    device.reference = device_reference
    device.id = device_reference.id
    device.type = None
    device.set = AsyncMock(return_value={"dps": {"1": True}})
    device.switch = AsyncMock(return_value={"dps": {"1": False}})
    device.set_color = AsyncMock(return_value={"dps": {"5": "ff0000"}})
    device.disconnect = AsyncMock()
    return device


@pytest.fixture
def mock_registry(mock_device):
    """Mock DeviceRegistry whose get() resolves to ``mock_device``."""
    registry = MagicMock()
    registry.get = AsyncMock(return_value=mock_device)
    registry.disconnect_all = AsyncMock()
    registry.on_all = MagicMock()
    return registry
