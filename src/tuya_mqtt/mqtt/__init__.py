"""MQTT package for the Tuya bridge.

- client.py: broker connection, state machine and receive loop
- command_routing.py: inbound topic decoding and device dispatch
- state_updates.py: state and DPS publishing
- monitor.py: periodic connection edge logging
"""

from .client import MQTTClient
from .command_routing import CommandRouter
from .monitor import ConnectionMonitor
from .state_updates import StateUpdateHelper

__all__ = [
    "CommandRouter",
    "ConnectionMonitor",
    "MQTTClient",
    "StateUpdateHelper",
]
