"""Publishing of device state and DPS snapshots.

Topic layout::

    {root}[{type}/]{id}/{key}/{address}/state        ON | OFF
    {root}[{type}/]{id}/{key}/{address}/dps          full snapshot as JSON
    {root}[{type}/]{id}/{key}/{address}/dps/{index}  one value as JSON
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.topics import DPS_SEGMENT, STATE_SUFFIX, encode

if TYPE_CHECKING:
    from tuya_mqtt.mqtt.client import MQTTClient
    from tuya_mqtt.structs import DeviceReference, DeviceSnapshot

__all__ = ["StateUpdateHelper", "dump_json"]

logger = get_logger(__name__)


def dump_json(value: Any) -> str:
    """Compact JSON (no whitespace after separators)."""
    return json.dumps(value, separators=(",", ":"))


class StateUpdateHelper:
    """Helper class for publishing device state to MQTT."""

    def __init__(self, mqtt_client: MQTTClient) -> None:
        """Initialize the state update helper.

        Args:
            mqtt_client: MQTTClient instance to access connection and topic

        """
        self.client: MQTTClient = mqtt_client

    def _can_publish(self, device: DeviceReference, lp: str) -> bool:
        if not self.client.is_connected:
            logger.debug("%s MQTT not connected, skipping publish for %s", lp, device.id)
            return False
        if not device.is_complete:
            logger.debug("%s mqtt not updated, incomplete device reference: %s", lp, device)
            return False
        return True

    async def publish_status(self, device: DeviceReference, type_prefix: str | None, status: str) -> int:
        """Publish ``ON``/``OFF`` to the device's state topic. Returns the number of messages sent."""
        lp = f"{self.client.lp}publish_status:"
        if not self._can_publish(device, lp):
            return 0
        topic = encode(self.client.topic, type_prefix, device, STATE_SUFFIX)
        if not await self.client.publish(topic, status):
            return 0
        logger.debug("%s mqtt status updated to: %s -> %s", lp, topic, status)
        return 1

    async def publish_dps(self, device: DeviceReference, type_prefix: str | None, snapshot: DeviceSnapshot) -> int:
        """Publish the whole snapshot, then each entry under ``dps/{index}``.

        Returns the number of messages sent.
        """
        lp = f"{self.client.lp}publish_dps:"
        if not self._can_publish(device, lp):
            return 0

        base_topic = encode(self.client.topic, type_prefix, device, DPS_SEGMENT)
        data = dump_json(snapshot)
        logger.debug("%s mqtt dps updated to: %s -> %s", lp, base_topic, data)
        sent = int(await self.client.publish(base_topic, data))

        for key, value in snapshot.items():
            topic = f"{base_topic}/{key}"
            data = dump_json(value)
            logger.debug("%s mqtt dps updated to: %s -> dps[%s] %s", lp, topic, key, data)
            sent += int(await self.client.publish(topic, data))
        return sent
