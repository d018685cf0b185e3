"""Bridge controller: wires the broker connection to the device registry."""

from __future__ import annotations

import asyncio
from typing import Any

from tuya_mqtt.config import BridgeConfig
from tuya_mqtt.const import MQTT_CLIENT_START_TASK_NAME
from tuya_mqtt.correlation import ensure_correlation_id
from tuya_mqtt.devices.registry import DATA_EVENT, DeviceRegistry
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.mqtt.client import MQTTClient
from tuya_mqtt.mqtt.command_routing import CommandRouter
from tuya_mqtt.mqtt.monitor import ConnectionMonitor
from tuya_mqtt.mqtt.state_updates import StateUpdateHelper
from tuya_mqtt.structs import DeviceSnapshot, TuyaDeviceProtocol
from tuya_mqtt.utils import bmap

__all__ = ["BridgeController"]

logger = get_logger(__name__)

POWER_DPS = "1"


class BridgeController:
    """Owns the MQTT client, the device registry and the connection monitor."""

    lp: str = "bridge:"

    def __init__(
        self,
        config: BridgeConfig,
        *,
        mqtt_client: MQTTClient | None = None,
        registry: DeviceRegistry | None = None,
    ) -> None:
        self.config: BridgeConfig = config
        self.registry: DeviceRegistry = registry or DeviceRegistry(config)
        self.mqtt_client: MQTTClient = mqtt_client or MQTTClient(config)
        self.command_router: CommandRouter = CommandRouter(self.registry)
        self.state_updates: StateUpdateHelper = StateUpdateHelper(self.mqtt_client)
        self.monitor: ConnectionMonitor = ConnectionMonitor(self.mqtt_client, config.monitor_interval)

        self.mqtt_client.on_message = self.handle_message
        self.registry.on_all(DATA_EVENT, self.handle_device_data)

    @property
    def connected(self) -> bool:
        return self.mqtt_client.is_connected

    async def handle_message(self, topic: str, payload: str) -> asyncio.Task[Any] | None:
        return await self.command_router.handle_message(topic, payload)

    async def handle_device_data(self, device: TuyaDeviceProtocol, snapshot: DeviceSnapshot) -> None:
        """Mirror a device report onto the bus: state first (from DPS 1), then the DPS tree."""
        lp = f"{self.lp}device_data:"
        logger.debug("%s Data from device %s", lp, device.id, extra={"type": device.type, "dps": snapshot})
        if POWER_DPS in snapshot:
            _ = await self.state_updates.publish_status(device.reference, device.type, bmap(snapshot[POWER_DPS]))
        _ = await self.state_updates.publish_dps(device.reference, device.type, snapshot)

    async def start(self) -> None:
        """Run until the MQTT client task ends or is cancelled."""
        _ = ensure_correlation_id()
        lp = f"{self.lp}start:"
        logger.info("%s Starting MQTT client and connection monitor...", lp)
        _ = self.monitor.start()
        self.mqtt_client.start_task = start_task = asyncio.create_task(
            self.mqtt_client.start(),
            name=MQTT_CLIENT_START_TASK_NAME,
        )
        try:
            await start_task
        except asyncio.CancelledError:
            logger.debug("%s MQTT client task cancelled", lp)

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        logger.info("%s Shutting down bridge...", lp)
        await self.monitor.stop()
        await self.command_router.cancel_pending()
        await self.registry.disconnect_all()
        await self.mqtt_client.stop()
        logger.info("%s Bridge stopped", lp)
