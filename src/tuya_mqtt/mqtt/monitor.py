"""Periodic check of the broker connection that logs connected/disconnected edges."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from tuya_mqtt.const import MONITOR_TASK_NAME
from tuya_mqtt.logging_abstraction import get_logger

if TYPE_CHECKING:
    from tuya_mqtt.mqtt.client import MQTTClient

__all__ = ["ConnectionMonitor"]

logger = get_logger(__name__)


class ConnectionMonitor:
    lp: str = "mqtt:monitor:"

    def __init__(self, mqtt_client: MQTTClient, interval: float) -> None:
        self.client: MQTTClient = mqtt_client
        self.interval: float = interval
        self.last_connected: bool | None = None
        self.task: asyncio.Task[None] | None = None

    def check(self) -> bool:
        """Compare the client's flag with the last one seen; True when it changed."""
        connected = self.client.is_connected
        if connected == self.last_connected:
            return False
        self.last_connected = connected
        if connected:
            logger.info("%s MQTT Server connected", self.lp)
        else:
            logger.warning("%s MQTT Server not connected", self.lp)
        return True

    async def run(self) -> None:
        _ = self.check()
        while True:
            try:
                await asyncio.sleep(self.interval)
                _ = self.check()
            except asyncio.CancelledError:
                logger.debug("%s Connection monitor cancelled", self.lp)
                break

    def start(self) -> asyncio.Task[None]:
        if self.task is None or self.task.done():
            self.task = asyncio.create_task(self.run(), name=MONITOR_TASK_NAME)
        return self.task

    async def stop(self) -> None:
        if self.task is not None and not self.task.done():
            _ = self.task.cancel()
            await asyncio.gather(self.task, return_exceptions=True)
        self.task = None
