"""MQTT command routing.

Decodes inbound topics, translates ``command`` actions and hands the result to the
device as a fire-and-forget task.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from tuya_mqtt.exceptions import CommandParseError
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.structs import ActionKind, DeviceReference, NormalizedCommand, Toggle
from tuya_mqtt.topics import decode
from tuya_mqtt.translator import translate_topic
from tuya_mqtt.utils import spawn

if TYPE_CHECKING:
    from tuya_mqtt.devices.registry import DeviceRegistry

__all__ = ["CommandRouter"]

logger = get_logger(__name__)


class CommandRouter:
    """Helper class for routing MQTT messages to devices."""

    lp: str = "router:"

    def __init__(self, registry: DeviceRegistry) -> None:
        self.registry: DeviceRegistry = registry
        self.tasks: set[asyncio.Task[Any]] = set()

    async def handle_message(self, topic: str, payload: str) -> asyncio.Task[Any] | None:
        """Route one message; returns the spawned device task, or None when the message is dropped."""
        lp = f"{self.lp}handle_message:"
        decoded = decode(topic)
        device = decoded.device

        if decoded.action is None:
            logger.debug("%s Ignoring topic without a known action: %s", lp, topic)
            return None
        if not device.is_complete:
            logger.debug("%s Ignoring topic with incomplete device reference: %s", lp, topic)
            return None

        logger.debug(
            "%s receive settings",
            lp,
            extra={"topic": topic, "action": decoded.action, "message": payload, "device": device.id},
        )

        match decoded.action:
            case ActionKind.COMMAND:
                try:
                    command = translate_topic(decoded, payload)
                except CommandParseError:
                    logger.exception("%s bad command: %s => %s", lp, topic, payload)
                    return None
                logger.debug("%s receive command", lp, extra={"command": command.as_payload()})
                coro = self._dispatch_command(device, command)
            case ActionKind.COLOR:
                color = payload.lower()
                logger.debug("%s set color: %s", lp, color)
                coro = self._dispatch_color(device, color)

        return spawn(coro, name=f"tuya_{decoded.action}_{device.id}", tasks=self.tasks, lp=lp)

    async def _dispatch_command(self, reference: DeviceReference, command: NormalizedCommand) -> Any:
        lp = f"{self.lp}command:"
        device = await self.registry.get(reference)
        match command:
            case Toggle():
                result = await device.switch(command)
            case _:
                result = await device.set(command)
        logger.info("%s set device status completed", lp, extra={"device": device.id, "result": result})
        return result

    async def _dispatch_color(self, reference: DeviceReference, color: str) -> Any:
        lp = f"{self.lp}color:"
        device = await self.registry.get(reference)
        result = await device.set_color(color)
        logger.info("%s set device color completed", lp, extra={"device": device.id, "result": result})
        return result

    async def cancel_pending(self) -> None:
        pending = [task for task in self.tasks if not task.done()]
        for task in pending:
            _ = task.cancel()
        _ = await asyncio.gather(*pending, return_exceptions=True)
