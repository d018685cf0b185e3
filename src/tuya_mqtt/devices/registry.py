"""Registry of connected Tuya devices with a shared ``data`` event."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Callable
from typing import Any

from tuya_mqtt.config import BridgeConfig
from tuya_mqtt.correlation import correlation_context
from tuya_mqtt.devices.tuya_device import TuyaDevice
from tuya_mqtt.exceptions import DeviceError
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.structs import DataHandler, DeviceReference, DeviceSnapshot
from tuya_mqtt.utils import spawn

__all__ = ["DATA_EVENT", "DeviceRegistry"]

logger = get_logger(__name__)

DATA_EVENT = "data"

type DeviceFactory = Callable[..., TuyaDevice]


class DeviceRegistry:
    """Creates one :class:`TuyaDevice` per device id and fans out its events."""

    lp: str = "registry:"

    def __init__(self, config: BridgeConfig, device_factory: DeviceFactory = TuyaDevice) -> None:
        self.config: BridgeConfig = config
        self.devices: dict[str, TuyaDevice] = {}
        self._factory: DeviceFactory = device_factory
        self._handlers: dict[str, list[DataHandler]] = {}
        self._pending: dict[str, asyncio.Task[TuyaDevice]] = {}
        self.tasks: set[asyncio.Task[Any]] = set()

    def on_all(self, event: str, handler: DataHandler) -> None:
        """Register ``handler(device, snapshot)`` for ``event`` on every device."""
        if event != DATA_EVENT:
            raise ValueError(f"Unsupported device event: {event}")
        self._handlers.setdefault(event, []).append(handler)

    def emit(self, device: TuyaDevice, snapshot: DeviceSnapshot) -> None:
        """Schedule every ``data`` handler for a snapshot reported by ``device``."""
        lp = f"{self.lp}emit:"
        handlers = self._handlers.get(DATA_EVENT, [])
        if not handlers:
            logger.debug("%s No data handlers registered, dropping snapshot from %s", lp, device.id)
            return
        # each event gets its own correlation id, inherited by the handler tasks
        with correlation_context():
            logger.debug("%s Data from device %s", lp, device.id, extra={"type": device.type, "dps": snapshot})
            for handler in handlers:
                _ = spawn(handler(device, snapshot), name=f"tuya_data_{device.id}", tasks=self.tasks, lp=lp)

    def _resolve(self, reference: DeviceReference) -> DeviceReference:
        settings = self.config.device_settings(reference.id)
        return dataclasses.replace(reference, type_prefix=settings.type or reference.type_prefix)

    async def get(self, reference: DeviceReference) -> TuyaDevice:
        """Return the connected device for ``reference``, creating it on first use.

        Raises:
            DeviceError: the reference is incomplete or the device is unreachable

        """
        lp = f"{self.lp}get:"
        if not reference.is_complete:
            raise DeviceError(str(reference.id), "incomplete device reference")

        device_id = str(reference.id)
        existing = self.devices.get(device_id)
        if existing is not None and existing.reference == reference:
            return existing
        if existing is not None:
            logger.info("%s Key or address changed for %s, reconnecting", lp, device_id)
            _ = self.devices.pop(device_id)
            await existing.disconnect()

        # concurrent messages for a new device share one connection attempt
        pending = self._pending.get(device_id)
        if pending is None:
            pending = asyncio.create_task(self._create(self._resolve(reference)), name=f"tuya_connect_{device_id}")
            self._pending[device_id] = pending
            pending.add_done_callback(lambda _t: self._pending.pop(device_id, None))
        return await asyncio.shield(pending)

    async def _create(self, reference: DeviceReference) -> TuyaDevice:
        settings = self.config.device_settings(reference.id)
        device = self._factory(
            reference,
            version=settings.version,
            poll_interval=self.config.poll_interval,
            on_data=self.emit,
        )
        try:
            await device.connect()
        except Exception:
            # release the socket tinytuya may have opened for the failed status request
            await device.disconnect()
            raise
        self.devices[device.id] = device
        return device

    async def disconnect_all(self) -> None:
        lp = f"{self.lp}disconnect_all:"
        logger.info("%s Disconnecting %d device(s)", lp, len(self.devices))
        devices = list(self.devices.values())
        self.devices.clear()
        results = await asyncio.gather(*(dev.disconnect() for dev in devices), return_exceptions=True)
        for device, result in zip(devices, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("%s Failed to disconnect %s: %s", lp, device.id, result)
        for task in list(self.tasks):
            if not task.done():
                _ = task.cancel()
