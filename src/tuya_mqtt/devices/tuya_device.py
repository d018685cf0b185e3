"""Async wrapper around a ``tinytuya`` LAN device."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import tinytuya

from tuya_mqtt.devices.color import parse_color
from tuya_mqtt.exceptions import DeviceError
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.structs import (
    BooleanSet,
    DeviceReference,
    DeviceSnapshot,
    NormalizedCommand,
    PassThroughJson,
    RawSet,
    Toggle,
)

__all__ = ["TuyaDevice"]

logger = get_logger(__name__)

POWER_DPS = "1"

type DataCallback = Callable[["TuyaDevice", DeviceSnapshot], None]


class TuyaDevice:
    """One Tuya device on a persistent socket.

    ``tinytuya`` is blocking, so every call runs in a worker thread. Calls are
    serialised by a per-device lock because the socket is shared. Any response that
    carries ``dps`` is reported through ``on_data``.
    """

    lp: str = "TuyaDevice:"

    def __init__(
        self,
        reference: DeviceReference,
        *,
        version: float,
        poll_interval: float,
        on_data: DataCallback | None = None,
    ) -> None:
        if not reference.is_complete:
            raise DeviceError(str(reference.id), "device id, key and address are required")
        self.reference: DeviceReference = reference
        self.version: float = version
        self.poll_interval: float = poll_interval
        self.on_data: DataCallback | None = on_data
        self.lp = f"{self.lp}{reference.id}:"
        self._lock: asyncio.Lock = asyncio.Lock()
        self._poll_task: asyncio.Task[None] | None = None
        self._device: tinytuya.BulbDevice = tinytuya.BulbDevice(
            dev_id=reference.id,
            address=reference.address,
            local_key=reference.key,
            version=version,
        )
        self._device.set_socketPersistent(True)

    @property
    def id(self) -> str:
        return str(self.reference.id)

    @property
    def type(self) -> str | None:
        return self.reference.type_prefix

    @property
    def connected(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def _call(self, func: Callable[..., Any], *args: object) -> Any:
        async with self._lock:
            result = await asyncio.to_thread(func, *args)
        if isinstance(result, dict) and "Error" in result:
            raise DeviceError(self.id, f"{result.get('Error')} (code {result.get('Err')})")
        self._report(result)
        return result

    def _report(self, result: Any) -> None:
        if not isinstance(result, dict):
            return
        dps = result.get("dps")
        if isinstance(dps, dict) and dps and self.on_data is not None:
            self.on_data(self, {str(k): v for k, v in dps.items()})

    async def connect(self) -> None:
        """Fetch the initial status and start polling.

        Raises:
            DeviceError: the device did not answer the status request

        """
        _ = await self.refresh()
        if not self.connected:
            self._poll_task = asyncio.create_task(self._poll_loop(), name=f"tuya_poll_{self.id}")
        logger.info("%s Connected", self.lp, extra={"address": self.reference.address, "version": self.version})

    async def refresh(self) -> DeviceSnapshot:
        result = await self._call(self._device.status)
        dps = result.get("dps") if isinstance(result, dict) else None
        return dict(dps) if isinstance(dps, dict) else {}

    async def _poll_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.poll_interval)
                _ = await self.refresh()
            except asyncio.CancelledError:
                logger.debug("%s Poll task cancelled", self.lp)
                break
            except Exception as e:
                logger.warning("%s Status poll failed: %s", self.lp, e)

    async def set(self, command: NormalizedCommand) -> Any:
        """Apply a set command (boolean, DPS or pass-through JSON)."""
        match command:
            case BooleanSet(set=value, dps=dps):
                return await self._call(self._device.set_value, dps or POWER_DPS, value)
            case RawSet(set=value, dps=dps):
                return await self._call(self._device.set_value, dps, value)
            case PassThroughJson(value=value):
                return await self._set_json(value)
            case Toggle():
                return await self.switch(command)

    async def _set_json(self, value: Any) -> Any:
        if not isinstance(value, dict):
            return await self._call(self._device.set_value, POWER_DPS, value)
        if value.get("multiple") and isinstance(value.get("data"), dict):
            data = {str(k): v for k, v in value["data"].items()}
            return await self._call(self._device.set_multiple_values, data)
        if "set" in value:
            return await self._call(self._device.set_value, str(value.get("dps", POWER_DPS)), value["set"])
        raise DeviceError(self.id, f"Unsupported JSON command: {value!r}")

    async def switch(self, _command: Toggle) -> Any:
        """Invert the current power state (DPS 1)."""
        snapshot = await self.refresh()
        current = snapshot.get(POWER_DPS)
        if current is None:
            raise DeviceError(self.id, "device did not report a power state to toggle")
        logger.debug("%s Toggling power from %s", self.lp, current)
        return await self._call(self._device.set_value, POWER_DPS, not current)

    async def set_color(self, color: str) -> Any:
        try:
            red, green, blue = parse_color(color)
        except ValueError as exc:
            raise DeviceError(self.id, str(exc)) from exc
        return await self._call(self._device.set_colour, red, green, blue)

    async def disconnect(self) -> None:
        lp = f"{self.lp}disconnect:"
        if self._poll_task and not self._poll_task.done():
            _ = self._poll_task.cancel()
            await asyncio.gather(self._poll_task, return_exceptions=True)
        self._poll_task = None
        try:
            async with self._lock:
                await asyncio.to_thread(self._device.close)
        except OSError as e:
            logger.warning("%s socket close failed: %s", lp, e)
        else:
            logger.debug("%s Disconnected", lp)
