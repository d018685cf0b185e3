from __future__ import annotations

import asyncio
import os
import signal
from collections.abc import Coroutine
from typing import Any

from tuya_mqtt.const import STATE_OFF, STATE_ON
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.structs import GlobalObject

logger = get_logger(__name__)
g = GlobalObject()


def bmap(state: object) -> str:
    """Map a reported power value to the ``ON``/``OFF`` payload."""
    return STATE_ON if state else STATE_OFF


def send_signal(signal_num: int):
    """Send a signal to the current process.

    Args:
        signal_num (int): The signal number to send.

    """
    try:
        logger.debug("Sending signal %s to process %s", signal_num, os.getpid())
        os.kill(os.getpid(), signal_num)
    except OSError:
        logger.exception("Failed to send signal %s to process", signal_num)
        raise


def send_sigterm():
    """Send a SIGTERM signal to the current process.
    This is typically used to request termination of the application.
    """
    send_signal(signal.SIGTERM)


def spawn(
    coro: Coroutine[Any, Any, Any],
    *,
    name: str,
    tasks: set[asyncio.Task[Any]],
    lp: str,
) -> asyncio.Task[Any]:
    """Start ``coro`` as a fire-and-forget task.

    The task is held in ``tasks`` until done; its result or exception is always
    retrieved and logged, never raised.
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    tasks.add(task)

    def _done(done: asyncio.Task[Any]) -> None:
        tasks.discard(done)
        if done.cancelled():
            logger.debug("%s task %s cancelled", lp, done.get_name())
            return
        exc = done.exception()
        if exc is not None:
            logger.error(
                "%s task %s failed: %s",
                lp,
                done.get_name(),
                exc,
                extra={"error_type": type(exc).__name__},
            )
        else:
            logger.debug("%s task %s completed: %s", lp, done.get_name(), done.result())

    task.add_done_callback(_done)
    return task


async def _async_signal_cleanup():
    logger.info("tuya-mqtt: Starting signal cleanup...")
    if g.bridge:
        logger.debug("Stopping bridge...")
        await g.bridge.stop()
    logger.info("tuya-mqtt: Signal cleanup completed")


def signal_handler(signum: int):
    logger.info("tuya-mqtt: Intercepted signal: %s (%s)", signal.Signals(signum).name, signum)
    loop = g.loop or asyncio.get_event_loop()
    _ = loop.create_task(_async_signal_cleanup())
