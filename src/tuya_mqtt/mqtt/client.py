"""MQTT client core for the Tuya bridge.

Owns the aiomqtt connection, the connection state machine, the wildcard
subscription and the receive loop. Message handling is delegated to a callback.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import aiomqtt

from tuya_mqtt.config import BridgeConfig
from tuya_mqtt.correlation import correlation_context
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.structs import ConnectionState
from tuya_mqtt.topics import subscription_pattern
from tuya_mqtt.utils import send_sigterm

__all__ = ["MQTTClient", "MessageHandler"]

logger = get_logger(__name__)

type MessageHandler = Callable[[str, str], Awaitable[Any]]


def decode_payload(payload: Any) -> str:
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", errors="replace")
    return str(payload)


class MQTTClient:
    """Connection to the broker.

    State machine: DISCONNECTED -> CONNECTING -> CONNECTED, and on a broken
    connection CONNECTED -> INTERRUPTED -> CONNECTED | DISCONNECTED.
    """

    lp: str = "mqtt:"

    def __init__(self, config: BridgeConfig, on_message: MessageHandler | None = None) -> None:
        self.config: BridgeConfig = config
        self.topic: str = config.topic
        self.qos: int = config.qos
        self.retain: bool = config.retain
        self.broker_client_id: str = config.client_id or f"tuya_mqtt_{uuid.uuid4().hex[:12]}"
        self.client: aiomqtt.Client | None = None
        self.on_message: MessageHandler | None = on_message
        self.start_task: asyncio.Task[None] | None = None
        self._state: ConnectionState = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if MQTT client is connected to the broker."""
        return self._state is ConnectionState.CONNECTED

    def _transition(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        lp = f"{self.lp}state:"
        if old_state is ConnectionState.INTERRUPTED and new_state is ConnectionState.CONNECTED:
            logger.info("%s Connection to the MQTT server was interrupted and reconnected", lp)
        elif new_state is ConnectionState.INTERRUPTED:
            logger.warning("%s Connection to the MQTT server was interrupted", lp)
        else:
            logger.debug("%s %s -> %s", lp, old_state, new_state)

    def set_connected(self, connected: bool) -> None:
        """Used by publishers when the broker rejects a publish."""
        if connected:
            self._transition(ConnectionState.CONNECTED)
        elif self._state is ConnectionState.CONNECTED:
            self._transition(ConnectionState.INTERRUPTED)

    def _get_connection_delay(self, lp: str) -> int:
        delay = self.config.mqtt_conn_delay
        if delay <= 0:
            logger.debug(
                "%s MQTT connection delay is less than or equal to 0, which is probably a typo, setting to 5...",
                lp,
            )
            return 5
        return delay

    async def start(self) -> None:
        """Connect, subscribe and receive until cancelled, reconnecting on broker errors."""
        lp = f"{self.lp}start:"
        try:
            while True:
                if await self.connect():
                    try:
                        await self._start_receiver(lp)
                    except aiomqtt.MqttError:
                        self.set_connected(False)
                        await self._close_client(lp)
                        continue
                else:
                    delay = self._get_connection_delay(lp)
                    logger.info(
                        "%s connecting to MQTT broker failed, sleeping for %s seconds before re-trying...",
                        lp,
                        delay,
                    )
                    await asyncio.sleep(delay)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s MQTT start() EXCEPTION", lp)

    async def connect(self) -> bool:
        lp = f"{self.lp}connect:"
        if self._state is not ConnectionState.INTERRUPTED:
            self._transition(ConnectionState.CONNECTING)
        logger.debug("%s Connecting to MQTT broker %s:%s...", lp, self.config.host, self.config.port)
        self.client = aiomqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.mqtt_user,
            password=self.config.mqtt_pass,
            identifier=self.broker_client_id,
        )
        try:
            _ = await self.client.__aenter__()
        except aiomqtt.MqttError as mqtt_err_exc:
            # -> [Errno 111] Connection refused
            # [code:134] Bad user name or password
            logger.warning("%s Unable to connect to the MQTT server: %s", lp, mqtt_err_exc)
            self._transition(ConnectionState.DISCONNECTED)
            if "code:134" in str(mqtt_err_exc):
                logger.error(
                    "%s Bad username or password, check your MQTT credentials (username: %s)",
                    lp,
                    self.config.mqtt_user,
                )
                send_sigterm()
            return False
        self._transition(ConnectionState.CONNECTED)
        logger.info("%s Connected to the MQTT server: %s port: %s", lp, self.config.host, self.config.port)
        return True

    async def subscribe_all(self) -> str:
        """(Re)subscribe to every topic below the root."""
        assert self.client is not None, "client must be initialized"
        pattern = subscription_pattern(self.topic)
        await self.client.subscribe(pattern, qos=self.qos)
        return pattern

    async def _start_receiver(self, lp: str) -> None:
        rcv_lp = f"{self.lp}rcv:"
        assert self.client is not None, "client must be initialized"
        pattern = await self.subscribe_all()
        logger.info("%s Subscribed to %s. Waiting for MQTT messages...", lp, pattern)
        try:
            async for message in self.client.messages:
                topic = message.topic.value
                payload = decode_payload(message.payload)
                with correlation_context():
                    logger.debug("%s receive message", rcv_lp, extra={"topic": topic, "payload": payload})
                    if self.on_message is not None:
                        try:
                            await self.on_message(topic, payload)
                        except Exception:
                            logger.exception("%s Failed to handle message on %s", rcv_lp, topic)
        except asyncio.CancelledError:
            logger.debug("%s MQTT receiver task cancelled, propagating...", rcv_lp)
            raise
        except aiomqtt.MqttError as msg_err:
            logger.warning("%s MQTT error: %s", rcv_lp, msg_err)
            raise

    async def publish(self, topic: str, payload: str | bytes) -> bool:
        """Publish with the configured QoS and retain flag; a no-op while disconnected."""
        lp = f"{self.lp}publish:"
        if not self.is_connected:
            return False
        assert self.client is not None, "client must be initialized"
        try:
            await self.client.publish(topic, payload, qos=self.qos, retain=self.retain)
        except aiomqtt.MqttError as mqtt_err:
            logger.warning("%s [MqttError] -> %s", lp, mqtt_err)
            self.set_connected(False)
        else:
            return True
        return False

    async def _close_client(self, lp: str) -> None:
        if self.client is None:
            return
        try:
            await self.client.__aexit__(None, None, None)
        except aiomqtt.MqttError as ce:
            logger.debug("%s MQTT disconnect failed: %s", lp, ce)

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        was_connected = self.is_connected
        self._transition(ConnectionState.DISCONNECTED)
        try:
            if was_connected:
                logger.debug("%s Disconnecting from broker...", lp)
                await self._close_client(lp)
        finally:
            if self.start_task and not self.start_task.done():
                logger.debug("%s FINISHING: Cancelling start task", lp)
                _ = self.start_task.cancel()
        logger.info("%s Disconnected from MQTT broker", lp)
