"""Bridge configuration.

The file is read with ``yaml.safe_load`` so both the historical ``config.json`` and a
YAML file are accepted::

    host: 192.168.1.10
    port: 1883
    mqtt_user: bridge
    mqtt_pass: secret
    topic: tuya/
    qos: 2
    retain: false
    devices:
      "0123456789abcdef":
        type: lightbulb
        version: 3.3
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from tuya_mqtt.const import (
    DEFAULT_CONFIG_FILE_PATH,
    DEFAULT_DEVICE_VERSION,
    DEFAULT_MONITOR_INTERVAL,
    DEFAULT_MQTT_CONN_DELAY,
    DEFAULT_MQTT_PORT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_QOS,
    DEFAULT_RETAIN,
    DEFAULT_TOPIC,
    TUYA_MQTT_CONFIG,
)
from tuya_mqtt.exceptions import ConfigError
from tuya_mqtt.logging_abstraction import get_logger
from tuya_mqtt.topics import normalize_root

__all__ = [
    "BridgeConfig",
    "DeviceSettings",
    "load_config",
    "resolve_config_path",
]

logger = get_logger(__name__)


class DeviceSettings(BaseModel):
    """Per-device overrides keyed by device id."""

    type: str | None = None
    version: float = DEFAULT_DEVICE_VERSION


class BridgeConfig(BaseModel):
    host: str
    port: int = DEFAULT_MQTT_PORT
    mqtt_user: str | None = None
    mqtt_pass: str | None = None
    topic: str = DEFAULT_TOPIC
    qos: int = Field(default=DEFAULT_QOS, ge=0, le=2)
    retain: bool = DEFAULT_RETAIN
    client_id: str | None = None
    mqtt_conn_delay: int = DEFAULT_MQTT_CONN_DELAY
    monitor_interval: float = Field(default=DEFAULT_MONITOR_INTERVAL, gt=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    devices: dict[str, DeviceSettings] = Field(default_factory=dict)

    @field_validator("topic")
    @classmethod
    def _normalize_topic(cls, value: str) -> str:
        root = normalize_root(value)
        # device id is always segment 1, so the root must be exactly one level
        if not root or root.count("/") != 1:
            raise ValueError(f"topic must be a single level such as 'tuya/', got {value!r}")
        return root

    @field_validator("devices", mode="before")
    @classmethod
    def _string_keys(cls, value: Any) -> Any:
        # YAML turns numeric-looking ids into ints
        if isinstance(value, dict):
            return {str(k): v if v is not None else {} for k, v in value.items()}
        return value

    def device_settings(self, device_id: str | None) -> DeviceSettings:
        if device_id is not None and device_id in self.devices:
            return self.devices[device_id]
        return DeviceSettings()


def resolve_config_path(cli_path: Path | None = None) -> Path:
    """CLI option first, then TUYA_MQTT_CONFIG, then ./config.json."""
    if cli_path is not None:
        raw: Path = cli_path
    elif TUYA_MQTT_CONFIG:
        raw = Path(TUYA_MQTT_CONFIG)
    else:
        raw = Path(DEFAULT_CONFIG_FILE_PATH)
    return raw.expanduser().resolve()


def load_config(config_file: Path) -> BridgeConfig:
    """Read and validate the configuration file.

    Raises:
        ConfigError: the file is missing, unreadable or fails validation

    """
    logger.debug("Parsing config file: %s", config_file)
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        with config_file.open() as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read configuration file {config_file}: {exc}") from exc

    if not isinstance(config_data, dict):
        raise ConfigError(f"Configuration file {config_file} must contain a mapping")

    try:
        config = BridgeConfig.model_validate(config_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_file}: {exc}") from exc

    logger.info(
        "Parsed config",
        extra={"host": config.host, "port": config.port, "topic": config.topic, "devices": len(config.devices)},
    )
    return config
