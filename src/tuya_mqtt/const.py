import logging
import os

from tuya_mqtt import __version__

__all__ = [
    "BRIDGE_VERSION",
    "DEFAULT_CONFIG_FILE_PATH",
    "DEFAULT_DEVICE_VERSION",
    "DEFAULT_MONITOR_INTERVAL",
    "DEFAULT_MQTT_CONN_DELAY",
    "DEFAULT_MQTT_PORT",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_QOS",
    "DEFAULT_RETAIN",
    "DEFAULT_TOPIC",
    "FOREIGN_LOG_FORMATTER",
    "MONITOR_TASK_NAME",
    "MQTT_CLIENT_START_TASK_NAME",
    "STATE_OFF",
    "STATE_ON",
    "TOGGLE_DIRECTIVE",
    "TOPIC_SEPARATOR",
    "TUYA_MQTT_CONFIG",
    "TUYA_MQTT_DEBUG",
    "TUYA_MQTT_LOG_FORMAT",
    "TUYA_MQTT_LOG_HUMAN_OUTPUT",
    "TUYA_MQTT_LOG_JSON_FILE",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")

FOREIGN_LOG_FORMATTER = logging.Formatter(
    "%(asctime)s.%(msecs)d %(levelname)s <%(name)s> [%(module)s:%(lineno)d] > %(message)s",
    "%m/%d/%y %H:%M:%S",
)
BRIDGE_VERSION: str = __version__

TUYA_MQTT_CONFIG: str | None = os.environ.get("TUYA_MQTT_CONFIG") or None
DEFAULT_CONFIG_FILE_PATH: str = "./config.json"

DEFAULT_MQTT_PORT: int = 1883
DEFAULT_TOPIC: str = "tuya/"
DEFAULT_QOS: int = 2
DEFAULT_RETAIN: bool = False
DEFAULT_MQTT_CONN_DELAY: int = 10
DEFAULT_MONITOR_INTERVAL: float = 1.5
DEFAULT_DEVICE_VERSION: float = 3.3
DEFAULT_POLL_INTERVAL: float = 10.0

TOPIC_SEPARATOR: str = "/"
TOGGLE_DIRECTIVE: str = "toggle"
STATE_ON: str = "ON"
STATE_OFF: str = "OFF"

MQTT_CLIENT_START_TASK_NAME = "MQTTClient_START"
MONITOR_TASK_NAME = "ConnectionMonitor_RUN"

TUYA_MQTT_DEBUG = os.environ.get("TUYA_MQTT_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
TUYA_MQTT_LOG_FORMAT: str = os.environ.get("TUYA_MQTT_LOG_FORMAT", "human")  # "json", "human", or "both"
TUYA_MQTT_LOG_JSON_FILE: str | None = os.environ.get("TUYA_MQTT_LOG_JSON_FILE") or None
TUYA_MQTT_LOG_HUMAN_OUTPUT: str = os.environ.get("TUYA_MQTT_LOG_HUMAN_OUTPUT", "stdout")  # "stdout" or "stderr"
