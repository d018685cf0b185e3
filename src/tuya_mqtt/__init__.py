"""MQTT bridge for Tuya smart devices on the local network."""

__version__ = "3.0.0"
