"""Logging layer for the Tuya MQTT bridge.

Human-readable and/or JSON output, a correlation id on every record and structured
``extra`` context appended to the message.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

__all__ = [
    "PACKAGE_LOGGER",
    "BridgeLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
    "quiet_foreign_loggers",
    "set_level",
]

PACKAGE_LOGGER = "tuya_mqtt"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        # Import here to avoid circular dependency
        from tuya_mqtt.correlation import get_correlation_id

        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            log_data["context"] = dict(cast("Mapping[str, object]", extra_data))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``timestamp level [module:line] [corr-id] > message | key=value``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        from tuya_mqtt.correlation import get_correlation_id

        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"

        formatted = super().format(record)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            context_str = " | ".join(f"{k}={v}" for k, v in context_map.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


class BridgeLogger:
    """Thin wrapper over :class:`logging.Logger` that accepts structured ``extra`` context.

    Output goes through the handlers :func:`configure_logging` attaches to the
    package logger, so module loggers never carry handlers of their own.
    """

    def __init__(self, name: str) -> None:
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        extra_payload: Mapping[str, object] | None = None
        if extra:
            extra_payload = {"extra_data": dict(extra)}

        self.logger.log(level, msg, *args, extra=extra_payload)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        log_extra = {"extra_data": dict(extra)} if extra else None
        self.logger.exception(msg, *args, extra=log_extra)


def get_logger(name: str) -> BridgeLogger:
    return BridgeLogger(name)


def configure_logging(
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
    debug: bool | None = None,
) -> logging.Logger:
    """Attach the bridge handlers to the package logger, replacing any set up earlier.

    Args:
        log_format: "json", "human", or "both" (default: $TUYA_MQTT_LOG_FORMAT)
        json_file: JSON log file, only used for the "json" and "both" formats
            (default: $TUYA_MQTT_LOG_JSON_FILE)
        human_output: "stdout" or "stderr" (default: $TUYA_MQTT_LOG_HUMAN_OUTPUT)
        debug: Log at DEBUG instead of INFO (default: $TUYA_MQTT_DEBUG)

    Returns:
        The configured package logger

    """
    from tuya_mqtt.const import (
        TUYA_MQTT_DEBUG,
        TUYA_MQTT_LOG_FORMAT,
        TUYA_MQTT_LOG_HUMAN_OUTPUT,
        TUYA_MQTT_LOG_JSON_FILE,
    )

    log_format = log_format or TUYA_MQTT_LOG_FORMAT
    json_file = json_file or TUYA_MQTT_LOG_JSON_FILE
    human_output = human_output or TUYA_MQTT_LOG_HUMAN_OUTPUT
    debug = TUYA_MQTT_DEBUG if debug is None else debug

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if log_format in ("json", "both") and json_file:
        try:
            json_path = Path(json_file)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(json_path, mode="a")
        except OSError as e:
            print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
        else:
            json_handler.setFormatter(JSONFormatter())
            package_logger.addHandler(json_handler)

    if log_format in ("human", "both"):
        human_handler = logging.StreamHandler(sys.stderr if human_output == "stderr" else sys.stdout)
        human_handler.setFormatter(HumanReadableFormatter())
        package_logger.addHandler(human_handler)

    return package_logger


def set_level(level: int) -> None:
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def quiet_foreign_loggers(level: int = logging.WARNING) -> None:
    """Keep the device and broker libraries from flooding the bridge log."""
    from tuya_mqtt.const import FOREIGN_LOG_FORMATTER

    for name in ("tinytuya", "aiomqtt", "mqtt"):
        foreign = logging.getLogger(name)
        foreign.setLevel(level)
        foreign.propagate = False
        if not foreign.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(FOREIGN_LOG_FORMATTER)
            foreign.addHandler(handler)
