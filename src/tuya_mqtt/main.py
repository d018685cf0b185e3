"""Main entrypoint and lifecycle management for the Tuya MQTT bridge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from functools import partial
from pathlib import Path
from typing import Protocol, cast, runtime_checkable

import dotenv
import uvloop

from tuya_mqtt.bridge import BridgeController
from tuya_mqtt.config import load_config, resolve_config_path
from tuya_mqtt.const import BRIDGE_VERSION
from tuya_mqtt.correlation import correlation_context
from tuya_mqtt.exceptions import ConfigError
from tuya_mqtt.logging_abstraction import configure_logging, get_logger, quiet_foreign_loggers, set_level
from tuya_mqtt.structs import GlobalObject
from tuya_mqtt.utils import signal_handler

logger = get_logger(__name__)

g = GlobalObject()


@runtime_checkable
class _CLIArgs(Protocol):
    config: Path | None
    debug: bool
    env: Path | None


def _enable_debug(reason: str) -> None:
    set_level(logging.DEBUG)
    logger.info("Debug logging enabled via %s", reason)


def _load_env_file(env_file: Path) -> None:
    env_path = env_file.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return
    if dotenv.load_dotenv(env_path, override=True):
        logger.info(" Environment variables loaded", extra={"source": str(env_path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})


def parse_cli(argv: list[str] | None = None) -> _CLIArgs:
    """Parse CLI arguments for the bridge process."""
    parser = argparse.ArgumentParser(description="Tuya MQTT bridge")
    _ = parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to the configuration file (default: $TUYA_MQTT_CONFIG or ./config.json)",
    )
    _ = parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    _ = parser.add_argument("--env", help="Path to the environment file", default=None, type=Path)
    args = cast("_CLIArgs", cast("object", parser.parse_args(argv)))

    if args.debug:
        _enable_debug("CLI argument")
    if args.env:
        _load_env_file(args.env)
    return args


def main(argv: list[str] | None = None) -> None:
    """Run the Tuya MQTT bridge entry point."""
    _ = configure_logging()
    with correlation_context():
        logger.info("Starting Tuya MQTT bridge", extra={"version": BRIDGE_VERSION})
        args = parse_cli(argv)
        quiet_foreign_loggers()

        config_path = resolve_config_path(args.config)
        try:
            config = load_config(config_path)
        except ConfigError as e:
            logger.error("Unable to load configuration: %s", e, extra={"config_path": str(config_path)})
            sys.exit(1)

        loop = uvloop.new_event_loop()
        asyncio.set_event_loop(loop)
        g.loop = loop
        loop.add_signal_handler(signal.SIGINT, partial(signal_handler, signal.SIGINT))
        loop.add_signal_handler(signal.SIGTERM, partial(signal_handler, signal.SIGTERM))
        logger.debug("Signal handlers configured for SIGINT & SIGTERM")

        bridge = BridgeController(config)
        g.bridge = bridge
        try:
            loop.run_until_complete(bridge.start())
        except asyncio.CancelledError:
            logger.info("Bridge cancelled, shutting down...")
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
        else:
            logger.info(" Tuya MQTT bridge stopped gracefully")
        finally:
            if not loop.is_closed():
                loop.close()
            logger.info("Tuya MQTT bridge shutdown complete")


if __name__ == "__main__":
    main()
