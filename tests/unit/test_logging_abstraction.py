"""Unit tests for the logging layer."""

import json
import logging
import sys

import pytest

from tuya_mqtt.correlation import correlation_context
from tuya_mqtt.logging_abstraction import (
    PACKAGE_LOGGER,
    HumanReadableFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
    quiet_foreign_loggers,
    set_level,
)


def _record(msg="hello %s", args=("world",), extra_data=None):
    record = logging.LogRecord("tuya_mqtt.test", logging.INFO, __file__, 10, msg, args, None)
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestFormatters:
    """Tests for the JSON and human formatters"""

    def test_json_formatter(self):
        """Test records become one JSON object with context"""
        with correlation_context("0123456789abcdef"):
            output = JSONFormatter().format(_record(extra_data={"device": "bf1234"}))

        data = json.loads(output)
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "0123456789abcdef"
        assert data["context"] == {"device": "bf1234"}

    def test_human_formatter_with_context(self):
        """Test the short correlation id and key=value context are shown"""
        with correlation_context("0123456789abcdef"):
            output = HumanReadableFormatter().format(_record(extra_data={"topic": "tuya/x", "qos": 2}))

        assert "[01234567]" in output
        assert output.endswith("hello world | topic=tuya/x | qos=2")

    def test_human_formatter_without_correlation(self):
        """Test a placeholder is shown when no id is active"""
        output = HumanReadableFormatter().format(_record())
        assert "[--------]" in output


@pytest.fixture
def package_logger():
    """Restore the package logger's handlers and level after the test"""
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestBridgeLogger:
    """Tests for BridgeLogger"""

    def test_extra_reaches_record(self, caplog):
        """Test structured extra is attached as extra_data"""
        logger = get_logger("tuya_mqtt.test_extra")

        with caplog.at_level(logging.INFO):
            logger.info("message %s", 1, extra={"device": "bf1234"})

        record = caplog.records[-1]
        assert record.getMessage() == "message 1"
        assert record.extra_data == {"device": "bf1234"}

    def test_module_logger_has_no_handlers(self):
        """Test module loggers rely on the package logger for output"""
        logger = get_logger("tuya_mqtt.test_plain")
        assert logger.logger.handlers == []
        assert logger.logger.propagate is True


class TestConfigureLogging:
    """Tests for configure_logging() and set_level()"""

    def test_handlers_replaced(self, package_logger):
        """Test a second call replaces the handlers instead of adding more"""
        _ = configure_logging(log_format="human", debug=False)
        first = list(package_logger.handlers)
        _ = configure_logging(log_format="human", debug=False)

        assert len(package_logger.handlers) == len(first) == 1
        assert package_logger.handlers[0] is not first[0]
        assert isinstance(package_logger.handlers[0].formatter, HumanReadableFormatter)

    @pytest.mark.parametrize(("debug", "level"), [(True, logging.DEBUG), (False, logging.INFO)])
    def test_debug_level(self, package_logger, debug, level):
        """Test the debug switch picks the package level"""
        _ = configure_logging(log_format="human", debug=debug)
        assert package_logger.level == level

    def test_human_stderr(self, package_logger):
        """Test human output can be sent to stderr"""
        _ = configure_logging(log_format="human", human_output="stderr", debug=False)
        assert package_logger.handlers[0].stream is sys.stderr

    def test_json_without_file(self, package_logger):
        """Test the json format without a file configures no handler"""
        _ = configure_logging(log_format="json", json_file=None, debug=False)
        assert not any(isinstance(h.formatter, JSONFormatter) for h in package_logger.handlers)

    def test_json_file_output(self, package_logger, tmp_path):
        """Test module records are written as JSON to the configured file"""
        path = tmp_path / "logs" / "bridge.json"
        _ = configure_logging(log_format="both", json_file=path, debug=False)

        get_logger("tuya_mqtt.test_json_file").warning("written", extra={"k": "v"})
        for handler in package_logger.handlers:
            handler.flush()

        line = path.read_text().strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "written"
        assert data["context"] == {"k": "v"}

    def test_set_level(self, package_logger):
        """Test set_level() applies to the package logger"""
        _ = configure_logging(log_format="human", debug=False)
        set_level(logging.DEBUG)

        assert package_logger.level == logging.DEBUG
        assert get_logger("tuya_mqtt.test_level").logger.isEnabledFor(logging.DEBUG)


class TestForeignLoggers:
    """Tests for quiet_foreign_loggers()"""

    @pytest.mark.parametrize("name", ["tinytuya", "aiomqtt"])
    def test_quiet_foreign_loggers(self, name):
        """Test library loggers are raised to WARNING and detached"""
        quiet_foreign_loggers()

        foreign = logging.getLogger(name)
        assert foreign.level == logging.WARNING
        assert foreign.propagate is False
