"""Unit tests for the CLI entry point."""

import asyncio
import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tuya_mqtt import main as main_module
from tuya_mqtt.config import BridgeConfig
from tuya_mqtt.structs import GlobalObject


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset process-level handles between tests"""
    g = GlobalObject()
    yield
    g.bridge = None
    g.loop = None
    asyncio.set_event_loop(None)


class TestParseCli:
    """Tests for parse_cli()"""

    def test_defaults(self):
        """Test no arguments leaves config and env unset"""
        args = main_module.parse_cli([])

        assert args.config is None
        assert args.env is None
        assert args.debug is False

    def test_config_path(self, tmp_path: Path):
        """Test --config is parsed as a Path"""
        args = main_module.parse_cli(["--config", str(tmp_path / "config.json")])
        assert args.config == tmp_path / "config.json"

    def test_debug_flag(self):
        """Test -D switches the logger to DEBUG"""
        with patch("tuya_mqtt.main.set_level") as mock_set_level:
            _ = main_module.parse_cli(["-D"])
        mock_set_level.assert_called_once_with(logging.DEBUG)

    def test_env_file_loaded(self, tmp_path: Path):
        """Test --env loads the dotenv file with override"""
        env_file = tmp_path / ".env"
        _ = env_file.write_text("TUYA_MQTT_LOG_FORMAT=json\n")

        with patch("tuya_mqtt.main.dotenv.load_dotenv", return_value=True) as mock_load:
            _ = main_module.parse_cli(["--env", str(env_file)])

        mock_load.assert_called_once_with(env_file.resolve(), override=True)

    def test_missing_env_file(self, tmp_path: Path):
        """Test a missing env file is reported, not loaded"""
        with patch("tuya_mqtt.main.dotenv.load_dotenv") as mock_load:
            _ = main_module.parse_cli(["--env", str(tmp_path / "absent.env")])
        mock_load.assert_not_called()


class TestMain:
    """Tests for main()"""

    @pytest.fixture(autouse=True)
    def mock_configure_logging(self):
        """Keep main() from replacing the package log handlers"""
        with patch("tuya_mqtt.main.configure_logging") as mock_configure:
            yield mock_configure

    def test_missing_config_exits(self, tmp_path: Path):
        """Test a missing configuration aborts with exit code 1"""
        with pytest.raises(SystemExit) as exc_info:
            main_module.main(["--config", str(tmp_path / "absent.json")])

        assert exc_info.value.code == 1

    def test_runs_bridge(self, mock_configure_logging):
        """Test main() builds the bridge and runs it to completion"""
        bridge = MagicMock()
        bridge.start = AsyncMock()

        with (
            patch("tuya_mqtt.main.load_config", return_value=BridgeConfig(host="localhost")),
            patch("tuya_mqtt.main.BridgeController", return_value=bridge) as mock_controller,
        ):
            main_module.main([])

        mock_controller.assert_called_once()
        bridge.start.assert_awaited_once()
        g = GlobalObject()
        assert g.bridge is bridge
        assert g.loop is not None
        assert g.loop.is_closed()
        mock_configure_logging.assert_called_once_with()
