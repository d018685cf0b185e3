"""
Unit tests for configuration loading.

Tests cover defaults, the topic validator, device overrides, config path
resolution and the ConfigError paths.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tuya_mqtt.config import BridgeConfig, DeviceSettings, load_config, resolve_config_path
from tuya_mqtt.exceptions import ConfigError


class TestBridgeConfig:
    """Tests for the BridgeConfig model"""

    def test_defaults(self):
        """Test every optional field has its documented default"""
        config = BridgeConfig(host="broker")

        assert config.port == 1883
        assert config.topic == "tuya/"
        assert config.qos == 2
        assert config.retain is False
        assert config.mqtt_conn_delay == 10
        assert config.monitor_interval == 1.5
        assert config.poll_interval == 10.0
        assert config.mqtt_user is None
        assert config.devices == {}

    def test_host_required(self):
        """Test a config without host is rejected"""
        with pytest.raises(ValidationError):
            _ = BridgeConfig.model_validate({"port": 1883})

    @pytest.mark.parametrize(("topic", "expected"), [("tuya", "tuya/"), ("home/", "home/"), ("home//", "home/")])
    def test_topic_normalized(self, topic, expected):
        """Test the root topic gets exactly one trailing separator"""
        assert BridgeConfig(host="broker", topic=topic).topic == expected

    @pytest.mark.parametrize("topic", ["", "/", "home/tuya/"])
    def test_topic_must_be_single_level(self, topic):
        """Test empty and multi-level roots are rejected"""
        with pytest.raises(ValidationError):
            _ = BridgeConfig(host="broker", topic=topic)

    @pytest.mark.parametrize("qos", [-1, 3])
    def test_qos_range(self, qos):
        """Test QoS outside 0-2 is rejected"""
        with pytest.raises(ValidationError):
            _ = BridgeConfig(host="broker", qos=qos)

    def test_device_settings(self):
        """Test per-device overrides and the fallback"""
        config = BridgeConfig.model_validate(
            {"host": "broker", "devices": {1234: {"type": "lightbulb", "version": 3.4}, "abcd": None}},
        )

        assert config.device_settings("1234") == DeviceSettings(type="lightbulb", version=3.4)
        assert config.device_settings("abcd") == DeviceSettings()
        assert config.device_settings("unknown").version == 3.3
        assert config.device_settings(None).type is None


class TestLoadConfig:
    """Tests for load_config()"""

    def test_load_json(self, tmp_path: Path):
        """Test the historical config.json format loads"""
        path = tmp_path / "config.json"
        _ = path.write_text(json.dumps({"host": "10.0.0.2", "port": 1884, "mqtt_user": "u", "mqtt_pass": "p"}))

        config = load_config(path)

        assert config.host == "10.0.0.2"
        assert config.port == 1884
        assert config.mqtt_user == "u"

    def test_load_yaml(self, tmp_path: Path):
        """Test a YAML file with devices loads"""
        path = tmp_path / "config.yaml"
        _ = path.write_text(
            "host: broker\ntopic: home\nqos: 1\nretain: true\ndevices:\n  bf1234:\n    type: plug\n",
        )

        config = load_config(path)

        assert config.topic == "home/"
        assert config.qos == 1
        assert config.retain is True
        assert config.device_settings("bf1234").type == "plug"

    def test_missing_file(self, tmp_path: Path):
        """Test a missing file raises ConfigError"""
        with pytest.raises(ConfigError, match="not found"):
            _ = load_config(tmp_path / "absent.json")

    def test_invalid_yaml(self, tmp_path: Path):
        """Test unparsable content raises ConfigError"""
        path = tmp_path / "config.json"
        _ = path.write_text("host: [unclosed")

        with pytest.raises(ConfigError):
            _ = load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        """Test a non-mapping document raises ConfigError"""
        path = tmp_path / "config.json"
        _ = path.write_text("[1, 2, 3]")

        with pytest.raises(ConfigError, match="mapping"):
            _ = load_config(path)

    def test_validation_error(self, tmp_path: Path):
        """Test a schema violation raises ConfigError"""
        path = tmp_path / "config.json"
        _ = path.write_text(json.dumps({"port": 1883}))

        with pytest.raises(ConfigError, match="Invalid configuration"):
            _ = load_config(path)


class TestResolveConfigPath:
    """Tests for resolve_config_path()"""

    def test_cli_path_wins(self, tmp_path: Path):
        """Test the CLI path is used when given"""
        with patch("tuya_mqtt.config.TUYA_MQTT_CONFIG", "/etc/other.json"):
            assert resolve_config_path(tmp_path / "cli.json") == (tmp_path / "cli.json").resolve()

    def test_environment_path(self, tmp_path: Path):
        """Test TUYA_MQTT_CONFIG is used without a CLI path"""
        env_path = tmp_path / "env.json"
        with patch("tuya_mqtt.config.TUYA_MQTT_CONFIG", str(env_path)):
            assert resolve_config_path() == env_path.resolve()

    def test_default_path(self):
        """Test ./config.json is the fallback"""
        with patch("tuya_mqtt.config.TUYA_MQTT_CONFIG", None):
            assert resolve_config_path() == Path("./config.json").resolve()
