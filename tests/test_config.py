"""
Tests for configuration loading and validation.
"""

import json
import logging
from pathlib import Path
import sys
from unittest.mock import patch

import paho.mqtt.client as mqtt
import pytest

import config as config_module


class TestConfigLoading:
    def test_load_default_config(self, mocker):
        mocker.patch.object(Path, "exists", return_value=False)
        model = config_module.read_config()

        assert model.mqtt.host == "192.168.1.102"
        assert model.mqtt.port == 1883
        assert model.mqtt.client_id == "ESP8266Client"
        assert model.mqtt.version == mqtt.MQTTv311
        assert model.mqtt.username is None
        assert model.mqtt.status_topic is None
        assert model.mqtt.connect_retry == 5
        assert model.serial.baudrate == 115200
        assert model.bridge.receive_debounce == 0.2
        assert model.bridge.max_payload_length == 199
        assert model.bridge.announce_subscriptions is False

    def test_load_config_from_options(self, mock_options_file, sample_options):
        model = config_module.read_config()

        assert model.serial.port == sample_options["device"]
        assert model.serial.baudrate == 57600
        assert model.log.level == "DEBUG"
        assert model.mqtt.host == "broker.local"
        assert model.mqtt.port == 1884
        assert model.mqtt.username == "test_user"
        assert model.mqtt.client_id == "bridge-1"
        assert model.mqtt.version == mqtt.MQTTv5
        assert model.mqtt.status_topic == "AcuaponicDuino/Bridge/status"
        assert model.bridge.receive_debounce == 0.5
        assert model.bridge.announce_subscriptions is True

    def test_empty_values_fall_back_to_defaults(self, mocker):
        mocker.patch.object(Path, "exists", return_value=True)
        mocker.patch.object(
            Path,
            "read_text",
            return_value=json.dumps({"mqtt_host": "", "mqtt_client_id": "", "mqtt_username": "", "mqtt_protocol": "9"}),
        )
        model = config_module.read_config()

        assert model.mqtt.host == "192.168.1.102"
        assert model.mqtt.client_id == "ESP8266Client"
        assert model.mqtt.username is None
        assert model.mqtt.version == mqtt.MQTTv311

    def test_options_read_from_config_directory(self, mocker):
        config_module.configdirectory = "/custom/"
        exists = mocker.patch.object(Path, "exists", autospec=True, return_value=False)
        config_module.read_config()
        assert str(exists.call_args.args[0]) == "/custom/options.json"


class TestCLI:
    def test_init_args_custom(self):
        with patch.object(sys, "argv", ["acuaponic-bridge", "--config", "/custom/path"]):
            config_module.init_args()
            assert config_module.configdirectory == "/custom/path/"


class TestLogging:
    def test_single_root_handler(self, mocker):
        mocker.patch.object(Path, "exists", return_value=False)
        config_module.read_config()
        config_module.read_config()

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.INFO

    def test_password_redaction(self, mocker):
        mocker.patch.object(Path, "exists", return_value=True)
        mocker.patch.object(Path, "read_text", return_value=json.dumps({"mqtt_password": "secret"}))
        with patch("logging.Logger.debug") as mock_debug:
            config_module.read_config()
            assert any("********" in str(c) for c in mock_debug.call_args_list)
            assert not any("secret" in str(c) for c in mock_debug.call_args_list)

    def test_version_logged(self, mocker):
        mocker.patch.object(Path, "exists", return_value=False)
        with patch("config.logger.info") as mock_info:
            config_module.read_config(version="1.2.3")
            assert "version: 1.2.3" in mock_info.call_args[0][0]


class TestConfigErrors:
    def test_read_config_options_exception(self):
        """An unreadable options file falls back to defaults."""
        with patch("pathlib.Path.exists", return_value=True), \
             patch("pathlib.Path.read_text", side_effect=Exception("Read Error")), \
             patch("config.logger.error") as mock_logger:

            model = config_module.read_config()
            assert mock_logger.called
            assert "Failed to load" in mock_logger.call_args[0][0]
            assert model.mqtt.host == "192.168.1.102"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
