"""
Shared pytest fixtures for AcuaponicDuino Bridge tests.
"""

import json
import os
import sys
import tempfile
from unittest.mock import MagicMock

import pytest

# Add the source directory to the path so we can import the bridge modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "rootfs", "usr", "src")))

import config as config_module
import state as state_module


class FakeTransport:
    """In-memory stand-in for MqttTransport."""

    def __init__(self):
        self.connect_results = []  # consumed one per attempt, True when exhausted
        self.subscribe_results = {}
        self.publish_result = True
        self.connect_calls = 0
        self.subscribed = []
        self.published = []
        self.loop_calls = 0
        self.disconnect_calls = 0
        self.online_calls = 0
        self.alive = False
        self.message_handler = None

    def connect(self):
        self.connect_calls += 1
        self.alive = self.connect_results.pop(0) if self.connect_results else True
        return self.alive

    def subscribe(self, topic):
        self.subscribed.append(topic)
        return self.subscribe_results.get(topic, True)

    def publish(self, topic, payload):
        self.published.append((topic, payload))
        return self.publish_result

    def publish_online(self):
        self.online_calls += 1

    def is_connected(self):
        return self.alive

    def loop(self):
        self.loop_calls += 1
        return True

    def disconnect(self):
        self.disconnect_calls += 1
        self.alive = False

    def deliver(self, topic, payload):
        """Simulate a message arriving from the broker."""
        self.message_handler(topic, payload)


@pytest.fixture(autouse=True)
def reset_config_directory():
    config_module.configdirectory = "./"
    yield


@pytest.fixture
def context():
    """A fresh bridge context with default configuration."""
    return state_module.BridgeContext(config_module.ConfigModel())


@pytest.fixture
def stopper():
    """Stopper event whose waits return immediately."""
    stopper = MagicMock()
    stopper.is_set.return_value = False
    return stopper


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def serial_port():
    """A mocked, open pyserial port with nothing waiting."""
    port = MagicMock()
    port.in_waiting = 0
    port.read.return_value = b""
    return port


@pytest.fixture
def mock_serial_for_url(mocker, serial_port):
    """Patch serial.serial_for_url to hand out the mocked port."""
    return mocker.patch("serial.serial_for_url", return_value=serial_port)


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for configuration files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def sample_options():
    """Sample options.json content."""
    return {
        "device": "/dev/ttyACM1",
        "baudrate": 57600,
        "log_level": "debug",
        "mqtt_host": "broker.local",
        "mqtt_port": 1884,
        "mqtt_username": "test_user",
        "mqtt_password": "test_pass",
        "mqtt_client_id": "bridge-1",
        "mqtt_protocol": "5.0",
        "mqtt_status_topic": "AcuaponicDuino/Bridge/status",
        "receive_debounce": 0.5,
        "announce_subscriptions": True,
    }


@pytest.fixture
def mock_options_file(temp_config_dir, sample_options):
    """Create an options.json file and point the config directory at it."""
    options_path = os.path.join(temp_config_dir, "options.json")
    with open(options_path, "w") as f:
        json.dump(sample_options, f)
    config_module.configdirectory = temp_config_dir + "/"
    return options_path
