"""
AcuaponicDuino Bridge Configuration

Handles command-line argument parsing and configuration loading from options.json.
"""

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Optional, Any

import serial
import paho.mqtt.client as mqtt
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------------
# Configuration Models
# ------------------------------------------------------------------------------------

class LogConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"


class SerialConfig(BaseModel):
    """Serial link to the control board."""
    port: str = "/dev/ttyUSB0"
    baudrate: int = 115200
    parity: str = serial.PARITY_NONE
    stopbits: int = serial.STOPBITS_ONE
    bytesize: int = serial.EIGHTBITS
    timeout: Optional[float] = 0
    connect_retry: int = 5
    max_line_length: int = 256
    line_ending: str = "\r\n"


class MqttConfig(BaseModel):
    """MQTT broker connection."""
    host: str = "192.168.1.102"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = "ESP8266Client"
    version: Any = mqtt.MQTTv311
    keepalive: int = 15
    connect_retry: int = 5
    connect_timeout: float = 10
    loop_timeout: float = 0.1
    status_topic: Optional[str] = None
    retain: bool = True


class BridgeConfig(BaseModel):
    """Message translation settings."""
    max_payload_length: int = 199
    receive_debounce: float = 0.2
    announce_subscriptions: bool = False


class ConfigModel(BaseModel):
    """Root configuration model."""
    log: LogConfig = Field(default_factory=LogConfig)
    serial: SerialConfig = Field(default_factory=SerialConfig)
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)


# ------------------------------------------------------------------------------------
# Configuration Paths
# ------------------------------------------------------------------------------------
configdirectory = './'


def init_args():
    """Initialize arguments and global configuration paths."""
    global configdirectory

    parser = argparse.ArgumentParser(
        prog='acuaponic-bridge',
        description='AcuaponicDuino serial to MQTT bridge'
    )
    # /data inside the container, ./ for local dev
    default_config = '/data' if os.path.exists('/data') else './'
    parser.add_argument(
        '-c', '--config',
        help='Directory where the configuration resides',
        type=str,
        default=default_config
    )
    args = parser.parse_args()

    configdirectory = args.config
    if not configdirectory.endswith('/'):
        configdirectory += '/'


def setup_logging(level: str) -> None:
    """Install a single stream handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    formatter = logging.Formatter('%(asctime)s %(levelname)s: %(message)s')

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stream = logging.StreamHandler()
    stream.setLevel(level)
    stream.setFormatter(formatter)
    root_logger.addHandler(stream)


def read_config(version: str = "Unknown") -> ConfigModel:
    """
    Read the configuration.

    Args:
        version: The bridge version string for logging

    Returns:
        ConfigModel: The populated configuration object
    """
    # 1. Load options
    options_path = Path(configdirectory) / 'options.json'
    options = {}
    if options_path.exists():
        try:
            options = json.loads(options_path.read_text())
        except Exception as e:
            logger.error(f"Failed to load {options_path}: {e}")

    # 2. Build Config Model
    mqtt_version_str = str(options.get('mqtt_protocol', '3.1.1'))
    version_map = {'3.1': mqtt.MQTTv31, '3.1.1': mqtt.MQTTv311, '5.0': mqtt.MQTTv5}
    mqtt_version = version_map.get(mqtt_version_str, mqtt.MQTTv311)

    defaults = ConfigModel()
    model = ConfigModel(
        log=LogConfig(
            level=(options.get('log_level') or 'INFO').upper()
        ),
        serial=SerialConfig(
            port=options.get('device', defaults.serial.port),
            baudrate=options.get('baudrate', defaults.serial.baudrate)
        ),
        mqtt=MqttConfig(
            host=options.get('mqtt_host') or defaults.mqtt.host,
            port=options.get('mqtt_port') or defaults.mqtt.port,
            username=options.get('mqtt_username') or None,
            password=options.get('mqtt_password') or None,
            client_id=options.get('mqtt_client_id') or defaults.mqtt.client_id,
            version=mqtt_version,
            keepalive=options.get('mqtt_keepalive', defaults.mqtt.keepalive),
            status_topic=options.get('mqtt_status_topic') or None
        ),
        bridge=BridgeConfig(
            receive_debounce=options.get('receive_debounce', defaults.bridge.receive_debounce),
            announce_subscriptions=options.get('announce_subscriptions', defaults.bridge.announce_subscriptions)
        )
    )

    # 3. Global Logging Setup
    setup_logging(model.log.level)

    logger.info(f'Start: acuaponic-bridge - version: {version}')

    # Debug logging with redacted password
    config_log = model.model_dump()
    if config_log['mqtt'].get('password'):
        config_log['mqtt']['password'] = '********'
    logger.debug(f'Config: {str(config_log)}')

    return model
