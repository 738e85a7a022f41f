"""
MQTT Handler

Wraps the paho-mqtt client used by the session manager.
"""

from collections.abc import Callable
import logging
import time

import paho.mqtt.client as mqtt

from constants import ConnectionStatus
import state as state_module

logger = logging.getLogger(__name__)


class MqttTransport:
    """
    Thin adapter around a single paho-mqtt client.

    The client is created once and reused for every reconnect. Network traffic only
    happens inside connect() and loop(), so all paho callbacks run on the caller's
    thread and no background network thread is started.
    """

    def __init__(self, context: state_module.BridgeContext) -> None:
        """
        Initialize the MQTT transport.

        Args:
            context: Bridge context.
        """
        self.app_context = context
        self.message_handler: Callable[[str, bytes], None] | None = None
        self._connack = None
        self._mqttc = self._setup_mqtt_client()

    def _setup_mqtt_client(self) -> mqtt.Client:
        cfg = self.app_context.config.mqtt
        mqttc = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=cfg.client_id,
            protocol=cfg.version,
        )
        mqttc.on_connect = self.on_connect
        mqttc.on_disconnect = self.on_disconnect
        mqttc.on_message = self.on_message

        if cfg.username is not None:
            mqttc.username_pw_set(cfg.username, cfg.password)

        if cfg.status_topic:
            mqttc.will_set(cfg.status_topic, ConnectionStatus.OFFLINE, retain=cfg.retain)
        return mqttc

    def on_connect(self, mqttc, obj, flags, reason_code, properties):
        context = self.app_context
        self._connack = reason_code
        if reason_code == 0:
            logger.info("MQTT successfully connected to broker")
        else:
            context.set_error(f"MQTT failed to connect to broker: {mqtt.connack_string(reason_code)}", category="mqtt")

    def on_disconnect(self, mqttc, obj, flags, reason_code, properties):
        if reason_code != 0:
            self.app_context.set_error(f"MQTT disconnected unexpectedly. Reason: {reason_code}", category="mqtt")

    def on_message(self, mqttc, obj, msg):
        logger.debug("MQTT on_message: " + msg.topic + " " + str(msg.qos) + " " + str(msg.payload))
        if self.message_handler is not None:
            self.message_handler(msg.topic, msg.payload)

    def connect(self) -> bool:
        """
        Connect to the broker and wait for its CONNACK.

        Returns:
            bool: True if the broker accepted the connection.
        """
        cfg = self.app_context.config.mqtt
        self._connack = None
        logger.debug(f"Connecting to MQTT Broker '{cfg.host}:{cfg.port}'")

        try:
            self._mqttc.connect(cfg.host, cfg.port, cfg.keepalive)
        except (OSError, ValueError) as e:
            self.app_context.set_error(f"MQTT connection failed: {e}", category="mqtt")
            return False

        timeout = time.monotonic() + cfg.connect_timeout
        while self._connack is None and time.monotonic() < timeout:
            if self._mqttc.loop(timeout=cfg.loop_timeout) != mqtt.MQTT_ERR_SUCCESS:
                break

        if self._connack is None:
            self.app_context.set_error("MQTT connection failed: Timeout waiting for MQTT CONNACK", category="mqtt")
            return False
        return self._connack == 0

    def subscribe(self, topic: str) -> bool:
        result, _mid = self._mqttc.subscribe(topic)
        return result == mqtt.MQTT_ERR_SUCCESS

    def publish(self, topic: str, payload: str) -> bool:
        info = self._mqttc.publish(topic, payload.encode("utf-8"))
        return info.rc == mqtt.MQTT_ERR_SUCCESS

    def publish_online(self) -> None:
        """Mark the bridge online on the status topic, if one is configured."""
        cfg = self.app_context.config.mqtt
        if cfg.status_topic:
            self._mqttc.publish(cfg.status_topic, ConnectionStatus.ONLINE, retain=cfg.retain)

    def is_connected(self) -> bool:
        return self._mqttc.is_connected()

    def loop(self) -> bool:
        """Process network events once; message callbacks fire from here."""
        return self._mqttc.loop(timeout=self.app_context.config.mqtt.loop_timeout) == mqtt.MQTT_ERR_SUCCESS

    def disconnect(self) -> None:
        cfg = self.app_context.config.mqtt
        if cfg.status_topic and self._mqttc.is_connected():
            self._mqttc.publish(cfg.status_topic, ConnectionStatus.OFFLINE, retain=cfg.retain)
        self._mqttc.disconnect()
