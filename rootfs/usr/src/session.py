"""
Session Manager

Keeps the MQTT session alive: connect, subscribe to the inbound topics, and
reconnect whenever the broker link is lost.
"""

from collections.abc import Callable
import logging
import threading

from constants import SessionState
from mqtt_handler import MqttTransport
import state as state_module
from topics import INBOUND_TOPICS

logger = logging.getLogger(__name__)


class SessionManager:
    """
    MQTT session state machine.

    Disconnected -> Connecting -> Connected, and back to Disconnected when the
    transport reports the link is gone. Loss of the link is only noticed at the
    start of ensure_connected(), which the control loop calls every iteration.
    """

    def __init__(
        self,
        context: state_module.BridgeContext,
        transport: MqttTransport,
        stopper: threading.Event,
        on_subscribed: Callable[[str], None] | None = None,
    ) -> None:
        """
        Initialize the session manager.

        Args:
            context: Bridge context.
            transport: The MQTT transport, shared for the process lifetime.
            stopper: Event to signal when the bridge should stop, also used for the backoff wait.
            on_subscribed: Called with the topic after each successful subscription.
        """
        self.app_context = context
        self.on_subscribed = on_subscribed
        self.state = SessionState.DISCONNECTED
        self._transport = transport
        self._stopper = stopper

    @property
    def connected(self) -> bool:
        return self.state == SessionState.CONNECTED

    def check_liveness(self) -> None:
        if self.state == SessionState.CONNECTED and not self._transport.is_connected():
            logger.warning("MQTT session lost, reconnecting")
            self.state = SessionState.DISCONNECTED

    def ensure_connected(self) -> bool:
        """
        Make one attempt to bring the session up, if it is not up already.

        On failure the call blocks for the retry interval before returning, the
        caller simply calls again on its next iteration.

        Returns:
            bool: True if the session is Connected.
        """
        self.check_liveness()
        if self.connected:
            return True

        cfg = self.app_context.config.mqtt
        self.app_context.stats.connect_attempts += 1
        if not self._transport.connect():
            logger.error(f"MQTT connection failed, retry in {cfg.connect_retry} seconds")
            self._stopper.wait(cfg.connect_retry)
            return False

        self.state = SessionState.CONNECTING
        self.app_context.set_error(None, category="mqtt")
        self._subscribe_all()
        self.state = SessionState.CONNECTED
        self._transport.publish_online()
        logger.info(f"MQTT session established as '{cfg.client_id}'")
        return True

    def _subscribe_all(self) -> None:
        # Best effort: a failed subscription does not stop the others
        for topic in INBOUND_TOPICS:
            if self._transport.subscribe(topic):
                logger.info(f"Subscribed to '{topic}'")
                if self.on_subscribed is not None:
                    self.on_subscribed(topic)
            else:
                self.app_context.set_error(f"MQTT subscription to '{topic}' failed", category="mqtt")

    def service(self) -> None:
        """Pump the MQTT client once while Connected."""
        if not self.connected:
            return
        if not self._transport.loop():
            logger.debug("MQTT loop reported an error")

    def publish(self, topic: str, payload: str) -> bool:
        """Publish if Connected. Returns False when the message was not sent."""
        if not self.connected:
            return False
        return self._transport.publish(topic, payload)

    def shutdown(self) -> None:
        if self.connected:
            self._transport.disconnect()
            logger.info("MQTT session closed")
        self.state = SessionState.DISCONNECTED
