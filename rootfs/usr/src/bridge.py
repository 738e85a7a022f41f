"""
Transport Bridge

Moves data between the serial channel and the MQTT session.
"""

import logging
import threading

from constants import ForwardOutcome
from protocol import encode_frame, parse_frame
from serial_handler import SerialChannel
from session import SessionManager
import state as state_module
from topics import is_outbound

logger = logging.getLogger(__name__)


class TransportBridge:
    """
    Serial <-> MQTT translation.

    Serial to MQTT: send directives on an outbound topic are published, every
    other line is dropped. Nothing is queued while the session is down.

    MQTT to serial: each received message is written as a receive line, followed
    by a short pause before control returns to the client.
    """

    def __init__(
        self,
        context: state_module.BridgeContext,
        serial_channel: SerialChannel,
        session: SessionManager,
        stopper: threading.Event,
    ) -> None:
        self.app_context = context
        self._serial = serial_channel
        self._session = session
        self._stopper = stopper

    def forward_line(self, line: str) -> ForwardOutcome:
        """
        Publish one serial line if it is a send directive on an outbound topic.

        Args:
            line: Line from the serial port, without its terminator.

        Returns:
            ForwardOutcome: What happened to the line.
        """
        context = self.app_context
        context.stats.lines_received += 1

        frame = parse_frame(line)
        if frame is None:
            outcome = ForwardOutcome.NOT_A_FRAME
        elif not is_outbound(frame.topic):
            outcome = ForwardOutcome.UNKNOWN_TOPIC
        elif len(frame.payload) > context.config.bridge.max_payload_length:
            outcome = ForwardOutcome.PAYLOAD_TOO_LONG
        elif not self._session.connected:
            outcome = ForwardOutcome.NOT_CONNECTED
        elif not self._session.publish(frame.topic, frame.payload):
            outcome = ForwardOutcome.PUBLISH_FAILED
        else:
            outcome = ForwardOutcome.PUBLISHED

        context.stats.record(outcome)
        if outcome == ForwardOutcome.PUBLISHED:
            logger.debug(f"MQTT Publish: topic='{frame.topic}', value='{frame.payload}'")
        else:
            logger.debug(f"Serial line dropped ({outcome}): '{line}'")
        return outcome

    def service_serial(self) -> list[ForwardOutcome]:
        """Forward every complete line waiting on the serial port."""
        return [self.forward_line(line) for line in self._serial.read_lines()]

    def forward_message(self, topic: str, payload: bytes) -> None:
        """Write a received MQTT message to the control board."""
        content = payload.decode("utf-8", errors="replace")
        line = encode_frame(topic, content)
        logger.debug(f"Serial write: '{line}'")
        if self._serial.write_line(line):
            self.app_context.stats.messages_received += 1
        self._stopper.wait(self.app_context.config.bridge.receive_debounce)

    def announce_subscription(self, topic: str) -> None:
        if self.app_context.config.bridge.announce_subscriptions:
            self._serial.write_line(f"Subscribed to {topic}")
