"""
AcuaponicDuino Serial Protocol

This module handles the text lines exchanged with the control board.

Protocol Format:
- Send (board -> bridge):    S[topic]<payload>    e.g. S[AcuaponicDuino/Agua/pH]<7.2>
- Receive (bridge -> board): R [topic] <payload>  e.g. R [AcuaponicDuino/Commands] <START>

Where:
- topic   = text strictly between the first '[' and the first ']'
- payload = text strictly between the first '<' and the first '>'

There is no escaping, so neither part may contain '[', ']', '<', '>' or a newline.
"""

from dataclasses import dataclass

from constants import SerialDirective

TOPIC_OPEN = "["
TOPIC_CLOSE = "]"
PAYLOAD_OPEN = "<"
PAYLOAD_CLOSE = ">"


@dataclass(frozen=True)
class Frame:
    """A (topic, payload) pair decoded from one serial line."""

    directive: str
    topic: str
    payload: str


def _between(line: str, opening: str, closing: str) -> str | None:
    start = line.find(opening)
    end = line.find(closing)
    if start == -1 or end == -1 or end < start:
        return None
    return line[start + 1 : end]


def parse_frame(line: str) -> Frame | None:
    """
    Parse a serial line into a send Frame.

    Args:
        line: One line from the serial port, without its line terminator.

    Returns:
        Frame | None: The decoded frame, or None when the line is not a well formed
              send directive. Such lines are not an error, they are simply ignored.
    """
    if not line.startswith(SerialDirective.SEND):
        return None

    topic = _between(line, TOPIC_OPEN, TOPIC_CLOSE)
    payload = _between(line, PAYLOAD_OPEN, PAYLOAD_CLOSE)
    if topic is None or payload is None:
        return None

    return Frame(directive=SerialDirective.SEND, topic=topic, payload=payload)


def encode_frame(topic: str, payload: str) -> str:
    """Format a received MQTT message as a line for the control board (no terminator)."""
    return f"{SerialDirective.RECEIVE} {TOPIC_OPEN}{topic}{TOPIC_CLOSE} {PAYLOAD_OPEN}{payload}{PAYLOAD_CLOSE}"
