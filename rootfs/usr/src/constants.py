"""
AcuaponicDuino Bridge Constants

Shared constants and enums for type safety across the application.
"""

from enum import StrEnum


class ConnectionStatus(StrEnum):
    """Bridge availability values for the optional status topic."""

    ONLINE = "online"
    OFFLINE = "offline"


class SessionState(StrEnum):
    """MQTT session states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SerialDirective(StrEnum):
    """Leading character of a serial line."""

    SEND = "S"
    RECEIVE = "R"


class ForwardOutcome(StrEnum):
    """What happened to a serial line on its way to the broker."""

    PUBLISHED = "published"
    NOT_A_FRAME = "not_a_frame"
    UNKNOWN_TOPIC = "unknown_topic"
    PAYLOAD_TOO_LONG = "payload_too_long"
    NOT_CONNECTED = "not_connected"
    PUBLISH_FAILED = "publish_failed"
