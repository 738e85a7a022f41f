"""
AcuaponicDuino Topic Table

Fixed MQTT topics known to the bridge. Outbound topics are the only ones a serial
frame may be published on; inbound topics are subscribed after every connect.
"""

from enum import StrEnum


class OutboundTopic(StrEnum):
    """Topics the control board may publish on through the bridge."""

    AMBIENT_TEMPERATURE = "AcuaponicDuino/Ambiente/Temperatura"
    AMBIENT_HUMIDITY = "AcuaponicDuino/Ambiente/Humedad"
    LIGHT = "AcuaponicDuino/Ambiente/Luz"
    INFLOW = "AcuaponicDuino/Flujo/Entrada"
    OUTFLOW = "AcuaponicDuino/Flujo/Salida"
    WATER_TDS = "AcuaponicDuino/Agua/TDS"
    WATER_PH = "AcuaponicDuino/Agua/pH"
    WATER_TEMPERATURE = "AcuaponicDuino/Agua/Temperatura"
    START_FLOW = "AcuaponicDuino/Start/Flujo"
    START_WATER = "AcuaponicDuino/Start/Agua"
    START_AMBIENT = "AcuaponicDuino/Start/Ambiental"
    START_WATER_TEMPERATURE = "AcuaponicDuino/Start/TempAgua"
    STOP = "AcuaponicDuino/Config/Stop"


class InboundTopic(StrEnum):
    """Topics the bridge subscribes to and relays to the control board."""

    COMMANDS = "AcuaponicDuino/Commands"
    CONFIG_WATER = "AcuaponicDuino/Config/Agua"
    CONFIG_AMBIENT = "AcuaponicDuino/Config/Ambiente"
    CONFIG_FLOW = "AcuaponicDuino/Config/Flujo"
    CONFIG_TEMPERATURE = "AcuaponicDuino/Config/Temperatura"


OUTBOUND_TOPICS: frozenset[str] = frozenset(topic.value for topic in OutboundTopic)

# Subscription order
INBOUND_TOPICS: tuple[str, ...] = tuple(topic.value for topic in InboundTopic)


def is_outbound(topic: str) -> bool:
    """Return True if a frame on this topic may be published to the broker."""
    return topic in OUTBOUND_TOPICS
