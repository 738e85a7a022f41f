import logging
import signal
import sys
import threading

from bridge import TransportBridge
import config as config_module
from mqtt_handler import MqttTransport
from serial_handler import SerialChannel
from session import SessionManager
import state as state_module
from utils import get_version

"""
Description
-----------
This small Python application relays messages between the AcuaponicDuino control board and
an MQTT broker, so Node-RED (or any other MQTT client) can monitor and steer the aquaponics
installation. The control board only speaks a simple text protocol on its serial port, this
bridge translates that protocol to MQTT and back.

Serial
------
Send record (control board -> bridge), published on MQTT:
S[topic]<payload>

Receive record (bridge -> control board), for every message on a subscribed topic:
R [topic] <payload>

Data example:
S[AcuaponicDuino/Agua/pH]<7.2>
R [AcuaponicDuino/Commands] <START>

Lines that are not a send record, or that use an unknown topic, are ignored. Payloads are
limited to 199 characters and cannot contain '[', ']', '<', '>' or a newline.

Default serialport configuration: 115200 baud, 8 databits, no parity, 1 stopbit.

MQTT
----
Published (only these topics are accepted from the control board):
AcuaponicDuino/Ambiente/Temperatura
AcuaponicDuino/Ambiente/Humedad
AcuaponicDuino/Ambiente/Luz
AcuaponicDuino/Flujo/Entrada
AcuaponicDuino/Flujo/Salida
AcuaponicDuino/Agua/TDS
AcuaponicDuino/Agua/pH
AcuaponicDuino/Agua/Temperatura
AcuaponicDuino/Start/Flujo
AcuaponicDuino/Start/Agua
AcuaponicDuino/Start/Ambiental
AcuaponicDuino/Start/TempAgua
AcuaponicDuino/Config/Stop

Subscribed (relayed to the control board):
AcuaponicDuino/Commands
AcuaponicDuino/Config/Agua
AcuaponicDuino/Config/Ambiente
AcuaponicDuino/Config/Flujo
AcuaponicDuino/Config/Temperatura

When the broker is unreachable the bridge retries every 5 seconds, forever. Records from the
control board are dropped, not queued, while the broker is unreachable.

The ESP8266 bridge firmware printed "Subscribed to <topic>" on the serial port after
each subscription. Set the option announce_subscriptions to true to get these lines again, they
are off by default.

When mqtt_status_topic is set, the bridge publishes "online" (retained) on it once the session is
up, and the broker publishes "offline" as last will when the bridge disappears.

"""

# ------------------------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------------------------
logger = logging.getLogger(__name__)

stopper = threading.Event()


def init_args():
    """Initialize arguments and global configuration paths."""
    config_module.init_args()


def run_once(session: SessionManager, bridge: TransportBridge) -> None:
    """One control loop iteration: session check, serial direction, MQTT direction."""
    session.ensure_connected()
    bridge.service_serial()
    session.service()


def run(context: state_module.BridgeContext, stopper: threading.Event) -> None:
    """Build the channels and run the control loop until stopped."""
    serial_channel = SerialChannel(context, stopper)
    transport = MqttTransport(context)
    session = SessionManager(context, transport, stopper)
    bridge = TransportBridge(context, serial_channel, session, stopper)

    transport.message_handler = bridge.forward_message
    session.on_subscribed = bridge.announce_subscription

    serial_channel.open()
    try:
        while not stopper.is_set():
            run_once(session, bridge)
    finally:
        session.shutdown()
        serial_channel.close()
        logger.info(
            f"Lines received: {context.stats.lines_received}, published: {context.stats.frames_published}, "
            f"dropped: {context.stats.total_dropped}, messages relayed: {context.stats.messages_received}"
        )


# ------------------------------------------------------------------------------------
# Main
# ------------------------------------------------------------------------------------

def main():
    # Signal handling for graceful shutdown, also ends a pending retry wait
    def signal_handler(signum, frame):
        logger.info(f"Signal {signum} received, stopping...")
        stopper.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        version = get_version()
        context = state_module.BridgeContext(config_module.read_config(version))
    except Exception:
        logger.error('Fatal exception during startup', exc_info=True)
        sys.exit(1)

    logger.info('Starting acuaponic-bridge...')

    try:
        run(context, stopper)
    except Exception:
        logger.error('Fatal exception in bridge loop', exc_info=True)
        sys.exit(1)

    logger.info('Stop: acuaponic-bridge')


def cli():
    init_args()
    main()


if __name__ == "__main__":
    cli()
