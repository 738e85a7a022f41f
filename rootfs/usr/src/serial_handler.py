"""
Serial Handler Module

Contains the SerialChannel class for exchanging text lines with the control board.
"""

import logging
import threading

import serial

import state as state_module

logger = logging.getLogger(__name__)


class LineAssembler:
    """
    Reassemble newline terminated lines from a byte stream.

    Lines longer than max_length bytes are dropped entirely, including the part
    that arrives after the limit was hit.
    """

    def __init__(self, max_length: int) -> None:
        self._buffer = bytearray()
        self._max_length = max_length
        self._discarding = False
        self.dropped = 0

    def feed(self, data: bytes) -> list[bytes]:
        """
        Add received bytes and return the lines they complete.

        Args:
            data: Raw bytes read from the serial port.

        Returns:
            list[bytes]: Complete lines without the trailing LF or CRLF.
        """
        lines = []
        self._buffer.extend(data)

        while (index := self._buffer.find(b"\n")) != -1:
            line = bytes(self._buffer[:index]).removesuffix(b"\r")
            del self._buffer[: index + 1]

            if self._discarding:
                # Tail of an overlong line
                self._discarding = False
                continue

            if len(line) > self._max_length:
                self._drop(len(line))
                continue

            lines.append(line)

        # Leave room for the CR of a CRLF terminator
        if len(self._buffer) > self._max_length + 1:
            if not self._discarding:
                self._drop(len(self._buffer))
            self._buffer.clear()
            self._discarding = True

        return lines

    def _drop(self, length: int) -> None:
        self.dropped += 1
        logger.warning(f"Serial line of {length}+ bytes exceeds the {self._max_length} byte limit, dropped")


class SerialChannel:
    """
    Line oriented channel to the control board.

    The port is opened non-blocking. Read and write failures close the port, it is
    reopened on the next read after the configured retry delay.
    """

    def __init__(self, context: state_module.BridgeContext, stopper: threading.Event) -> None:
        """
        Initialize the serial channel.

        Args:
            context: Bridge context.
            stopper: Event to signal when the bridge should stop, also used for retry waits.
        """
        self.app_context = context
        self._stopper = stopper
        self._ser: serial.Serial | None = None
        self._assembler = LineAssembler(context.config.serial.max_line_length)

    @property
    def is_open(self) -> bool:
        return self._ser is not None

    def open(self) -> bool:
        """
        Open the serial port, waiting the retry delay on failure.

        Returns:
            bool: True if the port is open.
        """
        if self._ser is not None:
            return True

        cfg = self.app_context.config.serial
        logger.debug(f"Opening serialport '{cfg.port}'")
        try:
            ser = serial.serial_for_url(
                cfg.port,
                baudrate=cfg.baudrate,
                parity=cfg.parity,
                stopbits=cfg.stopbits,
                bytesize=cfg.bytesize,
                timeout=cfg.timeout,
                do_not_open=True,
            )
            ser.open()
        except (serial.SerialException, ValueError, OSError) as e:
            self.app_context.set_error(f"Serialport connection failed: {type(e).__name__}: '{e}'", category="serial")
            logger.error(f"Retry in {cfg.connect_retry} seconds")
            self._stopper.wait(cfg.connect_retry)
            return False

        self._ser = ser
        self.app_context.set_error(None, category="serial")
        logger.info(f"Serialport '{cfg.port}' opened")
        return True

    def close(self) -> None:
        if self._ser is None:
            return
        try:
            self._ser.close()
        except (serial.SerialException, OSError) as e:
            logger.debug(f"Error while closing serialport: {e}")
        self._ser = None

    def read_lines(self) -> list[str]:
        """
        Read whatever is waiting on the port without blocking.

        Returns:
            list[str]: Complete lines received, without line terminators.
        """
        if not self.open():
            return []

        try:
            datain = self._ser.read(max(1, self._ser.in_waiting))
        except (serial.SerialException, OSError) as e:
            self.app_context.set_error(f"Serialport read error: {type(e).__name__}: '{e}'", category="serial")
            self.close()
            return []

        lines = []
        for raw in self._assembler.feed(datain):
            try:
                lines.append(raw.decode("utf-8"))
            except UnicodeDecodeError:
                logger.warning(f"Failed to decode serial data: '{raw}'")
        return lines

    def write_line(self, line: str) -> bool:
        """
        Write one line followed by the configured line ending.

        Returns:
            bool: True if the line was handed to the port.
        """
        if self._ser is None:
            logger.warning(f"Serialport not open, dropping line '{line}'")
            return False

        try:
            self._ser.write((line + self.app_context.config.serial.line_ending).encode("utf-8"))
        except (serial.SerialException, OSError) as e:
            self.app_context.set_error(f"Serialport write error: {type(e).__name__}: '{e}'", category="serial")
            self.close()
            return False
        return True
