"""Serial port transport built on pyserial.

Boards running the protocol enumerate as a USB CDC serial device
(``/dev/ttyACM0`` on Linux, ``COMx`` on Windows) and talk at 57600 baud,
8N1, no flow control.
"""

from __future__ import annotations

import logging

import serial

from ..config import TransportConfig

logger = logging.getLogger(__name__)


class SerialTransport:
    """Manages the serial connection to the board.

    Usage::

        link = SerialTransport()
        link.open(TransportConfig(port="/dev/ttyACM0"))
        link.write_bytes(b"\\xff")
        b = link.read_byte()
        link.close()
    """

    def __init__(self) -> None:
        self._serial: serial.Serial | None = None
        self._config: TransportConfig | None = None

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    @property
    def config(self) -> TransportConfig | None:
        return self._config

    def open(self, config: TransportConfig) -> None:
        """Open the serial port described by ``config``.

        Raises:
            serial.SerialException: If the port cannot be opened.
            ValueError: If the settings are out of range.
        """
        if self.connected:
            self.close()

        self._serial = serial.Serial(
            port=config.port,
            baudrate=config.baudrate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=config.timeout,
        )
        self._config = config
        logger.info("Opened %s at %d baud", config.port, config.baudrate)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return

        try:
            self._serial.close()
        except serial.SerialException as e:
            logger.warning("Error closing serial port: %s", e)
        finally:
            self._serial = None
            logger.info("Serial port closed")

    def write_bytes(self, data: bytes) -> None:
        """Write ``data`` to the port.

        Raises:
            OSError: If the port is closed or the write is incomplete.
        """
        if not self.connected:
            raise OSError("Serial port is not open")

        written = self._serial.write(data)
        if written is not None and written != len(data):
            raise OSError(f"Short write: {written} of {len(data)} bytes")
        self._serial.flush()

    def read_byte(self) -> int | None:
        """Read one byte, or return None if the read timed out."""
        data = self.read_n(1)
        return data[0] if data else None

    def read_n(self, n: int) -> bytes:
        """Read up to ``n`` bytes; fewer are returned on timeout."""
        if not self.connected:
            raise OSError("Serial port is not open")
        return self._serial.read(n)
