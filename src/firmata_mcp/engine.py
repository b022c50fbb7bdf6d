"""Protocol engine: connection lifecycle, pin-state gating and frame I/O.

The engine is the only stateful component. It validates each operation
against the pin state table, encodes it, and writes it to the transport.
Incoming frames are read one at a time with :meth:`ProtocolEngine.poll_incoming`.

Usage::

    engine = ProtocolEngine()
    engine.connect(TransportConfig(port="/dev/ttyACM0"))
    engine.pin_mode(13, PinMode.OUTPUT)
    engine.digital_write(13, HIGH)
    engine.close()

The engine is not thread-safe. Callers that share one instance between
threads must serialize access themselves.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from enum import Enum
from typing import Callable

from .config import EngineConfig, TransportConfig
from .errors import (
    ConnectionFailedError,
    ConnectionLostError,
    FirmataError,
    HandshakeTimeoutError,
    NotConnectedError,
    SendError,
    TransportError,
)
from .models.pins import PinStateTable
from .protocol.commands import (
    PinMode,
    SysExCommand,
    encode_analog_write,
    encode_digital_write,
    encode_pin_mode,
    encode_raw,
    encode_report_digital,
    validate_pin,
)
from .protocol.framing import END_SYSEX, START_SYSEX, SYSTEM_RESET, Frame, VersionFrame
from .protocol.parser import decode_next
from .transport import Transport, create_transport

logger = logging.getLogger(__name__)

IDLE_POLL_INTERVAL = 0.01  # seconds between reads while a reply is pending

FrameObserver = Callable[[Frame], None]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ProtocolEngine:
    """Drives one board over one exclusively owned transport.

    Args:
        transport: Transport to use. When omitted, one is created from
            ``config.transport``.
        observer: Called with every incoming frame that is not consumed by
            a pending version request. When omitted, such frames are kept
            in :attr:`received`.
        config: Engine settings.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        observer: FrameObserver | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._transport = (
            transport if transport is not None else create_transport(self._config.transport)
        )
        self._observer = observer
        self._pins = PinStateTable()
        self._state = ConnectionState.DISCONNECTED
        self._transport_config: TransportConfig | None = None
        self._awaiting_version = False
        self._version: VersionFrame | None = None
        self.received: deque[Frame] = deque(maxlen=self._config.queue_size)

    # ─── STATE ────────────────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def pins(self) -> PinStateTable:
        return self._pins

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def version(self) -> VersionFrame | None:
        """Last version reported by the board, if any."""
        return self._version

    def _require_connected(self) -> None:
        if self._state is not ConnectionState.CONNECTED:
            raise NotConnectedError("Not connected to a board. Call connect() first.")

    # ─── LIFECYCLE ────────────────────────────────────────────────────

    def connect(self, transport_config: TransportConfig | None = None) -> None:
        """Open the transport and enter the connected state.

        Calling this while connected is a no-op when ``transport_config`` is
        omitted or equal to the active one.

        Raises:
            ConnectionFailedError: If the transport cannot be opened, or if
                a different link is requested while already connected. The
                engine state is unchanged.
        """
        if self.connected:
            if transport_config is not None and transport_config != self._transport_config:
                raise ConnectionFailedError(
                    f"Already connected on {self._transport_config.port}; "
                    f"close() before connecting to {transport_config.port}"
                )
            logger.info("Already connected")
            return

        config = transport_config or TransportConfig()
        try:
            self._transport.open(config)
        except (OSError, ValueError) as e:
            raise ConnectionFailedError(
                f"Could not open board link on {config.port}: {e}"
            ) from e

        self._pins.clear()
        self._version = None
        self._transport_config = config
        self._state = ConnectionState.CONNECTED
        logger.info("Connected on %s", config.port)

    def close(self) -> None:
        """Close the transport and forget all pin configuration."""
        try:
            self._transport.close()
        finally:
            was_connected = self.connected
            self._state = ConnectionState.DISCONNECTED
            self._pins.clear()
            self._awaiting_version = False
            if was_connected:
                logger.info("Disconnected")

    def __enter__(self) -> ProtocolEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    # ─── OUTBOUND ─────────────────────────────────────────────────────

    def _send(self, data: bytes, what: str) -> None:
        try:
            self._transport.write_bytes(data)
        except OSError as e:
            logger.warning("Send of %s failed: %s", what, e)
            raise SendError(f"Failed to send {what}: {e}") from e
        logger.debug("Sent %s: %s", what, data.hex(" "))

    def pin_mode(self, pin: int, mode: PinMode | int) -> None:
        """Configure ``pin`` as ``mode``.

        The pin table is only updated once the frame has been written.

        Raises:
            NotConnectedError: If disconnected.
            ValidationError: If the pin or mode is out of range.
            SendError: If the write fails; the pin table is left unchanged.
        """
        self._require_connected()
        frame = encode_pin_mode(pin, mode)
        self._send(frame.to_bytes(), f"pin mode {PinMode(frame.data1).name} on pin {pin}")
        self._pins.set_mode(pin, PinMode(frame.data1))

    def digital_write(self, pin: int, value: int) -> None:
        """Drive an OUTPUT pin HIGH (1) or LOW (0)."""
        self._require_connected()
        validate_pin(pin)
        self._pins.require_mode(pin, PinMode.OUTPUT)
        frame = encode_digital_write(pin, value)
        self._send(frame.to_bytes(), f"digital write {value} to pin {pin}")

    def digital_read(self, pin: int) -> None:
        """Ask the board to report the value of an INPUT pin.

        The value arrives later as an incoming frame, delivered through
        :meth:`poll_incoming`.
        """
        self._require_connected()
        validate_pin(pin)
        self._pins.require_mode(pin, PinMode.INPUT)
        frame = encode_report_digital(pin)
        self._send(frame.to_bytes(), f"digital report request for pin {pin}")

    def analog_write(self, pin: int, value: int) -> None:
        """Write a 14-bit value to a PWM pin."""
        self._require_connected()
        validate_pin(pin)
        self._pins.require_mode(pin, PinMode.PWM)
        frame = encode_analog_write(pin, value)
        self._send(frame.to_bytes(), f"analog write {value} to pin {pin}")

    def send_raw(self, data: bytes) -> None:
        """Write arbitrary bytes for commands without a dedicated encoder.

        Raw sends bypass the pin state table entirely.
        """
        self._require_connected()
        self._send(encode_raw(data), "raw command")

    def reset(self) -> None:
        """Send a system reset.

        On success the pin table is cleared, since the board returns every
        pin to its default configuration.

        Raises:
            NotConnectedError: If disconnected.
            ConnectionLostError: If the reset could not be written. The
                engine is disconnected afterwards.
        """
        self._require_connected()
        try:
            self._send(bytes([SYSTEM_RESET]), "system reset")
        except SendError as e:
            self._state = ConnectionState.DISCONNECTED
            raise ConnectionLostError(
                f"System reset could not be sent, treating link as lost: {e.__cause__}"
            ) from e
        self._pins.clear()
        logger.info("Board reset")

    # ─── VERSION HANDSHAKE ────────────────────────────────────────────

    def get_version(self, timeout: float | None = None) -> VersionFrame:
        """Query the protocol version through the SysEx handshake.

        Sends the SysEx start marker and the REPORT_FIRMWARE subcommand,
        polls until a version frame arrives, then sends the end marker.

        Args:
            timeout: Seconds to wait for the reply. ``None`` waits
                indefinitely.

        Raises:
            NotConnectedError: If disconnected.
            ConnectionLostError: If any handshake write fails. One reset is
                attempted first; its failure, if any, is kept in
                ``reset_error``.
            HandshakeTimeoutError: If ``timeout`` expires first.
            DecodeError: If the reply stream is malformed.
        """
        self._require_connected()
        self._version = None
        self._awaiting_version = True
        try:
            self._handshake_send(bytes([START_SYSEX]), "SysEx start")
            self._handshake_send(bytes([SysExCommand.REPORT_FIRMWARE]), "report firmware")
            version = self._await_version(timeout)
            self._handshake_send(bytes([END_SYSEX]), "SysEx end")
        finally:
            self._awaiting_version = False

        logger.info("Board reports protocol version %s", version)
        return version

    def _handshake_send(self, data: bytes, step: str) -> None:
        try:
            self._send(data, step)
        except SendError as e:
            reset_error: FirmataError | None = None
            logger.warning("Handshake failed at %s, attempting reset", step)
            try:
                self.reset()
            except FirmataError as re:
                reset_error = re
                logger.warning("Automatic reset failed: %s", re)

            self._state = ConnectionState.DISCONNECTED
            message = f"Version handshake failed at {step}: {e.__cause__}"
            if reset_error is not None:
                message += f"; automatic reset also failed: {reset_error}"
            raise ConnectionLostError(message, reset_error=reset_error) from e

    def _await_version(self, timeout: float | None) -> VersionFrame:
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._version is None:
            if deadline is not None and time.monotonic() >= deadline:
                raise HandshakeTimeoutError(
                    f"No version report within {timeout} seconds"
                )
            if self.poll_incoming() is None:
                time.sleep(IDLE_POLL_INTERVAL)
        return self._version

    # ─── INBOUND ──────────────────────────────────────────────────────

    def poll_incoming(self) -> Frame | None:
        """Read and dispatch one incoming frame.

        This is the only call that blocks on the transport. It returns
        ``None`` when the transport yields no byte (read timeout or end of
        stream).

        Raises:
            NotConnectedError: If disconnected.
            DecodeError: If the frame is truncated or over-length.
            TransportError: If the transport read itself fails.
        """
        self._require_connected()
        try:
            lead = self._transport.read_byte()
            if lead is None:
                return None
            frame = decode_next(
                self._transport,
                lead=lead,
                max_sysex_length=self._config.max_sysex_length,
            )
        except OSError as e:
            raise TransportError(f"Read from board failed: {e}") from e

        logger.debug("Received %r", frame)
        self._dispatch(frame)
        return frame

    def _dispatch(self, frame: Frame) -> None:
        if isinstance(frame, VersionFrame):
            pending = self._awaiting_version and self._version is None
            self._version = frame
            if pending:
                return
        if self._observer is not None:
            self._observer(frame)
        else:
            self.received.append(frame)
