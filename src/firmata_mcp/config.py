"""Connection and engine settings."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PORT = "/dev/ttyACM0"
DEFAULT_BAUDRATE = 57600
DEFAULT_READ_TIMEOUT = 1.0
DEFAULT_MAX_SYSEX_LENGTH = 2048
DEFAULT_QUEUE_SIZE = 256


@dataclass
class TransportConfig:
    """Settings handed to ``Transport.open``.

    ``timeout`` bounds each individual read in seconds; ``None`` blocks
    until a byte arrives.
    """

    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    timeout: float | None = DEFAULT_READ_TIMEOUT


@dataclass
class EngineConfig:
    """Settings for a ``ProtocolEngine`` instance.

    Attributes:
        transport: Name of the transport to create when none is injected
            (``"serial"`` or ``"loopback"``).
        max_sysex_length: Upper bound on the bytes accepted between the
            SysEx start and end markers.
        queue_size: Capacity of the received-frame queue used when no
            observer is supplied. Oldest frames are dropped first.
    """

    transport: str = "serial"
    max_sysex_length: int = DEFAULT_MAX_SYSEX_LENGTH
    queue_size: int = DEFAULT_QUEUE_SIZE
