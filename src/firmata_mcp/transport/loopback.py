"""In-memory transport for dry runs and tests.

Writes are recorded instead of sent; reads are served from bytes queued
with ``feed``.
"""

from __future__ import annotations

import logging

from ..config import TransportConfig

logger = logging.getLogger(__name__)


class LoopbackTransport:
    """Transport that keeps everything in memory.

    Attributes:
        written: Every successful ``write_bytes`` call, in order.
    """

    def __init__(self, incoming: bytes = b"") -> None:
        self._incoming = bytearray(incoming)
        self._open = False
        self.written: list[bytes] = []
        self.config: TransportConfig | None = None

    @property
    def connected(self) -> bool:
        return self._open

    @property
    def sent(self) -> bytes:
        """All written bytes concatenated."""
        return b"".join(self.written)

    def feed(self, data: bytes) -> None:
        """Queue bytes to be returned by subsequent reads."""
        self._incoming.extend(data)

    def open(self, config: TransportConfig) -> None:
        self.config = config
        self._open = True
        logger.debug("Loopback opened for %s", config.port)

    def close(self) -> None:
        self._open = False

    def write_bytes(self, data: bytes) -> None:
        if not self._open:
            raise OSError("Loopback transport is not open")
        self.written.append(bytes(data))

    def read_byte(self) -> int | None:
        if not self._incoming:
            return None
        return self._incoming.pop(0)

    def read_n(self, n: int) -> bytes:
        chunk = bytes(self._incoming[:n])
        del self._incoming[:n]
        return chunk
