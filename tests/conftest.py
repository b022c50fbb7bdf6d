"""Shared fixtures: in-memory transports standing in for a board."""

from __future__ import annotations

import pytest

from firmata_mcp.config import TransportConfig
from firmata_mcp.engine import ProtocolEngine
from firmata_mcp.transport.loopback import LoopbackTransport


class FlakyTransport(LoopbackTransport):
    """Loopback transport that fails chosen operations.

    Attributes:
        fail_writes: 0-based indices of ``write_bytes`` calls that raise.
        open_error: Raised by ``open`` when set.
        attempts: Every attempted write, including failed ones.
    """

    def __init__(self, incoming: bytes = b"") -> None:
        super().__init__(incoming)
        self.fail_writes: set[int] = set()
        self.open_error: Exception | None = None
        self.attempts: list[bytes] = []

    def open(self, config: TransportConfig) -> None:
        if self.open_error is not None:
            raise self.open_error
        super().open(config)

    def write_bytes(self, data: bytes) -> None:
        index = len(self.attempts)
        self.attempts.append(bytes(data))
        if index in self.fail_writes:
            raise OSError(f"write {index} failed")
        super().write_bytes(data)


@pytest.fixture
def transport() -> FlakyTransport:
    return FlakyTransport()


@pytest.fixture
def engine(transport: FlakyTransport) -> ProtocolEngine:
    """A connected engine over a flaky loopback transport."""
    eng = ProtocolEngine(transport=transport)
    eng.connect(TransportConfig(port="loop://"))
    return eng
