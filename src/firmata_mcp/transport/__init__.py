"""Transport implementations and selection by name."""

from __future__ import annotations

from .base import Transport
from .loopback import LoopbackTransport


def create_transport(kind: str) -> Transport:
    """Build a transport from its configured name.

    Args:
        kind: ``"serial"`` for a real port, ``"loopback"`` for an
            in-memory link.
    """
    if kind == "serial":
        from .serial_connection import SerialTransport

        return SerialTransport()
    if kind == "loopback":
        return LoopbackTransport()
    raise ValueError(f"Unknown transport '{kind}'. Valid: ['serial', 'loopback']")
