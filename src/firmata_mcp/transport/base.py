"""Transport interface the engine depends on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..config import TransportConfig


@runtime_checkable
class Transport(Protocol):
    """Byte-level link to the board.

    The engine owns its transport exclusively and never assumes anything
    about the concrete stack behind it.

    Failures are reported with exceptions:

    - ``open`` raises ``OSError`` (or ``ValueError`` for unusable
      settings) when the link cannot be opened.
    - ``write_bytes`` raises ``OSError`` when the write does not complete.
    - ``read_byte`` returns ``None`` and ``read_n`` returns fewer bytes than
      asked for when the stream ends or a read timeout expires.
    """

    def open(self, config: TransportConfig) -> None: ...

    def read_byte(self) -> int | None: ...

    def read_n(self, n: int) -> bytes: ...

    def write_bytes(self, data: bytes) -> None: ...

    def close(self) -> None: ...
