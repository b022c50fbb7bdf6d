"""Incremental decoding of the incoming byte stream into frames."""

from __future__ import annotations

from typing import Protocol

from ..config import DEFAULT_MAX_SYSEX_LENGTH
from ..errors import DecodeError
from .framing import (
    END_SYSEX,
    REPORT_VERSION,
    START_SYSEX,
    SYSTEM_COMMAND_MIN,
    Frame,
    StandardFrame,
    SysExFrame,
    VersionFrame,
)


class ByteReader(Protocol):
    """Anything ``decode_next`` can pull bytes from."""

    def read_byte(self) -> int | None: ...

    def read_n(self, n: int) -> bytes: ...


class ByteSource:
    """In-memory ``ByteReader`` over a fixed buffer.

    Usage::

        source = ByteSource(b"\\xf9\\x02\\x05")
        frame = decode_next(source)
        assert source.remaining == 0
    """

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def consumed(self) -> int:
        return self._pos

    def read_byte(self) -> int | None:
        if self._pos >= len(self._data):
            return None
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_n(self, n: int) -> bytes:
        chunk = self._data[self._pos : self._pos + n]
        self._pos += len(chunk)
        return chunk


def _read_exact(source: ByteReader, n: int, what: str) -> bytes:
    data = source.read_n(n)
    if len(data) < n:
        raise DecodeError(
            f"Stream ended inside {what}: expected {n} bytes, got {len(data)}"
        )
    return data


def _read_sysex_body(source: ByteReader, max_length: int) -> bytes:
    """Read up to and including the end marker, returning the bytes between."""
    body = bytearray()
    while True:
        b = source.read_byte()
        if b is None:
            raise DecodeError(
                f"Stream ended inside SysEx after {len(body)} bytes, no 0xF7 terminator"
            )
        if b == END_SYSEX:
            return bytes(body)
        if len(body) >= max_length:
            raise DecodeError(
                f"SysEx exceeds maximum length of {max_length} bytes without terminator"
            )
        body.append(b)


def decode_next(
    source: ByteReader,
    lead: int | None = None,
    max_sysex_length: int = DEFAULT_MAX_SYSEX_LENGTH,
) -> Frame:
    """Decode exactly one frame from ``source``.

    Args:
        source: Byte reader positioned at the start of a frame, or just
            after its first byte when ``lead`` is given.
        lead: The frame's first byte, if the caller has already read it.
        max_sysex_length: Maximum number of bytes accepted between the
            SysEx start and end markers.

    Returns:
        A ``VersionFrame``, ``SysExFrame`` or ``StandardFrame``.
        Unrecognised command bytes decode as opaque standard frames.
        System commands (0xF0 and above) decode with their first data
        byte as the channel, mirroring ``StandardFrame.to_bytes``.

    Raises:
        DecodeError: On a short read, an empty SysEx, or a SysEx longer
            than ``max_sysex_length``.
    """
    if lead is None:
        lead = source.read_byte()
        if lead is None:
            raise DecodeError("Stream ended before a frame started")

    if lead == REPORT_VERSION:
        major, minor = _read_exact(source, 2, "version report")
        return VersionFrame(major=major, minor=minor)

    if lead == START_SYSEX:
        body = _read_sysex_body(source, max_sysex_length)
        if not body:
            raise DecodeError("Empty SysEx message has no subcommand")
        return SysExFrame(subcommand=body[0], payload=body[1:])

    b1, b2 = _read_exact(source, 2, f"command 0x{lead:02X}")
    if lead >= SYSTEM_COMMAND_MIN:
        # same layout StandardFrame.to_bytes uses: channel travels first
        return StandardFrame(command=lead, channel=b1, data1=b2, data2=0)
    return StandardFrame(command=lead, channel=lead & 0x0F, data1=b1, data2=b2)
