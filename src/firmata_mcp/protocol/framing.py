"""Wire frame types.

Three frame shapes travel on the link::

    Standard:  +---------+--------+--------+
               | command | byte 1 | byte 2 |
               +---------+--------+--------+

    SysEx:     +------+------------+-----------------+------+
               | 0xF0 | subcommand | payload (0..n)  | 0xF7 |
               +------+------------+-----------------+------+

    Version:   +------+-------+-------+
               | 0xF9 | major | minor |
               +------+-------+-------+

Channel-voice commands (below 0xF0) address a pin through the low nibble
of the command byte. System commands (0xF0 and above) have no channel
nibble, so a pin-addressed system command carries the pin as its first
data byte instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

START_SYSEX = 0xF0
END_SYSEX = 0xF7
REPORT_VERSION = 0xF9
SYSTEM_RESET = 0xFF

SYSTEM_COMMAND_MIN = 0xF0


@dataclass(frozen=True)
class StandardFrame:
    """A fixed three-byte message."""

    command: int
    channel: int = 0
    data1: int = 0
    data2: int = 0

    @property
    def is_system(self) -> bool:
        return self.command >= SYSTEM_COMMAND_MIN

    def to_bytes(self) -> bytes:
        if self.is_system:
            return bytes([self.command, self.channel, self.data1])
        return bytes([self.command, self.data1, self.data2])

    def __repr__(self) -> str:
        return (
            f"StandardFrame(command=0x{self.command:02X}, channel={self.channel}, "
            f"data1={self.data1}, data2={self.data2})"
        )


@dataclass(frozen=True)
class SysExFrame:
    """A variable-length extended message."""

    subcommand: int
    payload: bytes = b""

    def to_bytes(self) -> bytes:
        return bytes([START_SYSEX, self.subcommand]) + self.payload + bytes([END_SYSEX])

    def __repr__(self) -> str:
        return (
            f"SysExFrame(subcommand=0x{self.subcommand:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


@dataclass(frozen=True)
class VersionFrame:
    """Protocol version reported by the board."""

    major: int
    minor: int

    def to_bytes(self) -> bytes:
        return bytes([REPORT_VERSION, self.major, self.minor])

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


Frame = Union[StandardFrame, SysExFrame, VersionFrame]
