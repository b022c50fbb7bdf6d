"""Command constants and frame encoders.

Each encoder validates its arguments and returns a frame, or raises
``ValidationError`` before anything is built.
"""

from __future__ import annotations

from enum import IntEnum

from ..errors import ValidationError
from .framing import StandardFrame, SysExFrame

MAX_PIN = 127
MAX_ANALOG_VALUE = 0x3FFF  # 14 bits
DATA_MASK = 0x7F

LOW = 0
HIGH = 1


class Command(IntEnum):
    """Command bytes sent to the board."""

    DIGITAL_MESSAGE = 0x90
    ANALOG_MESSAGE = 0xC0
    REPORT_DIGITAL = 0xD0
    START_SYSEX = 0xF0
    SET_PIN_MODE = 0xF4
    END_SYSEX = 0xF7
    REPORT_VERSION = 0xF9
    SYSTEM_RESET = 0xFF


class SysExCommand(IntEnum):
    """SysEx subcommand identifiers."""

    REPORT_FIRMWARE = 0x79


class PinMode(IntEnum):
    """Configured role of a pin, with its wire encoding."""

    INPUT = 0
    OUTPUT = 1
    ANALOG = 2
    PWM = 3
    SERVO = 4


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_pin(pin: int) -> int:
    """Return ``pin`` if it is a valid pin index 0-127."""
    if not _is_int(pin) or not 0 <= pin <= MAX_PIN:
        raise ValidationError(f"Pin must be an integer 0-{MAX_PIN}, got {pin!r}")
    return pin


def validate_mode(mode: int) -> PinMode:
    """Coerce ``mode`` to a ``PinMode``, rejecting anything outside the enum."""
    if isinstance(mode, PinMode):
        return mode
    if not _is_int(mode):
        raise ValidationError(f"Pin mode must be an integer 0-4, got {mode!r}")
    try:
        return PinMode(mode)
    except ValueError:
        raise ValidationError(
            f"Unknown pin mode {mode}. Valid: {[m.value for m in PinMode]}"
        ) from None


def _split_14bit(value: int) -> tuple[int, int]:
    return value & DATA_MASK, (value >> 7) & DATA_MASK


def encode_pin_mode(pin: int, mode: int) -> StandardFrame:
    """Build a set-pin-mode frame.

    Wire form is ``[0xF4, pin, mode]``.
    """
    pin = validate_pin(pin)
    mode = validate_mode(mode)
    return StandardFrame(
        command=Command.SET_PIN_MODE, channel=pin, data1=int(mode), data2=0
    )


def encode_digital_write(pin: int, value: int) -> StandardFrame:
    """Build a digital write frame.

    Args:
        pin: Pin index 0-127; only the low nibble is addressable.
        value: ``HIGH`` (1) or ``LOW`` (0).
    """
    pin = validate_pin(pin)
    if not _is_int(value) or value not in (HIGH, LOW):
        raise ValidationError(f"Digital value must be HIGH (1) or LOW (0), got {value!r}")
    lsb, msb = _split_14bit(value)
    return StandardFrame(
        command=Command.DIGITAL_MESSAGE | (pin & 0x0F),
        channel=pin & 0x0F,
        data1=lsb,
        data2=msb,
    )


def encode_analog_write(pin: int, value: int) -> StandardFrame:
    """Build an analog (PWM) write frame carrying a 14-bit value."""
    pin = validate_pin(pin)
    if not _is_int(value) or not 0 <= value <= MAX_ANALOG_VALUE:
        raise ValidationError(
            f"Analog value must be 0-{MAX_ANALOG_VALUE}, got {value!r}"
        )
    lsb, msb = _split_14bit(value)
    return StandardFrame(
        command=Command.ANALOG_MESSAGE | (pin & 0x0F),
        channel=pin & 0x0F,
        data1=lsb,
        data2=msb,
    )


def encode_report_digital(pin: int, enabled: bool = True) -> StandardFrame:
    """Build a request asking the board to report the value of ``pin``."""
    pin = validate_pin(pin)
    return StandardFrame(
        command=Command.REPORT_DIGITAL | (pin & 0x0F),
        channel=pin & 0x0F,
        data1=1 if enabled else 0,
        data2=0,
    )


def encode_sysex(subcommand: int, payload: bytes = b"") -> SysExFrame:
    """Build a SysEx envelope.

    The subcommand and every payload byte must be 7-bit clean, since
    bytes with the high bit set would be read as frame markers.
    """
    if not _is_int(subcommand) or not 0 <= subcommand <= DATA_MASK:
        raise ValidationError(f"SysEx subcommand must be 0-127, got {subcommand!r}")
    payload = bytes(payload)
    bad = [b for b in payload if b > DATA_MASK]
    if bad:
        raise ValidationError(
            f"SysEx payload bytes must be 0-127, got {bytes(bad).hex(' ')}"
        )
    return SysExFrame(subcommand=subcommand, payload=payload)


def encode_raw(data) -> bytes:
    """Validate an arbitrary byte sequence for sending as-is."""
    try:
        raw = bytes(data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Raw data must be a sequence of bytes 0-255: {e}") from e
    if not raw:
        raise ValidationError("Raw data must not be empty")
    return raw
