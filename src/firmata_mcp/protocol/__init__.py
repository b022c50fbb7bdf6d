"""Protocol layer: frame types, encoders, and stream decoding."""

from .framing import Frame, StandardFrame, SysExFrame, VersionFrame
from .commands import (
    Command,
    PinMode,
    SysExCommand,
    encode_pin_mode,
    encode_digital_write,
    encode_analog_write,
    encode_report_digital,
    encode_sysex,
)
from .parser import ByteSource, decode_next
