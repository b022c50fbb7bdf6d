"""MCP server entry point for Firmata boards.

Exposes the protocol engine's pin operations as tools via the Model
Context Protocol, using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import EngineConfig, TransportConfig
from .engine import ProtocolEngine
from .errors import FirmataError
from .protocol.commands import PinMode
from .protocol.framing import StandardFrame, SysExFrame, VersionFrame

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "firmata",
    instructions="MCP server for microcontroller boards speaking the Firmata protocol",
)

# The engine owns all connection and pin state; the server only holds it.
_engine: ProtocolEngine | None = None


def _get_engine() -> ProtocolEngine:
    """Get the engine, creating a disconnected one on first use."""
    global _engine
    if _engine is None:
        _engine = ProtocolEngine()
    return _engine


def _error(e: FirmataError) -> dict[str, Any]:
    return {"error": str(e), "kind": type(e).__name__}


def _parse_mode(mode: str | int) -> PinMode:
    """Accept a mode name ("output", "PWM") or its wire number."""
    if isinstance(mode, int):
        return PinMode(mode)
    text = mode.strip()
    if text.isdigit():
        return PinMode(int(text))
    return PinMode[text.upper()]


def _frame_to_dict(frame) -> dict[str, Any]:
    if isinstance(frame, VersionFrame):
        return {"type": "version", "major": frame.major, "minor": frame.minor}
    if isinstance(frame, SysExFrame):
        return {
            "type": "sysex",
            "subcommand": frame.subcommand,
            "payload": frame.payload.hex(" "),
        }
    if isinstance(frame, StandardFrame):
        return {
            "type": "standard",
            "command": frame.command,
            "channel": frame.channel,
            "data1": frame.data1,
            "data2": frame.data2,
        }
    return {"type": "unknown", "repr": repr(frame)}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    port: str = "/dev/ttyACM0",
    baudrate: int = 57600,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Open the serial link to the board.

    Args:
        port: Serial device path, e.g. /dev/ttyACM0 or COM3.
        baudrate: Link speed; Firmata firmware defaults to 57600.
        dry_run: Use an in-memory loopback link instead of real hardware.
    """
    global _engine
    if _engine is not None and _engine.connected:
        return {"connected": True, "message": "Already connected"}

    kind = "loopback" if dry_run else "serial"
    if _engine is None or _engine.config.transport != kind:
        _engine = ProtocolEngine(config=EngineConfig(transport=kind))
    engine = _engine

    try:
        engine.connect(TransportConfig(port=port, baudrate=baudrate))
    except FirmataError as e:
        return _error(e)
    return {"connected": True, "port": port, "baudrate": baudrate, "dry_run": dry_run}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the link to the board and forget pin configuration."""
    if _engine is not None:
        _engine.close()
    return {"disconnected": True}


@mcp.tool()
def get_version(timeout: float = 5.0) -> dict[str, Any]:
    """Query the board's protocol version.

    Args:
        timeout: Seconds to wait for the reply.
    """
    try:
        version = _get_engine().get_version(timeout=timeout)
    except FirmataError as e:
        result = _error(e)
        reset_error = getattr(e, "reset_error", None)
        if reset_error is not None:
            result["reset_error"] = str(reset_error)
        return result
    return {"major": version.major, "minor": version.minor, "version": str(version)}


@mcp.tool()
def reset() -> dict[str, Any]:
    """Send a system reset; all pins return to their default mode."""
    try:
        _get_engine().reset()
    except FirmataError as e:
        return _error(e)
    return {"reset": True}


# ─── PIN TOOLS ────────────────────────────────────────────────────────

@mcp.tool()
def pin_mode(pin: int, mode: str) -> dict[str, Any]:
    """Configure a pin.

    Args:
        pin: Pin index (0-127).
        mode: One of input, output, analog, pwm, servo (or 0-4).
    """
    try:
        parsed = _parse_mode(mode)
    except (KeyError, ValueError):
        return {
            "error": f"Unknown mode '{mode}'. Valid: {[m.name.lower() for m in PinMode]}",
            "kind": "ValidationError",
        }
    try:
        _get_engine().pin_mode(pin, parsed)
    except FirmataError as e:
        return _error(e)
    return {"pin": pin, "mode": parsed.name}


@mcp.tool()
def digital_write(pin: int, value: int) -> dict[str, Any]:
    """Drive an output pin high (1) or low (0).

    The pin must have been configured as output with pin_mode.
    """
    try:
        _get_engine().digital_write(pin, value)
    except FirmataError as e:
        return _error(e)
    return {"pin": pin, "value": value}


@mcp.tool()
def digital_read(pin: int) -> dict[str, Any]:
    """Request a value report for an input pin.

    The reported value arrives asynchronously; fetch it with poll_incoming.
    """
    try:
        _get_engine().digital_read(pin)
    except FirmataError as e:
        return _error(e)
    return {"pin": pin, "requested": True}


@mcp.tool()
def analog_write(pin: int, value: int) -> dict[str, Any]:
    """Write a 14-bit value (0-16383) to a PWM pin."""
    try:
        _get_engine().analog_write(pin, value)
    except FirmataError as e:
        return _error(e)
    return {"pin": pin, "value": value}


@mcp.tool()
def get_pin_states() -> dict[str, Any]:
    """List the mode of every pin the board has confirmed."""
    engine = _get_engine()
    return {
        "connected": engine.connected,
        "pins": {str(pin): mode for pin, mode in engine.pins.to_dict().items()},
    }


@mcp.tool()
def poll_incoming(max_frames: int = 16) -> dict[str, Any]:
    """Read pending frames from the board.

    Stops early when the link has nothing more to deliver.

    Args:
        max_frames: Upper bound on frames read in this call.
    """
    engine = _get_engine()
    try:
        for _ in range(max_frames):
            if engine.poll_incoming() is None:
                break
    except FirmataError as e:
        result = _error(e)
        result["frames"] = [_frame_to_dict(f) for f in engine.received]
        engine.received.clear()
        return result

    frames = [_frame_to_dict(f) for f in engine.received]
    engine.received.clear()
    return {"frames": frames}


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
