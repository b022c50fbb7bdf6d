"""Tests for the MCP tool functions."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from firmata_mcp.engine import ProtocolEngine

from conftest import FlakyTransport


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("firmata_mcp.server", None)
        import firmata_mcp.server as server_mod

    return server_mod


@pytest.fixture
def server():
    server_mod = _get_server_module()
    yield server_mod
    sys.modules.pop("firmata_mcp.server", None)


@pytest.fixture
def link(server):
    """Install a connected engine over a flaky loopback transport."""
    transport = FlakyTransport()
    server._engine = ProtocolEngine(transport=transport)
    server._engine.connect()
    return transport


def test_connect_dry_run(server):
    """A dry run connects over the loopback transport."""
    result = server.connect(port="loop://", dry_run=True)
    assert result["connected"] is True
    assert result["dry_run"] is True
    assert server._engine.connected


def test_connect_already_connected(server, link):
    """Connecting twice reports the existing link."""
    assert server.connect()["message"] == "Already connected"


def test_pin_mode_and_write(server, link):
    """Tools drive the engine and report what was done."""
    assert server.pin_mode(5, "output") == {"pin": 5, "mode": "OUTPUT"}
    assert server.digital_write(5, 1) == {"pin": 5, "value": 1}
    assert link.written == [bytes([0xF4, 5, 1]), bytes([0x95, 1, 0])]


def test_pin_mode_numeric(server, link):
    """Modes can be given by wire number."""
    assert server.pin_mode(3, "3")["mode"] == "PWM"
    assert server.analog_write(3, 300) == {"pin": 3, "value": 300}
    assert link.written[-1] == bytes([0xC3, 44, 2])


def test_pin_mode_unknown_name(server, link):
    """Unknown mode names come back as validation errors."""
    result = server.pin_mode(3, "laser")
    assert result["kind"] == "ValidationError"
    assert link.attempts == []


def test_state_error_reported(server, link):
    """Engine errors are returned with their kind."""
    result = server.digital_write(5, 1)
    assert result["kind"] == "StateError"


def test_not_connected_reported(server):
    """Tools used before connect report NotConnectedError."""
    server._engine = ProtocolEngine(transport=FlakyTransport())
    assert server.reset()["kind"] == "NotConnectedError"


def test_get_version(server, link):
    """The version tool returns major, minor and a dotted string."""
    link.feed(bytes([0xF9, 2, 5]))
    assert server.get_version() == {"major": 2, "minor": 5, "version": "2.5"}


def test_get_version_reports_reset_failure(server, link):
    """Both handshake and reset failures are visible to the caller."""
    link.fail_writes = {0, 1}
    result = server.get_version()
    assert result["kind"] == "ConnectionLostError"
    assert "reset_error" in result


def test_digital_read_and_poll(server, link):
    """Reports requested with digital_read arrive through poll_incoming."""
    server.pin_mode(2, "input")
    assert server.digital_read(2) == {"pin": 2, "requested": True}
    link.feed(bytes([0x92, 1, 0]))
    result = server.poll_incoming()
    assert result["frames"] == [
        {"type": "standard", "command": 0x92, "channel": 2, "data1": 1, "data2": 0}
    ]
    assert server.poll_incoming()["frames"] == []


def test_poll_incoming_decode_error(server, link):
    """Decode errors are reported alongside frames already read."""
    link.feed(bytes([0xF0, 0x79, 0x01, 0xF7, 0xF9, 2]))
    result = server.poll_incoming()
    assert result["kind"] == "DecodeError"
    assert result["frames"] == [{"type": "sysex", "subcommand": 0x79, "payload": "01"}]


def test_get_pin_states(server, link):
    """Pin states list confirmed modes only."""
    server.pin_mode(4, "servo")
    link.fail_writes = {1}
    server.pin_mode(6, "output")
    assert server.get_pin_states() == {"connected": True, "pins": {"4": "SERVO"}}


def test_reset_and_disconnect(server, link):
    """Reset clears pins; disconnect closes the link."""
    server.pin_mode(4, "output")
    assert server.reset() == {"reset": True}
    assert server.get_pin_states()["pins"] == {}
    assert server.disconnect() == {"disconnected": True}
    assert not server._engine.connected


def test_real_connect_after_dry_run_uses_serial(server):
    """A dry-run link is not reused when real hardware is requested."""
    import serial

    from firmata_mcp.transport.serial_connection import SerialTransport

    assert server.connect(port="loop://", dry_run=True)["connected"] is True
    assert server.disconnect() == {"disconnected": True}

    with patch(
        "firmata_mcp.transport.serial_connection.serial.Serial",
        side_effect=serial.SerialException("could not open port /dev/does-not-exist"),
    ):
        result = server.connect(port="/dev/does-not-exist", dry_run=False)

    assert result["kind"] == "ConnectionFailedError"
    assert "connected" not in result
    assert isinstance(server._engine.transport, SerialTransport)
    assert not server._engine.connected


def test_dry_run_after_real_engine_uses_loopback(server):
    """A dry run replaces a disconnected serial engine with a loopback one."""
    from firmata_mcp.transport.loopback import LoopbackTransport

    server._engine = ProtocolEngine()
    result = server.connect(port="loop://", dry_run=True)
    assert result["dry_run"] is True
    assert isinstance(server._engine.transport, LoopbackTransport)
