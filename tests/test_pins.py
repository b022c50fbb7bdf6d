"""Tests for the pin state table."""

import pytest

from firmata_mcp.errors import StateError
from firmata_mcp.models.pins import PinStateTable
from firmata_mcp.protocol.commands import PinMode


def test_unconfigured_pin():
    """Pins without an entry report no mode."""
    table = PinStateTable()
    assert table.get_mode(4) is None
    assert 4 not in table
    assert len(table) == 0


def test_set_mode_overwrites():
    """Later writes replace earlier ones."""
    table = PinStateTable()
    table.set_mode(4, PinMode.INPUT)
    table.set_mode(4, PinMode.SERVO)
    assert table.get_mode(4) is PinMode.SERVO
    assert len(table) == 1


def test_require_mode_match():
    """A matching mode passes without side effects."""
    table = PinStateTable()
    table.set_mode(9, PinMode.PWM)
    table.require_mode(9, PinMode.PWM)
    assert table.to_dict() == {9: "PWM"}


def test_require_mode_unset():
    """An unconfigured pin fails the check."""
    with pytest.raises(StateError, match="not configured"):
        PinStateTable().require_mode(9, PinMode.OUTPUT)


def test_require_mode_mismatch():
    """A pin configured differently fails the check."""
    table = PinStateTable()
    table.set_mode(9, PinMode.INPUT)
    with pytest.raises(StateError, match="INPUT"):
        table.require_mode(9, PinMode.OUTPUT)


def test_clear():
    """Clearing forgets every pin."""
    table = PinStateTable()
    table.set_mode(1, PinMode.OUTPUT)
    table.set_mode(2, PinMode.INPUT)
    table.clear()
    assert table.get_mode(1) is None
    assert len(table) == 0


def test_tables_are_independent():
    """No state is shared between instances."""
    a, b = PinStateTable(), PinStateTable()
    a.set_mode(1, PinMode.OUTPUT)
    assert b.get_mode(1) is None
