"""Per-engine record of confirmed pin configuration."""

from __future__ import annotations

from ..errors import StateError
from ..protocol.commands import PinMode


class PinStateTable:
    """Mapping from pin index to the mode the board has accepted.

    A pin with no entry is unconfigured. The table performs no protocol
    validation; callers validate before writing.
    """

    def __init__(self) -> None:
        self._modes: dict[int, PinMode] = {}

    def set_mode(self, pin: int, mode: PinMode) -> None:
        self._modes[pin] = PinMode(mode)

    def get_mode(self, pin: int) -> PinMode | None:
        return self._modes.get(pin)

    def require_mode(self, pin: int, expected: PinMode) -> None:
        """Raise ``StateError`` unless ``pin`` is configured as ``expected``."""
        actual = self._modes.get(pin)
        if actual is None:
            raise StateError(
                f"Pin {pin} is not configured; set it to {expected.name} first"
            )
        if actual != expected:
            raise StateError(
                f"Pin {pin} is configured as {actual.name}, operation requires {expected.name}"
            )

    def clear(self) -> None:
        self._modes.clear()

    def to_dict(self) -> dict[int, str]:
        return {pin: mode.name for pin, mode in sorted(self._modes.items())}

    def __contains__(self, pin: object) -> bool:
        return pin in self._modes

    def __len__(self) -> int:
        return len(self._modes)

    def __repr__(self) -> str:
        return f"PinStateTable({self.to_dict()})"
