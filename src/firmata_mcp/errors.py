"""Exception hierarchy for the protocol engine.

Every failure raised by the engine is a ``FirmataError`` subclass, so
callers can branch on the specific kind instead of catching a generic
exception.
"""

from __future__ import annotations


class FirmataError(Exception):
    """Base class for all engine errors."""


class ValidationError(FirmataError, ValueError):
    """Malformed operation arguments, detected before any I/O."""


class StateError(FirmataError):
    """Operation attempted on an unconfigured or wrongly configured pin."""


class NotConnectedError(FirmataError):
    """Operation attempted while the engine is disconnected."""


class DecodeError(FirmataError):
    """Malformed, truncated or over-length incoming byte sequence."""


class HandshakeTimeoutError(FirmataError, TimeoutError):
    """No reply arrived within the caller-supplied handshake timeout."""


class TransportError(FirmataError):
    """Base class for failures reported by the transport."""


class ConnectionFailedError(TransportError, ConnectionError):
    """The transport could not be opened."""


class SendError(TransportError):
    """A single write to the transport failed."""


class ConnectionLostError(TransportError, ConnectionError):
    """The link is considered lost after a failed reset or handshake send.

    ``reset_error`` holds the failure of the automatic reset attempt, if
    one was made and failed. The original failure is the ``__cause__``.
    """

    def __init__(self, message: str, reset_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.reset_error = reset_error
