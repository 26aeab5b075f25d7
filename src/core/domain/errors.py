"""Error taxonomy raised by transports and path validation.

Transports raise `BusError` subclasses; `AsyncRpcClient` turns them into a
`CallStatus` so callers always receive a single reply.
"""

from __future__ import annotations

from core.domain.status import CallStatus


class BusError(Exception):
    """Base class for failures reported by a bus transport."""

    status: CallStatus = CallStatus.TRANSPORT_FAILURE

    def __init__(self, message: str, *, error_name: str | None = None) -> None:
        super().__init__(message)
        self.error_name = error_name


class BusTransportError(BusError):
    """Connection, timeout or other bus-level failure."""

    status = CallStatus.TRANSPORT_FAILURE


class BusNotFoundError(BusError):
    """The target object, interface, property or service does not exist."""

    status = CallStatus.NOT_FOUND


class BusProtocolError(BusError):
    """Malformed or unexpected reply shape, or rejected arguments."""

    status = CallStatus.PROTOCOL_ERROR


class InvalidObjectPathError(ValueError):
    """A string is not a valid object path."""
