"""Native D-Bus transport backed by dbus-fast.

The bus connection is owned by the caller: `DbusFastTransport` only sends
messages over an already-connected `MessageBus` and never closes it.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from dbus_fast import BusType, Message, MessageType
from dbus_fast.aio import MessageBus
from dbus_fast.errors import DBusError as DbusFastError

from core.domain.errors import (
    BusError,
    BusNotFoundError,
    BusProtocolError,
    BusTransportError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = frozenset(
    {
        "org.freedesktop.DBus.Error.UnknownObject",
        "org.freedesktop.DBus.Error.UnknownInterface",
        "org.freedesktop.DBus.Error.UnknownProperty",
        "org.freedesktop.DBus.Error.ServiceUnknown",
        "org.freedesktop.DBus.Error.FileNotFound",
        "xyz.openbmc_project.Common.Error.ResourceNotFound",
    }
)

PROTOCOL_ERRORS = frozenset(
    {
        "org.freedesktop.DBus.Error.InvalidArgs",
        "org.freedesktop.DBus.Error.InvalidSignature",
        "org.freedesktop.DBus.Error.UnknownMethod",
        "org.freedesktop.DBus.Error.NotSupported",
        "xyz.openbmc_project.Common.Error.InvalidArgument",
    }
)


def error_for_reply(error_name: str, message: str) -> BusError:
    """Map a D-Bus error name onto the bus error taxonomy."""

    if error_name in NOT_FOUND_ERRORS:
        return BusNotFoundError(message, error_name=error_name)
    if error_name in PROTOCOL_ERRORS:
        return BusProtocolError(message, error_name=error_name)
    return BusTransportError(message, error_name=error_name)


async def connect_system_bus() -> MessageBus:
    """Open a connection to the system bus."""

    return await MessageBus(bus_type=BusType.SYSTEM).connect()


class DbusFastTransport:
    """`BusTransport` over a connected dbus-fast `MessageBus`."""

    def __init__(self, bus: MessageBus) -> None:
        self._bus = bus

    async def call(
        self,
        *,
        service: str,
        path: str,
        interface: str,
        method: str,
        signature: str,
        args: Sequence[Any],
    ) -> Any:
        try:
            message = Message(
                destination=service,
                path=path,
                interface=interface,
                member=method,
                signature=signature,
                body=list(args),
            )
        except (TypeError, ValueError) as exc:
            # dbus-fast rejects malformed names and paths while building the message.
            raise BusProtocolError(f"cannot build {interface}.{method} on {path}: {exc}") from exc
        try:
            reply = await self._bus.call(message)
        except DbusFastError as exc:
            raise error_for_reply(exc.type, exc.text) from exc
        except EOFError as exc:
            raise BusTransportError("bus connection closed") from exc

        if reply is None:
            raise BusTransportError(f"no reply to {interface}.{method} on {path}")
        if reply.message_type == MessageType.ERROR:
            text = reply.body[0] if reply.body else reply.error_name
            raise error_for_reply(reply.error_name or "", str(text))
        if reply.message_type != MessageType.METHOD_RETURN:
            raise BusProtocolError(f"unexpected {reply.message_type} reply")

        if not reply.body:
            return None
        if len(reply.body) == 1:
            return reply.body[0]
        return list(reply.body)
