"""Asynchronous remote-call client.

This module sits between the typed mapper gateway and whatever transport the
application injected. It guarantees one reply per call: transport exceptions
become a `CallStatus`, and an optional cancellation event abandons the pending
call and resolves immediately with `CallStatus.CANCELLED`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable

from core.domain.constants import PROPERTIES_INTERFACE, PROPERTY_GET_SIGNATURE
from core.domain.errors import BusError
from core.domain.status import BusReply, CallStatus
from core.interfaces.transport import BusTransport

logger = logging.getLogger(__name__)


def _unwrap_variant(value: Any) -> Any:
    # dbus-fast hands back `Variant(signature, value)` for Properties.Get.
    if hasattr(value, "signature") and hasattr(value, "value"):
        return value.value
    return value


def _discard_outcome(task: asyncio.Future[Any]) -> None:
    if not task.cancelled():
        task.exception()


class AsyncRpcClient:
    """Issue remote method calls and property reads over a `BusTransport`."""

    def __init__(self, transport: BusTransport) -> None:
        self._transport = transport

    @property
    def transport(self) -> BusTransport:
        return self._transport

    async def invoke(
        self,
        service: str,
        path: str,
        interface: str,
        method: str,
        *args: Any,
        signature: str = "",
        cancel: asyncio.Event | None = None,
    ) -> BusReply[Any]:
        """Call `interface.method` on `path` hosted by `service`."""

        label = f"{interface}.{method} {path}"
        logger.debug("call %s on %s args=%r", label, service, args)
        call = self._transport.call(
            service=service,
            path=path,
            interface=interface,
            method=method,
            signature=signature,
            args=list(args),
        )
        return await self._await_reply(call, label=label, cancel=cancel)

    async def read_property(
        self,
        service: str,
        path: str,
        interface: str,
        name: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[Any]:
        """Read one property through `org.freedesktop.DBus.Properties.Get`."""

        reply = await self.invoke(
            service,
            path,
            PROPERTIES_INTERFACE,
            "Get",
            interface,
            name,
            signature=PROPERTY_GET_SIGNATURE,
            cancel=cancel,
        )
        if not reply.ok:
            return reply
        return reply.with_value(_unwrap_variant(reply.value))

    async def _settle(self, call: Awaitable[Any], *, label: str) -> BusReply[Any]:
        try:
            value = await call
        except BusError as exc:
            logger.info("%s failed: %s (%s)", label, exc.status.value, exc)
            return BusReply(exc.status, None, str(exc))
        except (OSError, asyncio.TimeoutError) as exc:
            logger.info("%s failed at the transport: %s", label, exc)
            return BusReply(CallStatus.TRANSPORT_FAILURE, None, str(exc) or type(exc).__name__)
        return BusReply.success(value)

    async def _await_reply(
        self,
        call: Awaitable[Any],
        *,
        label: str,
        cancel: asyncio.Event | None,
    ) -> BusReply[Any]:
        settled = self._settle(call, label=label)
        if cancel is None:
            return await settled

        if cancel.is_set():
            settled.close()
            if asyncio.iscoroutine(call):
                call.close()
            logger.debug("%s skipped: already cancelled", label)
            return BusReply(CallStatus.CANCELLED, None, "cancelled before dispatch")

        call_task = asyncio.ensure_future(settled)
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {call_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            call_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if call_task in done:
            return call_task.result()

        call_task.cancel()
        call_task.add_done_callback(_discard_outcome)
        logger.debug("%s abandoned: cancelled", label)
        return BusReply(CallStatus.CANCELLED, None, "cancelled")
