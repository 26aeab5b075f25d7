"""Build the transport selected in `AppSettings`.

The context manager owns the underlying resource (bus connection or HTTP
client) and releases it on exit.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from adapters.http_client import build_async_client
from adapters.rest_transport import RestBusTransport
from core.config import AppSettings
from core.interfaces.transport import BusTransport

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_transport(settings: AppSettings) -> AsyncIterator[BusTransport]:
    if settings.transport == "rest":
        logger.debug("using REST bridge at %s", settings.rest_base_url)
        async with build_async_client(settings) as client:
            yield RestBusTransport(client)
        return

    # Imported lazily: dbus-fast needs a Unix socket to the system bus.
    from adapters.dbus_transport import DbusFastTransport, connect_system_bus

    logger.debug("using the system bus")
    bus = await connect_system_bus()
    try:
        yield DbusFastTransport(bus)
    finally:
        bus.disconnect()
