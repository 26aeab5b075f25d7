"""
Shared fixtures for the test suite.

Centralizes the scripted fake transport so individual test files only declare
the mapper state they need.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Sequence

import pytest

from core.domain.constants import PROPERTIES_INTERFACE
from core.domain.errors import BusNotFoundError
from core.services.association_resolver import AssociationResolver
from core.services.object_mapper import ObjectMapperGateway
from core.services.rpc_client import AsyncRpcClient

# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordedCall:
    service: str
    path: str
    interface: str
    method: str
    signature: str
    args: tuple[Any, ...]


class FakeTransport:
    """Scripted `BusTransport`: replies are keyed by (method, target).

    The target is the object path for property reads and the first argument
    (the queried path) for mapper methods. A scripted exception is raised
    instead of returned. Unknown keys raise `BusNotFoundError`.
    """

    def __init__(self) -> None:
        self.calls: list[RecordedCall] = []
        self._replies: dict[tuple[str, str], Any] = {}
        self._gates: dict[tuple[str, str], asyncio.Event] = {}

    # -- scripting ---------------------------------------------------------

    def script(self, method: str, target: str, reply: Any) -> None:
        self._replies[(method, target)] = reply

    def set_endpoints(self, association: str, reply: Any) -> None:
        self.script("Get", association, reply)

    def set_subtree_paths(self, root: str, reply: Any) -> None:
        self.script("GetSubTreePaths", root, reply)

    def set_subtree(self, root: str, reply: Any) -> None:
        self.script("GetSubTree", root, reply)

    def set_object(self, path: str, reply: Any) -> None:
        self.script("GetObject", path, reply)

    def hold(self, method: str, target: str) -> asyncio.Event:
        """Block the matching call until the returned event is set."""

        gate = asyncio.Event()
        self._gates[(method, target)] = gate
        return gate

    def methods_called(self) -> list[str]:
        return [call.method for call in self.calls]

    # -- BusTransport ------------------------------------------------------

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
        self.calls.append(
            RecordedCall(service, path, interface, method, signature, tuple(args))
        )
        if interface == PROPERTIES_INTERFACE:
            key = (method, path)
        else:
            key = (method, args[0])

        gate = self._gates.get(key)
        if gate is not None:
            await gate.wait()

        if key not in self._replies:
            raise BusNotFoundError(f"nothing scripted for {key}")
        reply = self._replies[key]
        if isinstance(reply, BaseException):
            raise reply
        return reply


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(fake_transport: FakeTransport) -> AsyncRpcClient:
    return AsyncRpcClient(fake_transport)


@pytest.fixture
def gateway(client: AsyncRpcClient) -> ObjectMapperGateway:
    return ObjectMapperGateway(client)


@pytest.fixture
def resolver(gateway: ObjectMapperGateway) -> AssociationResolver:
    return AssociationResolver(gateway)
