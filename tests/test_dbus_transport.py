"""Tests for adapters/dbus_transport.py with a stand-in `MessageBus`."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from dbus_fast import MessageType, Variant

from adapters.dbus_transport import DbusFastTransport, error_for_reply
from core.domain.errors import (
    BusNotFoundError,
    BusProtocolError,
    BusTransportError,
    InvalidObjectPathError,
)
from core.domain.status import CallStatus
from core.services.object_mapper import ObjectMapperGateway
from core.services.rpc_client import AsyncRpcClient


class _FakeBus:
    """Records sent messages and answers with a canned reply."""

    def __init__(self, reply) -> None:
        self.reply = reply
        self.sent = []

    async def call(self, message):
        self.sent.append(message)
        return self.reply


def _method_return(*body):
    return SimpleNamespace(message_type=MessageType.METHOD_RETURN, body=list(body), error_name=None)


def _error(name: str, text: str):
    return SimpleNamespace(message_type=MessageType.ERROR, body=[text], error_name=name)


async def _get_subtree_paths(transport: DbusFastTransport):
    return await transport.call(
        service="xyz.openbmc_project.ObjectMapper",
        path="/xyz/openbmc_project/object_mapper",
        interface="xyz.openbmc_project.ObjectMapper",
        method="GetSubTreePaths",
        signature="sias",
        args=["/xyz", 1, ["a.B"]],
    )


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("name", "error_type"),
        [
            ("org.freedesktop.DBus.Error.UnknownObject", BusNotFoundError),
            ("xyz.openbmc_project.Common.Error.ResourceNotFound", BusNotFoundError),
            ("org.freedesktop.DBus.Error.InvalidArgs", BusProtocolError),
            ("org.freedesktop.DBus.Error.NoReply", BusTransportError),
            ("com.example.Whatever", BusTransportError),
        ],
    )
    def test_error_names(self, name, error_type) -> None:
        error = error_for_reply(name, "text")
        assert type(error) is error_type
        assert error.error_name == name


class TestCall:
    @pytest.mark.asyncio
    async def test_builds_message(self) -> None:
        bus = _FakeBus(_method_return(["/xyz/a"]))
        result = await _get_subtree_paths(DbusFastTransport(bus))

        assert result == ["/xyz/a"]
        message = bus.sent[0]
        assert message.destination == "xyz.openbmc_project.ObjectMapper"
        assert message.path == "/xyz/openbmc_project/object_mapper"
        assert message.member == "GetSubTreePaths"
        assert message.signature == "sias"
        assert message.body == ["/xyz", 1, ["a.B"]]

    @pytest.mark.asyncio
    async def test_error_reply_raises(self) -> None:
        bus = _FakeBus(_error("xyz.openbmc_project.Common.Error.ResourceNotFound", "missing"))
        with pytest.raises(BusNotFoundError, match="missing"):
            await _get_subtree_paths(DbusFastTransport(bus))

    @pytest.mark.asyncio
    async def test_no_reply_is_transport_error(self) -> None:
        with pytest.raises(BusTransportError):
            await _get_subtree_paths(DbusFastTransport(_FakeBus(None)))

    @pytest.mark.asyncio
    async def test_endpoints_variant_through_gateway(self) -> None:
        bus = _FakeBus(_method_return(Variant("as", ["/inv/fan0", "/inv/fan1"])))
        gateway = ObjectMapperGateway(AsyncRpcClient(DbusFastTransport(bus)))

        reply = await gateway.get_association_endpoints("/inv/fan0/chassis")

        assert reply.status is CallStatus.SUCCESS
        assert reply.value == frozenset({"/inv/fan0", "/inv/fan1"})
        message = bus.sent[0]
        assert message.interface == "org.freedesktop.DBus.Properties"
        assert message.member == "Get"
        assert message.body == ["xyz.openbmc_project.Association", "endpoints"]


class TestMalformedPaths:
    @pytest.mark.asyncio
    async def test_gateway_rejects_hyphenated_path_before_sending(self) -> None:
        bus = _FakeBus(_method_return(Variant("as", [])))
        gateway = ObjectMapperGateway(AsyncRpcClient(DbusFastTransport(bus)))

        with pytest.raises(InvalidObjectPathError):
            await gateway.get_association_endpoints("/inv/sys/chassis-fans")
        assert bus.sent == []

    @pytest.mark.asyncio
    async def test_transport_reports_unbuildable_message(self) -> None:
        bus = _FakeBus(_method_return())
        transport = DbusFastTransport(bus)

        with pytest.raises(BusProtocolError, match="chassis-fans"):
            await transport.call(
                service="xyz.openbmc_project.ObjectMapper",
                path="/inv/sys/chassis-fans",
                interface="org.freedesktop.DBus.Properties",
                method="Get",
                signature="ss",
                args=["xyz.openbmc_project.Association", "endpoints"],
            )
        assert bus.sent == []

    @pytest.mark.asyncio
    async def test_client_turns_unbuildable_message_into_status(self) -> None:
        client = AsyncRpcClient(DbusFastTransport(_FakeBus(_method_return())))

        reply = await client.read_property(
            "xyz.openbmc_project.ObjectMapper",
            "/inv/sys/chassis-fans",
            "xyz.openbmc_project.Association",
            "endpoints",
        )

        assert reply.status is CallStatus.PROTOCOL_ERROR
