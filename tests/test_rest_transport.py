"""Tests for adapters/rest_transport.py against `httpx.MockTransport`."""

from __future__ import annotations

import json

import httpx
import pytest

from adapters.http_client import build_async_client
from adapters.rest_transport import RestBusTransport
from core.config import AppSettings
from core.domain.constants import MAPPER_PATH
from core.domain.errors import BusNotFoundError, BusProtocolError, BusTransportError
from core.domain.status import CallStatus
from core.services.object_mapper import ObjectMapperGateway
from core.services.rpc_client import AsyncRpcClient

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings(**overrides) -> AppSettings:
    values = {"transport": "rest", "rest_base_url": "https://bmc.example", **overrides}
    return AppSettings(_env_file=None, **values)


def _ok(data) -> httpx.Response:
    return httpx.Response(200, json={"status": "ok", "message": "200 OK", "data": data})


def _transport(handler) -> RestBusTransport:
    client = build_async_client(_settings(), transport=httpx.MockTransport(handler))
    return RestBusTransport(client)


async def _call(transport: RestBusTransport, **overrides):
    kwargs = {
        "service": "xyz.openbmc_project.ObjectMapper",
        "path": MAPPER_PATH,
        "interface": "xyz.openbmc_project.ObjectMapper",
        "method": "GetSubTreePaths",
        "signature": "sias",
        "args": ["/xyz", 0, []],
    }
    kwargs.update(overrides)
    return await transport.call(**kwargs)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequests:
    @pytest.mark.asyncio
    async def test_method_is_posted_to_action(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _ok(["/xyz/a"])

        result = await _call(_transport(handler))

        assert result == ["/xyz/a"]
        request = seen[0]
        assert request.method == "POST"
        assert request.url == "https://bmc.example/xyz/openbmc_project/object_mapper/action/GetSubTreePaths"
        assert json.loads(request.content) == {"data": ["/xyz", 0, []]}

    @pytest.mark.asyncio
    async def test_property_get_reads_attr(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _ok(["/inv/fan0"])

        result = await _call(
            _transport(handler),
            path="/inv/fan0/chassis",
            interface="org.freedesktop.DBus.Properties",
            method="Get",
            signature="ss",
            args=["xyz.openbmc_project.Association", "endpoints"],
        )

        assert result == ["/inv/fan0"]
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/inv/fan0/chassis/attr/endpoints"

    @pytest.mark.asyncio
    async def test_basic_auth_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _ok([])

        client = build_async_client(
            _settings(rest_username="root", rest_password="0penBmc"),
            transport=httpx.MockTransport(handler),
        )
        await _call(RestBusTransport(client))
        assert seen[0].headers["Authorization"].startswith("Basic ")


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.asyncio
    async def test_404_is_not_found(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404,
                json={"status": "error", "message": "404 Not Found", "data": {"description": "no object"}},
            )

        with pytest.raises(BusNotFoundError, match="no object"):
            await _call(_transport(handler))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 500, 503])
    async def test_server_and_auth_errors_are_transport(self, status) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text="nope")

        with pytest.raises(BusTransportError):
            await _call(_transport(handler))

    @pytest.mark.asyncio
    async def test_400_is_protocol(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"status": "error", "message": "400 Bad Request"})

        with pytest.raises(BusProtocolError):
            await _call(_transport(handler))

    @pytest.mark.asyncio
    async def test_missing_envelope_is_protocol(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["/xyz/a"])

        with pytest.raises(BusProtocolError):
            await _call(_transport(handler))

    @pytest.mark.asyncio
    async def test_non_json_is_protocol(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html></html>")

        with pytest.raises(BusProtocolError):
            await _call(_transport(handler))

    @pytest.mark.asyncio
    async def test_connection_error_is_transport(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BusTransportError):
            await _call(_transport(handler))


# ---------------------------------------------------------------------------
# Through the gateway
# ---------------------------------------------------------------------------


class TestWithGateway:
    @pytest.mark.asyncio
    async def test_subtree_dict_reply(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return _ok({"/inv/fan0": {"xyz.openbmc_project.Inventory.Manager": ["Fan"]}})

        gateway = ObjectMapperGateway(AsyncRpcClient(_transport(handler)))
        reply = await gateway.get_subtree("/inv", 0, ["Fan"])

        assert reply.ok
        assert reply.value[0].path == "/inv/fan0"

    @pytest.mark.asyncio
    async def test_not_found_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"status": "error", "message": "404 Not Found", "data": {}})

        gateway = ObjectMapperGateway(AsyncRpcClient(_transport(handler)))
        reply = await gateway.object_exists("/inv/missing")

        assert reply.status is CallStatus.NOT_FOUND
        assert reply.value is False


class TestOpenTransport:
    @pytest.mark.asyncio
    async def test_rest_setting_builds_rest_transport(self) -> None:
        from adapters.transport_factory import open_transport

        async with open_transport(_settings()) as transport:
            assert isinstance(transport, RestBusTransport)
