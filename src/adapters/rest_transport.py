"""Transporte sobre el puente REST de D-Bus del BMC.

El servidor web de OpenBMC expone los métodos del bus como
`POST <path>/action/<Method>` con cuerpo `{"data": [args...]}` y las
propiedades como `GET <path>/attr/<name>`. Las respuestas llegan envueltas en
`{"status": "ok", "message": "200 OK", "data": ...}`.

Limitación del puente: el servicio destino lo resuelve el propio BMC a partir
del path, así que `service` solo se usa para logging.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from core.domain.constants import PROPERTIES_INTERFACE
from core.domain.errors import BusNotFoundError, BusProtocolError, BusTransportError

logger = logging.getLogger(__name__)

_PROTOCOL_STATUSES = frozenset({400, 405, 415, 422})


def _object_url(path: str, kind: str, name: str) -> str:
    return f"{path.rstrip('/')}/{kind}/{name}"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get("description"), str):
            return data["description"]
        if isinstance(payload.get("message"), str):
            return payload["message"]
    return f"HTTP {response.status_code}"


class RestBusTransport:
    """`BusTransport` implementado con un `httpx.AsyncClient` ya configurado."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

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
        if interface == PROPERTIES_INTERFACE and method == "Get":
            if len(args) != 2:
                raise BusProtocolError("Properties.Get expects (interface, name)")
            _, name = args
            return await self._send("GET", _object_url(path, "attr", str(name)))

        logger.debug("REST %s.%s on %s (service %s)", interface, method, path, service)
        return await self._send(
            "POST",
            _object_url(path, "action", method),
            json={"data": list(args)},
        )

    async def _send(self, verb: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(verb, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise BusTransportError(f"timeout on {verb} {url}") from exc
        except httpx.HTTPError as exc:
            raise BusTransportError(f"{verb} {url} failed: {exc}") from exc

        status = response.status_code
        if status == 404:
            raise BusNotFoundError(_error_message(response))
        if status in _PROTOCOL_STATUSES:
            raise BusProtocolError(_error_message(response))
        if status >= 400:
            raise BusTransportError(_error_message(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise BusProtocolError(f"{verb} {url}: body is not JSON") from exc

        if not isinstance(payload, dict) or "data" not in payload:
            raise BusProtocolError(f"{verb} {url}: missing 'data' envelope")
        if payload.get("status", "ok") != "ok":
            raise BusProtocolError(_error_message(response))
        return payload["data"]
