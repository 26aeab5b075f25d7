"""Typed façade over the object-mapper service.

Every operation targets the well-known mapper endpoint, validates its
arguments before dispatch, and validates the reply shape with pydantic. A
failed call returns the client's status unchanged together with the empty
value of the operation's result type.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence, TypeVar

from pydantic import TypeAdapter, ValidationError

from core.domain.constants import (
    ASSOCIATION_INTERFACE,
    ENDPOINTS_PROPERTY,
    GET_OBJECT_SIGNATURE,
    GET_SUBTREE_SIGNATURE,
    INT32_MAX,
    MAPPER_INTERFACE,
    MAPPER_PATH,
    MAPPER_SERVICE,
)
from core.domain.models import EndpointSet, ServiceMap, SubtreeEntry, pairs_to_mapping
from core.domain.status import BusReply, CallStatus
from core.paths import validate_object_path
from core.services.rpc_client import AsyncRpcClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SERVICE_MAP = TypeAdapter(ServiceMap)
_PATHS = TypeAdapter(list[str])


def check_depth(depth: int) -> int:
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise TypeError(f"depth must be an int, got {type(depth).__name__}")
    if depth < 0 or depth > INT32_MAX:
        raise ValueError(f"depth must be between 0 and {INT32_MAX}: {depth}")
    return depth


def _protocol_error(empty: T, exc: ValidationError) -> BusReply[T]:
    detail = f"unexpected reply shape: {exc.error_count()} validation error(s)"
    logger.info("mapper reply rejected: %s", exc)
    return BusReply(CallStatus.PROTOCOL_ERROR, empty, detail)


class ObjectMapperGateway:
    """The four mapper queries used by the association pipeline."""

    def __init__(self, client: AsyncRpcClient) -> None:
        self._client = client

    async def _call_mapper(
        self,
        method: str,
        *args: Any,
        signature: str,
        cancel: asyncio.Event | None,
    ) -> BusReply[Any]:
        return await self._client.invoke(
            MAPPER_SERVICE,
            MAPPER_PATH,
            MAPPER_INTERFACE,
            method,
            *args,
            signature=signature,
            cancel=cancel,
        )

    async def get_object(
        self,
        path: str,
        interfaces: Sequence[str] = (),
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[ServiceMap]:
        """Services (and their interfaces) hosting `path`."""

        validate_object_path(path)
        reply = await self._call_mapper(
            "GetObject",
            path,
            list(interfaces),
            signature=GET_OBJECT_SIGNATURE,
            cancel=cancel,
        )
        if not reply.ok:
            return reply.with_value({})
        try:
            services = _SERVICE_MAP.validate_python(pairs_to_mapping(reply.value))
        except ValidationError as exc:
            return _protocol_error({}, exc)
        return BusReply.success(services)

    async def object_exists(
        self,
        path: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[bool]:
        """True iff the mapper knows at least one service for `path`."""

        reply = await self.get_object(path, cancel=cancel)
        return reply.with_value(reply.ok and len(reply.value) > 0)

    async def get_subtree(
        self,
        root: str,
        depth: int = 0,
        interfaces: Sequence[str] = (),
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[list[SubtreeEntry]]:
        validate_object_path(root)
        reply = await self._call_mapper(
            "GetSubTree",
            root,
            check_depth(depth),
            list(interfaces),
            signature=GET_SUBTREE_SIGNATURE,
            cancel=cancel,
        )
        if not reply.ok:
            return reply.with_value([])
        raw = pairs_to_mapping(reply.value)
        if not isinstance(raw, dict):
            return BusReply(CallStatus.PROTOCOL_ERROR, [], "GetSubTree reply is not a map")
        try:
            entries = [
                SubtreeEntry.model_validate({"path": path, "services": services})
                for path, services in raw.items()
            ]
        except ValidationError as exc:
            return _protocol_error([], exc)
        return BusReply.success(entries)

    async def get_subtree_paths(
        self,
        root: str,
        depth: int = 0,
        interfaces: Sequence[str] = (),
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[list[str]]:
        validate_object_path(root)
        reply = await self._call_mapper(
            "GetSubTreePaths",
            root,
            check_depth(depth),
            list(interfaces),
            signature=GET_SUBTREE_SIGNATURE,
            cancel=cancel,
        )
        if not reply.ok:
            return reply.with_value([])
        try:
            paths = _PATHS.validate_python(reply.value)
        except ValidationError as exc:
            return _protocol_error([], exc)
        return BusReply.success(paths)

    async def get_association_endpoints(
        self,
        association_path: str,
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[EndpointSet]:
        """Read `endpoints` of the association object at `association_path`.

        The property is hosted by the mapper service but addressed at the
        association's own path.
        """

        validate_object_path(association_path)
        reply = await self._client.read_property(
            MAPPER_SERVICE,
            association_path,
            ASSOCIATION_INTERFACE,
            ENDPOINTS_PROPERTY,
            cancel=cancel,
        )
        if not reply.ok:
            return reply.with_value(frozenset())
        try:
            endpoints = _PATHS.validate_python(reply.value)
        except ValidationError as exc:
            return _protocol_error(frozenset(), exc)
        return BusReply.success(frozenset(endpoints))
