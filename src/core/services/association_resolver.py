"""Association-path resolution pipeline.

Given an association object and a search root, find the objects below the root
that are also endpoints of the association. Two mapper queries are chained:

1. read the association's `endpoints` property;
2. list the (filtered, depth-limited) subtree under the root;

then the subtree listing is intersected with the endpoint set and sorted.

Short-circuit rules are explicit branches below. A failed stage is reported
with its own status and nothing is merged. An empty but successful stage ends
the pipeline with an empty successful result. The mapper's own
`GetAssociatedSubTreePaths` method is intentionally not used, so the pipeline
works against mappers that predate it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Iterable,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from core.domain.models import EndpointSet, SubtreeEntry
from core.domain.status import BusReply
from core.paths import validate_object_path
from core.services.object_mapper import ObjectMapperGateway, check_depth

logger = logging.getLogger(__name__)

T = TypeVar("T")

SubtreeQuery = Callable[[], Awaitable[BusReply[Any]]]
_Outcome = Tuple[BusReply[Any], Optional[BusReply[Any]]]


class ResolverStage(str, Enum):
    IDLE = "idle"
    AWAITING_ENDPOINTS = "awaiting_endpoints"
    AWAITING_SUBTREE = "awaiting_subtree"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


@dataclass
class _Invocation(Generic[T]):
    """Transient state of one pipeline run."""

    association_path: str
    root: str
    depth: int
    interfaces: list[str]
    stage: ResolverStage = ResolverStage.IDLE
    endpoints: EndpointSet = field(default_factory=frozenset)

    @classmethod
    def start(
        cls,
        association_path: str,
        root: str,
        depth: int,
        interfaces: Sequence[str],
    ) -> _Invocation[T]:
        """Validate the arguments once, before either stage is dispatched."""

        return cls(
            validate_object_path(association_path),
            validate_object_path(root),
            check_depth(depth),
            list(interfaces),
        )

    def advance(self, stage: ResolverStage) -> None:
        logger.debug(
            "associated subtree %s under %s: %s -> %s",
            self.association_path,
            self.root,
            self.stage.value,
            stage.value,
        )
        self.stage = stage

    def finish(self, reply: BusReply[T]) -> BusReply[T]:
        self.advance(ResolverStage.DONE if reply.ok else ResolverStage.FAILED)
        return reply


def merge_associated_paths(
    subtree_paths: Iterable[str],
    endpoints: EndpointSet,
) -> list[str]:
    """Subtree paths that are also endpoints, ascending and without duplicates."""

    return sorted({path for path in subtree_paths if path in endpoints})


def merge_associated_entries(
    subtree: Iterable[SubtreeEntry],
    endpoints: EndpointSet,
) -> list[SubtreeEntry]:
    """Subtree entries whose path is an endpoint, sorted by path."""

    kept: dict[str, SubtreeEntry] = {}
    for entry in subtree:
        if entry.path in endpoints:
            kept.setdefault(entry.path, entry)
    return [kept[path] for path in sorted(kept)]


class AssociationResolver:
    """Resolve association endpoints against a subtree of the mapper.

    By default the two queries run strictly in sequence: the subtree query is
    only issued after the endpoints reply has been observed. With
    `concurrent=True` both are issued at once; the outcome is the same, and
    when both fail the endpoints failure is the one reported. In both modes a
    malformed path or depth raises `ValueError` before anything is dispatched.
    """

    def __init__(self, gateway: ObjectMapperGateway, *, concurrent: bool = False) -> None:
        self._gateway = gateway
        self._concurrent = concurrent

    @property
    def concurrent(self) -> bool:
        return self._concurrent

    async def get_associated_subtree_paths(
        self,
        association_path: str,
        root: str,
        depth: int = 0,
        interfaces: Sequence[str] = (),
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[list[str]]:
        run: _Invocation[list[str]] = _Invocation.start(
            association_path, root, depth, interfaces
        )

        def query_subtree() -> Awaitable[BusReply[list[str]]]:
            return self._gateway.get_subtree_paths(
                run.root, run.depth, run.interfaces, cancel=cancel
            )

        stopped, subtree_reply = await self._query(run, query_subtree, cancel)
        if subtree_reply is None:
            return run.finish(stopped.with_value([]))

        run.advance(ResolverStage.MERGING)
        result = merge_associated_paths(subtree_reply.value, run.endpoints)
        return run.finish(BusReply.success(result))

    async def get_associated_subtree(
        self,
        association_path: str,
        root: str,
        depth: int = 0,
        interfaces: Sequence[str] = (),
        *,
        cancel: asyncio.Event | None = None,
    ) -> BusReply[list[SubtreeEntry]]:
        """Same pipeline as `get_associated_subtree_paths`, keeping service maps."""

        run: _Invocation[list[SubtreeEntry]] = _Invocation.start(
            association_path, root, depth, interfaces
        )

        def query_subtree() -> Awaitable[BusReply[list[SubtreeEntry]]]:
            return self._gateway.get_subtree(
                run.root, run.depth, run.interfaces, cancel=cancel
            )

        stopped, subtree_reply = await self._query(run, query_subtree, cancel)
        if subtree_reply is None:
            return run.finish(stopped.with_value([]))

        run.advance(ResolverStage.MERGING)
        result = merge_associated_entries(subtree_reply.value, run.endpoints)
        return run.finish(BusReply.success(result))

    async def _query(
        self,
        run: _Invocation[Any],
        query_subtree: SubtreeQuery,
        cancel: asyncio.Event | None,
    ) -> _Outcome:
        """Run both stages and apply the short-circuit rules.

        Returns `(stopped, subtree_reply)`. When the pipeline must stop early
        `subtree_reply` is `None` and `stopped` is the reply of the stage that
        ended it; its status is reported unchanged.
        """

        if self._concurrent:
            return await self._query_concurrently(run, query_subtree, cancel)

        run.advance(ResolverStage.AWAITING_ENDPOINTS)
        endpoints_reply = await self._gateway.get_association_endpoints(
            run.association_path, cancel=cancel
        )
        if not endpoints_reply.ok or not endpoints_reply.value:
            return endpoints_reply, None
        run.endpoints = endpoints_reply.value

        run.advance(ResolverStage.AWAITING_SUBTREE)
        subtree_reply = await query_subtree()
        if not subtree_reply.ok or not subtree_reply.value:
            return subtree_reply, None
        return endpoints_reply, subtree_reply

    async def _query_concurrently(
        self,
        run: _Invocation[Any],
        query_subtree: SubtreeQuery,
        cancel: asyncio.Event | None,
    ) -> _Outcome:
        run.advance(ResolverStage.AWAITING_ENDPOINTS)
        run.advance(ResolverStage.AWAITING_SUBTREE)
        endpoints_task = asyncio.ensure_future(
            self._gateway.get_association_endpoints(run.association_path, cancel=cancel)
        )
        subtree_task = asyncio.ensure_future(query_subtree())
        try:
            endpoints_reply, subtree_reply = await asyncio.gather(endpoints_task, subtree_task)
        except BaseException:
            # Neither stage may outlive the run.
            endpoints_task.cancel()
            subtree_task.cancel()
            await asyncio.gather(endpoints_task, subtree_task, return_exceptions=True)
            raise

        if not endpoints_reply.ok or not endpoints_reply.value:
            return endpoints_reply, None
        run.endpoints = endpoints_reply.value
        if not subtree_reply.ok or not subtree_reply.value:
            return subtree_reply, None
        return endpoints_reply, subtree_reply


__all__ = [
    "AssociationResolver",
    "ResolverStage",
    "merge_associated_entries",
    "merge_associated_paths",
]
