"""Call status and reply envelope shared by every mapper operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class CallStatus(str, Enum):
    """Outcome of a remote call."""

    SUCCESS = "success"
    TRANSPORT_FAILURE = "transport_failure"
    NOT_FOUND = "not_found"
    PROTOCOL_ERROR = "protocol_error"
    CANCELLED = "cancelled"

    @property
    def ok(self) -> bool:
        return self is CallStatus.SUCCESS

    def label(self) -> str:
        """Human readable label for tables and logging."""

        return self.value.replace("_", " ")


@dataclass(frozen=True)
class BusReply(Generic[T]):
    """A single (status, value) pair delivered for one operation.

    Failure replies produced by the gateway and the resolver carry the empty
    value of their type, never partial data.
    """

    status: CallStatus
    value: T
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status.ok

    @classmethod
    def success(cls, value: T) -> "BusReply[T]":
        return cls(CallStatus.SUCCESS, value)

    def with_value(self, value: T) -> "BusReply[T]":
        """Same status and detail, different payload."""

        return BusReply(self.status, value, self.detail)
