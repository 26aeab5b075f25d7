"""Pure helpers for object-path strings.

No I/O here: these functions are shared by the domain models, the gateway and
the CLI wherever raw path strings need checking or normalization.
"""

from __future__ import annotations

import re

from core.domain.errors import InvalidObjectPathError

_BUS_UNSAFE = re.compile(r"[^A-Za-z0-9_/]")
_BUS_PATH = re.compile(r"(/[A-Za-z0-9_]+)+")


def escape_path_for_bus(path: str) -> str:
    """Replace every character outside `[A-Za-z0-9_/]` with `_`.

    The result always has the same length as the input.
    """

    return _BUS_UNSAFE.sub("_", path)


def _stem(segment: str) -> str:
    if segment in (".", ".."):
        return segment
    dot = segment.rfind(".")
    if dot <= 0:
        return segment
    return segment[:dot]


def nth_path_segment(path: str, index: int) -> str | None:
    """Return the segment `index` levels deep into `path`.

    i.e. `/0th/1st/2nd/3rd`. Empty segments are skipped and a trailing
    `.suffix` is stripped from the selected segment. Returns `None` when the
    index is negative or past the last segment.
    """

    if index < 0:
        return None
    segments = [part for part in path.split("/") if part]
    if index >= len(segments):
        return None
    return _stem(segments[index])


def validate_object_path(path: str) -> str:
    """Check the object-path invariants and return the path unchanged.

    Beyond the leading `/` and the trailing-`/` rule, every element must be a
    non-empty run of `[A-Za-z0-9_]`, which is what the bus accepts.
    """

    if not isinstance(path, str) or not path:
        raise InvalidObjectPathError("object path must be a non-empty string")
    if not path.startswith("/"):
        raise InvalidObjectPathError(f"object path must start with '/': {path!r}")
    if path == "/":
        return path
    if path.endswith("/"):
        raise InvalidObjectPathError(f"object path has a trailing '/': {path!r}")
    if not _BUS_PATH.fullmatch(path):
        raise InvalidObjectPathError(
            f"object path elements must be non-empty [A-Za-z0-9_]: {path!r}"
        )
    return path
