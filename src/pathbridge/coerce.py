"""Coercion of loosely typed inputs into paths, filesystems and event kinds.

Every coercion is a :func:`functools.singledispatch` generic, so support for
a new input type is added from outside this module::

    @unary_path.register
    def _(value: Artifact) -> Path:
        return to_path(value.location)

Dispatch points:

- :func:`unary_path` for ``to_path(x)``
- :func:`nary_path` for ``to_path(x, "more", "segments")``
- :func:`file_system` for ``to_filesystem(x)``
- :func:`watch_event_kind` for event kinds passed to ``register``
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from functools import singledispatch
from pathlib import Path, PurePath
from typing import Any
from urllib.parse import ParseResult, SplitResult

from .exceptions import InvalidInputError, UnsupportedEventKindError, UnsupportedInputShapeError
from .filesystem import FileSystem, default_filesystem, lookup_filesystem, provider_for
from .types import URI
from .watch import ENTRY_CREATE, ENTRY_DELETE, ENTRY_MODIFY, WatchEventKind

EVENT_KIND_TAGS: dict[str, WatchEventKind] = {
    "entry-create": ENTRY_CREATE,
    "entry-delete": ENTRY_DELETE,
    "entry-modify": ENTRY_MODIFY,
}


# =============================================================================
# Single-value paths
# =============================================================================


@singledispatch
def unary_path(value: Any) -> Path:
    """Coerce one value to a path."""
    raise UnsupportedInputShapeError(value)


@unary_path.register
def _(value: PurePath) -> Path:
    return value if isinstance(value, Path) else Path(value)


@unary_path.register
def _(value: str) -> Path:
    return default_filesystem().get_path(value)


@unary_path.register
def _(value: bytes) -> Path:
    return default_filesystem().get_path(os.fsdecode(value))


@unary_path.register
def _(value: os.PathLike) -> Path:
    # native handles such as os.DirEntry
    return unary_path(os.fspath(value))


@unary_path.register
def _(value: URI) -> Path:
    if not value.is_absolute:
        raise InvalidInputError(value, "URI is not absolute")
    provider = provider_for(
        value, lambda u: InvalidInputError(u, f"No provider installed for scheme {u.scheme!r}")
    )
    return unary_path(provider.get_path(value))


@unary_path.register(SplitResult)
@unary_path.register(ParseResult)
def _(value: SplitResult | ParseResult) -> Path:
    return unary_path(URI.parse(value.geturl()))


# =============================================================================
# Variadic paths
# =============================================================================


@singledispatch
def nary_path(first: Any, more: Sequence[str]) -> Path:
    """Coerce a value plus extra name segments to a path.

    Paths are deliberately not accepted here: appending segments to a
    structured path is spelled ``resolve_path(path, *others)``.
    """
    if isinstance(first, PurePath):
        raise UnsupportedInputShapeError(
            first, "Extra segments cannot be joined to a path; use resolve_path instead"
        )
    raise UnsupportedInputShapeError(first)


@nary_path.register
def _(first: FileSystem, more: Sequence[str]) -> Path:
    if not more:
        raise UnsupportedInputShapeError(first, "A filesystem needs at least one segment")
    return first.get_path(*more)


@nary_path.register
def _(first: str, more: Sequence[str]) -> Path:
    return default_filesystem().get_path(first, *more)


def to_path(value: Any, *more: str) -> Path:
    """Return a path from a path, URI, native handle, string, or a
    filesystem or string followed by extra string segments.

    Examples:
        to_path("/foo", "bar") == to_path("/foo/bar")
        to_path(default_filesystem(), "/foo", "bar") == to_path("/foo/bar")
        to_path(URI.parse("file:///foo/bar")) == to_path("/foo/bar")
    """
    if more:
        return nary_path(value, more)
    return unary_path(value)


def to_absolute_path(value: Any, *more: str) -> Path:
    """Like :func:`to_path`, made absolute against the working directory."""
    return to_path(value, *more).absolute()


def to_uri(value: Any) -> URI:
    """The ``file:`` URI of the absolute form of a coercible path."""
    return URI.parse(to_absolute_path(value).as_uri())


# =============================================================================
# Filesystems
# =============================================================================


@singledispatch
def file_system(value: Any) -> FileSystem:
    """Coerce one value to the filesystem it belongs to."""
    raise UnsupportedInputShapeError(value)


@file_system.register
def _(value: FileSystem) -> FileSystem:
    return value


@file_system.register
def _(value: PurePath) -> FileSystem:
    return default_filesystem()


@file_system.register
def _(value: URI) -> FileSystem:
    return lookup_filesystem(value)


@file_system.register(SplitResult)
@file_system.register(ParseResult)
def _(value: SplitResult | ParseResult) -> FileSystem:
    return lookup_filesystem(URI.parse(value.geturl()))


_DEFAULT = object()


def to_filesystem(value: Any = _DEFAULT) -> FileSystem:
    """The filesystem of *value*, or the default filesystem when omitted."""
    if value is _DEFAULT or value is None:
        return default_filesystem()
    return file_system(value)


# =============================================================================
# Watch event kinds
# =============================================================================


@singledispatch
def watch_event_kind(value: Any) -> Any:
    """Coerce one value to a watch event kind.

    Unrecognized shapes pass through untouched so that host-specific kinds
    reach the watch service as they are.
    """
    return value


@watch_event_kind.register
def _(value: WatchEventKind) -> WatchEventKind:
    return value


@watch_event_kind.register
def _(value: str) -> WatchEventKind:
    try:
        return EVENT_KIND_TAGS[value]
    except KeyError:
        raise UnsupportedEventKindError(value) from None


to_watch_event_kind = watch_event_kind
