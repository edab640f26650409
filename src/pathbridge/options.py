"""Option flags passed to filesystem operations.

Every operation takes its flags as a variable-length argument list; the
list is packed into a tuple with :func:`collect_options` right before the
host call so that a flag of the wrong kind fails early, naming the
operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from .exceptions import UnsupportedOptionError

T = TypeVar("T")


class LinkOption(str, Enum):
    """How symbolic links are handled."""

    NOFOLLOW_LINKS = "nofollow_links"


class StandardCopyOption(str, Enum):
    """Options for copy and move."""

    REPLACE_EXISTING = "replace_existing"
    COPY_ATTRIBUTES = "copy_attributes"
    ATOMIC_MOVE = "atomic_move"


class StandardOpenOption(str, Enum):
    """Options for opening or creating a file."""

    READ = "read"
    WRITE = "write"
    APPEND = "append"
    TRUNCATE_EXISTING = "truncate_existing"
    CREATE = "create"
    CREATE_NEW = "create_new"
    DELETE_ON_CLOSE = "delete_on_close"
    SPARSE = "sparse"
    SYNC = "sync"
    DSYNC = "dsync"


class FileVisitOption(str, Enum):
    """Options for walking a file tree."""

    FOLLOW_LINKS = "follow_links"


class WatchEventModifier(str, Enum):
    """Modifiers for watch registration."""

    FILE_TREE = "file_tree"


@dataclass(frozen=True, slots=True)
class FileAttribute:
    """An attribute to set atomically when a file or directory is created."""

    name: str
    value: Any


def collect_options(
    kinds: type[T] | tuple[type, ...],
    options: tuple[Any, ...] | list[Any],
    operation: str,
    *,
    allowed: frozenset[Any] | None = None,
) -> tuple[T, ...]:
    """Pack *options* into a tuple, rejecting members outside *kinds*.

    When *allowed* is given, members of the right kind that the operation
    does not understand are rejected as well.
    """
    packed = tuple(options)
    for option in packed:
        if not isinstance(option, kinds):
            raise UnsupportedOptionError(option, operation)
        if allowed is not None and option not in allowed:
            raise UnsupportedOptionError(option, operation)
    return packed


def follow_links(options: tuple[Any, ...]) -> bool:
    """False when NOFOLLOW_LINKS is among *options*."""
    return LinkOption.NOFOLLOW_LINKS not in options
