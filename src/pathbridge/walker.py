"""Depth-first file tree walking.

:class:`FileTreeWalker` turns a tree into a flat sequence of
:class:`WalkEvent` values; :func:`walk_file_tree` feeds those events to a
:class:`~pathbridge.visitor.FileVisitor` and obeys its results.
"""

from __future__ import annotations

import errno
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .attributes import BasicFileAttributes
from .coerce import to_path
from .exceptions import FileSystemLoopError
from .options import FileVisitOption, collect_options
from .visitor import CONTINUE, SKIP_SIBLINGS, SKIP_SUBTREE, TERMINATE, FileVisitor, FileVisitResult

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

MAX_DEPTH = sys.maxsize


class EventKind(Enum):
    START_DIRECTORY = "start_directory"
    END_DIRECTORY = "end_directory"
    ENTRY = "entry"


@dataclass(frozen=True, slots=True)
class WalkEvent:
    """One step of a walk.

    ``attrs`` is set for START_DIRECTORY and for a readable ENTRY; ``exc``
    is set for a failed ENTRY and for an END_DIRECTORY whose iteration
    failed.
    """

    kind: EventKind
    path: Path
    attrs: BasicFileAttributes | None = None
    exc: OSError | None = None


@dataclass(slots=True)
class _DirectoryNode:
    path: Path
    key: Any
    entries: Any
    skipped: bool = field(default=False)


class FileTreeWalker:
    """Walks a tree one event at a time.

    Usage::

        with FileTreeWalker(max_depth=2) as walker:
            event = walker.walk(start)
            while event is not None:
                ...
                event = walker.next()
    """

    def __init__(self, *, follow_links: bool = False, max_depth: int = MAX_DEPTH) -> None:
        if max_depth < 0:
            raise ValueError("max_depth cannot be negative")
        self._follow_links = follow_links
        self._max_depth = max_depth
        self._stack: list[_DirectoryNode] = []

    def __enter__(self) -> FileTreeWalker:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    @property
    def depth(self) -> int:
        return len(self._stack)

    def walk(self, start: Path) -> WalkEvent:
        """Start at *start* (depth 0) and return its event."""
        if self._stack:
            raise RuntimeError("Walker already started")
        return self._visit(start, None)

    def next(self) -> WalkEvent | None:
        """The next event, or None once the walk is complete."""
        if not self._stack:
            return None
        top = self._stack[-1]
        exc: OSError | None = None
        if not top.skipped:
            try:
                entry = next(top.entries, None)
            except OSError as e:
                entry, exc = None, e
            if entry is not None:
                return self._visit(top.path / entry.name, entry)
        self.pop()
        return WalkEvent(EventKind.END_DIRECTORY, top.path, exc=exc)

    def pop(self) -> None:
        """Leave the current directory without reporting its end."""
        node = self._stack.pop()
        node.entries.close()

    def skip_remaining_siblings(self) -> None:
        """Stop reading the current directory; its end is still reported."""
        if self._stack:
            self._stack[-1].skipped = True

    def close(self) -> None:
        while self._stack:
            self.pop()

    def _attributes(self, path: Path, entry: os.DirEntry | None) -> BasicFileAttributes:
        try:
            if entry is None:
                st = os.stat(path, follow_symlinks=self._follow_links)
            else:
                st = entry.stat(follow_symlinks=self._follow_links)
        except OSError:
            if not self._follow_links:
                raise
            # broken link: report the link itself
            st = os.lstat(path)
        return BasicFileAttributes.from_stat(st)

    def _would_loop(self, key: Any) -> bool:
        return any(node.key == key for node in self._stack)

    def _visit(self, path: Path, entry: os.DirEntry | None) -> WalkEvent:
        try:
            attrs = self._attributes(path, entry)
        except OSError as exc:
            return WalkEvent(EventKind.ENTRY, path, exc=exc)

        if len(self._stack) >= self._max_depth or not attrs.is_directory:
            return WalkEvent(EventKind.ENTRY, path, attrs)

        if self._follow_links and self._would_loop(attrs.file_key):
            loop = FileSystemLoopError(errno.ELOOP, "File system loop detected", str(path))
            return WalkEvent(EventKind.ENTRY, path, exc=loop)

        try:
            entries = os.scandir(path)
        except OSError as exc:
            return WalkEvent(EventKind.ENTRY, path, exc=exc)
        self._stack.append(_DirectoryNode(path, attrs.file_key, entries))
        return WalkEvent(EventKind.START_DIRECTORY, path, attrs)


def _checked(result: Any, callback: str) -> FileVisitResult:
    if not isinstance(result, FileVisitResult):
        raise TypeError(f"{callback} returned {result!r}, expected a FileVisitResult")
    return result


def _walker_for(options: Any, max_depth: int, operation: str) -> FileTreeWalker:
    opts = collect_options(FileVisitOption, options, operation)
    return FileTreeWalker(follow_links=FileVisitOption.FOLLOW_LINKS in opts, max_depth=max_depth)


def walk_file_tree(
    start: Any,
    visitor: FileVisitor,
    *,
    options: Any = (),
    max_depth: int = MAX_DEPTH,
) -> Path:
    """Walk the tree rooted at *start*, depth first, calling *visitor*.

    Symbolic links are not followed unless ``FileVisitOption.FOLLOW_LINKS``
    is among *options*. Directories at *max_depth* are passed to
    ``visit_file`` instead of being entered. Any exception raised by a
    callback ends the walk and propagates.

    Returns:
        The coerced *start* path.
    """
    if not isinstance(visitor, FileVisitor):
        raise TypeError(f"Expected a FileVisitor, got {type(visitor).__name__}")
    root = to_path(start)
    with _walker_for(options, max_depth, "walk_file_tree") as walker:
        event = walker.walk(root)
        while event is not None:
            if event.kind is EventKind.ENTRY:
                if event.exc is None:
                    result = _checked(visitor.visit_file(event.path, event.attrs), "visit_file")
                else:
                    result = _checked(
                        visitor.visit_file_failed(event.path, event.exc), "visit_file_failed"
                    )
            elif event.kind is EventKind.START_DIRECTORY:
                result = _checked(
                    visitor.pre_visit_directory(event.path, event.attrs), "pre_visit_directory"
                )
                if result in (SKIP_SUBTREE, SKIP_SIBLINGS):
                    walker.pop()
            else:
                result = _checked(
                    visitor.post_visit_directory(event.path, event.exc), "post_visit_directory"
                )
                if result is SKIP_SIBLINGS:
                    result = CONTINUE

            if result is TERMINATE:
                break
            if result is SKIP_SIBLINGS:
                walker.skip_remaining_siblings()
            event = walker.next()
    return root


def walk(start: Any, *options: FileVisitOption, max_depth: int = MAX_DEPTH) -> Iterator[Path]:
    """Yield every path under *start*, including *start*, in walk order.

    Raises the first error met reading an entry or a directory.
    """
    root = to_path(start)
    with _walker_for(options, max_depth, "walk") as walker:
        event = walker.walk(root)
        while event is not None:
            if event.exc is not None:
                raise event.exc
            if event.kind is not EventKind.END_DIRECTORY:
                yield event.path
            event = walker.next()
