"""File visitors: the callback side of :func:`~pathbridge.walker.walk_file_tree`.

A visitor receives four events per walk:

- ``pre_visit_directory(dir, attrs)`` before a directory's entries
- ``visit_file(file, attrs)`` for every non-directory entry, and for
  directories at the depth limit
- ``visit_file_failed(file, exc)`` when an entry cannot be read or opened
- ``post_visit_directory(dir, exc)`` after a directory's entries, with the
  error that cut the iteration short, if any

Each returns a :class:`FileVisitResult` that steers the walk. Visitors can
be written as classes (subclass :class:`SimpleFileVisitor`) or assembled
from plain functions with :func:`file_visitor` and :func:`naive_visitor`.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from .attributes import BasicFileAttributes

    PathCallback = Callable[[Path], "FileVisitResult | None"]
    VisitCallback = Callable[[Path, Any], "FileVisitResult"]


class FileVisitResult(Enum):
    """What the walker does after a visitor callback returns."""

    CONTINUE = "continue"
    TERMINATE = "terminate"
    SKIP_SUBTREE = "skip_subtree"
    SKIP_SIBLINGS = "skip_siblings"


CONTINUE = FileVisitResult.CONTINUE
TERMINATE = FileVisitResult.TERMINATE
SKIP_SUBTREE = FileVisitResult.SKIP_SUBTREE
SKIP_SIBLINGS = FileVisitResult.SKIP_SIBLINGS


@runtime_checkable
class FileVisitor(Protocol):
    """The four callbacks the walker drives."""

    def pre_visit_directory(self, dir: Path, attrs: BasicFileAttributes) -> FileVisitResult: ...
    def visit_file(self, file: Path, attrs: BasicFileAttributes) -> FileVisitResult: ...
    def visit_file_failed(self, file: Path, exc: OSError) -> FileVisitResult: ...
    def post_visit_directory(self, dir: Path, exc: OSError | None) -> FileVisitResult: ...


class SimpleFileVisitor:
    """Visitor that visits everything and re-raises every error.

    Subclass and override the callbacks you need.
    """

    def pre_visit_directory(self, dir: Path, attrs: BasicFileAttributes) -> FileVisitResult:
        return CONTINUE

    def visit_file(self, file: Path, attrs: BasicFileAttributes) -> FileVisitResult:
        return CONTINUE

    def visit_file_failed(self, file: Path, exc: OSError) -> FileVisitResult:
        raise exc

    def post_visit_directory(self, dir: Path, exc: OSError | None) -> FileVisitResult:
        if exc is not None:
            raise exc
        return CONTINUE


# =============================================================================
# Visitors from functions
# =============================================================================

_FULL_CALLBACKS = frozenset(
    {"pre_visit_directory", "post_visit_directory", "visit_file", "visit_file_failed"}
)


class _CallbackVisitor(SimpleFileVisitor):
    """Routes each event to a supplied function, or to the default."""

    def __init__(self, callbacks: dict[str, Callable[..., Any]]) -> None:
        self._callbacks = callbacks

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(sorted(self._callbacks))})"

    def pre_visit_directory(self, dir: Path, attrs: BasicFileAttributes) -> FileVisitResult:
        fn = self._callbacks.get("pre_visit_directory")
        return super().pre_visit_directory(dir, attrs) if fn is None else fn(dir, attrs)

    def visit_file(self, file: Path, attrs: BasicFileAttributes) -> FileVisitResult:
        fn = self._callbacks.get("visit_file")
        return super().visit_file(file, attrs) if fn is None else fn(file, attrs)

    def visit_file_failed(self, file: Path, exc: OSError) -> FileVisitResult:
        fn = self._callbacks.get("visit_file_failed")
        return super().visit_file_failed(file, exc) if fn is None else fn(file, exc)

    def post_visit_directory(self, dir: Path, exc: OSError | None) -> FileVisitResult:
        fn = self._callbacks.get("post_visit_directory")
        return super().post_visit_directory(dir, exc) if fn is None else fn(dir, exc)


def _check_names(given: dict[str, Any], accepted: frozenset[str], builder: str) -> None:
    unknown = sorted(set(given) - accepted)
    if unknown:
        raise TypeError(f"{builder}() got unexpected callback(s): {', '.join(unknown)}")


def file_visitor(**callbacks: Callable[..., Any]) -> FileVisitor:
    """Build a visitor from any of the four callbacks, each given its full arguments.

    Callbacks left out behave as in :class:`SimpleFileVisitor`. Every
    callback must return a :class:`FileVisitResult`.

    Example::

        seen = []
        walk_file_tree(root, file_visitor(
            visit_file=lambda f, attrs: seen.append(f) or CONTINUE,
        ))
    """
    _check_names(callbacks, _FULL_CALLBACKS, "file_visitor")
    return _CallbackVisitor({k: v for k, v in callbacks.items() if v is not None})


def _or_continue(fn: PathCallback) -> VisitCallback:
    def call(path: Path, _ignored: Any) -> FileVisitResult:
        result = fn(path)
        return CONTINUE if result is None else result

    return call


def _raise_or_continue(fn: PathCallback) -> VisitCallback:
    def call(path: Path, exc: OSError | None) -> FileVisitResult:
        if exc is not None:
            raise exc
        result = fn(path)
        return CONTINUE if result is None else result

    return call


def naive_visitor(
    pre_visit_directory: PathCallback | None = None,
    post_visit_directory: PathCallback | None = None,
    visit_file: PathCallback | None = None,
) -> FileVisitor:
    """Build a visitor whose callbacks receive only the entry path.

    Attributes are dropped and a callback returning None continues the walk.
    Errors are always re-raised: a failed entry and a directory whose
    iteration failed both end the walk, and ``visit_file_failed`` cannot be
    supplied.
    """

    def nothing(path: Path) -> None:
        return None

    return _CallbackVisitor(
        {
            "pre_visit_directory": _or_continue(pre_visit_directory or nothing),
            "post_visit_directory": _raise_or_continue(post_visit_directory or nothing),
            "visit_file": _or_continue(visit_file or nothing),
        }
    )
