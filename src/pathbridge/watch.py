"""Watch keys and watch services backed by the ``watchdog`` observer.

A :class:`WatchService` owns one observer thread and a queue of signalled
keys. Each registered directory gets a :class:`WatchKey`, which collects
events until the caller drains it with :meth:`WatchKey.poll_events` and
re-arms it with :meth:`WatchKey.reset`.

Usage::

    with new_watch_service() as service:
        register(directory, service, ["entry-create", "entry-delete"])
        key = service.take()
        for event in key.poll_events():
            print(event.kind, event.context)
        key.reset()
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .exceptions import ClosedWatchServiceError, UnsupportedOperationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from watchdog.observers.api import ObservedWatch

logger = logging.getLogger(__name__)

DEFAULT_OBSERVER_TIMEOUT = 1.0
MAX_EVENT_LIST_SIZE = 512


class WatchEventKind:
    """Base for event kinds; subclass it for host-specific kinds."""


class StandardWatchEventKinds(WatchEventKind, Enum):
    """The event kinds every watch service delivers."""

    ENTRY_CREATE = "entry_create"
    ENTRY_DELETE = "entry_delete"
    ENTRY_MODIFY = "entry_modify"
    OVERFLOW = "overflow"


ENTRY_CREATE = StandardWatchEventKinds.ENTRY_CREATE
ENTRY_DELETE = StandardWatchEventKinds.ENTRY_DELETE
ENTRY_MODIFY = StandardWatchEventKinds.ENTRY_MODIFY
OVERFLOW = StandardWatchEventKinds.OVERFLOW


@dataclass(slots=True)
class WatchEvent:
    """An event for an entry of a watched directory.

    Attributes:
        kind: What happened.
        context: Path of the entry relative to the watched directory, or
            None for OVERFLOW.
        count: How many identical consecutive events were folded into this one.
    """

    kind: Any
    context: Path | None
    count: int = 1


class WatchKey:
    """Registration of one directory with a :class:`WatchService`."""

    def __init__(
        self,
        service: WatchService,
        watchable: Path,
        kinds: frozenset[Any],
        *,
        recursive: bool = False,
    ) -> None:
        self._service = service
        self._watchable = watchable
        self._root = Path(os.path.abspath(watchable))
        self._kinds = kinds
        self._recursive = recursive
        self._lock = threading.Lock()
        self._events: list[WatchEvent] = []
        self._signalled = False
        self._valid = True
        self._watch: ObservedWatch | None = None

    def __repr__(self) -> str:
        return f"WatchKey({str(self._watchable)!r}, valid={self._valid})"

    @property
    def watchable(self) -> Path:
        return self._watchable

    @property
    def kinds(self) -> frozenset[Any]:
        return self._kinds

    def is_valid(self) -> bool:
        return self._valid

    def poll_events(self) -> list[WatchEvent]:
        """Remove and return all pending events."""
        with self._lock:
            events, self._events = self._events, []
        return events

    def reset(self) -> bool:
        """Re-arm the key. Return False if the key is no longer valid."""
        with self._lock:
            if not self._valid:
                return False
            if self._signalled:
                if self._events:
                    self._service._enqueue(self)
                else:
                    self._signalled = False
            return True

    def cancel(self) -> None:
        """Stop watching; pending events stay readable."""
        with self._lock:
            if not self._valid:
                return
            self._valid = False
        self._service._unschedule(self)

    # ------------------------------------------------------------------
    # Called from the observer thread
    # ------------------------------------------------------------------

    def _signal_event(self, kind: Any, context: Path | None) -> None:
        if kind is not OVERFLOW and kind not in self._kinds:
            return
        with self._lock:
            if not self._valid:
                logger.warning("Dropped %s for cancelled key %r", kind, self)
                return
            last = self._events[-1] if self._events else None
            if last is not None and last.kind == kind and last.context == context:
                last.count += 1
            elif len(self._events) >= MAX_EVENT_LIST_SIZE:
                self._events = [WatchEvent(OVERFLOW, None, len(self._events) + 1)]
            else:
                self._events.append(WatchEvent(kind, context))
            self._signal()

    def _invalidate(self) -> None:
        with self._lock:
            self._valid = False
            self._signal()

    def _signal(self) -> None:
        # caller holds self._lock
        if not self._signalled:
            self._signalled = True
            self._service._enqueue(self)


class _KeyEventHandler(FileSystemEventHandler):
    """Translates watchdog events into key events."""

    def __init__(self, key: WatchKey) -> None:
        super().__init__()
        self._key = key

    def _context(self, raw: bytes | str) -> Path | None:
        path = Path(os.fsdecode(raw))
        try:
            context = path.relative_to(self._key._root)
        except ValueError:
            return None
        return context if context.parts else None

    def on_any_event(self, event: FileSystemEvent) -> None:
        src = self._context(event.src_path)
        if event.event_type == EVENT_TYPE_MOVED:
            dest = self._context(event.dest_path)
            if src is not None:
                self._key._signal_event(ENTRY_DELETE, src)
            if dest is not None:
                self._key._signal_event(ENTRY_CREATE, dest)
            return
        if src is None:
            if event.event_type == EVENT_TYPE_DELETED and event.is_directory:
                logger.debug("Watched directory %s removed", self._key.watchable)
                self._key._invalidate()
            return
        if event.event_type == EVENT_TYPE_CREATED:
            self._key._signal_event(ENTRY_CREATE, src)
        elif event.event_type == EVENT_TYPE_DELETED:
            self._key._signal_event(ENTRY_DELETE, src)
        elif event.event_type == EVENT_TYPE_MODIFIED:
            self._key._signal_event(ENTRY_MODIFY, src)
        else:
            logger.debug("Ignoring %s event for %s", event.event_type, src)


_CLOSED = object()


class WatchService:
    """Queue of signalled watch keys fed by a watchdog observer thread.

    The service is caller-owned: close it (or use it as a context manager)
    to stop the observer thread.
    """

    def __init__(self, *, timeout: float = DEFAULT_OBSERVER_TIMEOUT) -> None:
        self._observer = Observer(timeout=timeout)
        self._queue: queue.Queue[Any] = queue.Queue()
        self._lock = threading.Lock()
        self._keys: list[WatchKey] = []
        self._started = False
        self._closed = False

    def __enter__(self) -> WatchService:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def is_closed(self) -> bool:
        return self._closed

    def register(
        self,
        path: Path,
        kinds: Iterable[Any],
        *,
        recursive: bool = False,
    ) -> WatchKey:
        """Watch the directory *path* for *kinds* of events.

        OVERFLOW is always delivered and need not be requested.

        Raises:
            UnsupportedOperationError: If a kind is not a :class:`WatchEventKind`.
            ValueError: If no kind other than OVERFLOW is requested.
        """
        requested = frozenset(kinds)
        for kind in requested:
            if not isinstance(kind, WatchEventKind):
                raise UnsupportedOperationError(f"Unsupported event kind: {kind!r}")
        requested -= {OVERFLOW}
        if not requested:
            raise ValueError("No events to register")
        with self._lock:
            self._ensure_open()
            key = WatchKey(self, path, requested, recursive=recursive)
            key._watch = self._observer.schedule(
                _KeyEventHandler(key), str(key._root), recursive=recursive
            )
            if not self._started:
                self._observer.start()
                self._started = True
            self._keys.append(key)
        logger.debug("Watching %s (recursive=%s)", path, recursive)
        return key

    def poll(self, timeout: float | None = None) -> WatchKey | None:
        """Next signalled key; None if none arrives within *timeout* seconds.

        Without a timeout, returns immediately.
        """
        self._ensure_open()
        try:
            if timeout is None:
                item = self._queue.get_nowait()
            else:
                item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return self._unwrap(item)

    def take(self) -> WatchKey:
        """Block until a key is signalled."""
        self._ensure_open()
        return self._unwrap(self._queue.get())

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            keys, self._keys = self._keys, []
        for key in keys:
            with key._lock:
                key._valid = False
        self._observer.stop()
        if self._started:
            self._observer.join()
        # wake any blocked take()
        self._queue.put(_CLOSED)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unwrap(self, item: Any) -> WatchKey:
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            raise ClosedWatchServiceError("Watch service is closed")
        return item

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClosedWatchServiceError("Watch service is closed")

    def _enqueue(self, key: WatchKey) -> None:
        if not self._closed:
            self._queue.put(key)

    def _unschedule(self, key: WatchKey) -> None:
        with self._lock:
            if key in self._keys:
                self._keys.remove(key)
        if key._watch is not None and not self._closed:
            self._observer.unschedule(key._watch)
