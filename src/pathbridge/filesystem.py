"""FileSystem scopes, providers and the process-wide default filesystem."""

from __future__ import annotations

import grp
import logging
import os
import pwd
import re
import threading
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import unquote

import psutil

from .attributes import VIEW_NAMES
from .exceptions import (
    FileSystemNotFoundError,
    InvalidInputError,
    UnsupportedInputShapeError,
    UnsupportedOperationError,
    UserPrincipalNotFoundError,
)
from .types import URI, FileStore, GroupPrincipal, UserPrincipal
from .watch import WatchService

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@runtime_checkable
class FileSystemProvider(Protocol):
    """Factory for filesystems and paths identified by a URI scheme."""

    scheme: str

    def get_filesystem(self, uri: URI) -> FileSystem:
        """Return the existing filesystem identified by *uri*."""
        ...

    def get_path(self, uri: URI) -> PurePath:
        """Convert *uri* into a path of one of this provider's filesystems."""
        ...


# =============================================================================
# Path matching
# =============================================================================


def glob_to_regex(glob: str, separator: str = "/") -> str:
    """Translate a glob into a regular expression.

    ``*`` and ``?`` never cross a name boundary, ``**`` does, ``{a,b}``
    matches either alternative and ``[!x]`` negates a bracket expression.
    """
    sep = re.escape(separator)
    out = ["^"]
    in_group = False
    i = 0
    while i < len(glob):
        c = glob[i]
        i += 1
        if c == "\\":
            if i == len(glob):
                raise ValueError(f"No character to escape in glob {glob!r}")
            out.append(re.escape(glob[i]))
            i += 1
        elif c == "[":
            end = glob.find("]", i + 1)
            if end == -1:
                raise ValueError(f"Missing ']' in glob {glob!r}")
            body = glob[i:end]
            if body.startswith("!"):
                body = "^" + body[1:]
            elif body.startswith("^"):
                body = "\\" + body
            out.append("[" + body.replace("\\", "\\\\") + "]")
            i = end + 1
        elif c == "{":
            if in_group:
                raise ValueError(f"Cannot nest groups in glob {glob!r}")
            out.append("(?:")
            in_group = True
        elif c == "}" and in_group:
            out.append(")")
            in_group = False
        elif c == "," and in_group:
            out.append("|")
        elif c == "*":
            if glob.startswith("*", i):
                out.append(".*")
                i += 1
            else:
                out.append(f"[^{sep}]*")
        elif c == "?":
            out.append(f"[^{sep}]")
        else:
            out.append(re.escape(c))
    if in_group:
        raise ValueError(f"Missing '}}' in glob {glob!r}")
    out.append("$")
    return "".join(out)


class PathMatcher:
    """Predicate over paths compiled from ``glob:`` or ``regex:`` syntax."""

    def __init__(self, syntax_and_pattern: str, separator: str = os.sep) -> None:
        syntax, sep, pattern = syntax_and_pattern.partition(":")
        if not sep:
            raise ValueError(f"Expected 'syntax:pattern', got {syntax_and_pattern!r}")
        syntax = syntax.lower()
        if syntax == "glob":
            regex = glob_to_regex(pattern, separator)
        elif syntax == "regex":
            regex = pattern
        else:
            raise UnsupportedOperationError(f"Syntax {syntax!r} not recognized")
        self.pattern = syntax_and_pattern
        self._regex = re.compile(regex)

    def matches(self, path: Any) -> bool:
        return self._regex.fullmatch(os.fspath(path)) is not None

    __call__ = matches

    def __repr__(self) -> str:
        return f"PathMatcher({self.pattern!r})"


# =============================================================================
# User and group lookup
# =============================================================================


class UserPrincipalLookupService:
    """Resolves user and group names against the host account database."""

    def lookup_principal_by_name(self, name: str) -> UserPrincipal:
        try:
            entry = pwd.getpwnam(name)
        except KeyError:
            raise UserPrincipalNotFoundError(name) from None
        return UserPrincipal(entry.pw_name, entry.pw_uid)

    def lookup_principal_by_group_name(self, name: str) -> GroupPrincipal:
        try:
            entry = grp.getgrnam(name)
        except KeyError:
            raise UserPrincipalNotFoundError(name) from None
        return GroupPrincipal(entry.gr_name, entry.gr_gid)


# =============================================================================
# FileSystem
# =============================================================================


class FileSystem:
    """A scope that produces and resolves paths.

    The default instance is shared process-wide and cannot be closed; use
    :func:`default_filesystem` to obtain it.
    """

    def __init__(
        self,
        provider: FileSystemProvider,
        *,
        separator: str = os.sep,
        closeable: bool = False,
    ) -> None:
        self._provider = provider
        self._separator = separator
        self._closeable = closeable
        self._open = True

    def __repr__(self) -> str:
        return f"FileSystem(scheme={self._provider.scheme!r})"

    @property
    def provider(self) -> FileSystemProvider:
        return self._provider

    @property
    def separator(self) -> str:
        return self._separator

    def get_path(self, first: str, *more: str) -> Path:
        """Join *first* and *more* with the separator and parse the result.

        Empty segments are skipped, so ``get_path("", "/a")`` is ``/a``.
        """
        segments = (first, *more)
        for segment in segments:
            if not isinstance(segment, str):
                raise UnsupportedInputShapeError(
                    segment, f"Path segments must be str, got {type(segment).__name__}"
                )
        return Path(self._separator.join(s for s in segments if s))

    def root_directories(self) -> list[Path]:
        return [Path(self._separator)]

    def file_stores(self) -> list[FileStore]:
        """Every mounted store whose usage can be read."""
        stores = []
        for partition in psutil.disk_partitions(all=True):
            try:
                stores.append(_file_store(partition))
            except OSError as exc:
                logger.debug("Skipping file store %s: %s", partition.mountpoint, exc)
        return stores

    def get_file_store(self, path: Path) -> FileStore:
        """The store holding *path*, by longest matching mount point."""
        real = os.path.realpath(path, strict=True)
        best = None
        for partition in psutil.disk_partitions(all=True):
            mount = partition.mountpoint
            prefix = mount.rstrip(self._separator) + self._separator
            contains = real == mount or real.startswith(prefix)
            if contains and (best is None or len(mount) > len(best.mountpoint)):
                best = partition
        if best is None:
            raise FileNotFoundError(f"No file store holds {real}")
        return _file_store(best)

    def path_matcher(self, syntax_and_pattern: str) -> PathMatcher:
        return PathMatcher(syntax_and_pattern, self._separator)

    def user_principal_lookup_service(self) -> UserPrincipalLookupService:
        return UserPrincipalLookupService()

    def new_watch_service(self, **kwargs: Any) -> WatchService:
        self._ensure_open()
        return WatchService(**kwargs)

    def supported_file_attribute_views(self) -> frozenset[str]:
        return frozenset(VIEW_NAMES)

    def is_open(self) -> bool:
        return self._open

    def is_read_only(self) -> bool:
        return False

    def close(self) -> None:
        if not self._closeable:
            raise UnsupportedOperationError("The default filesystem cannot be closed")
        self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise UnsupportedOperationError(f"{self!r} is closed")


def _file_store(partition: Any) -> FileStore:
    usage = psutil.disk_usage(partition.mountpoint)
    return FileStore(
        name=partition.device,
        type=partition.fstype,
        mount_point=partition.mountpoint,
        total_space=usage.total,
        usable_space=usage.free,
        unallocated_space=usage.total - usage.used,
        read_only="ro" in partition.opts.split(","),
    )


# =============================================================================
# Local provider
# =============================================================================


class LocalFileSystemProvider:
    """Provider for ``file:`` URIs, owner of the default filesystem."""

    scheme = "file"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._filesystem: FileSystem | None = None

    @property
    def filesystem(self) -> FileSystem:
        """The provider's single filesystem, created on first access."""
        fs = self._filesystem
        if fs is None:
            with self._lock:
                if self._filesystem is None:
                    self._filesystem = FileSystem(self)
                    logger.debug("Bound default filesystem %r", self._filesystem)
                fs = self._filesystem
        return fs

    def get_filesystem(self, uri: URI) -> FileSystem:
        self._check_scheme(uri)
        return self.filesystem

    def get_path(self, uri: URI) -> Path:
        self._check_scheme(uri)
        if uri.authority not in ("", "localhost"):
            raise InvalidInputError(uri, "URI has an authority component")
        if uri.query:
            raise InvalidInputError(uri, "URI has a query component")
        if uri.fragment:
            raise InvalidInputError(uri, "URI has a fragment component")
        if not uri.path:
            raise InvalidInputError(uri, "URI path component is empty")
        if not uri.path.startswith("/"):
            raise InvalidInputError(uri, "URI is not hierarchical")
        return self.filesystem.get_path(unquote(uri.path))

    def _check_scheme(self, uri: URI) -> None:
        if uri.scheme.lower() != self.scheme:
            raise InvalidInputError(uri, f"URI scheme is not {self.scheme!r}")


# =============================================================================
# Provider registry
# =============================================================================


class _ProviderRegistry:
    """Installed providers keyed by lower-case scheme."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.local = LocalFileSystemProvider()
        self._providers: dict[str, FileSystemProvider] = {self.local.scheme: self.local}

    def register(self, provider: FileSystemProvider) -> None:
        if not isinstance(provider, FileSystemProvider):
            raise TypeError(f"{provider!r} does not implement FileSystemProvider")
        scheme = provider.scheme.lower()
        if scheme == self.local.scheme:
            raise ValueError("The file provider cannot be replaced")
        with self._lock:
            self._providers[scheme] = provider
        logger.debug("Registered filesystem provider for %r", scheme)

    def unregister(self, scheme: str) -> bool:
        scheme = scheme.lower()
        if scheme == self.local.scheme:
            raise ValueError("The file provider cannot be removed")
        with self._lock:
            return self._providers.pop(scheme, None) is not None

    def lookup(self, scheme: str) -> FileSystemProvider | None:
        return self._providers.get(scheme.lower())

    def installed(self) -> list[FileSystemProvider]:
        with self._lock:
            return list(self._providers.values())


_registry = _ProviderRegistry()


def default_filesystem() -> FileSystem:
    """The process-wide default filesystem, bound on first use."""
    return _registry.local.filesystem


def installed_providers() -> list[FileSystemProvider]:
    return _registry.installed()


def register_provider(provider: FileSystemProvider) -> None:
    """Install *provider* for its scheme, replacing any previous one."""
    _registry.register(provider)


def unregister_provider(scheme: str) -> bool:
    """Remove the provider for *scheme*. Return True if one was installed."""
    return _registry.unregister(scheme)


def provider_for(uri: URI, missing: Callable[[URI], Exception]) -> FileSystemProvider:
    """The provider claiming *uri*; raise ``missing(uri)`` when there is none."""
    provider = _registry.lookup(uri.scheme) if uri.scheme else None
    if provider is None:
        raise missing(uri)
    return provider


def lookup_filesystem(uri: URI) -> FileSystem:
    provider = provider_for(
        uri,
        lambda u: FileSystemNotFoundError(f"Provider {u.scheme!r} not installed for {u}"),
    )
    return provider.get_filesystem(uri)
