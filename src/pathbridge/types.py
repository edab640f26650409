"""Value types: URI, UserPrincipal, GroupPrincipal, FileStore."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import SplitResult, urlsplit, urlunsplit


@dataclass(frozen=True, slots=True)
class URI:
    """Immutable, parsed uniform resource identifier.

    Plain strings are always read as filesystem paths, so a URI has to be
    wrapped explicitly before it can be coerced::

        to_path(URI.parse("file:///tmp/report.txt"))
    """

    scheme: str
    authority: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""

    @classmethod
    def parse(cls, text: str) -> URI:
        parts = urlsplit(text)
        return cls(
            scheme=parts.scheme,
            authority=parts.netloc,
            path=parts.path,
            query=parts.query,
            fragment=parts.fragment,
        )

    @classmethod
    def from_split(cls, parts: SplitResult) -> URI:
        return cls(parts.scheme, parts.netloc, parts.path, parts.query, parts.fragment)

    @property
    def is_absolute(self) -> bool:
        """True when the URI has a scheme."""
        return bool(self.scheme)

    def __str__(self) -> str:
        return urlunsplit((self.scheme, self.authority, self.path, self.query, self.fragment))

    def __repr__(self) -> str:
        return f"URI({str(self)!r})"


@dataclass(frozen=True, slots=True)
class UserPrincipal:
    """A user identity as reported by the host."""

    name: str
    uid: int | None = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class GroupPrincipal:
    """A group identity as reported by the host."""

    name: str
    gid: int | None = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class FileStore:
    """A mounted storage volume."""

    name: str
    type: str
    mount_point: str
    total_space: int
    usable_space: int
    unallocated_space: int
    read_only: bool = False

    def __str__(self) -> str:
        return f"{self.mount_point} ({self.name})"
