"""File attribute views: basic, owner and posix.

Attribute values are plain frozen dataclasses built from ``os.stat_result``.
Named attributes are addressed as ``"[view:]name"`` (``"size"``,
``"posix:permissions"``) or ``"view:name,name"`` / ``"view:*"`` for bulk reads.
"""

from __future__ import annotations

import grp
import os
import pwd
import stat
from dataclasses import dataclass, fields
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import UnsupportedOperationError
from .options import FileAttribute
from .types import GroupPrincipal, UserPrincipal

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


class PosixFilePermission(Enum):
    """One permission bit of a POSIX file mode."""

    OWNER_READ = stat.S_IRUSR
    OWNER_WRITE = stat.S_IWUSR
    OWNER_EXECUTE = stat.S_IXUSR
    GROUP_READ = stat.S_IRGRP
    GROUP_WRITE = stat.S_IWGRP
    GROUP_EXECUTE = stat.S_IXGRP
    OTHERS_READ = stat.S_IROTH
    OTHERS_WRITE = stat.S_IWOTH
    OTHERS_EXECUTE = stat.S_IXOTH


# rwx triplets in display order
_PERMISSION_ORDER = tuple(PosixFilePermission)
_PERMISSION_CHARS = "rwxrwxrwx"


def permissions_from_mode(mode: int) -> frozenset[PosixFilePermission]:
    return frozenset(p for p in PosixFilePermission if mode & p.value)


def permissions_to_mode(perms: Iterable[PosixFilePermission]) -> int:
    mode = 0
    for perm in perms:
        mode |= perm.value
    return mode


def posix_permissions_from_string(text: str) -> frozenset[PosixFilePermission]:
    """Parse ``"rwxr-x---"`` into a permission set.

    Raises:
        ValueError: If *text* is not nine ``r``/``w``/``x``/``-`` characters
            in the canonical positions.
    """
    if len(text) != 9:
        raise ValueError(f"Invalid mode: {text!r}")
    perms = set()
    for perm, expected, actual in zip(_PERMISSION_ORDER, _PERMISSION_CHARS, text, strict=True):
        if actual == expected:
            perms.add(perm)
        elif actual != "-":
            raise ValueError(f"Invalid mode: {text!r}")
    return frozenset(perms)


def posix_permissions_to_string(perms: Iterable[PosixFilePermission]) -> str:
    granted = set(perms)
    return "".join(
        char if perm in granted else "-"
        for perm, char in zip(_PERMISSION_ORDER, _PERMISSION_CHARS, strict=True)
    )


def as_file_attribute(perms: Iterable[PosixFilePermission]) -> FileAttribute:
    """Wrap a permission set for use at file or directory creation."""
    return FileAttribute("posix:permissions", frozenset(perms))


def _to_datetime(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, UTC)


def to_timestamp(value: datetime | float | int) -> float:
    """POSIX seconds for an aware ``datetime`` or a number of seconds."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime is ambiguous: {value!r}")
        return value.timestamp()
    return float(value)


def _user_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


# =============================================================================
# Attribute value objects
# =============================================================================


@dataclass(frozen=True, slots=True)
class BasicFileAttributes:
    """Attributes every filesystem supports."""

    last_modified_time: datetime
    last_access_time: datetime
    creation_time: datetime
    is_regular_file: bool
    is_directory: bool
    is_symbolic_link: bool
    is_other: bool
    size: int
    file_key: tuple[int, int]

    @classmethod
    def _basic_values(cls, st: os.stat_result) -> dict[str, Any]:
        # creation time falls back to mtime where the host keeps no birth time
        birth = getattr(st, "st_birthtime", None)
        mode = st.st_mode
        return {
            "last_modified_time": _to_datetime(st.st_mtime),
            "last_access_time": _to_datetime(st.st_atime),
            "creation_time": _to_datetime(birth if birth is not None else st.st_mtime),
            "is_regular_file": stat.S_ISREG(mode),
            "is_directory": stat.S_ISDIR(mode),
            "is_symbolic_link": stat.S_ISLNK(mode),
            "is_other": not (stat.S_ISREG(mode) or stat.S_ISDIR(mode) or stat.S_ISLNK(mode)),
            "size": st.st_size,
            "file_key": (st.st_dev, st.st_ino),
        }

    @classmethod
    def from_stat(cls, st: os.stat_result) -> BasicFileAttributes:
        return cls(**cls._basic_values(st))


@dataclass(frozen=True, slots=True)
class PosixFileAttributes(BasicFileAttributes):
    """Basic attributes plus ownership and permission bits."""

    owner: UserPrincipal
    group: GroupPrincipal
    permissions: frozenset[PosixFilePermission]

    @classmethod
    def from_stat(cls, st: os.stat_result) -> PosixFileAttributes:
        return cls(
            **cls._basic_values(st),
            owner=UserPrincipal(_user_name(st.st_uid), st.st_uid),
            group=GroupPrincipal(_group_name(st.st_gid), st.st_gid),
            permissions=permissions_from_mode(st.st_mode),
        )


_BASIC_NAMES = tuple(f.name for f in fields(BasicFileAttributes))
_POSIX_NAMES = tuple(f.name for f in fields(PosixFileAttributes))

VIEW_NAMES: dict[str, tuple[str, ...]] = {
    "basic": _BASIC_NAMES,
    "owner": ("owner",),
    "posix": _POSIX_NAMES,
}

_VIEW_CLASSES: dict[str, type[BasicFileAttributes]] = {
    "basic": BasicFileAttributes,
    "owner": PosixFileAttributes,
    "posix": PosixFileAttributes,
}


def split_attribute(attribute: str) -> tuple[str, str]:
    """Split ``"view:names"`` into its parts; the view defaults to ``basic``."""
    view, sep, names = attribute.partition(":")
    if not sep:
        return "basic", view
    return view, names


def _view_class(view: str) -> type[BasicFileAttributes]:
    try:
        return _VIEW_CLASSES[view]
    except KeyError:
        raise UnsupportedOperationError(f"View {view!r} not available") from None


def _stat(path: Path, follow: bool) -> os.stat_result:
    return os.stat(path, follow_symlinks=follow)


# =============================================================================
# Reading
# =============================================================================


def read_attributes(path: Path, kind: Any, *, follow: bool = True) -> Any:
    """Read attributes of *path*.

    *kind* is an attribute class (``BasicFileAttributes``,
    ``PosixFileAttributes``), a bare view name (returns the value object), or
    ``"view:names"`` (returns a dict keyed by attribute name).
    """
    if isinstance(kind, type) and issubclass(kind, BasicFileAttributes):
        return kind.from_stat(_stat(path, follow))
    if not isinstance(kind, str):
        raise UnsupportedOperationError(f"Unsupported attribute kind: {kind!r}")
    if ":" not in kind:
        return _view_class(kind).from_stat(_stat(path, follow))
    return read_attribute_map(path, kind, follow=follow)


def read_attribute_map(path: Path, attributes: str, *, follow: bool = True) -> dict[str, Any]:
    view, names = split_attribute(attributes)
    cls = _view_class(view)
    available = VIEW_NAMES[view]
    requested = available if names == "*" else tuple(n for n in names.split(",") if n)
    for name in requested:
        if name not in available:
            raise ValueError(f"Unknown attribute {name!r} for view {view!r}")
    value = cls.from_stat(_stat(path, follow))
    return {name: getattr(value, name) for name in requested}


def get_attribute(path: Path, attribute: str, *, follow: bool = True) -> Any:
    view, name = split_attribute(attribute)
    if not name or "," in name or name == "*":
        raise ValueError(f"Expected a single attribute name: {attribute!r}")
    return read_attribute_map(path, f"{view}:{name}", follow=follow)[name]


# =============================================================================
# Writing
# =============================================================================


def set_times(
    path: Path,
    *,
    modified: datetime | float | None = None,
    accessed: datetime | float | None = None,
    follow: bool = True,
) -> None:
    """Update timestamps; a time left as None keeps its current value."""
    st = _stat(path, follow)
    atime = to_timestamp(accessed) if accessed is not None else st.st_atime
    mtime = to_timestamp(modified) if modified is not None else st.st_mtime
    os.utime(path, (atime, mtime), follow_symlinks=follow)


def lookup_uid(owner: UserPrincipal | str) -> int:
    from .filesystem import default_filesystem

    if isinstance(owner, UserPrincipal) and owner.uid is not None:
        return owner.uid
    service = default_filesystem().user_principal_lookup_service()
    return service.lookup_principal_by_name(str(owner)).uid


def lookup_gid(group: GroupPrincipal | str) -> int:
    from .filesystem import default_filesystem

    if isinstance(group, GroupPrincipal) and group.gid is not None:
        return group.gid
    service = default_filesystem().user_principal_lookup_service()
    return service.lookup_principal_by_group_name(str(group)).gid


def set_attribute(path: Path, attribute: str, value: Any, *, follow: bool = True) -> None:
    view, name = split_attribute(attribute)
    available = VIEW_NAMES.get(view)
    if available is None:
        raise UnsupportedOperationError(f"View {view!r} not available")
    if name not in available:
        raise ValueError(f"Unknown attribute {name!r} for view {view!r}")

    if name == "last_modified_time":
        set_times(path, modified=value, follow=follow)
    elif name == "last_access_time":
        set_times(path, accessed=value, follow=follow)
    elif name == "owner":
        os.chown(path, lookup_uid(value), -1, follow_symlinks=follow)
    elif name == "group":
        os.chown(path, -1, lookup_gid(value), follow_symlinks=follow)
    elif name == "permissions":
        os.chmod(path, permissions_to_mode(value), follow_symlinks=follow)
    else:
        raise ValueError(f"Attribute {attribute!r} is read-only")


def creation_mode(attrs: tuple[FileAttribute, ...], default: int) -> int:
    """File mode requested by creation-time attributes, or *default*."""
    mode = default
    for attr in attrs:
        if attr.name not in ("posix:permissions", "permissions"):
            raise UnsupportedOperationError(
                f"{attr.name!r} not supported as initial attribute"
            )
        mode = permissions_to_mode(attr.value)
    return mode
