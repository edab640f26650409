"""File operations over coercible paths.

Each function coerces its path-like arguments with
:func:`~pathbridge.coerce.to_path`, packs its trailing flags with
:func:`~pathbridge.options.collect_options`, and delegates to the host.
Host failures (missing file, permission denied, already exists, ...)
propagate unchanged; the only translation is a non-empty directory, which
is raised as :class:`~pathbridge.exceptions.DirectoryNotEmptyError`.
"""

from __future__ import annotations

import errno
import io
import logging
import mimetypes
import os
import shutil
import stat
import tempfile
from collections.abc import Callable, Iterable
from functools import singledispatch
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Any, BinaryIO

from . import attributes as attrs
from .coerce import to_filesystem, to_path, watch_event_kind
from .exceptions import (
    DirectoryNotEmptyError,
    UnsupportedInputShapeError,
    UnsupportedOperationError,
    UnsupportedOptionError,
)
from .options import (
    FileAttribute,
    LinkOption,
    StandardCopyOption,
    StandardOpenOption,
    WatchEventModifier,
    collect_options,
    follow_links,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from .filesystem import FileSystemProvider, PathMatcher, UserPrincipalLookupService
    from .types import FileStore, GroupPrincipal, UserPrincipal
    from .watch import WatchKey, WatchService

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"
BUFFER_SIZE = 8192
DEFAULT_TEMP_SUFFIX = ".tmp"
DEFAULT_FILE_MODE = 0o666
DEFAULT_DIRECTORY_MODE = 0o777

_REPLACE = StandardCopyOption.REPLACE_EXISTING
_COPY_ATTRIBUTES = StandardCopyOption.COPY_ATTRIBUTES
_ATOMIC = StandardCopyOption.ATOMIC_MOVE
_NOFOLLOW = LinkOption.NOFOLLOW_LINKS
_COPY_KINDS = (StandardCopyOption, LinkOption)
_OPEN_KINDS = (StandardOpenOption, LinkOption)


def _link_options(options: tuple[Any, ...], operation: str) -> bool:
    """Validate link options and return whether to follow links."""
    return follow_links(collect_options(LinkOption, options, operation))


def _stat_or_none(path: Path, follow: bool) -> os.stat_result | None:
    # Predicates answer False when the file's state cannot be determined.
    try:
        return os.stat(path, follow_symlinks=follow)
    except (OSError, ValueError):
        return None


# =============================================================================
# Metadata queries
# =============================================================================


def exists(path: Any, *options: LinkOption) -> bool:
    """True if the file exists; False if it does not or cannot be checked."""
    return _stat_or_none(to_path(path), _link_options(options, "exists")) is not None


def not_exists(path: Any, *options: LinkOption) -> bool:
    """True only if the file is known not to exist.

    ``exists`` and ``not_exists`` are both False when the check itself fails,
    e.g. for lack of permission.
    """
    follow = _link_options(options, "not_exists")
    try:
        os.stat(to_path(path), follow_symlinks=follow)
    except FileNotFoundError:
        return True
    except OSError:
        return False
    return False


def is_directory(path: Any, *options: LinkOption) -> bool:
    st = _stat_or_none(to_path(path), _link_options(options, "is_directory"))
    return st is not None and stat.S_ISDIR(st.st_mode)


def is_regular_file(path: Any, *options: LinkOption) -> bool:
    st = _stat_or_none(to_path(path), _link_options(options, "is_regular_file"))
    return st is not None and stat.S_ISREG(st.st_mode)


def is_symbolic_link(path: Any) -> bool:
    st = _stat_or_none(to_path(path), False)
    return st is not None and stat.S_ISLNK(st.st_mode)


def is_hidden(path: Any) -> bool:
    """Dot-files on POSIX; the hidden attribute where the host keeps one."""
    p = to_path(path)
    if p.name.startswith("."):
        return True
    st = _stat_or_none(p, False)
    flags = getattr(st, "st_file_attributes", 0)
    return bool(flags & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


def is_readable(path: Any) -> bool:
    return os.access(to_path(path), os.R_OK)


def is_writable(path: Any) -> bool:
    return os.access(to_path(path), os.W_OK)


def is_executable(path: Any) -> bool:
    return os.access(to_path(path), os.X_OK)


def is_same_file(path: Any, other: Any) -> bool:
    """True if both locate the same file; equal paths are not checked on disk."""
    p, o = to_path(path), to_path(other)
    if p == o:
        return True
    return os.path.samefile(p, o)


def size(path: Any) -> int:
    return os.stat(to_path(path)).st_size


def get_owner(path: Any, *options: LinkOption) -> UserPrincipal:
    follow = _link_options(options, "get_owner")
    return attrs.get_attribute(to_path(path), "owner:owner", follow=follow)


def get_last_modified_time(path: Any, *options: LinkOption) -> datetime:
    follow = _link_options(options, "get_last_modified_time")
    return attrs.get_attribute(to_path(path), "basic:last_modified_time", follow=follow)


def get_posix_file_permissions(
    path: Any, *options: LinkOption
) -> frozenset[attrs.PosixFilePermission]:
    follow = _link_options(options, "get_posix_file_permissions")
    return attrs.get_attribute(to_path(path), "posix:permissions", follow=follow)


def get_attribute(path: Any, attribute: str, *options: LinkOption) -> Any:
    """Read one named attribute, e.g. ``"size"`` or ``"posix:owner"``."""
    follow = _link_options(options, "get_attribute")
    return attrs.get_attribute(to_path(path), attribute, follow=follow)


def read_attributes(path: Any, kind: Any, *options: LinkOption) -> Any:
    """Read an attribute object (by class or view name) or a named-attribute dict."""
    follow = _link_options(options, "read_attributes")
    return attrs.read_attributes(to_path(path), kind, follow=follow)


def probe_content_type(path: Any) -> str | None:
    """MIME type guessed from the file name, or None."""
    mime_type, _ = mimetypes.guess_type(to_path(path).name)
    return mime_type


def read_symbolic_link(link: Any) -> Path:
    return Path(os.readlink(to_path(link)))


def get_file_store(path: Any) -> FileStore:
    p = to_path(path)
    return to_filesystem(p).get_file_store(p)


# =============================================================================
# Creating
# =============================================================================


def _creation_attrs(attributes: tuple[Any, ...], operation: str) -> tuple[FileAttribute, ...]:
    return collect_options(FileAttribute, attributes, operation)


def create_directory(directory: Any, *attributes: FileAttribute) -> Path:
    """Create a directory; its parent must exist and it must not."""
    p = to_path(directory)
    fattrs = _creation_attrs(attributes, "create_directory")
    os.mkdir(p, attrs.creation_mode(fattrs, DEFAULT_DIRECTORY_MODE))
    logger.debug("Created directory %s", p)
    return p


def create_directories(directory: Any, *attributes: FileAttribute) -> Path:
    """Create a directory and any missing parents.

    Succeeds if the directory already exists; raises ``FileExistsError`` if
    the path exists but is not a directory.
    """
    p = to_path(directory)
    fattrs = _creation_attrs(attributes, "create_directories")
    os.makedirs(p, attrs.creation_mode(fattrs, DEFAULT_DIRECTORY_MODE), exist_ok=True)
    logger.debug("Created directories %s", p)
    return p


def create_file(path: Any, *attributes: FileAttribute) -> Path:
    """Create a new, empty file, failing if it exists."""
    p = to_path(path)
    fattrs = _creation_attrs(attributes, "create_file")
    mode = attrs.creation_mode(fattrs, DEFAULT_FILE_MODE)
    fd = os.open(p, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    os.close(fd)
    logger.debug("Created file %s", p)
    return p


def create_link(link: Any, existing: Any) -> Path:
    """Create a hard link at *link* to the *existing* file."""
    p = to_path(link)
    os.link(to_path(existing), p)
    logger.debug("Created link %s", p)
    return p


def create_symbolic_link(link: Any, target: Any, *attributes: FileAttribute) -> Path:
    """Create a symbolic link at *link* pointing to *target* (kept as given)."""
    p, t = to_path(link), to_path(target)
    if _creation_attrs(attributes, "create_symbolic_link"):
        raise UnsupportedOperationError(
            "Initial file attributes not supported when creating a symbolic link"
        )
    os.symlink(t, p, target_is_directory=os.path.isdir(_link_target(p, t)))
    logger.debug("Created symbolic link %s -> %s", p, t)
    return p


def _link_target(link: Path, target: Path) -> Path:
    return target if target.is_absolute() else link.parent / target


def _apply_mode(path: str, fattrs: tuple[FileAttribute, ...]) -> None:
    if fattrs:
        os.chmod(path, attrs.creation_mode(fattrs, 0))


def create_temp_directory(
    *attributes: FileAttribute,
    dir: Any = None,
    prefix: str | None = None,
) -> Path:
    """Create a new directory in *dir* (default: the system temp directory)."""
    fattrs = _creation_attrs(attributes, "create_temp_directory")
    name = tempfile.mkdtemp(prefix=prefix, dir=None if dir is None else to_path(dir))
    _apply_mode(name, fattrs)
    logger.debug("Created temp directory %s", name)
    return Path(name)


def create_temp_file(
    *attributes: FileAttribute,
    dir: Any = None,
    prefix: str | None = None,
    suffix: str | None = None,
) -> Path:
    """Create a new empty file in *dir*; *suffix* defaults to ``.tmp``."""
    fattrs = _creation_attrs(attributes, "create_temp_file")
    fd, name = tempfile.mkstemp(
        suffix=DEFAULT_TEMP_SUFFIX if suffix is None else suffix,
        prefix=prefix,
        dir=None if dir is None else to_path(dir),
    )
    os.close(fd)
    _apply_mode(name, fattrs)
    logger.debug("Created temp file %s", name)
    return Path(name)


# =============================================================================
# Deleting
# =============================================================================


def _delete(path: Path) -> None:
    st = os.lstat(path)
    try:
        if stat.S_ISDIR(st.st_mode):
            os.rmdir(path)
        else:
            os.unlink(path)
    except OSError as exc:
        if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
            raise DirectoryNotEmptyError(exc.errno, exc.strerror, exc.filename) from exc
        raise


def delete(path: Any) -> None:
    """Delete a file, link or empty directory.

    Raises:
        FileNotFoundError: If nothing exists at *path*.
        DirectoryNotEmptyError: If *path* is a directory with entries.
    """
    p = to_path(path)
    _delete(p)
    logger.debug("Deleted %s", p)


def delete_if_exists(path: Any) -> bool:
    """Delete *path* if it exists. Return True if something was deleted."""
    p = to_path(path)
    try:
        _delete(p)
    except FileNotFoundError:
        return False
    logger.debug("Deleted %s", p)
    return True


# =============================================================================
# Moving and updating
# =============================================================================


def _same_file(source_stat: os.stat_result, target: Path) -> bool:
    # the target itself, never what it links to
    st = os.lstat(target)
    return (source_stat.st_dev, source_stat.st_ino) == (st.st_dev, st.st_ino)


def _exists_error(path: Path) -> FileExistsError:
    return FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(path))


def move(source: Any, target: Any, *options: StandardCopyOption | LinkOption) -> Path:
    """Move or rename *source* to *target* and return *target*.

    ``REPLACE_EXISTING`` replaces an existing target (an empty directory
    only). ``ATOMIC_MOVE`` performs a single rename, which fails with the
    host's cross-device error when the two paths are on different stores.
    """
    opts = collect_options(
        _COPY_KINDS, options, "move", allowed=frozenset({_REPLACE, _ATOMIC, _NOFOLLOW})
    )
    src, dst = to_path(source), to_path(target)

    if _ATOMIC in opts:
        try:
            os.replace(src, dst)
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise DirectoryNotEmptyError(exc.errno, exc.strerror, exc.filename) from exc
            raise
        logger.debug("Moved %s -> %s atomically", src, dst)
        return dst

    src_stat = os.lstat(src)
    if os.path.lexists(dst):
        if _same_file(src_stat, dst):
            return dst
        if _REPLACE not in opts:
            raise _exists_error(dst)
        _delete(dst)

    try:
        os.rename(src, dst)
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
        shutil.move(src, dst)
    logger.debug("Moved %s -> %s", src, dst)
    return dst


def set_last_modified_time(path: Any, time: datetime | float) -> Path:
    p = to_path(path)
    attrs.set_times(p, modified=time)
    return p


def set_owner(path: Any, owner: UserPrincipal | str) -> Path:
    p = to_path(path)
    os.chown(p, attrs.lookup_uid(owner), -1)
    return p


def set_group(path: Any, group: GroupPrincipal | str) -> Path:
    p = to_path(path)
    os.chown(p, -1, attrs.lookup_gid(group))
    return p


def set_posix_file_permissions(path: Any, perms: Iterable[attrs.PosixFilePermission]) -> Path:
    p = to_path(path)
    os.chmod(p, attrs.permissions_to_mode(perms))
    return p


def set_attribute(path: Any, attribute: str, value: Any, *options: LinkOption) -> Path:
    """Set one named attribute, e.g. ``"posix:permissions"``."""
    follow = _link_options(options, "set_attribute")
    p = to_path(path)
    attrs.set_attribute(p, attribute, value, follow=follow)
    return p


# =============================================================================
# Streams and bulk content
# =============================================================================


def _output_flags(options: tuple[Any, ...], operation: str) -> tuple[int, bool]:
    opts = collect_options(_OPEN_KINDS, options, operation)
    if not opts:
        opts = (
            StandardOpenOption.CREATE,
            StandardOpenOption.TRUNCATE_EXISTING,
            StandardOpenOption.WRITE,
        )
    if StandardOpenOption.READ in opts:
        raise UnsupportedOptionError(StandardOpenOption.READ, operation)
    append = StandardOpenOption.APPEND in opts
    if append and StandardOpenOption.TRUNCATE_EXISTING in opts:
        raise UnsupportedOptionError(
            StandardOpenOption.APPEND, f"{operation} with TRUNCATE_EXISTING"
        )

    flags = os.O_WRONLY
    if append:
        flags |= os.O_APPEND
    if StandardOpenOption.TRUNCATE_EXISTING in opts:
        flags |= os.O_TRUNC
    if StandardOpenOption.CREATE_NEW in opts:
        flags |= os.O_CREAT | os.O_EXCL
    elif StandardOpenOption.CREATE in opts:
        flags |= os.O_CREAT
    return flags | _common_flags(opts), StandardOpenOption.DELETE_ON_CLOSE in opts


def _common_flags(opts: tuple[Any, ...]) -> int:
    flags = 0
    if StandardOpenOption.SYNC in opts:
        flags |= getattr(os, "O_SYNC", 0)
    if StandardOpenOption.DSYNC in opts:
        flags |= getattr(os, "O_DSYNC", 0)
    if _NOFOLLOW in opts:
        flags |= getattr(os, "O_NOFOLLOW", 0)
    return flags


def _open(path: Path, flags: int, delete_on_close: bool, mode: str) -> BinaryIO:
    fd = os.open(path, flags, DEFAULT_FILE_MODE)
    if delete_on_close:
        # the open descriptor keeps the data alive until close
        os.unlink(path)
    return os.fdopen(fd, mode)


def new_output_stream(path: Any, *options: StandardOpenOption | LinkOption) -> BinaryIO:
    """Open *path* for writing bytes.

    Without options the file is created if needed and truncated.
    """
    flags, delete_on_close = _output_flags(options, "new_output_stream")
    return _open(to_path(path), flags, delete_on_close, "wb")


def new_input_stream(path: Any, *options: StandardOpenOption | LinkOption) -> BinaryIO:
    """Open *path* for reading bytes."""
    opts = collect_options(_OPEN_KINDS, options, "new_input_stream")
    for rejected in (StandardOpenOption.APPEND, StandardOpenOption.WRITE):
        if rejected in opts:
            raise UnsupportedOptionError(rejected, "new_input_stream")
    flags = os.O_RDONLY | _common_flags(opts)
    return _open(to_path(path), flags, StandardOpenOption.DELETE_ON_CLOSE in opts, "rb")


def read_all_bytes(path: Any) -> bytes:
    with new_input_stream(path) as f:
        return f.read()


def read_all_lines(path: Any, encoding: str = DEFAULT_ENCODING) -> list[str]:
    """Read all lines, splitting on ``\\n``, ``\\r`` or ``\\r\\n``."""
    with open(to_path(path), encoding=encoding, newline=None) as f:
        return [line[:-1] if line.endswith("\n") else line for line in f]


@singledispatch
def content_writer(content: Any, encoding: str) -> Callable[[BinaryIO], None]:
    """Return a function that writes *content* to a binary stream.

    The fallback accepts an iterable of text lines. Shapes, and every
    line, are checked before the target file is opened.
    """
    if not isinstance(content, Iterable):
        raise UnsupportedInputShapeError(content)
    lines = list(content)
    for line in lines:
        if not isinstance(line, str):
            raise UnsupportedInputShapeError(
                line, f"Lines must be str, got {type(line).__name__}"
            )
    separator = os.linesep.encode(encoding)

    def write_lines(out: BinaryIO) -> None:
        for line in lines:
            out.write(line.encode(encoding))
            out.write(separator)

    return write_lines


@content_writer.register(bytes)
@content_writer.register(bytearray)
@content_writer.register(memoryview)
def _(content: bytes | bytearray | memoryview, encoding: str) -> Callable[[BinaryIO], None]:
    def write_raw(out: BinaryIO) -> None:
        out.write(content)

    return write_raw


@content_writer.register
def _(content: str, encoding: str) -> Callable[[BinaryIO], None]:
    raise UnsupportedInputShapeError(
        content, "Text must be written as a sequence of lines, e.g. [text]"
    )


def write(
    path: Any,
    content: Any,
    *options: StandardOpenOption | LinkOption,
    encoding: str = DEFAULT_ENCODING,
) -> Path:
    """Write bytes, or an iterable of lines, to *path*.

    Without open options the file is created if needed and truncated. Each
    line is followed by the platform line separator.
    """
    p = to_path(path)
    flags, delete_on_close = _output_flags(options, "write")
    writer = content_writer(content, encoding)
    with _open(p, flags, delete_on_close, "wb") as out:
        writer(out)
    return p


def directory_stream(directory: Any, glob: str = "*") -> Iterator[Path]:
    """Yield the entries of *directory* whose names match *glob*."""
    p = to_path(directory)
    matcher = to_filesystem(p).path_matcher(f"glob:{glob}")
    with os.scandir(p) as entries:
        for entry in entries:
            if matcher.matches(entry.name):
                yield p / entry.name


# =============================================================================
# Copy
# =============================================================================


def _transfer(source: Any, sink: Any) -> int:
    total = 0
    while True:
        chunk = source.read(BUFFER_SIZE)
        if not chunk:
            return total
        sink.write(chunk)
        total += len(chunk)


@singledispatch
def copy_source(source: Any, target: Any, options: tuple[Any, ...]) -> Any:
    """Route a copy on the shape of *source*; other shapes are coerced to paths."""
    return copy_source(to_path(source), target, options)


@copy_source.register
def _(source: io.IOBase, target: Any, options: tuple[Any, ...]) -> int:
    return copy_from_stream(target, source, options)


@copy_source.register
def _(source: PurePath, target: Any, options: tuple[Any, ...]) -> Any:
    return copy_from_path(target, to_path(source), options)


@singledispatch
def copy_from_stream(target: Any, source: Any, options: tuple[Any, ...]) -> int:
    """Copy a byte source into *target*, by the shape of *target*."""
    return copy_from_stream(to_path(target), source, options)


@copy_from_stream.register
def _(target: PurePath, source: Any, options: tuple[Any, ...]) -> int:
    opts = collect_options(_COPY_KINDS, options, "copy from stream", allowed=frozenset({_REPLACE}))
    dst = to_path(target)
    if _REPLACE in opts and os.path.lexists(dst):
        _delete(dst)
    with open(dst, "xb") as out:
        count = _transfer(source, out)
    logger.debug("Copied %d bytes from stream to %s", count, dst)
    return count


@singledispatch
def copy_from_path(target: Any, source: Path, options: tuple[Any, ...]) -> Any:
    """Copy the file at *source* into *target*, by the shape of *target*."""
    return copy_from_path(to_path(target), source, options)


@copy_from_path.register
def _(target: io.IOBase, source: Path, options: tuple[Any, ...]) -> int:
    collect_options(_COPY_KINDS, options, "copy to stream", allowed=frozenset())
    with open(source, "rb") as f:
        return _transfer(f, target)


@copy_from_path.register
def _(target: PurePath, source: Path, options: tuple[Any, ...]) -> Path:
    opts = collect_options(
        _COPY_KINDS,
        options,
        "copy",
        allowed=frozenset({_REPLACE, _COPY_ATTRIBUTES, _NOFOLLOW}),
    )
    dst = to_path(target)
    follow = follow_links(opts)
    st = os.stat(source, follow_symlinks=follow)

    if os.path.lexists(dst):
        if _same_file(st, dst):
            return dst
        if _REPLACE not in opts:
            raise _exists_error(dst)
        _delete(dst)

    if stat.S_ISDIR(st.st_mode):
        os.mkdir(dst)
    elif stat.S_ISLNK(st.st_mode):
        os.symlink(os.readlink(source), dst)
    else:
        shutil.copyfile(source, dst)
        shutil.copymode(source, dst)
    if _COPY_ATTRIBUTES in opts:
        shutil.copystat(source, dst, follow_symlinks=follow)
    logger.debug("Copied %s -> %s", source, dst)
    return dst


def copy(source: Any, target: Any, *options: StandardCopyOption | LinkOption) -> Any:
    """Copy bytes between a byte stream and a file, or between two files.

    - stream to path: returns the number of bytes written
    - path to stream: returns the number of bytes read
    - path to path: returns the target path

    Anything else is coerced to a path. New shapes are added by registering
    on :func:`copy_source`, :func:`copy_from_stream` or :func:`copy_from_path`.
    """
    return copy_source(source, target, options)


# =============================================================================
# FileSystem queries
# =============================================================================


def file_stores(fs: Any = None) -> list[FileStore]:
    return to_filesystem(fs).file_stores()


def root_directories(fs: Any = None) -> list[Path]:
    return to_filesystem(fs).root_directories()


def separator(fs: Any = None) -> str:
    return to_filesystem(fs).separator


def user_principal_lookup_service(fs: Any = None) -> UserPrincipalLookupService:
    return to_filesystem(fs).user_principal_lookup_service()


def is_open(fs: Any = None) -> bool:
    return to_filesystem(fs).is_open()


def is_read_only(fs: Any = None) -> bool:
    return to_filesystem(fs).is_read_only()


def new_watch_service(fs: Any = None, **kwargs: Any) -> WatchService:
    return to_filesystem(fs).new_watch_service(**kwargs)


def supported_file_attribute_views(fs: Any = None) -> frozenset[str]:
    return to_filesystem(fs).supported_file_attribute_views()


def provider(fs: Any = None) -> FileSystemProvider:
    return to_filesystem(fs).provider


def path_matcher(syntax_and_pattern: str, fs: Any = None) -> PathMatcher:
    return to_filesystem(fs).path_matcher(syntax_and_pattern)


# =============================================================================
# Watch registration
# =============================================================================


def register(
    path: Any,
    watch_service: WatchService,
    event_kinds: Iterable[Any],
    *modifiers: WatchEventModifier,
) -> WatchKey:
    """Watch the directory at *path* for *event_kinds*.

    Kinds may be given as ``"entry-create"``, ``"entry-delete"`` and
    ``"entry-modify"``. ``WatchEventModifier.FILE_TREE`` also watches every
    subdirectory.

    Raises:
        FileNotFoundError: If *path* does not exist.
        NotADirectoryError: If *path* is not a directory.
    """
    p = to_path(path)
    mods = collect_options(WatchEventModifier, modifiers, "register")
    kinds = [watch_event_kind(kind) for kind in event_kinds]
    if not stat.S_ISDIR(os.stat(p).st_mode):
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(p))
    return watch_service.register(p, kinds, recursive=WatchEventModifier.FILE_TREE in mods)
