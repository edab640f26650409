"""Path algebra over coercible paths.

Every function accepts anything :func:`~pathbridge.coerce.to_path` accepts
for each of its path arguments. Apart from :func:`real_path`, nothing here
touches the filesystem.
"""

from __future__ import annotations

import os
from functools import reduce
from pathlib import Path
from typing import Any

from .coerce import to_path
from .exceptions import IllegalRelativizationError
from .options import LinkOption, collect_options, follow_links


def compare(path: Any, other: Any) -> int:
    """Negative, zero or positive as *path* orders before, equal to or after *other*."""
    p, o = to_path(path), to_path(other)
    return (p > o) - (p < o)


def starts_with(path: Any, other: Any) -> bool:
    """True if *path* begins with all the name elements (and root) of *other*."""
    p, o = to_path(path), to_path(other)
    if not o.parts:
        return not p.parts
    return p.parts[: len(o.parts)] == o.parts


def ends_with(path: Any, other: Any) -> bool:
    """True if *path* ends with all the name elements of *other*.

    An absolute *other* only matches an equal path.
    """
    p, o = to_path(path), to_path(other)
    if not o.parts:
        return not p.parts
    if o.anchor:
        return p == o
    n = len(o.parts)
    return len(p.parts) >= n and p.parts[-n:] == o.parts


def relativize(path: Any, other: Any) -> Path:
    """The relative path that leads from *path* to *other*.

    ``resolve_path(a, relativize(a, b))`` normalizes to ``b``.

    Raises:
        IllegalRelativizationError: If only one of the paths has a root, or
            the roots differ.
    """
    p, o = to_path(path), to_path(other)
    if p.anchor != o.anchor:
        raise IllegalRelativizationError(
            f"Cannot relativize {str(o)!r} against {str(p)!r}: different roots"
        )
    skip = 1 if p.anchor else 0
    base, target = p.parts[skip:], o.parts[skip:]
    common = 0
    for left, right in zip(base, target):
        if left != right:
            break
        common += 1
    parts = [os.pardir] * (len(base) - common) + list(target[common:])
    return Path(*parts)


def resolve_path(path: Any, *others: Any) -> Path:
    """Resolve each of *others* against the accumulated result, left to right.

    An absolute other replaces the accumulated path; an empty one leaves it
    unchanged.
    """
    return reduce(lambda acc, other: acc / to_path(other), others, to_path(path))


def resolve_sibling(path: Any, other: Any) -> Path:
    """Resolve *other* against the parent of *path*."""
    par = parent(path)
    o = to_path(other)
    return o if par is None else par / o


def normalize(path: Any) -> Path:
    """*path* with redundant ``.`` and ``name/..`` elements removed."""
    return Path(os.path.normpath(to_path(path)))


def file_name(path: Any) -> Path | None:
    """The last name element, or None for a root or empty path."""
    name = to_path(path).name
    return Path(name) if name else None


def parent(path: Any) -> Path | None:
    """The path without its last name element, or None if there is none."""
    p = to_path(path)
    return p.parent if len(p.parts) > 1 else None


def root(path: Any) -> Path | None:
    p = to_path(path)
    return Path(p.anchor) if p.anchor else None


def is_absolute(path: Any) -> bool:
    return to_path(path).is_absolute()


def name_count(path: Any) -> int:
    p = to_path(path)
    return len(p.parts) - (1 if p.anchor else 0)


def get_name(path: Any, index: int) -> Path:
    """The name element at *index*; the root is not an element.

    Raises:
        ValueError: If *index* is out of range.
    """
    p = to_path(path)
    names = p.parts[1:] if p.anchor else p.parts
    if not 0 <= index < len(names):
        raise ValueError(f"Name index {index} out of range for {str(p)!r}")
    return Path(names[index])


def subpath(path: Any, begin: int, end: int) -> Path:
    """The relative path made of name elements ``begin`` up to ``end``."""
    p = to_path(path)
    names = p.parts[1:] if p.anchor else p.parts
    if not 0 <= begin < end <= len(names):
        raise ValueError(f"Invalid subpath range [{begin}, {end}) for {str(p)!r}")
    return Path(*names[begin:end])


def real_path(path: Any, *options: LinkOption) -> Path:
    """The absolute path of an existing file.

    Symbolic links are resolved unless ``LinkOption.NOFOLLOW_LINKS`` is given.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    opts = collect_options(LinkOption, options, "real_path")
    p = to_path(path)
    try:
        if follow_links(opts):
            return p.resolve(strict=True)
        absolute = Path(os.path.abspath(p))
        os.lstat(absolute)
    except FileNotFoundError as exc:
        # name the path asked for, not the first missing component
        raise FileNotFoundError(exc.errno, exc.strerror, str(p)) from exc
    return absolute
