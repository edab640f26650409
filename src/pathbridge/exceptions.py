"""Custom exception hierarchy for the pathbridge layer.

Host filesystem failures are the builtin ``OSError`` family and are never
wrapped; the aliases below only give them the names used throughout the
documentation.
"""

from __future__ import annotations

from typing import Any

# Host errors, propagated unchanged
NoSuchFileError = FileNotFoundError
FileAlreadyExistsError = FileExistsError
AccessDeniedError = PermissionError
NotDirectoryError = NotADirectoryError


class PathBridgeError(Exception):
    """Base exception for all errors raised by pathbridge itself."""


class UnsupportedInputShapeError(PathBridgeError, TypeError):
    """Raised when a value cannot be coerced to a path or filesystem."""

    def __init__(self, value: Any, message: str | None = None) -> None:
        self.value = value
        super().__init__(
            message or f"Cannot coerce {type(value).__name__} value {value!r}"
        )


class UnsupportedEventKindError(PathBridgeError, ValueError):
    """Raised when a symbolic watch event tag has no standard kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"No standard watch event kind found for tag: {kind!r}")


class InvalidInputError(PathBridgeError, ValueError):
    """Raised when a URI cannot be turned into a path."""

    def __init__(self, value: Any, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value}")


class FileSystemNotFoundError(PathBridgeError, LookupError):
    """Raised when no installed provider claims a URI."""


class IllegalRelativizationError(PathBridgeError, ValueError):
    """Raised when two paths share no root to relativize against."""


class UnsupportedOptionError(PathBridgeError, ValueError):
    """Raised when an option is of the wrong kind or not valid for an operation."""

    def __init__(self, option: Any, operation: str) -> None:
        self.option = option
        self.operation = operation
        super().__init__(f"Option {option!r} is not supported by {operation}")


class UnsupportedOperationError(PathBridgeError, NotImplementedError):
    """Raised when a filesystem, view or attribute does not support an operation."""


class UserPrincipalNotFoundError(PathBridgeError, LookupError):
    """Raised when a user or group name does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No such user or group: {name!r}")


class ClosedWatchServiceError(PathBridgeError, RuntimeError):
    """Raised when a closed watch service is used."""


class DirectoryNotEmptyError(OSError):
    """Raised when deleting or replacing a directory that still has entries."""


class FileSystemLoopError(OSError):
    """Raised when following links during a walk leads back to an ancestor."""
