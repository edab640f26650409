"""pathbridge: loosely typed path and file operations.

Paths, URIs, directory entries and filesystems are all accepted wherever a
path is expected, and copy, write and watch registration dispatch on the
shape of their arguments.
"""

__version__ = "0.1.0"

from pathbridge.attributes import (
    BasicFileAttributes,
    PosixFileAttributes,
    PosixFilePermission,
    as_file_attribute,
    posix_permissions_from_string,
    posix_permissions_to_string,
)
from pathbridge.coerce import (
    file_system,
    nary_path,
    to_absolute_path,
    to_filesystem,
    to_path,
    to_uri,
    to_watch_event_kind,
    unary_path,
    watch_event_kind,
)
from pathbridge.exceptions import (
    AccessDeniedError,
    ClosedWatchServiceError,
    DirectoryNotEmptyError,
    FileAlreadyExistsError,
    FileSystemLoopError,
    FileSystemNotFoundError,
    IllegalRelativizationError,
    InvalidInputError,
    NoSuchFileError,
    NotDirectoryError,
    PathBridgeError,
    UnsupportedEventKindError,
    UnsupportedInputShapeError,
    UnsupportedOperationError,
    UnsupportedOptionError,
    UserPrincipalNotFoundError,
)
from pathbridge.files import (
    content_writer,
    copy,
    copy_from_path,
    copy_from_stream,
    copy_source,
    create_directories,
    create_directory,
    create_file,
    create_link,
    create_symbolic_link,
    create_temp_directory,
    create_temp_file,
    delete,
    delete_if_exists,
    directory_stream,
    exists,
    file_stores,
    get_attribute,
    get_file_store,
    get_last_modified_time,
    get_owner,
    get_posix_file_permissions,
    is_directory,
    is_executable,
    is_hidden,
    is_open,
    is_read_only,
    is_readable,
    is_regular_file,
    is_same_file,
    is_symbolic_link,
    is_writable,
    move,
    new_input_stream,
    new_output_stream,
    new_watch_service,
    not_exists,
    path_matcher,
    probe_content_type,
    provider,
    read_all_bytes,
    read_all_lines,
    read_attributes,
    read_symbolic_link,
    register,
    root_directories,
    separator,
    set_attribute,
    set_group,
    set_last_modified_time,
    set_owner,
    set_posix_file_permissions,
    size,
    supported_file_attribute_views,
    user_principal_lookup_service,
    write,
)
from pathbridge.filesystem import (
    FileSystem,
    FileSystemProvider,
    LocalFileSystemProvider,
    PathMatcher,
    UserPrincipalLookupService,
    default_filesystem,
    installed_providers,
    register_provider,
    unregister_provider,
)
from pathbridge.options import (
    FileAttribute,
    FileVisitOption,
    LinkOption,
    StandardCopyOption,
    StandardOpenOption,
    WatchEventModifier,
)
from pathbridge.paths import (
    compare,
    ends_with,
    file_name,
    get_name,
    is_absolute,
    name_count,
    normalize,
    parent,
    real_path,
    relativize,
    resolve_path,
    resolve_sibling,
    root,
    starts_with,
    subpath,
)
from pathbridge.types import URI, FileStore, GroupPrincipal, UserPrincipal
from pathbridge.visitor import (
    CONTINUE,
    SKIP_SIBLINGS,
    SKIP_SUBTREE,
    TERMINATE,
    FileVisitor,
    FileVisitResult,
    SimpleFileVisitor,
    file_visitor,
    naive_visitor,
)
from pathbridge.walker import FileTreeWalker, walk, walk_file_tree
from pathbridge.watch import (
    ENTRY_CREATE,
    ENTRY_DELETE,
    ENTRY_MODIFY,
    OVERFLOW,
    StandardWatchEventKinds,
    WatchEvent,
    WatchEventKind,
    WatchKey,
    WatchService,
)

__all__ = [
    "CONTINUE",
    "ENTRY_CREATE",
    "ENTRY_DELETE",
    "ENTRY_MODIFY",
    "OVERFLOW",
    "SKIP_SIBLINGS",
    "SKIP_SUBTREE",
    "TERMINATE",
    "URI",
    "AccessDeniedError",
    "BasicFileAttributes",
    "ClosedWatchServiceError",
    "DirectoryNotEmptyError",
    "FileAlreadyExistsError",
    "FileAttribute",
    "FileStore",
    "FileSystem",
    "FileSystemLoopError",
    "FileSystemNotFoundError",
    "FileSystemProvider",
    "FileTreeWalker",
    "FileVisitOption",
    "FileVisitResult",
    "FileVisitor",
    "GroupPrincipal",
    "IllegalRelativizationError",
    "InvalidInputError",
    "LinkOption",
    "LocalFileSystemProvider",
    "NoSuchFileError",
    "NotDirectoryError",
    "PathBridgeError",
    "PathMatcher",
    "PosixFileAttributes",
    "PosixFilePermission",
    "SimpleFileVisitor",
    "StandardCopyOption",
    "StandardOpenOption",
    "StandardWatchEventKinds",
    "UnsupportedEventKindError",
    "UnsupportedInputShapeError",
    "UnsupportedOperationError",
    "UnsupportedOptionError",
    "UserPrincipal",
    "UserPrincipalLookupService",
    "UserPrincipalNotFoundError",
    "WatchEvent",
    "WatchEventKind",
    "WatchEventModifier",
    "WatchKey",
    "WatchService",
    "__version__",
    "as_file_attribute",
    "compare",
    "content_writer",
    "copy",
    "copy_from_path",
    "copy_from_stream",
    "copy_source",
    "create_directories",
    "create_directory",
    "create_file",
    "create_link",
    "create_symbolic_link",
    "create_temp_directory",
    "create_temp_file",
    "default_filesystem",
    "delete",
    "delete_if_exists",
    "directory_stream",
    "ends_with",
    "exists",
    "file_name",
    "file_stores",
    "file_system",
    "file_visitor",
    "get_attribute",
    "get_file_store",
    "get_last_modified_time",
    "get_name",
    "get_owner",
    "get_posix_file_permissions",
    "installed_providers",
    "is_absolute",
    "is_directory",
    "is_executable",
    "is_hidden",
    "is_open",
    "is_read_only",
    "is_readable",
    "is_regular_file",
    "is_same_file",
    "is_symbolic_link",
    "is_writable",
    "move",
    "naive_visitor",
    "name_count",
    "nary_path",
    "new_input_stream",
    "new_output_stream",
    "new_watch_service",
    "normalize",
    "not_exists",
    "parent",
    "path_matcher",
    "posix_permissions_from_string",
    "posix_permissions_to_string",
    "probe_content_type",
    "provider",
    "read_all_bytes",
    "read_all_lines",
    "read_attributes",
    "read_symbolic_link",
    "real_path",
    "register",
    "register_provider",
    "relativize",
    "resolve_path",
    "resolve_sibling",
    "root",
    "root_directories",
    "separator",
    "set_attribute",
    "set_group",
    "set_last_modified_time",
    "set_owner",
    "set_posix_file_permissions",
    "size",
    "starts_with",
    "subpath",
    "supported_file_attribute_views",
    "to_absolute_path",
    "to_filesystem",
    "to_path",
    "to_uri",
    "to_watch_event_kind",
    "unary_path",
    "unregister_provider",
    "user_principal_lookup_service",
    "walk",
    "walk_file_tree",
    "watch_event_kind",
    "write",
]
