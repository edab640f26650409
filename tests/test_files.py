"""Tests for files.py: predicates, creation, deletion, move and content."""

from __future__ import annotations

import logging
import os
import stat
from datetime import UTC, datetime
from pathlib import Path

import pytest

from pathbridge import (
    URI,
    DirectoryNotEmptyError,
    FileAttribute,
    LinkOption,
    StandardCopyOption,
    StandardOpenOption,
    UnsupportedInputShapeError,
    UnsupportedOperationError,
    UnsupportedOptionError,
    as_file_attribute,
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
    get_last_modified_time,
    get_posix_file_permissions,
    is_directory,
    is_executable,
    is_hidden,
    is_readable,
    is_regular_file,
    is_same_file,
    is_symbolic_link,
    is_writable,
    move,
    new_input_stream,
    new_output_stream,
    not_exists,
    posix_permissions_from_string,
    posix_permissions_to_string,
    probe_content_type,
    read_all_bytes,
    read_all_lines,
    read_symbolic_link,
    set_last_modified_time,
    set_posix_file_permissions,
    size,
    write,
)

skip_if_root = pytest.mark.skipif(os.geteuid() == 0, reason="root ignores permission bits")

# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class TestExistence:
    def test_existing(self, sample_file: Path):
        assert exists(sample_file)
        assert not not_exists(sample_file)

    def test_missing(self, tmp_path: Path):
        assert not exists(tmp_path / "missing")
        assert not_exists(tmp_path / "missing")

    def test_accepts_strings_and_uris(self, sample_file: Path):
        assert exists(str(sample_file))
        assert exists(URI.parse(sample_file.as_uri()))

    def test_broken_link(self, tmp_path: Path):
        link = tmp_path / "dangling"
        link.symlink_to(tmp_path / "missing")
        assert not exists(link)
        assert exists(link, LinkOption.NOFOLLOW_LINKS)

    def test_rejects_foreign_option(self, sample_file: Path):
        with pytest.raises(UnsupportedOptionError):
            exists(sample_file, StandardCopyOption.REPLACE_EXISTING)


class TestFileKind:
    def test_regular_file(self, sample_file: Path):
        assert is_regular_file(sample_file)
        assert not is_directory(sample_file)
        assert not is_symbolic_link(sample_file)

    def test_directory(self, tmp_path: Path):
        assert is_directory(tmp_path)
        assert not is_regular_file(tmp_path)

    def test_symbolic_link(self, tmp_path: Path, sample_file: Path):
        link = tmp_path / "link"
        link.symlink_to(sample_file)
        assert is_symbolic_link(link)
        assert is_regular_file(link)
        assert not is_regular_file(link, LinkOption.NOFOLLOW_LINKS)

    def test_missing_is_nothing(self, tmp_path: Path):
        missing = tmp_path / "missing"
        assert not is_directory(missing)
        assert not is_regular_file(missing)
        assert not is_symbolic_link(missing)

    def test_hidden(self, tmp_path: Path):
        dotfile = tmp_path / ".secret"
        dotfile.write_text("x")
        visible = tmp_path / "plain"
        visible.write_text("x")
        assert is_hidden(dotfile)
        assert not is_hidden(visible)

    def test_hidden_missing(self, tmp_path: Path):
        assert not is_hidden(tmp_path / "missing")
        assert is_hidden(tmp_path / ".missing")

    def test_access(self, sample_file: Path):
        assert is_readable(sample_file)
        assert is_writable(sample_file)
        assert not is_executable(sample_file)
        sample_file.chmod(0o755)
        assert is_executable(sample_file)

    def test_access_missing(self, tmp_path: Path):
        assert not is_readable(tmp_path / "missing")


class TestSameFile:
    def test_equal_paths_skip_the_disk(self, tmp_path: Path):
        assert is_same_file(tmp_path / "missing", str(tmp_path / "missing"))

    def test_hard_link(self, tmp_path: Path, sample_file: Path):
        other = create_link(tmp_path / "hard", sample_file)
        assert is_same_file(sample_file, other)

    def test_different(self, tmp_path: Path, sample_file: Path):
        other = tmp_path / "other"
        other.write_text("x")
        assert not is_same_file(sample_file, other)

    def test_missing_other(self, tmp_path: Path, sample_file: Path):
        with pytest.raises(FileNotFoundError):
            is_same_file(sample_file, tmp_path / "missing")


class TestMetadata:
    def test_size(self, sample_file: Path):
        assert size(sample_file) == 5

    def test_size_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            size(tmp_path / "missing")

    def test_last_modified_time_round_trip(self, sample_file: Path):
        when = datetime(2020, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert set_last_modified_time(sample_file, when) == sample_file
        assert get_last_modified_time(sample_file) == when

    def test_last_modified_time_seconds(self, sample_file: Path):
        set_last_modified_time(sample_file, 1_000_000)
        assert get_last_modified_time(sample_file).timestamp() == 1_000_000

    def test_naive_datetime_rejected(self, sample_file: Path):
        with pytest.raises(ValueError):
            set_last_modified_time(sample_file, datetime(2020, 1, 1))

    def test_permissions_round_trip(self, sample_file: Path):
        perms = posix_permissions_from_string("rw-r-----")
        set_posix_file_permissions(sample_file, perms)
        assert get_posix_file_permissions(sample_file) == perms
        assert stat.S_IMODE(sample_file.stat().st_mode) == 0o640

    def test_permission_string(self, sample_file: Path):
        sample_file.chmod(0o751)
        perms = get_posix_file_permissions(sample_file)
        assert posix_permissions_to_string(perms) == "rwxr-x--x"

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            pytest.param("index.html", "text/html", id="html"),
            pytest.param("data.json", "application/json", id="json"),
            pytest.param("mystery.zz9", None, id="unknown"),
        ],
    )
    def test_probe_content_type(self, tmp_path: Path, filename: str, expected: str | None):
        assert probe_content_type(tmp_path / filename) == expected


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateDirectory:
    def test_create(self, tmp_path: Path):
        result = create_directory(str(tmp_path / "new"))
        assert result == tmp_path / "new"
        assert (tmp_path / "new").is_dir()

    def test_existing(self, tmp_path: Path):
        with pytest.raises(FileExistsError):
            create_directory(tmp_path)

    def test_missing_parent(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            create_directory(tmp_path / "a" / "b")

    def test_with_permissions(self, tmp_path: Path):
        perms = posix_permissions_from_string("rwx------")
        create_directory(tmp_path / "private", as_file_attribute(perms))
        assert stat.S_IMODE((tmp_path / "private").stat().st_mode) == 0o700

    def test_unsupported_attribute(self, tmp_path: Path):
        with pytest.raises(UnsupportedOperationError):
            create_directory(tmp_path / "x", FileAttribute("acl:acl", []))

    def test_parents(self, tmp_path: Path):
        result = create_directories(tmp_path / "a" / "b" / "c")
        assert result.is_dir()

    def test_parents_existing_is_fine(self, tmp_path: Path):
        assert create_directories(tmp_path) == tmp_path

    def test_parents_over_file(self, sample_file: Path):
        with pytest.raises(FileExistsError):
            create_directories(sample_file)


class TestCreateFile:
    def test_create(self, tmp_path: Path):
        result = create_file(tmp_path / "new.txt")
        assert result.is_file()
        assert result.stat().st_size == 0

    def test_existing(self, sample_file: Path):
        with pytest.raises(FileExistsError):
            create_file(sample_file)
        assert sample_file.read_bytes() == b"hello"

    def test_with_permissions(self, tmp_path: Path):
        perms = posix_permissions_from_string("rw-------")
        create_file(tmp_path / "secret", as_file_attribute(perms))
        assert stat.S_IMODE((tmp_path / "secret").stat().st_mode) == 0o600

    def test_rejects_non_attribute(self, tmp_path: Path):
        with pytest.raises(UnsupportedOptionError):
            create_file(tmp_path / "x", "rw-------")

    def test_creation_is_logged(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.DEBUG, logger="pathbridge.files"):
            create_file(tmp_path / "logged.txt")
            create_directory(tmp_path / "logged-dir")
            create_symbolic_link(tmp_path / "logged-link", tmp_path / "logged.txt")
            temp = create_temp_file(dir=tmp_path)

        assert "Created file" in caplog.text
        assert "Created directory" in caplog.text
        assert "Created symbolic link" in caplog.text
        assert str(temp) in caplog.text


class TestLinks:
    def test_symbolic_link(self, tmp_path: Path, sample_file: Path):
        link = create_symbolic_link(tmp_path / "link", sample_file)
        assert link.is_symlink()
        assert read_symbolic_link(link) == sample_file

    def test_relative_target_is_kept(self, tmp_path: Path, sample_file: Path):
        link = create_symbolic_link(tmp_path / "link", sample_file.name)
        assert read_symbolic_link(link) == Path(sample_file.name)
        assert link.read_bytes() == b"hello"

    def test_symbolic_link_attributes_unsupported(self, tmp_path: Path, sample_file: Path):
        perms = posix_permissions_from_string("rwx------")
        with pytest.raises(UnsupportedOperationError):
            create_symbolic_link(tmp_path / "link", sample_file, as_file_attribute(perms))

    def test_read_non_link(self, sample_file: Path):
        with pytest.raises(OSError):
            read_symbolic_link(sample_file)

    def test_hard_link_existing(self, sample_file: Path):
        with pytest.raises(FileExistsError):
            create_link(sample_file, sample_file)


class TestTemp:
    def test_temp_file_defaults(self, tmp_path: Path):
        result = create_temp_file(dir=tmp_path)
        assert result.parent == tmp_path
        assert result.name.endswith(".tmp")
        assert result.is_file()

    def test_temp_file_prefix_suffix(self, tmp_path: Path):
        result = create_temp_file(dir=str(tmp_path), prefix="report-", suffix=".csv")
        assert result.name.startswith("report-")
        assert result.name.endswith(".csv")

    def test_temp_file_permissions(self, tmp_path: Path):
        perms = posix_permissions_from_string("rw-r--r--")
        result = create_temp_file(as_file_attribute(perms), dir=tmp_path)
        assert stat.S_IMODE(result.stat().st_mode) == 0o644

    def test_temp_directory(self, tmp_path: Path):
        result = create_temp_directory(dir=tmp_path, prefix="work-")
        assert result.is_dir()
        assert result.parent == tmp_path
        assert result.name.startswith("work-")

    def test_temp_directory_is_unique(self, tmp_path: Path):
        assert create_temp_directory(dir=tmp_path) != create_temp_directory(dir=tmp_path)


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


class TestDelete:
    def test_file(self, sample_file: Path):
        delete(sample_file)
        assert not sample_file.exists()

    def test_empty_directory(self, tmp_path: Path):
        target = tmp_path / "empty"
        target.mkdir()
        delete(target)
        assert not target.exists()

    def test_link_not_target(self, tmp_path: Path):
        target = tmp_path / "dir"
        target.mkdir()
        (target / "keep").write_text("x")
        link = tmp_path / "link"
        link.symlink_to(target)
        delete(link)
        assert not link.is_symlink()
        assert (target / "keep").exists()

    def test_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            delete(tmp_path / "missing")

    def test_non_empty_directory(self, tree: Path):
        with pytest.raises(DirectoryNotEmptyError) as exc_info:
            delete(tree)
        assert isinstance(exc_info.value, OSError)
        assert os.fspath(exc_info.value.filename) == str(tree)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_if_exists(self, sample_file: Path):
        assert delete_if_exists(sample_file) is True
        assert delete_if_exists(sample_file) is False

    def test_if_exists_non_empty(self, tree: Path):
        with pytest.raises(DirectoryNotEmptyError):
            delete_if_exists(tree)


# ---------------------------------------------------------------------------
# Move
# ---------------------------------------------------------------------------


class TestMove:
    def test_rename(self, tmp_path: Path, sample_file: Path):
        target = move(sample_file, tmp_path / "moved.txt")
        assert target == tmp_path / "moved.txt"
        assert target.read_bytes() == b"hello"
        assert not sample_file.exists()

    def test_existing_target(self, tmp_path: Path, sample_file: Path):
        other = tmp_path / "other"
        other.write_text("old")
        with pytest.raises(FileExistsError):
            move(sample_file, other)
        assert sample_file.exists()

    def test_replace_existing(self, tmp_path: Path, sample_file: Path):
        other = tmp_path / "other"
        other.write_text("old")
        move(sample_file, other, StandardCopyOption.REPLACE_EXISTING)
        assert other.read_bytes() == b"hello"

    def test_replace_non_empty_directory(self, tree: Path, sample_file: Path):
        with pytest.raises(DirectoryNotEmptyError):
            move(sample_file, tree / "sub", StandardCopyOption.REPLACE_EXISTING)

    def test_atomic(self, tmp_path: Path, sample_file: Path):
        target = move(sample_file, tmp_path / "atomic", StandardCopyOption.ATOMIC_MOVE)
        assert target.read_bytes() == b"hello"

    def test_directory(self, tree: Path, tmp_path: Path):
        target = move(tree / "sub", tmp_path / "moved")
        assert (target / "deep" / "c.txt").read_text() == "c"

    def test_missing_source(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            move(tmp_path / "missing", tmp_path / "target")

    def test_same_file_is_a_no_op(self, sample_file: Path):
        assert move(sample_file, sample_file) == sample_file
        assert sample_file.exists()

    def test_copy_attributes_rejected(self, tmp_path: Path, sample_file: Path):
        with pytest.raises(UnsupportedOptionError):
            move(sample_file, tmp_path / "x", StandardCopyOption.COPY_ATTRIBUTES)

    def test_dangling_link_replaces_target(self, tmp_path: Path, sample_file: Path):
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "nowhere")
        target = move(link, sample_file, StandardCopyOption.REPLACE_EXISTING)
        assert not os.path.lexists(link)
        assert target.is_symlink()
        assert os.readlink(target) == str(tmp_path / "nowhere")

    def test_link_onto_its_target_moves_the_link(self, tmp_path: Path, sample_file: Path):
        link = tmp_path / "link"
        link.symlink_to(sample_file)
        move(link, sample_file, StandardCopyOption.REPLACE_EXISTING)
        assert not os.path.lexists(link)
        assert sample_file.is_symlink()


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class TestWrite:
    def test_bytes(self, tmp_path: Path):
        target = write(tmp_path / "out.bin", b"\x00\x01")
        assert target.read_bytes() == b"\x00\x01"

    @pytest.mark.parametrize(
        "content",
        [
            pytest.param(bytearray(b"abc"), id="bytearray"),
            pytest.param(memoryview(b"abc"), id="memoryview"),
        ],
    )
    def test_byte_like(self, tmp_path: Path, content):
        write(tmp_path / "out", content)
        assert (tmp_path / "out").read_bytes() == b"abc"

    def test_lines(self, tmp_path: Path):
        write(tmp_path / "out.txt", ["one", "two"])
        sep = os.linesep.encode()
        assert (tmp_path / "out.txt").read_bytes() == b"one" + sep + b"two" + sep

    def test_lines_from_generator(self, tmp_path: Path):
        write(tmp_path / "out.txt", (str(i) for i in range(3)))
        assert read_all_lines(tmp_path / "out.txt") == ["0", "1", "2"]

    def test_encoding(self, tmp_path: Path):
        write(tmp_path / "out.txt", ["é"], encoding="latin-1")
        assert (tmp_path / "out.txt").read_bytes().startswith(b"\xe9")

    def test_truncates_by_default(self, sample_file: Path):
        write(sample_file, b"x")
        assert sample_file.read_bytes() == b"x"

    def test_append(self, sample_file: Path):
        write(sample_file, b" world", StandardOpenOption.APPEND)
        assert sample_file.read_bytes() == b"hello world"

    def test_create_new_existing(self, sample_file: Path):
        with pytest.raises(FileExistsError):
            write(sample_file, b"x", StandardOpenOption.CREATE_NEW, StandardOpenOption.WRITE)

    def test_without_create_needs_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            write(tmp_path / "missing", b"x", StandardOpenOption.WRITE)

    def test_bare_string_rejected_before_io(self, sample_file: Path):
        with pytest.raises(UnsupportedInputShapeError):
            write(sample_file, "hello")
        assert sample_file.read_bytes() == b"hello"

    def test_non_string_line(self, tmp_path: Path):
        with pytest.raises(UnsupportedInputShapeError):
            write(tmp_path / "out", ["ok", 3])
        assert not (tmp_path / "out").exists()

    def test_non_string_line_leaves_target_intact(self, sample_file: Path):
        with pytest.raises(UnsupportedInputShapeError):
            write(sample_file, ["a", 1])
        assert sample_file.read_bytes() == b"hello"

    def test_not_iterable(self, tmp_path: Path):
        with pytest.raises(UnsupportedInputShapeError):
            write(tmp_path / "out", 42)
        assert not (tmp_path / "out").exists()

    @pytest.mark.parametrize(
        "options",
        [
            pytest.param((StandardOpenOption.READ,), id="read"),
            pytest.param(
                (StandardOpenOption.APPEND, StandardOpenOption.TRUNCATE_EXISTING),
                id="append-truncate",
            ),
            pytest.param((StandardCopyOption.ATOMIC_MOVE,), id="copy-option"),
        ],
    )
    def test_rejected_options(self, tmp_path: Path, options: tuple):
        with pytest.raises(UnsupportedOptionError):
            write(tmp_path / "out", b"x", *options)
        assert not (tmp_path / "out").exists()


class TestRead:
    def test_all_bytes(self, sample_file: Path):
        assert read_all_bytes(sample_file) == b"hello"

    def test_all_lines_line_endings(self, tmp_path: Path):
        target = tmp_path / "mixed.txt"
        target.write_bytes(b"a\nb\r\nc\rd")
        assert read_all_lines(target) == ["a", "b", "c", "d"]

    def test_all_lines_trailing_newline(self, tmp_path: Path):
        target = tmp_path / "t.txt"
        target.write_bytes(b"a\nb\n")
        assert read_all_lines(target) == ["a", "b"]

    def test_all_lines_keeps_other_separators(self, tmp_path: Path):
        target = tmp_path / "t.txt"
        target.write_text("a\x0cb\n", encoding="utf-8")
        assert read_all_lines(target) == ["a\x0cb"]

    def test_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_all_bytes(tmp_path / "missing")


class TestStreams:
    def test_output_then_input(self, tmp_path: Path):
        with new_output_stream(tmp_path / "s") as out:
            out.write(b"data")
        with new_input_stream(tmp_path / "s") as f:
            assert f.read() == b"data"

    def test_delete_on_close(self, tmp_path: Path):
        target = tmp_path / "scratch"
        options = (StandardOpenOption.CREATE, StandardOpenOption.DELETE_ON_CLOSE)
        with new_output_stream(target, *options) as out:
            out.write(b"x")
        assert not target.exists()

    def test_input_rejects_write(self, sample_file: Path):
        with pytest.raises(UnsupportedOptionError):
            new_input_stream(sample_file, StandardOpenOption.WRITE)

    def test_input_nofollow_link(self, tmp_path: Path, sample_file: Path):
        link = tmp_path / "link"
        link.symlink_to(sample_file)
        with pytest.raises(OSError):
            new_input_stream(link, LinkOption.NOFOLLOW_LINKS)


class TestDirectoryStream:
    def test_all_entries(self, tree: Path):
        names = sorted(p.name for p in directory_stream(tree))
        assert names == ["a.txt", "other", "sub"]

    def test_entries_are_children(self, tree: Path):
        assert all(p.parent == tree for p in directory_stream(str(tree)))

    def test_glob(self, tree: Path):
        assert [p.name for p in directory_stream(tree, "*.txt")] == ["a.txt"]
        assert sorted(p.name for p in directory_stream(tree, "{sub,other}")) == ["other", "sub"]

    def test_not_a_directory(self, sample_file: Path):
        with pytest.raises(NotADirectoryError):
            list(directory_stream(sample_file))


# ---------------------------------------------------------------------------
# Permission-dependent behavior
# ---------------------------------------------------------------------------


@skip_if_root
class TestAccessDenied:
    def test_read_denied(self, sample_file: Path):
        sample_file.chmod(0)
        try:
            assert not is_readable(sample_file)
            with pytest.raises(PermissionError):
                read_all_bytes(sample_file)
        finally:
            sample_file.chmod(0o644)
