"""Tests for options.py: option packing and validation."""

from __future__ import annotations

import pytest

from pathbridge import (
    FileAttribute,
    LinkOption,
    PosixFilePermission,
    StandardCopyOption,
    StandardOpenOption,
    UnsupportedOptionError,
    as_file_attribute,
)
from pathbridge.options import collect_options, follow_links


class TestCollectOptions:
    def test_keeps_order(self):
        opts = collect_options(
            StandardOpenOption,
            [StandardOpenOption.CREATE, StandardOpenOption.APPEND],
            "write",
        )
        assert opts == (StandardOpenOption.CREATE, StandardOpenOption.APPEND)

    def test_empty(self):
        assert collect_options(LinkOption, (), "exists") == ()

    def test_several_kinds(self):
        opts = collect_options(
            (StandardCopyOption, LinkOption),
            (StandardCopyOption.REPLACE_EXISTING, LinkOption.NOFOLLOW_LINKS),
            "copy",
        )
        assert len(opts) == 2

    @pytest.mark.parametrize(
        "option",
        [
            pytest.param("nofollow_links", id="plain-string"),
            pytest.param(StandardCopyOption.REPLACE_EXISTING, id="wrong-enum"),
            pytest.param(None, id="none"),
        ],
    )
    def test_wrong_kind(self, option):
        with pytest.raises(UnsupportedOptionError) as exc_info:
            collect_options(LinkOption, (option,), "exists")
        assert exc_info.value.option == option
        assert exc_info.value.operation == "exists"
        assert "exists" in str(exc_info.value)

    def test_not_allowed(self):
        with pytest.raises(UnsupportedOptionError):
            collect_options(
                StandardCopyOption,
                (StandardCopyOption.ATOMIC_MOVE,),
                "copy",
                allowed=frozenset({StandardCopyOption.REPLACE_EXISTING}),
            )


class TestFollowLinks:
    def test_default_follows(self):
        assert follow_links(()) is True

    def test_nofollow(self):
        assert follow_links((LinkOption.NOFOLLOW_LINKS,)) is False


class TestFileAttribute:
    def test_permissions_attribute(self):
        attr = as_file_attribute([PosixFilePermission.OWNER_READ])
        assert attr == FileAttribute("posix:permissions", frozenset({PosixFilePermission.OWNER_READ}))

    def test_frozen(self):
        attr = FileAttribute("posix:permissions", frozenset())
        with pytest.raises(AttributeError):
            attr.name = "other"
