"""Shared fixtures for pathbridge tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """A small directory tree::

        root/
            a.txt
            other/
                d.txt
            sub/
                b.txt
                deep/
                    c.txt
    """
    root = tmp_path / "root"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "other").mkdir()
    (root / "a.txt").write_text("a")
    (root / "sub" / "b.txt").write_text("b")
    (root / "sub" / "deep" / "c.txt").write_text("c")
    (root / "other" / "d.txt").write_text("d")
    return root


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """A regular file holding ``hello``."""
    path = tmp_path / "sample.txt"
    path.write_bytes(b"hello")
    return path
