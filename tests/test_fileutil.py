"""Tests for multigit.fileutil — permission-aware file writes."""

from __future__ import annotations

import os
import stat
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from multigit.errors import FileOperationError
from multigit.fileutil import replace_atomically, write_file


@pytest.fixture()
def umask_022() -> Iterator[None]:
    previous = os.umask(0o022)
    try:
        yield
    finally:
        os.umask(previous)


def _mode(path: Path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


# ===========================================================================
# write_file
# ===========================================================================


class TestWriteFile:
    def test_new_file_is_created_owner_only(self, tmp_path: Path, umask_022: None) -> None:
        path = tmp_path / "secret"
        with patch("multigit.fileutil.os.chmod"):
            write_file(path, b"data", 0o600)
        assert _mode(path) == 0o600
        assert path.read_bytes() == b"data"

    def test_existing_file_is_tightened(self, tmp_path: Path) -> None:
        path = tmp_path / "secret"
        path.write_bytes(b"old contents that are longer")
        path.chmod(0o644)
        write_file(path, b"new", 0o600)
        assert _mode(path) == 0o600
        assert path.read_bytes() == b"new"

    def test_failure_names_path(self, tmp_path: Path) -> None:
        path = tmp_path / "missing-dir" / "secret"
        with pytest.raises(FileOperationError) as excinfo:
            write_file(path, b"data", 0o600)
        assert excinfo.value.path == path


# ===========================================================================
# replace_atomically
# ===========================================================================


class TestReplaceAtomically:
    def test_replaces_content(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("old")
        replace_atomically(path, b"new")
        assert path.read_bytes() == b"new"
        assert _mode(path) == 0o600
        assert sorted(p.name for p in tmp_path.iterdir()) == ["config.json"]

    def test_failed_rename_removes_temp_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("old")
        with patch("multigit.fileutil.os.replace", side_effect=OSError("busy")):
            with pytest.raises(FileOperationError, match="busy"):
                replace_atomically(path, b"new")
        assert path.read_text() == "old"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["config.json"]
