"""Tests for atomic file writes."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from flowwarden.files import write_text_atomic
from flowwarden.fixes.edits import FileSnapshot, TextEdit

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def test_rewrite_keeps_existing_permissions(tmp_path: Path) -> None:
    path = tmp_path / "CatNode.jsx"
    path.write_text("export default CatNode;\n", encoding="utf-8")
    path.chmod(0o644)

    FileSnapshot.read(path).write([TextEdit.insert(0, "// x\n")])

    assert path.read_text(encoding="utf-8").startswith("// x\n")
    assert _mode(path) == 0o644

    path.chmod(0o755)
    write_text_atomic(path, "again\n")
    assert _mode(path) == 0o755


def test_new_file_follows_umask(tmp_path: Path) -> None:
    previous = os.umask(0o027)
    try:
        target = tmp_path / "state" / "registry.json"
        write_text_atomic(target, "{}\n")
    finally:
        os.umask(previous)

    assert _mode(target) == 0o640
    assert [entry.name for entry in target.parent.iterdir()] == ["registry.json"]
