from __future__ import annotations

from pathlib import Path

import pytest

from flowwarden.fixes.edits import FileSnapshot, TextEdit, apply_edits


def test_edits_use_offsets_of_the_original_text() -> None:
    text = "alpha beta gamma"
    edits = [TextEdit(11, 16, "delta"), TextEdit.insert(0, ">> "), TextEdit(6, 10, "BETA")]

    assert apply_edits(text, edits) == ">> alpha BETA delta"


def test_overlapping_or_out_of_range_edits_raise() -> None:
    with pytest.raises(ValueError, match="Overlapping"):
        apply_edits("abcdef", [TextEdit(0, 3, "x"), TextEdit(2, 4, "y")])
    with pytest.raises(ValueError, match="outside text"):
        apply_edits("abc", [TextEdit(2, 9, "x")])


def test_snapshot_writes_only_when_changed(tmp_path: Path) -> None:
    path = tmp_path / "Node.jsx"
    path.write_text("const a = 1;\n", encoding="utf-8")
    snapshot = FileSnapshot.read(path)

    path.write_text("changed underneath\n", encoding="utf-8")
    assert snapshot.write([]) == "const a = 1;\n"
    assert path.read_text(encoding="utf-8") == "changed underneath\n"

    snapshot.write([TextEdit(10, 11, "2")])
    assert path.read_text(encoding="utf-8") == "const a = 2;\n"
