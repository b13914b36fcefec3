"""Span edits over immutable file snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from ..files import write_text_atomic


@dataclass(frozen=True)
class TextEdit:
    """Replace ``text[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str

    @classmethod
    def insert(cls, offset: int, text: str) -> "TextEdit":
        return cls(offset, offset, text)


def apply_edits(text: str, edits: Sequence[TextEdit]) -> str:
    """Apply non-overlapping edits; offsets refer to the original ``text``."""
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    for previous, current in zip(ordered, ordered[1:]):
        if current.start < previous.end:
            raise ValueError(f"Overlapping edits at offsets {previous.start}-{previous.end} and {current.start}")
    for edit in ordered:
        if not 0 <= edit.start <= edit.end <= len(text):
            raise ValueError(f"Edit span {edit.start}-{edit.end} outside text of length {len(text)}")

    pieces: List[str] = []
    cursor = 0
    for edit in ordered:
        pieces.append(text[cursor:edit.start])
        pieces.append(edit.replacement)
        cursor = edit.end
    pieces.append(text[cursor:])
    return "".join(pieces)


@dataclass(frozen=True)
class FileSnapshot:
    """File content captured once; edits are computed against it and written atomically."""

    path: Path
    text: str

    @classmethod
    def read(cls, path: Path) -> "FileSnapshot":
        return cls(path=path, text=path.read_text(encoding="utf-8"))

    def write(self, edits: Sequence[TextEdit]) -> str:
        updated = apply_edits(self.text, edits)
        if updated != self.text:
            write_text_atomic(self.path, updated)
        return updated


__all__ = ["FileSnapshot", "TextEdit", "apply_edits"]
