"""Adds placeholder writes for fields a source component never publishes."""

from __future__ import annotations

import re
from typing import List

from ..extractors.contracts import ContractExtractor, ObjectLiteral
from ..extractors.text import line_indent
from ..logging import get_logger
from ..validators.base import Issue
from ..validators.dataflow import MISSING_FIELDS_LABEL
from .base import FixResult, Fixer, parse_details
from .edits import FileSnapshot, TextEdit

_TEXT_HINTS = ("prompt", "text", "name", "title", "label", "description", "message", "content", "url")
_LIST_HINTS = ("list", "array", "items")


def placeholder_for(field_name: str) -> str:
    """Pick a neutral initial value for ``field_name`` from its spelling."""
    lowered = field_name.lower()
    if any(hint in lowered for hint in _TEXT_HINTS):
        return "''"
    if any(hint in lowered for hint in _LIST_HINTS):
        return "[]"
    if lowered.endswith("s") and not lowered.endswith(("ss", "us")):
        return "[]"
    return "null"


def _is_identifier(name: str) -> bool:
    return re.fullmatch(r"[A-Za-z_$][\w$]*", name) is not None


class SourceNotWritingFixer(Fixer):
    key = "source-not-writing"

    def fix(self, issue: Issue) -> FixResult:
        logger = get_logger("fixes.source_not_writing")
        rel_path, fields = parse_details(issue, MISSING_FIELDS_LABEL)
        fields = [name for name in fields if _is_identifier(name)]
        if not rel_path or not fields:
            return FixResult.failed("could not determine file or missing fields from issue")

        path = self.context.resolve(rel_path)
        try:
            snapshot = FileSnapshot.read(path)
        except FileNotFoundError:
            return FixResult.failed(f"file not found: {rel_path}")

        contract = ContractExtractor(self.context.config.dataflow).extract_text(path, snapshot.text).value
        for call in contract.update_calls:
            for literal in call.data_objects:
                missing = [name for name in fields if name not in literal.keys]
                if not missing:
                    continue
                snapshot.write([self._insertion(snapshot.text, literal, missing)])
                logger.info(
                    "Added %s to %s call at %s:%d", ", ".join(missing), call.name, rel_path, call.line
                )
                return FixResult(success=True, changes=len(missing), files=[str(path)])

        return FixResult.failed(f"no {', '.join(self.context.config.dataflow.update_calls)} data object found")

    @staticmethod
    def _insertion(text: str, literal: ObjectLiteral, fields: List[str]) -> TextEdit:
        entries = [f"{name}: {placeholder_for(name)}" for name in fields]
        inner = text[literal.start + 1:literal.end]
        stripped = inner.rstrip()
        insert_at = literal.start + 1 + len(stripped)

        if not stripped.strip():
            return TextEdit(literal.start + 1, literal.end, " " + ", ".join(entries) + " ")

        if "\n" in inner:
            indent = line_indent(text, insert_at - 1)
            lines = "".join(f"\n{indent}{entry}," for entry in entries)
            if stripped.endswith(","):
                return TextEdit.insert(insert_at, lines)
            return TextEdit.insert(insert_at, "," + lines.rstrip(","))

        joined = ", ".join(entries)
        if stripped.endswith(","):
            return TextEdit.insert(insert_at, f" {joined}")
        return TextEdit.insert(insert_at, f", {joined}")


__all__ = ["SourceNotWritingFixer", "placeholder_for"]
