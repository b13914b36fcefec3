"""Adds missing fields to a reactive construct's dependency array."""

from __future__ import annotations

import re
from typing import List, Optional

from ..extractors.contracts import ContractExtractor, ReactiveBlock
from ..extractors.text import line_of, mask_non_code
from ..logging import get_logger
from ..validators.base import Issue
from ..validators.dataflow import MISSING_DEPENDENCY_LABEL
from .base import FixResult, Fixer, parse_details
from .edits import FileSnapshot, TextEdit


def _field_name(dependency: str) -> str:
    cleaned = dependency.strip()
    for prefix in ("data?.", "data."):
        if cleaned.startswith(prefix):
            return cleaned[len(prefix):]
    return cleaned


class MissingDependencyFixer(Fixer):
    """Appends ``data.<field>`` to the nearest construct that uses but does not track it.

    Only the first qualifying construct is edited per invocation.
    """

    key = "missing-dependency"

    def fix(self, issue: Issue) -> FixResult:
        logger = get_logger("fixes.missing_dependency")
        rel_path, dependencies = parse_details(issue, MISSING_DEPENDENCY_LABEL)
        fields = [_field_name(dependency) for dependency in dependencies if _field_name(dependency)]
        if not rel_path or not fields:
            return FixResult.failed("could not determine file or missing dependency from issue")

        path = self.context.resolve(rel_path)
        try:
            snapshot = FileSnapshot.read(path)
        except FileNotFoundError:
            return FixResult.failed(f"file not found: {rel_path}")

        extractor = ContractExtractor(self.context.config.dataflow)
        contract = extractor.extract_text(path, snapshot.text).value
        masked = mask_non_code(snapshot.text)

        for block in self._by_distance(contract.reactive_blocks, issue.line):
            if block.deps_start is None or block.deps_end is None:
                continue
            body = masked[block.body_start:block.body_end]
            missing = [
                name
                for name in fields
                if not block.triggers(name)
                and re.search(rf"\bdata\s*(?:\?\.|\.)\s*{re.escape(name)}\b", body)
            ]
            if not missing:
                continue

            additions = [f"data.{name}" for name in missing]
            edit = self._append(snapshot.text, block.deps_start, block.deps_end, additions)
            snapshot.write([edit])
            logger.info(
                "Added %s to %s at %s:%d",
                ", ".join(missing),
                block.name,
                rel_path,
                line_of(snapshot.text, block.start),
            )
            return FixResult(success=True, changes=1, files=[str(path)])

        return FixResult.failed("no matching construct found")

    @staticmethod
    def _by_distance(blocks: List[ReactiveBlock], line: Optional[int]) -> List[ReactiveBlock]:
        if line is None:
            return list(blocks)
        return sorted(blocks, key=lambda block: (abs(block.line - line), block.start))

    @staticmethod
    def _append(text: str, deps_start: int, deps_end: int, additions: List[str]) -> TextEdit:
        inner = text[deps_start + 1:deps_end]
        stripped = inner.rstrip()
        if not stripped.strip():
            return TextEdit(deps_start + 1, deps_end, ", ".join(additions))
        insert_at = deps_start + 1 + len(stripped)
        if stripped.endswith(","):
            return TextEdit.insert(insert_at, " " + ", ".join(additions) + ",")
        return TextEdit.insert(insert_at, ", " + ", ".join(additions))


__all__ = ["MissingDependencyFixer"]
