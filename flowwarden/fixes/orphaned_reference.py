"""Replaces unknown component references in documentation."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List

from ..logging import get_logger
from ..models import reference_form
from ..validators.base import Issue
from .base import FixContext, FixResult, Fixer
from .edits import FileSnapshot, TextEdit


class OrphanedReferenceFixer(Fixer):
    """Rewrites every whole-word occurrence of the wrong name with the suggestion."""

    key = "orphaned-reference"

    def __init__(self, context: FixContext) -> None:
        super().__init__(context)
        self._replaced: Dict[str, str] = {}

    def targets(self, issue: Issue) -> List[Path]:
        if not issue.reference:
            return []
        pattern = _word(issue.reference)
        found: List[Path] = []
        for path in self.context.doc_files():
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            if pattern.search(text):
                found.append(path)
        return found

    def fix(self, issue: Issue) -> FixResult:
        logger = get_logger("fixes.orphaned_reference")
        if not issue.reference:
            return FixResult.failed("issue carries no reference")
        if not issue.suggestion:
            return FixResult.failed(f"no suggestion available for {issue.reference}")

        replacement = reference_form(issue.suggestion)
        if self._replaced.get(issue.reference) == replacement:
            # An earlier issue for the same name already rewrote every document.
            return FixResult(success=True)
        pattern = _word(issue.reference)
        result = FixResult(success=False)

        for path in self.context.doc_files():
            try:
                snapshot = FileSnapshot.read(path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable document %s: %s", path, exc)
                continue
            edits: List[TextEdit] = []
            touched_lines = set()
            for match in pattern.finditer(snapshot.text):
                edits.append(TextEdit(match.start(), match.end(), replacement))
                touched_lines.add(snapshot.text.count("\n", 0, match.start()))
            if not edits:
                continue
            snapshot.write(edits)
            result.changes += len(touched_lines)
            result.files.append(str(path))
            logger.info("Replaced %s with %s in %s", issue.reference, replacement, path)

        if result.changes == 0:
            result.error = f"{issue.reference} not found in documentation"
            return result
        self._replaced[issue.reference] = replacement
        result.success = True
        return result


def _word(reference: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(reference)}\b")


__all__ = ["OrphanedReferenceFixer"]
