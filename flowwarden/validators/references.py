"""Documentation cross-reference validation."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Sequence

from ..config import DocsConfig
from ..logging import get_logger
from ..matching import closest_match
from ..models import Registry, to_identity
from .base import Issue, IssueKind, Severity

_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


class ReferenceValidator:
    """Checks component names, source paths and Markdown links mentioned in docs."""

    name = "docs"

    def __init__(self, root: Path, docs: DocsConfig | None = None, *, suffix: str = "Node") -> None:
        self.root = root
        self.docs = docs or DocsConfig()
        self._reference_pattern = re.compile(rf"\b([A-Z][a-zA-Z]*{re.escape(suffix)})\b")
        self._source_pattern = re.compile(self.docs.source_path_pattern)
        self.logger = get_logger("validators.references")

    def validate(self, registry: Registry, doc_files: Sequence[Path]) -> List[Issue]:
        issues: List[Issue] = []
        identities = registry.identities()
        for doc_path in doc_files:
            try:
                text = doc_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Skipping unreadable document %s: %s", doc_path, exc)
                continue
            rel_doc = self._relative(doc_path)
            for line_number, line in enumerate(text.splitlines(), start=1):
                issues.extend(self._check_references(registry, identities, rel_doc, line_number, line))
                issues.extend(self._check_source_paths(rel_doc, line_number, line))
                issues.extend(self._check_links(doc_path, rel_doc, line_number, line))
        return issues

    def _check_references(
        self,
        registry: Registry,
        identities: Sequence[str],
        rel_doc: str,
        line_number: int,
        line: str,
    ) -> List[Issue]:
        issues: List[Issue] = []
        for match in self._reference_pattern.finditer(line):
            reference = match.group(1)
            identity = to_identity(reference)
            if identity in registry:
                continue
            suggestion = closest_match(identity, identities)
            summary = f"Unknown component reference {reference}"
            if suggestion:
                summary += f" (did you mean {suggestion}?)"
            issues.append(
                Issue(
                    kind=IssueKind.ORPHANED_REFERENCE,
                    severity=Severity.ERROR,
                    summary=summary,
                    details=f"{rel_doc} references {reference}, which is not in the component registry",
                    file=rel_doc,
                    line=line_number,
                    reference=reference,
                    suggestion=suggestion,
                )
            )
        return issues

    def _check_source_paths(self, rel_doc: str, line_number: int, line: str) -> List[Issue]:
        issues: List[Issue] = []
        for match in self._source_pattern.finditer(line):
            token = match.group(0)
            if (self.root / token).exists():
                continue
            issues.append(
                Issue(
                    kind=IssueKind.MISSING_FILE,
                    severity=Severity.WARNING,
                    summary=f"Referenced source file not found: {token}",
                    details=f"{rel_doc} mentions {token}, which does not exist",
                    file=rel_doc,
                    line=line_number,
                    reference=token,
                )
            )
        return issues

    def _check_links(self, doc_path: Path, rel_doc: str, line_number: int, line: str) -> List[Issue]:
        issues: List[Issue] = []
        for match in _LINK_PATTERN.finditer(line):
            target = match.group(2).strip()
            if not target or target.startswith(("http://", "https://", "mailto:", "#")):
                continue
            cleaned = target.split("#", 1)[0].split("?", 1)[0].strip()
            if not cleaned.lower().endswith(".md"):
                continue
            candidate = (doc_path.parent / cleaned).resolve()
            if candidate.exists():
                continue
            issues.append(
                Issue(
                    kind=IssueKind.BROKEN_LINK,
                    severity=Severity.ERROR,
                    summary=f"Broken document link: {target}",
                    details=f"{rel_doc} links to {target}, which does not exist",
                    file=rel_doc,
                    line=line_number,
                    reference=target,
                )
            )
        return issues

    def _relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = ["ReferenceValidator"]
