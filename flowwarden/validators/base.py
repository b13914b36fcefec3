"""Core validation data structures and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

from ..stores.metrics import RunSummary

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..fixes.catalog import FixStrategy


class IssueKind(str, Enum):
    """Closed taxonomy of findings."""

    ORPHANED_REFERENCE = "orphaned-reference"
    MISSING_FILE = "missing-file"
    BROKEN_LINK = "broken-link"
    NAMING_MISMATCH = "naming-mismatch"
    SOURCE_NOT_WRITING = "source_not_writing"
    MISSING_DEPENDENCY = "missing_dependency"
    MISSING_SOURCE = "missing_source"
    MISSING_TARGET = "missing_target"
    DATA_FLOW_BREAK = "data_flow_break"
    ONE_WAY_SYNC = "one_way_sync"
    SYNTAX_ERROR = "syntax-error"

    @classmethod
    def parse(cls, value: str) -> "IssueKind":
        normalised = value.strip().lower()
        for kind in cls:
            if normalised in (kind.value, kind.value.replace("-", "_"), kind.value.replace("_", "-")):
                return kind
        raise ValueError(f"Unknown issue kind: {value}")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Issue:
    """One detected inconsistency between source, documentation, registry or graph."""

    kind: IssueKind
    severity: Severity
    summary: str
    details: str = ""
    file: Optional[str] = None
    line: Optional[int] = None
    reference: Optional[str] = None
    suggestion: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    fields: List[str] = field(default_factory=list)
    strategy: Optional["FixStrategy"] = None
    confidence: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, IssueKind):
            self.kind = IssueKind(self.kind)
        if not isinstance(self.severity, Severity):
            self.severity = Severity(self.severity)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def location(self) -> str:
        if self.file and self.line:
            return f"{self.file}:{self.line}"
        return self.file or "-"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "summary": self.summary,
            "details": self.details,
            "file": self.file,
            "line": self.line,
        }
        for key in ("reference", "suggestion", "source", "target"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.fields:
            payload["fields"] = list(self.fields)
        if self.strategy is not None:
            payload["strategy"] = self.strategy.name
            payload["confidence"] = self.confidence
        return payload


@dataclass
class ValidationReport:
    """Issues from one validator run plus how many items it examined."""

    type: str
    issues: List[Issue] = field(default_factory=list)
    processed: int = 0

    @property
    def errors(self) -> int:
        return sum(1 for issue in self.issues if issue.is_error)

    @property
    def warnings(self) -> int:
        return sum(1 for issue in self.issues if not issue.is_error)

    @property
    def failed(self) -> bool:
        return self.errors > 0

    def summary(self) -> RunSummary:
        return RunSummary(total=self.processed, errors=self.errors, warnings=self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "summary": self.summary().to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
        }


def merge_reports(reports: Iterable[ValidationReport], *, run_type: str = "all") -> ValidationReport:
    merged = ValidationReport(type=run_type)
    for report in reports:
        merged.issues.extend(report.issues)
        merged.processed += report.processed
    return merged


def dedupe(issues: Sequence[Issue]) -> List[Issue]:
    """Drop repeated findings that share kind, file, line, reference and fields."""
    seen = set()
    unique: List[Issue] = []
    for issue in issues:
        key = (issue.kind, issue.file, issue.line, issue.reference, issue.source, issue.target, tuple(issue.fields))
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


__all__ = [
    "Issue",
    "IssueKind",
    "Severity",
    "ValidationReport",
    "dedupe",
    "merge_reports",
]
