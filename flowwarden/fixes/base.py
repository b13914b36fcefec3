"""Base classes for fixer plugins."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config import FlowWardenConfig
from ..models import Registry
from ..validators.base import Issue

_SOURCE_FILE = r"(?P<file>[\w./\\-]+\.(?:jsx?|tsx?))"


@dataclass
class Suggestion:
    """A concrete edit a human should make."""

    description: str
    location: str
    example: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"description": self.description, "location": self.location, "example": self.example}


@dataclass
class FixResult:
    """Outcome of one fixer invocation."""

    success: bool
    changes: int = 0
    error: Optional[str] = None
    suggestions: List[Suggestion] = field(default_factory=list)
    requires_manual_fix: bool = False
    files: List[str] = field(default_factory=list)

    @classmethod
    def failed(cls, error: str) -> "FixResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "changes": self.changes}
        if self.error:
            payload["error"] = self.error
        if self.files:
            payload["files"] = list(self.files)
        if self.suggestions:
            payload["suggestions"] = [suggestion.to_dict() for suggestion in self.suggestions]
        if self.requires_manual_fix:
            payload["requiresManualFix"] = True
        return payload


@dataclass
class FixContext:
    """Project facts a fixer may need beyond the issue itself."""

    config: FlowWardenConfig
    doc_files: Callable[[], Sequence[Path]] = lambda: []
    registry: Callable[[], Optional[Registry]] = lambda: None

    @property
    def root(self) -> Path:
        return self.config.root

    def resolve(self, rel_path: str) -> Path:
        path = Path(rel_path)
        return path if path.is_absolute() else self.root / path


class Fixer(ABC):
    """Contract for fixers that repair (or describe repairs for) one issue kind."""

    key: str = ""

    def __init__(self, context: FixContext) -> None:
        self.context = context

    def targets(self, issue: Issue) -> List[Path]:
        """Files ``fix`` may rewrite for ``issue``; the orchestrator backs these up first."""
        return [self.context.resolve(issue.file)] if issue.file else []

    @abstractmethod
    def fix(self, issue: Issue) -> FixResult:
        """Attempt the repair described by ``issue``."""


def parse_details(issue: Issue, label: str) -> Tuple[Optional[str], List[str]]:
    """Recover ``(file, items)`` from details written as ``<file> <label> a, b``.

    Falls back to the issue's structured ``file`` and ``fields`` when the free
    text does not follow that shape.
    """
    pattern = re.compile(rf"{_SOURCE_FILE}\s+{re.escape(label)}\s*(?P<items>[\w$.?,\s]+)")
    match = pattern.search(issue.details or "")
    if match:
        items = [item.strip() for item in match.group("items").split(",") if item.strip()]
        return match.group("file"), items
    return issue.file, list(issue.fields)


__all__ = ["FixContext", "FixResult", "Fixer", "Suggestion", "parse_details"]
