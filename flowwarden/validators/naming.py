"""Component naming convention checks."""

from __future__ import annotations

from typing import List

from ..models import Registry
from ..stores.registry import naming_mismatches
from .base import Issue, IssueKind, Severity


def naming_issues(registry: Registry, suffix: str = "Node") -> List[Issue]:
    """Report registered identities that are not camelCase with the component suffix."""
    return [
        Issue(
            kind=IssueKind.NAMING_MISMATCH,
            severity=Severity.ERROR,
            summary=f"Component identity '{record.identity}' does not follow camelCase + '{suffix}'",
            details=f"{record.file_path} should be renamed so its identity ends with '{suffix}'",
            file=record.file_path,
            reference=record.identity,
        )
        for record in naming_mismatches(registry, suffix)
    ]


__all__ = ["naming_issues"]
