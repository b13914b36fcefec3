"""Validators producing issues from the registry, docs, graphs and sources."""

from .base import Issue, IssueKind, Severity, ValidationReport, dedupe, merge_reports
from .dataflow import DataFlowValidator
from .naming import naming_issues
from .references import ReferenceValidator
from .syntax import SyntaxValidator

__all__ = [
    "DataFlowValidator",
    "Issue",
    "IssueKind",
    "ReferenceValidator",
    "Severity",
    "SyntaxValidator",
    "ValidationReport",
    "dedupe",
    "merge_reports",
    "naming_issues",
]
