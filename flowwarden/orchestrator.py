"""Auto-fix orchestration: scan, gate through the strategy catalog, apply."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .fixes import FixCatalog, FixResult, Fixer, FixStrategy, discover_fixers
from .logging import get_logger
from .project import Project
from .validators.base import Issue, IssueKind

FIXED = "fixed"
DRY_RUN = "dry-run"
SKIPPED = "skipped"
FAILED = "failed"


class OrchestratorState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    COLLECTING = "collecting"
    APPLYING = "applying"
    REPORTING = "reporting"
    DONE = "done"


@dataclass
class FixOutcome:
    """What happened to one issue during ``apply_fixes``."""

    issue: Issue
    status: str
    strategy: Optional[FixStrategy] = None
    result: Optional[FixResult] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": self.status,
            "issue": self.issue.to_dict(),
        }
        if self.strategy is not None:
            payload["strategy"] = self.strategy.name
        if self.reason:
            payload["reason"] = self.reason
        if self.result is not None:
            payload["result"] = self.result.to_dict()
        return payload


@dataclass
class FixReport:
    """Per-issue outcomes of one apply run."""

    dry_run: bool = False
    outcomes: List[FixOutcome] = field(default_factory=list)

    def _count(self, *statuses: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status in statuses)

    @property
    def fixed(self) -> int:
        return self._count(FIXED, DRY_RUN)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dryRun": self.dry_run,
            "summary": {
                "total": len(self.outcomes),
                "fixed": self.fixed,
                "skipped": self.skipped,
                "failed": self.failed,
            },
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


class AutoFixOrchestrator:
    """Runs validators, keeps the auto-fixable findings and drives the fixers.

    The catalog is checked against the registered fixers on construction so a
    strategy naming an unknown fixer fails before any file is touched.
    """

    def __init__(
        self,
        project: Project,
        *,
        catalog: FixCatalog | None = None,
        fixers: Mapping[str, Fixer] | None = None,
    ) -> None:
        self.project = project
        self.catalog = catalog or project.catalog()
        self.fixers: Dict[str, Fixer] = dict(fixers) if fixers is not None else discover_fixers(project.fix_context())
        self.catalog.ensure_resolvable(self.fixers)
        self.state = OrchestratorState.IDLE
        self.logger = get_logger("orchestrator")
        self._backed_up: Set[Path] = set()

    def scan(
        self,
        *,
        only: IssueKind | None = None,
        workflow: Path | None = None,
        name: str | None = None,
    ) -> List[Issue]:
        """Return auto-fixable issues with their strategy and confidence attached."""
        self.state = OrchestratorState.SCANNING
        report = self.project.validate_all(workflow=workflow, name=name)
        self.logger.info("Validators reported %d issue(s)", len(report.issues))

        self.state = OrchestratorState.COLLECTING
        fixable = self.collect(report.issues, only=only)
        self.logger.info("%d issue(s) are auto-fixable", len(fixable))
        self.state = OrchestratorState.IDLE
        return fixable

    def collect(self, issues: Iterable[Issue], *, only: IssueKind | None = None) -> List[Issue]:
        fixable: List[Issue] = []
        seen = set()
        for issue in issues:
            if only is not None and issue.kind != only:
                continue
            # Connections sharing an endpoint yield one issue each for the same edit.
            key = (issue.kind, issue.file, issue.line, issue.reference, tuple(issue.fields))
            if key in seen:
                continue
            strategy = self.catalog.auto_fixable(issue.kind)
            if strategy is None:
                continue
            issue.strategy = strategy
            issue.confidence = strategy.confidence
            seen.add(key)
            fixable.append(issue)
        return fixable

    def apply_fixes(
        self,
        issues: Sequence[Issue],
        *,
        dry_run: bool = False,
        backup: bool = False,
        force: bool = False,
    ) -> FixReport:
        self.state = OrchestratorState.APPLYING
        report = FixReport(dry_run=dry_run)
        self._backed_up = set()
        for issue in issues:
            report.outcomes.append(self._apply_one(issue, dry_run=dry_run, backup=backup, force=force))

        self.state = OrchestratorState.REPORTING
        self.logger.info(
            "Fix run finished: %d fixed, %d skipped, %d failed",
            report.fixed,
            report.skipped,
            report.failed,
        )
        self.state = OrchestratorState.DONE
        return report

    def _apply_one(self, issue: Issue, *, dry_run: bool, backup: bool, force: bool) -> FixOutcome:
        strategy = issue.strategy or self.catalog.auto_fixable(issue.kind)
        if strategy is None or not strategy.fixer:
            return FixOutcome(issue, SKIPPED, strategy, reason="no auto-fix strategy")

        if dry_run:
            self.logger.info("[dry-run] would apply %s to %s", strategy.name, issue.location)
            return FixOutcome(issue, DRY_RUN, strategy)

        if strategy.requires_user_confirmation and not force:
            return FixOutcome(issue, SKIPPED, strategy, reason="requires confirmation")

        fixer = self.fixers[strategy.fixer]
        if backup:
            for path in fixer.targets(issue):
                self._backup(path)

        try:
            result = fixer.fix(issue)
        except Exception as exc:
            self.logger.error("Fixer %s raised on %s: %s", strategy.fixer, issue.location, exc)
            return FixOutcome(issue, FAILED, strategy, result=FixResult.failed(str(exc)), reason=str(exc))

        if result.success:
            self.logger.info("Applied %s to %s (%d change(s))", strategy.name, issue.location, result.changes)
            return FixOutcome(issue, FIXED, strategy, result=result)
        self.logger.warning("Fix %s failed for %s: %s", strategy.name, issue.location, result.error)
        return FixOutcome(issue, FAILED, strategy, result=result, reason=result.error or "")

    def _backup(self, path: Path) -> None:
        """Copy ``path`` to ``<path>.bak`` once per run, before its first edit."""
        path = path.resolve()
        if path in self._backed_up or not path.is_file():
            return
        self._backed_up.add(path)
        target = path.with_name(path.name + ".bak")
        if target.is_dir():
            self.logger.warning("Could not back up %s: %s is a directory", path, target)
            return
        try:
            shutil.copy2(path, target)
        except OSError as exc:
            self.logger.warning("Could not back up %s: %s", path, exc)
            return
        self.logger.debug("Backed up %s to %s", path, target)


__all__ = [
    "AutoFixOrchestrator",
    "DRY_RUN",
    "FAILED",
    "FIXED",
    "FixOutcome",
    "FixReport",
    "OrchestratorState",
    "SKIPPED",
]
