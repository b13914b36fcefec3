"""Tests for flowwarden.orchestrator."""

from __future__ import annotations

import io

import pytest

from flowwarden.fixes import FixResult, Fixer, StrategyResolutionError
from flowwarden.logging import configure_logging
from flowwarden.orchestrator import DRY_RUN, FAILED, FIXED, SKIPPED, AutoFixOrchestrator, OrchestratorState
from flowwarden.validators import Issue, IssueKind
from tests._fixtures.project_builder import DOCS_DIR, NODES_DIR, ProjectBuilder, component_source

CAT_PATH = f"{NODES_DIR}/input/CatNode.jsx"
DOC_PATH = f"{DOCS_DIR}/nodes.md"
DOC_TEXT = "See FooBarNode for details.\n"
CAT_BODY = """
const emit = () => {
  setNodes((nds) => nds.map((n) => ({ ...n, data: { ...n.data, volume: 3 } })));
};
"""


class ExplodingFixer(Fixer):
    """Fixer double that raises on every call."""

    key = "exploding"

    def fix(self, issue: Issue) -> FixResult:
        raise RuntimeError("boom")


@pytest.fixture
def project(project_builder: ProjectBuilder):
    project_builder.component("process", "FooBazNode.jsx", component_source("FooBazNode"))
    project_builder.component("input", "CatNode.jsx", component_source("CatNode", outputs=("mood",), body=CAT_BODY))
    project_builder.component("process", "DogNode.jsx", component_source("DogNode", inputs={"mood": "CatNode"}))
    project_builder.doc("nodes.md", DOC_TEXT)
    project = project_builder.project()
    project.build_registry()
    return project


def test_scan_attaches_strategies(project) -> None:
    orchestrator = AutoFixOrchestrator(project)

    issues = orchestrator.scan()

    assert sorted(issue.kind.value for issue in issues) == ["orphaned-reference", "source_not_writing"]
    assert all(issue.strategy is not None and issue.confidence for issue in issues)
    assert orchestrator.state is OrchestratorState.IDLE

    only = orchestrator.scan(only=IssueKind.ORPHANED_REFERENCE)
    assert [issue.reference for issue in only] == ["FooBarNode"]


def test_dry_run_counts_everything_and_writes_nothing(project, project_builder: ProjectBuilder) -> None:
    orchestrator = AutoFixOrchestrator(project)
    cat_before = project_builder.read(CAT_PATH)

    report = orchestrator.apply_fixes(orchestrator.scan(), dry_run=True)

    assert report.dry_run is True
    assert report.fixed == 2
    assert {outcome.status for outcome in report.outcomes} == {DRY_RUN}
    assert report.exit_code == 0
    assert project_builder.read(DOC_PATH) == DOC_TEXT
    assert project_builder.read(CAT_PATH) == cat_before
    assert orchestrator.state is OrchestratorState.DONE


def test_confirmation_required_strategies_are_skipped(project, project_builder: ProjectBuilder) -> None:
    orchestrator = AutoFixOrchestrator(project)

    report = orchestrator.apply_fixes(orchestrator.scan())
    statuses = {outcome.issue.kind: outcome for outcome in report.outcomes}

    assert statuses[IssueKind.ORPHANED_REFERENCE].status == FIXED
    assert statuses[IssueKind.SOURCE_NOT_WRITING].status == SKIPPED
    assert statuses[IssueKind.SOURCE_NOT_WRITING].reason == "requires confirmation"
    assert project_builder.read(DOC_PATH) == "See FooBazNode for details.\n"
    assert report.to_dict()["summary"] == {"total": 2, "fixed": 1, "skipped": 1, "failed": 0}


def test_force_applies_and_backs_up(project, project_builder: ProjectBuilder) -> None:
    orchestrator = AutoFixOrchestrator(project)
    cat_before = project_builder.read(CAT_PATH)

    report = orchestrator.apply_fixes(orchestrator.scan(), force=True, backup=True)

    assert report.fixed == 2
    assert report.exit_code == 0
    assert "volume: 3, mood: null" in project_builder.read(CAT_PATH)
    assert project_builder.read(CAT_PATH + ".bak") == cat_before
    assert project_builder.read(DOC_PATH + ".bak") == DOC_TEXT
    assert orchestrator.scan() == []


def test_backup_keeps_originals_of_every_rewritten_document(project, project_builder: ProjectBuilder) -> None:
    project_builder.doc("a.md", "See FooBarNode here.\n")
    project_builder.doc("b.md", "Also FooBarNode there.\n")
    orchestrator = AutoFixOrchestrator(project)

    report = orchestrator.apply_fixes(orchestrator.scan(only=IssueKind.ORPHANED_REFERENCE), backup=True)

    assert {outcome.status for outcome in report.outcomes} == {FIXED}
    assert project_builder.read(f"{DOCS_DIR}/a.md") == "See FooBazNode here.\n"
    assert project_builder.read(f"{DOCS_DIR}/b.md") == "Also FooBazNode there.\n"
    assert project_builder.read(f"{DOCS_DIR}/a.md.bak") == "See FooBarNode here.\n"
    assert project_builder.read(f"{DOCS_DIR}/b.md.bak") == "Also FooBarNode there.\n"
    assert project_builder.read(DOC_PATH + ".bak") == DOC_TEXT


def test_failed_backup_does_not_block_the_fix(project, project_builder: ProjectBuilder) -> None:
    blocked = project_builder.path() / (DOC_PATH + ".bak")
    blocked.mkdir()
    orchestrator = AutoFixOrchestrator(project)

    stream = io.StringIO()
    configure_logging(stream=stream)
    report = orchestrator.apply_fixes(orchestrator.scan(only=IssueKind.ORPHANED_REFERENCE), backup=True)

    assert [outcome.status for outcome in report.outcomes] == [FIXED]
    assert project_builder.read(DOC_PATH) == "See FooBazNode for details.\n"
    assert blocked.is_dir()
    assert "Could not back up" in stream.getvalue()


def test_raising_fixer_is_reported_as_failure(project) -> None:
    exploding = ExplodingFixer(project.fix_context())
    fixers = {key: exploding for key in ("orphaned-reference", "missing-dependency", "source-not-writing", "data-flow")}
    orchestrator = AutoFixOrchestrator(project, fixers=fixers)

    report = orchestrator.apply_fixes(orchestrator.scan(only=IssueKind.ORPHANED_REFERENCE))

    assert [outcome.status for outcome in report.outcomes] == [FAILED]
    assert report.outcomes[0].reason == "boom"
    assert report.exit_code == 1


def test_unresolvable_catalog_fails_before_fixing(project) -> None:
    with pytest.raises(StrategyResolutionError):
        AutoFixOrchestrator(project, fixers={})
