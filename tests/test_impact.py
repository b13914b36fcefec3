"""Tests for change impact analysis."""

from __future__ import annotations

import subprocess
from dataclasses import replace
from pathlib import Path
from typing import Dict

import pytest

from flowwarden.config import ImpactConfig, SyntaxConfig
from flowwarden.impact import ImpactAnalyzer, NodeNotFound, RiskLevel
from flowwarden.models import ComponentRecord, Registry
from flowwarden.validators import SyntaxValidator


def _record(identity: str, sources: Dict[str, str] | None = None, *, exists: bool = True) -> ComponentRecord:
    file_name = identity[0].upper() + identity[1:] + ".jsx"
    return ComponentRecord(
        identity=identity,
        file_name=file_name,
        file_path=f"src/client/src/nodes/process/{file_name}",
        absolute_path=f"/project/src/client/src/nodes/process/{file_name}",
        category="process",
        inputs=list(sources or {}),
        input_sources=dict(sources or {}),
        exists=exists,
    )


def _registry(*records: ComponentRecord) -> Registry:
    return Registry(nodes={record.identity: record for record in records})


def test_unknown_component_raises() -> None:
    with pytest.raises(NodeNotFound, match="ghostNode"):
        ImpactAnalyzer(_registry(_record("catNode"))).analyze("ghostNode")


def test_isolated_component_only_needs_its_own_test() -> None:
    report = ImpactAnalyzer(_registry(_record("catNode"))).analyze("catNode")

    assert report.dependents == []
    assert report.risks == []
    assert report.highest_risk is None
    assert [item.command for item in report.recommendations] == ["npm run test:node --name=catNode"]


def test_many_dependents_are_high_risk() -> None:
    dependents = [_record(f"dog{index}Node", {"in": "catNode"}) for index in range(4)]
    report = ImpactAnalyzer(_registry(_record("catNode"), *dependents)).analyze("catNode", "daily")

    assert [dependent.identity for dependent in report.dependents] == [f"dog{index}Node" for index in range(4)]
    assert report.highest_risk is RiskLevel.HIGH
    assert [item.priority for item in report.recommendations] == [
        RiskLevel.HIGH,
        RiskLevel.HIGH,
        RiskLevel.MEDIUM,
        RiskLevel.LOW,
    ]
    assert report.recommendations[2].command == "npm run test:workflow"
    assert report.to_dict()["risks"][0]["level"] == "HIGH"


def test_critical_dependent_and_missing_source() -> None:
    registry = _registry(
        _record("openAIConfigNode", exists=False),
        _record("videoGenerateNode", {"api": "openAIConfigNode"}),
    )

    report = ImpactAnalyzer(registry).analyze("openAIConfigNode")

    assert [risk.level for risk in report.risks] == [RiskLevel.MEDIUM, RiskLevel.LOW]
    assert report.dependents[0].port == "api"
    assert [entry.field for entry in report.contract] == ["base_url", "api_key", "model"]


def test_configured_commands_and_contracts_override_defaults() -> None:
    config = ImpactConfig(critical=[], test_commands={"target": "make test NODE={identity}"})
    analyzer = ImpactAnalyzer(_registry(_record("catNode")), config, contracts={})

    report = analyzer.analyze("catNode")

    assert report.recommendations[0].command == "make test NODE=catNode"
    assert report.contract == []


def _checker(returncode: int = 0, stderr: str = ""):
    def run(args, *, cwd, timeout=None) -> subprocess.CompletedProcess:
        return subprocess.CompletedProcess(args, returncode, stdout="", stderr=stderr)

    return run


def _on_disk(tmp_path: Path, record: ComponentRecord, **changes) -> ComponentRecord:
    path = tmp_path / record.file_name
    path.write_text(f"export default {record.file_name[:-4]};\n", encoding="utf-8")
    return replace(record, absolute_path=str(path), **changes)


def test_verify_passes_for_healthy_component_and_dependents(tmp_path: Path) -> None:
    cat = _on_disk(tmp_path, _record("catNode"), outputs=["mood"])
    dog = _on_disk(tmp_path, _record("dogNode", {"mood": "catNode"}))
    syntax = SyntaxValidator(tmp_path, SyntaxConfig(), runner=_checker())

    report = ImpactAnalyzer(_registry(cat, dog)).verify("catNode", syntax)

    assert [(check.component, check.check, check.passed) for check in report.checks] == [
        ("catNode", "file exists", True),
        ("catNode", "syntax", True),
        ("dogNode", "connection (mood)", True),
    ]
    assert report.exit_code == 0
    assert report.to_dict()["summary"] == {"total": 3, "failed": 0}


def test_verify_reports_syntax_and_connection_failures(tmp_path: Path) -> None:
    cat = _on_disk(tmp_path, _record("catNode"))
    dog = _on_disk(tmp_path, _record("dogNode", {"mood": "catNode"}))
    ghost = _record("ghostNode", {"mood": "catNode"}, exists=False)
    syntax = SyntaxValidator(tmp_path, SyntaxConfig(), runner=_checker(1, "SyntaxError: Unexpected token (3:4)"))

    report = ImpactAnalyzer(_registry(cat, dog, ghost)).verify("catNode", syntax)
    failures = {(check.component, check.check): check.error for check in report.checks if not check.passed}

    assert "Unexpected token" in failures[("catNode", "syntax")]
    assert failures[("dogNode", "connection (mood)")] == "catNode declares no output port for mood"
    assert failures[("ghostNode", "connection (mood)")].endswith("does not exist")
    assert report.failed == 3
    assert report.exit_code == 1


def test_verify_of_missing_source_skips_syntax(tmp_path: Path) -> None:
    registry = _registry(_record("catNode", exists=False), _record("dogNode", {"mood": "catNode"}))
    syntax = SyntaxValidator(tmp_path, SyntaxConfig(), runner=_checker())

    report = ImpactAnalyzer(registry).verify("catNode", syntax)

    assert [check.check for check in report.checks] == ["file exists", "connection (mood)"]
    assert report.checks[1].error == "upstream catNode does not exist"

    with pytest.raises(NodeNotFound):
        ImpactAnalyzer(registry).verify("ghostNode", syntax)
