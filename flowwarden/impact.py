"""Change impact analysis for a single component."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import ImpactConfig
from .logging import get_logger
from .models import ComponentRecord, Registry
from .validators.syntax import SyntaxValidator


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


_RANK = {RiskLevel.HIGH: 0, RiskLevel.MEDIUM: 1, RiskLevel.LOW: 2}

HIGH_DEPENDENT_COUNT = 4

DEFAULT_TEST_COMMANDS: Dict[str, str] = {
    "target": "npm run test:node --name={identity}",
    "affected": "npm run test:affected --from={identity}",
    "workflow": "npm run test:workflow",
    "registry": "npm run validate:registry",
}


@dataclass(frozen=True)
class ContractField:
    field: str
    type: str
    critical: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "type": self.type, "critical": self.critical}


# Interface contracts the editor relies on, maintained by hand.
KNOWN_CONTRACTS: Dict[str, List[ContractField]] = {
    "promptOptimizerNode": [
        ContractField("context.characters", "Array<{username, alias, profilePictureUrl}>", True),
        ContractField("simplePrompt", "string", True),
        ContractField("optimizedPrompt", "string", True),
    ],
    "characterLibraryNode": [
        ContractField("connectedCharacters", "Array<Character>", True),
        ContractField("selectedCharacters", "Set<string>", False),
    ],
    "openAIConfigNode": [
        ContractField("base_url", "string", True),
        ContractField("api_key", "string", True),
        ContractField("model", "string", True),
    ],
    "videoGenerateNode": [
        ContractField("apiConfig", "ApiConfig", True),
        ContractField("connectedCharacters", "Array<Character>", True),
        ContractField("manualPrompt", "string", True),
    ],
    "narratorProcessorNode": [
        ContractField("connectedCharacters", "Array<Character>", True),
        ContractField("optimizedSentences", "Array<Sentence>", True),
        ContractField("openaiConfig", "OpenAIConfig", True),
    ],
}


class NodeNotFound(LookupError):
    """Raised when the requested component is not in the registry."""

    def __init__(self, identity: str, available: Sequence[str] = ()) -> None:
        message = f"Component '{identity}' not found in registry"
        if available:
            message += f" ({len(available)} registered; see `flowwarden registry list`)"
        super().__init__(message)
        self.identity = identity


@dataclass(frozen=True)
class Dependent:
    identity: str
    port: str

    def to_dict(self) -> Dict[str, str]:
        return {"identity": self.identity, "port": self.port}


@dataclass(frozen=True)
class Risk:
    level: RiskLevel
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level.value, "message": self.message}


@dataclass(frozen=True)
class Recommendation:
    priority: RiskLevel
    action: str
    command: str

    def to_dict(self) -> Dict[str, str]:
        return {"priority": self.priority.value, "action": self.action, "command": self.command}


@dataclass
class ImpactReport:
    """Who depends on a component and what to test after changing it."""

    identity: str
    workflow: Optional[str] = None
    dependents: List[Dependent] = field(default_factory=list)
    contract: List[ContractField] = field(default_factory=list)
    risks: List[Risk] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)

    @property
    def highest_risk(self) -> Optional[RiskLevel]:
        if not self.risks:
            return None
        return min((risk.level for risk in self.risks), key=_RANK.__getitem__)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "workflow": self.workflow,
            "dependents": [dependent.to_dict() for dependent in self.dependents],
            "contract": [entry.to_dict() for entry in self.contract],
            "risks": [risk.to_dict() for risk in self.risks],
            "recommendations": [item.to_dict() for item in self.recommendations],
        }


@dataclass(frozen=True)
class CheckResult:
    component: str
    check: str
    passed: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"component": self.component, "check": self.check, "passed": self.passed}
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass
class VerificationReport:
    """Checks run against a changed component and the components that depend on it."""

    identity: str
    checks: List[CheckResult] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for check in self.checks if not check.passed)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "summary": {"total": len(self.checks), "failed": self.failed},
            "checks": [check.to_dict() for check in self.checks],
        }


class ImpactAnalyzer:
    def __init__(
        self,
        registry: Registry,
        config: ImpactConfig | None = None,
        *,
        contracts: Mapping[str, List[ContractField]] | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or ImpactConfig()
        self.contracts = dict(KNOWN_CONTRACTS if contracts is None else contracts)
        self.commands = {**DEFAULT_TEST_COMMANDS, **self.config.test_commands}
        self.logger = get_logger("impact")

    def analyze(self, identity: str, workflow: str | None = None) -> ImpactReport:
        record = self.registry.get(identity)
        if record is None:
            raise NodeNotFound(identity, self.registry.identities())

        report = ImpactReport(identity=identity, workflow=workflow)
        report.dependents = self.dependents_of(identity)
        report.contract = list(self.contracts.get(identity, []))
        report.risks = self._risks(report, record.exists)
        report.recommendations = self._recommendations(report)
        self.logger.debug(
            "Impact of %s: %d dependent(s), %d risk(s)", identity, len(report.dependents), len(report.risks)
        )
        return report

    def dependents_of(self, identity: str) -> List[Dependent]:
        dependents: List[Dependent] = []
        for other in self.registry.identities():
            if other == identity:
                continue
            record = self.registry.nodes[other]
            for port in record.inputs:
                if record.input_sources.get(port) == identity:
                    dependents.append(Dependent(identity=other, port=port))
        return dependents

    def verify(self, identity: str, syntax: SyntaxValidator) -> VerificationReport:
        """Check the target's file and syntax, then each dependent's connection to it.

        A connection passes when both files exist and the target still declares
        an output port for the dependent's input to attach to.
        """
        record = self.registry.get(identity)
        if record is None:
            raise NodeNotFound(identity, self.registry.identities())

        report = VerificationReport(identity=identity)
        report.checks.append(
            CheckResult(
                identity,
                "file exists",
                record.exists,
                None if record.exists else f"{record.file_path} does not exist",
            )
        )
        if record.exists:
            problems = syntax.validate([Path(record.absolute_path)])
            report.checks.append(
                CheckResult(
                    identity,
                    "syntax",
                    not problems,
                    "; ".join(issue.details or issue.summary for issue in problems) or None,
                )
            )
        for dependent in self.dependents_of(identity):
            report.checks.append(self._check_connection(record, dependent))

        self.logger.info("Verified %s: %d check(s), %d failed", identity, len(report.checks), report.failed)
        return report

    def _check_connection(self, record: ComponentRecord, dependent: Dependent) -> CheckResult:
        check = f"connection ({dependent.port})"
        downstream = self.registry.nodes[dependent.identity]
        if not downstream.exists:
            return CheckResult(dependent.identity, check, False, f"{downstream.file_path} does not exist")
        if not record.exists:
            return CheckResult(dependent.identity, check, False, f"upstream {record.identity} does not exist")
        if not record.outputs:
            return CheckResult(
                dependent.identity, check, False, f"{record.identity} declares no output port for {dependent.port}"
            )
        return CheckResult(dependent.identity, check, True)

    def _risks(self, report: ImpactReport, exists: bool) -> List[Risk]:
        risks: List[Risk] = []
        if len(report.dependents) >= HIGH_DEPENDENT_COUNT:
            risks.append(
                Risk(RiskLevel.HIGH, f"{len(report.dependents)} components depend on {report.identity}")
            )
        critical = set(self.config.critical)
        for dependent in report.dependents:
            if dependent.identity in critical:
                risks.append(
                    Risk(RiskLevel.MEDIUM, f"Critical component {dependent.identity} depends on {report.identity}")
                )
        if not exists:
            risks.append(Risk(RiskLevel.LOW, f"Source file for {report.identity} does not exist"))
        return _ranked(risks)

    def _recommendations(self, report: ImpactReport) -> List[Recommendation]:
        values = {"identity": report.identity, "workflow": report.workflow or ""}
        items = [
            Recommendation(
                RiskLevel.HIGH,
                f"Test {report.identity}",
                self.commands["target"].format(**values),
            )
        ]
        if report.dependents:
            items.append(
                Recommendation(
                    RiskLevel.HIGH,
                    f"Test {len(report.dependents)} affected component(s)",
                    self.commands["affected"].format(**values),
                )
            )
            items.append(
                Recommendation(
                    RiskLevel.LOW,
                    "Re-validate the component registry",
                    self.commands["registry"].format(**values),
                )
            )
        if report.workflow:
            items.append(
                Recommendation(
                    RiskLevel.MEDIUM,
                    f"Run the {report.workflow} workflow integration test",
                    self.commands["workflow"].format(**values),
                )
            )
        return sorted(items, key=lambda item: _RANK[item.priority])


def _ranked(risks: List[Risk]) -> List[Risk]:
    return sorted(risks, key=lambda risk: _RANK[risk.level])


__all__ = [
    "CheckResult",
    "ContractField",
    "Dependent",
    "ImpactAnalyzer",
    "ImpactReport",
    "KNOWN_CONTRACTS",
    "NodeNotFound",
    "Recommendation",
    "Risk",
    "RiskLevel",
    "VerificationReport",
]
