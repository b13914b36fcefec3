"""Data-flow validation across component connections."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from ..config import DataFlowConfig
from ..extractors.base import ExtractionError
from ..extractors.contracts import ContractExtractor, DataContract
from ..graph import Connection, ConnectionGraph
from ..logging import get_logger
from ..models import ComponentRecord, Registry
from .base import Issue, IssueKind, Severity, dedupe

MISSING_FIELDS_LABEL = "missing fields:"
MISSING_DEPENDENCY_LABEL = "missing dependency:"


class DataFlowValidator:
    """Checks that connected components agree on the fields they exchange.

    For every connection and carried field the upstream component must write
    the field, and the downstream component must list any field it reads among
    the triggers of a reactive construct. Both checks are textual, so writes
    made through unrecognised indirection are reported as missing.
    """

    name = "dataflow"

    def __init__(
        self,
        config: DataFlowConfig | None = None,
        *,
        extractor: ContractExtractor | None = None,
    ) -> None:
        self.config = config or DataFlowConfig()
        self.extractor = extractor or ContractExtractor(self.config)
        self.logger = get_logger("validators.dataflow")
        self._contracts: Dict[str, Optional[DataContract]] = {}

    def validate(self, registry: Registry, graph: ConnectionGraph) -> List[Issue]:
        self._contracts = {}
        issues: List[Issue] = []
        for connection in graph.connections:
            issues.extend(self._check_connection(registry, connection))
        return dedupe(issues)

    def contract_for(self, record: ComponentRecord) -> Optional[DataContract]:
        if record.identity not in self._contracts:
            try:
                self._contracts[record.identity] = self.extractor.extract(Path(record.absolute_path))
            except ExtractionError as exc:
                self.logger.warning("Cannot read contract for %s: %s", record.identity, exc.reason)
                self._contracts[record.identity] = None
        return self._contracts[record.identity]

    def _check_connection(self, registry: Registry, connection: Connection) -> List[Issue]:
        source = registry.get(connection.source)
        if source is None:
            return [self._missing_endpoint(IssueKind.MISSING_SOURCE, connection, connection.source)]
        target = registry.get(connection.target)
        if target is None:
            return [self._missing_endpoint(IssueKind.MISSING_TARGET, connection, connection.target)]

        issues: List[Issue] = []
        issues.extend(self._check_port(connection, source, connection.source_port, source.outputs, "output"))
        issues.extend(self._check_port(connection, target, connection.target_port, target.inputs, "input"))

        source_contract = self.contract_for(source)
        target_contract = self.contract_for(target)
        for field_name in connection.carried_fields:
            if source_contract is not None and not source_contract.writes_field(field_name):
                line = source_contract.update_calls[0].line if source_contract.update_calls else None
                issues.append(
                    Issue(
                        kind=IssueKind.SOURCE_NOT_WRITING,
                        severity=Severity.WARNING,
                        summary=f"{source.identity} never writes data.{field_name}",
                        details=f"{source.file_path} {MISSING_FIELDS_LABEL} {field_name}",
                        file=source.file_path,
                        line=line,
                        source=source.identity,
                        target=target.identity,
                        fields=[field_name],
                    )
                )
            if (
                target_contract is not None
                and target_contract.reads_field(field_name)
                and not target_contract.triggers_field(field_name)
            ):
                blocks = target_contract.reactive_blocks
                line = blocks[0].line if blocks else None
                issues.append(
                    Issue(
                        kind=IssueKind.MISSING_DEPENDENCY,
                        severity=Severity.WARNING,
                        summary=f"{target.identity} reads data.{field_name} but never reacts to it",
                        details=f"{target.file_path} {MISSING_DEPENDENCY_LABEL} data.{field_name}",
                        file=target.file_path,
                        line=line,
                        source=source.identity,
                        target=target.identity,
                        fields=[field_name],
                    )
                )
        return issues

    def component_issues(self, record: ComponentRecord) -> List[Issue]:
        """Findings from one component's own contract, independent of any graph."""
        contract = self.contract_for(record)
        if contract is None:
            return []
        line = contract.reactive_blocks[0].line if contract.reactive_blocks else None
        issues = [
            Issue(
                kind=IssueKind.MISSING_DEPENDENCY,
                severity=Severity.WARNING,
                summary=f"{record.identity} reads data.{name} outside every dependency list",
                details=f"{record.file_path} {MISSING_DEPENDENCY_LABEL} data.{name}",
                file=record.file_path,
                line=line,
                target=record.identity,
                fields=[name],
            )
            for name in contract.untracked_reads()
        ]
        for name in contract.one_way_fields():
            issues.append(
                Issue(
                    kind=IssueKind.ONE_WAY_SYNC,
                    severity=Severity.WARNING,
                    summary=f"{record.identity} seeds local state from data.{name} but never writes it back",
                    details=(
                        f"{record.file_path}: data.{name} initialises local state; saved workflows lose "
                        f"later changes unless an update call writes {name} back"
                    ),
                    file=record.file_path,
                    target=record.identity,
                    fields=[name],
                )
            )
        return issues
        return issues

    @staticmethod
    def _missing_endpoint(kind: IssueKind, connection: Connection, identity: str) -> Issue:
        role = "source" if kind is IssueKind.MISSING_SOURCE else "target"
        return Issue(
            kind=kind,
            severity=Severity.ERROR,
            summary=f"Connection {role} component not registered: {identity}",
            details=f"Connection {connection.describe()} references unknown {role} component {identity}",
            source=connection.source,
            target=connection.target,
        )

    @staticmethod
    def _check_port(
        connection: Connection,
        record: ComponentRecord,
        port: Optional[str],
        declared: List[str],
        direction: str,
    ) -> List[Issue]:
        if not port or not declared or port in declared:
            return []
        return [
            Issue(
                kind=IssueKind.DATA_FLOW_BREAK,
                severity=Severity.WARNING,
                summary=f"{record.identity} has no {direction} port '{port}'",
                details=(
                    f"Connection {connection.describe()} uses {direction} port '{port}'; "
                    f"{record.identity} declares {', '.join(declared)}"
                ),
                file=record.file_path,
                source=connection.source,
                target=connection.target,
            )
        ]


__all__ = ["DataFlowValidator", "MISSING_DEPENDENCY_LABEL", "MISSING_FIELDS_LABEL"]
