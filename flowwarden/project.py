"""Wires configuration to the scanner, stores and validators of one project."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .config import FlowWardenConfig, load_config
from .extractors import ContractExtractor, MetadataExtractor
from .fixes import FixCatalog, FixContext, load_catalog
from .graph import ConnectionGraph, graph_from_registry, load_workflow
from .logging import get_logger
from .models import Registry
from .scanner import SourceScanner
from .stores import MetricsStore, RegistryStore
from .validators import (
    DataFlowValidator,
    ReferenceValidator,
    SyntaxValidator,
    ValidationReport,
    merge_reports,
    naming_issues,
)
from .validators.syntax import Runner


class Project:
    """Entry point for every command that operates on a project root."""

    def __init__(
        self,
        config: FlowWardenConfig,
        *,
        runner: Runner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.logger = get_logger("project")
        self._runner = runner
        self._clock = clock
        self._registry_store: Optional[RegistryStore] = None

    @classmethod
    def load(cls, root: Path | str = ".", **kwargs) -> "Project":
        return cls(load_config(Path(root)), **kwargs)

    @property
    def root(self) -> Path:
        return self.config.root

    # Registry ---------------------------------------------------------------
    @property
    def registry_store(self) -> RegistryStore:
        if self._registry_store is None:
            components = self.config.components
            self._registry_store = RegistryStore(
                self.config.registry_path,
                scanner=SourceScanner(
                    components.extensions,
                    project_root=self.root,
                    exclude_paths=self.config.exclude_paths,
                ),
                extractor=MetadataExtractor(self.root, components.categories),
            )
        return self._registry_store

    def build_registry(self) -> Registry:
        components_dir = self.config.components_dir
        if not components_dir.exists():
            self.logger.warning("Component directory %s does not exist; registry will be empty", components_dir)
            registry = Registry(nodes={})
            self.registry_store.save(registry)
            return registry
        return self.registry_store.build(components_dir)

    def load_registry(self) -> Registry:
        return self.registry_store.load()

    # Inputs -----------------------------------------------------------------
    def doc_files(self) -> List[Path]:
        scanner = SourceScanner(
            self.config.docs.extensions,
            project_root=self.root,
            exclude_paths=self.config.exclude_paths,
        )
        files: List[Path] = []
        for doc_root in self.config.doc_roots():
            if not doc_root.exists():
                self.logger.debug("Documentation path %s does not exist", doc_root)
                continue
            for path in scanner.scan(doc_root):
                if path not in files:
                    files.append(path)
        return files

    def component_files(self, registry: Registry | None = None) -> List[Path]:
        registry = self._ensure_registry(registry)
        return [
            Path(record.absolute_path)
            for record in (registry.nodes[identity] for identity in registry.identities())
            if record.exists
        ]

    def connection_graph(
        self,
        registry: Registry,
        *,
        workflow: Path | None = None,
        name: str | None = None,
    ) -> ConnectionGraph:
        """Return the saved workflow's graph, or the registry's declared sources."""
        path = workflow or self.config.workflow_path
        if path is not None:
            path = path if path.is_absolute() else self.root / path
            self.logger.debug("Loading workflow graph from %s", path)
            return load_workflow(path, name)
        return graph_from_registry(registry)

    # Validation -------------------------------------------------------------
    def validate_docs(self, registry: Registry | None = None) -> ValidationReport:
        registry = self._ensure_registry(registry)
        docs = self.doc_files()
        validator = ReferenceValidator(
            self.root, self.config.docs, suffix=self.config.components.reference_suffix
        )
        return ValidationReport(type="docs", issues=validator.validate(registry, docs), processed=len(docs))

    def check_registry(self, registry: Registry | None = None) -> ValidationReport:
        """Documentation references plus the identity naming convention."""
        registry = self._ensure_registry(registry)
        report = self.validate_docs(registry)
        report.type = "registry"
        report.issues.extend(naming_issues(registry, self.config.components.reference_suffix))
        report.processed += registry.total
        return report

    def validate_dataflow(
        self,
        registry: Registry | None = None,
        *,
        workflow: Path | None = None,
        name: str | None = None,
    ) -> ValidationReport:
        registry = self._ensure_registry(registry)
        graph = self.connection_graph(registry, workflow=workflow, name=name)
        validator = DataFlowValidator(self.config.dataflow, extractor=ContractExtractor(self.config.dataflow))
        return ValidationReport(
            type="dataflow", issues=validator.validate(registry, graph), processed=len(graph)
        )

    def syntax_validator(self) -> SyntaxValidator:
        return SyntaxValidator(self.root, self.config.syntax, runner=self._runner)

    def validate_syntax(self, registry: Registry | None = None) -> ValidationReport:
        files = self.component_files(registry)
        return ValidationReport(
            type="syntax", issues=self.syntax_validator().validate(files), processed=len(files)
        )

    def validate_all(
        self,
        *,
        workflow: Path | None = None,
        name: str | None = None,
    ) -> ValidationReport:
        registry = self.load_registry()
        return merge_reports(
            [
                self.validate_docs(registry),
                self.validate_dataflow(registry, workflow=workflow, name=name),
                self.validate_syntax(registry),
            ]
        )

    # Stores and fixes -------------------------------------------------------
    def metrics(self) -> MetricsStore:
        return MetricsStore(
            self.config.metrics_path,
            max_history=self.config.metrics.max_history,
            retention_days=self.config.metrics.retention_days,
            clock=self._clock,
        ).load()

    def record_run(self, report: ValidationReport) -> None:
        store = self.metrics()
        store.record(report.type, report.summary())
        self.logger.debug("Recorded %s run in %s", report.type, store.path)

    def catalog(self) -> FixCatalog:
        return load_catalog(self.config.fixes.strategies_file)

    def fix_context(self) -> FixContext:
        return FixContext(config=self.config, doc_files=self.doc_files, registry=self._registry_or_none)

    def _ensure_registry(self, registry: Registry | None) -> Registry:
        return registry if registry is not None else self.load_registry()

    def _registry_or_none(self) -> Optional[Registry]:
        if not self.config.registry_path.exists():
            return None
        return self.load_registry()


__all__ = ["Project"]
