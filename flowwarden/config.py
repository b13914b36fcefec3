"""Configuration loading for flowwarden (.flowwarden.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".flowwarden.yml"

DEFAULT_SYNTAX_COMMAND = ["npx", "--no-install", "babel", "{file}"]
DEFAULT_MISSING_SIGNATURES = [
    "command not found",
    "is not recognized as an internal or external command",
    "could not determine executable to run",
    "cannot find module '@babel",
    "npm err! 404",
    "enoent",
]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ComponentsConfig:
    """Where component sources live and how they are named."""

    root: str = "src/client/src/nodes"
    extensions: List[str] = field(default_factory=lambda: [".jsx", ".js", ".tsx", ".ts"])
    categories: List[str] = field(default_factory=lambda: ["input", "process", "output"])
    reference_suffix: str = "Node"


@dataclass
class DocsConfig:
    """Documentation files checked for component references."""

    paths: List[str] = field(default_factory=lambda: [".claude/rules"])
    extensions: List[str] = field(default_factory=lambda: [".md"])
    source_path_pattern: str = r"src/[A-Za-z0-9/_.-]+\.(?:jsx|js|tsx|ts)\b"


@dataclass
class DataFlowConfig:
    """Recognised idioms for data-flow checks."""

    workflow: Optional[str] = None
    update_calls: List[str] = field(default_factory=lambda: ["setNodes"])
    write_patterns: List[str] = field(default_factory=lambda: [r"\bdata\s*:\s*(?=\{)"])
    reactive_calls: List[str] = field(default_factory=lambda: ["useEffect"])
    ignored_fields: List[str] = field(
        default_factory=lambda: ["onSizeChange", "id", "type", "position", "style", "className", "label"]
    )


@dataclass
class SyntaxConfig:
    """External syntax checker invocation."""

    command: List[str] = field(default_factory=lambda: list(DEFAULT_SYNTAX_COMMAND))
    missing_signatures: List[str] = field(default_factory=lambda: list(DEFAULT_MISSING_SIGNATURES))
    timeout: float = 60.0


@dataclass
class MetricsConfig:
    """Metrics history retention."""

    max_history: int = 100
    retention_days: int = 30


@dataclass
class ImpactConfig:
    """Impact analysis knobs."""

    critical: List[str] = field(
        default_factory=lambda: [
            "videoGenerateNode",
            "storyboardNode",
            "juxinStoryboardNode",
            "zhenzhenStoryboardNode",
        ]
    )
    test_commands: Dict[str, str] = field(default_factory=dict)


@dataclass
class FixesConfig:
    """Fix strategy catalog override."""

    strategies_file: Optional[Path] = None


@dataclass
class ReportingConfig:
    """Project templates searched before the packaged report templates."""

    templates_dir: Optional[Path] = None


@dataclass
class FlowWardenConfig:
    """Represents the high-level settings defined in .flowwarden.yml."""

    root: Path
    components: ComponentsConfig = field(default_factory=ComponentsConfig)
    docs: DocsConfig = field(default_factory=DocsConfig)
    dataflow: DataFlowConfig = field(default_factory=DataFlowConfig)
    syntax: SyntaxConfig = field(default_factory=SyntaxConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    impact: ImpactConfig = field(default_factory=ImpactConfig)
    fixes: FixesConfig = field(default_factory=FixesConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    state_dir: str = ".flowwarden"
    exclude_paths: List[str] = field(default_factory=list)

    @property
    def components_dir(self) -> Path:
        return self.root / self.components.root

    @property
    def registry_path(self) -> Path:
        return self.root / self.state_dir / "registry.json"

    @property
    def metrics_path(self) -> Path:
        return self.root / self.state_dir / "metrics.json"

    @property
    def workflow_path(self) -> Optional[Path]:
        if not self.dataflow.workflow:
            return None
        return self.root / self.dataflow.workflow

    def doc_roots(self) -> List[Path]:
        return [self.root / entry for entry in self.docs.paths]


def load_config(config_path: Path) -> FlowWardenConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return FlowWardenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = FlowWardenConfig(root=root)

    components_data = _as_dict(data.get("components"))
    if components_data:
        components = config.components
        components.root = _as_str(components_data.get("root")) or components.root
        components.extensions = (
            _normalise_extensions(_as_str_list(components_data.get("extensions")))
            or components.extensions
        )
        components.categories = _as_str_list(components_data.get("categories")) or components.categories
        components.reference_suffix = (
            _as_str(components_data.get("reference_suffix")) or components.reference_suffix
        )

    docs_data = _as_dict(data.get("docs"))
    if docs_data:
        docs = config.docs
        if "paths" in docs_data:
            docs.paths = _as_str_list(docs_data.get("paths"))
        docs.extensions = _normalise_extensions(_as_str_list(docs_data.get("extensions"))) or docs.extensions
        docs.source_path_pattern = (
            _as_str(docs_data.get("source_path_pattern")) or docs.source_path_pattern
        )

    dataflow_data = _as_dict(data.get("dataflow"))
    if dataflow_data:
        dataflow = config.dataflow
        dataflow.workflow = _as_str(dataflow_data.get("workflow"))
        dataflow.update_calls = _as_str_list(dataflow_data.get("update_calls")) or dataflow.update_calls
        dataflow.write_patterns = (
            _as_str_list(dataflow_data.get("write_patterns")) or dataflow.write_patterns
        )
        dataflow.reactive_calls = (
            _as_str_list(dataflow_data.get("reactive_calls")) or dataflow.reactive_calls
        )
        if "ignored_fields" in dataflow_data:
            dataflow.ignored_fields = _as_str_list(dataflow_data.get("ignored_fields"))

    syntax_data = _as_dict(data.get("syntax"))
    if syntax_data:
        syntax = config.syntax
        syntax.command = _as_str_list(syntax_data.get("command")) or syntax.command
        if "missing_signatures" in syntax_data:
            syntax.missing_signatures = [
                item.lower() for item in _as_str_list(syntax_data.get("missing_signatures"))
            ]
        timeout = _as_float(syntax_data.get("timeout"))
        if timeout is not None and timeout > 0:
            syntax.timeout = timeout

    metrics_data = _as_dict(data.get("metrics"))
    if metrics_data:
        max_history = _as_int(metrics_data.get("max_history"))
        if max_history is not None and max_history > 0:
            config.metrics.max_history = max_history
        retention = _as_int(metrics_data.get("retention_days"))
        if retention is not None and retention > 0:
            config.metrics.retention_days = retention

    impact_data = _as_dict(data.get("impact"))
    if impact_data:
        if "critical" in impact_data:
            config.impact.critical = _as_str_list(impact_data.get("critical"))
        commands = _as_dict(impact_data.get("test_commands"))
        config.impact.test_commands = {
            str(key): str(value) for key, value in commands.items() if _as_str(value)
        }

    fixes_data = _as_dict(data.get("fixes"))
    if fixes_data:
        strategies_file = _as_str(fixes_data.get("strategies_file"))
        config.fixes.strategies_file = root / strategies_file if strategies_file else None

    reporting_data = _as_dict(data.get("reporting"))
    if reporting_data:
        templates_dir = _as_str(reporting_data.get("templates_dir"))
        config.reporting.templates_dir = root / templates_dir if templates_dir else None

    config.state_dir = _as_str(data.get("state_dir")) or config.state_dir
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _normalise_extensions(values: Sequence[str]) -> List[str]:
    result: List[str] = []
    for value in values:
        cleaned = value.strip().lower()
        if not cleaned:
            continue
        if not cleaned.startswith("."):
            cleaned = f".{cleaned}"
        result.append(cleaned)
    return result


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        result = [str(item) for item in value if isinstance(item, (str, int, float, bool))]
        return result
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ComponentsConfig",
    "ConfigError",
    "DataFlowConfig",
    "DocsConfig",
    "FixesConfig",
    "FlowWardenConfig",
    "ImpactConfig",
    "MetricsConfig",
    "SyntaxConfig",
    "load_config",
]
