from __future__ import annotations

from pathlib import Path

import pytest

from flowwarden.config import CONFIG_FILENAME, ConfigError, load_config


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.components_dir == tmp_path.resolve() / "src/client/src/nodes"
    assert config.doc_roots() == [tmp_path.resolve() / ".claude/rules"]
    assert config.registry_path.name == "registry.json"
    assert config.workflow_path is None
    assert config.reporting.templates_dir is None
    assert config.dataflow.update_calls == ["setNodes"]
    assert config.syntax.command[0] == "npx"
    assert config.metrics.max_history == 100
    assert config.metrics.retention_days == 30
    assert "videoGenerateNode" in config.impact.critical


def test_overrides_are_applied(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(
        """
components:
  root: app/nodes
  extensions: [jsx, .TSX]
docs:
  paths: [docs, .claude/rules]
dataflow:
  workflow: workflows/main.json
  update_calls: [setNodes, updateNodeData]
  ignored_fields: []
syntax:
  command: [node, --check, "{file}"]
  missing_signatures: [NOT FOUND]
  timeout: 5
metrics:
  max_history: 10
  retention_days: 0
impact:
  critical: [catNode]
  test_commands:
    target: make test NODE={identity}
fixes:
  strategies_file: ops/strategies.yml
reporting:
  templates_dir: ops/templates
state_dir: .cache/warden
exclude_paths: [legacy]
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path / CONFIG_FILENAME)
    root = tmp_path.resolve()

    assert config.components_dir == root / "app/nodes"
    assert config.components.extensions == [".jsx", ".tsx"]
    assert config.doc_roots() == [root / "docs", root / ".claude/rules"]
    assert config.workflow_path == root / "workflows/main.json"
    assert config.dataflow.update_calls == ["setNodes", "updateNodeData"]
    assert config.dataflow.ignored_fields == []
    assert config.syntax.command == ["node", "--check", "{file}"]
    assert config.syntax.missing_signatures == ["not found"]
    assert config.syntax.timeout == 5.0
    assert config.metrics.max_history == 10
    assert config.metrics.retention_days == 30
    assert config.impact.critical == ["catNode"]
    assert config.impact.test_commands == {"target": "make test NODE={identity}"}
    assert config.fixes.strategies_file == root / "ops/strategies.yml"
    assert config.reporting.templates_dir == root / "ops/templates"
    assert config.registry_path == root / ".cache/warden/registry.json"
    assert config.exclude_paths == ["legacy"]


@pytest.mark.parametrize("body", ["components: [unclosed\n", "- a\n- b\n"])
def test_invalid_config_raises(tmp_path: Path, body: str) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
