"""Tests for the persistent component registry."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flowwarden.extractors import MetadataExtractor
from flowwarden.models import ComponentRecord, Registry
from flowwarden.scanner import SourceScanner
from flowwarden.stores import RegistryCorrupt, RegistryMissing, RegistryStore, naming_mismatches
from tests._fixtures.project_builder import NODES_DIR, ProjectBuilder, component_source


def _store(root: Path) -> RegistryStore:
    return RegistryStore(
        root / ".flowwarden" / "registry.json",
        scanner=SourceScanner([".jsx", ".js"], project_root=root),
        extractor=MetadataExtractor(root),
    )


def test_build_persists_camel_case_registry(project_builder: ProjectBuilder) -> None:
    project_builder.component("input", "TextInputNode.jsx", component_source("TextInputNode", outputs=("text",)))
    project_builder.component(
        "output", "PreviewNode.jsx", component_source("PreviewNode", inputs={"text": "TextInputNode"})
    )
    root = project_builder.path()
    store = _store(root)

    registry = store.build(root / NODES_DIR)

    assert registry.identities() == ["previewNode", "textInputNode"]
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    assert payload["version"] == "1.0.0"
    assert payload["summary"] == {"byCategory": {"input": 1, "output": 1}, "total": 2}
    preview = payload["nodes"]["previewNode"]
    assert preview["filePath"] == f"{NODES_DIR}/output/PreviewNode.jsx"
    assert preview["handles"]["inputs"] == ["text"]
    assert preview["handles"]["sources"] == {"text": "textInputNode"}
    assert "generatedAt" in payload


def test_uncategorised_components_are_counted_as_unknown(project_builder: ProjectBuilder) -> None:
    project_builder.component("input", "TextInputNode.jsx", component_source("TextInputNode"))
    project_builder.component("experimental", "DraftNode.jsx", component_source("DraftNode"))
    root = project_builder.path()

    registry = _store(root).build(root / NODES_DIR)

    assert registry.nodes["draftNode"].category is None
    assert registry.by_category() == {"input": 1, "unknown": 1}
    assert sum(registry.by_category().values()) == registry.total


def test_rebuild_is_idempotent_apart_from_timestamp(project_builder: ProjectBuilder) -> None:
    project_builder.component("input", "TextInputNode.jsx", component_source("TextInputNode", outputs=("text",)))
    root = project_builder.path()
    store = _store(root)

    first = store.build(root / NODES_DIR)
    second = store.build(root / NODES_DIR)

    assert {k: v.to_dict() for k, v in first.nodes.items()} == {k: v.to_dict() for k, v in second.nodes.items()}
    loaded = store.load()
    assert loaded.nodes["textInputNode"] == second.nodes["textInputNode"]


def test_build_of_empty_tree_yields_empty_registry(tmp_path: Path) -> None:
    (tmp_path / "nodes").mkdir()
    store = _store(tmp_path)

    registry = store.build(tmp_path / "nodes")

    assert registry.total == 0
    assert store.load().nodes == {}


def test_duplicate_identity_keeps_first_sorted_path(project_builder: ProjectBuilder) -> None:
    project_builder.component("input", "EchoNode.jsx", component_source("EchoNode", outputs=("a",)))
    project_builder.component("process", "echoNode.jsx", component_source("EchoNode", outputs=("b",)))
    root = project_builder.path()
    store = _store(root)

    registry = store.build(root / NODES_DIR)

    assert registry.identities() == ["echoNode"]
    assert registry.nodes["echoNode"].category == "input"
    assert len(store.failures) == 1
    assert store.failures[0].endswith("echoNode.jsx")


def test_unreadable_component_is_skipped(project_builder: ProjectBuilder) -> None:
    project_builder.component("input", "GoodNode.jsx", component_source("GoodNode"))
    bad = project_builder.path() / NODES_DIR / "input" / "BadNode.jsx"
    bad.write_bytes(b"\xff\xfe\xfa")
    root = project_builder.path()
    store = _store(root)

    registry = store.build(root / NODES_DIR)

    assert registry.identities() == ["goodNode"]
    assert store.failures == [str(bad.resolve())]


def test_load_without_artifact_raises_missing(tmp_path: Path) -> None:
    with pytest.raises(RegistryMissing) as excinfo:
        _store(tmp_path).load()
    assert "flowwarden registry build" in str(excinfo.value)


@pytest.mark.parametrize("content", ["{not json", "[]", '{"version": "1.0.0"}', '{"nodes": {"x": {}}}'])
def test_load_of_malformed_artifact_raises_corrupt(tmp_path: Path, content: str) -> None:
    store = _store(tmp_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text(content, encoding="utf-8")

    with pytest.raises(RegistryCorrupt):
        store.load()


def test_naming_mismatches_flags_identities_outside_convention() -> None:
    def record(identity: str) -> ComponentRecord:
        return ComponentRecord(identity=identity, file_name=f"{identity}.jsx", file_path="", absolute_path="")

    registry = Registry(nodes={name: record(name) for name in ("goodNode", "helper", "bad_nameNode", "x2Node")})

    assert [item.identity for item in naming_mismatches(registry)] == ["bad_nameNode", "helper"]
