"""Tests for workflow loading and connection graphs."""

from __future__ import annotations

import pytest

from flowwarden.graph import WorkflowError, load_workflow, port_field
from tests._fixtures.project_builder import ProjectBuilder


def _workflow(name: str, source_type: str = "CatNode") -> dict:
    return {
        "name": name,
        "nodes": [{"id": "n1", "type": source_type}, {"id": "n2", "type": "dogNode"}],
        "edges": [
            {"source": "n1", "sourceHandle": "text-out", "target": "n2", "targetHandle": "text-in"},
            {"source": "n1", "target": "n2", "data": {"fields": ["mood", "volume"]}},
        ],
    }


def test_port_field_camel_cases_port_ids() -> None:
    assert port_field("prompt-out") == "promptOut"
    assert port_field("Image_URL") == "imageURL"
    assert port_field("") is None
    assert port_field("--") is None


def test_single_workflow_maps_instances_to_identities(project_builder: ProjectBuilder) -> None:
    path = project_builder.workflow(_workflow("pets"))

    graph = load_workflow(path)

    assert graph.name == "pets"
    first, second = graph.connections
    assert (first.source, first.target) == ("catNode", "dogNode")
    assert first.carried_fields == ["textOut"]
    assert second.carried_fields == ["mood", "volume"]
    assert first.source_instance == "n1"


def test_named_workflows_select_or_merge(project_builder: ProjectBuilder) -> None:
    path = project_builder.workflow({"a": _workflow("a"), "b": _workflow("b", "BirdNode")})

    assert len(load_workflow(path, "b").connections) == 2
    assert load_workflow(path, "b").connections[0].source == "birdNode"
    assert len(load_workflow(path).connections) == 4

    with pytest.raises(WorkflowError, match="available: a, b"):
        load_workflow(path, "c")


def test_missing_or_invalid_workflow_file(project_builder: ProjectBuilder) -> None:
    with pytest.raises(WorkflowError):
        load_workflow(project_builder.path() / "nope.json")
    project_builder.write({"bad.json": "[1, 2]"})
    with pytest.raises(WorkflowError):
        load_workflow(project_builder.path() / "bad.json")
