"""Connection graphs: saved workflows or declared registry sources."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .models import Registry, to_identity

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")


class WorkflowError(RuntimeError):
    """Raised when a saved workflow cannot be read or does not contain a graph."""


def port_field(port: Optional[str]) -> Optional[str]:
    """Convert a port id such as ``prompt-out`` into the field name ``promptOut``."""
    if not port:
        return None
    words = [word for word in _WORD_SPLIT.split(port) if word]
    if not words:
        return None
    head = words[0][0].lower() + words[0][1:]
    return head + "".join(word[0].upper() + word[1:] for word in words[1:])


@dataclass
class Connection:
    """One edge: an output port of one component instance feeding an input port of another."""

    source: str
    target: str
    source_port: Optional[str] = None
    target_port: Optional[str] = None
    fields: List[str] = field(default_factory=list)
    source_instance: Optional[str] = None
    target_instance: Optional[str] = None

    @property
    def carried_fields(self) -> List[str]:
        if self.fields:
            return list(self.fields)
        derived = port_field(self.source_port) or port_field(self.target_port)
        return [derived] if derived else []

    def describe(self) -> str:
        left = f"{self.source}.{self.source_port}" if self.source_port else self.source
        right = f"{self.target}.{self.target_port}" if self.target_port else self.target
        return f"{left} -> {right}"


@dataclass
class ConnectionGraph:
    name: str
    connections: List[Connection] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.connections)


def graph_from_registry(registry: Registry) -> ConnectionGraph:
    """Build edges from input ports that declare an upstream source component."""
    graph = ConnectionGraph(name="registry")
    for identity in registry.identities():
        record = registry.nodes[identity]
        for port in record.inputs:
            upstream = record.input_sources.get(port)
            if not upstream:
                continue
            graph.connections.append(Connection(source=upstream, target=identity, target_port=port))
    return graph


def load_workflow(path: Path, name: str | None = None) -> ConnectionGraph:
    """Load a saved workflow.

    The file holds either one workflow (``nodes`` and ``edges``) or a mapping of
    workflow name to workflow. With a mapping and no ``name`` every workflow is
    merged into one graph.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise WorkflowError(f"Workflow file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise WorkflowError(f"Failed to read workflow {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise WorkflowError(f"Workflow {path} must contain a JSON object")

    if "edges" in payload or "nodes" in payload:
        label = str(payload.get("name") or path.stem)
        if name and name != label:
            raise WorkflowError(f"Workflow '{name}' not found in {path}")
        return _parse_workflow(label, payload)

    workflows = {key: value for key, value in payload.items() if isinstance(value, dict)}
    if name:
        if name not in workflows:
            available = ", ".join(sorted(workflows)) or "none"
            raise WorkflowError(f"Workflow '{name}' not found in {path} (available: {available})")
        return _parse_workflow(name, workflows[name])

    merged = ConnectionGraph(name=path.stem)
    for key in sorted(workflows):
        merged.connections.extend(_parse_workflow(key, workflows[key]).connections)
    return merged


def _parse_workflow(name: str, payload: Mapping[str, Any]) -> ConnectionGraph:
    nodes = payload.get("nodes") or []
    edges = payload.get("edges") or []
    if not isinstance(nodes, list) or not isinstance(edges, list):
        raise WorkflowError(f"Workflow '{name}' must contain 'nodes' and 'edges' lists")

    types: Dict[str, str] = {}
    for node in nodes:
        if isinstance(node, dict) and node.get("id") is not None and node.get("type"):
            types[str(node["id"])] = to_identity(str(node["type"]))

    graph = ConnectionGraph(name=name)
    for edge in edges:
        if not isinstance(edge, dict):
            continue
        source_instance = _optional(edge.get("source"))
        target_instance = _optional(edge.get("target"))
        if source_instance is None or target_instance is None:
            continue
        graph.connections.append(
            Connection(
                source=types.get(source_instance, source_instance),
                target=types.get(target_instance, target_instance),
                source_port=_optional(edge.get("sourceHandle")),
                target_port=_optional(edge.get("targetHandle")),
                fields=_edge_fields(edge),
                source_instance=source_instance,
                target_instance=target_instance,
            )
        )
    return graph


def _edge_fields(edge: Mapping[str, Any]) -> List[str]:
    data = edge.get("data")
    raw: Any = None
    if isinstance(data, dict):
        raw = data.get("fields")
    if raw is None:
        raw = edge.get("dataFields")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw if isinstance(item, str) and item]


def _optional(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


__all__ = [
    "Connection",
    "ConnectionGraph",
    "WorkflowError",
    "graph_from_registry",
    "load_workflow",
    "port_field",
]
