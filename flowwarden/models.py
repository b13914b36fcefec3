"""Core data models shared across flowwarden components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Any, Dict, List, Mapping, Optional

REGISTRY_VERSION = "1.0.0"
UNKNOWN_CATEGORY = "unknown"


def to_identity(name: str) -> str:
    """Lower-case the first letter of ``name``, preserving the remainder."""
    if not name:
        return name
    return name[0].lower() + name[1:]


def component_identity(file_name: str) -> str:
    """Derive the registry identity from a component file name.

    ``VideoGenerateNode.jsx`` becomes ``videoGenerateNode``.
    """
    return to_identity(PurePath(file_name).stem)


def reference_form(identity: str) -> str:
    """Return the capitalised form used when documentation names a component."""
    if not identity:
        return identity
    return identity[0].upper() + identity[1:]


@dataclass
class ComponentRecord:
    """Metadata extracted from one component source file."""

    identity: str
    file_name: str
    file_path: str
    absolute_path: str
    category: Optional[str] = None
    component_name: Optional[str] = None
    label: Optional[str] = None
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    input_sources: Dict[str, str] = field(default_factory=dict)
    exists: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeType": self.identity,
            "fileName": self.file_name,
            "filePath": self.file_path,
            "absolutePath": self.absolute_path,
            "category": self.category,
            "componentName": self.component_name,
            "label": self.label,
            "handles": {
                "inputs": list(self.inputs),
                "outputs": list(self.outputs),
                "sources": dict(self.input_sources),
            },
            "exists": self.exists,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ComponentRecord":
        handles = payload.get("handles") or {}
        if not isinstance(handles, Mapping):
            handles = {}
        sources = handles.get("sources") or {}
        return cls(
            identity=str(payload["nodeType"]),
            file_name=str(payload["fileName"]),
            file_path=str(payload["filePath"]),
            absolute_path=str(payload["absolutePath"]),
            category=_optional_str(payload.get("category")),
            component_name=_optional_str(payload.get("componentName")),
            label=_optional_str(payload.get("label")),
            inputs=[str(port) for port in handles.get("inputs") or []],
            outputs=[str(port) for port in handles.get("outputs") or []],
            input_sources={str(k): str(v) for k, v in dict(sources).items()},
            exists=bool(payload.get("exists", False)),
        )


@dataclass
class Registry:
    """Identity to component mapping plus summary statistics."""

    nodes: Dict[str, ComponentRecord] = field(default_factory=dict)
    generated_at: str = field(
        default_factory=lambda: datetime.now(UTC).isoformat().replace("+00:00", "Z")
    )
    version: str = REGISTRY_VERSION

    def __contains__(self, identity: object) -> bool:
        return identity in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, identity: str) -> Optional[ComponentRecord]:
        return self.nodes.get(identity)

    def identities(self) -> List[str]:
        return sorted(self.nodes)

    @property
    def total(self) -> int:
        return len(self.nodes)

    def by_category(self) -> Dict[str, int]:
        """Counts per category; records outside every configured category count as ``unknown``."""
        counts: Dict[str, int] = {}
        for record in self.nodes.values():
            category = record.category or UNKNOWN_CATEGORY
            counts[category] = counts.get(category, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "nodes": {identity: record.to_dict() for identity, record in self.nodes.items()},
            "summary": {
                "byCategory": self.by_category(),
                "total": self.total,
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Registry":
        nodes_payload = payload.get("nodes")
        if not isinstance(nodes_payload, Mapping):
            raise ValueError("registry payload is missing the 'nodes' mapping")
        nodes = {
            str(identity): ComponentRecord.from_dict(entry)
            for identity, entry in nodes_payload.items()
        }
        return cls(
            nodes=nodes,
            generated_at=str(payload.get("generatedAt") or ""),
            version=str(payload.get("version") or REGISTRY_VERSION),
        )


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


__all__ = [
    "ComponentRecord",
    "REGISTRY_VERSION",
    "Registry",
    "UNKNOWN_CATEGORY",
    "component_identity",
    "reference_form",
    "to_identity",
]
