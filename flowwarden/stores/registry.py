"""Persistent component registry."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, List

from ..extractors.base import ExtractionError
from ..extractors.metadata import MetadataExtractor
from ..files import write_text_atomic
from ..logging import get_logger
from ..models import ComponentRecord, Registry
from ..scanner import SourceScanner

_REBUILD_HINT = "run `flowwarden registry build` first"


class RegistryMissing(RuntimeError):
    """Raised when no registry artifact has been built yet."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Component registry not found at {path}; {_REBUILD_HINT}")
        self.path = path


class RegistryCorrupt(RuntimeError):
    """Raised when the registry artifact cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Component registry at {path} is malformed ({reason}); {_REBUILD_HINT}")
        self.path = path
        self.reason = reason


class RegistryStore:
    """Builds, persists and loads the component registry."""

    def __init__(
        self,
        path: Path,
        *,
        scanner: SourceScanner,
        extractor: MetadataExtractor,
    ) -> None:
        self.path = path
        self.scanner = scanner
        self.extractor = extractor
        self.logger = get_logger("registry")
        self.failures: List[str] = []

    def build(self, root: Path) -> Registry:
        """Scan ``root``, extract every component and replace the persisted registry."""
        files = self.scanner.scan(root)
        self.logger.debug("Scanner discovered %d component files under %s", len(files), root)

        nodes: Dict[str, ComponentRecord] = {}
        self.failures = []
        for path in files:
            try:
                extraction = self.extractor.extract_file(path)
            except ExtractionError as exc:
                self.logger.warning("Skipping %s: %s", path, exc.reason)
                self.failures.append(str(path))
                continue

            record = extraction.value
            existing = nodes.get(record.identity)
            if existing is not None:
                self.logger.warning(
                    "Skipping %s: identity '%s' already registered by %s",
                    record.file_path,
                    record.identity,
                    existing.file_path,
                )
                self.failures.append(str(path))
                continue

            if extraction.gaps:
                self.logger.debug(
                    "%s extracted with confidence %d (missing: %s)",
                    record.file_path,
                    extraction.confidence,
                    ", ".join(extraction.gaps),
                )
            nodes[record.identity] = record

        registry = Registry(nodes=dict(sorted(nodes.items())))
        self.save(registry)
        self.logger.info("Registry built with %d components", registry.total)
        return registry

    def save(self, registry: Registry) -> None:
        payload = json.dumps(registry.to_dict(), indent=2, ensure_ascii=False)
        write_text_atomic(self.path, payload + "\n")

    def load(self) -> Registry:
        """Read the persisted registry."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RegistryMissing(self.path) from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise RegistryCorrupt(self.path, f"invalid JSON: {exc.msg}") from exc
        if not isinstance(payload, dict):
            raise RegistryCorrupt(self.path, "root is not an object")
        try:
            return Registry.from_dict(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise RegistryCorrupt(self.path, str(exc)) from exc


def naming_mismatches(registry: Registry, suffix: str = "Node") -> List[ComponentRecord]:
    """Return records whose identity is not camelCase ending in ``suffix``."""
    convention = re.compile(rf"[a-z][A-Za-z0-9]*{re.escape(suffix)}")
    return [
        registry.nodes[identity]
        for identity in registry.identities()
        if not convention.fullmatch(identity)
    ]


__all__ = ["RegistryCorrupt", "RegistryMissing", "RegistryStore", "naming_mismatches"]
