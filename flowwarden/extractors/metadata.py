"""Best-effort component metadata extraction."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..models import ComponentRecord, component_identity, to_identity
from .base import BestEffortExtractor, Extraction

_HANDLE_OPEN = re.compile(r"<Handle\b")
_ATTRIBUTE = re.compile(
    r"""([A-Za-z_][\w-]*)\s*=\s*(?:"([^"]*)"|'([^']*)'|\{\s*["'`]([^"'`]*)["'`]\s*\})"""
)
_TYPE_ID_PAIR = re.compile(
    r"""type\s*=\s*['"](target|source)['"]\s+id\s*=\s*['"]([^'"]+)['"]"""
)
_EXPORT_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"export\s+default\s+(?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)"),
    re.compile(r"export\s+default\s+class\s+([A-Za-z_$][\w$]*)"),
    re.compile(
        r"export\s+default\s+(?:React\.)?memo\(\s*(?:async\s+)?function\s+([A-Za-z_$][\w$]*)"
    ),
    re.compile(r"export\s+default\s+(?:React\.)?memo\(\s*([A-Za-z_$][\w$]*)\s*[,)]"),
    re.compile(r"export\s+default\s+([A-Za-z_$][\w$]*)\s*;?\s*$", re.MULTILINE),
)
_LABEL = re.compile(r"""\blabel\s*[:=]\s*['"]([^'"]+)['"]""")
_SOURCE_ATTRIBUTES = ("data-source", "dataSource")


class MetadataExtractor(BestEffortExtractor[ComponentRecord]):
    """Pulls identity, category, ports, export name and label from a component file.

    Ports come from ``<Handle ... />`` tags whose ``type`` is ``target`` or
    ``source`` and whose ``id`` is a literal string; attribute order does not
    matter. An optional ``data-source`` attribute on an input handle names the
    upstream component. Files without handle tags fall back to the adjacent
    ``type="..." id="..."`` idiom.
    """

    name = "metadata"

    def __init__(self, root: Path, categories: Sequence[str] = ("input", "process", "output")) -> None:
        self.root = root.resolve()
        self.categories = tuple(categories)

    def extract(self, path: Path) -> ComponentRecord:
        """Return the record for ``path``, raising ``ExtractionError`` if unreadable."""
        return self.extract_file(path).value

    def extract_text(self, path: Path, text: str) -> Extraction[ComponentRecord]:
        absolute = path.resolve()
        record = ComponentRecord(
            identity=component_identity(path.name),
            file_name=path.name,
            file_path=self._relative(absolute),
            absolute_path=str(absolute),
            exists=absolute.exists(),
        )
        result = Extraction(record)

        record.category = self._category(absolute)
        if record.category is None:
            result.note_gap("category", 10)

        inputs, outputs, sources = self._ports(text)
        record.inputs = inputs
        record.outputs = outputs
        record.input_sources = sources
        if not inputs and not outputs:
            result.note_gap("ports", 30)

        record.component_name = self._component_name(text)
        if record.component_name is None:
            result.note_gap("component_name", 20)

        label_match = _LABEL.search(text)
        record.label = label_match.group(1) if label_match else None
        if record.label is None:
            result.note_gap("label", 5)

        return result

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def _category(self, path: Path) -> Optional[str]:
        try:
            parts = path.relative_to(self.root).parts[:-1]
        except ValueError:
            parts = path.parts[:-1]
        for part in reversed(parts):
            if part in self.categories:
                return part
        return None

    @staticmethod
    def _ports(text: str) -> Tuple[List[str], List[str], Dict[str, str]]:
        inputs: List[str] = []
        outputs: List[str] = []
        sources: Dict[str, str] = {}

        tags = list(_iter_handle_attributes(text))
        if tags:
            for attributes in tags:
                handle_type = attributes.get("type")
                handle_id = attributes.get("id")
                if not handle_id or handle_type not in ("target", "source"):
                    continue
                if handle_type == "target":
                    if handle_id not in inputs:
                        inputs.append(handle_id)
                    for key in _SOURCE_ATTRIBUTES:
                        upstream = attributes.get(key)
                        if upstream:
                            sources[handle_id] = to_identity(upstream.strip())
                            break
                elif handle_id not in outputs:
                    outputs.append(handle_id)
            return inputs, outputs, sources

        for match in _TYPE_ID_PAIR.finditer(text):
            bucket = inputs if match.group(1) == "target" else outputs
            if match.group(2) not in bucket:
                bucket.append(match.group(2))
        return inputs, outputs, sources

    @staticmethod
    def _component_name(text: str) -> Optional[str]:
        for pattern in _EXPORT_PATTERNS:
            match = pattern.search(text)
            if match and match.group(1) not in ("function", "class", "async"):
                return match.group(1)
        return None


def _iter_handle_attributes(text: str) -> Iterator[Dict[str, str]]:
    for match in _HANDLE_OPEN.finditer(text):
        end = _tag_end(text, match.end())
        if end == -1:
            continue
        body = text[match.end():end]
        attributes: Dict[str, str] = {}
        for attribute in _ATTRIBUTE.finditer(body):
            value = next(group for group in attribute.groups()[1:] if group is not None)
            attributes.setdefault(attribute.group(1), value)
        yield attributes


def _tag_end(text: str, start: int) -> int:
    """Return the offset of the ``>`` closing a JSX opening tag, skipping braces and quotes."""
    depth = 0
    quote: Optional[str] = None
    for index in range(start, len(text)):
        char = text[index]
        if quote:
            if char == quote:
                quote = None
            continue
        if char in ("'", '"', "`"):
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == ">" and depth == 0:
            return index
    return -1


__all__ = ["MetadataExtractor"]
