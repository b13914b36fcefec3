"""Best-effort data contract extraction (reads, writes and reactive triggers)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import DataFlowConfig
from .base import BestEffortExtractor, Extraction
from .text import find_matching, line_of, mask_non_code, split_top_level

_IDENTIFIER = r"[A-Za-z_$][\w$]*"
_READ = re.compile(rf"(?<![\w$])data\s*(?:\?\.|\.)\s*({_IDENTIFIER})")
_DATA_VARIABLE = re.compile(rf"\bdata\s*:\s*({_IDENTIFIER})\b(?!\s*[.(\[?])")
_KEY = re.compile(rf"^(?:({_IDENTIFIER})|'([^']+)'|\"([^\"]+)\")\s*(?::|\(|$)")
_TRIGGER = re.compile(rf"^data\s*(?:\?\.|\.)\s*({_IDENTIFIER})")
_INITIALIZER = re.compile(rf"(?<![\w$])useState\s*\(\s*data\s*(?:\?\.|\.)\s*({_IDENTIFIER})")
_NON_FIELD_VARIABLES = {"node", "data", "undefined", "null", "true", "false"}


@dataclass
class ObjectLiteral:
    """An object literal located by offset; ``end`` is the closing brace offset."""

    start: int
    end: int
    keys: List[str] = field(default_factory=list)
    variable: Optional[str] = None


@dataclass
class UpdateCall:
    """A state update call (``setNodes(...)`` by default) and the data objects it writes."""

    name: str
    start: int
    end: int
    line: int
    data_objects: List[ObjectLiteral] = field(default_factory=list)

    @property
    def fields(self) -> List[str]:
        result: List[str] = []
        for literal in self.data_objects:
            for key in literal.keys:
                if key not in result:
                    result.append(key)
        return result


@dataclass
class ReactiveBlock:
    """A reactive recompute construct (``useEffect`` by default).

    ``deps_start``/``deps_end`` delimit the dependency array brackets and are
    ``None`` when the construct has no dependency array.
    """

    name: str
    start: int
    end: int
    line: int
    body_start: int
    body_end: int
    deps_start: Optional[int] = None
    deps_end: Optional[int] = None
    dependencies: List[str] = field(default_factory=list)

    @property
    def tracks_all(self) -> bool:
        return self.deps_start is None or any(dep.strip() in ("data", "props.data") for dep in self.dependencies)

    @property
    def trigger_fields(self) -> List[str]:
        result: List[str] = []
        for dependency in self.dependencies:
            match = _TRIGGER.match(dependency.strip())
            if match and match.group(1) not in result:
                result.append(match.group(1))
        return result

    def triggers(self, field_name: str) -> bool:
        return self.tracks_all or field_name in self.trigger_fields


@dataclass
class DataContract:
    """Fields a component reads from, writes to and reacts on in its ``data`` object."""

    path: Path
    reads: List[str] = field(default_factory=list)
    writes: List[str] = field(default_factory=list)
    initializers: List[str] = field(default_factory=list)
    update_calls: List[UpdateCall] = field(default_factory=list)
    reactive_blocks: List[ReactiveBlock] = field(default_factory=list)

    @property
    def triggers(self) -> List[str]:
        result: List[str] = []
        for block in self.reactive_blocks:
            for name in block.trigger_fields:
                if name not in result:
                    result.append(name)
        return result

    @property
    def tracks_all(self) -> bool:
        return any(block.tracks_all for block in self.reactive_blocks)

    def reads_field(self, name: str) -> bool:
        return name in self.reads

    def writes_field(self, name: str) -> bool:
        return name in self.writes

    def triggers_field(self, name: str) -> bool:
        return any(block.triggers(name) for block in self.reactive_blocks)

    def untracked_reads(self) -> List[str]:
        """Reads no reactive construct tracks; one-off state initializers are expected."""
        return [
            name for name in self.reads if name not in self.initializers and not self.triggers_field(name)
        ]

    def one_way_fields(self) -> List[str]:
        """Fields copied into local state from ``data`` but never written back or tracked."""
        return [
            name for name in self.initializers if not self.writes_field(name) and not self.triggers_field(name)
        ]

    def to_dict(self) -> Dict[str, object]:
        return {
            "reads": list(self.reads),
            "writes": list(self.writes),
            "initializers": list(self.initializers),
            "triggers": list(self.triggers),
            "tracksAll": self.tracks_all,
        }


class ContractExtractor(BestEffortExtractor[DataContract]):
    """Recognises the configured write, read and trigger idioms in component source.

    Writes are keys of object literals introduced by a write pattern inside an
    update call, or keys of a ``const name = {...}`` literal referenced as
    ``data: name``. Reads are ``data.field`` and ``data?.field`` accesses.
    Triggers are entries of the dependency array closing a reactive call.
    Initializers are ``useState(data.field)`` calls seeding local state.
    Writes hidden behind any other indirection are not seen.
    """

    name = "contracts"

    def __init__(self, config: DataFlowConfig | None = None) -> None:
        self.config = config or DataFlowConfig()
        self._ignored = set(self.config.ignored_fields)
        self._update_calls = _call_pattern(self.config.update_calls)
        self._reactive_calls = _call_pattern(self.config.reactive_calls)
        self._write_patterns = [re.compile(pattern) for pattern in self.config.write_patterns]

    def extract(self, path: Path) -> DataContract:
        return self.extract_file(path).value

    def extract_text(self, path: Path, text: str) -> Extraction[DataContract]:
        masked = mask_non_code(text)
        contract = DataContract(path=path)
        result = Extraction(contract)

        for match in _READ.finditer(masked):
            name = match.group(1)
            if name in self._ignored or name in contract.reads:
                continue
            contract.reads.append(name)

        for match in _INITIALIZER.finditer(masked):
            name = match.group(1)
            if name not in self._ignored and name not in contract.initializers:
                contract.initializers.append(name)

        constants = _const_objects(masked, text)
        unresolved: List[str] = []
        if self._update_calls is not None:
            for call in self._iter_update_calls(self._update_calls, masked, text, constants, unresolved):
                contract.update_calls.append(call)
                for name in call.fields:
                    if name not in contract.writes:
                        contract.writes.append(name)
        for variable in unresolved:
            result.note_gap(f"data: {variable}", 15)

        if self._reactive_calls is not None:
            contract.reactive_blocks.extend(self._iter_reactive_blocks(self._reactive_calls, masked, text))

        return result

    def _iter_update_calls(
        self,
        pattern: re.Pattern[str],
        masked: str,
        text: str,
        constants: Dict[str, ObjectLiteral],
        unresolved: List[str],
    ) -> Iterable[UpdateCall]:
        for match in pattern.finditer(masked):
            open_paren = match.end() - 1
            close_paren = find_matching(masked, open_paren)
            if close_paren == -1:
                continue
            call = UpdateCall(
                name=match.group(1),
                start=match.start(),
                end=close_paren,
                line=line_of(text, match.start()),
            )
            segment = masked[open_paren:close_paren]
            for write_pattern in self._write_patterns:
                for write in write_pattern.finditer(segment):
                    brace = masked.find("{", open_paren + write.end())
                    if brace == -1 or brace > close_paren:
                        continue
                    closing = find_matching(masked, brace)
                    if closing == -1:
                        continue
                    call.data_objects.append(
                        ObjectLiteral(start=brace, end=closing, keys=_object_keys(masked, text, brace, closing))
                    )
            for variable_match in _DATA_VARIABLE.finditer(segment):
                variable = variable_match.group(1)
                if variable in _NON_FIELD_VARIABLES:
                    continue
                literal = constants.get(variable)
                if literal is None:
                    if variable not in unresolved:
                        unresolved.append(variable)
                    continue
                call.data_objects.append(literal)
            yield call

    def _iter_reactive_blocks(
        self, pattern: re.Pattern[str], masked: str, text: str
    ) -> Iterable[ReactiveBlock]:
        for match in pattern.finditer(masked):
            open_paren = match.end() - 1
            close_paren = find_matching(masked, open_paren)
            if close_paren == -1:
                continue
            arguments = split_top_level(masked, open_paren + 1, close_paren)
            if not arguments:
                continue
            body_start, body_end = arguments[0]
            block = ReactiveBlock(
                name=match.group(1),
                start=match.start(),
                end=close_paren,
                line=line_of(text, match.start()),
                body_start=body_start,
                body_end=body_end,
            )
            if len(arguments) > 1:
                deps_start, deps_end = arguments[-1]
                if masked[deps_start] == "[" and find_matching(masked, deps_start) == deps_end - 1:
                    block.deps_start = deps_start
                    block.deps_end = deps_end - 1
                    block.dependencies = [
                        text[start:end] for start, end in split_top_level(masked, deps_start + 1, deps_end - 1)
                    ]
            yield block


def _call_pattern(names: Sequence[str]) -> Optional[re.Pattern[str]]:
    cleaned = [re.escape(name) for name in names if name]
    if not cleaned:
        return None
    return re.compile(rf"(?<![\w$.])({'|'.join(cleaned)})\s*\(")


def _object_keys(masked: str, text: str, brace: int, closing: int) -> List[str]:
    keys: List[str] = []
    for start, end in split_top_level(masked, brace + 1, closing):
        entry = text[start:end]
        if entry.startswith("...") or entry.startswith("["):
            continue
        match = _KEY.match(entry)
        if not match:
            continue
        key = next(group for group in match.groups() if group is not None)
        if key not in keys:
            keys.append(key)
    return keys


def _const_objects(masked: str, text: str) -> Dict[str, ObjectLiteral]:
    literals: Dict[str, ObjectLiteral] = {}
    for match in re.finditer(rf"\b(?:const|let|var)\s+({_IDENTIFIER})\s*=\s*\{{", masked):
        brace = match.end() - 1
        closing = find_matching(masked, brace)
        if closing == -1:
            continue
        variable = match.group(1)
        literals.setdefault(
            variable,
            ObjectLiteral(
                start=brace,
                end=closing,
                keys=_object_keys(masked, text, brace, closing),
                variable=variable,
            ),
        )
    return literals


__all__ = [
    "ContractExtractor",
    "DataContract",
    "ObjectLiteral",
    "ReactiveBlock",
    "UpdateCall",
]
