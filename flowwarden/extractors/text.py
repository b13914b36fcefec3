"""Lexical helpers for scanning JavaScript-like source without parsing it."""

from __future__ import annotations

from typing import List, Optional, Tuple

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


def _blank(chars: List[str], start: int, end: int) -> None:
    for index in range(start, min(end, len(chars))):
        if chars[index] != "\n":
            chars[index] = " "


def mask_non_code(text: str) -> str:
    """Return ``text`` with comments and string contents replaced by spaces.

    Offsets and line breaks are preserved so positions found in the masked
    text apply to the original. Quote characters stay in place and template
    literal ``${...}`` expressions remain visible as code. Regular expression
    literals are not recognised.
    """
    chars = list(text)
    length = len(text)
    depth = 0
    template_depths: List[int] = []
    in_template = False
    index = 0
    while index < length:
        char = text[index]
        following = text[index + 1] if index + 1 < length else ""

        if in_template:
            if char == "\\":
                _blank(chars, index, index + 2)
                index += 2
                continue
            if char == "`":
                in_template = False
                index += 1
                continue
            if char == "$" and following == "{":
                template_depths.append(depth)
                depth += 1
                in_template = False
                index += 2
                continue
            _blank(chars, index, index + 1)
            index += 1
            continue

        if char == "/" and following == "/":
            end = text.find("\n", index)
            end = length if end == -1 else end
            _blank(chars, index, end)
            index = end
            continue
        if char == "/" and following == "*":
            end = text.find("*/", index + 2)
            end = length if end == -1 else end + 2
            _blank(chars, index, end)
            index = end
            continue
        if char in ("'", '"'):
            cursor = index + 1
            while cursor < length and text[cursor] != char and text[cursor] != "\n":
                if text[cursor] == "\\":
                    cursor += 1
                cursor += 1
            _blank(chars, index + 1, cursor)
            index = cursor + 1
            continue
        if char == "`":
            in_template = True
            index += 1
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if template_depths and template_depths[-1] == depth:
                template_depths.pop()
                in_template = True
        index += 1
    return "".join(chars)


def find_matching(masked: str, open_index: int) -> int:
    """Return the index of the bracket closing ``masked[open_index]`` or -1."""
    if open_index >= len(masked) or masked[open_index] not in _OPENERS:
        return -1
    stack = [_OPENERS[masked[open_index]]]
    for index in range(open_index + 1, len(masked)):
        char = masked[index]
        if char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in _CLOSERS:
            if not stack or stack[-1] != char:
                return -1
            stack.pop()
            if not stack:
                return index
    return -1


def split_top_level(masked: str, start: int, end: int) -> List[Tuple[int, int]]:
    """Split ``masked[start:end]`` on commas outside nested brackets.

    Returns ``(start, end)`` spans with surrounding whitespace trimmed; empty
    segments (such as a trailing comma) are dropped.
    """
    spans: List[Tuple[int, int]] = []
    depth = 0
    segment_start = start
    for index in range(start, end):
        char = masked[index]
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        elif char == "," and depth == 0:
            spans.append(_trim(masked, segment_start, index))
            segment_start = index + 1
    spans.append(_trim(masked, segment_start, end))
    return [span for span in spans if span[0] < span[1]]


def _trim(masked: str, start: int, end: int) -> Tuple[int, int]:
    while start < end and masked[start].isspace():
        start += 1
    while end > start and masked[end - 1].isspace():
        end -= 1
    return start, end


def line_of(text: str, offset: int) -> int:
    """Return the 1-based line number containing ``offset``."""
    return text.count("\n", 0, offset) + 1


def bracket_balance(masked: str, opener: str, closer: str) -> Optional[Tuple[int, int]]:
    """Return ``(opened, closed)`` counts when they differ, else ``None``."""
    opened = masked.count(opener)
    closed = masked.count(closer)
    if opened == closed:
        return None
    return opened, closed


def line_indent(text: str, offset: int) -> str:
    """Return the leading whitespace of the line containing ``offset``."""
    line_start = text.rfind("\n", 0, offset) + 1
    cursor = line_start
    while cursor < len(text) and text[cursor] in " \t":
        cursor += 1
    return text[line_start:cursor]


__all__ = [
    "bracket_balance",
    "find_matching",
    "line_indent",
    "line_of",
    "mask_non_code",
    "split_top_level",
]
