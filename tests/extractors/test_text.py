"""Tests for the lexical helpers behind the extractors."""

from __future__ import annotations

from flowwarden.extractors.text import (
    bracket_balance,
    find_matching,
    line_indent,
    line_of,
    mask_non_code,
    split_top_level,
)


def test_mask_blanks_comments_and_strings_but_keeps_offsets() -> None:
    source = "const a = 'x(y'; // call(\n/* { */ f(`t ${data.name} }`)\n"
    masked = mask_non_code(source)

    assert len(masked) == len(source)
    assert masked.count("\n") == source.count("\n")
    assert "call" not in masked
    assert "x(y" not in masked
    assert "data.name" in masked
    assert bracket_balance(masked, "(", ")") is None
    assert bracket_balance(masked, "{", "}") is None


def test_find_matching_skips_nested_brackets() -> None:
    masked = "f(a, [b, {c: (d)}], e)"
    assert find_matching(masked, 1) == len(masked) - 1
    assert find_matching(masked, 5) == masked.index("]")
    assert find_matching("(]", 0) == -1
    assert find_matching("abc", 0) == -1


def test_split_top_level_ignores_nested_commas_and_trailing_comma() -> None:
    masked = "[a, f(b, c), { d, e },]"
    spans = split_top_level(masked, 1, len(masked) - 1)
    assert [masked[start:end] for start, end in spans] == ["a", "f(b, c)", "{ d, e }"]


def test_line_helpers() -> None:
    text = "first\n    second\n\tthird"
    assert line_of(text, 0) == 1
    assert line_of(text, text.index("second")) == 2
    assert line_indent(text, text.index("second")) == "    "
    assert line_indent(text, text.index("third")) == "\t"


def test_bracket_balance_reports_counts_when_unbalanced() -> None:
    assert bracket_balance("{ { }", "{", "}") == (2, 1)
