"""Tests for edit-distance suggestions."""

from __future__ import annotations

from flowwarden.matching import closest_match, levenshtein


def test_levenshtein_basic_distances() -> None:
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("same", "same") == 0


def test_levenshtein_is_symmetric() -> None:
    pairs = [("fooBarNode", "fooBazNode"), ("a", "abcd"), ("storyboardNode", "juxinStoryboardNode")]
    for left, right in pairs:
        assert levenshtein(left, right) == levenshtein(right, left)


def test_closest_match_compares_case_insensitively() -> None:
    assert closest_match("FOOBAZNODE", ["fooBazNode", "otherNode"]) == "fooBazNode"


def test_closest_match_respects_threshold() -> None:
    candidates = ["videoGenerateNode"]
    assert closest_match("videoGenerateNod", candidates) == "videoGenerateNode"
    assert closest_match("imageNode", candidates) is None


def test_closest_match_accepts_distance_of_exactly_three() -> None:
    assert closest_match("abcXYZ", ["abcdef"]) == "abcdef"
    assert closest_match("abWXYZ", ["abcdef"]) is None


def test_closest_match_tie_prefers_first_sorted_candidate() -> None:
    assert closest_match("catNode", ["datNode", "batNode"]) == "batNode"


def test_closest_match_without_candidates() -> None:
    assert closest_match("anyNode", []) is None
