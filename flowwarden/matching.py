"""Edit-distance helpers used for reference suggestions."""

from __future__ import annotations

from typing import Iterable, List, Optional

SUGGESTION_THRESHOLD = 3


def levenshtein(left: str, right: str) -> int:
    """Classic dynamic-programming edit distance over full strings."""
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    previous: List[int] = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def closest_match(
    target: str,
    candidates: Iterable[str],
    *,
    threshold: int = SUGGESTION_THRESHOLD,
) -> Optional[str]:
    """Return the nearest candidate within ``threshold``, comparing case-insensitively.

    Ties resolve to the first candidate in sorted order.
    """
    lowered = target.lower()
    best: Optional[str] = None
    best_distance: Optional[int] = None
    for candidate in sorted(candidates):
        distance = levenshtein(lowered, candidate.lower())
        if best_distance is None or distance < best_distance:
            best = candidate
            best_distance = distance
    if best_distance is None or best_distance > threshold:
        return None
    return best


__all__ = ["SUGGESTION_THRESHOLD", "closest_match", "levenshtein"]
