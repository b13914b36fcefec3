"""Base classes for best-effort structural extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, List, TypeVar

T = TypeVar("T")


class ExtractionError(RuntimeError):
    """Raised when a source file cannot be read or interpreted at all."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass
class Extraction(Generic[T]):
    """Value produced by an extractor plus how much of it could be recognised.

    ``confidence`` is a 0-100 heuristic score. ``gaps`` names the facts the
    extractor looked for and did not find; a gap is never an error.
    """

    value: T
    confidence: int = 100
    gaps: List[str] = field(default_factory=list)

    def note_gap(self, fact: str, penalty: int) -> None:
        self.gaps.append(fact)
        self.confidence = max(0, self.confidence - penalty)


class BestEffortExtractor(ABC, Generic[T]):
    """Contract for heuristic pattern extractors over source text.

    Implementations match recognisable textual idioms. They never build a
    syntax tree, so anything expressed through an idiom they do not know is
    invisible to them and shows up as a gap or a lower confidence rather than
    an exception.
    """

    name: str = "extractor"

    @abstractmethod
    def extract_text(self, path: Path, text: str) -> Extraction[T]:
        """Extract facts from already loaded source text."""

    def extract_file(self, path: Path) -> Extraction[T]:
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError(path, f"not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise ExtractionError(path, exc.strerror or str(exc)) from exc
        return self.extract_text(path, text)


__all__ = ["BestEffortExtractor", "Extraction", "ExtractionError"]
