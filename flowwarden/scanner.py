"""Source scanning utilities for component and documentation trees."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".idea",
    ".flowwarden",
    "dist",
    "build",
    "coverage",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}


@dataclass(frozen=True)
class IgnoreRule:
    """One gitignore-style pattern, already stripped of ``!``, ``/`` and trailing ``/``."""

    pattern: str
    negate: bool = False
    directory_only: bool = False
    rooted: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        """Parse one ``.gitignore`` line or ``exclude_paths`` entry; blanks and comments give ``None``."""
        text = line.strip()
        if not text or text.startswith("#"):
            return None
        negate = text.startswith("!")
        text = text[1:] if negate else text
        directory_only = text.endswith("/")
        text = text.rstrip("/")
        rooted = text.startswith("/") or "/" in text
        text = text.lstrip("/")
        if not text:
            return None
        return cls(pattern=text, negate=negate, directory_only=directory_only, rooted=rooted)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.rooted:
            return fnmatchcase(rel_path, self.pattern) or rel_path.startswith(self.pattern + "/")
        return any(fnmatchcase(segment, self.pattern) for segment in rel_path.split("/"))


class IgnoreRules:
    """Ordered rules; the last matching rule decides, so ``!`` entries re-include."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self.rules: List[IgnoreRule] = list(rules)

    @classmethod
    def for_project(cls, root: Path, extra: Sequence[str] = ()) -> "IgnoreRules":
        lines: List[str] = []
        gitignore = root / ".gitignore"
        if gitignore.is_file():
            lines.extend(gitignore.read_text(encoding="utf-8").splitlines())
        lines.extend(extra)
        return cls(rule for rule in map(IgnoreRule.parse, lines) if rule is not None)

    def ignored(self, rel_path: str, is_dir: bool) -> bool:
        verdict = False
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                verdict = not rule.negate
        return verdict


class SourceScanner:
    """Walks a directory tree and returns files with matching extensions.

    Paths passed to ignore rules are relative to ``project_root`` so that
    ``.gitignore`` and ``exclude_paths`` entries keep their usual meaning when
    only a subtree is scanned.
    """

    def __init__(
        self,
        extensions: Iterable[str],
        *,
        project_root: Path | None = None,
        exclude_paths: Sequence[str] = (),
    ) -> None:
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.project_root = project_root.resolve() if project_root is not None else None
        if self.project_root is not None:
            self._ignore = IgnoreRules.for_project(self.project_root, exclude_paths)
        else:
            self._ignore = IgnoreRules(filter(None, map(IgnoreRule.parse, exclude_paths)))

    def scan(self, root: Path | str) -> List[Path]:
        """Return matching files under ``root`` in sorted path order."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Source directory not found: {root}")
        if not root_path.is_dir():
            if root_path.suffix.lower() in self.extensions:
                return [root_path]
            raise NotADirectoryError(f"Source path is not a directory: {root}")

        base = self.project_root or root_path
        return sorted(self._iter_files(root_path, base), key=lambda path: path.as_posix())

    def _iter_files(self, root: Path, base: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)

            kept_dirs = []
            for name in dirnames:
                if name in _EXCLUDED_DIRS:
                    continue
                if self._ignore.ignored(self._relative(current_dir / name, base), True):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in filenames:
                if filename in _EXCLUDED_FILES:
                    continue
                path = current_dir / filename
                if path.suffix.lower() not in self.extensions:
                    continue
                if self._ignore.ignored(self._relative(path, base), False):
                    continue
                yield path

    @staticmethod
    def _relative(path: Path, base: Path) -> str:
        try:
            return path.relative_to(base).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = ["IgnoreRule", "IgnoreRules", "SourceScanner"]
