"""Syntax validation through an external checker with heuristic fallback."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config import SyntaxConfig
from ..extractors.text import bracket_balance, mask_non_code
from ..logging import get_logger
from .base import Issue, IssueKind, Severity

Runner = Callable[..., subprocess.CompletedProcess]

_LOCATION = re.compile(r"\((\d+):(\d+)\)")
_EXPORT_DEFAULT = re.compile(r"\bexport\s+default\b")
_EXPORT_SHAPE = re.compile(
    r"\bexport\s+default\s+(?:async\s+function|function|class|const|(?:React\.)?memo\s*\(|[A-Za-z_$][\w$]*\s*(?:;|$|\())",
    re.MULTILINE,
)


class CheckerUnavailable(RuntimeError):
    """Raised internally when the external checker cannot be run."""


class SyntaxValidator:
    """Runs the configured checker per file and degrades to heuristics without it.

    Only failures reported by the checker are errors. Once the checker is
    found to be missing, every remaining file gets the fallback checks, and
    their findings are warnings.
    """

    name = "syntax"

    def __init__(
        self,
        root: Path,
        config: SyntaxConfig | None = None,
        *,
        runner: Runner | None = None,
    ) -> None:
        self.root = root
        self.config = config or SyntaxConfig()
        self._runner = runner or self._default_runner
        self.logger = get_logger("validators.syntax")
        self.checker_available: Optional[bool] = None

    def validate(self, files: Sequence[Path]) -> List[Issue]:
        issues: List[Issue] = []
        self.checker_available = None
        for path in files:
            rel_path = self._relative(path)
            if self.checker_available is not False:
                try:
                    issues.extend(self._run_checker(path, rel_path))
                    self.checker_available = True
                    continue
                except CheckerUnavailable as exc:
                    self.checker_available = False
                    self.logger.warning("Syntax checker unavailable (%s); using basic checks", exc)
            issues.extend(self._fallback(path, rel_path))
        return issues

    def _run_checker(self, path: Path, rel_path: str) -> List[Issue]:
        args = [part.replace("{file}", str(path)) for part in self.config.command]
        if not any("{file}" in part for part in self.config.command):
            args.append(str(path))
        try:
            completed = self._runner(args, cwd=self.root, timeout=self.config.timeout)
        except FileNotFoundError as exc:
            raise CheckerUnavailable(f"{args[0]} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise CheckerUnavailable(f"timed out after {exc.timeout}s") from exc

        if completed.returncode == 0:
            return []

        output = "\n".join(part for part in (completed.stderr, completed.stdout) if part).strip()
        lowered = output.lower()
        for signature in self.config.missing_signatures:
            if signature and signature.lower() in lowered:
                raise CheckerUnavailable(signature)

        location = _LOCATION.search(output)
        first_line = output.splitlines()[0] if output else f"exit status {completed.returncode}"
        return [
            Issue(
                kind=IssueKind.SYNTAX_ERROR,
                severity=Severity.ERROR,
                summary=f"Syntax error in {rel_path}: {first_line}",
                details=output,
                file=rel_path,
                line=int(location.group(1)) if location else None,
            )
        ]

    def _fallback(self, path: Path, rel_path: str) -> List[Issue]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return [self._warning(rel_path, f"could not read file: {exc}")]

        masked = mask_non_code(text)
        problems: List[str] = []
        braces = bracket_balance(masked, "{", "}")
        if braces:
            problems.append(f"unbalanced braces: {braces[0]} '{{' vs {braces[1]} '}}'")
        parens = bracket_balance(masked, "(", ")")
        if parens:
            problems.append(f"unbalanced parentheses: {parens[0]} '(' vs {parens[1]} ')'")
        if _EXPORT_DEFAULT.search(masked) and not _EXPORT_SHAPE.search(masked):
            problems.append("unrecognised export default form")
        return [self._warning(rel_path, problem) for problem in problems]

    @staticmethod
    def _warning(rel_path: str, problem: str) -> Issue:
        return Issue(
            kind=IssueKind.SYNTAX_ERROR,
            severity=Severity.WARNING,
            summary=f"{rel_path}: {problem} (basic check, syntax checker unavailable)",
            details=problem,
            file=rel_path,
        )

    def _relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    @staticmethod
    def _default_runner(
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess:
        return subprocess.run(
            list(args),
            cwd=str(cwd),
            check=False,
            text=True,
            capture_output=True,
            timeout=timeout,
        )


__all__ = ["CheckerUnavailable", "SyntaxValidator"]
