"""Fix strategy catalog loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from ..validators.base import IssueKind

DEFAULT_CATALOG = Path(__file__).with_name("strategies.yml")
_RISKS = ("low", "medium", "high")


class StrategyResolutionError(RuntimeError):
    """Raised when the catalog is malformed or names fixers that do not exist."""


@dataclass(frozen=True)
class FixStrategy:
    """Policy governing whether and how one issue kind may be repaired."""

    name: str
    risk: str
    auto_fixable: bool
    confidence: int
    requires_user_confirmation: bool
    fixer: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "risk": self.risk,
            "autoFixable": self.auto_fixable,
            "confidence": self.confidence,
            "requiresUserConfirmation": self.requires_user_confirmation,
            "fixer": self.fixer,
            "reason": self.reason,
        }


class FixCatalog:
    """Maps issue kinds to their strategies."""

    def __init__(self, strategies: Mapping[IssueKind, FixStrategy]) -> None:
        self._strategies = dict(strategies)

    def __contains__(self, kind: object) -> bool:
        return kind in self._strategies

    def __iter__(self):
        return iter(sorted(self._strategies.items(), key=lambda item: item[0].value))

    def get(self, kind: IssueKind) -> Optional[FixStrategy]:
        return self._strategies.get(kind)

    def auto_fixable(self, kind: IssueKind) -> Optional[FixStrategy]:
        strategy = self._strategies.get(kind)
        if strategy is None or not strategy.auto_fixable:
            return None
        return strategy

    def ensure_resolvable(self, fixer_keys: Iterable[str]) -> None:
        """Fail if an auto-fixable strategy names no fixer or an unknown one."""
        available = set(fixer_keys)
        problems: List[str] = []
        for kind, strategy in self:
            if not strategy.auto_fixable:
                continue
            if not strategy.fixer:
                problems.append(f"{kind.value} ({strategy.name}) has no fixer")
            elif strategy.fixer not in available:
                problems.append(f"{kind.value} ({strategy.name}) uses unknown fixer '{strategy.fixer}'")
        if problems:
            raise StrategyResolutionError(
                "Fix strategy catalog cannot be resolved: " + "; ".join(problems)
            )


def load_catalog(path: Path | None = None) -> FixCatalog:
    """Load the catalog from ``path`` or the packaged default."""
    catalog_path = path or DEFAULT_CATALOG
    try:
        data = yaml.safe_load(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise StrategyResolutionError(f"Fix strategy catalog not found: {catalog_path}") from exc
    except yaml.YAMLError as exc:
        raise StrategyResolutionError(f"Failed to parse {catalog_path.name}: {exc}") from exc

    entries = data.get("strategies") if isinstance(data, dict) else None
    if not isinstance(entries, dict):
        raise StrategyResolutionError(f"{catalog_path.name} must contain a 'strategies' mapping")

    strategies: Dict[IssueKind, FixStrategy] = {}
    for key, raw in entries.items():
        try:
            kind = IssueKind.parse(str(key))
        except ValueError as exc:
            raise StrategyResolutionError(f"{catalog_path.name}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StrategyResolutionError(f"{catalog_path.name}: strategy '{key}' must be a mapping")
        strategies[kind] = _parse_strategy(str(key), raw)
    return FixCatalog(strategies)


def _parse_strategy(key: str, raw: Mapping[str, Any]) -> FixStrategy:
    risk = str(raw.get("risk", "medium")).lower()
    if risk not in _RISKS:
        raise StrategyResolutionError(f"Strategy '{key}' has invalid risk '{risk}'")
    confidence = raw.get("confidence", 50)
    if isinstance(confidence, bool) or not isinstance(confidence, int) or not 0 <= confidence <= 100:
        raise StrategyResolutionError(f"Strategy '{key}' confidence must be an integer between 0 and 100")
    fixer = raw.get("fixer")
    return FixStrategy(
        name=str(raw.get("name") or key),
        risk=risk,
        auto_fixable=bool(raw.get("auto_fixable", False)),
        confidence=confidence,
        requires_user_confirmation=bool(raw.get("requires_user_confirmation", True)),
        fixer=str(fixer) if fixer else None,
        reason=str(raw.get("reason") or ""),
    )


__all__ = [
    "DEFAULT_CATALOG",
    "FixCatalog",
    "FixStrategy",
    "StrategyResolutionError",
    "load_catalog",
]
