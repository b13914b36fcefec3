"""Fixer plugin implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable

from .base import FixContext, FixResult, Fixer, Suggestion
from .catalog import FixCatalog, FixStrategy, StrategyResolutionError, load_catalog
from .data_flow import DataFlowFixer
from .missing_dependency import MissingDependencyFixer
from .orphaned_reference import OrphanedReferenceFixer
from .source_not_writing import SourceNotWritingFixer

_ENTRY_POINT_GROUP = "flowwarden.fixers"

_BUILTIN_FACTORIES: dict[str, Callable[[FixContext], Fixer]] = {
    OrphanedReferenceFixer.key: OrphanedReferenceFixer,
    MissingDependencyFixer.key: MissingDependencyFixer,
    SourceNotWritingFixer.key: SourceNotWritingFixer,
    DataFlowFixer.key: DataFlowFixer,
}


def discover_fixers(context: FixContext) -> Dict[str, Fixer]:
    """Return fixers keyed by name; built-ins win over same-named entry points."""

    fixers: Dict[str, Fixer] = {}

    def _add(name: str, factory: Callable[[FixContext], Fixer]) -> None:
        if name in fixers:
            return
        instance = factory(context)
        if not isinstance(instance, Fixer):
            raise TypeError(f"Fixer factory for '{name}' did not return a Fixer instance")
        fixers[name] = instance

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load fixer entry point '{entry.name}': {exc}") from exc

        def _factory(ctx: FixContext, obj: object = loaded) -> Fixer:
            return _coerce_fixer(obj, ctx)

        _add(entry.name, _factory)

    return fixers


def _coerce_fixer(obj: object, context: FixContext) -> Fixer:
    if isinstance(obj, Fixer):
        return obj
    if callable(obj):
        instance = obj(context)
        if isinstance(instance, Fixer):
            return instance
    raise TypeError("Fixer entry point must be a Fixer subclass or factory accepting a FixContext")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - defensive guard
        return []
    return entry_points.select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "FixCatalog",
    "FixContext",
    "FixResult",
    "FixStrategy",
    "Fixer",
    "StrategyResolutionError",
    "Suggestion",
    "discover_fixers",
    "load_catalog",
]
