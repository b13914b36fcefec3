"""Persistence layers for flowwarden."""

from .metrics import MetricsStore, RunSummary
from .registry import RegistryCorrupt, RegistryMissing, RegistryStore, naming_mismatches

__all__ = [
    "MetricsStore",
    "RegistryCorrupt",
    "RegistryMissing",
    "RegistryStore",
    "RunSummary",
    "naming_mismatches",
]
