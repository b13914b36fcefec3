"""Persistent validation metrics and trend derivation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..files import write_text_atomic
from ..logging import get_logger

_METRICS_VERSION = 1

IMPROVING = "improving"
WORSENING = "worsening"
STABLE = "stable"
INSUFFICIENT_DATA = "insufficient_data"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _isoformat(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


@dataclass
class RunSummary:
    """Counts produced by one validator run."""

    total: int = 0
    errors: int = 0
    warnings: int = 0

    @property
    def issues(self) -> int:
        return self.errors + self.warnings

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "errors": self.errors, "warnings": self.warnings}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RunSummary":
        return cls(
            total=_count(payload.get("total")),
            errors=_count(payload.get("errors")),
            warnings=_count(payload.get("warnings")),
        )


@dataclass
class MetricsRecord:
    """One history entry."""

    timestamp: str
    type: str
    summary: RunSummary

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "type": self.type, "summary": self.summary.to_dict()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MetricsRecord":
        summary = payload.get("summary")
        return cls(
            timestamp=str(payload.get("timestamp") or ""),
            type=str(payload.get("type") or "unknown"),
            summary=RunSummary.from_dict(summary if isinstance(summary, Mapping) else {}),
        )


@dataclass
class TypeStats:
    total: int = 0
    errors: int = 0
    warnings: int = 0
    last_run: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "errors": self.errors,
            "warnings": self.warnings,
            "lastRun": self.last_run,
        }


@dataclass
class DateStats:
    total: int = 0
    errors: int = 0
    warnings: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "errors": self.errors, "warnings": self.warnings}


@dataclass
class Trend:
    """Pairwise comparison counts across history plus the overall verdict."""

    improving: int = 0
    worsening: int = 0
    stable: int = 0
    trend: str = INSUFFICIENT_DATA

    def to_dict(self) -> Dict[str, Any]:
        return {
            "improving": self.improving,
            "worsening": self.worsening,
            "stable": self.stable,
            "trend": self.trend,
        }


@dataclass
class MetricsState:
    total_runs: int = 0
    by_type: Dict[str, TypeStats] = field(default_factory=dict)
    by_date: Dict[str, DateStats] = field(default_factory=dict)
    history: List[MetricsRecord] = field(default_factory=list)
    created_at: Optional[str] = None
    last_updated: Optional[str] = None


class MetricsStore:
    """Aggregates validator runs and persists them to a JSON file.

    The store is an explicit object: construct it with a path, call ``load()``
    before reading and rely on ``record()``/``clear()``/``cleanup()`` to save.
    """

    def __init__(
        self,
        path: Path,
        *,
        max_history: int = 100,
        retention_days: int = 30,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.path = path
        self.max_history = max_history
        self.retention_days = retention_days
        self._clock = clock or _utc_now
        self._state = MetricsState()
        self.logger = get_logger("metrics")

    # ------------------------------------------------------------------
    # Lifecycle

    def load(self) -> "MetricsStore":
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self._state = self._fresh_state()
            return self
        except (OSError, json.JSONDecodeError) as exc:
            self.logger.warning("Ignoring unreadable metrics file %s: %s", self.path, exc)
            self._state = self._fresh_state()
            return self

        if not isinstance(data, dict):
            self.logger.warning("Ignoring metrics file %s: root is not an object", self.path)
            self._state = self._fresh_state()
            return self

        state = MetricsState(
            total_runs=_count(data.get("totalRuns")),
            created_at=_optional_str(data.get("createdAt")),
            last_updated=_optional_str(data.get("lastUpdated")),
        )
        by_type = data.get("byType")
        if isinstance(by_type, dict):
            for name, raw in by_type.items():
                if isinstance(raw, dict):
                    state.by_type[str(name)] = TypeStats(
                        total=_count(raw.get("total")),
                        errors=_count(raw.get("errors")),
                        warnings=_count(raw.get("warnings")),
                        last_run=_optional_str(raw.get("lastRun")),
                    )
        by_date = data.get("byDate")
        if isinstance(by_date, dict):
            for day, raw in by_date.items():
                if isinstance(raw, dict):
                    state.by_date[str(day)] = DateStats(
                        total=_count(raw.get("total")),
                        errors=_count(raw.get("errors")),
                        warnings=_count(raw.get("warnings")),
                    )
        history = data.get("history")
        if isinstance(history, list):
            state.history = [MetricsRecord.from_dict(item) for item in history if isinstance(item, dict)]
        self._state = state
        return self

    def save(self) -> None:
        self._state.last_updated = _isoformat(self._clock())
        if self._state.created_at is None:
            self._state.created_at = self._state.last_updated
        payload = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        write_text_atomic(self.path, payload + "\n")

    # ------------------------------------------------------------------
    # Mutation

    def record(self, run_type: str, summary: RunSummary) -> MetricsRecord:
        """Append one run, update aggregates, trim history and persist."""
        now = self._clock()
        timestamp = _isoformat(now)
        run_type = run_type or "unknown"
        state = self._state
        state.total_runs += 1

        type_stats = state.by_type.setdefault(run_type, TypeStats())
        type_stats.total += 1
        type_stats.errors += summary.errors
        type_stats.warnings += summary.warnings
        type_stats.last_run = timestamp

        date_stats = state.by_date.setdefault(now.date().isoformat(), DateStats())
        date_stats.total += 1
        date_stats.errors += summary.errors
        date_stats.warnings += summary.warnings

        record = MetricsRecord(timestamp=timestamp, type=run_type, summary=summary)
        state.history.append(record)
        if len(state.history) > self.max_history:
            state.history = state.history[-self.max_history:]

        self.save()
        return record

    def clear(self) -> None:
        self._state = self._fresh_state()
        self.save()

    def cleanup(self) -> List[str]:
        """Drop per-date buckets older than the retention window; returns removed dates."""
        cutoff = self._clock().date() - timedelta(days=self.retention_days)
        removed: List[str] = []
        for day in list(self._state.by_date):
            try:
                parsed = date.fromisoformat(day)
            except ValueError:
                continue
            if parsed < cutoff:
                removed.append(day)
                del self._state.by_date[day]
        self.save()
        return sorted(removed)

    # ------------------------------------------------------------------
    # Views

    @property
    def total_runs(self) -> int:
        return self._state.total_runs

    @property
    def by_type(self) -> Dict[str, TypeStats]:
        return dict(self._state.by_type)

    @property
    def by_date(self) -> Dict[str, DateStats]:
        return dict(self._state.by_date)

    def history(self, limit: int | None = None) -> List[MetricsRecord]:
        if limit:
            return list(self._state.history[-limit:])
        return list(self._state.history)

    def recent_dates(self, days: int = 7) -> Dict[str, DateStats]:
        keys = sorted(self._state.by_date)[-days:]
        return {key: self._state.by_date[key] for key in keys}

    def trend(self) -> Trend:
        history = self._state.history
        if len(history) < 2:
            return Trend()

        result = Trend()
        for previous, current in zip(history, history[1:]):
            if current.summary.issues < previous.summary.issues:
                result.improving += 1
            elif current.summary.issues > previous.summary.issues:
                result.worsening += 1
            else:
                result.stable += 1

        if result.improving > result.worsening:
            result.trend = IMPROVING
        elif result.worsening > result.improving:
            result.trend = WORSENING
        else:
            result.trend = STABLE
        return result

    def to_dict(self) -> Dict[str, Any]:
        state = self._state
        return {
            "version": _METRICS_VERSION,
            "createdAt": state.created_at,
            "lastUpdated": state.last_updated,
            "totalRuns": state.total_runs,
            "byType": {name: stats.to_dict() for name, stats in state.by_type.items()},
            "byDate": {day: stats.to_dict() for day, stats in sorted(state.by_date.items())},
            "history": [record.to_dict() for record in state.history],
        }

    def _fresh_state(self) -> MetricsState:
        return MetricsState(created_at=_isoformat(self._clock()))


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    return 0


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


__all__ = [
    "DateStats",
    "IMPROVING",
    "INSUFFICIENT_DATA",
    "MetricsRecord",
    "MetricsStore",
    "RunSummary",
    "STABLE",
    "Trend",
    "TypeStats",
    "WORSENING",
]
