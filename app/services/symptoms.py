"""
Symptom encoding normalizer.

Two encodings of DailyLog.symptoms_json exist in the wild:

  MapEncoding    {"hot_flashes": 3, "brain_fog": {"severity": 2}}
  ArrayEncoding  [{"name": "hot_flashes", "severity": 3, "isStressor": false}]

`parse_encoding` tags the raw JSON once; `normalize` turns either variant
into a SymptomSet. Nothing downstream of this module looks at the raw shape.

Defaults for bad data (never raised):
  - non-numeric severity             -> 1.0 (reported, severity unknown)
  - array entry without a severity    -> 0.0
  - array entry without a string name -> dropped
  - any other JSON value              -> empty set
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Union

DEFAULT_SEVERITY = 1.0
MISSING_ARRAY_SEVERITY = 0.0


# ---------------------------------------------------------------------------
# Tagged union over the raw encodings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MapEncoding:
    items: dict[str, Any]


@dataclass(frozen=True)
class ArrayEncoding:
    items: list[Any]


SymptomEncoding = Union[MapEncoding, ArrayEncoding, None]


def parse_encoding(raw: Any) -> SymptomEncoding:
    if isinstance(raw, dict):
        return MapEncoding(items=raw)
    if isinstance(raw, list):
        return ArrayEncoding(items=raw)
    return None


# ---------------------------------------------------------------------------
# Canonical shape
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SymptomEntry:
    severity: float
    is_stressor: bool = False


@dataclass
class SymptomSet:
    """
    Canonical per-log (or merged per-day) symptom view: one entry per name.

    A name seen twice keeps the higher-severity entry, stressor flag included,
    so it never counts as both a symptom and a stressor.
    """
    entries: dict[str, SymptomEntry] = field(default_factory=dict)

    def add(self, name: str, severity: float, is_stressor: bool = False) -> None:
        existing = self.entries.get(name)
        if existing is None or severity > existing.severity:
            self.entries[name] = SymptomEntry(severity=severity, is_stressor=is_stressor)

    def merge(self, other: SymptomSet) -> None:
        """Union in place."""
        for name, entry in other.entries.items():
            self.add(name, entry.severity, entry.is_stressor)

    @property
    def severities(self) -> dict[str, float]:
        """Non-stressor symptoms."""
        return {n: e.severity for n, e in self.entries.items() if not e.is_stressor}

    @property
    def stressors(self) -> dict[str, float]:
        """Legacy isStressor entries."""
        return {n: e.severity for n, e in self.entries.items() if e.is_stressor}

    @property
    def is_empty(self) -> bool:
        return not self.entries


def coerce_severity(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_SEVERITY
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, dict):
        return coerce_severity(value.get("severity"))
    return DEFAULT_SEVERITY


def normalize(raw: Any) -> SymptomSet:
    """Normalize raw symptoms_json (either encoding) into a SymptomSet."""
    encoding = parse_encoding(raw)
    result = SymptomSet()

    if isinstance(encoding, MapEncoding):
        for name, value in encoding.items.items():
            result.add(str(name), coerce_severity(value))

    elif isinstance(encoding, ArrayEncoding):
        for entry in encoding.items:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                continue
            severity = entry.get("severity")
            result.add(
                name,
                MISSING_ARRAY_SEVERITY if severity is None else coerce_severity(severity),
                bool(entry.get("isStressor")),
            )

    return result


def merge_all(raws: Iterable[Any]) -> SymptomSet:
    merged = SymptomSet()
    for raw in raws:
        merged.merge(normalize(raw))
    return merged


def symptom_key(name: str) -> str:
    """Matching key: case-insensitive, spaces and underscores treated alike."""
    return "_".join(name.strip().lower().replace("_", " ").split())


# ---------------------------------------------------------------------------
# Per-day accumulation (shared by the aggregator and the insights read path)
# ---------------------------------------------------------------------------

DEFAULT_AVG_SEVERITY = 2.0  # "moderate" when a user has nothing to average


@dataclass(frozen=True)
class NormalizedLog:
    """One DailyLog row reduced to what windowed statistics need."""
    day: date
    symptoms: SymptomSet


@dataclass(frozen=True)
class SymptomStats:
    frequency: int        # distinct days logged
    avg_severity: float   # mean of each day's max severity


def average_severity(logs: Iterable[NormalizedLog], since: date) -> float:
    """Mean over every symptom value logged on or after `since`."""
    total = 0.0
    count = 0
    for log in logs:
        if log.day < since:
            continue
        for severity in log.symptoms.severities.values():
            total += severity
            count += 1
    if count == 0:
        return DEFAULT_AVG_SEVERITY
    return total / count


def symptom_days(logs: Iterable[NormalizedLog], since: date) -> dict[str, dict[date, float]]:
    """symptom -> day -> max severity that day, for logs on or after `since`."""
    days: dict[str, dict[date, float]] = {}
    for log in logs:
        if log.day < since:
            continue
        for name, severity in log.symptoms.severities.items():
            per_day = days.setdefault(name, {})
            existing = per_day.get(log.day)
            if existing is None or severity > existing:
                per_day[log.day] = severity
    return days


def stats_from_days(per_day: dict[date, float]) -> SymptomStats:
    if not per_day:
        return SymptomStats(frequency=0, avg_severity=0.0)
    values = list(per_day.values())
    return SymptomStats(frequency=len(values), avg_severity=sum(values) / len(values))
