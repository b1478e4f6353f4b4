"""
Insights presentation layer — request-time reads, no writes.

Benchmarks
----------
The user's own recent average severity gives their cohort key. Stored rows
are looked up for the exact key, then the widened key; when neither exists
the response carries static population defaults plus an explanatory message.
Each benchmarked symptom is joined with the user's own frequency/severity
over the same recent window and placed with estimate_percentile().

Correlations
------------
Pass-through of user_correlations rows (computed elsewhere) with a
generated human label, e.g. "Caffeine increases hot flashes by 23%".

Public API
----------
get_benchmark_insights(db, user_id, today)   -> BenchmarkInsights
get_correlation_insights(db, user_id)        -> CorrelationInsights
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ProfileNotFoundError
from app.models.benchmark_aggregate import BenchmarkAggregate
from app.models.daily_log import DailyLog
from app.models.profile import Profile
from app.models.user_correlation import UserCorrelation
from app.services.cohort import cohort_key, cohort_label, widen_cohort_key
from app.services.percentile import estimate_percentile, round_half_up
from app.services.symptoms import (
    NormalizedLog,
    SymptomStats,
    average_severity,
    normalize,
    stats_from_days,
    symptom_days,
    symptom_key,
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class Commonality:
    VERY_COMMON = "Very common"
    COMMON      = "Common"
    LESS_COMMON = "Less common"


@dataclass(frozen=True)
class SymptomInsight:
    name: str
    user_frequency_days: int
    user_avg_severity: float
    cohort_prevalence_pct: float
    cohort_avg_frequency: float
    percentile_position: int
    label: str


@dataclass
class CohortDescriptor:
    key: str
    label: str
    sample_size: int


@dataclass
class BenchmarkInsights:
    cohort: CohortDescriptor
    symptoms: list[SymptomInsight]
    message: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.message is not None


@dataclass
class CorrelationInsight:
    factor: str
    symptom: str
    direction: str
    confidence: Optional[float]
    effect_size_pct: Optional[float]
    occurrences: Optional[int]
    lag_days: Optional[int]
    human_label: str


@dataclass
class CorrelationInsights:
    correlations: list[CorrelationInsight]
    last_computed: Optional[datetime]
    data_quality: str
    total_found: int


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_VERY_COMMON_PCT = 70
_COMMON_PCT = 40

FALLBACK_MESSAGE = (
    "Not enough data for your specific cohort yet. Showing general population "
    "benchmarks. As more users join, your comparisons will become more personalised."
)

# (name, prevalence %, average days logged in the recent window)
_POPULATION_DEFAULTS: list[tuple[str, float, float]] = [
    ("Hot flashes",      80, 12),
    ("Night sweats",     70,  8),
    ("Sleep disruption", 65, 10),
    ("Mood changes",     60,  9),
    ("Brain fog",        55,  7),
    ("Joint pain",       50,  8),
    ("Fatigue",          72, 14),
    ("Anxiety",          45,  6),
]

FALLBACK_SYMPTOMS: list[SymptomInsight] = [
    SymptomInsight(
        name=name,
        user_frequency_days=0,
        user_avg_severity=0.0,
        cohort_prevalence_pct=prevalence,
        cohort_avg_frequency=frequency,
        percentile_position=0,
        label=Commonality.VERY_COMMON if prevalence >= _VERY_COMMON_PCT else Commonality.COMMON,
    )
    for name, prevalence, frequency in _POPULATION_DEFAULTS
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def commonality_label(prevalence_pct: float) -> str:
    if prevalence_pct >= _VERY_COMMON_PCT:
        return Commonality.VERY_COMMON
    if prevalence_pct >= _COMMON_PCT:
        return Commonality.COMMON
    return Commonality.LESS_COMMON


def user_symptom_stats(logs: list[NormalizedLog], since: date) -> dict[str, SymptomStats]:
    """symptom_key -> the user's own frequency/severity since `since`."""
    merged: dict[str, dict[date, float]] = {}
    for name, per_day in symptom_days(logs, since).items():
        target = merged.setdefault(symptom_key(name), {})
        for day, severity in per_day.items():
            if severity > target.get(day, float("-inf")):
                target[day] = severity
    return {key: stats_from_days(per_day) for key, per_day in merged.items()}


def _benchmark_rows(db: Session, key: str) -> list[BenchmarkAggregate]:
    return (
        db.query(BenchmarkAggregate)
        .filter(BenchmarkAggregate.cohort_key == key)
        .order_by(BenchmarkAggregate.symptom)
        .all()
    )


# ---------------------------------------------------------------------------
# Public — benchmarks
# ---------------------------------------------------------------------------

def get_benchmark_insights(
    db: Session,
    user_id: str,
    today: Optional[date] = None,
) -> BenchmarkInsights:
    today = today or _today()
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if profile is None:
        raise ProfileNotFoundError(user_id)

    since = today - timedelta(days=settings.RECENT_WINDOW_DAYS)
    logs = [
        NormalizedLog(day=day, symptoms=normalize(raw))
        for day, raw in (
            db.query(DailyLog.date, DailyLog.symptoms_json)
            .filter(
                DailyLog.user_id == user_id,
                DailyLog.date >= since,
                DailyLog.date <= today,
            )
            .all()
        )
    ]

    key = cohort_key(profile.stage, profile.date_of_birth, average_severity(logs, since), today)
    user_stats = user_symptom_stats(logs, since)

    effective_key = key
    rows = _benchmark_rows(db, key)
    if not rows:
        effective_key = widen_cohort_key(key)
        rows = _benchmark_rows(db, effective_key)

    if not rows:
        fallback = []
        for default in FALLBACK_SYMPTOMS:
            stats = user_stats.get(symptom_key(default.name))
            if stats is not None:
                default = replace(
                    default,
                    user_frequency_days=stats.frequency,
                    user_avg_severity=round_half_up(stats.avg_severity, 2),
                )
            fallback.append(default)
        return BenchmarkInsights(
            cohort=CohortDescriptor(key=key, label=cohort_label(key), sample_size=0),
            symptoms=fallback,
            message=FALLBACK_MESSAGE,
        )

    symptoms = []
    for row in rows:
        stats = user_stats.get(symptom_key(row.symptom), SymptomStats(0, 0.0))
        symptoms.append(SymptomInsight(
            name=row.symptom,
            user_frequency_days=stats.frequency,
            user_avg_severity=round_half_up(stats.avg_severity, 2),
            cohort_prevalence_pct=row.prevalence_pct,
            cohort_avg_frequency=row.avg_frequency,
            percentile_position=estimate_percentile(
                stats.frequency,
                row.p25_frequency or 0,
                row.p50_frequency or 0,
                row.p75_frequency or 0,
            ),
            label=commonality_label(row.prevalence_pct),
        ))
    symptoms.sort(key=lambda s: s.user_frequency_days, reverse=True)

    return BenchmarkInsights(
        cohort=CohortDescriptor(
            key=effective_key,
            label=cohort_label(effective_key),
            sample_size=rows[0].sample_size,
        ),
        symptoms=symptoms,
    )


# ---------------------------------------------------------------------------
# Correlations — label formatting
# ---------------------------------------------------------------------------

_MED_PREFIX = "med_"


def _title_words(text: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text.replace("_", " "))


def format_factor_label(factor: str) -> str:
    """'med_aspirin' -> 'Aspirin', 'poor_sleep' -> 'Poor Sleep'."""
    if factor.startswith(_MED_PREFIX):
        name = factor[len(_MED_PREFIX):]
        return name[:1].upper() + name[1:]
    return _title_words(factor)


def correlation_label(
    factor: str,
    symptom: str,
    direction: str,
    effect_size_pct: Optional[float],
) -> str:
    verb = "increases" if direction == "positive" else "reduces"
    pct = int(round_half_up(abs(effect_size_pct or 0)))
    return f"{format_factor_label(factor)} {verb} {symptom.replace('_', ' ').lower()} by {pct}%"


def data_quality(distinct_days: int) -> str:
    if distinct_days < 14:
        return "building"
    if distinct_days < 30:
        return "moderate"
    return "strong"


# ---------------------------------------------------------------------------
# Public — correlations
# ---------------------------------------------------------------------------

def get_correlation_insights(db: Session, user_id: str) -> CorrelationInsights:
    rows = (
        db.query(UserCorrelation)
        .filter(UserCorrelation.user_id == user_id)
        .order_by(UserCorrelation.effect_size_pct.desc(), UserCorrelation.id.asc())
        .all()
    )
    last_computed = (
        db.query(func.max(UserCorrelation.computed_at))
        .filter(UserCorrelation.user_id == user_id)
        .scalar()
    )
    distinct_days = (
        db.query(func.count(func.distinct(DailyLog.date)))
        .filter(DailyLog.user_id == user_id)
        .scalar()
        or 0
    )

    return CorrelationInsights(
        correlations=[
            CorrelationInsight(
                factor=row.factor_a,
                symptom=row.factor_b,
                direction=row.direction,
                confidence=row.confidence,
                effect_size_pct=row.effect_size_pct,
                occurrences=row.occurrences,
                lag_days=row.lag_days,
                human_label=correlation_label(
                    row.factor_a, row.factor_b, row.direction, row.effect_size_pct
                ),
            )
            for row in rows
        ],
        last_computed=last_computed,
        data_quality=data_quality(distinct_days),
        total_found=len(rows),
    )
