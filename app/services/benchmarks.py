"""
Cohort benchmark aggregator — scheduled batch job.

Steps
-----
  1. Load onboarding-complete profiles (none -> nothing to do).
  2. Load every log inside the benchmark window (90 days), normalized, by user.
  3. Per user: average severity over the recent window (28 days, default 2.0)
     -> cohort key.
  4. Group users by exact key and, separately, by widened key.
  5. An exact cohort below MIN_COHORT_SIZE is replaced by its widened cohort
     when that one is large enough; otherwise it is skipped and its old rows
     stay. Each effective key is processed at most once per run. A widened
     cohort is always computed from its full membership, so the rows do not
     depend on which exact cohort reached it first.
  6. Per symptom: prevalence, mean frequency (non-loggers count as 0), mean
     severity (loggers only), p25/p50/p75 of the frequency distribution.
  7. Replace the cohort's rows: delete by cohort_key, bulk insert. One
     savepoint per cohort.
  8. A failing cohort is rolled back, logged and counted; the run continues.
     A failure before cohort processing is reported as a single error.

Public API
----------
compute_all_benchmarks(db, now)              -> BenchmarkRunResult
compute_cohort_stats(members, recent_since)  -> list[SymptomBenchmark]  (pure)
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.benchmark_aggregate import BenchmarkAggregate
from app.models.daily_log import DailyLog
from app.models.profile import Profile
from app.services.cohort import cohort_key, widen_cohort_key
from app.services.percentile import interpolated_percentile, round_half_up
from app.services.symptoms import (
    NormalizedLog,
    average_severity,
    normalize,
    stats_from_days,
    symptom_days,
)

logger = logging.getLogger("engine.benchmarks")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class CohortMember:
    user_id: str
    cohort_key: str
    logs: list[NormalizedLog] = field(default_factory=list)  # full benchmark window


@dataclass
class SymptomBenchmark:
    symptom: str
    prevalence_pct: float
    avg_frequency: float
    avg_severity: float
    p25_frequency: float
    p50_frequency: float
    p75_frequency: float
    sample_size: int


@dataclass
class BenchmarkRunResult:
    cohorts: int = 0
    errors: int = 0
    cohort_keys: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


# ---------------------------------------------------------------------------
# Core — pure statistics for one effective cohort
# ---------------------------------------------------------------------------

def compute_cohort_stats(
    members: list[CohortMember],
    recent_since: date,
) -> list[SymptomBenchmark]:
    """
    Per-symptom statistics for one cohort. Symptoms are discovered across the
    whole benchmark window; measurements use the recent window only.
    """
    sample_size = len(members)

    all_symptoms: set[str] = set()
    for member in members:
        for log in member.logs:
            all_symptoms.update(log.symptoms.severities)

    # member -> symptom -> day -> max severity; scoped to this call
    recent_days = [symptom_days(m.logs, recent_since) for m in members]

    rows: list[SymptomBenchmark] = []
    for symptom in sorted(all_symptoms):
        frequencies: list[int] = []
        severities: list[float] = []

        for per_member in recent_days:
            stats = stats_from_days(per_member.get(symptom, {}))
            frequencies.append(stats.frequency)
            if stats.frequency > 0:
                severities.append(stats.avg_severity)

        loggers = len(severities)
        if loggers == 0:
            continue

        ordered = sorted(frequencies)
        rows.append(SymptomBenchmark(
            symptom=symptom,
            prevalence_pct=round_half_up(loggers / sample_size * 100, 1),
            avg_frequency=round_half_up(sum(frequencies) / sample_size, 2),
            avg_severity=round_half_up(sum(severities) / loggers, 2),
            p25_frequency=round_half_up(interpolated_percentile(ordered, 25), 2),
            p50_frequency=round_half_up(interpolated_percentile(ordered, 50), 2),
            p75_frequency=round_half_up(interpolated_percentile(ordered, 75), 2),
            sample_size=sample_size,
        ))
    return rows


# ---------------------------------------------------------------------------
# Loading + grouping
# ---------------------------------------------------------------------------

def _load_members(
    db: Session,
    now: date,
    window_days: int,
    recent_days: int,
) -> list[CohortMember]:
    profiles = (
        db.query(Profile)
        .filter(Profile.onboarding_complete.is_(True))
        .order_by(Profile.user_id)
        .all()
    )
    if not profiles:
        return []

    window_start = now - timedelta(days=window_days)
    recent_start = now - timedelta(days=recent_days)

    logs_by_user: dict[str, list[NormalizedLog]] = defaultdict(list)
    rows = (
        db.query(DailyLog.user_id, DailyLog.date, DailyLog.symptoms_json)
        .filter(DailyLog.date >= window_start, DailyLog.date <= now)
        .all()
    )
    for user_id, day, raw in rows:
        logs_by_user[user_id].append(NormalizedLog(day=day, symptoms=normalize(raw)))

    members = []
    for profile in profiles:
        logs = logs_by_user.get(profile.user_id, [])
        avg = average_severity(logs, recent_start)
        members.append(CohortMember(
            user_id=profile.user_id,
            cohort_key=cohort_key(profile.stage, profile.date_of_birth, avg, now),
            logs=logs,
        ))
    return members


def group_by_cohort(
    members: list[CohortMember],
) -> tuple[dict[str, list[CohortMember]], dict[str, list[CohortMember]]]:
    """Return (exact key -> members, widened key -> members)."""
    exact: dict[str, list[CohortMember]] = defaultdict(list)
    widened: dict[str, list[CohortMember]] = defaultdict(list)
    for member in members:
        exact[member.cohort_key].append(member)
        widened[widen_cohort_key(member.cohort_key)].append(member)
    return dict(exact), dict(widened)


def resolve_effective_cohort(
    key: str,
    members: list[CohortMember],
    widened: dict[str, list[CohortMember]],
    min_size: int,
) -> Optional[tuple[str, list[CohortMember]]]:
    """The (key, members) to materialize for an exact cohort, or None to skip."""
    if len(members) >= min_size:
        return key, members
    widened_key = widen_cohort_key(key)
    widened_members = widened.get(widened_key, [])
    if len(widened_members) >= min_size:
        return widened_key, widened_members
    return None


# ---------------------------------------------------------------------------
# Persistence — delete-then-insert for one cohort (flush only)
# ---------------------------------------------------------------------------

def _replace_rows(db: Session, key: str, rows: list[SymptomBenchmark]) -> None:
    db.query(BenchmarkAggregate).filter(
        BenchmarkAggregate.cohort_key == key
    ).delete(synchronize_session=False)
    if rows:
        db.add_all([
            BenchmarkAggregate(
                cohort_key=key,
                symptom=row.symptom,
                prevalence_pct=row.prevalence_pct,
                avg_frequency=row.avg_frequency,
                avg_severity=row.avg_severity,
                p25_frequency=row.p25_frequency,
                p50_frequency=row.p50_frequency,
                p75_frequency=row.p75_frequency,
                sample_size=row.sample_size,
            )
            for row in rows
        ])
    db.flush()


# ---------------------------------------------------------------------------
# Public — full run
# ---------------------------------------------------------------------------

def compute_all_benchmarks(
    db: Session,
    now: Optional[date] = None,
    min_cohort_size: Optional[int] = None,
) -> BenchmarkRunResult:
    now = now or _today()
    min_size = settings.MIN_COHORT_SIZE if min_cohort_size is None else min_cohort_size
    recent_since = now - timedelta(days=settings.RECENT_WINDOW_DAYS)
    result = BenchmarkRunResult()

    try:
        members = _load_members(
            db, now, settings.BENCHMARK_WINDOW_DAYS, settings.RECENT_WINDOW_DAYS
        )
    except Exception:
        db.rollback()
        logger.exception("Benchmark run aborted: could not load profiles and logs")
        result.errors += 1
        return result

    if not members:
        logger.info("Benchmark run: no onboarded profiles, nothing to do")
        return result

    exact, widened = group_by_cohort(members)
    processed: set[str] = set()

    for key in sorted(exact):
        resolved = resolve_effective_cohort(key, exact[key], widened, min_size)
        if resolved is None:
            logger.info(
                "Cohort %s skipped: %d members below minimum %d",
                key, len(exact[key]), min_size,
            )
            continue

        effective_key, effective_members = resolved
        if effective_key in processed:
            continue
        processed.add(effective_key)

        savepoint = db.begin_nested()
        try:
            rows = compute_cohort_stats(effective_members, recent_since)
            _replace_rows(db, effective_key, rows)
            savepoint.commit()
            result.cohorts += 1
            result.cohort_keys.append(effective_key)
        except Exception:
            savepoint.rollback()
            logger.exception("Benchmark computation failed for cohort %s", effective_key)
            result.errors += 1

    db.commit()
    logger.info(
        "Benchmark run for %s: %d cohorts written, %d errors",
        now, result.cohorts, result.errors,
    )
    return result
