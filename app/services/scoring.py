"""
Personal readiness scorer.

Readiness = 40% sleep + 25% mood + 20% symptom load + 15% stressors,
rounded half-up and clamped to [5, 99]. Every sub-score lives in [10, 100].

Multiple logs on the same day (morning + evening check-ins) are merged
before scoring:
  - scalar fields: last non-null value in log order wins
  - symptoms:      union, higher severity wins on a repeated name
  - stressors:     legacy isStressor entries + distinct stressor context tags

Public API
----------
compute_scores_for_user(db, user_id, day)    -> ScoreResult | None  (upsert)
compute_streak(db, user_id)                  -> int
compute_all_user_scores(db, reference_date)  -> BatchRunResult     (per-user savepoints)
get_readiness(db, user_id, day, refresh)     -> ScoreResult | None  (write-through)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models.computed_score import ComputedScore
from app.models.daily_log import DailyLog
from app.services.percentile import round_half_up
from app.services.symptoms import SymptomSet, normalize

logger = logging.getLogger("engine.scoring")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

STRESSOR_TAGS = frozenset({
    "stress", "stressful", "anxiety", "overwhelmed",
    "work_stress", "conflict", "deadline", "grief",
})

_SLEEP_TARGET_HOURS = 8
_SLEEP_QUALITY_ADJUSTMENT = {
    "great": 15,
    "good": 5,
    "poor": -15,
    "terrible": -25,
}
_DISRUPTION_PENALTY = 7
_MAX_DISRUPTION_PENALTY = 20

WEIGHTS = {"sleep": 0.40, "mood": 0.25, "symptom": 0.20, "stressor": 0.15}

NEUTRAL_SCORE = 50
MIN_SUBSCORE, MAX_SUBSCORE = 10, 100
MIN_READINESS, MAX_READINESS = 5, 99


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class MergedDay:
    """All of one user's logs for one day, folded into a single view."""
    sleep_hours: Optional[float] = None
    sleep_quality: Optional[str] = None
    disruptions: Optional[int] = None
    mood: Optional[int] = None
    symptoms: SymptomSet = field(default_factory=SymptomSet)
    stressor_tags: set[str] = field(default_factory=set)


@dataclass
class ScoreComponents:
    sleep: float
    mood: float
    symptom: float
    stressor: float


@dataclass
class ScoreResult:
    user_id: str
    day: date
    readiness: int
    components: ScoreComponents
    streak: int
    recommendation: Optional[str] = None


@dataclass
class BatchRunResult:
    processed: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


# ---------------------------------------------------------------------------
# Merge — pure
# ---------------------------------------------------------------------------

def merge_logs(logs: Iterable[DailyLog]) -> MergedDay:
    """Fold same-day logs in the order given (caller sorts by logged_at)."""
    merged = MergedDay()
    for log in logs:
        if log.sleep_hours is not None:
            merged.sleep_hours = log.sleep_hours
        if log.sleep_quality is not None:
            merged.sleep_quality = log.sleep_quality
        if log.disruptions is not None:
            merged.disruptions = log.disruptions
        if log.mood is not None:
            merged.mood = log.mood

        merged.symptoms.merge(normalize(log.symptoms_json))

        if isinstance(log.context_tags, list):
            for tag in log.context_tags:
                if not isinstance(tag, str):
                    continue
                lower = tag.lower()
                if lower in STRESSOR_TAGS:
                    merged.stressor_tags.add(lower)
    return merged


# ---------------------------------------------------------------------------
# Sub-scores — pure
# ---------------------------------------------------------------------------

def sleep_score(
    hours: Optional[float],
    quality: Optional[str],
    disruptions: Optional[int],
) -> float:
    if hours is None:
        return NEUTRAL_SCORE

    score = _clamp(hours / _SLEEP_TARGET_HOURS * 85, MIN_SUBSCORE, MAX_SUBSCORE)
    score += _SLEEP_QUALITY_ADJUSTMENT.get(quality or "", 0)
    score -= min(_MAX_DISRUPTION_PENALTY, (disruptions or 0) * _DISRUPTION_PENALTY)
    return _clamp(score, MIN_SUBSCORE, MAX_SUBSCORE)


def mood_score(mood: Optional[int]) -> float:
    if mood is None:
        return NEUTRAL_SCORE
    return _clamp(mood * 20, MIN_SUBSCORE, MAX_SUBSCORE)


def symptom_score(severities: dict[str, float]) -> float:
    if not severities:
        return MAX_SUBSCORE
    count = len(severities)
    avg = sum(severities.values()) / count
    return _clamp(100 - count * 10 - avg * 3, MIN_SUBSCORE, MAX_SUBSCORE)


def stressor_score(stressor_count: int) -> float:
    if stressor_count == 0:
        return MAX_SUBSCORE
    return max(MIN_SUBSCORE, 100 - stressor_count * 12)


def readiness(components: ScoreComponents) -> int:
    weighted = (
        components.sleep * WEIGHTS["sleep"]
        + components.mood * WEIGHTS["mood"]
        + components.symptom * WEIGHTS["symptom"]
        + components.stressor * WEIGHTS["stressor"]
    )
    return int(_clamp(round_half_up(weighted), MIN_READINESS, MAX_READINESS))


def score_components(merged: MergedDay) -> ScoreComponents:
    stressors = len(merged.symptoms.stressors) + len(merged.stressor_tags)
    return ScoreComponents(
        sleep=sleep_score(merged.sleep_hours, merged.sleep_quality, merged.disruptions),
        mood=mood_score(merged.mood),
        symptom=symptom_score(merged.symptoms.severities),
        stressor=stressor_score(stressors),
    )


# ---------------------------------------------------------------------------
# Streak
# ---------------------------------------------------------------------------

def streak_from_dates(dates: Iterable[date]) -> int:
    """Consecutive days anchored at the most recent date; stops at the first gap."""
    unique = sorted(set(dates), reverse=True)
    if not unique:
        return 0
    streak = 1
    for newer, older in zip(unique, unique[1:]):
        if newer - older != timedelta(days=1):
            break
        streak += 1
    return streak


def compute_streak(db: Session, user_id: str) -> int:
    rows = (
        db.query(DailyLog.date)
        .filter(DailyLog.user_id == user_id)
        .distinct()
        .order_by(DailyLog.date.desc())
        .all()
    )
    return streak_from_dates(r[0] for r in rows)


# ---------------------------------------------------------------------------
# Public — single user (flush only in _compute_one; commit at the root)
# ---------------------------------------------------------------------------

def _day_logs(db: Session, user_id: str, day: date) -> list[DailyLog]:
    return (
        db.query(DailyLog)
        .filter(DailyLog.user_id == user_id, DailyLog.date == day)
        .order_by(DailyLog.logged_at.asc(), DailyLog.id.asc())
        .all()
    )


def _compute_one(db: Session, user_id: str, day: date) -> Optional[ScoreResult]:
    logs = _day_logs(db, user_id, day)
    if not logs:
        return None

    components = score_components(merge_logs(logs))
    result = ScoreResult(
        user_id=user_id,
        day=day,
        readiness=readiness(components),
        components=components,
        streak=compute_streak(db, user_id),
    )
    row = _upsert_score(db, result)
    result.recommendation = row.recommendation
    db.flush()
    return result


def _upsert_score(db: Session, result: ScoreResult) -> ComputedScore:
    """Insert or overwrite the (user_id, date) row; recommendation is left alone."""
    existing = (
        db.query(ComputedScore)
        .filter(
            ComputedScore.user_id == result.user_id,
            ComputedScore.date == result.day,
        )
        .first()
    )
    values = dict(
        readiness=result.readiness,
        sleep_score=result.components.sleep,
        mood_score=result.components.mood,
        symptom_score=result.components.symptom,
        stressor_score=result.components.stressor,
        streak=result.streak,
    )
    if existing is not None:
        for key, value in values.items():
            setattr(existing, key, value)
        return existing

    row = ComputedScore(user_id=result.user_id, date=result.day, recommendation=None, **values)
    db.add(row)
    return row


def compute_scores_for_user(
    db: Session,
    user_id: str,
    day: Optional[date] = None,
) -> Optional[ScoreResult]:
    """
    Score one user for one day and upsert computed_scores.
    Returns None (and writes nothing) when the user has no logs that day.
    """
    result = _compute_one(db, user_id, day or _today())
    if result is not None:
        db.commit()
    return result


# ---------------------------------------------------------------------------
# Public — read API (write-through cache)
# ---------------------------------------------------------------------------

def _from_row(row: ComputedScore) -> ScoreResult:
    return ScoreResult(
        user_id=row.user_id,
        day=row.date,
        readiness=row.readiness,
        components=ScoreComponents(
            sleep=row.sleep_score,
            mood=row.mood_score,
            symptom=row.symptom_score,
            stressor=row.stressor_score,
        ),
        streak=row.streak,
        recommendation=row.recommendation,
    )


def get_readiness(
    db: Session,
    user_id: str,
    day: Optional[date] = None,
    refresh: bool = False,
) -> Optional[ScoreResult]:
    """Return the stored score, computing and storing it when absent (or on refresh)."""
    target = day or _today()
    if not refresh:
        row = (
            db.query(ComputedScore)
            .filter(ComputedScore.user_id == user_id, ComputedScore.date == target)
            .first()
        )
        if row is not None:
            return _from_row(row)
    return compute_scores_for_user(db, user_id, target)


# ---------------------------------------------------------------------------
# Public — batch (scheduler)
# ---------------------------------------------------------------------------

def compute_all_user_scores(
    db: Session,
    reference_date: Optional[date] = None,
) -> BatchRunResult:
    """
    Score reference_date for every user that has any log at all.
    A user with no log on that day writes nothing but still counts as
    processed. One savepoint per user: a failure is rolled back, logged and
    counted, and the loop moves on.
    """
    target = reference_date or _today()
    user_ids = [
        r[0] for r in db.query(DailyLog.user_id).distinct().order_by(DailyLog.user_id).all()
    ]

    result = BatchRunResult()
    for user_id in user_ids:
        savepoint = db.begin_nested()
        try:
            _compute_one(db, user_id, target)
            savepoint.commit()
            result.processed += 1
        except Exception:
            savepoint.rollback()
            logger.exception("Score computation failed for user %s on %s", user_id, target)
            result.errors += 1

    db.commit()
    logger.info(
        "Scored %d users for %s (%d errors)", result.processed, target, result.errors
    )
    return result
