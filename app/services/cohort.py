"""
Cohort key builder.

A cohort key joins three normalized parts with "_":

    <stage>_<age bucket>_<severity tier>     e.g. "perimenopause_45-49_mild"

The widened key drops the severity tier ("perimenopause_45-49"); it is the
only fallback granularity.

Public API
----------
normalize_stage(raw)                          -> str
age_bucket(date_of_birth, today)              -> str
severity_tier(avg_severity)                   -> str
cohort_key(stage, date_of_birth, avg, today)  -> str
widen_cohort_key(key)                         -> str
cohort_label(key)                             -> str
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

SEPARATOR = "_"

UNKNOWN_STAGE = "unknown"
UNKNOWN_AGE = "unknown_age"

SEVERITY_TIERS = ("mild", "moderate", "severe")

_MENOPAUSE_ALIASES = {"menopause", "meno"}


def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def normalize_stage(raw: Optional[str]) -> str:
    if not raw:
        return UNKNOWN_STAGE
    lower = raw.strip().lower()

    # "post" first so "postmenopause" never reaches the peri rule
    if "post" in lower:
        return "postmenopause"
    if lower.startswith("peri"):
        return "perimenopause"
    if lower in _MENOPAUSE_ALIASES:
        return "menopause"
    # "not sure", "i'm not sure", "not_sure", "unknown" and anything else
    return UNKNOWN_STAGE


def parse_date_of_birth(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def age_on(dob: date, today: date) -> int:
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def age_bucket(date_of_birth: Optional[str], today: date) -> str:
    dob = parse_date_of_birth(date_of_birth)
    if dob is None:
        return UNKNOWN_AGE

    age = age_on(dob, today)
    if age < 40:
        return "under_40"
    if age < 45:
        return "40-44"
    if age < 50:
        return "45-49"
    if age < 55:
        return "50-54"
    if age < 60:
        return "55-59"
    return "60_plus"


def severity_tier(avg_severity: float) -> str:
    if avg_severity < 1.5:
        return "mild"
    if avg_severity <= 2.5:
        return "moderate"
    return "severe"


def cohort_key(
    stage: Optional[str],
    date_of_birth: Optional[str],
    avg_severity: float,
    today: Optional[date] = None,
) -> str:
    today = today or _today()
    return SEPARATOR.join((
        normalize_stage(stage),
        age_bucket(date_of_birth, today),
        severity_tier(avg_severity),
    ))


def widen_cohort_key(key: str) -> str:
    """Drop the severity tier (the last separator-joined segment)."""
    return key.rsplit(SEPARATOR, 1)[0]


# ---------------------------------------------------------------------------
# Human label
# ---------------------------------------------------------------------------

_LABELS = {
    UNKNOWN_STAGE: "All stages",
    UNKNOWN_AGE: "All ages",
    "under_40": "Under 40",
    "60_plus": "60+",
}


def split_cohort_key(key: str) -> list[str]:
    """Split into [stage, age] or [stage, age, tier]; age buckets may contain "_"."""
    stage, _, rest = key.partition(SEPARATOR)
    head, _, tail = rest.rpartition(SEPARATOR)
    if head and tail in SEVERITY_TIERS:
        return [stage, head, tail]
    return [stage, rest] if rest else [stage]


def cohort_label(key: str) -> str:
    """'perimenopause_45-49_mild' -> 'Perimenopause, 45-49, Mild'."""
    return ", ".join(
        _LABELS.get(part, part[:1].upper() + part[1:])
        for part in split_cohort_key(key)
    )
