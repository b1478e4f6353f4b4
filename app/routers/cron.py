"""
Scheduler router. Every endpoint requires `Authorization: Bearer <CRON_SECRET>`.

POST /cron/benchmarks       — recompute cohort benchmark aggregates
POST /cron/compute-scores   — recompute today's readiness for every user with logs

Both runs are idempotent and safe to re-trigger on any cadence.
"""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import verify_cron_secret
from app.db.base import get_db
from app.schemas.common import ErrorResponse
from app.schemas.cron import BenchmarkRunResponse, ScoreRunResponse
from app.services.benchmarks import compute_all_benchmarks
from app.services.scoring import compute_all_user_scores

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.post(
    "/benchmarks",
    response_model=BenchmarkRunResponse,
    summary="Recompute cohort benchmarks",
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid scheduler secret."}},
)
def run_benchmarks(db: Session = Depends(get_db)):
    """
    Rebuild `benchmark_aggregates` for every cohort that meets the minimum
    size (directly or through its widened key). Per-cohort failures are
    counted in `errors` and do not stop the run.
    """
    now = datetime.now(tz=timezone.utc)
    result = compute_all_benchmarks(db=db, now=now.date())
    return BenchmarkRunResponse(
        cohorts=result.cohorts,
        errors=result.errors,
        cohort_keys=result.cohort_keys,
        computed_at=now.isoformat(),
    )


@router.post(
    "/compute-scores",
    response_model=ScoreRunResponse,
    summary="Recompute today's readiness scores",
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid scheduler secret."}},
)
def run_compute_scores(db: Session = Depends(get_db)):
    """Score every user that has logs, for today (UTC)."""
    now = datetime.now(tz=timezone.utc)
    result = compute_all_user_scores(db=db, reference_date=now.date())
    return ScoreRunResponse(
        processed=result.processed,
        errors=result.errors,
        computed_at=now.isoformat(),
    )
