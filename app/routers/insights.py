"""
Insights router — read-only.

GET /insights/benchmarks     — how the user's symptoms compare to their cohort
GET /insights/correlations   — labelled factor → symptom correlations
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import CurrentUserId
from app.db.base import get_db
from app.schemas.common import ErrorResponse
from app.schemas.insights import (
    BenchmarkInsightsResponse,
    CohortResponse,
    CorrelationInsightResponse,
    CorrelationInsightsResponse,
    SymptomInsightResponse,
)
from app.services.insights import get_benchmark_insights, get_correlation_insights

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get(
    "/benchmarks",
    response_model=BenchmarkInsightsResponse,
    response_model_exclude_none=True,
    summary="Symptom burden compared to similar users",
    responses={
        200: {"description": "Cohort benchmarks, or population defaults with a message."},
        401: {"model": ErrorResponse, "description": "No acting user id supplied."},
        404: {"model": ErrorResponse, "description": "The user has no profile."},
    },
)
def benchmarks(user_id: CurrentUserId, db: Session = Depends(get_db)):
    """
    Compare the user's last 28 days of symptoms with their cohort
    (life stage, age bucket, severity tier).

    Falls back to the widened cohort (severity tier dropped) and finally to
    general population defaults. The fallback is a normal response: it carries
    `message` and a cohort `sample_size` of 0.
    """
    result = get_benchmark_insights(db=db, user_id=user_id)
    return BenchmarkInsightsResponse(
        cohort=CohortResponse.model_validate(result.cohort),
        message=result.message,
        symptoms=[SymptomInsightResponse.model_validate(s) for s in result.symptoms],
    )


@router.get(
    "/correlations",
    response_model=CorrelationInsightsResponse,
    summary="Factor → symptom correlations with human labels",
    responses={401: {"model": ErrorResponse, "description": "No acting user id supplied."}},
)
def correlations(user_id: CurrentUserId, db: Session = Depends(get_db)):
    """
    Return the user's correlation records, strongest effect first, each with
    a label such as *"Caffeine increases hot flashes by 23%"*.

    `data_quality` reflects how many distinct days the user has logged:
    under 14 → `building`, under 30 → `moderate`, otherwise `strong`.
    """
    result = get_correlation_insights(db=db, user_id=user_id)
    return CorrelationInsightsResponse(
        correlations=[CorrelationInsightResponse.model_validate(c) for c in result.correlations],
        last_computed=result.last_computed.isoformat() if result.last_computed else None,
        data_quality=result.data_quality,
        total_found=result.total_found,
    )
