"""
Readiness router.

GET /scores/readiness   — readiness, sub-scores and streak (computed on demand)
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import CurrentUserId
from app.core.errors import NoLogsForDayError
from app.db.base import get_db
from app.schemas.common import ErrorResponse
from app.schemas.scores import ReadinessComponentsResponse, ReadinessResponse
from app.services.scoring import ScoreResult, get_readiness

router = APIRouter(prefix="/scores", tags=["scores"])


def _to_response(result: ScoreResult) -> ReadinessResponse:
    return ReadinessResponse(
        user_id=result.user_id,
        day=str(result.day),
        readiness=result.readiness,
        components=ReadinessComponentsResponse(
            sleep=result.components.sleep,
            mood=result.components.mood,
            symptom=result.components.symptom,
            stressor=result.components.stressor,
        ),
        streak=result.streak,
        recommendation=result.recommendation,
    )


@router.get(
    "/readiness",
    response_model=ReadinessResponse,
    summary="Readiness score for one day",
    responses={
        200: {"description": "Stored score, or a freshly computed one."},
        401: {"model": ErrorResponse, "description": "No acting user id supplied."},
        404: {"model": ErrorResponse, "description": "The user has no logs on that day."},
    },
)
def readiness(
    user_id: CurrentUserId,
    day: Optional[date] = Query(
        default=None,
        description="Day to score. Defaults to today (UTC).",
        examples=["2026-02-21"],
    ),
    refresh: bool = Query(
        default=False,
        description="Recompute from the logs even when a stored score exists.",
    ),
    db: Session = Depends(get_db),
):
    """
    Return the **readiness** score (5–99) with its four weighted sub-scores
    and the user's logging streak.

    Scores are cached in `computed_scores`; a missing row is computed from the
    day's logs and stored before returning (write-through).
    """
    target = day or datetime.now(tz=timezone.utc).date()
    result = get_readiness(db=db, user_id=user_id, day=target, refresh=refresh)
    if result is None:
        raise NoLogsForDayError(user_id=user_id, day=target)
    return _to_response(result)
