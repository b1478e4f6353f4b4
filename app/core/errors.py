"""
Custom exception hierarchy for the insights engine.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

"No data" outcomes inside the services are plain return values (None, a
fallback payload). These exceptions exist only for conditions the HTTP edge
has to turn into a status code.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class EngineException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UserNotResolvedError(EngineException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "USER_NOT_RESOLVED"

    def __init__(self):
        super().__init__(message="No acting user id was supplied with the request.")


class CronUnauthorizedError(EngineException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "CRON_UNAUTHORIZED"

    def __init__(self):
        super().__init__(message="Missing or invalid scheduler credentials.")


class ProfileNotFoundError(EngineException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "PROFILE_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No profile found for user {user_id}.",
            details={"user_id": user_id},
        )


class NoLogsForDayError(EngineException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NO_LOGS_FOR_DAY"

    def __init__(self, user_id: str, day: date):
        super().__init__(
            message=f"User {user_id} has no logs on {day}; nothing to score.",
            details={"user_id": user_id, "day": str(day)},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def engine_exception_handler(request: Request, exc: EngineException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
