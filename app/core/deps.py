"""Shared FastAPI dependencies injected into route handlers."""
from __future__ import annotations

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header

from app.core.config import settings
from app.core.errors import CronUnauthorizedError, UserNotResolvedError


def get_current_user_id(
    x_user_id: Optional[str] = Header(
        default=None,
        description="Opaque user id resolved by the upstream identity layer.",
    ),
) -> str:
    """Return the acting user id. The engine never authenticates on its own."""
    if x_user_id is None or not x_user_id.strip():
        raise UserNotResolvedError()
    return x_user_id.strip()


def verify_cron_secret(
    authorization: Optional[str] = Header(default=None),
) -> None:
    """Guard for scheduler-triggered endpoints: `Authorization: Bearer <CRON_SECRET>`."""
    expected = f"Bearer {settings.CRON_SECRET}"
    if authorization is None or not hmac.compare_digest(authorization, expected):
        raise CronUnauthorizedError()


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
