"""
Error envelope shared by every endpoint; referenced from the routers'
`responses=` so it shows up in the OpenAPI document.
"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    code: str = Field(examples=["PROFILE_NOT_FOUND"])
    message: str
    details: Optional[dict[str, Any]] = Field(
        default=None,
        description="Machine-readable context, e.g. `user_id` / `day`; field `errors` on a 422.",
    )
