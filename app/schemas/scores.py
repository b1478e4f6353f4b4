"""
Readiness schemas.

GET /scores/readiness → ReadinessResponse
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ReadinessComponentsResponse(BaseModel):
    """Weighted inputs to readiness. Each sub-score is in the range 10–100."""
    model_config = ConfigDict(from_attributes=True)

    sleep: float = Field(description="Weight 0.40. Defaults to 50 without sleep data.")
    mood: float = Field(description="Weight 0.25. Defaults to 50 without a mood rating.")
    symptom: float = Field(description="Weight 0.20. 100 when no symptoms were logged.")
    stressor: float = Field(description="Weight 0.15. 100 when no stressors were logged.")


class ReadinessResponse(BaseModel):
    user_id: str
    day: str
    readiness: int = Field(description="Composite score, 5–99.", examples=[72])
    components: ReadinessComponentsResponse
    streak: int = Field(
        description="Consecutive logged days ending at the user's most recent log."
    )
    recommendation: Optional[str] = Field(
        default=None,
        description="Narrative text written by the external generator, if any.",
    )
