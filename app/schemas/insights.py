"""
Insights schemas.

GET /insights/benchmarks   → BenchmarkInsightsResponse
GET /insights/correlations → CorrelationInsightsResponse
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class CohortResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str = Field(examples=["perimenopause_45-49_mild"])
    label: str = Field(examples=["Perimenopause, 45-49, Mild"])
    sample_size: int = Field(description="Members behind the benchmark; 0 for defaults.")


class SymptomInsightResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    user_frequency_days: int = Field(description="Days the user logged it in the last 28.")
    user_avg_severity: float
    cohort_prevalence_pct: float = Field(description="Share of the cohort logging it, 0–100.")
    cohort_avg_frequency: float
    percentile_position: int = Field(description="Estimated position in the cohort, 0–99.")
    label: str = Field(description='"Very common" | "Common" | "Less common"')


class BenchmarkInsightsResponse(BaseModel):
    cohort: CohortResponse
    message: Optional[str] = Field(
        default=None,
        description="Present only when general population defaults are returned.",
    )
    symptoms: list[SymptomInsightResponse] = Field(
        description="Ordered by the user's own frequency, highest first."
    )


class CorrelationInsightResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    factor: str
    symptom: str
    direction: str = Field(description='"positive" | "negative"')
    confidence: Optional[float] = None
    effect_size_pct: Optional[float] = None
    occurrences: Optional[int] = None
    lag_days: Optional[int] = None
    human_label: str = Field(examples=["Caffeine increases hot flashes by 23%"])


class CorrelationInsightsResponse(BaseModel):
    correlations: list[CorrelationInsightResponse]
    last_computed: Optional[str] = None
    data_quality: str = Field(description='"building" | "moderate" | "strong"')
    total_found: int
