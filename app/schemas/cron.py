"""
Scheduler-triggered batch run schemas.

POST /cron/benchmarks      → BenchmarkRunResponse
POST /cron/compute-scores  → ScoreRunResponse
"""
from pydantic import BaseModel, Field


class BenchmarkRunResponse(BaseModel):
    cohorts: int = Field(description="Cohorts whose rows were replaced this run.")
    errors: int = Field(description="Cohorts that failed, or 1 for an aborted run.")
    cohort_keys: list[str] = Field(default_factory=list)
    computed_at: str


class ScoreRunResponse(BaseModel):
    success: bool = True
    processed: int
    errors: int
    computed_at: str
