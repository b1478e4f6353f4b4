"""
BenchmarkAggregate — population statistics for one symptom within one cohort.

Owned entirely by the aggregator (app/services/benchmarks.py): each run
deletes every row for a cohort_key it recomputes and inserts a fresh set.
Cohorts that are not recomputed keep their previous rows.

cohort_key is either an exact key ("perimenopause_45-49_mild") or a widened
one with the severity tier dropped ("perimenopause_45-49").
"""
from datetime import datetime
from sqlalchemy import Integer, String, Float, DateTime, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class BenchmarkAggregate(Base):
    __tablename__ = "benchmark_aggregates"
    __table_args__ = (
        UniqueConstraint("cohort_key", "symptom", name="uq_benchmark_cohort_symptom"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    cohort_key: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    symptom: Mapped[str] = mapped_column(String(128), nullable=False)
    prevalence_pct: Mapped[float] = mapped_column(
        Float, nullable=False,
        comment="Share of members with >=1 logged day in the recent window (0-100)",
    )
    avg_frequency: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Mean days logged per member, non-loggers count as 0",
    )
    avg_severity: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Mean of per-member mean severity, loggers only",
    )
    p25_frequency: Mapped[float] = mapped_column(Float, nullable=False)
    p50_frequency: Mapped[float] = mapped_column(Float, nullable=False)
    p75_frequency: Mapped[float] = mapped_column(Float, nullable=False)
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
