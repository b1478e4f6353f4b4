"""
ComputedScore — derived readiness cache, one row per (user_id, date).

Upserted by app/services/scoring.py; recomputation overwrites in place.
`recommendation` belongs to the external narrative generator: inserted as
NULL and never touched afterwards.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, Text, Float, DateTime, Date, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ComputedScore(Base):
    __tablename__ = "computed_scores"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_computed_score_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    readiness: Mapped[int] = mapped_column(Integer, nullable=False, comment="5-99")
    sleep_score: Mapped[float] = mapped_column(Float, nullable=False, comment="10-100")
    mood_score: Mapped[float] = mapped_column(Float, nullable=False, comment="10-100")
    symptom_score: Mapped[float] = mapped_column(Float, nullable=False, comment="10-100")
    stressor_score: Mapped[float] = mapped_column(Float, nullable=False, comment="10-100")
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recommendation: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
