"""
UserCorrelation — factor -> symptom lag correlations for one user.

Written by a separate discovery job; this engine only reads the rows and
turns them into labelled insights.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Float, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class UserCorrelation(Base):
    __tablename__ = "user_correlations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    factor_a: Mapped[str] = mapped_column(String(128), nullable=False)
    factor_b: Mapped[str] = mapped_column(String(128), nullable=False)
    direction: Mapped[str] = mapped_column(
        String(16), nullable=False, comment='"positive" | "negative"',
    )
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    effect_size_pct: Mapped[float | None] = mapped_column(Float, nullable=True)
    occurrences: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lag_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
