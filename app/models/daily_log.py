"""
DailyLog — one self-reported check-in.

A user may log several times per calendar day (morning / evening). Rows are
written by the user-facing logging surface; the engine only reads them.

symptoms_json holds one of two historical encodings:
  current : {"hot_flashes": 3, "brain_fog": 1}
  legacy  : [{"name": "hot_flashes", "severity": 3, "isStressor": false}, ...]
Both are normalized in app/services/symptoms.py before any scoring.
"""
from datetime import datetime, date
from typing import Any

from sqlalchemy import Integer, String, Float, DateTime, Date, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class DailyLog(Base):
    __tablename__ = "daily_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    symptoms_json: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    mood: Mapped[int | None] = mapped_column(Integer, nullable=True, comment="1-5")
    sleep_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    sleep_quality: Mapped[str | None] = mapped_column(
        String(16), nullable=True,
        comment='"terrible" | "poor" | "good" | "great"',
    )
    disruptions: Mapped[int | None] = mapped_column(Integer, nullable=True)
    context_tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=list)
    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
