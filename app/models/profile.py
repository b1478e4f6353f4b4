from datetime import datetime
from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Profile(Base):
    """One per user. Only onboarding-complete profiles are benchmarked."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    # Free text from onboarding ("Perimenopause", "Post-menopausal", "not sure", ...)
    stage: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Free text, expected ISO "YYYY-MM-DD"; unparseable values map to "unknown_age"
    date_of_birth: Mapped[str | None] = mapped_column(String(32), nullable=True)
    onboarding_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
