from __future__ import annotations

from datetime import date, datetime
from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base

READINESS_UNIQUE_CONSTRAINT = "uq_athlete_readiness_user_date"


class AthleteReadiness(Base):
    """Daily readiness assessment. Score columns belong to the check-in, audio_url to the briefing."""

    __tablename__ = "athlete_readiness"
    __table_args__ = (UniqueConstraint("user_id", "date", name=READINESS_UNIQUE_CONSTRAINT),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # uuid4
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    readiness_score: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0-100
    injury_risk: Mapped[str | None] = mapped_column(String(50), nullable=True)  # low, moderate, high, critical
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendation: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="readiness")
