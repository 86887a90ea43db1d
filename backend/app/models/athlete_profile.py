from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base


class AthleteProfile(Base):
    __tablename__ = "athlete_profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    # Synced from Strava on login
    strava_firstname: Mapped[str | None] = mapped_column(String(128), nullable=True)
    strava_lastname: Mapped[str | None] = mapped_column(String(128), nullable=True)
    strava_weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Manual overrides (when null, Strava values apply)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_heart_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    resting_heart_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(50), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User"] = relationship("User", back_populates="athlete_profile")
