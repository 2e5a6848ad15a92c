from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitcoach.database import Base


class DailyMetrics(Base):
    """One row per user per calendar day, written by the tracking client."""
    __tablename__ = "daily_metrics"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_metrics_user_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    date: Mapped[date] = mapped_column(Date, index=True, nullable=False)

    # Pillar actual/target pairs
    steps_target: Mapped[int] = mapped_column(Integer, default=8000, nullable=False)
    steps_actual: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    water_oz_target: Mapped[int] = mapped_column(Integer, default=80, nullable=False)
    water_oz_actual: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sleep_hr_target: Mapped[float] = mapped_column(Float, default=8.0, nullable=False)
    sleep_hr_actual: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    mood_checkins_target: Mapped[int] = mapped_column(Integer, default=7, nullable=False)
    mood_checkins_actual: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="daily_metrics")
