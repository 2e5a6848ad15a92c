from datetime import date, datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitcoach.database import Base


class WeeklyAssessmentRecord(Base):
    """Flattened, durable projection of one week's assessment."""
    __tablename__ = "weekly_assessments"
    __table_args__ = (
        UniqueConstraint("user_id", "week_number", name="uq_weekly_assessments_user_week"),
        CheckConstraint("consistency_days <= total_tracking_days", name="consistency_le_tracking"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    phase_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Performance (0-100 percentages)
    steps_achievement_avg: Mapped[float] = mapped_column(Float, default=0.0)
    water_achievement_avg: Mapped[float] = mapped_column(Float, default=0.0)
    sleep_achievement_avg: Mapped[float] = mapped_column(Float, default=0.0)
    mood_achievement_avg: Mapped[float] = mapped_column(Float, default=0.0)
    overall_achievement_avg: Mapped[float] = mapped_column(Float, default=0.0)
    overall_grade: Mapped[str | None] = mapped_column(String(20), nullable=True)
    strongest_pillar: Mapped[str | None] = mapped_column(String(20), nullable=True)
    weakest_pillar: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Consistency
    consistency_days: Mapped[int] = mapped_column(Integer, default=0)
    total_tracking_days: Mapped[int] = mapped_column(Integer, default=0)
    consistency_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_streak: Mapped[int | None] = mapped_column(Integer, nullable=True)
    longest_streak: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weekend_consistency: Mapped[float | None] = mapped_column(Float, nullable=True)
    pillar_consistency: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    consistency_patterns: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Recommendation
    progression_recommendation: Mapped[str] = mapped_column(String(10), nullable=False)  # advance, extend, reset
    confidence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    decision_reasoning: Mapped[list] = mapped_column(JSON, default=list)
    risk_factors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    opportunities: Mapped[list | None] = mapped_column(JSON, nullable=True)
    target_modifications: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    user_decision: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Target set in force when the week was assessed
    targets_at_assessment: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Metadata
    schema_version: Mapped[int] = mapped_column(Integer, default=1)
    assessed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="weekly_assessments")
