from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitcoach.database import Base


class User(Base):
    """Program participant. Identity and sessions are managed elsewhere."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="America/New_York")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    daily_metrics = relationship("DailyMetrics", back_populates="user", cascade="all, delete-orphan")
    program_progress = relationship(
        "ProgramProgress", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    weekly_targets = relationship("WeeklyTarget", back_populates="user", cascade="all, delete-orphan")
    weekly_assessments = relationship(
        "WeeklyAssessmentRecord", back_populates="user", cascade="all, delete-orphan"
    )
