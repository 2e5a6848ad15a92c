from datetime import date, datetime

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitcoach.database import Base


class ProgramProgress(Base):
    """Where a user currently stands in the 90-day program."""
    __tablename__ = "program_progress"
    __table_args__ = (
        CheckConstraint("week_extensions >= 0 AND week_extensions <= 5", name="week_extensions_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, index=True, nullable=False)

    current_week: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    current_phase: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)

    # Times the current week has been extended (reset on advance/reset)
    week_extensions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_assessment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Softened target set in force for an extended week: {"steps", "water_oz", "sleep_hr"}
    active_targets: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Append-only decision history: [{"type", "timestamp", "data"}]
    progression_decisions: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="program_progress")
