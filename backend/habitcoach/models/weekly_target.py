from sqlalchemy import Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitcoach.database import Base


class WeeklyTarget(Base):
    """Personalised roadmap entry; weeks without a row use the default progression."""
    __tablename__ = "weekly_targets"
    __table_args__ = (
        UniqueConstraint("user_id", "week_number", name="uq_weekly_targets_user_week"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)

    steps: Mapped[int] = mapped_column(Integer, nullable=False)
    water_oz: Mapped[int] = mapped_column(Integer, nullable=False)
    sleep_hr: Mapped[float] = mapped_column(Float, nullable=False)
    focus: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    user = relationship("User", back_populates="weekly_targets")
