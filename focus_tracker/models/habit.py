import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from focus_tracker.models.base import Base


class Habit(Base):
    __tablename__ = "habits"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    completions: Mapped[list["HabitCompletion"]] = relationship(
        back_populates="habit", cascade="all, delete-orphan"
    )

    @property
    def completed_dates(self) -> list[date]:
        return sorted(c.completed_on for c in self.completions)


class HabitCompletion(Base):
    __tablename__ = "habit_completions"

    habit_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("habits.id", ondelete="CASCADE"), nullable=False
    )
    completed_on: Mapped[date] = mapped_column(Date, nullable=False)

    # Relationships
    habit: Mapped["Habit"] = relationship(back_populates="completions")

    __table_args__ = (
        UniqueConstraint("habit_id", "completed_on", name="uq_habit_completions_habit_day"),
    )
