import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.utils import utcnow


class HabitStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=False, default="blue")
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    daily_records = relationship(
        "DailyHabitRecord",
        back_populates="habit",
        cascade="all, delete-orphan",
        order_by="desc(DailyHabitRecord.date)",
        lazy="selectin",
    )


class DailyHabitRecord(Base):
    __tablename__ = "daily_habit_records"
    __table_args__ = (
        UniqueConstraint("habit_id", "date", name="uq_daily_habit_records_habit_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    habit_id = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    status = Column(String(20), nullable=False, default=HabitStatus.PENDING.value)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    habit = relationship("Habit", back_populates="daily_records")
