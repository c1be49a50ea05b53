from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean
from app.core.database import Base
from app.core.utils import utcnow


class Reminder(Base):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False)
    # Copied from the user and note at creation time
    user_email = Column(String(255), nullable=False)
    note_title = Column(String(200), nullable=False)
    note_text = Column(Text, nullable=False)
    reminder_date = Column(DateTime(timezone=True), nullable=False, index=True)
    sent = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
