import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from app.core.database import Base
from app.core.utils import utcnow


class NoteCategory(str, enum.Enum):
    BUSINESS = "business"
    PERSONAL = "personal"
    SPORT = "sport"
    CLIENTS = "clients"
    URGENT = "urgent"
    OTHER = "other"


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    text = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default=NoteCategory.OTHER.value)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
