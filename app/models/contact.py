import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from app.core.database import Base
from app.core.utils import utcnow


class ContactRequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ContactRequest(Base):
    __tablename__ = "contact_requests"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    requester_username = Column(String(20), nullable=False)
    requester_email = Column(String(255), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default=ContactRequestStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Contact(Base):
    """One direction of an accepted contact; every pair has two rows."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    contact_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    contact_username = Column(String(20), nullable=False)
    contact_email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


Index("ix_contact_requests_pair_status", ContactRequest.requester_id, ContactRequest.recipient_id, ContactRequest.status)
Index("ix_contacts_user_contact", Contact.user_id, Contact.contact_user_id)
