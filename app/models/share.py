import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.utils import utcnow


class ShareType(str, enum.Enum):
    NOTE = "note"
    TASK = "task"
    HABIT = "habit"
    REMINDER = "reminder"


class SharePermission(str, enum.Enum):
    READ = "read"
    WRITE = "write"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Share(Base):
    """Access grant from an owner to a recipient for one item of ``item_type``."""
    __tablename__ = "shares"
    __table_args__ = (
        UniqueConstraint("item_type", "item_id", "recipient_id", name="uq_shares_item_recipient"),
        Index("ix_shares_item", "item_type", "item_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    item_type = Column(
        Enum(ShareType, native_enum=False, values_callable=_enum_values, length=20),
        nullable=False,
    )
    item_id = Column(Integer, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission = Column(
        Enum(SharePermission, native_enum=False, values_callable=_enum_values, length=10),
        nullable=False,
        default=SharePermission.READ,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    recipient = relationship("User", foreign_keys=[recipient_id])


class PublicShare(Base):
    __tablename__ = "public_shares"
    __table_args__ = (
        UniqueConstraint("note_id", "owner_id", name="uq_public_shares_note_owner"),
    )

    id = Column(Integer, primary_key=True, index=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    share_token = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
