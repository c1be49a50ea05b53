import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from app.core.database import Base
from app.core.utils import utcnow


class SubscriptionPlan(str, enum.Enum):
    FREE = "free"
    PRO = "pro"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    TRIALING = "trialing"


class Subscription(Base):
    """
    One row per user, driven by Stripe webhook events:
    - plan: free / pro
    - status: active / canceled / past_due / trialing
    - end_date: None while the recurring subscription runs
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    plan = Column(String(20), nullable=False, default=SubscriptionPlan.FREE.value)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    start_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True, index=True)
    stripe_subscription_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
